"""Label and annotation reconciliation for Kptfiles."""

import logging
from typing import Mapping

from kptedit.core.schema.document import ResourceObject

logger = logging.getLogger(__name__)


class MetadataMixin:
    """Helpers that make metadata maps match a desired state, mixed into Kptfile."""

    obj: ResourceObject

    def set_labels(self, labels: Mapping[str, str]) -> None:
        """Set the labels of the Kptfile to exactly ``labels``.

        Every given label is added or overwritten, then every existing label
        missing from ``labels`` is removed.
        """
        for key, value in labels.items():
            self.obj.set_label(key, value)

        for key in self.obj.get_labels():
            if key not in labels:
                self.obj.remove_label(key)
                logger.debug(f"Removed label {key!r}")

    def set_annotations(self, annotations: Mapping[str, str]) -> None:
        """Set the annotations of the Kptfile to exactly ``annotations``."""
        for key, value in annotations.items():
            self.obj.set_annotation(key, value)

        for key in self.obj.get_annotations():
            if key not in annotations:
                self.obj.remove_annotation(key)
                logger.debug(f"Removed annotation {key!r}")
