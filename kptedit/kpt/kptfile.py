"""Kptfile object: load, edit and write back the manifest of a kpt package."""

import logging
from typing import Dict, List, MutableMapping, Optional

from kptedit.core.errors import DecodeError, EmptyKptfileError, KptfileNotFoundError
from kptedit.core.yaml_object import (
    KubeObject,
    read_objects_from_string,
    write_objects_to_string,
)
from kptedit.kpt.api import (
    KPTFILE_API_VERSION,
    KPTFILE_KIND,
    KPTFILE_NAME,
    PATH_ANNOTATIONS,
    KptfileDocument,
)
from kptedit.kpt.conditions import ConditionsMixin
from kptedit.kpt.metadata import MetadataMixin
from kptedit.kpt.pipeline import PipelineMixin

logger = logging.getLogger(__name__)


def is_kptfile(obj: KubeObject) -> bool:
    return obj.group_version_kind() == (KPTFILE_API_VERSION, KPTFILE_KIND)


def get_root_kptfile(objs: List[KubeObject]) -> Optional[KubeObject]:
    """Return the Kptfile of the package root from a list of objects.

    A Kptfile belongs to the root when its path annotation is either absent
    or equal to "Kptfile" (nested packages carry "subpkg/Kptfile").
    """
    for obj in objs:
        if not is_kptfile(obj):
            continue
        annotations = obj.get_annotations()
        paths = [annotations[a] for a in PATH_ANNOTATIONS if a in annotations]
        if not paths or all(p == KPTFILE_NAME for p in paths):
            return obj
    return None


class Kptfile(ConditionsMixin, PipelineMixin, MetadataMixin):
    """API to manipulate the Kptfile of a kpt package.

    Wraps the Kptfile's KubeObject. All edits go straight to the underlying
    YAML nodes; call write_to_package() or to_string() to serialize them.
    A Kptfile created without an object is "empty": it stringifies to ""
    and raises EmptyKptfileError on write.

    Example:
        >>> kf = Kptfile.from_package(resources)
        >>> kf.set_typed_condition(Condition(type="Ready", status=ConditionStatus.TRUE))
        >>> kf.write_to_package(resources)
    """

    def __init__(self, obj: Optional[KubeObject] = None) -> None:
        self._obj = obj

    @property
    def obj(self) -> KubeObject:
        if self._obj is None:
            raise EmptyKptfileError("attempt to edit an empty Kptfile")
        return self._obj

    @property
    def is_empty(self) -> bool:
        return self._obj is None

    @property
    def name(self) -> str:
        return self.obj.name

    @classmethod
    def from_object_list(cls, objs: List[KubeObject]) -> "Kptfile":
        """Create a Kptfile by finding the root Kptfile in the given objects.

        Raises:
            KptfileNotFoundError: If no root Kptfile is among the objects
        """
        obj = get_root_kptfile(objs)
        if obj is None:
            raise KptfileNotFoundError("the Kptfile object is missing from the package")
        return cls(obj)

    @classmethod
    def from_package(cls, resources: MutableMapping[str, str]) -> "Kptfile":
        """Create a Kptfile from the resource (YAML) files of a package.

        Args:
            resources: Mapping from file path (relative to the package root)
                to file content

        Raises:
            KptfileNotFoundError: If the package has no Kptfile
            DecodeError: If the Kptfile can't be parsed
        """
        if KPTFILE_NAME not in resources:
            raise KptfileNotFoundError(
                f"file {KPTFILE_NAME!r} is missing from the package", path=KPTFILE_NAME
            )
        try:
            objs = read_objects_from_string(resources[KPTFILE_NAME], filename=KPTFILE_NAME)
        except DecodeError as e:
            raise DecodeError(
                f"couldn't parse file {KPTFILE_NAME!r} from package: {e}", path=KPTFILE_NAME
            ) from e
        return cls.from_object_list(objs)

    @classmethod
    def from_string(cls, text: str) -> "Kptfile":
        """Create a Kptfile from YAML text holding a single Kptfile object.

        Raises:
            DecodeError: If the text isn't a single object of the Kptfile type
        """
        obj = KubeObject.parse(text)
        if not is_kptfile(obj):
            expected = f"{KPTFILE_API_VERSION}, Kind={KPTFILE_KIND}"
            got = f"{obj.api_version}, Kind={obj.kind}"
            raise DecodeError(f"string is not Kptfile (GVK {expected!r} != {got!r})")
        return cls(obj)

    def to_string(self) -> str:
        if self._obj is None:
            raise EmptyKptfileError("attempt to serialize an empty Kptfile")
        return write_objects_to_string([self._obj])

    def __str__(self) -> str:
        if self._obj is None:
            return ""
        return self.to_string()

    def __repr__(self) -> str:
        if self._obj is None:
            return "Kptfile(<empty>)"
        return f"Kptfile(name={self.name!r})"

    def write_to_package(self, resources: MutableMapping[str, str]) -> None:
        """Serialize the Kptfile into the package's resources under "Kptfile".

        Raises:
            EmptyKptfileError: If this Kptfile has no object
        """
        if self._obj is None:
            raise EmptyKptfileError("attempt to write empty Kptfile to the package")
        resources[KPTFILE_NAME] = self.to_string()
        logger.debug(f"Wrote {KPTFILE_NAME} to package")

    def to_typed(self) -> KptfileDocument:
        """Decode the current state into a strict typed KptfileDocument."""
        return decode_kptfile(self.to_string())


def decode_kptfile(text: str) -> KptfileDocument:
    """Decode a Kptfile from a YAML string, rejecting unknown fields.

    Only the first document of a multi-document stream is decoded.

    Raises:
        DecodeError: If the text is not a valid v1 Kptfile
    """
    try:
        objs = read_objects_from_string(text)
        if not objs:
            raise DecodeError("no Kptfile object found")
        return KptfileDocument.from_dict(objs[0].to_dict())
    except DecodeError as e:
        raise DecodeError(f"invalid 'v1' Kptfile: {e}", path=e.path) from e


def new_kptfile(name: str, labels: Optional[Dict[str, str]] = None) -> Kptfile:
    """Create a minimal Kptfile with the given package name."""
    obj = KubeObject(
        {
            "apiVersion": KPTFILE_API_VERSION,
            "kind": KPTFILE_KIND,
            "metadata": {"name": name},
        }
    )
    kf = Kptfile(obj)
    if labels:
        kf.set_labels(labels)
    return kf
