"""ruamel.yaml-backed structured document objects.

This module implements the StructuredObject interface on top of ruamel.yaml
round-trip nodes (CommentedMap / CommentedSeq), so edits to a Kptfile keep
its comments, key order and quoting style.
"""

import logging
from enum import Enum
from functools import lru_cache
from io import StringIO
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Type, TypeVar

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq
from ruamel.yaml.error import YAMLError

from kptedit.core.config import get_int_config_value, load_config
from kptedit.core.errors import DecodeError
from kptedit.core.schema.document import TypedRecord

logger = logging.getLogger(__name__)

R = TypeVar("R")

DEFAULT_YAML_WIDTH = 4096
DEFAULT_YAML_INDENT = 2


@lru_cache(maxsize=None)
def _file_config() -> Dict[str, Any]:
    return load_config()


def create_yaml(config: Optional[Dict[str, Any]] = None) -> YAML:
    """Create configured ruamel.yaml instance for Kptfile editing.

    Args:
        config: Optional config dict (uses kptedit.json if not provided,
            read once per process)

    Returns:
        YAML instance configured to:
        - Preserve quotes and formatting
        - Not wrap long strings (prevents image field splitting)
        - Use block style (not flow style)
    """
    if config is None:
        config = _file_config()
    yaml = YAML()
    yaml.preserve_quotes = True
    yaml.width = get_int_config_value(["yaml", "width"], DEFAULT_YAML_WIDTH, config)
    indent = get_int_config_value(["yaml", "indent"], DEFAULT_YAML_INDENT, config)
    yaml.indent(mapping=indent, sequence=indent, offset=0)
    yaml.default_flow_style = False
    yaml.allow_unicode = True
    return yaml


def to_node(value: Any) -> Any:
    """Convert plain Python data into ruamel.yaml round-trip nodes."""
    if isinstance(value, SubObject):
        return value.node
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        node = CommentedMap()
        for key, item in value.items():
            node[key] = to_node(item)
        return node
    if isinstance(value, (list, tuple)):
        return CommentedSeq(to_node(item) for item in value)
    return value


def to_plain(value: Any) -> Any:
    """Convert ruamel.yaml nodes (and scalar subclasses) into plain Python data."""
    if isinstance(value, Mapping):
        return {str(key): to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(item) for item in value]
    if isinstance(value, bool):
        return bool(value)
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        return float(value)
    if isinstance(value, str):
        return str(value)
    return value


def _field_path(fields: Iterable[str]) -> str:
    return ".".join(fields)


def _copy_comments(old: CommentedSeq, new: CommentedSeq) -> None:
    """Carry comments of a replaced sequence over to its replacement.

    Item comments follow their node, wherever it moved to in the new sequence.
    """
    new.ca.comment = old.ca.comment
    positions = {id(node): i for i, node in enumerate(old)}
    for j, node in enumerate(new):
        i = positions.get(id(node))
        if i is not None and i in old.ca.items:
            new.ca.items[j] = old.ca.items[i]


class SubObject:
    """A mapping node inside a structured document.

    SubObjects are thin views: they wrap the underlying CommentedMap without
    copying it, so changes made through a SubObject are visible in the
    document that owns the node.
    """

    def __init__(self, node: Optional[CommentedMap] = None) -> None:
        if node is None:
            node = CommentedMap()
        elif not isinstance(node, CommentedMap):
            node = to_node(node)
        self._node = node

    @property
    def node(self) -> CommentedMap:
        return self._node

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_dict()!r})"

    def _lookup(self, fields: Tuple[str, ...]) -> Tuple[Any, bool]:
        current: Any = self._node
        for field in fields:
            if not isinstance(current, Mapping) or field not in current:
                return None, False
            current = current[field]
        return current, True

    def _ensure_map(self, fields: Iterable[str]) -> CommentedMap:
        current = self._node
        walked: List[str] = []
        for field in fields:
            walked.append(field)
            child = current.get(field)
            if child is None:
                child = CommentedMap()
                current[field] = child
            elif not isinstance(child, Mapping):
                raise DecodeError(
                    f"field {_field_path(walked)!r} is not a mapping",
                    path=_field_path(walked),
                )
            current = child
        return current

    def nested_string(self, *fields: str) -> Tuple[str, bool]:
        value, found = self._lookup(fields)
        if not found or value is None:
            return "", False
        if isinstance(value, (Mapping, list)):
            raise DecodeError(
                f"field {_field_path(fields)!r} is not a scalar",
                path=_field_path(fields),
            )
        return str(value), True

    def get_string(self, *fields: str) -> str:
        return self.nested_string(*fields)[0]

    def set_nested_string(self, value: str, *fields: str) -> None:
        self.set_nested_field(value, *fields)

    def set_nested_field(self, value: Any, *fields: str) -> None:
        if not fields:
            raise ValueError("at least one field name is required")
        parent = self._ensure_map(fields[:-1])
        parent[fields[-1]] = to_node(value)

    def remove_nested_field(self, *fields: str) -> bool:
        """Remove the field at the path. Returns True if it existed."""
        if not fields:
            raise ValueError("at least one field name is required")
        parent, found = self._lookup(fields[:-1])
        if not found or not isinstance(parent, Mapping) or fields[-1] not in parent:
            return False
        del parent[fields[-1]]
        return True

    def nested_map(self, *fields: str) -> Optional["SubObject"]:
        value, found = self._lookup(fields)
        if not found or value is None:
            return None
        if not isinstance(value, Mapping):
            raise DecodeError(
                f"field {_field_path(fields)!r} is not a mapping",
                path=_field_path(fields),
            )
        return SubObject(value)

    def upsert_map(self, field: str) -> "SubObject":
        return SubObject(self._ensure_map([field]))

    def nested_slice(self, *fields: str) -> List["SubObject"]:
        value, found = self._lookup(fields)
        if not found or value is None:
            return []
        if not isinstance(value, list):
            raise DecodeError(
                f"field {_field_path(fields)!r} is not a sequence",
                path=_field_path(fields),
            )
        items = []
        for index, item in enumerate(value):
            if not isinstance(item, Mapping):
                raise DecodeError(
                    f"item {index} of {_field_path(fields)!r} is not a mapping",
                    path=f"{_field_path(fields)}[{index}]",
                )
            items.append(SubObject(item))
        return items

    def set_slice(self, objs: List["SubObject"], *fields: str) -> None:
        if not fields:
            raise ValueError("at least one field name is required")
        parent = self._ensure_map(fields[:-1])
        seq = CommentedSeq(obj.node for obj in objs)
        old = parent.get(fields[-1])
        if isinstance(old, CommentedSeq):
            _copy_comments(old, seq)
        parent[fields[-1]] = seq

    def as_typed(self, record_cls: Type[R]) -> R:
        return record_cls.from_dict(self.to_dict())  # type: ignore[attr-defined]

    def set_from_typed(self, record: TypedRecord) -> None:
        new_node = to_node(record.to_dict())
        for key in list(self._node.keys()):
            if key not in new_node:
                del self._node[key]
        for key, value in new_node.items():
            self._node[key] = value

    @classmethod
    def from_typed(cls, record: TypedRecord) -> "SubObject":
        return cls(to_node(record.to_dict()))

    def new_record(self, record: TypedRecord) -> "SubObject":
        return SubObject.from_typed(record)

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(self._node)


class KubeObject(SubObject):
    """A top-level KRM resource (apiVersion/kind/metadata) in a YAML document."""

    @classmethod
    def parse(cls, text: str) -> "KubeObject":
        """Parse a single YAML document into a KubeObject.

        Raises:
            DecodeError: If the text is not valid YAML or holds more or
                fewer than one object
        """
        objs = read_objects_from_string(text)
        if len(objs) != 1:
            raise DecodeError(f"expected exactly one object, found {len(objs)}")
        return objs[0]

    @property
    def api_version(self) -> str:
        return self.get_string("apiVersion")

    @property
    def kind(self) -> str:
        return self.get_string("kind")

    @property
    def name(self) -> str:
        return self.get_string("metadata", "name")

    def group_version_kind(self) -> Tuple[str, str]:
        return self.api_version, self.kind

    def _string_map(self, field: str) -> Dict[str, str]:
        value, found = self._lookup(("metadata", field))
        if not found or value is None:
            return {}
        if not isinstance(value, Mapping):
            raise DecodeError(
                f"field 'metadata.{field}' is not a mapping", path=f"metadata.{field}"
            )
        return {str(k): "" if v is None else str(v) for k, v in value.items()}

    def _remove_from_map(self, field: str, key: str) -> bool:
        value, found = self._lookup(("metadata", field))
        if not found or not isinstance(value, Mapping) or key not in value:
            return False
        del value[key]
        if not value:
            del self._node["metadata"][field]
        return True

    def get_labels(self) -> Dict[str, str]:
        return self._string_map("labels")

    def get_label(self, key: str) -> str:
        return self.get_labels().get(key, "")

    def set_label(self, key: str, value: str) -> None:
        self._ensure_map(["metadata", "labels"])[key] = value

    def remove_label(self, key: str) -> bool:
        return self._remove_from_map("labels", key)

    def get_annotations(self) -> Dict[str, str]:
        return self._string_map("annotations")

    def get_annotation(self, key: str) -> str:
        return self.get_annotations().get(key, "")

    def set_annotation(self, key: str, value: str) -> None:
        self._ensure_map(["metadata", "annotations"])[key] = value

    def remove_annotation(self, key: str) -> bool:
        return self._remove_from_map("annotations", key)

    def to_string(self) -> str:
        return write_objects_to_string([self])


def read_objects_from_string(text: str, filename: Optional[str] = None) -> List[KubeObject]:
    """Parse a (possibly multi-document) YAML stream into KubeObjects.

    Empty documents are skipped.

    Args:
        text: YAML content
        filename: File the content came from, used in error messages

    Raises:
        DecodeError: If the YAML is malformed or a document is not a mapping
    """
    source = filename or "<string>"
    yaml = create_yaml()
    try:
        documents = list(yaml.load_all(text))
    except YAMLError as e:
        raise DecodeError(f"failed to parse YAML from {source}: {e}", path=filename) from e

    objs = []
    for index, document in enumerate(documents):
        if document is None:
            continue
        if not isinstance(document, CommentedMap):
            raise DecodeError(
                f"document {index} in {source} is not a mapping", path=filename
            )
        objs.append(KubeObject(document))
    logger.debug(f"Read {len(objs)} object(s) from {source}")
    return objs


def write_objects_to_string(objs: List[SubObject]) -> str:
    """Serialize objects into a YAML stream, separated by ``---``."""
    yaml = create_yaml()
    documents = []
    for obj in objs:
        stream = StringIO()
        yaml.dump(obj.node, stream)
        documents.append(stream.getvalue())
    return "---\n".join(documents)
