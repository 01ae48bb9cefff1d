"""Protocols for the generic structured-document object model."""

from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple, Type, TypeVar

R = TypeVar("R", bound="TypedRecord")
S = TypeVar("S", bound="StructuredObject")


class TypedRecord(Protocol):
    """A record with a fixed shape that converts to and from plain mappings.

    Examples include a status Condition, a ReadinessGate or a pipeline
    Function. ``from_dict`` raises DecodeError when the mapping does not
    match the expected shape.
    """

    @classmethod
    def from_dict(cls: Type[R], data: Mapping[str, Any]) -> R:
        ...

    def to_dict(self) -> Dict[str, Any]:
        ...


class StructuredObject(Protocol):
    """Navigable view over a tree of mappings, sequences and scalars.

    Any JSON-like tree representation can satisfy this interface. Field
    paths are given as positional arguments, e.g.
    ``obj.nested_slice("status", "conditions")``.
    """

    def nested_string(self, *fields: str) -> Tuple[str, bool]:
        """Return the scalar at the path as a string and whether it was found."""
        ...

    def get_string(self, *fields: str) -> str:
        """Return the scalar at the path as a string, or "" if absent."""
        ...

    def set_nested_string(self, value: str, *fields: str) -> None:
        """Set a string at the path, creating intermediate mappings."""
        ...

    def nested_map(self: S, *fields: str) -> Optional[S]:
        """Return the mapping at the path, or None if absent."""
        ...

    def upsert_map(self: S, field: str) -> S:
        """Return the child mapping, creating it if absent."""
        ...

    def nested_slice(self: S, *fields: str) -> List[S]:
        """Return the sequence of mappings at the path ([] if absent)."""
        ...

    def set_slice(self: S, objs: List[S], *fields: str) -> None:
        """Replace the sequence at the path, creating intermediate mappings."""
        ...

    def new_record(self: S, record: TypedRecord) -> S:
        """Build a detached object of the same implementation from a typed record."""
        ...

    def as_typed(self, record_cls: Type[R]) -> R:
        """Decode this object into a typed record."""
        ...

    def set_from_typed(self, record: TypedRecord) -> None:
        """Replace this object's fields with those of a typed record."""
        ...

    def to_dict(self) -> Dict[str, Any]:
        """Return a plain (dict/list/scalar) deep copy of this object."""
        ...


class ResourceObject(StructuredObject, Protocol):
    """A top-level resource: a StructuredObject with metadata accessors."""

    def get_labels(self) -> Dict[str, str]:
        ...

    def set_label(self, key: str, value: str) -> None:
        ...

    def remove_label(self, key: str) -> bool:
        ...

    def get_annotations(self) -> Dict[str, str]:
        ...

    def set_annotation(self, key: str, value: str) -> None:
        ...

    def remove_annotation(self, key: str) -> bool:
        ...
