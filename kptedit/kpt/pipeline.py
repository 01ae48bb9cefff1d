"""Pipeline function upserts for Kptfiles.

The ``pipeline.mutators`` and ``pipeline.validators`` lists are ordered: the
order is the order in which kpt runs the functions. Upserts match existing
entries by name, or by content when the new function has no name, and insert
unmatched functions at a caller-supplied position.

Insert positions:
- ``position >= 0`` inserts at that index (at or past the end appends)
- ``position < 0`` counts back from the end: the index becomes
  ``len(functions) + position + 1``, so -1 appends and -2 inserts before
  the last element
"""

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from kptedit.core.errors import DecodeError, PipelineError
from kptedit.core.schema.document import ResourceObject, StructuredObject, TypedRecord
from kptedit.kpt.api import Function

logger = logging.getLogger(__name__)

MUTATORS = "mutators"
VALIDATORS = "validators"
PIPELINE_SECTIONS = (MUTATORS, VALIDATORS)


def find_function_by_name(haystack: List[StructuredObject], name: str) -> Optional[StructuredObject]:
    """Return the first function in the list with the given name."""
    for fn_obj in haystack:
        obj_name, found = fn_obj.nested_string("name")
        if found and obj_name == name:
            return fn_obj
    return None


def find_function_by_content(haystack: List[StructuredObject], needle: Function) -> Optional[StructuredObject]:
    """Return the first function whose fields equal the needle's, ignoring the name.

    Raises:
        DecodeError: If an entry of the list is not a valid function
    """
    for fn_obj in haystack:
        candidate = _decode_function(fn_obj)
        candidate.name = needle.name
        if candidate == needle:
            return fn_obj
    return None


def _decode_function(fn_obj: StructuredObject) -> Function:
    try:
        return fn_obj.as_typed(Function)
    except DecodeError as e:
        raise DecodeError(f"failed to parse KRM function from YAML: {e}", path=e.path) from e


def resolve_insert_position(length: int, insert_position: int) -> int:
    """Resolve a possibly negative insert position into a list index."""
    if insert_position < 0:
        resolved = length + insert_position + 1
        if resolved < 0:
            raise PipelineError(
                f"insert position {insert_position} is out of range for {length} function(s)"
            )
        return resolved
    return min(insert_position, length)


RecordFactory = Callable[[TypedRecord], StructuredObject]


def upsert_function(
    fn_objs: List[StructuredObject],
    new_fn: Function,
    insert_position: int,
    new_record: RecordFactory,
) -> Tuple[List[StructuredObject], bool]:
    """Add or update a single function in a list of function objects.

    Args:
        fn_objs: Current function objects of a pipeline section
        new_fn: Function to upsert
        insert_position: Index to insert at when no entry matches
        new_record: Builds the object stored for an inserted function

    Returns:
        The updated list and whether the function was newly inserted
    """
    if not new_fn.name:
        if find_function_by_content(fn_objs, new_fn) is not None:
            logger.debug(f"Function {new_fn.image!r} already present, skipping")
            return fn_objs, False
    else:
        fn_obj = find_function_by_name(fn_objs, new_fn.name)
        if fn_obj is not None:
            _decode_function(fn_obj)
            fn_obj.set_from_typed(new_fn)
            logger.debug(f"Updated function {new_fn.name!r}")
            return fn_objs, False

    index = resolve_insert_position(len(fn_objs), insert_position)
    fn_objs = list(fn_objs)
    fn_objs.insert(index, new_record(new_fn))
    logger.debug(f"Inserted function {new_fn.name or new_fn.image!r} at index {index}")
    return fn_objs, True


class PipelineMixin:
    """Pipeline function helpers, mixed into Kptfile."""

    obj: ResourceObject

    def pipeline_functions(self, section_name: str) -> List[StructuredObject]:
        _check_section(section_name)
        return self.obj.nested_slice("pipeline", section_name)

    def upsert_pipeline_functions(
        self, functions: Sequence[Function], section_name: str, insert_position: int
    ) -> None:
        """Add or update KRM functions in the given pipeline section.

        A named function replaces the entry with the same name in place. An
        unnamed function is skipped if an entry with the same content (under
        any name) exists. Everything else is inserted at insert_position. When
        several functions are inserted with a non-negative position, the
        position advances after each insert so they keep their relative order.

        Args:
            functions: Functions to upsert, in order
            section_name: "mutators" or "validators"
            insert_position: Index to insert new functions at, or a negative
                position counted back from the end (-1 appends)

        Raises:
            PipelineError: If the section name or insert position is invalid
            DecodeError: If an existing entry is not a valid function
        """
        if not functions:
            return
        _check_section(section_name)
        pipeline_obj = self.obj.upsert_map("pipeline")
        fn_objs = pipeline_obj.nested_slice(section_name)
        for new_fn in functions:
            fn_objs, inserted = upsert_function(
                fn_objs, new_fn, insert_position, pipeline_obj.new_record
            )
            if inserted and insert_position >= 0:
                insert_position += 1
        pipeline_obj.set_slice(fn_objs, section_name)

    def upsert_mutator_functions(self, functions: Sequence[Function], insert_position: int) -> None:
        self.upsert_pipeline_functions(functions, MUTATORS, insert_position)

    def upsert_validator_functions(
        self, functions: Sequence[Function], insert_position: int
    ) -> None:
        self.upsert_pipeline_functions(functions, VALIDATORS, insert_position)


def _check_section(section_name: str) -> None:
    if section_name not in PIPELINE_SECTIONS:
        raise PipelineError(
            f"unknown pipeline section {section_name!r}, expected one of {PIPELINE_SECTIONS}",
            path=f"pipeline.{section_name}",
        )
