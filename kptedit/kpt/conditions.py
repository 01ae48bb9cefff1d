"""Status condition and readiness gate management for Kptfiles.

Conditions live in ``status.conditions`` and are keyed by their ``type``.
Readiness gates live in ``info.readinessGates`` and are keyed by their
``conditionType``. Type keys should be unique, but read paths tolerate
duplicates and return the first match, and deletes remove every match.
"""

import logging
from typing import Callable, List, Optional

from kptedit.core.errors import DecodeError
from kptedit.core.schema.document import ResourceObject, StructuredObject
from kptedit.kpt.api import Condition, ConditionStatus, ReadinessGate

logger = logging.getLogger(__name__)

ObjectMatcher = Callable[[StructuredObject], bool]


def is_type(expected_type: str) -> ObjectMatcher:
    """Return a predicate that is true if the object's "type" equals expected_type."""

    def matcher(obj: StructuredObject) -> bool:
        return obj.get_string("type") == expected_type

    return matcher


def is_type_and_status(expected_type: str, expected_status: str) -> ObjectMatcher:
    """Return a predicate matching both the "type" and "status" fields of a condition."""
    expected_status_text = (
        expected_status.value if isinstance(expected_status, ConditionStatus) else expected_status
    )

    def matcher(obj: StructuredObject) -> bool:
        return (
            obj.get_string("type") == expected_type
            and obj.get_string("status") == expected_status_text
        )

    return matcher


def is_condition_type(expected_type: str) -> ObjectMatcher:
    """Return a predicate that is true if the object's "conditionType" equals expected_type."""

    def matcher(obj: StructuredObject) -> bool:
        return obj.get_string("conditionType") == expected_type

    return matcher


def _index(objs: List[StructuredObject], matcher: ObjectMatcher) -> int:
    for i, obj in enumerate(objs):
        if matcher(obj):
            return i
    return -1


class ConditionsMixin:
    """Condition and readiness gate helpers, mixed into Kptfile."""

    obj: ResourceObject

    def status(self) -> StructuredObject:
        """Return the status section, adding it if it doesn't exist."""
        return self.obj.upsert_map("status")

    def conditions(self) -> List[StructuredObject]:
        return self.obj.nested_slice("status", "conditions")

    def set_conditions(self, conditions: List[StructuredObject]) -> None:
        self.status().set_slice(conditions, "conditions")

    def get_condition(self, condition_type: str) -> Optional[StructuredObject]:
        """Return the first condition of the given type, or None."""
        conditions = self.conditions()
        i = _index(conditions, is_type(condition_type))
        if i < 0:
            return None
        return conditions[i]

    def is_status_condition_present_and_equal(
        self, condition_type: str, status: str
    ) -> bool:
        """Return True when condition_type is present and its status equals status."""
        cond = self.get_condition(condition_type)
        if cond is None:
            return False
        return is_type_and_status(condition_type, status)(cond)

    def is_status_condition_true(self, condition_type: str) -> bool:
        return self.is_status_condition_present_and_equal(condition_type, ConditionStatus.TRUE)

    def is_status_condition_false(self, condition_type: str) -> bool:
        return self.is_status_condition_present_and_equal(condition_type, ConditionStatus.FALSE)

    def get_typed_condition(self, condition_type: str) -> Condition:
        """Return the condition of the given type as a typed Condition.

        A missing condition yields a zero-value ``Condition()`` rather than an
        error. Callers tell "absent" apart by checking for an empty ``type``;
        note that this is indistinguishable from a stored condition whose type
        is itself empty.

        Raises:
            DecodeError: If the stored record doesn't have the Condition shape
        """
        cond = self.get_condition(condition_type)
        if cond is None:
            return Condition()
        return cond.as_typed(Condition)

    def set_typed_condition(self, condition: Condition) -> None:
        """Create or update a condition, using its type as the key.

        On update, status is always written, while reason and message are only
        written when they differ from the stored value. This keeps an absent
        reason/message field absent when the new value is empty.
        """
        conditions = self.conditions()
        i = _index(conditions, is_type(condition.type))
        if i >= 0:
            existing = conditions[i]
            new_fields = condition.to_dict()
            existing.set_nested_string(new_fields["status"], "status")
            if condition.reason != existing.get_string("reason"):
                existing.set_nested_string(condition.reason, "reason")
            if condition.message != existing.get_string("message"):
                existing.set_nested_string(condition.message, "message")
            logger.debug(f"Updated condition {condition.type!r}")
        else:
            conditions.append(self._new_record(condition, "set condition", condition.type))
            logger.debug(f"Added condition {condition.type!r}")
        self.set_conditions(conditions)

    def apply_default_condition(self, condition: Condition) -> None:
        """Add the condition only if no condition with the same type exists yet."""
        conditions = self.conditions()
        if _index(conditions, is_type(condition.type)) >= 0:
            logger.debug(f"Condition {condition.type!r} already present, keeping it")
            return
        conditions.append(self._new_record(condition, "apply default condition", condition.type))
        logger.debug(f"Added default condition {condition.type!r}")
        self.set_conditions(conditions)

    def delete_condition_by_type(self, condition_type: str) -> None:
        """Delete all conditions with the given type."""
        if self.obj.nested_map("status") is None:
            return
        conditions = self.conditions()
        if not conditions:
            return
        matcher = is_type(condition_type)
        kept = [c for c in conditions if not matcher(c)]
        if len(kept) != len(conditions):
            logger.debug(
                f"Deleted {len(conditions) - len(kept)} condition(s) of type {condition_type!r}"
            )
        self.set_conditions(kept)

    def readiness_gates(self) -> List[StructuredObject]:
        return self.obj.nested_slice("info", "readinessGates")

    def set_readiness_gates(self, gates: List[StructuredObject]) -> None:
        self.obj.upsert_map("info").set_slice(gates, "readinessGates")

    def ensure_readiness_gates(self, gates: List[ReadinessGate]) -> None:
        """Add each gate whose conditionType is not in info.readinessGates yet.

        Existing gates are never modified. An empty input leaves the Kptfile
        untouched (no empty ``info`` section is created).
        """
        if not gates:
            return
        gate_objs = self.readiness_gates()
        for gate in gates:
            if _index(gate_objs, is_condition_type(gate.condition_type)) < 0:
                gate_objs.append(
                    self._new_record(gate, "add readiness gate", gate.condition_type)
                )
                logger.debug(f"Added readiness gate {gate.condition_type!r}")
        self.set_readiness_gates(gate_objs)

    def _new_record(self, record, action: str, key: str) -> StructuredObject:
        try:
            return self.obj.new_record(record)
        except (AttributeError, TypeError) as e:
            raise DecodeError(f"failed to {action} {key!r}: {e}") from e
