"""Typed records for the kpt.dev/v1 Kptfile API.

These dataclasses mirror the parts of the Kptfile schema that kptedit edits.
They convert to and from plain mappings with omit-empty semantics, so a
record round-trips into YAML without materializing empty fields.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from kptedit.core.errors import DecodeError

KPTFILE_NAME = "Kptfile"
KPTFILE_API_VERSION = "kpt.dev/v1"
KPTFILE_KIND = "Kptfile"

# Annotations that record where a resource was read from
PATH_ANNOTATIONS = ("internal.config.kubernetes.io/path", "config.kubernetes.io/path")


class ConditionStatus(str, Enum):
    """Status of a Kptfile condition."""

    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


BOOL_TO_CONDITION_STATUS = {
    True: ConditionStatus.TRUE,
    False: ConditionStatus.FALSE,
}


def _status_text(status: Any) -> str:
    if isinstance(status, ConditionStatus):
        return status.value
    return status


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise DecodeError(f"{what} must be a mapping, got {type(data).__name__}")
    return data


def _string_field(data: Mapping[str, Any], key: str, what: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if isinstance(value, (Mapping, list)):
        raise DecodeError(f"{what}.{key} must be a string", path=key)
    return str(value)


def _string_map_field(data: Mapping[str, Any], key: str, what: str) -> Dict[str, str]:
    value = _require_mapping(data.get(key), f"{what}.{key}")
    result = {}
    for k, v in value.items():
        if isinstance(v, (Mapping, list)):
            raise DecodeError(f"{what}.{key}.{k} must be a string", path=f"{key}.{k}")
        result[str(k)] = "" if v is None else str(v)
    return result


def _mapping_list_field(data: Mapping[str, Any], key: str, what: str) -> List[Dict[str, Any]]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise DecodeError(f"{what}.{key} must be a list", path=key)
    items = []
    for index, item in enumerate(value):
        items.append(dict(_require_mapping(item, f"{what}.{key}[{index}]")))
    return items


def _reject_unknown(data: Mapping[str, Any], known: Sequence[str], what: str = "") -> None:
    unknown = sorted(str(key) for key in data if key not in known)
    if not unknown:
        return
    prefix = f"{what}." if what else ""
    raise DecodeError(
        f"unknown field(s) {', '.join(prefix + key for key in unknown)}",
        path=prefix + unknown[0],
    )


@dataclass
class Condition:
    """A status condition of a kpt package.

    A zero-value Condition (empty ``type``) is what ``get_typed_condition``
    returns when no condition of the requested type exists.

    Attributes:
        type: Condition type, the logical key within status.conditions
        status: "True", "False" or "Unknown"
        reason: Machine-readable reason (optional)
        message: Human-readable message (optional)
    """

    type: str = ""
    status: str = ""
    reason: str = ""
    message: str = ""

    _KNOWN_KEYS = ("type", "status", "reason", "message")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], strict: bool = False) -> "Condition":
        data = _require_mapping(data, "condition")
        if strict:
            _reject_unknown(data, cls._KNOWN_KEYS, "condition")
        return cls(
            type=_string_field(data, "type", "condition"),
            status=_string_field(data, "status", "condition"),
            reason=_string_field(data, "reason", "condition"),
            message=_string_field(data, "message", "condition"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "type": self.type,
            "status": _status_text(self.status),
        }
        if self.reason:
            result["reason"] = self.reason
        if self.message:
            result["message"] = self.message
        return result


@dataclass
class ReadinessGate:
    """Reference to a condition type that must be True for the package to be ready."""

    condition_type: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], strict: bool = False) -> "ReadinessGate":
        data = _require_mapping(data, "readiness gate")
        if strict:
            _reject_unknown(data, ("conditionType",), "readinessGate")
        return cls(condition_type=_string_field(data, "conditionType", "readinessGate"))

    def to_dict(self) -> Dict[str, Any]:
        return {"conditionType": self.condition_type}


@dataclass
class Function:
    """A KRM function entry of a Kptfile pipeline (mutator or validator).

    Fields outside the known schema are kept in ``extra`` and written back
    unchanged, so records survive a decode/encode cycle. A strict decode
    rejects them instead.

    Attributes:
        image: Container image of the function
        name: Optional name, the logical key used by pipeline upserts
        exec: Path to an executable function (alternative to image)
        config_path: Relative path of the function config file
        config_map: Inline key/value function config
        selectors: Resource selectors the function applies to
        exclude: Resource selectors the function skips
        extra: Any other fields, carried opaquely
    """

    image: str = ""
    name: str = ""
    exec: str = ""
    config_path: str = ""
    config_map: Dict[str, str] = field(default_factory=dict)
    selectors: List[Dict[str, Any]] = field(default_factory=list)
    exclude: List[Dict[str, Any]] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN_KEYS = ("image", "exec", "name", "configPath", "configMap", "selectors", "exclude")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], strict: bool = False) -> "Function":
        data = _require_mapping(data, "function")
        if strict:
            _reject_unknown(data, cls._KNOWN_KEYS, "function")
        return cls(
            image=_string_field(data, "image", "function"),
            name=_string_field(data, "name", "function"),
            exec=_string_field(data, "exec", "function"),
            config_path=_string_field(data, "configPath", "function"),
            config_map=_string_map_field(data, "configMap", "function"),
            selectors=_mapping_list_field(data, "selectors", "function"),
            exclude=_mapping_list_field(data, "exclude", "function"),
            extra={k: v for k, v in data.items() if k not in cls._KNOWN_KEYS},
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.image:
            result["image"] = self.image
        if self.exec:
            result["exec"] = self.exec
        if self.name:
            result["name"] = self.name
        if self.config_path:
            result["configPath"] = self.config_path
        if self.config_map:
            result["configMap"] = dict(self.config_map)
        if self.selectors:
            result["selectors"] = [dict(s) for s in self.selectors]
        if self.exclude:
            result["exclude"] = [dict(s) for s in self.exclude]
        for key, value in self.extra.items():
            result.setdefault(key, value)
        return result


@dataclass
class Pipeline:
    mutators: List[Function] = field(default_factory=list)
    validators: List[Function] = field(default_factory=list)


@dataclass
class KptfileDocument:
    """Strict typed view of a whole Kptfile, as produced by decode_kptfile()."""

    api_version: str = ""
    kind: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    upstream: Optional[Dict[str, Any]] = None
    upstream_lock: Optional[Dict[str, Any]] = None
    info: Dict[str, Any] = field(default_factory=dict)
    readiness_gates: List[ReadinessGate] = field(default_factory=list)
    pipeline: Pipeline = field(default_factory=Pipeline)
    inventory: Optional[Dict[str, Any]] = None
    conditions: List[Condition] = field(default_factory=list)

    TOP_LEVEL_KEYS = (
        "apiVersion",
        "kind",
        "metadata",
        "upstream",
        "upstreamLock",
        "info",
        "pipeline",
        "inventory",
        "status",
    )

    INFO_KEYS = (
        "description",
        "keywords",
        "site",
        "emails",
        "license",
        "licenseFile",
        "man",
        "readinessGates",
    )
    PIPELINE_KEYS = ("mutators", "validators")
    STATUS_KEYS = ("conditions",)

    @property
    def name(self) -> str:
        return str(self.metadata.get("name", "") or "")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KptfileDocument":
        """Decode a whole Kptfile, rejecting unknown fields at every level.

        Free-form sections (metadata, upstream, upstreamLock, inventory) are
        kept as plain dicts. Everything else must match the schema.
        """
        data = _require_mapping(data, "Kptfile")
        _reject_unknown(data, cls.TOP_LEVEL_KEYS)

        info = dict(_require_mapping(data.get("info"), "info"))
        _reject_unknown(info, cls.INFO_KEYS, "info")
        pipeline = _require_mapping(data.get("pipeline"), "pipeline")
        _reject_unknown(pipeline, cls.PIPELINE_KEYS, "pipeline")
        status = _require_mapping(data.get("status"), "status")
        _reject_unknown(status, cls.STATUS_KEYS, "status")
        upstream = data.get("upstream")
        upstream_lock = data.get("upstreamLock")
        inventory = data.get("inventory")

        return cls(
            api_version=_string_field(data, "apiVersion", "Kptfile"),
            kind=_string_field(data, "kind", "Kptfile"),
            metadata=dict(_require_mapping(data.get("metadata"), "metadata")),
            upstream=None if upstream is None else dict(_require_mapping(upstream, "upstream")),
            upstream_lock=(
                None if upstream_lock is None
                else dict(_require_mapping(upstream_lock, "upstreamLock"))
            ),
            info=info,
            readiness_gates=[
                ReadinessGate.from_dict(g, strict=True)
                for g in _mapping_list_field(info, "readinessGates", "info")
            ],
            pipeline=Pipeline(
                mutators=[
                    Function.from_dict(f, strict=True)
                    for f in _mapping_list_field(pipeline, "mutators", "pipeline")
                ],
                validators=[
                    Function.from_dict(f, strict=True)
                    for f in _mapping_list_field(pipeline, "validators", "pipeline")
                ],
            ),
            inventory=None if inventory is None else dict(_require_mapping(inventory, "inventory")),
            conditions=[
                Condition.from_dict(c, strict=True)
                for c in _mapping_list_field(status, "conditions", "status")
            ],
        )

