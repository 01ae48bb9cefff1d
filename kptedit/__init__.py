"""
kptedit: Kptfile field editing helpers

A convenience layer for reading and mutating the fields of a kpt package
manifest (Kptfile): status conditions, readiness gates, pipeline functions,
labels and annotations. Edits go through ruamel.yaml round-trip nodes so
comments and key order survive.
"""

__version__ = "1.0.0"

from kptedit.kpt.api import (
    BOOL_TO_CONDITION_STATUS,
    KPTFILE_NAME,
    Condition,
    ConditionStatus,
    Function,
    ReadinessGate,
)
from kptedit.kpt.kptfile import Kptfile, decode_kptfile
from kptedit.kpt.package import KptPackage

__all__ = [
    "__version__",
    "BOOL_TO_CONDITION_STATUS",
    "KPTFILE_NAME",
    "Condition",
    "ConditionStatus",
    "Function",
    "ReadinessGate",
    "Kptfile",
    "KptPackage",
    "decode_kptfile",
]
