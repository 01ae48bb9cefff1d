"""
Capability interfaces for structured documents and typed records.

The Kptfile editing helpers depend only on these protocols, not on a
particular document implementation.
"""

from kptedit.core.schema.document import ResourceObject, StructuredObject, TypedRecord

__all__ = [
    "ResourceObject",
    "StructuredObject",
    "TypedRecord",
]
