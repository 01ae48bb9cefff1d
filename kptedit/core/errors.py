"""Exceptions raised while reading and editing Kptfiles."""

from typing import Optional


class KptfileError(Exception):
    """Base class for all kptedit errors.

    Attributes:
        message: Description of the failure
        path: Field path or file name the error relates to (optional)
    """

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class KptfileNotFoundError(KptfileError):
    """Raised when the Kptfile is missing from a package or object list."""


class DecodeError(KptfileError):
    """Raised when YAML text or a record does not match the expected shape.

    This covers:
    - YAML text that fails to parse
    - A section that is not a mapping/sequence where one is required
    - A generic record that cannot be coerced into a typed record
      (Condition, ReadinessGate, Function)
    """


class EmptyKptfileError(KptfileError):
    """Raised when writing or serializing a Kptfile handle with no object."""


class PipelineError(KptfileError, ValueError):
    """Raised for an invalid pipeline section name or insert position."""
