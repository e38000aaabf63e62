"""Audit trail error hierarchy.

Driver-level write failures are deliberately absent: they propagate from
storage backends exactly as the driver raised them.
"""


class AuditError(Exception):
    """Base exception for audit trail errors."""


class AuditSerializationError(AuditError):
    """Raised when a stored record cannot be decoded.

    Examples:
        - Malformed JSON in a JSON column
        - A cached record that no longer validates as an AuditRecord
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class CapabilityNotSupportedError(AuditError):
    """Raised when an optional storage capability is requested from a backend
    that does not implement it (e.g. querying a write-only sink)."""

    def __init__(self, storage: object, capability: str) -> None:
        super().__init__(
            f"{type(storage).__name__} does not support '{capability}'"
        )
        self.capability = capability


class UnknownAuditTypeError(AuditError, KeyError):
    """Raised when an audit type is not declared in the action registry."""

    def __init__(self, audit_type: str) -> None:
        super().__init__(f"Unknown audit type: {audit_type!r}")
        self.audit_type = audit_type

    def __str__(self) -> str:
        return f"Unknown audit type: {self.audit_type!r}"


class InvalidTableNameError(AuditError, ValueError):
    """Raised when a relational table name is not a plain SQL identifier."""
