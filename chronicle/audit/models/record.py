"""AuditRecord model and its serialization helpers."""

import json
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chronicle.audit.errors import AuditSerializationError

EntityId = str | dict[str, Any]


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with stored timestamps."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class AuditOperation(str, Enum):
    """Kind of change an audit record describes.

    - INSERT / UPDATE / DELETE: row-level changes to a table
    - CUSTOM: application-defined action (the default)
    """

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    CUSTOM = "CUSTOM"


class AuditActor(BaseModel):
    """Who or what performed an audited action.

    `id` and `type` are indexed by storage backends. Any other keyword is
    kept as opaque extra data and survives storage round-trips.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str | None = Field(default=None, description="User, service or system id")
    type: str | None = Field(default=None, description="Actor kind (user, system, ...)")

    @property
    def extra_data(self) -> dict[str, Any]:
        """Actor fields other than id and type."""
        return dict(self.model_extra or {})


class AuditOptions(BaseModel):
    """Optional fields for `Auditor.audit()` calls."""

    model_config = ConfigDict(frozen=True)

    operation: AuditOperation = AuditOperation.CUSTOM
    table: str | None = None
    entity_id: EntityId | None = None
    old_values: dict[str, Any] | None = None
    new_values: dict[str, Any] | None = None


class AuditRecord(BaseModel):
    """A single tracked action.

    Records are immutable once created; the Auditor assigns `id`,
    `timestamp` and `actor`.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique identifier")
    type: str = Field(..., description="Dot-namespaced audit type, e.g. user.created")
    operation: AuditOperation = Field(
        default=AuditOperation.CUSTOM, description="Kind of change"
    )
    table: str | None = Field(default=None, description="Originating table")
    entity_id: EntityId | None = Field(
        default=None, description="Affected entity key, scalar or composite"
    )
    old_values: dict[str, Any] | None = Field(
        default=None, description="State before UPDATE/DELETE"
    )
    new_values: dict[str, Any] | None = Field(
        default=None, description="State after INSERT/UPDATE"
    )
    payload: Any = Field(default=None, description="Type-specific data")
    timestamp: datetime = Field(default_factory=utc_now, description="Creation time")
    actor: AuditActor | None = Field(default=None, description="Who acted")
    metadata: dict[str, Any] | None = Field(
        default=None, description="Request context"
    )

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


def canonical_entity_id(entity_id: EntityId | None) -> str | None:
    """Return the string form used to store and compare entity ids.

    Plain strings are kept as-is so simple keys stay indexable. Composite
    keys become compact JSON with sorted keys, which makes two mappings
    with the same items compare equal regardless of insertion order.
    """
    if entity_id is None:
        return None
    if isinstance(entity_id, str):
        return entity_id
    return json.dumps(entity_id, sort_keys=True, separators=(",", ":"), default=str)


def parse_entity_id(value: str) -> EntityId:
    """Inverse of canonical_entity_id: JSON objects come back as dicts."""
    try:
        parsed = json.loads(value)
    except ValueError:
        return value
    if isinstance(parsed, dict):
        return parsed
    return value


def parse_json_value(value: Any, column: str = "value") -> Any:
    """Decode a JSON column that the driver may or may not have decoded.

    Raises:
        AuditSerializationError: If a string value is not valid JSON
    """
    if value is None or not isinstance(value, str | bytes):
        return value
    try:
        return json.loads(value)
    except ValueError as e:
        raise AuditSerializationError(
            f"Malformed JSON in audit column '{column}': {e}", cause=e
        ) from e


def dump_json(value: Any) -> str | None:
    """Encode a value for a JSON column (None stays NULL)."""
    if value is None:
        return None
    return json.dumps(value, default=str)
