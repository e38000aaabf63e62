"""Query options shared by every queryable audit storage."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chronicle.audit.models.record import EntityId, ensure_utc

OrderBy = Literal["timestamp", "type"]
OrderDirection = Literal["asc", "desc"]


class AuditQuery(BaseModel):
    """Filters, ordering and pagination for audit queries.

    Filters are combined with AND. A list `type` matches any of its members;
    the other filters are exact matches. `from`/`to` bounds are inclusive.
    `count()` ignores `limit` and `offset`.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: str | list[str] | None = Field(default=None, description="Type or set of types")
    entity_id: EntityId | None = Field(default=None, description="Entity key")
    table: str | None = Field(default=None, description="Originating table")
    actor_id: str | None = Field(default=None, description="Actor id")
    from_: datetime | None = Field(default=None, alias="from", description="Lower bound")
    to: datetime | None = Field(default=None, description="Upper bound")
    limit: int | None = Field(default=None, ge=0, description="Page size")
    offset: int | None = Field(default=None, ge=0, description="Rows to skip")
    order_by: OrderBy = Field(default="timestamp", description="Sort column")
    order_direction: OrderDirection = Field(default="desc", description="Sort direction")

    @field_validator("from_", "to")
    @classmethod
    def _bounds_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value) if value is not None else None

    def without_pagination(self) -> "AuditQuery":
        """Copy of this query with limit and offset cleared."""
        return self.model_copy(update={"limit": None, "offset": None})
