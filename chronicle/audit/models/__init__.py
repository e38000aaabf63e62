"""Audit domain models."""

from chronicle.audit.models.action import AuditableAction, AuditActionRegistry
from chronicle.audit.models.query import AuditQuery, OrderBy, OrderDirection
from chronicle.audit.models.record import (
    AuditActor,
    AuditOperation,
    AuditOptions,
    AuditRecord,
    EntityId,
    canonical_entity_id,
    parse_entity_id,
    parse_json_value,
    utc_now,
)

__all__ = [
    "AuditActionRegistry",
    "AuditActor",
    "AuditOperation",
    "AuditOptions",
    "AuditQuery",
    "AuditRecord",
    "AuditableAction",
    "EntityId",
    "OrderBy",
    "OrderDirection",
    "canonical_entity_id",
    "parse_entity_id",
    "parse_json_value",
    "utc_now",
]
