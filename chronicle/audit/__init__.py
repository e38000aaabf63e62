"""Audit trail: actor-attributed records of application actions.

An Auditor collects records during a unit of work and flushes them to an
AuditStorage backend. The relational backend can share the caller's
database transaction so that audits commit or roll back with the change.
"""

from chronicle.audit.auditor import Auditor, DefaultAuditor
from chronicle.audit.declarative import MappedAudit, apply_mapped_audits
from chronicle.audit.errors import (
    AuditError,
    AuditSerializationError,
    CapabilityNotSupportedError,
    InvalidTableNameError,
    UnknownAuditTypeError,
)
from chronicle.audit.factory import create_audit_storage
from chronicle.audit.models import (
    AuditableAction,
    AuditActionRegistry,
    AuditActor,
    AuditOperation,
    AuditOptions,
    AuditQuery,
    AuditRecord,
)
from chronicle.audit.store import (
    AuditStorage,
    QueryableAuditStorage,
    TransactionalAuditStorage,
    require_query,
    supports_query,
    supports_transactions,
)
from chronicle.audit.stores import (
    CacheAuditStorage,
    InMemoryAuditStorage,
    PostgresAuditStorage,
)
from chronicle.audit.transaction import with_auditable_transaction

__all__ = [
    "AuditActionRegistry",
    "AuditActor",
    "AuditError",
    "AuditOperation",
    "AuditOptions",
    "AuditQuery",
    "AuditRecord",
    "AuditSerializationError",
    "AuditStorage",
    "AuditableAction",
    "Auditor",
    "CacheAuditStorage",
    "CapabilityNotSupportedError",
    "DefaultAuditor",
    "InMemoryAuditStorage",
    "InvalidTableNameError",
    "MappedAudit",
    "PostgresAuditStorage",
    "QueryableAuditStorage",
    "TransactionalAuditStorage",
    "UnknownAuditTypeError",
    "apply_mapped_audits",
    "create_audit_storage",
    "require_query",
    "supports_query",
    "supports_transactions",
    "with_auditable_transaction",
]
