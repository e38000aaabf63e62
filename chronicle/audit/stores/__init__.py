"""Audit storage backends."""

from chronicle.audit.store import AuditStorage
from chronicle.audit.stores.cache import CacheAuditStorage
from chronicle.audit.stores.inmemory import InMemoryAuditStorage
from chronicle.audit.stores.postgres import PostgresAuditStorage

__all__ = [
    "AuditStorage",
    "CacheAuditStorage",
    "InMemoryAuditStorage",
    "PostgresAuditStorage",
]
