"""Database connection management and store errors."""

from chronicle.db.errors import ConnectionError, NotConnectedError, StoreError
from chronicle.db.pool import PostgresPool

__all__ = [
    "ConnectionError",
    "NotConnectedError",
    "PostgresPool",
    "StoreError",
]
