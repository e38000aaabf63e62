"""Transactional audit flushing for asyncpg.

`with_auditable_transaction` makes audit rows share a commit/rollback
boundary with the domain writes performed in the same callback:

    async def create_user(conn):
        user_id = await conn.fetchval("INSERT INTO users ... RETURNING id", ...)
        auditor.audit("user.created", {"user_id": user_id})
        return user_id

    user_id = await with_auditable_transaction(pool, auditor, create_user)

Audits recorded in the callback are flushed on the transaction's connection
before commit. If the callback or the flush raises, everything rolls back.
"""

from collections.abc import Awaitable, Callable
from typing import Any, Literal, Protocol, TypeVar

import asyncpg

from chronicle.db.pool import PostgresPool
from chronicle.observability.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

IsolationLevel = Literal[
    "read_uncommitted",
    "read_committed",
    "repeatable_read",
    "serializable",
]


class TransactionAwareAuditor(Protocol):
    """The part of an Auditor the transaction wrapper needs."""

    def set_transaction(self, trx: Any) -> None: ...

    async def flush(self, trx: Any | None = None) -> None: ...


DatabaseConnection = PostgresPool | asyncpg.Pool | asyncpg.Connection


async def with_auditable_transaction(
    db: DatabaseConnection,
    auditor: TransactionAwareAuditor,
    callback: Callable[[asyncpg.Connection], Awaitable[T]],
    *,
    isolation: IsolationLevel | None = None,
) -> T:
    """Run `callback` in a transaction and flush audits before commit.

    Args:
        db: A pool (a connection is acquired for the transaction) or a
            connection. A connection already inside a transaction is reused
            and no nested transaction is opened.
        auditor: Auditor that receives the transaction connection
        callback: Unit of work; receives the transaction connection
        isolation: Isolation level for a newly opened transaction

    Returns:
        The callback's result
    """
    if isinstance(db, PostgresPool | asyncpg.Pool):
        async with db.acquire() as conn:
            return await _run_in_transaction(conn, auditor, callback, isolation)
    return await _run_in_transaction(db, auditor, callback, isolation)


async def _run_in_transaction(
    conn: asyncpg.Connection,
    auditor: TransactionAwareAuditor,
    callback: Callable[[asyncpg.Connection], Awaitable[T]],
    isolation: IsolationLevel | None,
) -> T:
    if conn.is_in_transaction():
        logger.debug("audit_transaction_reused")
        return await _execute(conn, auditor, callback)

    async with conn.transaction(isolation=isolation):
        logger.debug("audit_transaction_started", isolation=isolation)
        return await _execute(conn, auditor, callback)


async def _execute(
    conn: asyncpg.Connection,
    auditor: TransactionAwareAuditor,
    callback: Callable[[asyncpg.Connection], Awaitable[T]],
) -> T:
    auditor.set_transaction(conn)
    result = await callback(conn)
    # Must run before the transaction commits; a failure here rolls it back
    await auditor.flush(conn)
    return result
