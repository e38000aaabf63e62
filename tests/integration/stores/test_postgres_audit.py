"""Integration tests for PostgresAuditStorage against a real database."""

from datetime import UTC, datetime, timedelta

import asyncpg
import pytest
import pytest_asyncio

from chronicle.audit.auditor import DefaultAuditor
from chronicle.audit.models import AuditActor, AuditOperation, AuditQuery, AuditRecord
from chronicle.audit.stores.postgres import PostgresAuditStorage
from chronicle.audit.transaction import with_auditable_transaction

pytestmark = pytest.mark.integration

BASE = datetime(2024, 1, 1, tzinfo=UTC)


@pytest_asyncio.fixture
async def storage(postgres_pool, audit_table):
    storage = PostgresAuditStorage(postgres_pool, table_name=audit_table)
    await storage.create_table()

    yield storage

    async with postgres_pool.acquire() as conn:
        await conn.execute(f'DROP TABLE IF EXISTS "{audit_table}"')


@pytest_asyncio.fixture
async def users_table(postgres_pool, audit_table):
    name = f"users_{audit_table}"
    async with postgres_pool.acquire() as conn:
        await conn.execute(f'CREATE TABLE "{name}" (id SERIAL PRIMARY KEY, email TEXT UNIQUE)')

    yield name

    async with postgres_pool.acquire() as conn:
        await conn.execute(f'DROP TABLE IF EXISTS "{name}"')


class TestPostgresAuditStorage:
    """Tests for writes, reads and schema helpers."""

    @pytest.mark.asyncio
    async def test_create_table_is_idempotent(self, storage):
        await storage.create_table()

        assert await storage.count() == 0

    @pytest.mark.asyncio
    async def test_round_trip(self, storage):
        record = AuditRecord(
            id="rt-1",
            type="order.updated",
            operation=AuditOperation.UPDATE,
            table="orders",
            entity_id={"order": "o1", "line": 2},
            old_values={"qty": 1},
            new_values={"qty": 2},
            payload={"reason": "customer request"},
            timestamp=BASE,
            actor=AuditActor(id="admin-1", type="user", tenant="acme"),
            metadata={"request_id": "req-1"},
        )

        await storage.write([record])

        assert await storage.query() == [record]

    @pytest.mark.asyncio
    async def test_query_pushdown(self, storage):
        admin = AuditActor(id="admin-1", type="user")
        await storage.write([
            AuditRecord(id=f"q-{i}", type=t, timestamp=BASE + timedelta(minutes=i), actor=admin)
            for i, t in enumerate(["user.created", "user.updated", "user.created"])
        ])

        results = await storage.query(AuditQuery(type="user.created", actor_id="admin-1"))

        assert [r.id for r in results] == ["q-2", "q-0"]
        assert await storage.count(AuditQuery(type=["user.created", "user.updated"], limit=1)) == 3

    @pytest.mark.asyncio
    async def test_auto_id(self, postgres_pool, storage, audit_table):
        auto = PostgresAuditStorage(postgres_pool, table_name=audit_table, auto_id=True)

        await auto.write([AuditRecord(id="ignored", type="user.created", timestamp=BASE)])

        [record] = await auto.query()
        assert record.id != "ignored"
        assert len(record.id) == 36


class TestAuditableTransaction:
    """Audits commit and roll back with the business write."""

    @pytest.mark.asyncio
    async def test_commit_persists_both(self, postgres_pool, storage, users_table):
        auditor = DefaultAuditor(actor={"id": "user-123", "type": "user"}, storage=storage)

        async def create_user(conn: asyncpg.Connection) -> int:
            user_id = await conn.fetchval(
                f'INSERT INTO "{users_table}" (email) VALUES ($1) RETURNING id', "a@b.com"
            )
            auditor.audit("user.created", {"user_id": user_id})
            return user_id

        user_id = await with_auditable_transaction(postgres_pool, auditor, create_user)

        [record] = await storage.query()
        assert record.payload == {"user_id": user_id}

    @pytest.mark.asyncio
    async def test_failed_audit_rolls_back_user(self, postgres_pool, storage, users_table):
        existing = AuditRecord(id="dup", type="seed", timestamp=BASE)
        await storage.write([existing])
        auditor = DefaultAuditor(
            actor={"id": "user-123"}, storage=storage, generate_id=lambda: "dup"
        )

        async def create_user(conn: asyncpg.Connection) -> None:
            await conn.execute(f'INSERT INTO "{users_table}" (email) VALUES ($1)', "a@b.com")
            auditor.audit("user.created", {"email": "a@b.com"})

        with pytest.raises(asyncpg.UniqueViolationError):
            await with_auditable_transaction(postgres_pool, auditor, create_user)

        async with postgres_pool.acquire() as conn:
            assert await conn.fetchval(f'SELECT COUNT(*) FROM "{users_table}"') == 0
        assert await storage.count() == 1

    @pytest.mark.asyncio
    async def test_callback_failure_rolls_back_user_and_audits(
        self, postgres_pool, storage, users_table
    ):
        auditor = DefaultAuditor(actor={"id": "user-123"}, storage=storage)

        async def create_user(conn: asyncpg.Connection) -> None:
            user_id = await conn.fetchval(
                f'INSERT INTO "{users_table}" (email) VALUES ($1) RETURNING id', "a@b.com"
            )
            auditor.audit("user.created", {"user_id": user_id})
            raise ValueError("handler failed")

        with pytest.raises(ValueError, match="handler failed"):
            await with_auditable_transaction(postgres_pool, auditor, create_user)

        async with postgres_pool.acquire() as conn:
            assert await conn.fetchval(f'SELECT COUNT(*) FROM "{users_table}"') == 0
        assert await storage.count() == 0

    @pytest.mark.asyncio
    async def test_joins_outer_transaction(self, postgres_pool, storage):
        auditor = DefaultAuditor(actor={"id": "user-123"}, storage=storage)

        async def work(conn: asyncpg.Connection) -> None:
            auditor.audit("user.created", {})

        async with postgres_pool.acquire() as conn:
            outer = conn.transaction()
            await outer.start()
            await storage.with_transaction(auditor, work, conn)
            await outer.rollback()

        assert await storage.count() == 0
