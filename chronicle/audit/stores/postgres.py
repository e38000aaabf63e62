"""PostgreSQL implementation of AuditStorage.

Each record maps to one row of a fixed-column table. Filters, ordering and
pagination are translated into SQL so the database does the work.
"""

import re
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, TypeVar

import asyncpg

from chronicle.audit.auditor import Auditor, generate_audit_id
from chronicle.audit.errors import InvalidTableNameError
from chronicle.audit.models import (
    AuditActor,
    AuditOperation,
    AuditQuery,
    AuditRecord,
    canonical_entity_id,
    parse_entity_id,
    parse_json_value,
)
from chronicle.audit.models.record import dump_json
from chronicle.audit.store import QueryableAuditStorage, TransactionalAuditStorage
from chronicle.audit.transaction import IsolationLevel, with_auditable_transaction
from chronicle.db.pool import PostgresPool
from chronicle.observability.logging import get_logger
from chronicle.observability.metrics import RECORDS_WRITTEN

logger = get_logger(__name__)

T = TypeVar("T")

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

COLUMNS: tuple[str, ...] = (
    "id",
    "type",
    "operation",
    "table",
    "entity_id",
    "old_values",
    "new_values",
    "payload",
    "timestamp",
    "actor_id",
    "actor_type",
    "actor_data",
    "metadata",
)

JSON_COLUMNS: frozenset[str] = frozenset({
    "old_values",
    "new_values",
    "payload",
    "actor_data",
    "metadata",
})

ORDER_COLUMNS = {"timestamp": '"timestamp"', "type": '"type"'}


def quote_table_name(table_name: str) -> str:
    """Quote a table name, optionally schema-qualified.

    Raises:
        InvalidTableNameError: If any part is not a plain identifier
    """
    parts = table_name.split(".")
    if len(parts) > 2 or not all(_IDENTIFIER.match(part) for part in parts):
        raise InvalidTableNameError(f"Invalid audit table name: {table_name!r}")
    return ".".join(f'"{part}"' for part in parts)


class PostgresAuditStorage(QueryableAuditStorage, TransactionalAuditStorage):
    """PostgreSQL implementation of AuditStorage.

    Writes go through the caller's transaction connection when one is
    supplied, otherwise through a pooled connection. Records are inserted
    with one multi-row statement, preserving their order.
    """

    backend_name = "postgres"

    def __init__(
        self,
        pool: PostgresPool,
        *,
        table_name: str = "audit_logs",
        auto_id: bool = False,
        database_service_name: str | None = None,
        generate_id: Callable[[], str] | None = None,
    ) -> None:
        """Initialize with connection pool.

        Args:
            pool: PostgreSQL connection pool
            table_name: Audit table, optionally schema-qualified
            auto_id: Omit ids from inserts and let the database assign them
            database_service_name: Name of the database service whose
                transactions this storage can join
            generate_id: Id generator for records written with an empty id
        """
        self._pool = pool
        self._table_name = table_name
        self._table = quote_table_name(table_name)
        self._auto_id = auto_id
        self._generate_id = generate_id or generate_audit_id
        self.database_service_name = database_service_name

    @property
    def table_name(self) -> str:
        return self._table_name

    def get_database(self) -> PostgresPool:
        return self._pool

    # Row mapping
    def to_row(self, record: AuditRecord) -> dict[str, Any]:
        """Convert an AuditRecord into column values.

        JSON columns are encoded to text; string entity ids are stored as-is.
        With auto_id the id column is omitted entirely.
        """
        actor = record.actor
        row: dict[str, Any] = {
            "type": record.type,
            "operation": record.operation.value,
            "table": record.table,
            "entity_id": canonical_entity_id(record.entity_id),
            "old_values": dump_json(record.old_values),
            "new_values": dump_json(record.new_values),
            "payload": dump_json(record.payload),
            "timestamp": record.timestamp,
            "actor_id": actor.id if actor is not None else None,
            "actor_type": actor.type if actor is not None else None,
            "actor_data": dump_json(actor.extra_data) if actor is not None else None,
            "metadata": dump_json(record.metadata),
        }
        if not self._auto_id:
            row = {"id": record.id or self._generate_id(), **row}
        return row

    def from_row(self, row: Mapping[str, Any]) -> AuditRecord:
        """Convert a database row into an AuditRecord.

        JSON columns may arrive decoded or as text depending on the codecs
        registered on the connection.

        Raises:
            AuditSerializationError: If a JSON column holds malformed JSON
        """
        actor = None
        extra = parse_json_value(row["actor_data"], "actor_data")
        # to_row writes actor_data for every actor, even one with only extras
        if row["actor_id"] is not None or row["actor_type"] is not None or extra is not None:
            actor = AuditActor(id=row["actor_id"], type=row["actor_type"], **(extra or {}))

        entity_id = row["entity_id"]
        return AuditRecord(
            id=str(row["id"]),
            type=row["type"],
            operation=AuditOperation(row["operation"]),
            table=row["table"],
            entity_id=parse_entity_id(entity_id) if entity_id is not None else None,
            old_values=parse_json_value(row["old_values"], "old_values"),
            new_values=parse_json_value(row["new_values"], "new_values"),
            payload=parse_json_value(row["payload"], "payload"),
            timestamp=row["timestamp"],
            actor=actor,
            metadata=parse_json_value(row["metadata"], "metadata"),
        )

    # Writes
    def _build_insert(self, records: Sequence[AuditRecord]) -> tuple[str, list[Any]]:
        columns = [c for c in COLUMNS if not (self._auto_id and c == "id")]
        params: list[Any] = []
        values_sql: list[str] = []

        for record in records:
            row = self.to_row(record)
            placeholders = []
            for column in columns:
                params.append(row[column])
                cast = "::jsonb" if column in JSON_COLUMNS else ""
                placeholders.append(f"${len(params)}{cast}")
            values_sql.append(f"({', '.join(placeholders)})")

        column_sql = ", ".join(f'"{c}"' for c in columns)
        sql = f"INSERT INTO {self._table} ({column_sql}) VALUES {', '.join(values_sql)}"  # noqa: S608
        return sql, params

    async def write(
        self,
        records: Sequence[AuditRecord],
        trx: asyncpg.Connection | None = None,
    ) -> None:
        """Insert records in one statement.

        With `trx` the insert runs on that connection and joins whatever
        transaction it holds; no nested transaction is opened. Driver errors
        propagate unchanged.
        """
        if not records:
            return

        sql, params = self._build_insert(records)
        try:
            if trx is not None:
                await trx.execute(sql, *params)
            else:
                async with self._pool.acquire() as conn:
                    await conn.execute(sql, *params)
        except Exception as e:
            logger.error(
                "postgres_audit_write_error",
                table=self._table_name,
                record_count=len(records),
                error=str(e),
            )
            raise

        RECORDS_WRITTEN.labels(backend=self.backend_name).inc(len(records))
        logger.debug(
            "audit_records_written",
            table=self._table_name,
            record_count=len(records),
            in_transaction=trx is not None,
        )

    # Reads
    def _build_where(self, query: AuditQuery, params: list[Any]) -> str:
        conditions: list[str] = []

        if query.type is not None:
            if isinstance(query.type, list):
                params.append(list(query.type))
                conditions.append(f'"type" = ANY(${len(params)}::text[])')
            else:
                params.append(query.type)
                conditions.append(f'"type" = ${len(params)}')

        if query.entity_id is not None:
            params.append(canonical_entity_id(query.entity_id))
            conditions.append(f'"entity_id" = ${len(params)}')

        if query.table is not None:
            params.append(query.table)
            conditions.append(f'"table" = ${len(params)}')

        if query.actor_id is not None:
            params.append(query.actor_id)
            conditions.append(f'"actor_id" = ${len(params)}')

        if query.from_ is not None:
            params.append(query.from_)
            conditions.append(f'"timestamp" >= ${len(params)}')

        if query.to is not None:
            params.append(query.to)
            conditions.append(f'"timestamp" <= ${len(params)}')

        if not conditions:
            return ""
        return " WHERE " + " AND ".join(conditions)

    def build_select(self, query: AuditQuery) -> tuple[str, list[Any]]:
        """Build the SELECT statement and parameters for a query."""
        params: list[Any] = []
        column_sql = ", ".join(f'"{c}"' for c in COLUMNS)
        sql = f"SELECT {column_sql} FROM {self._table}"  # noqa: S608
        sql += self._build_where(query, params)
        sql += f" ORDER BY {ORDER_COLUMNS[query.order_by]} {query.order_direction.upper()}"

        if query.limit is not None:
            params.append(query.limit)
            sql += f" LIMIT ${len(params)}"
        if query.offset is not None:
            params.append(query.offset)
            sql += f" OFFSET ${len(params)}"
        return sql, params

    def build_count(self, query: AuditQuery) -> tuple[str, list[Any]]:
        """Build the COUNT statement and parameters for a query."""
        params: list[Any] = []
        sql = f"SELECT COUNT(*) FROM {self._table}"  # noqa: S608
        sql += self._build_where(query, params)
        return sql, params

    async def query(self, query: AuditQuery | None = None) -> list[AuditRecord]:
        query = query or AuditQuery()
        sql, params = self.build_select(query)
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(sql, *params)
        return [self.from_row(row) for row in rows]

    async def count(self, query: AuditQuery | None = None) -> int:
        query = query or AuditQuery()
        sql, params = self.build_count(query)
        async with self._pool.acquire() as conn:
            result = await conn.fetchval(sql, *params)
        return int(result or 0)

    # Transactions
    async def with_transaction(
        self,
        auditor: Auditor[Any],
        callback: Callable[[asyncpg.Connection], Awaitable[T]],
        db: PostgresPool | asyncpg.Pool | asyncpg.Connection | None = None,
        *,
        isolation: IsolationLevel | None = None,
    ) -> T:
        return await with_auditable_transaction(
            db if db is not None else self._pool,
            auditor,
            callback,
            isolation=isolation,
        )

    # Schema
    async def create_table(self) -> None:
        """Create the audit table and its indexes if they don't exist."""
        index_prefix = self._table_name.split(".")[-1]
        statements = [
            f"""
            CREATE TABLE IF NOT EXISTS {self._table} (
                "id" TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
                "type" TEXT NOT NULL,
                "operation" TEXT NOT NULL DEFAULT 'CUSTOM',
                "table" TEXT,
                "entity_id" TEXT,
                "old_values" JSONB,
                "new_values" JSONB,
                "payload" JSONB,
                "timestamp" TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                "actor_id" TEXT,
                "actor_type" TEXT,
                "actor_data" JSONB,
                "metadata" JSONB
            )
            """,
            f'CREATE INDEX IF NOT EXISTS "idx_{index_prefix}_type" ON {self._table} ("type")',
            f'CREATE INDEX IF NOT EXISTS "idx_{index_prefix}_entity" '
            f'ON {self._table} ("table", "entity_id")',
            f'CREATE INDEX IF NOT EXISTS "idx_{index_prefix}_actor" ON {self._table} ("actor_id")',
            f'CREATE INDEX IF NOT EXISTS "idx_{index_prefix}_timestamp" '
            f'ON {self._table} ("timestamp" DESC)',
        ]
        async with self._pool.acquire() as conn:
            for statement in statements:
                await conn.execute(statement)
        logger.info("audit_table_ready", table=self._table_name)
