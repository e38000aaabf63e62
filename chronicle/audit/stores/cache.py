"""Cache-backed implementation of AuditStorage.

Records are stored one per key next to an index key holding the ordered
list of record ids:

    {prefix}:__index__  -> ["id-1", "id-2", ...]
    {prefix}:{id}       -> {"id": "id-1", "type": "user.created", ...}

Queries load every indexed record and run them through the shared
filtering functions. Ids whose entries have expired are dropped from the
index on read. Concurrent writers race on the index (last writer wins).
"""

from collections.abc import Callable, Sequence
from typing import Any

from pydantic import ValidationError

from chronicle.audit.auditor import generate_audit_id
from chronicle.audit.errors import AuditSerializationError
from chronicle.audit.filtering import count_matching, run_query
from chronicle.audit.models import AuditQuery, AuditRecord
from chronicle.audit.store import QueryableAuditStorage
from chronicle.cache import Cache
from chronicle.observability.logging import get_logger
from chronicle.observability.metrics import INDEX_COMPACTIONS, RECORDS_WRITTEN

logger = get_logger(__name__)

INDEX_SUFFIX = "__index__"


class CacheAuditStorage(QueryableAuditStorage):
    """AuditStorage over any Cache backend."""

    backend_name = "cache"

    def __init__(
        self,
        cache: Cache,
        *,
        prefix: str = "audit",
        ttl: int | None = None,
        generate_id: Callable[[], str] | None = None,
    ) -> None:
        """Initialize cache storage.

        Args:
            cache: Cache holding records and the index
            prefix: Namespace for every key this storage writes
            ttl: Seconds each record (and the index) lives; None keeps them
                until the cache evicts them
            generate_id: Id generator for records written with an empty id
        """
        self._cache = cache
        self._prefix = prefix
        self._ttl = ttl
        self._generate_id = generate_id or generate_audit_id

    @property
    def cache(self) -> Cache:
        return self._cache

    @property
    def ttl(self) -> int | None:
        return self._ttl

    @property
    def index_key(self) -> str:
        return f"{self._prefix}:{INDEX_SUFFIX}"

    def record_key(self, record_id: str) -> str:
        return f"{self._prefix}:{record_id}"

    def _serialize(self, record: AuditRecord) -> dict[str, Any]:
        return record.model_dump(mode="json")

    def _deserialize(self, record_id: str, data: Any) -> AuditRecord:
        try:
            return AuditRecord.model_validate(data)
        except ValidationError as e:
            raise AuditSerializationError(
                f"Cached audit record {record_id} is not a valid AuditRecord", cause=e
            ) from e

    async def _load_index(self) -> list[str]:
        index = await self._cache.get(self.index_key)
        return list(index or [])

    async def write(self, records: Sequence[AuditRecord], trx: Any | None = None) -> None:
        """Store records and append their ids to the index.

        `trx` is accepted for interface compatibility and ignored.
        """
        if not records:
            return

        index = await self._load_index()
        known = set(index)

        for record in records:
            if not record.id:
                record = record.model_copy(update={"id": self._generate_id()})
            await self._cache.set(
                self.record_key(record.id), self._serialize(record), ttl=self._ttl
            )
            if record.id not in known:
                index.append(record.id)
                known.add(record.id)

        await self._cache.set(self.index_key, index, ttl=self._ttl)

        RECORDS_WRITTEN.labels(backend=self.backend_name).inc(len(records))
        logger.debug(
            "audit_records_written",
            prefix=self._prefix,
            record_count=len(records),
            index_size=len(index),
        )

    async def get_records(self) -> list[AuditRecord]:
        """Return every stored record in write order.

        Raises:
            AuditSerializationError: If a cached entry cannot be decoded
        """
        index = await self._load_index()
        records: list[AuditRecord] = []
        live_ids: list[str] = []

        for record_id in index:
            data = await self._cache.get(self.record_key(record_id))
            if data is None:
                continue
            records.append(self._deserialize(record_id, data))
            live_ids.append(record_id)

        if len(live_ids) != len(index):
            await self._cache.set(self.index_key, live_ids, ttl=self._ttl)
            INDEX_COMPACTIONS.labels(prefix=self._prefix).inc()
            logger.info(
                "audit_index_compacted",
                prefix=self._prefix,
                dropped=len(index) - len(live_ids),
                remaining=len(live_ids),
            )

        return records

    async def query(self, query: AuditQuery | None = None) -> list[AuditRecord]:
        return run_query(await self.get_records(), query or AuditQuery())

    async def count(self, query: AuditQuery | None = None) -> int:
        return count_matching(await self.get_records(), query or AuditQuery())

    async def clear(self) -> None:
        """Delete every record key and the index."""
        index = await self._load_index()
        for record_id in index:
            await self._cache.delete(self.record_key(record_id))
        await self._cache.delete(self.index_key)
        logger.debug("audit_storage_cleared", prefix=self._prefix, record_count=len(index))
