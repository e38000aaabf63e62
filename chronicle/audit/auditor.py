"""Auditor: per unit-of-work collector for audit records.

An Auditor is created for one request (or job) and bound to one actor. It
buffers records in call order and hands them to storage on `flush()`.

    auditor = DefaultAuditor(actor={"id": "user-123", "type": "user"}, storage=storage)
    auditor.add_metadata({"request_id": "req-1", "endpoint": "/users"})
    auditor.audit("user.created", {"user_id": 1, "email": "a@b.com"})
    await auditor.flush()

The buffer is cleared before `storage.write()` runs, so a failed write is
not retried from the buffer. Atomicity comes from flushing inside the
caller's database transaction (see `with_auditable_transaction`).
"""

import copy
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any, Generic, TypeVar
from uuid import uuid4

from pydantic import BaseModel

from chronicle.audit.models import (
    AuditableAction,
    AuditActionRegistry,
    AuditActor,
    AuditOperation,
    AuditOptions,
    AuditRecord,
    EntityId,
    utc_now,
)
from chronicle.audit.store import AuditStorage
from chronicle.observability.logging import get_logger
from chronicle.observability.metrics import (
    FLUSH_ERRORS,
    FLUSH_LATENCY,
    RECORDS_FLUSHED,
)

logger = get_logger(__name__)

TTransaction = TypeVar("TTransaction")


def generate_audit_id() -> str:
    """Default record id generator."""
    return str(uuid4())


class Auditor(ABC, Generic[TTransaction]):
    """Abstract interface for audit collection and flushing."""

    @property
    @abstractmethod
    def actor(self) -> AuditActor:
        """Actor for every record created by this auditor."""

    @abstractmethod
    def audit(
        self,
        type: str,
        payload: Any,
        options: AuditOptions | None = None,
    ) -> None:
        """Record an audit entry of the given type."""

    @abstractmethod
    def record(
        self,
        type: str,
        *,
        operation: AuditOperation = AuditOperation.CUSTOM,
        table: str | None = None,
        entity_id: EntityId | None = None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        payload: Any = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        """Record a raw audit entry; id, timestamp and actor are assigned."""

    @abstractmethod
    def get_records(self) -> list[AuditRecord]:
        """Return a copy of the buffered records."""

    @abstractmethod
    async def flush(self, trx: TTransaction | None = None) -> None:
        """Write buffered records to storage."""

    @abstractmethod
    def clear(self) -> None:
        """Discard buffered records without writing."""

    @abstractmethod
    def add_metadata(self, metadata: Mapping[str, Any]) -> None:
        """Merge metadata into every record created afterwards."""

    @abstractmethod
    def set_transaction(self, trx: TTransaction | None) -> None:
        """Register the transaction used by a parameterless flush()."""

    @abstractmethod
    def get_transaction(self) -> TTransaction | None:
        """Return the registered transaction, if any."""


class DefaultAuditor(Auditor[TTransaction]):
    """In-memory buffering Auditor.

    Not safe to share between concurrent units of work; create one per
    request.
    """

    def __init__(
        self,
        actor: AuditActor | Mapping[str, Any],
        storage: AuditStorage,
        *,
        metadata: Mapping[str, Any] | None = None,
        generate_id: Callable[[], str] = generate_audit_id,
        clock: Callable[[], datetime] = utc_now,
        actions: AuditActionRegistry | None = None,
    ) -> None:
        """Initialize the auditor.

        Args:
            actor: Who performs the audited actions
            storage: Where flush() writes records
            metadata: Base request context merged into each record
            generate_id: Record id generator
            clock: Timestamp source
            actions: Optional schema registry; when set, audit() rejects
                unknown types and validates payloads
        """
        self._actor = actor if isinstance(actor, AuditActor) else AuditActor.model_validate(actor)
        self._storage = storage
        self._metadata: dict[str, Any] = dict(metadata or {})
        self._generate_id = generate_id
        self._clock = clock
        self._actions = actions
        self._records: list[AuditRecord] = []
        self._transaction: TTransaction | None = None

    @property
    def actor(self) -> AuditActor:
        return self._actor

    @property
    def storage(self) -> AuditStorage:
        return self._storage

    def audit(
        self,
        type: str,
        payload: Any,
        options: AuditOptions | None = None,
    ) -> None:
        if self._actions is not None:
            payload = self._actions.validate(type, payload)
        options = options or AuditOptions()
        self._append(
            type=type,
            operation=options.operation,
            table=options.table,
            entity_id=options.entity_id,
            old_values=options.old_values,
            new_values=options.new_values,
            payload=payload,
            metadata=None,
        )

    def audit_action(
        self,
        action: AuditableAction[Any],
        options: AuditOptions | None = None,
    ) -> None:
        """Record a typed action instance."""
        self.audit(action.type, action.payload, options)

    def record(
        self,
        type: str,
        *,
        operation: AuditOperation = AuditOperation.CUSTOM,
        table: str | None = None,
        entity_id: EntityId | None = None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        payload: Any = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        self._append(
            type=type,
            operation=operation,
            table=table,
            entity_id=entity_id,
            old_values=old_values,
            new_values=new_values,
            payload=payload,
            metadata=metadata,
        )

    def _append(
        self,
        *,
        type: str,
        operation: AuditOperation,
        table: str | None,
        entity_id: EntityId | None,
        old_values: dict[str, Any] | None,
        new_values: dict[str, Any] | None,
        payload: Any,
        metadata: Mapping[str, Any] | None,
    ) -> None:
        # Call-site metadata wins over base metadata on key collisions
        merged = {**self._metadata, **(metadata or {})}
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(mode="json")

        record = AuditRecord(
            id=self._generate_id(),
            type=type,
            operation=operation,
            table=table,
            entity_id=copy.deepcopy(entity_id),
            old_values=copy.deepcopy(old_values),
            new_values=copy.deepcopy(new_values),
            payload=copy.deepcopy(payload),
            timestamp=self._clock(),
            actor=self._actor,
            metadata=copy.deepcopy(merged) if merged else None,
        )
        self._records.append(record)

    def get_records(self) -> list[AuditRecord]:
        return [record.model_copy(deep=True) for record in self._records]

    async def flush(self, trx: TTransaction | None = None) -> None:
        if not self._records:
            return

        records, self._records = self._records, []
        transaction = trx if trx is not None else self._transaction
        backend = self._storage.backend_name

        logger.debug(
            "audit_flush",
            record_count=len(records),
            has_transaction=transaction is not None,
            backend=backend,
        )

        start = time.perf_counter()
        try:
            await self._storage.write(records, transaction)
        except Exception as e:
            FLUSH_ERRORS.labels(backend=backend, error_type=type(e).__name__).inc()
            logger.error(
                "audit_flush_failed",
                record_count=len(records),
                backend=backend,
                error=str(e),
            )
            raise

        RECORDS_FLUSHED.labels(backend=backend).inc(len(records))
        FLUSH_LATENCY.labels(backend=backend).observe(time.perf_counter() - start)

    def clear(self) -> None:
        self._records = []

    def add_metadata(self, metadata: Mapping[str, Any]) -> None:
        self._metadata = {**self._metadata, **metadata}

    def set_transaction(self, trx: TTransaction | None) -> None:
        self._transaction = trx

    def get_transaction(self) -> TTransaction | None:
        return self._transaction
