"""AuditStorage interfaces.

`AuditStorage` is the only required contract: a write-only sink (webhook,
log shipper) implements `write` and nothing else. Richer backends opt into
`QueryableAuditStorage` and/or `TransactionalAuditStorage`; callers detect
those capabilities with `supports_query` / `supports_transactions` instead
of calling and catching.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING, Any, ClassVar, TypeGuard, TypeVar

from chronicle.audit.errors import CapabilityNotSupportedError
from chronicle.audit.models import AuditQuery, AuditRecord

if TYPE_CHECKING:
    from chronicle.audit.auditor import Auditor

T = TypeVar("T")


class AuditStorage(ABC):
    """Abstract interface for audit storage."""

    backend_name: ClassVar[str] = "custom"

    @abstractmethod
    async def write(self, records: Sequence[AuditRecord], trx: Any | None = None) -> None:
        """Persist audit records.

        Must be a no-op for an empty sequence. When `trx` is given and the
        backend is transaction-capable, the write runs on that handle.

        Args:
            records: Records in the order they were created
            trx: Optional transaction handle owned by the caller
        """


class QueryableAuditStorage(AuditStorage):
    """Storage that can read audit records back."""

    @abstractmethod
    async def query(self, query: AuditQuery | None = None) -> list[AuditRecord]:
        """Return records matching the query (default order: timestamp desc)."""

    @abstractmethod
    async def count(self, query: AuditQuery | None = None) -> int:
        """Count records matching the query's filters, ignoring pagination."""


class TransactionalAuditStorage(AuditStorage):
    """Storage that can share a database transaction with domain writes."""

    database_service_name: str | None = None

    @abstractmethod
    def get_database(self) -> Any:
        """Return the underlying connection or pool."""

    @abstractmethod
    async def with_transaction(
        self,
        auditor: "Auditor[Any]",
        callback: Callable[[Any], Awaitable[T]],
        db: Any | None = None,
        *,
        isolation: str | None = None,
    ) -> T:
        """Run `callback` in a transaction and flush the auditor before commit.

        If `db` is given it is used instead of the storage's own database; a
        connection already inside a transaction is reused.
        """


def supports_query(storage: AuditStorage) -> TypeGuard[QueryableAuditStorage]:
    return isinstance(storage, QueryableAuditStorage)


def supports_transactions(storage: AuditStorage) -> TypeGuard[TransactionalAuditStorage]:
    return isinstance(storage, TransactionalAuditStorage)


def require_query(storage: AuditStorage) -> QueryableAuditStorage:
    """Return the storage as queryable or fail fast.

    Raises:
        CapabilityNotSupportedError: If the backend is write-only
    """
    if not supports_query(storage):
        raise CapabilityNotSupportedError(storage, "query")
    return storage
