"""In-memory implementation of AuditStorage."""

from collections.abc import Callable

from chronicle.audit.stores.cache import CacheAuditStorage
from chronicle.cache import InMemoryCache

# Records outlive any test or development session
DEFAULT_TTL_SECONDS = 365 * 24 * 60 * 60


class InMemoryAuditStorage(CacheAuditStorage):
    """In-memory AuditStorage for testing and development.

    Not suitable for production use: records are lost when the process
    exits and every query scans all records.
    """

    backend_name = "inmemory"

    def __init__(
        self,
        *,
        prefix: str = "audit",
        ttl: int | None = DEFAULT_TTL_SECONDS,
        cache: InMemoryCache | None = None,
        generate_id: Callable[[], str] | None = None,
    ) -> None:
        super().__init__(
            cache if cache is not None else InMemoryCache(),
            prefix=prefix,
            ttl=ttl,
            generate_id=generate_id,
        )
