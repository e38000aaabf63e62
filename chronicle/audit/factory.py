"""Build an AuditStorage from configuration."""

import redis.asyncio as redis

from chronicle.audit.store import AuditStorage
from chronicle.audit.stores.cache import CacheAuditStorage
from chronicle.audit.stores.inmemory import DEFAULT_TTL_SECONDS, InMemoryAuditStorage
from chronicle.audit.stores.postgres import PostgresAuditStorage
from chronicle.cache import RedisCache
from chronicle.config.models.storage import AuditStorageConfig, RedisConfig
from chronicle.db.pool import PostgresPool
from chronicle.observability.logging import get_logger

logger = get_logger(__name__)


def create_audit_storage(
    config: AuditStorageConfig,
    *,
    pool: PostgresPool | None = None,
    redis_client: redis.Redis | None = None,
    redis_config: RedisConfig | None = None,
) -> AuditStorage:
    """Create the storage backend named by `config.backend`.

    Args:
        config: Audit storage settings
        pool: Connection pool, required for the postgres backend
        redis_client: Redis client for the redis backend; built from
            `redis_config` when omitted
        redis_config: Connection settings used when no client is given

    Raises:
        ValueError: If the postgres backend is requested without a pool
    """
    if config.backend == "postgres":
        if pool is None:
            raise ValueError("The postgres audit backend requires a connection pool")
        storage: AuditStorage = PostgresAuditStorage(
            pool,
            table_name=config.table_name,
            auto_id=config.auto_id,
            database_service_name=config.database_service_name,
        )
    elif config.backend == "redis":
        if redis_client is None:
            redis_client = redis.from_url((redis_config or RedisConfig()).url)
        storage = CacheAuditStorage(
            RedisCache(redis_client),
            prefix=config.key_prefix,
            ttl=config.ttl_seconds,
        )
    else:
        storage = InMemoryAuditStorage(
            prefix=config.key_prefix,
            ttl=config.ttl_seconds or DEFAULT_TTL_SECONDS,
        )

    logger.info("audit_storage_created", backend=config.backend)
    return storage
