"""Storage backend configuration models."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

AuditBackendType = Literal["inmemory", "postgres", "redis"]


class PostgresConfig(BaseModel):
    """PostgreSQL connection pool configuration.

    The DSN normally comes from CHRONICLE_DATABASE_URL / DATABASE_URL rather
    than from config files.
    """

    connection_url: str | None = Field(
        default=None,
        description="Connection URL (falls back to environment variables)",
    )
    min_pool_size: int = Field(default=2, gt=0, description="Minimum open connections")
    max_pool_size: int = Field(default=10, gt=0, description="Maximum pool connections")
    max_inactive_connection_lifetime: float = Field(
        default=300.0,
        gt=0,
        description="Close connections idle longer than this (seconds)",
    )
    command_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Default timeout for queries (seconds)",
    )


class RedisConfig(BaseModel):
    """Redis connection configuration."""

    url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )


class AuditStorageConfig(BaseModel):
    """Audit trail storage configuration."""

    backend: AuditBackendType = Field(
        default="inmemory",
        description="Where audit records are persisted",
    )
    table_name: str = Field(
        default="audit_logs",
        description="Relational table holding audit rows",
    )
    auto_id: bool = Field(
        default=False,
        description="Let the database assign record ids",
    )
    key_prefix: str = Field(
        default="audit",
        description="Key prefix for cache-backed storage",
    )
    ttl_seconds: int | None = Field(
        default=None,
        gt=0,
        description="Record TTL for cache-backed storage (None keeps the cache default)",
    )
    database_service_name: str | None = Field(
        default=None,
        description="Name of the database service sharing audit transactions",
    )

    @field_validator("key_prefix")
    @classmethod
    def _validate_key_prefix(cls, value: str) -> str:
        if not value or ":" in value:
            raise ValueError("key_prefix must be non-empty and must not contain ':'")
        return value


class StorageConfig(BaseModel):
    """Storage configuration."""

    audit: AuditStorageConfig = Field(
        default_factory=AuditStorageConfig,
        description="Audit storage backend",
    )
    postgres: PostgresConfig = Field(
        default_factory=PostgresConfig,
        description="PostgreSQL pool settings",
    )
    redis: RedisConfig = Field(
        default_factory=RedisConfig,
        description="Redis connection settings",
    )
