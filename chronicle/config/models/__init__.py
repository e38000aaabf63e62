"""Configuration model exports.

    from chronicle.config.models import AuditStorageConfig, StorageConfig
"""

from chronicle.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)
from chronicle.config.models.storage import (
    AuditStorageConfig,
    PostgresConfig,
    RedisConfig,
    StorageConfig,
)

__all__ = [
    "AuditStorageConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    "PostgresConfig",
    "RedisConfig",
    "StorageConfig",
]
