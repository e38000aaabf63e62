"""Configuration loading for Chronicle.

Usage:
    from chronicle.config import get_settings

    settings = get_settings()
    backend = settings.storage.audit.backend
"""

from functools import lru_cache

from chronicle.config.loader import load_config
from chronicle.config.settings import Settings, set_toml_config


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the cached settings instance.

    TOML files are read first, then CHRONICLE_* environment variables are
    applied on top. Call `get_settings.cache_clear()` to reload.
    """
    set_toml_config(load_config())
    return Settings()


def reload_settings() -> Settings:
    """Clear the settings cache and reload configuration."""
    get_settings.cache_clear()
    return get_settings()


__all__ = ["Settings", "get_settings", "reload_settings"]
