"""Shared test fixtures for the Chronicle test suite."""

import os
from collections.abc import Callable, Generator, Iterator
from contextlib import AbstractContextManager, contextmanager
from pathlib import Path

import pytest

from chronicle.audit.stores import InMemoryAuditStorage


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Factory fixture writing TOML files into the test config directory.

    Usage:
        def test_something(mock_toml_files):
            mock_toml_files({
                "default.toml": "[storage.audit]\\nbackend = 'inmemory'",
                "production.toml": "[storage.audit]\\nbackend = 'postgres'",
            })
    """

    def _create_toml_files(files: dict[str, str]) -> None:
        for filename, content in files.items():
            (test_config_dir / filename).write_text(content)

    return _create_toml_files


@contextmanager
def _overridden_env(overrides: dict[str, str]) -> Iterator[None]:
    saved = {key: os.environ.get(key) for key in overrides}
    os.environ.update(overrides)
    try:
        yield
    finally:
        for key, value in saved.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value


@pytest.fixture
def env_override() -> Callable[[dict[str, str]], AbstractContextManager[None]]:
    """Temporarily set environment variables.

    Usage:
        def test_something(env_override):
            with env_override({"CHRONICLE_STORAGE__AUDIT__BACKEND": "redis"}):
                # test code here
    """
    return _overridden_env


@pytest.fixture
def inmemory_storage() -> InMemoryAuditStorage:
    """Fresh in-memory audit storage."""
    return InMemoryAuditStorage()


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the settings cache before and after each test."""
    from chronicle.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
