"""Tests for TOML configuration loading."""

from pathlib import Path

import pytest

from chronicle.config.loader import (
    config_layers,
    deep_merge,
    extract_section,
    get_config_dir,
    get_environment,
    load_config,
    load_toml,
)


class TestDeepMerge:
    """Tests for deep_merge."""

    def test_nested_override(self):
        base = {"storage": {"audit": {"backend": "inmemory", "key_prefix": "audit"}}}
        override = {"storage": {"audit": {"backend": "postgres"}}}

        assert deep_merge(base, override) == {
            "storage": {"audit": {"backend": "postgres", "key_prefix": "audit"}}
        }

    def test_does_not_mutate_inputs(self):
        base = {"a": {"b": 1}}

        deep_merge(base, {"a": {"b": 2}})

        assert base == {"a": {"b": 1}}

    def test_non_dict_replaces(self):
        assert deep_merge({"a": {"b": 1}}, {"a": 5}) == {"a": 5}


class TestLoadToml:
    """Tests for load_toml."""

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_toml(tmp_path / "missing.toml")

    def test_parses_file(self, test_config_dir, mock_toml_files):
        mock_toml_files({"default.toml": "[storage.audit]\nbackend = 'redis'\n"})

        assert load_toml(test_config_dir / "default.toml") == {
            "storage": {"audit": {"backend": "redis"}}
        }


class TestLoadConfig:
    """Tests for environment-aware loading."""

    def test_environment_default(self, monkeypatch):
        monkeypatch.delenv("CHRONICLE_ENV", raising=False)

        assert get_environment() == "development"

    def test_config_dir_from_env(self, test_config_dir, env_override):
        with env_override({"CHRONICLE_CONFIG_DIR": str(test_config_dir)}):
            assert get_config_dir() == test_config_dir

    def test_missing_config_dir_from_env(self, tmp_path, env_override):
        with env_override({"CHRONICLE_CONFIG_DIR": str(tmp_path / "nope")}):
            with pytest.raises(FileNotFoundError):
                get_config_dir()

    def test_environment_file_merged(self, test_config_dir, mock_toml_files, env_override):
        mock_toml_files({
            "default.toml": "log_level = 'INFO'\n[storage.audit]\nbackend = 'inmemory'\n",
            "production.toml": "[storage.audit]\nbackend = 'postgres'\n",
        })

        with env_override({
            "CHRONICLE_CONFIG_DIR": str(test_config_dir),
            "CHRONICLE_ENV": "production",
        }):
            config = load_config()

        assert config == {"log_level": "INFO", "storage": {"audit": {"backend": "postgres"}}}

    def test_no_files(self, test_config_dir, env_override):
        with env_override({
            "CHRONICLE_CONFIG_DIR": str(test_config_dir),
            "CHRONICLE_ENV": "test",
        }):
            assert load_config() == {}

    def test_explicit_arguments_skip_env_lookup(self, test_config_dir, mock_toml_files):
        mock_toml_files({
            "default.toml": "[storage.audit]\nbackend = 'inmemory'\n",
            "staging.toml": "[storage.audit]\nttl_seconds = 60\n",
        })

        config = load_config(test_config_dir, "staging")

        assert config == {"storage": {"audit": {"backend": "inmemory", "ttl_seconds": 60}}}


class TestHostSections:
    """Tests for configuration embedded in a host application's files."""

    def test_extract_section(self):
        data = {"server": {"port": 8000}, "chronicle": {"log_level": "DEBUG"}}

        assert extract_section(data) == {"log_level": "DEBUG"}

    def test_file_without_section_used_whole(self):
        assert extract_section({"log_level": "DEBUG"}) == {"log_level": "DEBUG"}

    def test_host_file_overlays_last(
        self, tmp_path, test_config_dir, mock_toml_files, env_override
    ):
        mock_toml_files({
            "default.toml": "[storage.audit]\nbackend = 'inmemory'\nkey_prefix = 'audit'\n",
        })
        host_file = tmp_path / "app.toml"
        host_file.write_text(
            "[server]\nport = 8000\n\n[chronicle.storage.audit]\nbackend = 'redis'\n"
        )

        with env_override({
            "CHRONICLE_CONFIG_DIR": str(test_config_dir),
            "CHRONICLE_ENV": "test",
            "CHRONICLE_CONFIG_FILE": str(host_file),
        }):
            layers = config_layers()
            config = load_config()

        assert layers == [test_config_dir / "default.toml", host_file]
        assert config == {"storage": {"audit": {"backend": "redis", "key_prefix": "audit"}}}

    def test_missing_host_file(self, tmp_path, test_config_dir, env_override):
        with env_override({
            "CHRONICLE_CONFIG_DIR": str(test_config_dir),
            "CHRONICLE_CONFIG_FILE": str(tmp_path / "missing.toml"),
        }):
            with pytest.raises(FileNotFoundError, match="CHRONICLE_CONFIG_FILE"):
                load_config()
