"""TOML configuration loader.

Chronicle is usually embedded in a host application, so configuration can
come from Chronicle's own files or from a `[chronicle]` table inside the
host's shared config. Layers, lowest precedence first:

1. `{config_dir}/default.toml` (optional)
2. `{config_dir}/{CHRONICLE_ENV}.toml` (optional)
3. the file named by CHRONICLE_CONFIG_FILE (required when set)
"""

import os
import tomllib
from pathlib import Path
from typing import Any

SECTION = "chronicle"


def get_config_dir() -> Path:
    """Get the configuration directory path.

    CHRONICLE_CONFIG_DIR overrides the lookup. Otherwise the first `config/`
    directory found walking up from the working directory is used.
    """
    config_dir_env = os.environ.get("CHRONICLE_CONFIG_DIR")
    if config_dir_env:
        path = Path(config_dir_env)
        if not path.is_dir():
            raise FileNotFoundError(f"Config directory not found: {config_dir_env}")
        return path

    cwd = Path.cwd()
    for candidate in [cwd, *cwd.parents][:5]:
        if (candidate / "config").is_dir():
            return candidate / "config"
    return Path("config")


def get_environment() -> str:
    """Get the current environment from CHRONICLE_ENV (default: development)."""
    return os.environ.get("CHRONICLE_ENV", "development")


def load_toml(file_path: Path) -> dict[str, Any]:
    """Load a TOML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    with file_path.open("rb") as f:
        return tomllib.load(f)


def extract_section(data: dict[str, Any]) -> dict[str, Any]:
    """Return the `[chronicle]` table of a shared file, or the file itself.

    A file with a `chronicle` table belongs to a host application; every
    other top-level key in it is the host's and is ignored.
    """
    section = data.get(SECTION)
    if isinstance(section, dict):
        return section
    return data


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge two dictionaries, override taking precedence."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def config_layers(
    config_dir: Path | None = None,
    environment: str | None = None,
) -> list[Path]:
    """List the files that contribute configuration, lowest precedence first.

    Raises:
        FileNotFoundError: If CHRONICLE_CONFIG_FILE names a missing file
    """
    config_dir = config_dir or get_config_dir()
    environment = environment or get_environment()

    layers = [
        path
        for path in (config_dir / "default.toml", config_dir / f"{environment}.toml")
        if path.exists()
    ]

    explicit = os.environ.get("CHRONICLE_CONFIG_FILE")
    if explicit:
        path = Path(explicit)
        if not path.exists():
            raise FileNotFoundError(f"CHRONICLE_CONFIG_FILE not found: {explicit}")
        layers.append(path)

    return layers


def load_config(
    config_dir: Path | None = None,
    environment: str | None = None,
) -> dict[str, Any]:
    """Load and merge every configuration layer.

    Args:
        config_dir: Directory holding default/environment files; resolved
            with get_config_dir() when omitted
        environment: Environment file to overlay; CHRONICLE_ENV when omitted

    Returns:
        Merged configuration, empty when no file exists
    """
    config: dict[str, Any] = {}
    for path in config_layers(config_dir, environment):
        config = deep_merge(config, extract_section(load_toml(path)))
    return config
