"""Where coinboard keeps its files, and how the effective config is assembled.

Directories follow the XDG base-directory layout on Linux and the BSDs
(``~/.config/coinboard``, ``~/.cache/coinboard``, ``~/.local/share/coinboard``)
and collapse under ``~/.coinboard/`` everywhere else.

The effective :class:`~coinboard.models.GlobalConfig` is built in layers,
each overriding the one before it:

1. model defaults
2. the user file ``<config dir>/config.json``
3. the project file ``./coinboard.json`` (partial, deep-merged)
4. ``COINBOARD_BASE_URL`` / ``COINBOARD_VS_CURRENCY``
5. CLI flags

The user file is always rewritten through :func:`_atomic_write`, so a crash
mid-save leaves the previous version in place.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import ValidationError

from coinboard.exceptions import ConfigError
from coinboard.models import GlobalConfig

_APP_NAME = "coinboard"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "coinboard.json"

ENV_BASE_URL = "COINBOARD_BASE_URL"
ENV_VS_CURRENCY = "COINBOARD_VS_CURRENCY"
ENV_API_KEY = "COINBOARD_API_KEY"

# kind -> (XDG variable, default under $HOME, subdirectory of ~/.coinboard)
_DIR_LAYOUT: dict[str, tuple[str, tuple[str, ...], Optional[str]]] = {
    "config": ("XDG_CONFIG_HOME", (".config",), None),
    "cache": ("XDG_CACHE_HOME", (".cache",), "cache"),
    "data": ("XDG_DATA_HOME", (".local", "share"), None),
}


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(kind: str) -> Path:
    env_var, home_default, fallback_sub = _DIR_LAYOUT[kind]
    if _is_xdg_platform():
        base = os.environ.get(env_var) or str(Path.home().joinpath(*home_default))
        path = Path(base) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
        if fallback_sub:
            path = path / fallback_sub
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Directory holding ``config.json``. Created on first use."""
    return _app_dir("config")


def get_cache_dir() -> Path:
    """Directory for disposable data. Deleting it only costs a refetch."""
    return _app_dir("cache")


def get_data_dir() -> Path:
    """Directory for crash logs."""
    return _app_dir("data")


def get_store_dir() -> Path:
    return get_cache_dir() / "store"


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* via a sibling temp file and ``os.replace``.

    The temp file is removed if anything fails before the rename.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _read_json(path: Path, label: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Invalid {label} config at {path}: {exc}") from exc


def _validate(data: dict[str, Any], label: str) -> GlobalConfig:
    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid {label} config: {exc}") from exc


# --- User config ---


def global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the user config, or defaults when no file exists.

    Raises:
        ConfigError: The file is not valid JSON or does not validate.
    """
    path = global_config_path()
    if not path.is_file():
        return GlobalConfig()
    return _validate(_read_json(path, "global"), f"global ({path})")


def save_global_config(config: GlobalConfig) -> None:
    payload = json.dumps(config.model_dump(mode="json"), indent=2) + "\n"
    _atomic_write(global_config_path(), payload)


# --- Project config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Return the raw overrides in ``./coinboard.json``, or ``None``.

    Raises:
        ConfigError: The file is unreadable or not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    data = _read_json(path, "project")
    if not isinstance(data, dict):
        raise ConfigError(f"Project config at {path} must be a JSON object")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# --- Resolution ---


def resolve_config(
    cli_base_url: Optional[str] = None,
    cli_vs_currency: Optional[str] = None,
    cli_format: Optional[str] = None,
    cli_no_cache: bool = False,
) -> GlobalConfig:
    """Build the effective configuration from every layer.

    Raises:
        ConfigError: A config file is invalid.
    """
    config = load_global_config()

    project = load_project_config()
    if project:
        config = _validate(_deep_merge(config.model_dump(mode="json"), project), "project")

    base_url = cli_base_url or os.environ.get(ENV_BASE_URL)
    if base_url:
        config.api.base_url = base_url

    vs_currency = cli_vs_currency or os.environ.get(ENV_VS_CURRENCY)
    if vs_currency:
        config.default_vs_currency = vs_currency

    if cli_format is not None:
        config.output.format = cli_format
    if cli_no_cache:
        config.cache.enabled = False
    return config


# --- Credentials ---


def _from_env(name: str) -> str:
    value = os.environ.get(name)
    if value is None:
        raise ConfigError(f"Environment variable '{name}' is not set")
    return value


def _from_file(raw_path: str) -> str:
    path = Path(raw_path).expanduser()
    if not path.is_file():
        raise ConfigError(f"Credential file not found: {path}")
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc


_CREDENTIAL_SOURCES: dict[str, Callable[[str], str]] = {
    "env": _from_env,
    "file": _from_file,
}


def resolve_credential(source: str) -> str:
    """Resolve ``env:VAR`` or ``file:/path`` to the secret it points at.

    Raises:
        ConfigError: Unknown scheme, unset variable or missing file.
    """
    scheme, sep, target = source.partition(":")
    reader = _CREDENTIAL_SOURCES.get(scheme)
    if not sep or reader is None:
        raise ConfigError(f"Unknown credential source format: {source}")
    return reader(target)


def resolve_api_key(config: GlobalConfig) -> Optional[str]:
    """``COINBOARD_API_KEY`` first, then ``api.api_key_source``, else ``None``."""
    env_key = os.environ.get(ENV_API_KEY)
    if env_key:
        return env_key
    if config.api.api_key_source:
        return resolve_credential(config.api.api_key_source)
    return None
