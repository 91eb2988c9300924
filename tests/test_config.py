"""Tests for coinboard.config -- XDG paths, atomic writes, precedence, credentials."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import pytest

from coinboard.config import (
    _atomic_write,
    get_cache_dir,
    get_config_dir,
    get_data_dir,
    get_store_dir,
    global_config_path,
    load_global_config,
    load_project_config,
    resolve_api_key,
    resolve_config,
    resolve_credential,
    save_global_config,
)
from coinboard.exceptions import ConfigError
from coinboard.models import ApiConfig, GlobalConfig


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPathsLinux:
    """XDG paths on Linux (the default XDG platform)."""

    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("coinboard.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "coinboard"
        assert result.is_dir()

    def test_cache_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_cache"
        monkeypatch.setattr("coinboard.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CACHE_HOME", str(custom))

        assert get_cache_dir() == custom / "coinboard"
        assert get_store_dir() == custom / "coinboard" / "store"

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("coinboard.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".local" / "share" / "coinboard"
        assert result.is_dir()


class TestXDGPathsFallback:
    """Fallback paths on non-XDG platforms (macOS, Windows)."""

    def test_config_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("coinboard.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".coinboard"

    def test_cache_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("coinboard.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_cache_dir() == tmp_path / ".coinboard" / "cache"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_writes_content(self, tmp_path: Path) -> None:
        target = tmp_path / "sub" / "file.json"
        _atomic_write(target, '{"a": 1}')
        assert target.read_text(encoding="utf-8") == '{"a": 1}'

    def test_leaves_no_temp_files(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        _atomic_write(target, "one")
        _atomic_write(target, "two")
        assert target.read_text(encoding="utf-8") == "two"
        assert [p.name for p in tmp_path.iterdir()] == ["file.json"]

    def test_cleans_up_on_failure(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        target = tmp_path / "file.json"

        def _fail(src, dst):
            raise OSError("rename failed")

        monkeypatch.setattr(os, "replace", _fail)
        with pytest.raises(OSError):
            _atomic_write(target, "data")
        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


class TestGlobalConfig:
    def test_defaults_when_missing(self, isolated_config: Path) -> None:
        config = load_global_config()
        assert config == GlobalConfig()
        assert config.cache.markets_ttl_seconds == 24 * 60 * 60
        assert config.cache.chart_ttl_seconds == 60 * 60
        assert config.cache.coalesce_requests is False

    def test_save_and_load_round_trip(self, isolated_config: Path) -> None:
        config = GlobalConfig(default_vs_currency="eur", top_count=10)
        config.cache.chart_ttl_seconds = 120
        save_global_config(config)

        assert load_global_config() == config
        assert global_config_path().is_file()

    def test_invalid_json_raises(self, isolated_config: Path) -> None:
        global_config_path().write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_global_config()

    def test_invalid_field_raises(self, isolated_config: Path) -> None:
        _write_json(global_config_path(), {"top_count": "many"})
        with pytest.raises(ConfigError):
            load_global_config()


# ---------------------------------------------------------------------------
# Project config and precedence
# ---------------------------------------------------------------------------


class TestProjectConfig:
    def test_missing_returns_none(self, isolated_config: Path) -> None:
        assert load_project_config() is None

    def test_non_object_raises(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "coinboard.json", [1, 2])
        with pytest.raises(ConfigError):
            load_project_config()


class TestResolveConfig:
    def test_defaults(self, isolated_config: Path) -> None:
        config = resolve_config()
        assert config.api.base_url == "https://api.coingecko.com/api/v3"
        assert config.default_vs_currency == "usd"

    def test_project_overrides_user(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig(default_vs_currency="eur", top_count=8))
        _write_json(isolated_config / "coinboard.json", {"default_vs_currency": "gbp", "cache": {"chart_ttl_seconds": 60}})

        config = resolve_config()
        assert config.default_vs_currency == "gbp"
        assert config.top_count == 8
        assert config.cache.chart_ttl_seconds == 60
        assert config.cache.markets_ttl_seconds == 24 * 60 * 60

    def test_env_overrides_project(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_json(isolated_config / "coinboard.json", {"default_vs_currency": "gbp"})
        monkeypatch.setenv("COINBOARD_VS_CURRENCY", "jpy")
        monkeypatch.setenv("COINBOARD_BASE_URL", "http://localhost:9999")

        config = resolve_config()
        assert config.default_vs_currency == "jpy"
        assert config.api.base_url == "http://localhost:9999"

    def test_cli_overrides_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COINBOARD_VS_CURRENCY", "jpy")
        config = resolve_config(cli_vs_currency="chf", cli_base_url="http://cli", cli_format="json")

        assert config.default_vs_currency == "chf"
        assert config.api.base_url == "http://cli"
        assert config.output.format == "json"

    def test_no_cache_flag_disables_cache(self, isolated_config: Path) -> None:
        assert resolve_config(cli_no_cache=True).cache.enabled is False

    def test_invalid_project_field_raises(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "coinboard.json", {"cache": {"enabled": "sometimes"}})
        with pytest.raises(ConfigError):
            resolve_config()


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


class TestCredentials:
    def test_env_source(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_KEY", "abc")
        assert resolve_credential("env:MY_KEY") == "abc"

    def test_env_source_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MY_KEY", raising=False)
        with pytest.raises(ConfigError):
            resolve_credential("env:MY_KEY")

    def test_file_source(self, tmp_path: Path) -> None:
        key_file = tmp_path / "key.txt"
        key_file.write_text("  secret\n", encoding="utf-8")
        assert resolve_credential(f"file:{key_file}") == "secret"

    def test_file_source_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            resolve_credential(f"file:{tmp_path / 'nope'}")

    def test_unknown_source(self) -> None:
        with pytest.raises(ConfigError):
            resolve_credential("vault:secret")

    def test_api_key_env_wins(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COINBOARD_API_KEY", "from-env")
        monkeypatch.setenv("OTHER", "from-source")
        config = GlobalConfig(api=ApiConfig(api_key_source="env:OTHER"))
        assert resolve_api_key(config) == "from-env"

    def test_api_key_from_source(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OTHER", "from-source")
        config = GlobalConfig(api=ApiConfig(api_key_source="env:OTHER"))
        assert resolve_api_key(config) == "from-source"

    def test_no_api_key(self, isolated_config: Path) -> None:
        assert resolve_api_key(GlobalConfig()) is None
