"""Shared test fixtures for coinboard.

Provides reusable fixtures for isolated config environments, output state,
CLI invocation, a controllable clock, and sample market data. These
fixtures are automatically discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from coinboard.cache import ExpiringStore
from coinboard.models import MarketEntry, PricePoint
from coinboard.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output and logging state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and the ``coinboard`` logger after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  The CLI callback also attaches a
    Rich handler to the ``coinboard`` logger bound to those streams and
    turns propagation off, which would hide records from ``caplog``.
    """
    yield
    reset_output()
    logger = logging.getLogger("coinboard")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config or cache. Clears all COINBOARD_* environment variables and
    changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("coinboard.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "COINBOARD_BASE_URL",
        "COINBOARD_VS_CURRENCY",
        "COINBOARD_API_KEY",
        "NO_COLOR",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store(clock: FakeClock) -> ExpiringStore:
    """Memory-only store driven by the fake clock."""
    store = ExpiringStore(clock=clock)
    yield store
    store.close()


@pytest.fixture
def disk_store(tmp_path: Path, clock: FakeClock) -> ExpiringStore:
    """Disk-backed store under tmp_path driven by the fake clock."""
    store = ExpiringStore(tmp_path / "store", clock=clock)
    yield store
    store.close()


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------


def make_market_entry(
    coin_id: str = "bitcoin",
    rank: int = 1,
    price: float | None = 50_000.0,
    **overrides: Any,
) -> MarketEntry:
    """Build a :class:`MarketEntry` with plausible defaults."""
    data: dict[str, Any] = {
        "id": coin_id,
        "symbol": coin_id[:3],
        "name": coin_id.capitalize(),
        "current_price": price,
        "market_cap": 1_000_000_000.0 / rank,
        "market_cap_rank": rank,
        "price_change_percentage_24h": 1.5,
    }
    data.update(overrides)
    return MarketEntry.model_validate(data)


def make_market_entries(count: int = 5) -> list[MarketEntry]:
    ids = ["bitcoin", "ethereum", "tether", "binancecoin", "solana", "ripple", "cardano"]
    return [
        make_market_entry(
            ids[i] if i < len(ids) else f"coin-{i}", rank=i + 1, price=100.0 * (i + 1)
        )
        for i in range(count)
    ]


def make_price_points(prices: list[float]) -> list[PricePoint]:
    base = datetime(2024, 1, 1, tzinfo=timezone.utc).timestamp()
    return [
        PricePoint(timestamp=datetime.fromtimestamp(base + i * 3600, tz=timezone.utc), price=p)
        for i, p in enumerate(prices)
    ]


@pytest.fixture
def market_entries() -> list[MarketEntry]:
    return make_market_entries(5)


@pytest.fixture
def markets_payload() -> list[dict[str, Any]]:
    """Raw ``/coins/markets`` JSON body with five entries."""
    return [entry.model_dump(mode="json") for entry in make_market_entries(5)]


@pytest.fixture
def chart_payload() -> dict[str, Any]:
    """Raw ``/coins/{id}/market_chart`` JSON body with three samples."""
    base_ms = 1_704_067_200_000  # 2024-01-01T00:00:00Z
    return {
        "prices": [
            [base_ms, 42_000.0],
            [base_ms + 3_600_000, 42_500.5],
            [base_ms + 7_200_000, 41_900.25],
        ],
        "market_caps": [],
        "total_volumes": [],
    }
