"""
Pytest configuration and fixtures for candlelens tests.
"""

import os
import tempfile
from pathlib import Path
from typing import Callable, Generator, List, Optional, Sequence

import pytest
from unittest.mock import patch

from candlelens.config import Config
from candlelens.models.market_data import Candle, Timeframe

START_TIME = 1_700_000_000_000
HOUR_MS = 3_600_000


def build_candles(
    closes: Sequence[float],
    interval_ms: int = HOUR_MS,
    spread: float = 0.5,
    volume: float = 1000.0,
    start: int = START_TIME,
    symbol: Optional[str] = None,
    timeframe: Optional[Timeframe] = None
) -> List[Candle]:
    """Candles with open == close and a symmetric high/low spread."""
    return [
        Candle(
            open_time=start + i * interval_ms,
            close_time=start + (i + 1) * interval_ms - 1,
            open=close,
            high=close + spread,
            low=close - spread,
            close=close,
            volume=volume,
            symbol=symbol,
            timeframe=timeframe,
        )
        for i, close in enumerate(closes)
    ]


def build_box_candles(count: int = 60) -> List[Candle]:
    """
    Zigzag between 100 and 110 with a period of ten candles.

    Bottom candles have their low exactly at 100 and top candles their high
    exactly at 110; every other candle stays well inside the range.
    """
    candles = []
    for i in range(count):
        phase = i % 10
        mid = 100 + 2 * phase if phase <= 5 else 110 - 2 * (phase - 5)
        if phase == 0:
            low, high, price = 100.0, 101.0, 100.5
        elif phase == 5:
            low, high, price = 109.0, 110.0, 109.5
        else:
            low, high, price = mid - 0.5, mid + 0.5, float(mid)
        candles.append(
            Candle(
                open_time=START_TIME + i * HOUR_MS,
                close_time=START_TIME + (i + 1) * HOUR_MS - 1,
                open=price,
                high=high,
                low=low,
                close=price,
                volume=1000.0,
            )
        )
    return candles


@pytest.fixture
def make_candles() -> Callable[..., List[Candle]]:
    """Factory building candles from a list of closes."""
    return build_candles


@pytest.fixture
def rising_candles() -> List[Candle]:
    """300 hourly candles closing at 100, 101, 102, ..."""
    return build_candles([100.0 + i for i in range(300)])


@pytest.fixture
def falling_candles() -> List[Candle]:
    """300 hourly candles closing at 400, 399, 398, ..."""
    return build_candles([400.0 - i for i in range(300)])


@pytest.fixture
def box_candles() -> List[Candle]:
    """60 candles ranging between 100 and 110."""
    return build_box_candles()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def mock_env_vars() -> Generator[dict, None, None]:
    """Mock environment variables for testing."""
    test_env = {
        "LOG_LEVEL": "DEBUG",
        "SWING_LOOKBACK": "3",
        "LEVEL_MERGE_TOLERANCE": "0.02",
        "BOX_MIN_DURATION": "15",
        "ANALYSIS_TIMEFRAMES": "1h,4h",
        "TREND_CANDLE_LIMIT": "150",
        "DEFAULT_SYMBOLS": "btcusdt, solusdt",
        "CANDLE_LIMIT": "80",
        "FETCH_TIMEOUT_SECONDS": "2.5",
        "MIN_CANDLES": "30",
        "LOG_MAX_SIZE": "5MB",
        "LOG_BACKUP_COUNT": "2",
    }

    with patch.dict(os.environ, test_env, clear=False):
        yield test_env


@pytest.fixture
def test_config() -> Config:
    """Default configuration instance."""
    return Config()
