"""
Market data providers backed by memory or a JSON file.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from ..models.market_data import Candle, Timeframe, validate_symbol
from .interfaces import MarketDataProvider

logger = logging.getLogger(__name__)

SeriesKey = Tuple[str, Timeframe]


def normalize_series(candles: Iterable[Candle]) -> List[Candle]:
    """Sort candles by open time and drop duplicate open times (last one wins)."""
    by_open_time = {}
    for candle in candles:
        by_open_time[candle.open_time] = candle
    return [by_open_time[t] for t in sorted(by_open_time)]


def parse_candle(raw: Union[Dict[str, Any], List[Any]], symbol: str, timeframe: Timeframe) -> Candle:
    """Build a Candle from a kline array or a mapping of Candle fields."""
    if isinstance(raw, dict):
        data = dict(raw)
        data.setdefault("symbol", symbol)
        data.setdefault("timeframe", timeframe)
        data.setdefault("close_time", data.get("open_time"))
        return Candle(**data)
    return Candle.from_kline(raw, symbol=symbol, timeframe=timeframe)


class InMemoryMarketDataProvider(MarketDataProvider):
    """Serves candles held in memory, keyed by (symbol, timeframe)."""

    def __init__(self, series: Optional[Dict[SeriesKey, List[Candle]]] = None):
        super().__init__()
        self._series: Dict[SeriesKey, List[Candle]] = {}
        for (symbol, timeframe), candles in (series or {}).items():
            self.add_candles(symbol, timeframe, candles)

    def add_candles(self, symbol: str, timeframe: Timeframe, candles: Iterable[Candle]) -> None:
        """Add or replace candles of one series."""
        key = (validate_symbol(symbol), Timeframe(timeframe))
        existing = self._series.get(key, [])
        self._series[key] = normalize_series(list(existing) + list(candles))

    @property
    def symbols(self) -> List[str]:
        """Symbols with at least one series."""
        return sorted({symbol for symbol, _ in self._series})

    async def get_candles(
        self,
        symbol: str,
        timeframe: Timeframe,
        limit: int,
        start: Optional[int] = None,
        end: Optional[int] = None
    ) -> List[Candle]:
        self._ensure_connected()

        candles = self._series.get((symbol, timeframe))
        if candles is None:
            raise LookupError(f"No candles for {symbol} {timeframe.value}")

        selected = [
            c for c in candles
            if (start is None or c.open_time >= start) and (end is None or c.open_time <= end)
        ]
        return selected[-limit:] if limit > 0 else []


class JsonFileMarketDataProvider(InMemoryMarketDataProvider):
    """
    Serves candles read from a JSON file on connect.

    Expected layout::

        {"BTCUSDT": {"1h": [[openTime, open, high, low, close, volume, closeTime, ...], ...]}}

    Candles may also be objects with Candle field names.
    """

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)

    async def _open(self) -> None:
        with open(self.path, "r", encoding="utf-8") as f:
            payload = json.load(f)

        if not isinstance(payload, dict):
            raise ValueError(f"{self.path}: expected an object keyed by symbol")

        self._series.clear()
        total = 0
        for symbol, timeframes in payload.items():
            if not isinstance(timeframes, dict):
                raise ValueError(f"{self.path}: expected an object keyed by timeframe for {symbol}")
            for timeframe_value, rows in timeframes.items():
                timeframe = Timeframe(timeframe_value)
                candles = [parse_candle(row, validate_symbol(symbol), timeframe) for row in rows]
                self.add_candles(symbol, timeframe, candles)
                total += len(candles)

        logger.info(f"Loaded {total} candles for {len(self.symbols)} symbols from {self.path}")

    async def _close(self) -> None:
        self._series.clear()
