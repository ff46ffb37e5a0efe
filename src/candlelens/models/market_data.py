"""
Core Market Data Models

This module contains Pydantic models for the market data consumed by the
analysis engines:
- Timeframe: Enumeration of supported candle durations with analysis weights
- Candle: OHLCV bar as delivered by the acquisition layer
- validate_symbol: Instrument identifier validation shared by entry points

Prices and volumes are plain floats. NaN and infinities are accepted on
purpose: the engines propagate them so a data-quality monitor downstream
can spot feed corruption.
"""

import math
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator


SYMBOL_PATTERN = re.compile(r"^[A-Z0-9]{1,20}$")


class Timeframe(str, Enum):
    """Supported candle timeframes."""

    ONE_MINUTE = "1m"
    FIVE_MINUTES = "5m"
    FIFTEEN_MINUTES = "15m"
    ONE_HOUR = "1h"
    FOUR_HOURS = "4h"
    ONE_DAY = "1d"

    @property
    def seconds(self) -> int:
        """Convert timeframe to seconds."""
        mapping = {
            "1m": 60,
            "5m": 300,
            "15m": 900,
            "1h": 3600,
            "4h": 14400,
            "1d": 86400,
        }
        return mapping[self.value]

    @property
    def milliseconds(self) -> int:
        """Convert timeframe to milliseconds."""
        return self.seconds * 1000

    @property
    def weight(self) -> int:
        """Analysis weight: longer timeframes carry more weight."""
        mapping = {
            "1d": 4,
            "4h": 3,
            "1h": 2,
            "15m": 1,
        }
        return mapping.get(self.value, 1)

    @property
    def confidence_bonus(self) -> int:
        """Confidence bonus for levels discovered on this timeframe."""
        mapping = {
            "1d": 15,
            "4h": 10,
            "1h": 5,
        }
        return mapping.get(self.value, 0)


def validate_symbol(symbol: str) -> str:
    """
    Normalize and validate an instrument identifier.

    Raises:
        ValueError: If the symbol is not 1-20 uppercase letters or digits.
    """
    if not isinstance(symbol, str):
        raise ValueError(f"Symbol must be a string, got {type(symbol).__name__}")

    normalized = symbol.upper().strip()
    if not SYMBOL_PATTERN.match(normalized):
        raise ValueError(f"Symbol must contain 1-20 letters or digits: {symbol!r}")

    return normalized


def validate_timeframe(timeframe: Any) -> Timeframe:
    """
    Parse a timeframe identifier.

    Raises:
        ValueError: If the identifier is not a supported timeframe.
    """
    if isinstance(timeframe, Timeframe):
        return timeframe
    try:
        return Timeframe(str(timeframe).strip())
    except ValueError:
        supported = ", ".join(tf.value for tf in Timeframe)
        raise ValueError(f"Unsupported timeframe {timeframe!r}; expected one of: {supported}")


class Candle(BaseModel):
    """
    OHLCV candle.

    Matches the exchange kline layout:
    [openTime, open, high, low, close, volume, closeTime, quoteVolume, tradeCount]

    Candles are ordered ascending by open time, one series per
    (instrument, timeframe), and never mutated after creation.
    """

    open_time: int = Field(
        ...,
        description="Candle open time in epoch milliseconds",
        ge=0
    )
    close_time: int = Field(
        ...,
        description="Candle close time in epoch milliseconds",
        ge=0
    )
    open: float = Field(..., description="Opening price")
    high: float = Field(..., description="Highest price")
    low: float = Field(..., description="Lowest price")
    close: float = Field(..., description="Closing price")
    volume: float = Field(default=0.0, description="Base asset volume")
    quote_volume: float = Field(default=0.0, description="Quote asset volume")
    trade_count: int = Field(default=0, description="Number of trades", ge=0)
    symbol: Optional[str] = Field(default=None, description="Instrument symbol")
    timeframe: Optional[Timeframe] = Field(default=None, description="Candle timeframe")

    model_config = ConfigDict(frozen=True)

    @field_validator('symbol')
    @classmethod
    def normalize_symbol(cls, v: Optional[str]) -> Optional[str]:
        """Validate and normalize the symbol when present."""
        if v is None:
            return v
        return validate_symbol(v)

    @model_validator(mode='after')
    def validate_price_relationships(self):
        """Validate time ordering and high/low ordering of finite values."""
        if self.close_time < self.open_time:
            raise ValueError(
                f"Close time {self.close_time} must be >= open time {self.open_time}"
            )
        if math.isfinite(self.high) and math.isfinite(self.low) and self.high < self.low:
            raise ValueError(f"High price {self.high} must be >= low price {self.low}")
        return self

    @classmethod
    def from_kline(
        cls,
        kline: Sequence[Any],
        symbol: Optional[str] = None,
        timeframe: Optional[Timeframe] = None
    ) -> 'Candle':
        """
        Create a Candle from an exchange kline array.

        Expected format: [openTime, open, high, low, close, volume, closeTime,
        quoteVolume, tradeCount, ...]; trailing fields are optional.
        """
        open_time = int(kline[0])
        close_time = int(kline[6]) if len(kline) > 6 else open_time
        return cls(
            open_time=open_time,
            close_time=close_time,
            open=float(kline[1]),
            high=float(kline[2]),
            low=float(kline[3]),
            close=float(kline[4]),
            volume=float(kline[5]) if len(kline) > 5 else 0.0,
            quote_volume=float(kline[7]) if len(kline) > 7 else 0.0,
            trade_count=int(kline[8]) if len(kline) > 8 else 0,
            symbol=symbol,
            timeframe=timeframe,
        )

    def to_kline(self) -> list:
        """Convert to the exchange kline array layout."""
        return [
            self.open_time,
            self.open,
            self.high,
            self.low,
            self.close,
            self.volume,
            self.close_time,
            self.quote_volume,
            self.trade_count,
        ]

    @computed_field
    @property
    def timestamp(self) -> datetime:
        """Open time as a timezone-aware UTC datetime."""
        return datetime.fromtimestamp(self.open_time / 1000, tz=timezone.utc)

    @property
    def body_size(self) -> float:
        """Absolute difference between open and close."""
        return abs(self.close - self.open)

    @property
    def is_bullish(self) -> bool:
        """Check if candle is bullish (close > open)."""
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        """Check if candle is bearish (close < open)."""
        return self.close < self.open
