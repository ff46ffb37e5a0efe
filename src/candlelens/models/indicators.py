"""
Indicator series models.

An indicator series is an ordered list of points, one per candle for which
the indicator's lookback could be satisfied. The point value is either a
scalar or a small named tuple (MACD, Bollinger Bands, Stochastic).
"""

from typing import List, Union

from pydantic import BaseModel, ConfigDict, Field

from ..utils import divide


class MacdValue(BaseModel):
    """MACD line, signal line and histogram."""

    macd: float = Field(..., description="Fast EMA minus slow EMA")
    signal: float = Field(..., description="EMA of the MACD line")
    histogram: float = Field(..., description="MACD minus signal")

    model_config = ConfigDict(frozen=True)


class BollingerValue(BaseModel):
    """Bollinger band triple."""

    upper: float = Field(..., description="Upper band")
    middle: float = Field(..., description="Middle band (SMA)")
    lower: float = Field(..., description="Lower band")

    model_config = ConfigDict(frozen=True)

    @property
    def width(self) -> float:
        """Band width relative to the middle band."""
        return divide(self.upper - self.lower, self.middle)


class StochasticValue(BaseModel):
    """Stochastic oscillator %K and %D."""

    k: float = Field(..., description="%K line")
    d: float = Field(..., description="%D line (SMA of %K)")

    model_config = ConfigDict(frozen=True)


IndicatorValue = Union[MacdValue, BollingerValue, StochasticValue, float]


class IndicatorPoint(BaseModel):
    """Single indicator reading aligned to a candle open time."""

    timestamp: int = Field(..., description="Candle open time in epoch milliseconds")
    value: IndicatorValue = Field(..., description="Scalar or composite indicator value")

    model_config = ConfigDict(frozen=True)


IndicatorSeries = List[IndicatorPoint]
