"""
Multi-Timeframe Trend Models

Models for per-timeframe trend classification and their weighted fusion:
- TrendState: seven ordered trend labels
- TimeframeTrend: classification of one timeframe
- TrendAlignment: agreement between timeframes
- TradingSuggestion: action derived from trend and alignment
- MultiTimeframeTrend: complete fused result
"""

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field

from .market_data import Timeframe


class TrendState(str, Enum):
    """Seven ordered trend states, strongest up first."""

    STRONG_UPTREND = "STRONG_UPTREND"
    UPTREND = "UPTREND"
    WEAK_UPTREND = "WEAK_UPTREND"
    RANGING = "RANGING"
    WEAK_DOWNTREND = "WEAK_DOWNTREND"
    DOWNTREND = "DOWNTREND"
    STRONG_DOWNTREND = "STRONG_DOWNTREND"

    @property
    def score(self) -> int:
        """Seven point score from +3 (strong up) to -3 (strong down)."""
        return {
            "STRONG_UPTREND": 3,
            "UPTREND": 2,
            "WEAK_UPTREND": 1,
            "RANGING": 0,
            "WEAK_DOWNTREND": -1,
            "DOWNTREND": -2,
            "STRONG_DOWNTREND": -3,
        }[self.value]

    @property
    def is_up(self) -> bool:
        return self.score > 0

    @property
    def is_down(self) -> bool:
        return self.score < 0

    @property
    def is_strong(self) -> bool:
        return "STRONG" in self.value

    @classmethod
    def from_score(cls, score: float) -> "TrendState":
        """Select the overall trend label for a weighted average score."""
        if score >= 2.5:
            return cls.STRONG_UPTREND
        if score >= 1.5:
            return cls.UPTREND
        if score >= 0.5:
            return cls.WEAK_UPTREND
        if score <= -2.5:
            return cls.STRONG_DOWNTREND
        if score <= -1.5:
            return cls.DOWNTREND
        if score <= -0.5:
            return cls.WEAK_DOWNTREND
        return cls.RANGING


class TradingAction(str, Enum):
    """Suggested trading action."""

    STRONG_BUY = "STRONG_BUY"
    BUY = "BUY"
    HOLD = "HOLD"
    SELL = "SELL"
    STRONG_SELL = "STRONG_SELL"
    WAIT = "WAIT"


class RiskLevel(str, Enum):
    """Risk attached to a suggestion."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class TimeframeTrend(BaseModel):
    """Trend classification for a single timeframe."""

    timeframe: Timeframe = Field(..., description="Analysed timeframe")
    trend: TrendState = Field(..., description="Trend state")
    confidence: float = Field(..., description="Confidence percentage (0-100)")
    trend_strength: float = Field(..., description="Trend strength (0-100)")
    current_price: float = Field(..., description="Last close")
    ema20: float = Field(..., description="Short EMA")
    ema60: float = Field(..., description="Medium EMA")
    ema120: float = Field(..., description="Long EMA")
    divergence: bool = Field(default=False, description="Price/EMA divergence detected")
    analysis: str = Field(default="", description="Human readable explanation")

    model_config = ConfigDict(frozen=True)


class TrendAlignment(BaseModel):
    """How much the analysed timeframes agree."""

    is_aligned: bool = Field(..., description="Enough timeframes share one direction")
    alignment_score: float = Field(..., description="Largest group share in percent")
    conflicting_timeframes: List[Timeframe] = Field(default_factory=list)


class TradingSuggestion(BaseModel):
    """Action suggested by the fused trend."""

    action: TradingAction
    reason: str
    risk_level: RiskLevel


class MultiTimeframeTrend(BaseModel):
    """Weighted fusion of per-timeframe trends."""

    symbol: str = Field(..., description="Instrument symbol")
    timestamp: int = Field(..., description="Latest candle open time across timeframes (ms)")
    overall_trend: TrendState
    overall_confidence: float
    timeframes: Dict[Timeframe, TimeframeTrend] = Field(default_factory=dict)
    alignment: TrendAlignment
    trading_suggestion: TradingSuggestion
    failed_timeframes: List[Timeframe] = Field(default_factory=list)
