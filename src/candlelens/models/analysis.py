"""
Comprehensive analysis models.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .indicators import IndicatorSeries
from .levels import PivotLevel
from .market_data import Timeframe
from .patterns import PatternResult, SignalType


class ComprehensiveScore(BaseModel):
    """
    Fused single-timeframe score.

    trend and momentum lie in [-100, 100], volatility and confidence in
    [0, 100] for finite input. Non-finite input propagates as NaN, so the
    bounds are not enforced by validation.
    """

    trend: float = Field(..., description="Trend score")
    momentum: float = Field(..., description="Momentum score")
    volatility: float = Field(..., description="Volatility score")
    signal: SignalType = Field(..., description="Derived signal")
    confidence: float = Field(..., description="Signal confidence")

    model_config = ConfigDict(frozen=True)


class ComprehensiveAnalysis(BaseModel):
    """Complete single-timeframe analysis of one instrument."""

    symbol: str
    timeframe: Timeframe
    timestamp: int = Field(..., description="Open time of the last candle (ms)")
    candle_count: int
    current_price: float
    indicators: Dict[str, IndicatorSeries] = Field(default_factory=dict)
    patterns: List[PatternResult] = Field(default_factory=list)
    pivot_levels: List[PivotLevel] = Field(default_factory=list)
    score: ComprehensiveScore
    summary: str
    failed_parts: List[str] = Field(default_factory=list)


class AlertSeverity(str, Enum):
    """Alert severity."""

    INFO = "INFO"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class AlertPayload(BaseModel):
    """Rendered notification handed to an alert dispatcher."""

    title: str
    body: str
    severity: AlertSeverity
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


class BatchAnalysisResult(BaseModel):
    """Per-instrument results of a watchlist run."""

    results: Dict[str, ComprehensiveAnalysis] = Field(default_factory=dict)
    failed_symbols: List[str] = Field(default_factory=list)
    previous_signals: Dict[str, Optional[SignalType]] = Field(default_factory=dict)
