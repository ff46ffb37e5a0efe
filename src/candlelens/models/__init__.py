"""
Data models for the candlelens analysis engine.
"""

from .market_data import Candle, Timeframe, validate_symbol, validate_timeframe
from .indicators import (
    BollingerValue,
    IndicatorPoint,
    IndicatorSeries,
    IndicatorValue,
    MacdValue,
    StochasticValue,
)
from .levels import (
    CurrentPosition,
    KeyLevels,
    Level,
    LevelStrength,
    LevelType,
    PivotLevel,
    PriceAction,
    PriceRange,
    SupportResistanceAnalysis,
    TradingZone,
    ZoneType,
)
from .patterns import PatternKind, PatternRecognitionResult, PatternResult, SignalType
from .trends import (
    MultiTimeframeTrend,
    RiskLevel,
    TimeframeTrend,
    TradingAction,
    TradingSuggestion,
    TrendAlignment,
    TrendState,
)
from .analysis import (
    AlertPayload,
    AlertSeverity,
    BatchAnalysisResult,
    ComprehensiveAnalysis,
    ComprehensiveScore,
)

__all__ = [
    # Market data
    "Candle",
    "Timeframe",
    "validate_symbol",
    "validate_timeframe",
    # Indicators
    "BollingerValue",
    "IndicatorPoint",
    "IndicatorSeries",
    "IndicatorValue",
    "MacdValue",
    "StochasticValue",
    # Levels
    "CurrentPosition",
    "KeyLevels",
    "Level",
    "LevelStrength",
    "LevelType",
    "PivotLevel",
    "PriceAction",
    "PriceRange",
    "SupportResistanceAnalysis",
    "TradingZone",
    "ZoneType",
    # Patterns
    "PatternKind",
    "PatternRecognitionResult",
    "PatternResult",
    "SignalType",
    # Trends
    "MultiTimeframeTrend",
    "RiskLevel",
    "TimeframeTrend",
    "TradingAction",
    "TradingSuggestion",
    "TrendAlignment",
    "TrendState",
    # Analysis
    "AlertPayload",
    "AlertSeverity",
    "BatchAnalysisResult",
    "ComprehensiveAnalysis",
    "ComprehensiveScore",
]
