"""
Analysis engines: support/resistance levels, chart patterns, multi-timeframe
trend aggregation and comprehensive scoring.
"""

from .support_resistance import SupportResistanceAnalyzer
from .patterns import PatternRecognizer
from .trend_analyzer import MultiTimeframeTrendAnalyzer
from .scoring import ComprehensiveScorer, derive_signal

__all__ = [
    "ComprehensiveScorer",
    "MultiTimeframeTrendAnalyzer",
    "PatternRecognizer",
    "SupportResistanceAnalyzer",
    "derive_signal",
]
