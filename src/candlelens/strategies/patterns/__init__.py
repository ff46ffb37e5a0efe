"""
Chart pattern recognition.
"""

from .base import PatternDetector
from .chart_patterns import BoxPatternDetector, BreakoutPatternDetector, TrendPatternDetector
from .reversal import DoubleBottomDetector, DoubleTopDetector, HeadAndShouldersDetector
from .recognizer import PatternRecognizer

__all__ = [
    "BoxPatternDetector",
    "BreakoutPatternDetector",
    "DoubleBottomDetector",
    "DoubleTopDetector",
    "HeadAndShouldersDetector",
    "PatternDetector",
    "PatternRecognizer",
    "TrendPatternDetector",
]
