"""
candlelens - quantitative technical analysis engine.

Computes indicators, support/resistance levels, chart patterns,
multi-timeframe trends and fused trading signals from candle series.
"""

__version__ = "0.1.0"
__author__ = "candlelens team"

from .config import Config
from .logger import get_logger

__all__ = ["Config", "get_logger"]
