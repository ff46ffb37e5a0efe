"""
Indicator engine: pure technical indicator calculations.
"""

from .calculations import (
    calculate_bollinger_bands,
    calculate_ema,
    calculate_ema_from_values,
    calculate_macd,
    calculate_momentum,
    calculate_rsi,
    calculate_sma,
    calculate_stochastic,
    calculate_williams_r,
    latest_value,
)
from .registry import IndicatorKind, calculate_indicator, calculate_indicators

__all__ = [
    "IndicatorKind",
    "calculate_bollinger_bands",
    "calculate_ema",
    "calculate_ema_from_values",
    "calculate_indicator",
    "calculate_indicators",
    "calculate_macd",
    "calculate_momentum",
    "calculate_rsi",
    "calculate_sma",
    "calculate_stochastic",
    "calculate_williams_r",
    "latest_value",
]
