"""
Indicator registry.

Maps every IndicatorKind to the calculation that produces it. The table is
checked for completeness at import time, so adding a kind without a
calculation fails immediately instead of being skipped at runtime.
"""

import logging
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from ..config import IndicatorConfig
from ..models.indicators import IndicatorPoint
from ..models.market_data import Candle
from .calculations import (
    calculate_bollinger_bands,
    calculate_ema,
    calculate_macd,
    calculate_momentum,
    calculate_rsi,
    calculate_sma,
    calculate_stochastic,
    calculate_williams_r,
)

logger = logging.getLogger(__name__)


class IndicatorKind(str, Enum):
    """Indicators that can be requested by name."""

    SMA20 = "sma20"
    SMA50 = "sma50"
    EMA12 = "ema12"
    EMA26 = "ema26"
    MACD = "macd"
    RSI = "rsi"
    BOLLINGER = "bollinger"
    STOCHASTIC = "stochastic"
    WILLIAMS_R = "williams"
    MOMENTUM = "momentum"

    @classmethod
    def parse(cls, name: str) -> "IndicatorKind":
        """
        Parse an indicator name (case-insensitive).

        Raises:
            ValueError: If the name is not a known indicator.
        """
        try:
            return cls(name.strip().lower())
        except ValueError:
            known = ", ".join(kind.value for kind in cls)
            raise ValueError(f"Unknown indicator {name!r}; expected one of: {known}")


Calculation = Callable[[Sequence[Candle], IndicatorConfig], List[IndicatorPoint]]

INDICATOR_CALCULATIONS: Dict[IndicatorKind, Calculation] = {
    IndicatorKind.SMA20: lambda candles, cfg: calculate_sma(candles, cfg.sma_short_period),
    IndicatorKind.SMA50: lambda candles, cfg: calculate_sma(candles, cfg.sma_long_period),
    IndicatorKind.EMA12: lambda candles, cfg: calculate_ema(candles, cfg.ema_fast_period),
    IndicatorKind.EMA26: lambda candles, cfg: calculate_ema(candles, cfg.ema_slow_period),
    IndicatorKind.MACD: lambda candles, cfg: calculate_macd(
        candles, cfg.macd_fast, cfg.macd_slow, cfg.macd_signal
    ),
    IndicatorKind.RSI: lambda candles, cfg: calculate_rsi(candles, cfg.rsi_period),
    IndicatorKind.BOLLINGER: lambda candles, cfg: calculate_bollinger_bands(
        candles, cfg.bollinger_period, cfg.bollinger_std_dev
    ),
    IndicatorKind.STOCHASTIC: lambda candles, cfg: calculate_stochastic(
        candles, cfg.stochastic_k, cfg.stochastic_d
    ),
    IndicatorKind.WILLIAMS_R: lambda candles, cfg: calculate_williams_r(candles, cfg.williams_period),
    IndicatorKind.MOMENTUM: lambda candles, cfg: calculate_momentum(candles, cfg.momentum_period),
}

_missing = set(IndicatorKind) - set(INDICATOR_CALCULATIONS)
if _missing:
    raise RuntimeError(f"Indicators without a calculation: {sorted(k.value for k in _missing)}")


def calculate_indicator(
    candles: Sequence[Candle],
    kind: IndicatorKind,
    config: Optional[IndicatorConfig] = None
) -> List[IndicatorPoint]:
    """Calculate a single indicator series."""
    return INDICATOR_CALCULATIONS[kind](candles, config or IndicatorConfig())


def calculate_indicators(
    candles: Sequence[Candle],
    kinds: Optional[Iterable[IndicatorKind]] = None,
    config: Optional[IndicatorConfig] = None
) -> Dict[IndicatorKind, List[IndicatorPoint]]:
    """
    Calculate several indicators over the same candles.

    Args:
        candles: Ascending candle sequence
        kinds: Indicators to calculate, all of them when omitted
        config: Indicator periods, defaults when omitted

    Returns:
        Mapping of indicator kind to its series
    """
    config = config or IndicatorConfig()
    selected = list(kinds) if kinds is not None else list(IndicatorKind)

    results = {}
    for kind in selected:
        results[kind] = INDICATOR_CALCULATIONS[kind](candles, config)

    logger.debug(f"Calculated {len(results)} indicators over {len(candles)} candles")
    return results
