"""
Technical Indicator Calculations

Pure functions over an ascending candle sequence. Each function returns an
indicator series with one point per candle whose lookback is satisfied;
input shorter than the minimum length yields an empty list.

Implemented indicators:
- SMA / EMA: simple and exponential moving averages of closes
- MACD: fast EMA minus slow EMA with signal line and histogram
- RSI: Wilder-smoothed relative strength index
- Bollinger Bands: SMA middle band with population standard deviation
- Stochastic: %K / %D oscillator
- Williams %R
- Momentum: percentage change over a period

NaN and infinite prices are not filtered and propagate to the output.
"""

import math
from typing import List, Sequence

from ..models.indicators import (
    BollingerValue,
    IndicatorPoint,
    MacdValue,
    StochasticValue,
)
from ..models.market_data import Candle
from ..utils import divide, mean, population_std

# Loss floor applied before computing RS
RSI_LOSS_FLOOR = 0.0001


def calculate_sma(candles: Sequence[Candle], period: int = 20) -> List[IndicatorPoint]:
    """Simple moving average of closes."""
    if period < 1 or len(candles) < period:
        return []

    results = []
    for i in range(period - 1, len(candles)):
        window = candles[i - period + 1:i + 1]
        total = sum(c.close for c in window)
        results.append(IndicatorPoint(timestamp=candles[i].open_time, value=total / period))

    return results


def calculate_ema_from_values(values: Sequence[IndicatorPoint], period: int) -> List[IndicatorPoint]:
    """
    Exponential moving average over an arbitrary scalar series.

    The first value is the SMA of the first ``period`` values, every later
    value applies ``value * k + previous * (1 - k)`` with ``k = 2 / (period + 1)``.
    The update is evaluated as ``previous + k * (value - previous)`` so a
    constant input reproduces the constant exactly.
    """
    if period < 1 or len(values) < period:
        return []

    multiplier = 2 / (period + 1)
    seed = sum(p.value for p in values[:period]) / period

    results = [IndicatorPoint(timestamp=values[period - 1].timestamp, value=seed)]
    previous = seed
    for point in values[period:]:
        previous = previous + multiplier * (point.value - previous)
        results.append(IndicatorPoint(timestamp=point.timestamp, value=previous))

    return results


def calculate_ema(candles: Sequence[Candle], period: int = 20) -> List[IndicatorPoint]:
    """Exponential moving average of closes."""
    closes = [IndicatorPoint(timestamp=c.open_time, value=c.close) for c in candles]
    return calculate_ema_from_values(closes, period)


def calculate_macd(
    candles: Sequence[Candle],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9
) -> List[IndicatorPoint]:
    """
    Moving Average Convergence Divergence.

    The fast and slow EMA series are aligned on their common tail, the
    signal line is an EMA of the MACD line and the histogram is their
    difference.
    """
    if len(candles) < slow_period + signal_period:
        return []

    fast_ema = calculate_ema(candles, fast_period)
    slow_ema = calculate_ema(candles, slow_period)

    common = min(len(fast_ema), len(slow_ema))
    fast_tail = fast_ema[len(fast_ema) - common:]
    slow_tail = slow_ema[len(slow_ema) - common:]

    macd_line = [
        IndicatorPoint(timestamp=slow.timestamp, value=fast.value - slow.value)
        for fast, slow in zip(fast_tail, slow_tail)
    ]

    signal_line = calculate_ema_from_values(macd_line, signal_period)

    length = min(len(macd_line), len(signal_line))
    macd_tail = macd_line[len(macd_line) - length:]
    signal_tail = signal_line[len(signal_line) - length:]

    return [
        IndicatorPoint(
            timestamp=macd.timestamp,
            value=MacdValue(
                macd=macd.value,
                signal=signal.value,
                histogram=macd.value - signal.value,
            ),
        )
        for macd, signal in zip(macd_tail, signal_tail)
    ]


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    rs = divide(avg_gain, avg_loss or RSI_LOSS_FLOOR)
    return 100 - 100 / (1 + rs)


def calculate_rsi(candles: Sequence[Candle], period: int = 14) -> List[IndicatorPoint]:
    """
    Relative Strength Index with Wilder smoothing.

    Averages are seeded with the simple mean of the first ``period`` gains
    and losses, then updated as ``(avg * (period - 1) + value) / period``.
    """
    if period < 1 or len(candles) < period + 1:
        return []

    gains = []
    losses = []
    for i in range(1, len(candles)):
        change = candles[i].close - candles[i - 1].close
        if math.isnan(change):
            # Keep corrupt closes visible instead of counting them as flat
            gains.append(change)
            losses.append(change)
            continue
        gains.append(change if change > 0 else 0.0)
        losses.append(-change if change < 0 else 0.0)

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period

    results = [
        IndicatorPoint(
            timestamp=candles[period].open_time,
            value=_rsi_from_averages(avg_gain, avg_loss),
        )
    ]

    for i in range(period, len(gains)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        results.append(
            IndicatorPoint(
                timestamp=candles[i + 1].open_time,
                value=_rsi_from_averages(avg_gain, avg_loss),
            )
        )

    return results


def calculate_bollinger_bands(
    candles: Sequence[Candle],
    period: int = 20,
    std_dev: float = 2.0
) -> List[IndicatorPoint]:
    """Bollinger Bands using the population standard deviation of the window."""
    if period < 1 or len(candles) < period:
        return []

    results = []
    for i in range(period - 1, len(candles)):
        prices = [c.close for c in candles[i - period + 1:i + 1]]
        middle = mean(prices)
        deviation = population_std(prices)

        results.append(
            IndicatorPoint(
                timestamp=candles[i].open_time,
                value=BollingerValue(
                    upper=middle + deviation * std_dev,
                    middle=middle,
                    lower=middle - deviation * std_dev,
                ),
            )
        )

    return results


def calculate_stochastic(
    candles: Sequence[Candle],
    k_period: int = 14,
    d_period: int = 3
) -> List[IndicatorPoint]:
    """
    Stochastic oscillator.

    %K = (close - lowest low) / (highest high - lowest low) * 100 over
    ``k_period`` candles; %D is the SMA of %K over ``d_period`` values.
    """
    if k_period < 1 or d_period < 1 or len(candles) < k_period:
        return []

    k_values = []
    for i in range(k_period - 1, len(candles)):
        window = candles[i - k_period + 1:i + 1]
        highest_high = max(c.high for c in window)
        lowest_low = min(c.low for c in window)
        k = divide(candles[i].close - lowest_low, highest_high - lowest_low) * 100
        k_values.append((candles[i].open_time, k))

    results = []
    for i in range(d_period - 1, len(k_values)):
        window = k_values[i - d_period + 1:i + 1]
        d = sum(k for _, k in window) / d_period
        timestamp, k = k_values[i]
        results.append(IndicatorPoint(timestamp=timestamp, value=StochasticValue(k=k, d=d)))

    return results


def calculate_williams_r(candles: Sequence[Candle], period: int = 14) -> List[IndicatorPoint]:
    """Williams %R: (highest high - close) / (highest high - lowest low) * -100."""
    if period < 1 or len(candles) < period:
        return []

    results = []
    for i in range(period - 1, len(candles)):
        window = candles[i - period + 1:i + 1]
        highest_high = max(c.high for c in window)
        lowest_low = min(c.low for c in window)
        value = divide(highest_high - candles[i].close, highest_high - lowest_low) * -100
        results.append(IndicatorPoint(timestamp=candles[i].open_time, value=value))

    return results


def calculate_momentum(candles: Sequence[Candle], period: int = 10) -> List[IndicatorPoint]:
    """Percentage price change over ``period`` candles."""
    if period < 1 or len(candles) < period + 1:
        return []

    results = []
    for i in range(period, len(candles)):
        previous = candles[i - period].close
        value = divide(candles[i].close - previous, previous) * 100
        results.append(IndicatorPoint(timestamp=candles[i].open_time, value=value))

    return results


def latest_value(series: Sequence[IndicatorPoint]):
    """Last value of a series, or None when the series is empty."""
    if not series:
        return None
    return series[-1].value
