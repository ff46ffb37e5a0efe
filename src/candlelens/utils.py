"""
Numeric helpers shared by the analysis engines.

Division and rounding keep IEEE-754 semantics: NaN and infinities pass
through untouched so corrupt upstream data stays visible in the results.
The statistical helpers return NaN for empty or non-finite input.
"""

import math
import re
import statistics
from typing import Sequence

SIZE_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)\s*([KMG]?B)?$")
SIZE_UNITS = {"B": 1, "KB": 1024, "MB": 1024 ** 2, "GB": 1024 ** 3}


def divide(numerator: float, denominator: float) -> float:
    """
    IEEE-754 division.

    x/0 yields +-inf and 0/0 yields nan instead of raising.
    """
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)
    return numerator / denominator


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]; nan is returned as is."""
    if math.isnan(value):
        return value
    return max(low, min(high, value))


def round_half_up(value: float) -> float:
    """Round to the nearest integer with ties going up; non-finite values pass through."""
    if not math.isfinite(value):
        return value
    return float(math.floor(value + 0.5))


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; nan for an empty or non-finite sequence."""
    if not values or not all(math.isfinite(v) for v in values):
        return math.nan
    return statistics.fmean(values)


def population_std(values: Sequence[float]) -> float:
    """Population standard deviation (divides by n); nan for an empty or non-finite sequence."""
    if not values or not all(math.isfinite(v) for v in values):
        return math.nan
    return statistics.pstdev(values)


def simple_returns(prices: Sequence[float]) -> list:
    """Simple period-over-period returns."""
    return [divide(prices[i] - prices[i - 1], prices[i - 1]) for i in range(1, len(prices))]


def returns_volatility(prices: Sequence[float]) -> float:
    """Population standard deviation of simple returns."""
    return population_std(simple_returns(prices))


def parse_size(size: str) -> int:
    """
    Parse a size such as '10MB', '1.5kb' or '512' into bytes.

    Raises:
        ValueError: If the string is not a number with an optional B/KB/MB/GB unit.
    """
    match = SIZE_PATTERN.match(size.strip().upper())
    if not match:
        raise ValueError(f"Invalid size: {size!r}")
    number, unit = match.groups()
    return int(float(number) * SIZE_UNITS[unit or "B"])
