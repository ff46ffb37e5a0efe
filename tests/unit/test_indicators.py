"""
Unit tests for technical indicator calculations.
"""

import math

import pytest

from candlelens.indicators.calculations import (
    calculate_bollinger_bands,
    calculate_ema,
    calculate_macd,
    calculate_momentum,
    calculate_rsi,
    calculate_sma,
    calculate_stochastic,
    calculate_williams_r,
    latest_value,
)
from candlelens.models.indicators import BollingerValue, MacdValue, StochasticValue


class TestMovingAverages:
    """Test SMA and EMA."""

    def test_sma_values_and_timestamps(self, make_candles) -> None:
        candles = make_candles([1, 2, 3, 4, 5])
        result = calculate_sma(candles, 3)

        assert [p.value for p in result] == [2.0, 3.0, 4.0]
        assert result[0].timestamp == candles[2].open_time
        assert result[-1].timestamp == candles[-1].open_time

    def test_sma_short_input_is_empty(self, make_candles) -> None:
        assert calculate_sma(make_candles([1, 2]), 3) == []
        assert calculate_sma([], 20) == []

    def test_ema_seeded_with_sma(self, make_candles) -> None:
        candles = make_candles([2, 4, 6, 8])
        result = calculate_ema(candles, 3)

        # seed = 4, k = 0.5
        assert result[0].value == pytest.approx(4.0)
        assert result[1].value == pytest.approx(6.0)
        assert len(result) == 2

    def test_ema_constant_series_is_exact(self, make_candles) -> None:
        candles = make_candles([64.0] * 80)
        result = calculate_ema(candles, 20)

        assert len(result) == 61
        assert all(p.value == 64.0 for p in result)

    def test_ema_short_input_is_empty(self, make_candles) -> None:
        assert calculate_ema(make_candles([1.0] * 19), 20) == []


class TestRsi:
    """Test RSI with Wilder smoothing."""

    def test_rsi_requires_period_plus_one(self, make_candles) -> None:
        assert calculate_rsi(make_candles([1.0] * 14), 14) == []
        assert len(calculate_rsi(make_candles([1.0] * 15), 14)) == 1

    def test_rsi_all_gains_near_100(self, rising_candles) -> None:
        result = calculate_rsi(rising_candles, 14)

        assert len(result) == len(rising_candles) - 14
        assert all(99.9 < p.value <= 100 for p in result)

    def test_rsi_all_losses_is_zero(self, falling_candles) -> None:
        result = calculate_rsi(falling_candles, 14)
        assert all(p.value == pytest.approx(0.0) for p in result)

    def test_rsi_bounded(self, make_candles) -> None:
        closes = [100 + 10 * math.sin(i / 3) for i in range(100)]
        result = calculate_rsi(make_candles(closes), 14)

        assert result
        assert all(0 <= p.value <= 100 for p in result)

    def test_rsi_wilder_step(self, make_candles) -> None:
        # changes: +1, -1, +2 with period 2
        candles = make_candles([10, 11, 10, 12])
        result = calculate_rsi(candles, 2)

        # seed: gain 0.5, loss 0.5 -> 50
        assert result[0].value == pytest.approx(50.0)
        # step: gain (0.5 + 2) / 2 = 1.25, loss 0.25 -> rs 5
        assert result[1].value == pytest.approx(100 - 100 / 6)
        assert result[1].timestamp == candles[3].open_time


class TestMacd:
    """Test MACD."""

    def test_macd_minimum_length(self, make_candles) -> None:
        assert calculate_macd(make_candles([1.0] * 34)) == []
        candles = make_candles([1.0 + i for i in range(35)])
        result = calculate_macd(candles)

        # 10 slow EMA values leave room for 2 signal values
        assert len(result) == 2
        assert result[-1].timestamp == candles[-1].open_time

    def test_macd_histogram_is_difference(self, rising_candles) -> None:
        result = calculate_macd(rising_candles)

        assert result
        for point in result:
            assert isinstance(point.value, MacdValue)
            assert point.value.histogram == pytest.approx(point.value.macd - point.value.signal)

    def test_macd_positive_in_uptrend(self, rising_candles) -> None:
        value = latest_value(calculate_macd(rising_candles))
        assert value.macd > 0


class TestBollingerBands:
    """Test Bollinger Bands."""

    def test_band_ordering(self, make_candles) -> None:
        closes = [100 + (i % 7) * 1.5 for i in range(60)]
        result = calculate_bollinger_bands(make_candles(closes))

        assert len(result) == 41
        for point in result:
            assert isinstance(point.value, BollingerValue)
            assert point.value.upper >= point.value.middle >= point.value.lower

    def test_population_std(self, make_candles) -> None:
        candles = make_candles([1, 2, 3, 4])
        value = latest_value(calculate_bollinger_bands(candles, period=4, std_dev=1))

        assert value.middle == pytest.approx(2.5)
        assert value.upper - value.middle == pytest.approx(math.sqrt(1.25))

    def test_constant_series_collapses(self, make_candles) -> None:
        value = latest_value(calculate_bollinger_bands(make_candles([50.0] * 20)))
        assert value.upper == value.middle == value.lower == 50.0
        assert value.width == 0


class TestOscillators:
    """Test stochastic, Williams %R and momentum."""

    def test_stochastic_at_range_top(self, rising_candles) -> None:
        result = calculate_stochastic(rising_candles)

        assert len(result) == len(rising_candles) - 13 - 2
        value = result[-1].value
        assert isinstance(value, StochasticValue)
        # close sits 0.5 below the window high
        assert 90 < value.k < 100
        assert value.d == pytest.approx(value.k)

    def test_stochastic_flat_window_is_nan(self, make_candles) -> None:
        candles = make_candles([10.0] * 20, spread=0.0)
        value = latest_value(calculate_stochastic(candles))
        assert math.isnan(value.k)

    def test_williams_r_range(self, make_candles) -> None:
        closes = [100 + 5 * math.sin(i / 2) for i in range(40)]
        result = calculate_williams_r(make_candles(closes))

        assert len(result) == 27
        assert all(-100 <= p.value <= 0 for p in result)

    def test_momentum_percentage(self, make_candles) -> None:
        candles = make_candles([100.0] * 10 + [110.0])
        result = calculate_momentum(candles, 10)

        assert len(result) == 1
        assert result[0].value == pytest.approx(10.0)

    def test_momentum_short_input(self, make_candles) -> None:
        assert calculate_momentum(make_candles([1.0] * 10), 10) == []


class TestNonFiniteInput:
    """NaN prices propagate instead of being filtered."""

    def test_nan_close_propagates_to_sma(self, make_candles) -> None:
        closes = [100.0] * 5
        closes[2] = math.nan
        result = calculate_sma(make_candles(closes), 3)

        assert all(math.isnan(p.value) for p in result)

    def test_nan_close_propagates_to_rsi(self, make_candles) -> None:
        closes = [100.0 + i for i in range(20)]
        closes[5] = math.nan
        result = calculate_rsi(make_candles(closes), 14)

        assert math.isnan(result[-1].value)

    def test_latest_value_empty(self) -> None:
        assert latest_value([]) is None
