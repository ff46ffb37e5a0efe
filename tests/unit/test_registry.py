"""
Unit tests for the indicator registry.
"""

import pytest

from candlelens.config import IndicatorConfig
from candlelens.indicators.registry import (
    INDICATOR_CALCULATIONS,
    IndicatorKind,
    calculate_indicator,
    calculate_indicators,
)


class TestIndicatorKind:
    """Test indicator name parsing."""

    def test_every_kind_has_a_calculation(self) -> None:
        assert set(INDICATOR_CALCULATIONS) == set(IndicatorKind)

    @pytest.mark.parametrize("name,expected", [
        ("rsi", IndicatorKind.RSI),
        ("  MACD ", IndicatorKind.MACD),
        ("Williams", IndicatorKind.WILLIAMS_R),
    ])
    def test_parse(self, name: str, expected: IndicatorKind) -> None:
        assert IndicatorKind.parse(name) == expected

    def test_parse_unknown_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown indicator"):
            IndicatorKind.parse("vwap")


class TestCalculateIndicators:
    """Test batch indicator calculation."""

    def test_all_indicators_by_default(self, rising_candles) -> None:
        results = calculate_indicators(rising_candles)

        assert set(results) == set(IndicatorKind)
        assert all(results[kind] for kind in IndicatorKind)

    def test_selected_indicators_only(self, rising_candles) -> None:
        results = calculate_indicators(rising_candles, [IndicatorKind.RSI, IndicatorKind.SMA20])
        assert set(results) == {IndicatorKind.RSI, IndicatorKind.SMA20}

    def test_short_input_gives_empty_series(self, make_candles) -> None:
        results = calculate_indicators(make_candles([100.0] * 30))

        assert results[IndicatorKind.SMA20]
        assert results[IndicatorKind.SMA50] == []
        assert results[IndicatorKind.MACD] == []

    def test_config_periods_are_used(self, rising_candles) -> None:
        config = IndicatorConfig(sma_short_period=5)
        series = calculate_indicator(rising_candles, IndicatorKind.SMA20, config)

        assert len(series) == len(rising_candles) - 4
        assert series[-1].value == pytest.approx(397.0)
