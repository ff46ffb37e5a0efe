"""
Unit tests for multi-timeframe trend analysis.
"""

import pytest

from candlelens.config import TrendConfig
from candlelens.models.market_data import Timeframe
from candlelens.models.trends import (
    RiskLevel,
    TimeframeTrend,
    TradingAction,
    TrendAlignment,
    TrendState,
)
from candlelens.strategies.trend_analyzer import (
    MultiTimeframeTrendAnalyzer,
    classify_trend,
    detect_divergence,
    ema_slope,
    trend_strength,
)

ALL_TIMEFRAMES = [Timeframe.FIFTEEN_MINUTES, Timeframe.ONE_HOUR, Timeframe.FOUR_HOURS, Timeframe.ONE_DAY]


def make_trend(timeframe: Timeframe, state: TrendState, confidence: float = 70) -> TimeframeTrend:
    return TimeframeTrend(
        timeframe=timeframe,
        trend=state,
        confidence=confidence,
        trend_strength=60,
        current_price=100,
        ema20=100,
        ema60=100,
        ema120=100,
    )


class TestTrendHelpers:
    """Test the per-timeframe building blocks."""

    def test_ema_slope(self) -> None:
        assert ema_slope([100.0, 105.0, 110.0]) == pytest.approx(0.1 / 3)
        assert ema_slope([100.0]) == 0.0

    def test_classify_strong_uptrend(self) -> None:
        assert classify_trend(110, 100, 95, 90, 0.003) == TrendState.STRONG_UPTREND

    def test_classify_weak_downtrend(self) -> None:
        assert classify_trend(89, 90, 95, 100, -0.0005) == TrendState.WEAK_DOWNTREND

    def test_classify_ranging_when_unordered(self) -> None:
        assert classify_trend(100, 101, 99, 102, 0.01) == TrendState.RANGING

    def test_trend_strength_bounded(self) -> None:
        closes = [100 + i * 5 for i in range(30)]
        assert 0 <= trend_strength(closes[-1], 150, 120, 100, closes) <= 100

    def test_divergence_at_highs(self) -> None:
        closes = [100 + i for i in range(20)]
        emas = [100 - i for i in range(20)]
        assert detect_divergence(closes, emas)

    def test_no_divergence_when_aligned(self) -> None:
        closes = [100 + i for i in range(20)]
        assert not detect_divergence(closes, closes)

    def test_divergence_needs_twenty_values(self) -> None:
        assert not detect_divergence([1.0] * 19, [1.0] * 19)


class TestAnalyzeTimeframe:
    """Test single-timeframe classification."""

    def test_rising_series(self, rising_candles) -> None:
        analyzer = MultiTimeframeTrendAnalyzer(TrendConfig())
        result = analyzer.analyze_timeframe(rising_candles, Timeframe.ONE_HOUR)

        assert result.trend == TrendState.UPTREND
        assert result.current_price > result.ema20 > result.ema60 > result.ema120
        assert 0 <= result.confidence <= 100
        assert result.confidence == round(result.confidence)
        assert result.analysis.startswith("1h shows uptrend")

    def test_insufficient_candles(self, rising_candles) -> None:
        analyzer = MultiTimeframeTrendAnalyzer(TrendConfig())
        assert analyzer.analyze_timeframe(rising_candles[:119], Timeframe.ONE_HOUR) is None


class TestMultiTimeframeAnalysis:
    """Test the weighted fusion."""

    def test_monotonic_series_is_aligned(self, rising_candles) -> None:
        analyzer = MultiTimeframeTrendAnalyzer(TrendConfig())
        result = analyzer.analyze("BTCUSDT", {tf: rising_candles for tf in ALL_TIMEFRAMES})

        assert all(t.trend.is_up for t in result.timeframes.values())
        assert result.overall_trend == TrendState.UPTREND
        assert result.alignment.is_aligned
        assert result.alignment.alignment_score == 100
        assert result.alignment.conflicting_timeframes == []
        assert result.trading_suggestion.action == TradingAction.BUY
        assert result.trading_suggestion.risk_level == RiskLevel.LOW
        assert result.timestamp == rising_candles[-1].open_time
        assert result.failed_timeframes == []
        assert 0 <= result.overall_confidence <= 100

    def test_falling_series(self, falling_candles) -> None:
        analyzer = MultiTimeframeTrendAnalyzer(TrendConfig())
        result = analyzer.analyze("BTCUSDT", {tf: falling_candles for tf in ALL_TIMEFRAMES})

        assert result.overall_trend.is_down
        assert result.trading_suggestion.action in (TradingAction.SELL, TradingAction.STRONG_SELL)

    def test_short_timeframe_is_failed(self, rising_candles) -> None:
        analyzer = MultiTimeframeTrendAnalyzer(TrendConfig())
        result = analyzer.analyze(
            "BTCUSDT",
            {Timeframe.ONE_HOUR: rising_candles, Timeframe.FOUR_HOURS: rising_candles[:100]},
            failed_timeframes=[Timeframe.ONE_DAY],
        )

        assert list(result.timeframes) == [Timeframe.ONE_HOUR]
        assert result.failed_timeframes == [Timeframe.FOUR_HOURS, Timeframe.ONE_DAY]
        assert result.alignment.is_aligned
        assert result.alignment.alignment_score == 100

    def test_two_agreeing_timeframes_are_aligned(self, rising_candles) -> None:
        analyzer = MultiTimeframeTrendAnalyzer(TrendConfig())
        result = analyzer.analyze(
            "BTCUSDT", {Timeframe.ONE_HOUR: rising_candles, Timeframe.ONE_DAY: rising_candles}
        )

        assert all(t.trend == TrendState.UPTREND for t in result.timeframes.values())
        assert result.alignment.is_aligned
        assert result.alignment.alignment_score == 100
        assert result.trading_suggestion.action == TradingAction.BUY
        assert result.trading_suggestion.risk_level == RiskLevel.LOW

    def test_nothing_analysable_raises(self, rising_candles) -> None:
        analyzer = MultiTimeframeTrendAnalyzer(TrendConfig())
        with pytest.raises(ValueError):
            analyzer.analyze("BTCUSDT", {Timeframe.ONE_HOUR: rising_candles[:50]})


class TestAggregation:
    """Test overall trend, alignment and suggestions."""

    def test_overall_trend_is_weighted(self) -> None:
        trends = {
            Timeframe.ONE_DAY: make_trend(Timeframe.ONE_DAY, TrendState.STRONG_UPTREND),
            Timeframe.FIFTEEN_MINUTES: make_trend(Timeframe.FIFTEEN_MINUTES, TrendState.STRONG_DOWNTREND),
        }
        # (3 * 4 - 3 * 1) / 5 = 1.8
        assert MultiTimeframeTrendAnalyzer.calculate_overall_trend(trends) == TrendState.UPTREND

    def test_alignment_conflicts(self) -> None:
        analyzer = MultiTimeframeTrendAnalyzer(TrendConfig())
        trends = {
            Timeframe.FIFTEEN_MINUTES: make_trend(Timeframe.FIFTEEN_MINUTES, TrendState.DOWNTREND),
            Timeframe.ONE_HOUR: make_trend(Timeframe.ONE_HOUR, TrendState.UPTREND),
            Timeframe.FOUR_HOURS: make_trend(Timeframe.FOUR_HOURS, TrendState.WEAK_UPTREND),
            Timeframe.ONE_DAY: make_trend(Timeframe.ONE_DAY, TrendState.RANGING),
        }

        alignment = analyzer.analyze_alignment(trends, TrendState.UPTREND)

        assert not alignment.is_aligned
        assert alignment.alignment_score == 50
        assert alignment.conflicting_timeframes == [Timeframe.FIFTEEN_MINUTES]

    @pytest.mark.parametrize("aligned,score,overall,action,risk", [
        (True, 100, TrendState.STRONG_UPTREND, TradingAction.STRONG_BUY, RiskLevel.LOW),
        (True, 100, TrendState.WEAK_UPTREND, TradingAction.BUY, RiskLevel.LOW),
        (True, 90, TrendState.STRONG_DOWNTREND, TradingAction.STRONG_SELL, RiskLevel.LOW),
        (True, 90, TrendState.DOWNTREND, TradingAction.SELL, RiskLevel.LOW),
        (True, 100, TrendState.RANGING, TradingAction.HOLD, RiskLevel.MEDIUM),
        (True, 75, TrendState.UPTREND, TradingAction.HOLD, RiskLevel.MEDIUM),
        (False, 40, TrendState.UPTREND, TradingAction.WAIT, RiskLevel.HIGH),
    ])
    def test_trading_suggestion(self, aligned, score, overall, action, risk) -> None:
        alignment = TrendAlignment(is_aligned=aligned, alignment_score=score)
        suggestion = MultiTimeframeTrendAnalyzer.generate_trading_suggestion(alignment, overall)

        assert suggestion.action == action
        assert suggestion.risk_level == risk
        assert suggestion.reason
