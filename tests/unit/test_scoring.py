"""
Unit tests for comprehensive scoring and signal fusion.
"""

import math
from typing import List, Sequence

import pytest

from candlelens.config import Config, DataConfig
from candlelens.indicators.registry import IndicatorKind
from candlelens.models.analysis import ComprehensiveScore
from candlelens.models.indicators import BollingerValue, IndicatorPoint
from candlelens.models.levels import LevelType, PivotLevel
from candlelens.models.market_data import Candle, Timeframe
from candlelens.models.patterns import PatternKind, PatternResult, SignalType
from candlelens.strategies.patterns import PatternDetector
from candlelens.strategies.scoring import ComprehensiveScorer, derive_signal


class ExplodingDetector(PatternDetector):
    """Detector that always fails."""

    def get_pattern_kinds(self) -> List[PatternKind]:
        return [PatternKind.BREAKOUT]

    def detect(self, candles: Sequence[Candle]) -> List[PatternResult]:
        raise ValueError("bad window")


def make_pattern(signal: SignalType, confidence: float) -> PatternResult:
    return PatternResult(
        kind=PatternKind.BREAKOUT,
        signal=signal,
        confidence=confidence,
        start_time=0,
        end_time=1,
        description="test pattern",
    )


class TestDeriveSignal:
    """Signal derivation from trend and momentum."""

    @pytest.mark.parametrize("trend,momentum,signal,confidence", [
        (30, 20, SignalType.BUY, 25),
        (-40, -10, SignalType.SELL, 25),
        (5, -5, SignalType.NEUTRAL, 50),
        (20, 20, SignalType.NEUTRAL, 70),
        (100, 100, SignalType.BUY, 95),
        (-100, -100, SignalType.SELL, 95),
    ])
    def test_scenarios(self, trend, momentum, signal, confidence) -> None:
        assert derive_signal(trend, momentum) == (signal, confidence)

    def test_nan_is_neutral(self) -> None:
        signal, confidence = derive_signal(math.nan, 10)
        assert signal == SignalType.NEUTRAL
        assert math.isnan(confidence)


class TestCalculateScore:
    """Test indicator and pattern fusion."""

    def setup_method(self) -> None:
        self.scorer = ComprehensiveScorer(Config())

    def test_no_indicators(self, make_candles) -> None:
        score = self.scorer.calculate_score(make_candles([100.0] * 5), {}, [])

        assert (score.trend, score.momentum, score.volatility) == (0, 0, 0)
        assert score.signal == SignalType.NEUTRAL
        assert score.confidence == 25

    def test_pattern_adjustment(self, make_candles) -> None:
        patterns = [make_pattern(SignalType.BUY, 80)]
        score = self.scorer.calculate_score(make_candles([100.0] * 5), {}, patterns)

        assert score.trend == 16
        assert score.momentum == 12
        assert score.signal == SignalType.NEUTRAL
        # (50 + 14 + 80) / 2
        assert score.confidence == 72

    def test_sell_pattern_pushes_down(self, make_candles) -> None:
        patterns = [make_pattern(SignalType.SELL, 100), make_pattern(SignalType.SELL, 100)]
        score = self.scorer.calculate_score(make_candles([100.0] * 5), {}, patterns)

        assert score.trend == -40
        assert score.momentum == -30
        assert score.signal == SignalType.SELL

    def test_collapsed_bollinger_band(self, make_candles) -> None:
        candles = make_candles([100.0] * 5)
        indicators = {
            IndicatorKind.BOLLINGER: [
                IndicatorPoint(timestamp=0, value=BollingerValue(upper=100, middle=100, lower=100))
            ]
        }

        score = self.scorer.calculate_score(candles, indicators, [])

        assert score.volatility == 0
        assert score.momentum == 0

    def test_bollinger_top_of_band(self, make_candles) -> None:
        candles = make_candles([109.0])
        indicators = {
            IndicatorKind.BOLLINGER: [
                IndicatorPoint(timestamp=0, value=BollingerValue(upper=110, middle=100, lower=90))
            ]
        }

        score = self.scorer.calculate_score(candles, indicators, [])

        assert score.momentum == 10
        assert score.volatility == 100

    def test_signal_matches_rounded_scores(self, make_candles) -> None:
        closes = [100 + 8 * math.sin(i / 4) + i * 0.3 for i in range(120)]
        candles = make_candles(closes)

        for end in range(30, 121, 10):
            analysis = self.scorer.analyze("BTCUSDT", Timeframe.ONE_HOUR, candles[:end])
            score = analysis.score
            assert -100 <= score.trend <= 100
            assert -100 <= score.momentum <= 100
            assert 0 <= score.volatility <= 100
            assert 0 <= score.confidence <= 100
            assert score.signal == derive_signal(score.trend, score.momentum)[0]


class TestSummary:
    """Test the English summary."""

    def test_neutral_summary(self) -> None:
        score = ComprehensiveScore(
            trend=0, momentum=0, volatility=50, signal=SignalType.NEUTRAL, confidence=50
        )
        summary = ComprehensiveScorer.generate_summary(score, [], [])

        assert summary == (
            "Sideways consolidation; neutral momentum; moderate volatility; "
            "overall signal: wait and see (confidence 50%)"
        )

    def test_patterns_and_levels(self) -> None:
        score = ComprehensiveScore(
            trend=-35, momentum=-25, volatility=10, signal=SignalType.SELL, confidence=30
        )
        levels = [
            PivotLevel(price=100, strength=6, type=LevelType.SUPPORT, touch_count=6, first_touch=0, last_touch=1)
        ]
        summary = ComprehensiveScorer.generate_summary(
            score, [make_pattern(SignalType.SELL, 90), make_pattern(SignalType.SELL, 50)], levels
        )

        assert summary.startswith("Strong downtrend; weak momentum; low volatility")
        assert "patterns detected: breakout;" in summary
        assert "1 significant support/resistance levels" in summary
        assert summary.endswith("bearish (confidence 30%)")


class TestAnalyze:
    """Test the complete single-timeframe analysis."""

    def test_rising_series_is_bullish(self, rising_candles) -> None:
        scorer = ComprehensiveScorer(Config())
        analysis = scorer.analyze("BTCUSDT", Timeframe.ONE_HOUR, rising_candles[:60])

        assert analysis.score.signal == SignalType.BUY
        assert analysis.score.trend == 31
        assert analysis.score.momentum == 75
        assert analysis.score.confidence == 77
        assert [p.kind for p in analysis.patterns] == [PatternKind.UPTREND]
        assert analysis.summary.startswith("Strong uptrend")
        assert analysis.candle_count == 60
        assert analysis.current_price == 159.0
        assert analysis.timestamp == rising_candles[59].open_time
        assert analysis.failed_parts == []

    def test_falling_series_is_bearish(self, falling_candles) -> None:
        analysis = ComprehensiveScorer().analyze("ETHUSDT", Timeframe.FOUR_HOURS, falling_candles[:80])
        assert analysis.score.signal == SignalType.SELL

    def test_indicator_keys(self, rising_candles) -> None:
        analysis = ComprehensiveScorer().analyze("BTCUSDT", Timeframe.ONE_HOUR, rising_candles[:60])

        assert "rsi" in analysis.indicators
        assert "macd" in analysis.indicators
        assert "williams" not in analysis.indicators

    def test_insufficient_candles(self, rising_candles) -> None:
        with pytest.raises(ValueError, match="at least 20 candles"):
            ComprehensiveScorer().analyze("BTCUSDT", Timeframe.ONE_HOUR, rising_candles[:19])

    def test_min_candles_from_config(self, rising_candles) -> None:
        scorer = ComprehensiveScorer(Config(data=DataConfig(min_candles=40)))

        with pytest.raises(ValueError, match="at least 40 candles"):
            scorer.analyze("BTCUSDT", Timeframe.ONE_HOUR, rising_candles[:39])
        assert scorer.analyze("BTCUSDT", Timeframe.ONE_HOUR, rising_candles[:40]).candle_count == 40

    def test_short_series_still_scores(self, rising_candles) -> None:
        analysis = ComprehensiveScorer().analyze("BTCUSDT", Timeframe.ONE_HOUR, rising_candles[:20])

        assert analysis.indicators["sma50"] == []
        assert analysis.pivot_levels == []

    def test_failed_parts_reported(self, box_candles, monkeypatch) -> None:
        scorer = ComprehensiveScorer()
        scorer.recognizer.detectors.append(ExplodingDetector())

        def broken(candles):
            raise RuntimeError("pivot failure")

        monkeypatch.setattr(scorer.level_analyzer, "identify_pivot_levels", broken)

        analysis = scorer.analyze("BTCUSDT", Timeframe.ONE_HOUR, box_candles)

        assert analysis.failed_parts == ["pattern:ExplodingDetector", "pivot_levels"]
        assert analysis.pivot_levels == []
        assert [p.kind for p in analysis.patterns] == [PatternKind.BOX]

    def test_deterministic(self, box_candles) -> None:
        scorer = ComprehensiveScorer()
        first = scorer.analyze("BTCUSDT", Timeframe.ONE_HOUR, box_candles)
        second = scorer.analyze("BTCUSDT", Timeframe.ONE_HOUR, box_candles)

        assert first.model_dump() == second.model_dump()
