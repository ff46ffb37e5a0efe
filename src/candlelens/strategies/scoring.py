"""
Comprehensive Scoring System

This module fuses one timeframe's indicator outputs and recognised patterns
into three bounded scores and a discrete signal:

- Trend score (-100..100): price versus SMA20/SMA50 and the SMA spread
- Momentum score (-100..100): RSI, MACD histogram and Bollinger position
- Volatility score (0..100): Bollinger band width
- Pattern adjustment: BUY/SELL patterns push trend and momentum
- Signal: BUY/SELL/NEUTRAL from the combined score, with a confidence
  averaged against the most confident pattern

It also renders the English analysis summary and runs the complete
single-timeframe analysis.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import Config
from ..indicators.calculations import latest_value
from ..indicators.registry import IndicatorKind, calculate_indicators
from ..models.analysis import ComprehensiveAnalysis, ComprehensiveScore
from ..models.indicators import IndicatorPoint
from ..models.levels import PivotLevel
from ..models.market_data import Candle, Timeframe
from ..models.patterns import PatternKind, PatternResult, SignalType
from ..utils import clamp, divide, round_half_up
from .patterns.recognizer import PatternRecognizer
from .support_resistance import SupportResistanceAnalyzer

logger = logging.getLogger(__name__)

SCORING_INDICATORS = [
    IndicatorKind.SMA20,
    IndicatorKind.SMA50,
    IndicatorKind.EMA12,
    IndicatorKind.EMA26,
    IndicatorKind.MACD,
    IndicatorKind.RSI,
    IndicatorKind.BOLLINGER,
    IndicatorKind.STOCHASTIC,
    IndicatorKind.MOMENTUM,
]

SIGNAL_THRESHOLD = 20


def derive_signal(trend: float, momentum: float) -> Tuple[SignalType, float]:
    """
    Derive the signal from trend and momentum scores.

    combined = (trend + momentum) / 2; above 20 is BUY and below -20 is
    SELL, both with confidence min(95, |combined|); anything else is
    NEUTRAL with confidence 50 + |combined|.

    Returns:
        Tuple of (signal, confidence) before pattern adjustment
    """
    combined = (trend + momentum) / 2
    if combined > SIGNAL_THRESHOLD:
        return SignalType.BUY, min(95, abs(combined))
    if combined < -SIGNAL_THRESHOLD:
        return SignalType.SELL, min(95, abs(combined))
    return SignalType.NEUTRAL, 50 + abs(combined)


class ComprehensiveScorer:
    """Computes comprehensive scores and analyses for a single timeframe."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()
        self.recognizer = PatternRecognizer(self.config.patterns, self.config.levels)
        self.level_analyzer = SupportResistanceAnalyzer(self.config.levels)

    def calculate_score(
        self,
        candles: Sequence[Candle],
        indicators: Dict[IndicatorKind, List[IndicatorPoint]],
        patterns: Sequence[PatternResult]
    ) -> ComprehensiveScore:
        """
        Fuse indicators and patterns into a ComprehensiveScore.

        Each indicator term is only applied when the indicator produced a
        value.
        """
        price = candles[-1].close
        trend = 0.0
        momentum = 0.0
        volatility = 0.0

        sma20 = latest_value(indicators.get(IndicatorKind.SMA20, []))
        sma50 = latest_value(indicators.get(IndicatorKind.SMA50, []))
        if sma20 is not None and sma50 is not None:
            price_vs_sma20 = divide(price - sma20, sma20) * 100
            price_vs_sma50 = divide(price - sma50, sma50) * 100
            sma_alignment = divide(sma20 - sma50, sma50) * 100
            trend = clamp(price_vs_sma20 * 0.4 + price_vs_sma50 * 0.3 + sma_alignment * 0.3, -100, 100)

        rsi = latest_value(indicators.get(IndicatorKind.RSI, []))
        if rsi is not None:
            momentum += (rsi - 50) * 2

        macd = latest_value(indicators.get(IndicatorKind.MACD, []))
        if macd is not None:
            momentum += clamp(macd.histogram * 1000, -50, 50)

        momentum = clamp(momentum / 2, -100, 100)

        bollinger = latest_value(indicators.get(IndicatorKind.BOLLINGER, []))
        if bollinger is not None:
            volatility = min(100, bollinger.width * 500)
            if bollinger.upper != bollinger.lower:
                position = divide(price - bollinger.lower, bollinger.upper - bollinger.lower)
                if position > 0.8:
                    momentum += 10
                elif position < 0.2:
                    momentum -= 10

        for pattern in patterns:
            weight = pattern.confidence / 100
            if pattern.signal == SignalType.BUY:
                trend += 20 * weight
                momentum += 15 * weight
            elif pattern.signal == SignalType.SELL:
                trend -= 20 * weight
                momentum -= 15 * weight

        trend = round_half_up(clamp(trend, -100, 100))
        momentum = round_half_up(clamp(momentum, -100, 100))
        volatility = round_half_up(clamp(volatility, 0, 100))

        signal, confidence = derive_signal(trend, momentum)
        pattern_confidence = max((p.confidence for p in patterns), default=0)
        confidence = round_half_up((confidence + pattern_confidence) / 2)

        return ComprehensiveScore(
            trend=trend,
            momentum=momentum,
            volatility=volatility,
            signal=signal,
            confidence=confidence,
        )

    @staticmethod
    def generate_summary(
        score: ComprehensiveScore,
        patterns: Sequence[PatternResult],
        pivot_levels: Sequence[PivotLevel]
    ) -> str:
        """Human readable summary of a score, its patterns and pivot levels."""
        parts = []

        if score.trend > 30:
            parts.append("Strong uptrend")
        elif score.trend > 10:
            parts.append("Weak uptrend")
        elif score.trend < -30:
            parts.append("Strong downtrend")
        elif score.trend < -10:
            parts.append("Weak downtrend")
        else:
            parts.append("Sideways consolidation")

        if score.momentum > 20:
            parts.append("strong momentum")
        elif score.momentum < -20:
            parts.append("weak momentum")
        else:
            parts.append("neutral momentum")

        if score.volatility > 60:
            parts.append("high volatility")
        elif score.volatility < 30:
            parts.append("low volatility")
        else:
            parts.append("moderate volatility")

        pattern_names = {
            PatternKind.BOX: "box",
            PatternKind.BREAKOUT: "breakout",
            PatternKind.UPTREND: "uptrend",
            PatternKind.DOWNTREND: "downtrend",
        }
        significant = [p for p in patterns if p.confidence > 70]
        if significant:
            names = [pattern_names.get(p.kind, "special") for p in significant]
            parts.append(f"patterns detected: {', '.join(names)}")

        strong_levels = [l for l in pivot_levels if l.strength >= 5]
        if strong_levels:
            parts.append(f"{len(strong_levels)} significant support/resistance levels")

        outlook = {
            SignalType.BUY: "bullish",
            SignalType.SELL: "bearish",
            SignalType.NEUTRAL: "wait and see",
        }[score.signal]
        parts.append(f"overall signal: {outlook} (confidence {score.confidence:.0f}%)")

        return "; ".join(parts)

    def analyze(
        self,
        symbol: str,
        timeframe: Timeframe,
        candles: Sequence[Candle]
    ) -> ComprehensiveAnalysis:
        """
        Perform a comprehensive single-timeframe analysis.

        Raises:
            ValueError: If fewer than ``data.min_candles`` candles are supplied.
        """
        min_candles = self.config.data.min_candles
        if len(candles) < min_candles:
            raise ValueError(
                f"Insufficient data: at least {min_candles} candles required, got {len(candles)}"
            )

        failed_parts: List[str] = []

        indicators = calculate_indicators(candles, SCORING_INDICATORS, self.config.indicators)

        recognition = self.recognizer.recognize(candles)
        patterns = recognition.patterns
        failed_parts.extend(f"pattern:{name}" for name in recognition.failed_detectors)

        try:
            pivot_levels = self.level_analyzer.identify_pivot_levels(candles)
        except Exception as e:
            logger.error(f"Pivot level detection failed for {symbol} {timeframe.value}: {e}")
            pivot_levels = []
            failed_parts.append("pivot_levels")

        score = self.calculate_score(candles, indicators, patterns)
        summary = self.generate_summary(score, patterns, pivot_levels)

        logger.info(
            f"Analysis of {symbol} {timeframe.value}: {score.signal.value} "
            f"(confidence {score.confidence:.0f}%)"
        )

        return ComprehensiveAnalysis(
            symbol=symbol,
            timeframe=timeframe,
            timestamp=candles[-1].open_time,
            candle_count=len(candles),
            current_price=candles[-1].close,
            indicators={kind.value: series for kind, series in indicators.items()},
            patterns=patterns,
            pivot_levels=pivot_levels,
            score=score,
            summary=summary,
            failed_parts=failed_parts,
        )
