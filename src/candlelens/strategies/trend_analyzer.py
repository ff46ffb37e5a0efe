"""
Multi-Timeframe Trend Analysis Engine

This module classifies the trend of each timeframe from its EMA stack and
fuses the timeframes into one weighted view.

Key features:
- EMA20/60/120 ordering and EMA20 slope decide one of seven trend states
- Trend strength from EMA ordering, EMA spread, momentum and bar consistency
- Confidence adjusted by trend clarity and recent volatility
- Price/EMA divergence detection
- Weighted overall trend (1d > 4h > 1h > 15m), alignment score and
  trading suggestion
"""

import logging
from typing import Dict, List, Optional, Sequence

from ..config import TrendConfig
from ..indicators.calculations import calculate_ema
from ..models.market_data import Candle, Timeframe
from ..models.trends import (
    MultiTimeframeTrend,
    RiskLevel,
    TimeframeTrend,
    TradingAction,
    TradingSuggestion,
    TrendAlignment,
    TrendState,
)
from ..utils import clamp, divide, mean, returns_volatility, round_half_up

logger = logging.getLogger(__name__)


def ema_slope(values: Sequence[float]) -> float:
    """Average relative change per value: (last - first) / first / n."""
    if len(values) < 2:
        return 0.0
    return divide(values[-1] - values[0], values[0]) / len(values)


def classify_trend(
    price: float,
    ema20: float,
    ema60: float,
    ema120: float,
    slope: float
) -> TrendState:
    """Classify the EMA stack into one of the seven trend states."""
    if price > ema20 > ema60 > ema120:
        extension = divide(price - ema20, ema20)
        if slope > 0.002 and extension > 0.05:
            return TrendState.STRONG_UPTREND
        if slope > 0.001:
            return TrendState.UPTREND
        return TrendState.WEAK_UPTREND

    if price < ema20 < ema60 < ema120:
        extension = divide(ema20 - price, ema20)
        if slope < -0.002 and extension > 0.05:
            return TrendState.STRONG_DOWNTREND
        if slope < -0.001:
            return TrendState.DOWNTREND
        return TrendState.WEAK_DOWNTREND

    return TrendState.RANGING


def trend_strength(
    price: float,
    ema20: float,
    ema60: float,
    ema120: float,
    closes: Sequence[float]
) -> float:
    """
    Trend strength in [0, 100].

    Sums four components: EMA ordering (40 full, 25 partial), EMA spread
    (up to 20), five-candle momentum (up to 20) and directional bar
    consistency over the last ten closes (up to 20).
    """
    strength = 0.0

    if price > ema20 > ema60 > ema120 or price < ema20 < ema60 < ema120:
        strength += 40
    elif price > ema20 > ema60 or price < ema20 < ema60:
        strength += 25

    spread_short = divide(abs(ema20 - ema60), max(ema20, ema60))
    spread_long = divide(abs(ema60 - ema120), max(ema60, ema120))
    strength += min((spread_short + spread_long) / 2 * 400, 20)

    recent5 = closes[-5:]
    momentum = divide(recent5[-1] - recent5[0], recent5[0])
    strength += min(abs(momentum) * 500, 20)

    recent10 = closes[-10:]
    if len(recent10) > 1:
        rising = price > ema20 > ema60
        consistent = 0
        for previous, current in zip(recent10, recent10[1:]):
            if rising and current > previous:
                consistent += 1
            elif not rising and current < previous:
                consistent += 1
        strength += consistent / (len(recent10) - 1) * 20

    return min(strength, 100)


def trend_confidence(trend: TrendState, strength: float, closes: Sequence[float]) -> float:
    """Confidence in [0, 100] from strength, trend clarity and 20-candle volatility."""
    confidence = strength * 0.7

    if trend.is_strong:
        confidence += 15
    elif trend != TrendState.RANGING:
        confidence += 10

    volatility = returns_volatility(closes[-20:])
    if volatility < 0.02:
        confidence += 10
    elif volatility > 0.05:
        confidence -= 10

    return clamp(confidence, 0, 100)


def detect_divergence(closes: Sequence[float], ema_values: Sequence[float]) -> bool:
    """
    Price/EMA divergence over the last 20 values.

    True when the last close is within 2% of its 20-candle high while the
    EMA sits more than 5% under its own high, or the mirror case at the lows.
    """
    if len(closes) < 20 or len(ema_values) < 20:
        return False

    prices = closes[-20:]
    emas = ema_values[-20:]
    last_price = prices[-1]
    last_ema = emas[-1]

    if last_price > max(prices) * 0.98 and last_ema < max(emas) * 0.95:
        return True
    if last_price < min(prices) * 1.02 and last_ema > min(emas) * 1.05:
        return True
    return False


def _describe_trend(
    timeframe: Timeframe,
    trend: TrendState,
    strength: float,
    confidence: float,
    divergence: bool
) -> str:
    parts = [f"{timeframe.value} shows {trend.value.lower().replace('_', ' ')}"]

    if strength > 80:
        parts.append("very strong trend")
    elif strength > 60:
        parts.append("moderate trend strength")
    else:
        parts.append("weak trend strength")

    if confidence > 80:
        parts.append("high confidence")
    elif confidence > 60:
        parts.append("medium confidence")
    else:
        parts.append("low confidence")

    if divergence:
        parts.append("divergence detected")

    return ", ".join(parts)


class MultiTimeframeTrendAnalyzer:
    """
    Classifies per-timeframe trends and fuses them.

    Each timeframe is analysed independently; a timeframe without enough
    candles for the longest EMA is reported as failed and left out of the
    aggregation.
    """

    def __init__(self, config: Optional[TrendConfig] = None):
        self.config = config or TrendConfig()

    def analyze_timeframe(self, candles: Sequence[Candle], timeframe: Timeframe) -> Optional[TimeframeTrend]:
        """
        Classify one timeframe.

        Returns:
            TimeframeTrend, or None when there are fewer candles than the
            longest EMA period
        """
        cfg = self.config
        if len(candles) < cfg.ema_long:
            logger.warning(
                f"{timeframe.value}: {len(candles)} candles, {cfg.ema_long} required for trend analysis"
            )
            return None

        closes = [c.close for c in candles]
        price = closes[-1]

        ema20_values = [p.value for p in calculate_ema(candles, cfg.ema_short)]
        ema60_values = [p.value for p in calculate_ema(candles, cfg.ema_medium)]
        ema120_values = [p.value for p in calculate_ema(candles, cfg.ema_long)]
        ema20 = ema20_values[-1]
        ema60 = ema60_values[-1]
        ema120 = ema120_values[-1]

        slope = ema_slope(ema20_values[-cfg.slope_window:])
        trend = classify_trend(price, ema20, ema60, ema120, slope)
        strength = trend_strength(price, ema20, ema60, ema120, closes)
        confidence = trend_confidence(trend, strength, closes)
        divergence = detect_divergence(closes, ema20_values)

        return TimeframeTrend(
            timeframe=timeframe,
            trend=trend,
            confidence=round_half_up(confidence),
            trend_strength=round_half_up(strength),
            current_price=price,
            ema20=ema20,
            ema60=ema60,
            ema120=ema120,
            divergence=divergence,
            analysis=_describe_trend(timeframe, trend, strength, confidence, divergence),
        )

    def analyze(
        self,
        symbol: str,
        timeframe_data: Dict[Timeframe, Sequence[Candle]],
        failed_timeframes: Optional[List[Timeframe]] = None
    ) -> MultiTimeframeTrend:
        """
        Perform multi-timeframe trend analysis.

        Args:
            symbol: Instrument symbol
            timeframe_data: Candles per timeframe
            failed_timeframes: Timeframes the caller could not fetch

        Returns:
            Fused multi-timeframe trend

        Raises:
            ValueError: If no timeframe could be analysed.
        """
        failed = list(failed_timeframes or [])
        trends: Dict[Timeframe, TimeframeTrend] = {}

        for timeframe in sorted(timeframe_data, key=lambda tf: tf.seconds):
            result = self.analyze_timeframe(timeframe_data[timeframe], timeframe)
            if result is None:
                failed.append(timeframe)
            else:
                trends[timeframe] = result

        if not trends:
            raise ValueError(f"Insufficient data for trend analysis of {symbol}")

        overall = self.calculate_overall_trend(trends)
        alignment = self.analyze_alignment(trends, overall)
        confidence = min(mean([t.confidence for t in trends.values()]) + alignment.alignment_score * 0.2, 100)
        suggestion = self.generate_trading_suggestion(alignment, overall)

        timestamp = max(timeframe_data[tf][-1].open_time for tf in trends)

        logger.info(f"Multi-timeframe trend for {symbol}: {overall.value} ({confidence:.1f}%)")

        return MultiTimeframeTrend(
            symbol=symbol,
            timestamp=timestamp,
            overall_trend=overall,
            overall_confidence=confidence,
            timeframes=trends,
            alignment=alignment,
            trading_suggestion=suggestion,
            failed_timeframes=sorted(set(failed), key=lambda tf: tf.seconds),
        )

    @staticmethod
    def calculate_overall_trend(trends: Dict[Timeframe, TimeframeTrend]) -> TrendState:
        """Weighted average of trend scores mapped back onto a trend state."""
        weighted = sum(t.trend.score * tf.weight for tf, t in trends.items())
        total_weight = sum(tf.weight for tf in trends)
        return TrendState.from_score(weighted / total_weight)

    def analyze_alignment(
        self,
        trends: Dict[Timeframe, TimeframeTrend],
        overall: TrendState
    ) -> TrendAlignment:
        """Agreement between the analysed timeframes."""
        states = [t.trend for t in trends.values()]
        up = sum(1 for s in states if s.is_up)
        down = sum(1 for s in states if s.is_down)
        ranging = len(states) - up - down

        # Capped by the number of timeframes actually analysed
        threshold = min(self.config.min_aligned_timeframes, len(states))
        conflicting = [
            tf for tf, t in trends.items()
            if (t.trend.is_up and overall.is_down) or (t.trend.is_down and overall.is_up)
        ]

        return TrendAlignment(
            is_aligned=up >= threshold or down >= threshold,
            alignment_score=max(up, down, ranging) / len(states) * 100,
            conflicting_timeframes=conflicting,
        )

    @staticmethod
    def generate_trading_suggestion(alignment: TrendAlignment, overall: TrendState) -> TradingSuggestion:
        """Map alignment and overall trend onto an action and risk level."""
        if alignment.is_aligned and alignment.alignment_score > 80 and overall != TrendState.RANGING:
            if overall == TrendState.STRONG_UPTREND:
                action, reason = TradingAction.STRONG_BUY, "All timeframes rising strongly with high alignment"
            elif overall.is_up:
                action, reason = TradingAction.BUY, "Timeframes agree on an uptrend"
            elif overall == TrendState.STRONG_DOWNTREND:
                action, reason = TradingAction.STRONG_SELL, "All timeframes falling strongly with high alignment"
            else:
                action, reason = TradingAction.SELL, "Timeframes agree on a downtrend"
            return TradingSuggestion(action=action, reason=reason, risk_level=RiskLevel.LOW)

        if alignment.alignment_score < 50:
            return TradingSuggestion(
                action=TradingAction.WAIT,
                reason="Timeframes conflict, wait for a clearer signal",
                risk_level=RiskLevel.HIGH,
            )

        return TradingSuggestion(
            action=TradingAction.HOLD,
            reason="Trend not decisive, hold and observe",
            risk_level=RiskLevel.MEDIUM,
        )
