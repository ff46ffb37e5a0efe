"""
Chart Pattern Detectors

Detectors built on pivot levels and close-to-close moves:
- BoxPatternDetector: price ranging between a support and a resistance
- BreakoutPatternDetector: latest close pushing through a nearby level
- TrendPatternDetector: one-sided run of up or down closes
"""

from typing import List, Optional, Sequence, Tuple

from ...models.levels import LevelType, PivotLevel
from ...models.market_data import Candle
from ...models.patterns import PatternKind, PatternResult, SignalType
from ...utils import divide, mean
from .base import PatternDetector


class BoxPatternDetector(PatternDetector):
    """
    Consolidation box detector.

    Every support/resistance pivot pair spanning a reasonable height is
    checked over the window where both levels were being touched. A box is
    confirmed when most candles stay inside the bounds and both bounds are
    touched repeatedly.
    """

    def get_pattern_kinds(self) -> List[PatternKind]:
        return [PatternKind.BOX]

    def detect(self, candles: Sequence[Candle]) -> List[PatternResult]:
        cfg = self.config
        if len(candles) < cfg.box_min_duration * 2:
            return []

        levels = self.level_analyzer.identify_pivot_levels(candles)
        patterns = []

        for i in range(len(levels)):
            for j in range(i + 1, len(levels)):
                pair = self._as_support_resistance(levels[i], levels[j])
                if pair is None:
                    continue
                support, resistance = pair

                height = divide(resistance.price - support.price, support.price)
                if not cfg.box_min_height <= height <= cfg.box_max_height:
                    continue

                start_time = max(support.first_touch, resistance.first_touch)
                end_time = min(support.last_touch, resistance.last_touch)
                window = [c for c in candles if start_time <= c.open_time <= end_time]
                if len(window) < cfg.box_min_duration:
                    continue

                is_valid, confidence = self.validate_box(window, support.price, resistance.price)
                if not is_valid:
                    continue

                patterns.append(
                    PatternResult(
                        kind=PatternKind.BOX,
                        signal=SignalType.NEUTRAL,
                        confidence=confidence,
                        start_time=start_time,
                        end_time=end_time,
                        description=(
                            f"Box pattern: support {support.price:.2f}, "
                            f"resistance {resistance.price:.2f}"
                        ),
                        key_levels={"support": support.price, "resistance": resistance.price},
                    )
                )

        return patterns

    @staticmethod
    def _as_support_resistance(
        first: PivotLevel,
        second: PivotLevel
    ) -> Optional[Tuple[PivotLevel, PivotLevel]]:
        if first.type == second.type:
            return None
        if first.type == LevelType.SUPPORT:
            return first, second
        return second, first

    def validate_box(
        self,
        window: Sequence[Candle],
        support: float,
        resistance: float
    ) -> Tuple[bool, float]:
        """
        Validate a candidate box.

        Returns:
            Tuple of (is_valid, confidence)
        """
        cfg = self.config
        tolerance = cfg.box_touch_tolerance
        support_touches = 0
        resistance_touches = 0
        within = 0

        for candle in window:
            if divide(abs(candle.low - support), support) <= tolerance:
                support_touches += 1
            if divide(abs(candle.high - resistance), resistance) <= tolerance:
                resistance_touches += 1
            if candle.low >= support * (1 - tolerance) and candle.high <= resistance * (1 + tolerance):
                within += 1

        ratio = within / len(window)
        is_valid = (
            ratio >= cfg.box_min_within_ratio
            and support_touches >= cfg.box_min_touches
            and resistance_touches >= cfg.box_min_touches
        )
        return is_valid, min(ratio * 100, cfg.box_max_confidence)


class BreakoutPatternDetector(PatternDetector):
    """Detects the latest close breaking through a nearby pivot level."""

    def get_pattern_kinds(self) -> List[PatternKind]:
        return [PatternKind.BREAKOUT]

    def detect(self, candles: Sequence[Candle]) -> List[PatternResult]:
        cfg = self.config
        recent = list(candles[-cfg.breakout_window:])
        if not recent:
            return []

        levels = self.level_analyzer.identify_pivot_levels(candles)
        current_price = recent[-1].close
        volume_confirmed = recent[-1].volume > mean([c.volume for c in recent]) * cfg.breakout_volume_threshold

        patterns = []
        for level in levels:
            distance = divide(abs(current_price - level.price), level.price)
            if not distance <= cfg.breakout_proximity:
                continue

            if level.type == LevelType.RESISTANCE and current_price > level.price:
                signal = SignalType.BUY
            elif level.type == LevelType.SUPPORT and current_price < level.price:
                signal = SignalType.SELL
            else:
                continue

            confidence = self.breakout_confidence(level, distance, volume_confirmed)
            if confidence < cfg.breakout_min_confidence:
                continue

            side = "Resistance" if level.type == LevelType.RESISTANCE else "Support"
            patterns.append(
                PatternResult(
                    kind=PatternKind.BREAKOUT,
                    signal=signal,
                    confidence=confidence,
                    start_time=recent[0].open_time,
                    end_time=recent[-1].open_time,
                    description=f"{side} breakout at {level.price:.2f}",
                    key_levels={"breakout_level": level.price},
                )
            )

        return patterns

    def breakout_confidence(self, level: PivotLevel, distance: float, volume_confirmed: bool) -> float:
        """50 + level strength x 5 + volume bonus + breakout size bonus, capped."""
        confidence = 50 + level.strength * 5
        if volume_confirmed:
            confidence += 20
        confidence += min(distance * 1000, 15)
        return min(confidence, self.config.breakout_max_confidence)


class TrendPatternDetector(PatternDetector):
    """Detects a one-sided run of closes over the trailing period."""

    def get_pattern_kinds(self) -> List[PatternKind]:
        return [PatternKind.UPTREND, PatternKind.DOWNTREND]

    def detect(self, candles: Sequence[Candle]) -> List[PatternResult]:
        period = self.config.trend_period
        if len(candles) < period:
            return []

        recent = candles[-period:]
        direction, strength = self.measure_trend(recent)
        if strength < self.config.trend_min_strength:
            return []

        rising = direction > 0
        return [
            PatternResult(
                kind=PatternKind.UPTREND if rising else PatternKind.DOWNTREND,
                signal=SignalType.BUY if rising else SignalType.SELL,
                confidence=strength * 100,
                start_time=recent[0].open_time,
                end_time=recent[-1].open_time,
                description=f"{'Up' if rising else 'Down'}trend, strength {strength * 100:.1f}%",
            )
        ]

    @staticmethod
    def measure_trend(candles: Sequence[Candle]) -> Tuple[int, float]:
        """
        Count up and down closes.

        Returns:
            Tuple of (direction, strength) where direction is 1 or -1 and
            strength is |up - down| / (up + down); fewer than five candles
            or no moves at all give zero strength.
        """
        if len(candles) < 5:
            return 0, 0.0

        up_moves = 0
        down_moves = 0
        for previous, current in zip(candles, candles[1:]):
            if current.close > previous.close:
                up_moves += 1
            elif current.close < previous.close:
                down_moves += 1

        total = up_moves + down_moves
        direction = 1 if up_moves > down_moves else -1
        if total == 0:
            return direction, 0.0
        return direction, abs(up_moves - down_moves) / total
