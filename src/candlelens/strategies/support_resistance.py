"""
Support and Resistance Level Engine

This module turns raw candles into a deduplicated list of support and
resistance levels:

- Swing detection: local highs/lows over a symmetric lookback window
- Level construction: price zone sized by return volatility, touch count,
  strength class and confidence score
- Volume-anomaly levels seeded at unusually active candles
- Consolidation: near-duplicate levels of the same type merged by
  weighted average until no pair is left within tolerance
- Derived views: key levels, current position and trading zones

It also provides the touch-based pivot level detector consumed by the
pattern engine and the comprehensive scorer.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import LevelConfig
from ..models.levels import (
    CurrentPosition,
    KeyLevels,
    Level,
    LevelStrength,
    LevelType,
    PivotLevel,
    PriceAction,
    PriceRange,
    SupportResistanceAnalysis,
    TradingZone,
    ZoneType,
)
from ..models.market_data import Candle, Timeframe
from ..utils import clamp, divide, mean, returns_volatility, round_half_up

logger = logging.getLogger(__name__)


def find_swing_highs(candles: Sequence[Candle], lookback: int = 5) -> List[int]:
    """
    Indices of swing highs.

    A candle is a swing high when its high is greater than or equal to
    every high within ``lookback`` candles on each side.
    """
    indices = []
    for i in range(lookback, len(candles) - lookback):
        high = candles[i].high
        if all(candles[j].high <= high for j in range(i - lookback, i + lookback + 1)):
            indices.append(i)
    return indices


def find_swing_lows(candles: Sequence[Candle], lookback: int = 5) -> List[int]:
    """Indices of swing lows (mirror of find_swing_highs)."""
    indices = []
    for i in range(lookback, len(candles) - lookback):
        low = candles[i].low
        if all(candles[j].low >= low for j in range(i - lookback, i + lookback + 1)):
            indices.append(i)
    return indices


def count_touches(
    candles: Sequence[Candle],
    price: float,
    half_width: float,
    level_type: LevelType
) -> int:
    """Count candles whose low (support) or high (resistance) lies in the zone."""
    low_bound = price - half_width
    high_bound = price + half_width
    touches = 0
    for candle in candles:
        extreme = candle.low if level_type == LevelType.SUPPORT else candle.high
        if low_bound <= extreme <= high_bound:
            touches += 1
    return touches


def level_strength(
    touch_count: int,
    timeframe: Timeframe,
    price: float,
    current_price: float
) -> LevelStrength:
    """Strength class from touches, timeframe weight and proximity to price."""
    if touch_count >= 5:
        score = 4
    elif touch_count >= 3:
        score = 3
    elif touch_count >= 2:
        score = 2
    else:
        score = 1

    score += timeframe.weight

    distance = divide(abs(price - current_price), current_price)
    if distance < 0.05:
        score += 2
    elif distance < 0.1:
        score += 1

    return LevelStrength.from_score(score)


def level_confidence(
    touch_count: int,
    strength: LevelStrength,
    timeframe: Timeframe,
    volatility: float
) -> float:
    """Confidence score in [0, 100] before rounding."""
    confidence = 50 + touch_count * 10
    confidence += strength.confidence_bonus
    confidence += timeframe.confidence_bonus

    if volatility < 0.02:
        confidence += 10
    elif volatility > 0.05:
        confidence -= 10

    return clamp(confidence, 0, 100)


def level_weight(level: Level) -> int:
    """Merge weight: timeframe weight times strength weight."""
    return level.timeframe.weight * level.strength.weight


def _stronger(first: LevelStrength, second: LevelStrength) -> LevelStrength:
    return first if first.weight >= second.weight else second


def _distance_percent(level_type: LevelType, price: float, current_price: float) -> float:
    if level_type == LevelType.SUPPORT:
        return divide(current_price - price, current_price) * 100
    return divide(price - current_price, current_price) * 100


class SupportResistanceAnalyzer:
    """
    Discovers, merges and ranks support/resistance levels.

    All thresholds come from LevelConfig. The analyzer holds no state
    between calls.
    """

    def __init__(self, config: Optional[LevelConfig] = None):
        self.config = config or LevelConfig()

    # Level discovery

    def identify_levels(
        self,
        candles: Sequence[Candle],
        timeframe: Timeframe,
        current_price: float
    ) -> List[Level]:
        """
        Build raw (unmerged) levels for one timeframe.

        Args:
            candles: Ascending candles of the timeframe
            timeframe: Timeframe of the candles
            current_price: Reference price deciding which side a level is on

        Returns:
            Resistances from swing highs, supports from swing lows, then
            volume-anomaly levels
        """
        if not candles:
            return []

        volatility = returns_volatility([c.close for c in candles])
        levels = []

        for index in find_swing_highs(candles, self.config.swing_lookback):
            level = self._build_swing_level(
                candles, index, LevelType.RESISTANCE, timeframe, current_price, volatility
            )
            if level is not None:
                levels.append(level)

        for index in find_swing_lows(candles, self.config.swing_lookback):
            level = self._build_swing_level(
                candles, index, LevelType.SUPPORT, timeframe, current_price, volatility
            )
            if level is not None:
                levels.append(level)

        levels.extend(self.identify_volume_levels(candles, timeframe, current_price))
        return levels

    def _build_swing_level(
        self,
        candles: Sequence[Candle],
        index: int,
        level_type: LevelType,
        timeframe: Timeframe,
        current_price: float,
        volatility: float
    ) -> Optional[Level]:
        swing = candles[index]
        margin = self.config.level_margin

        if level_type == LevelType.RESISTANCE:
            price = swing.high
            if not price > current_price * (1 + margin):
                return None
        else:
            price = swing.low
            if not price < current_price * (1 - margin):
                return None

        half_width = price * volatility * self.config.range_volatility_factor
        touches = count_touches(candles, price, half_width, level_type)
        strength = level_strength(touches, timeframe, price, current_price)
        confidence = level_confidence(touches, strength, timeframe, volatility)

        return Level(
            type=level_type,
            price_range=PriceRange(min=price - half_width, max=price + half_width, center=price),
            strength=strength,
            confidence=round_half_up(confidence),
            touch_count=touches,
            last_touch_timestamp=swing.open_time,
            timeframe=timeframe,
            is_active=self._is_active(price, current_price, candles),
            distance=_distance_percent(level_type, price, current_price),
            description=self._describe(level_type, price, touches, strength, timeframe),
        )

    def identify_volume_levels(
        self,
        candles: Sequence[Candle],
        timeframe: Timeframe,
        current_price: float
    ) -> List[Level]:
        """Levels seeded at candles whose volume exceeds the anomaly multiplier times the mean."""
        if not candles:
            return []

        threshold = mean([c.volume for c in candles]) * self.config.volume_anomaly_multiplier
        margin = self.config.volume_level_margin
        levels = []

        for candle in candles:
            if not candle.volume > threshold:
                continue
            if candle.high > current_price * (1 + margin):
                levels.append(
                    self._build_volume_level(candle.high, LevelType.RESISTANCE, candle, timeframe, current_price)
                )
            if candle.low < current_price * (1 - margin):
                levels.append(
                    self._build_volume_level(candle.low, LevelType.SUPPORT, candle, timeframe, current_price)
                )

        return levels

    def _build_volume_level(
        self,
        price: float,
        level_type: LevelType,
        candle: Candle,
        timeframe: Timeframe,
        current_price: float
    ) -> Level:
        half_width = price * self.config.volume_level_range
        side = "support" if level_type == LevelType.SUPPORT else "resistance"
        return Level(
            type=level_type,
            price_range=PriceRange(min=price - half_width, max=price + half_width, center=price),
            strength=LevelStrength.MEDIUM,
            confidence=self.config.volume_level_confidence,
            touch_count=1,
            last_touch_timestamp=candle.open_time,
            timeframe=timeframe,
            is_active=True,
            distance=_distance_percent(level_type, price, current_price),
            description=f"{timeframe.value} high-volume {side} zone at {price:.5f}",
        )

    def _is_active(self, price: float, current_price: float, candles: Sequence[Candle]) -> bool:
        """A level is inactive once a recent close broke through it by the breach tolerance."""
        tolerance = self.config.breach_tolerance
        for candle in candles[-self.config.active_lookback:]:
            if price < current_price and candle.close < price * (1 - tolerance):
                return False
            if price > current_price and candle.close > price * (1 + tolerance):
                return False
        return True

    @staticmethod
    def _describe(
        level_type: LevelType,
        price: float,
        touches: int,
        strength: LevelStrength,
        timeframe: Timeframe
    ) -> str:
        side = "support" if level_type == LevelType.SUPPORT else "resistance"
        return (
            f"{timeframe.value} {strength.value.lower()} {side} at {price:.5f}, "
            f"touched {touches} times"
        )

    # Consolidation

    def consolidate_levels(self, levels: Sequence[Level], current_price: float) -> List[Level]:
        """
        Merge near-duplicate levels and drop low-confidence ones.

        Levels of the same type whose centers differ by less than
        ``merge_tolerance * current_price`` are merged. Merge passes repeat
        until no pair is left within tolerance, so consolidating an already
        consolidated list returns it unchanged.
        """
        tolerance = current_price * self.config.merge_tolerance
        consolidated = list(levels)

        while True:
            merged, changed = self._merge_pass(consolidated, tolerance, current_price)
            consolidated = merged
            if not changed:
                break

        result = [level for level in consolidated if level.confidence >= self.config.min_confidence]
        logger.debug(f"Consolidated {len(levels)} levels into {len(result)}")
        return result

    def _merge_pass(
        self,
        levels: Sequence[Level],
        tolerance: float,
        current_price: float
    ) -> Tuple[List[Level], bool]:
        merged: List[Level] = []
        changed = False

        for level in levels:
            for position, existing in enumerate(merged):
                if existing.type != level.type:
                    continue
                if abs(existing.price_range.center - level.price_range.center) < tolerance:
                    merged[position] = self.merge_levels(existing, level, current_price)
                    changed = True
                    break
            else:
                merged.append(level)

        return merged, changed

    @staticmethod
    def merge_levels(existing: Level, incoming: Level, current_price: float) -> Level:
        """
        Merge ``incoming`` into ``existing``.

        The new center is the average of both centers weighted by
        timeframe weight times strength weight; the price bounds of
        ``existing`` are kept.
        """
        weight_existing = level_weight(existing)
        weight_incoming = level_weight(incoming)
        center = (
            existing.price_range.center * weight_existing
            + incoming.price_range.center * weight_incoming
        ) / (weight_existing + weight_incoming)

        return existing.model_copy(
            update={
                "price_range": PriceRange(
                    min=existing.price_range.min,
                    max=existing.price_range.max,
                    center=center,
                ),
                "touch_count": existing.touch_count + incoming.touch_count,
                "confidence": min(existing.confidence + 10, 100),
                "strength": _stronger(existing.strength, incoming.strength),
                "distance": _distance_percent(existing.type, center, current_price),
            }
        )

    # Derived views

    @staticmethod
    def identify_key_levels(
        supports: Sequence[Level],
        resistances: Sequence[Level],
        current_price: float
    ) -> KeyLevels:
        """Nearest level on each side of price and strongest level of each type."""
        below = [s for s in supports if s.price_range.center < current_price]
        above = [r for r in resistances if r.price_range.center > current_price]

        return KeyLevels(
            nearest_support=max(below, key=lambda s: s.price_range.center, default=None),
            nearest_resistance=min(above, key=lambda r: r.price_range.center, default=None),
            strongest_support=max(supports, key=level_weight, default=None),
            strongest_resistance=max(resistances, key=level_weight, default=None),
        )

    def analyze_current_position(
        self,
        supports: Sequence[Level],
        resistances: Sequence[Level],
        current_price: float
    ) -> CurrentPosition:
        """Locate price relative to the level zones."""
        in_support = any(s.price_range.contains(current_price) for s in supports)
        in_resistance = any(r.price_range.contains(current_price) for r in resistances)

        key = self.identify_key_levels(supports, resistances, current_price)
        approach = self.config.approach_distance
        price_action = PriceAction.CONSOLIDATING

        next_resistance = key.nearest_resistance
        next_support = key.nearest_support
        if next_resistance is not None and divide(
            next_resistance.price_range.center - current_price, current_price
        ) < approach:
            price_action = PriceAction.APPROACHING_RESISTANCE
        elif next_support is not None and divide(
            current_price - next_support.price_range.center, current_price
        ) < approach:
            price_action = PriceAction.APPROACHING_SUPPORT

        return CurrentPosition(
            in_support_zone=in_support,
            in_resistance_zone=in_resistance,
            between_levels=not in_support and not in_resistance,
            price_action=price_action,
        )

    def generate_trading_zones(
        self,
        supports: Sequence[Level],
        resistances: Sequence[Level]
    ) -> List[TradingZone]:
        """Buy zones at qualifying supports and sell zones at qualifying resistances."""
        zones = []
        min_confidence = self.config.zone_min_confidence

        for zone_type, levels, side in (
            (ZoneType.BUY_ZONE, supports, "support"),
            (ZoneType.SELL_ZONE, resistances, "resistance"),
        ):
            for level in levels:
                if level.strength == LevelStrength.WEAK or not level.confidence > min_confidence:
                    continue
                zones.append(
                    TradingZone(
                        type=zone_type,
                        price_range=level.price_range,
                        confidence=level.confidence,
                        reasoning=f"{level.timeframe.value} {level.strength.value.lower()} {side}",
                    )
                )

        return zones

    # Entry point

    def analyze(
        self,
        symbol: str,
        timeframe_data: Dict[Timeframe, Sequence[Candle]]
    ) -> SupportResistanceAnalysis:
        """
        Multi-timeframe support/resistance analysis.

        Levels are collected from the heaviest timeframe down to the
        lightest, the reference price is the last close of the shortest
        timeframe present, and the combined list is consolidated once.

        Raises:
            ValueError: If no timeframe carries any candle.
        """
        available = {tf: candles for tf, candles in timeframe_data.items() if candles}
        failed = sorted(
            (tf for tf in timeframe_data if tf not in available),
            key=lambda tf: tf.seconds,
        )
        if not available:
            raise ValueError(f"No candle data available for {symbol}")

        reference_tf = min(available, key=lambda tf: tf.seconds)
        reference = available[reference_tf][-1]
        current_price = reference.close

        all_levels: List[Level] = []
        for timeframe in sorted(available, key=lambda tf: tf.seconds, reverse=True):
            levels = self.identify_levels(available[timeframe], timeframe, current_price)
            logger.debug(f"{symbol} {timeframe.value}: {len(levels)} raw levels")
            all_levels.extend(levels)

        consolidated = self.consolidate_levels(all_levels, current_price)

        supports = sorted(
            (l for l in consolidated if l.type == LevelType.SUPPORT),
            key=lambda l: l.price_range.center,
            reverse=True,
        )
        resistances = sorted(
            (l for l in consolidated if l.type == LevelType.RESISTANCE),
            key=lambda l: l.price_range.center,
        )

        logger.info(
            f"Support/resistance analysis for {symbol}: "
            f"{len(supports)} supports, {len(resistances)} resistances"
        )

        return SupportResistanceAnalysis(
            symbol=symbol,
            current_price=current_price,
            timestamp=reference.open_time,
            key_levels=self.identify_key_levels(supports, resistances, current_price),
            supports=supports,
            resistances=resistances,
            current_position=self.analyze_current_position(supports, resistances, current_price),
            trading_zones=self.generate_trading_zones(supports, resistances),
            failed_timeframes=failed,
        )

    # Pivot levels

    def identify_pivot_levels(self, candles: Sequence[Candle]) -> List[PivotLevel]:
        """
        Touch-counted horizontal levels from local extremes.

        Requires at least ``pivot_lookback`` candles. Each local high/low
        (inclusive comparison over ``pivot_window`` candles per side)
        becomes a level when at least ``pivot_min_touches`` candles come
        within ``pivot_tolerance`` of it. Near-duplicates of the same type
        are merged and the result is sorted by strength, strongest first.
        """
        if len(candles) < self.config.pivot_lookback:
            return []

        window = self.config.pivot_window
        tolerance = self.config.pivot_tolerance
        levels: List[PivotLevel] = []

        for index, level_type in self._local_extremes(candles, window):
            extreme = candles[index]
            price = extreme.high if level_type == LevelType.RESISTANCE else extreme.low

            touches = 0
            first_touch = last_touch = extreme.open_time
            for candle in candles:
                probe = candle.high if level_type == LevelType.RESISTANCE else candle.low
                if divide(abs(probe - price), price) <= tolerance:
                    touches += 1
                    first_touch = min(first_touch, candle.open_time)
                    last_touch = max(last_touch, candle.open_time)

            if touches >= self.config.pivot_min_touches:
                levels.append(
                    PivotLevel(
                        price=price,
                        strength=min(touches, 10),
                        type=level_type,
                        touch_count=touches,
                        first_touch=first_touch,
                        last_touch=last_touch,
                    )
                )

        return self._consolidate_pivots(levels, tolerance)

    @staticmethod
    def _local_extremes(candles: Sequence[Candle], window: int) -> List[Tuple[int, LevelType]]:
        extremes = []
        for i in range(window, len(candles) - window):
            current = candles[i]
            neighbours = candles[i - window:i + window + 1]
            if all(current.high >= c.high for c in neighbours):
                extremes.append((i, LevelType.RESISTANCE))
            if all(current.low <= c.low for c in neighbours):
                extremes.append((i, LevelType.SUPPORT))
        return extremes

    @staticmethod
    def _consolidate_pivots(levels: Sequence[PivotLevel], tolerance: float) -> List[PivotLevel]:
        consolidated: List[PivotLevel] = []

        for level in levels:
            for position, existing in enumerate(consolidated):
                if existing.type != level.type:
                    continue
                if divide(abs(existing.price - level.price), level.price) <= tolerance:
                    consolidated[position] = existing.model_copy(
                        update={
                            "strength": max(existing.strength, level.strength),
                            "touch_count": existing.touch_count + level.touch_count,
                            "first_touch": min(existing.first_touch, level.first_touch),
                            "last_touch": max(existing.last_touch, level.last_touch),
                        }
                    )
                    break
            else:
                consolidated.append(level)

        return sorted(consolidated, key=lambda l: l.strength, reverse=True)
