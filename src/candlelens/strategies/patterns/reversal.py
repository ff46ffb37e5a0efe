"""
Reversal Pattern Detectors

Extension points for double top, double bottom and head-and-shoulders
recognition. The detectors are registered with the recognizer so their
kinds are part of the public interface, but they do not emit patterns
yet; ``supported`` is False on each of them.
"""

from typing import List, Sequence

from ...models.market_data import Candle
from ...models.patterns import PatternKind, PatternResult
from .base import PatternDetector


class ReversalPatternDetector(PatternDetector):
    """Base class for reversal shape detectors."""

    supported = False
    kind: PatternKind

    def get_pattern_kinds(self) -> List[PatternKind]:
        return [self.kind]

    def detect(self, candles: Sequence[Candle]) -> List[PatternResult]:
        return []


class DoubleTopDetector(ReversalPatternDetector):
    """Two comparable highs separated by a trough."""

    kind = PatternKind.DOUBLE_TOP


class DoubleBottomDetector(ReversalPatternDetector):
    """Two comparable lows separated by a peak."""

    kind = PatternKind.DOUBLE_BOTTOM


class HeadAndShouldersDetector(ReversalPatternDetector):
    """Higher middle peak between two lower shoulders."""

    kind = PatternKind.HEAD_AND_SHOULDERS
