"""
Pattern recognizer.

Runs every registered detector over the same candles and fuses the
results. A failing detector is logged and reported, the others still
contribute.
"""

import logging
from typing import List, Optional, Sequence

from ...config import LevelConfig, PatternConfig
from ...models.market_data import Candle
from ...models.patterns import PatternRecognitionResult, PatternResult
from .base import PatternDetector
from .chart_patterns import BoxPatternDetector, BreakoutPatternDetector, TrendPatternDetector
from .reversal import DoubleBottomDetector, DoubleTopDetector, HeadAndShouldersDetector

logger = logging.getLogger(__name__)


class PatternRecognizer:
    """Aggregates all pattern detectors."""

    def __init__(
        self,
        config: Optional[PatternConfig] = None,
        level_config: Optional[LevelConfig] = None,
        detectors: Optional[List[PatternDetector]] = None
    ):
        self.config = config or PatternConfig()
        self.level_config = level_config or LevelConfig()

        if detectors is None:
            detectors = [
                BoxPatternDetector(self.config, self.level_config),
                BreakoutPatternDetector(self.config, self.level_config),
                TrendPatternDetector(self.config, self.level_config),
                DoubleTopDetector(self.config, self.level_config),
                DoubleBottomDetector(self.config, self.level_config),
                HeadAndShouldersDetector(self.config, self.level_config),
            ]
        self.detectors = detectors

    def recognize(self, candles: Sequence[Candle]) -> PatternRecognitionResult:
        """
        Run all detectors.

        Returns:
            Patterns sorted by confidence (highest first) and the names of
            detectors that raised
        """
        patterns: List[PatternResult] = []
        failed: List[str] = []

        for detector in self.detectors:
            try:
                patterns.extend(detector.detect(candles))
            except Exception as e:
                logger.error(f"Pattern detector {detector.name} failed: {e}")
                failed.append(detector.name)

        patterns.sort(key=lambda p: p.confidence, reverse=True)
        logger.debug(f"Recognized {len(patterns)} patterns over {len(candles)} candles")

        return PatternRecognitionResult(patterns=patterns, failed_detectors=failed)

    def recognize_all_patterns(self, candles: Sequence[Candle]) -> List[PatternResult]:
        """Patterns from every detector, highest confidence first."""
        return self.recognize(candles).patterns
