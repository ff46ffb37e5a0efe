"""
Pattern detector interface.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ...config import LevelConfig, PatternConfig
from ...models.market_data import Candle
from ...models.patterns import PatternKind, PatternResult
from ..support_resistance import SupportResistanceAnalyzer


class PatternDetector(ABC):
    """
    Abstract base class for chart pattern detectors.

    Detectors are stateless: ``detect`` receives the full candle series and
    returns every pattern found, or an empty list when the series is too
    short or nothing qualifies.
    """

    #: Whether the detector implements real recognition logic
    supported: bool = True

    def __init__(
        self,
        config: Optional[PatternConfig] = None,
        level_config: Optional[LevelConfig] = None
    ):
        """
        Initialize detector.

        Args:
            config: Pattern thresholds, defaults when omitted
            level_config: Pivot level parameters for level-based detectors
        """
        self.config = config or PatternConfig()
        self.level_analyzer = SupportResistanceAnalyzer(level_config)

    @property
    def name(self) -> str:
        """Detector name used when reporting failures."""
        return type(self).__name__

    @abstractmethod
    def get_pattern_kinds(self) -> List[PatternKind]:
        """Get the pattern kinds this detector can emit."""
        pass

    @abstractmethod
    def detect(self, candles: Sequence[Candle]) -> List[PatternResult]:
        """
        Detect patterns in a candle series.

        Args:
            candles: Ascending candle sequence

        Returns:
            Detected patterns (possibly empty)
        """
        pass
