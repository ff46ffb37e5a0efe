"""
In-memory analysis store.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional

from ..models.analysis import ComprehensiveAnalysis
from ..models.market_data import Timeframe
from .interfaces import AnalysisRecord, AnalysisStore

logger = logging.getLogger(__name__)


class InMemoryAnalysisStore(AnalysisStore):
    """Keeps every saved snapshot per symbol, in insertion order."""

    def __init__(self):
        self._records: Dict[str, List[AnalysisRecord]] = defaultdict(list)

    async def save(self, record: AnalysisRecord) -> None:
        self._records[record.symbol].append(record)
        logger.debug(f"Stored {type(record).__name__} for {record.symbol}")

    async def history(
        self,
        symbol: str,
        timeframe: Optional[Timeframe] = None,
        limit: int = 10
    ) -> List[ComprehensiveAnalysis]:
        analyses = [
            r for r in reversed(self._records.get(symbol, []))
            if isinstance(r, ComprehensiveAnalysis) and (timeframe is None or r.timeframe == timeframe)
        ]
        return analyses[:limit]

    def records(self, symbol: str) -> List[AnalysisRecord]:
        """All snapshots stored for a symbol, oldest first."""
        return list(self._records.get(symbol, []))
