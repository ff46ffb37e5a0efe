"""
Collaborator interfaces consumed by the analysis service.

The analysis engines never fetch, persist or notify on their own. These
abstract classes describe the collaborators that do, so implementations
can be injected by whatever schedules the analyses:

- MarketDataProvider: candle acquisition with an explicit connection lifecycle
- AnalysisStore: persistence of finished analysis snapshots
- AlertDispatcher: delivery of rendered alert payloads
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Union

from ..models.analysis import AlertPayload, ComprehensiveAnalysis
from ..models.levels import SupportResistanceAnalysis
from ..models.market_data import Candle, Timeframe
from ..models.trends import MultiTimeframeTrend

logger = logging.getLogger(__name__)

AnalysisRecord = Union[ComprehensiveAnalysis, MultiTimeframeTrend, SupportResistanceAnalysis]


class ConnectionState(str, Enum):
    """Provider connection lifecycle states."""

    CREATED = "created"
    CONNECTED = "connected"
    CLOSED = "closed"


class MarketDataProvider(ABC):
    """
    Base class for market data providers.

    Connection state lives on the provider instance. Callers open it with
    ``connect`` (or ``async with``), may ``reconnect`` after a failure and
    must ``close`` it when done.
    """

    def __init__(self):
        self.state = ConnectionState.CREATED
        self.reconnect_count = 0
        self.connected_at: Optional[datetime] = None

    @property
    def is_connected(self) -> bool:
        """Check if the provider is ready to serve candles."""
        return self.state == ConnectionState.CONNECTED

    async def connect(self) -> bool:
        """
        Open the provider.

        Returns:
            bool: True if the provider is connected
        """
        if self.is_connected:
            return True
        await self._open()
        self.state = ConnectionState.CONNECTED
        self.connected_at = datetime.now(timezone.utc)
        logger.info(f"{type(self).__name__} connected")
        return True

    async def reconnect(self) -> bool:
        """Close and reopen the provider."""
        await self.close()
        self.reconnect_count += 1
        logger.info(f"{type(self).__name__} reconnecting (attempt {self.reconnect_count})")
        return await self.connect()

    async def close(self) -> None:
        """Release provider resources."""
        if self.state == ConnectionState.CONNECTED:
            await self._close()
        self.state = ConnectionState.CLOSED
        self.connected_at = None

    async def __aenter__(self) -> "MarketDataProvider":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _ensure_connected(self) -> None:
        if not self.is_connected:
            raise ConnectionError(f"{type(self).__name__} is not connected")

    async def _open(self) -> None:
        """Acquire resources; override when the provider needs any."""

    async def _close(self) -> None:
        """Release resources acquired in ``_open``."""

    @abstractmethod
    async def get_candles(
        self,
        symbol: str,
        timeframe: Timeframe,
        limit: int,
        start: Optional[int] = None,
        end: Optional[int] = None
    ) -> List[Candle]:
        """
        Get candles for one instrument and timeframe.

        Args:
            symbol: Instrument symbol
            timeframe: Candle timeframe
            limit: Maximum number of candles, most recent kept
            start: Earliest open time in epoch milliseconds (inclusive)
            end: Latest open time in epoch milliseconds (inclusive)

        Returns:
            Candles ascending by open time without duplicates
        """
        pass


class AnalysisStore(ABC):
    """Persistence of finished analysis results."""

    @abstractmethod
    async def save(self, record: AnalysisRecord) -> None:
        """Store one analysis snapshot."""
        pass

    @abstractmethod
    async def history(
        self,
        symbol: str,
        timeframe: Optional[Timeframe] = None,
        limit: int = 10
    ) -> List[ComprehensiveAnalysis]:
        """
        Get stored comprehensive analyses, newest first.

        Args:
            symbol: Instrument symbol
            timeframe: Restrict to one timeframe when given
            limit: Maximum number of records
        """
        pass


class AlertDispatcher(ABC):
    """Delivery channel for alert payloads."""

    @abstractmethod
    async def dispatch(self, payload: AlertPayload) -> None:
        """Deliver one payload."""
        pass
