"""
Service layer: collaborator interfaces, reference implementations and the
async analysis entry points.
"""

from .interfaces import (
    AlertDispatcher,
    AnalysisRecord,
    AnalysisStore,
    ConnectionState,
    MarketDataProvider,
)
from .providers import InMemoryMarketDataProvider, JsonFileMarketDataProvider
from .storage import InMemoryAnalysisStore
from .alerts import LoggingAlertDispatcher, build_alert_payload
from .analysis_service import AnalysisService

__all__ = [
    "AlertDispatcher",
    "AnalysisRecord",
    "AnalysisService",
    "AnalysisStore",
    "ConnectionState",
    "InMemoryAnalysisStore",
    "InMemoryMarketDataProvider",
    "JsonFileMarketDataProvider",
    "LoggingAlertDispatcher",
    "MarketDataProvider",
    "build_alert_payload",
]
