"""
Analysis Service

Async entry points invoked by a scheduler or the CLI. The service fetches
candles through the injected provider, runs the synchronous engines and
hands results to the optional store and alert dispatcher.

Entry points:
- perform_comprehensive_analysis: single timeframe score, patterns and summary
- analyze_multi_timeframe_trend: fused trend across timeframes
- analyze_support_resistance: consolidated levels across timeframes
- perform_batch_analysis: one comprehensive analysis per instrument

Identifiers are validated before any fetch. Fetches run concurrently and
each is bounded by the configured timeout. A failed timeframe or
instrument is logged, left out and listed on the result.
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..config import Config
from ..logger import get_analysis_adapter
from ..models.analysis import BatchAnalysisResult, ComprehensiveAnalysis
from ..models.levels import SupportResistanceAnalysis
from ..models.market_data import Candle, Timeframe, validate_symbol, validate_timeframe
from ..models.patterns import SignalType
from ..models.trends import MultiTimeframeTrend
from ..strategies.scoring import ComprehensiveScorer
from ..strategies.support_resistance import SupportResistanceAnalyzer
from ..strategies.trend_analyzer import MultiTimeframeTrendAnalyzer
from .alerts import build_alert_payload
from .interfaces import AlertDispatcher, AnalysisRecord, AnalysisStore, MarketDataProvider

logger = logging.getLogger(__name__)


class AnalysisService:
    """Coordinates data fetching, analysis engines, persistence and alerts."""

    def __init__(
        self,
        provider: MarketDataProvider,
        config: Optional[Config] = None,
        store: Optional[AnalysisStore] = None,
        dispatcher: Optional[AlertDispatcher] = None
    ):
        """
        Initialize the service.

        Args:
            provider: Connected market data provider
            config: Engine configuration, defaults when omitted
            store: Optional persistence for finished analyses
            dispatcher: Optional alert channel for directional signals
        """
        self.provider = provider
        self.config = config or Config()
        self.store = store
        self.dispatcher = dispatcher

        self.scorer = ComprehensiveScorer(self.config)
        self.trend_analyzer = MultiTimeframeTrendAnalyzer(self.config.trend)
        self.level_analyzer = SupportResistanceAnalyzer(self.config.levels)

    # Fetching

    async def _fetch(self, symbol: str, timeframe: Timeframe, limit: int) -> List[Candle]:
        return await asyncio.wait_for(
            self.provider.get_candles(symbol, timeframe, limit),
            timeout=self.config.data.fetch_timeout_seconds,
        )

    async def _fetch_timeframes(
        self,
        symbol: str,
        timeframes: Sequence[Timeframe],
        limit: int
    ) -> Tuple[Dict[Timeframe, List[Candle]], List[Timeframe]]:
        """Fetch several timeframes concurrently; failures are logged and listed."""
        results = await asyncio.gather(
            *(self._fetch(symbol, tf, limit) for tf in timeframes),
            return_exceptions=True,
        )

        data: Dict[Timeframe, List[Candle]] = {}
        failed: List[Timeframe] = []
        for timeframe, result in zip(timeframes, results):
            if isinstance(result, BaseException):
                adapter = get_analysis_adapter(logger, symbol, timeframe.value)
                adapter.error(f"Candle fetch failed: {type(result).__name__}: {result}")
                failed.append(timeframe)
            else:
                data[timeframe] = result

        return data, failed

    def _resolve_timeframes(self, timeframes: Optional[Iterable]) -> List[Timeframe]:
        if timeframes is None:
            return list(self.config.trend.timeframes)
        resolved = []
        for tf in timeframes:
            timeframe = validate_timeframe(tf)
            if timeframe not in resolved:
                resolved.append(timeframe)
        if not resolved:
            raise ValueError("At least one timeframe is required")
        return resolved

    # Collaborators

    async def _store(self, record: AnalysisRecord) -> None:
        if self.store is None:
            return
        try:
            await self.store.save(record)
        except Exception as e:
            logger.error(f"Failed to store {type(record).__name__} for {record.symbol}: {e}")

    async def _previous_signal(self, symbol: str, timeframe: Timeframe) -> Optional[SignalType]:
        if self.store is None:
            return None
        try:
            history = await self.store.history(symbol, timeframe, limit=1)
        except Exception as e:
            logger.error(f"Failed to read analysis history for {symbol}: {e}")
            return None
        return history[0].score.signal if history else None

    async def _alert(self, analysis: ComprehensiveAnalysis, previous: Optional[SignalType]) -> None:
        if self.dispatcher is None or analysis.score.signal == SignalType.NEUTRAL:
            return
        try:
            await self.dispatcher.dispatch(build_alert_payload(analysis, previous))
        except Exception as e:
            logger.error(f"Failed to dispatch alert for {analysis.symbol}: {e}")

    # Entry points

    async def perform_comprehensive_analysis(
        self,
        symbol: str,
        timeframe,
        limit: Optional[int] = None
    ) -> ComprehensiveAnalysis:
        """
        Comprehensive single-timeframe analysis of one instrument.

        Raises:
            ValueError: On malformed identifiers or fewer than ``data.min_candles`` candles.
        """
        symbol = validate_symbol(symbol)
        timeframe = validate_timeframe(timeframe)
        limit = limit or self.config.data.candle_limit

        previous = await self._previous_signal(symbol, timeframe)
        return await self._run_comprehensive(symbol, timeframe, limit, previous)

    async def _run_comprehensive(
        self,
        symbol: str,
        timeframe: Timeframe,
        limit: int,
        previous: Optional[SignalType]
    ) -> ComprehensiveAnalysis:
        candles = await self._fetch(symbol, timeframe, limit)
        analysis = self.scorer.analyze(symbol, timeframe, candles)

        await self._store(analysis)
        await self._alert(analysis, previous)
        return analysis

    async def analyze_multi_timeframe_trend(
        self,
        symbol: str,
        timeframes: Optional[Iterable] = None
    ) -> MultiTimeframeTrend:
        """
        Multi-timeframe trend analysis of one instrument.

        Raises:
            ValueError: On malformed identifiers or when no timeframe
                could be analysed.
        """
        symbol = validate_symbol(symbol)
        selected = self._resolve_timeframes(timeframes)

        data, failed = await self._fetch_timeframes(symbol, selected, self.config.trend.candle_limit)
        trend = self.trend_analyzer.analyze(symbol, data, failed_timeframes=failed)

        await self._store(trend)
        return trend

    async def analyze_support_resistance(
        self,
        symbol: str,
        timeframes: Optional[Iterable] = None
    ) -> SupportResistanceAnalysis:
        """
        Support/resistance analysis of one instrument across timeframes.

        Raises:
            ValueError: On malformed identifiers or when no timeframe
                returned candles.
        """
        symbol = validate_symbol(symbol)
        selected = self._resolve_timeframes(timeframes)

        data, failed = await self._fetch_timeframes(symbol, selected, self.config.trend.candle_limit)
        analysis = self.level_analyzer.analyze(symbol, data)
        if failed:
            merged = sorted(set(failed) | set(analysis.failed_timeframes), key=lambda tf: tf.seconds)
            analysis = analysis.model_copy(update={"failed_timeframes": merged})

        await self._store(analysis)
        return analysis

    async def perform_batch_analysis(
        self,
        symbols: Optional[Iterable[str]] = None,
        timeframe=Timeframe.ONE_HOUR
    ) -> BatchAnalysisResult:
        """
        Comprehensive analysis of a watchlist, one task per instrument.

        Malformed identifiers are rejected before any fetch. Instruments
        whose analysis fails are logged and listed in ``failed_symbols``.
        """
        selected = [validate_symbol(s) for s in (symbols or self.config.data.default_symbols)]
        timeframe = validate_timeframe(timeframe)

        previous = {}
        for symbol in selected:
            previous[symbol] = await self._previous_signal(symbol, timeframe)

        results = await asyncio.gather(
            *(
                self._run_comprehensive(symbol, timeframe, self.config.data.candle_limit, previous[symbol])
                for symbol in selected
            ),
            return_exceptions=True,
        )

        batch = BatchAnalysisResult(previous_signals=previous)
        for symbol, result in zip(selected, results):
            if isinstance(result, BaseException):
                logger.error(f"Batch analysis failed for {symbol} {timeframe.value}: {result}")
                batch.failed_symbols.append(symbol)
            else:
                batch.results[symbol] = result

        logger.info(
            f"Batch analysis complete: {len(batch.results)} succeeded, {len(batch.failed_symbols)} failed"
        )
        return batch
