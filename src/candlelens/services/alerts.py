"""
Alert payload rendering and a logging dispatcher.

Payloads carry plain text and structured metadata only; formatting for a
specific messaging platform is left to the dispatcher implementation.
"""

import logging
from typing import List, Optional

from ..models.analysis import AlertPayload, AlertSeverity, ComprehensiveAnalysis
from ..models.patterns import SignalType
from .interfaces import AlertDispatcher

logger = logging.getLogger(__name__)

CRITICAL_CONFIDENCE = 80


def alert_severity(analysis: ComprehensiveAnalysis) -> AlertSeverity:
    """NEUTRAL is informational; directional signals escalate with confidence."""
    score = analysis.score
    if score.signal == SignalType.NEUTRAL:
        return AlertSeverity.INFO
    if score.confidence >= CRITICAL_CONFIDENCE:
        return AlertSeverity.CRITICAL
    return AlertSeverity.WARNING


def build_alert_payload(
    analysis: ComprehensiveAnalysis,
    previous_signal: Optional[SignalType] = None
) -> AlertPayload:
    """
    Render a comprehensive analysis into an alert payload.

    Args:
        analysis: Finished analysis
        previous_signal: Signal of the last stored analysis, when known

    Returns:
        AlertPayload with title, body, severity and metadata
    """
    score = analysis.score
    title = f"{analysis.symbol} {analysis.timeframe.value}: {score.signal.value}"

    lines: List[str] = [
        analysis.summary,
        f"Price: {analysis.current_price}",
        f"Trend {score.trend:.0f} | Momentum {score.momentum:.0f} | Volatility {score.volatility:.0f}",
        f"Confidence: {score.confidence:.0f}%",
    ]
    if previous_signal is not None and previous_signal != score.signal:
        lines.append(f"Signal changed from {previous_signal.value} to {score.signal.value}")

    metadata = {
        "symbol": analysis.symbol,
        "timeframe": analysis.timeframe.value,
        "timestamp": analysis.timestamp,
        "price": analysis.current_price,
        "signal": score.signal.value,
        "previous_signal": previous_signal.value if previous_signal is not None else None,
        "confidence": score.confidence,
        "trend": score.trend,
        "momentum": score.momentum,
        "volatility": score.volatility,
        "patterns": [p.kind.value for p in analysis.patterns],
        "failed_parts": list(analysis.failed_parts),
    }

    return AlertPayload(
        title=title,
        body="\n".join(lines),
        severity=alert_severity(analysis),
        metadata=metadata,
    )


class LoggingAlertDispatcher(AlertDispatcher):
    """Writes alert payloads to the log."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    async def dispatch(self, payload: AlertPayload) -> None:
        level = logging.WARNING if payload.severity != AlertSeverity.INFO else logging.INFO
        self.log.log(level, f"{payload.title}\n{payload.body}")
