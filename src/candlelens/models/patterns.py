"""
Pattern recognition models.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PatternKind(str, Enum):
    """Recognised chart pattern kinds."""

    BOX = "BOX"
    BREAKOUT = "BREAKOUT"
    UPTREND = "UPTREND"
    DOWNTREND = "DOWNTREND"
    DOUBLE_TOP = "DOUBLE_TOP"
    DOUBLE_BOTTOM = "DOUBLE_BOTTOM"
    HEAD_AND_SHOULDERS = "HEAD_AND_SHOULDERS"


class SignalType(str, Enum):
    """Discrete trading signal."""

    BUY = "BUY"
    SELL = "SELL"
    NEUTRAL = "NEUTRAL"


class PatternResult(BaseModel):
    """Chart pattern detected over a window of candles."""

    kind: PatternKind = Field(..., description="Pattern kind")
    signal: SignalType = Field(..., description="Implied signal direction")
    confidence: float = Field(..., description="Confidence percentage (0-100)", ge=0, le=100)
    start_time: int = Field(..., description="Window start open time (ms)")
    end_time: int = Field(..., description="Window end open time (ms)")
    description: str = Field(..., description="Human readable description")
    key_levels: Optional[Dict[str, float]] = Field(default=None, description="Named prices")

    model_config = ConfigDict(frozen=True)


class PatternRecognitionResult(BaseModel):
    """Patterns from every detector plus the detectors that failed."""

    patterns: List[PatternResult] = Field(default_factory=list)
    failed_detectors: List[str] = Field(default_factory=list)
