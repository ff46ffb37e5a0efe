"""
Support and Resistance Models

Value objects produced by the level engine:
- Level: clustered, confidence-scored support or resistance zone
- PivotLevel: touch-based level used by the pattern detectors
- KeyLevels, CurrentPosition, TradingZone: derived views for the caller
- SupportResistanceAnalysis: complete multi-timeframe level report
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .market_data import Timeframe


class LevelType(str, Enum):
    """Side of the market a level acts on."""

    SUPPORT = "SUPPORT"
    RESISTANCE = "RESISTANCE"


class LevelStrength(str, Enum):
    """Level strength classes, weakest first."""

    WEAK = "WEAK"
    MEDIUM = "MEDIUM"
    STRONG = "STRONG"
    MAJOR = "MAJOR"

    @property
    def weight(self) -> int:
        """Numeric weight used when merging and ranking levels."""
        return {"WEAK": 1, "MEDIUM": 2, "STRONG": 3, "MAJOR": 4}[self.value]

    @property
    def confidence_bonus(self) -> int:
        """Confidence bonus granted by this strength class."""
        return {"WEAK": 0, "MEDIUM": 10, "STRONG": 15, "MAJOR": 20}[self.value]

    @classmethod
    def from_score(cls, score: float) -> "LevelStrength":
        """Map a 0-10 strength score onto a strength class."""
        if score >= 8:
            return cls.MAJOR
        if score >= 6:
            return cls.STRONG
        if score >= 4:
            return cls.MEDIUM
        return cls.WEAK


class PriceAction(str, Enum):
    """Where price is heading relative to the nearest levels."""

    APPROACHING_RESISTANCE = "APPROACHING_RESISTANCE"
    APPROACHING_SUPPORT = "APPROACHING_SUPPORT"
    CONSOLIDATING = "CONSOLIDATING"


class ZoneType(str, Enum):
    """Trading zone direction."""

    BUY_ZONE = "BUY_ZONE"
    SELL_ZONE = "SELL_ZONE"


class PriceRange(BaseModel):
    """Closed price interval with its center."""

    min: float = Field(..., description="Lower bound")
    max: float = Field(..., description="Upper bound")
    center: float = Field(..., description="Level price")

    model_config = ConfigDict(frozen=True)

    def contains(self, price: float) -> bool:
        """Check whether a price falls inside the range (bounds inclusive)."""
        return self.min <= price <= self.max


class Level(BaseModel):
    """Support or resistance zone discovered from swing points or volume anomalies."""

    type: LevelType = Field(..., description="Support or resistance")
    price_range: PriceRange = Field(..., description="Price zone of the level")
    strength: LevelStrength = Field(..., description="Strength class")
    confidence: float = Field(..., description="Confidence percentage (0-100)")
    touch_count: int = Field(..., description="Candles touching the zone", ge=0)
    last_touch_timestamp: int = Field(..., description="Open time of the seeding candle (ms)")
    timeframe: Timeframe = Field(..., description="Timeframe the level was found on")
    is_active: bool = Field(default=True, description="Not breached by recent closes")
    distance: float = Field(default=0.0, description="Distance from current price in percent")
    description: str = Field(default="", description="Human readable description")

    model_config = ConfigDict(frozen=True)

    @property
    def price(self) -> float:
        """Level center price."""
        return self.price_range.center


class PivotLevel(BaseModel):
    """Touch-counted horizontal level from local price extremes."""

    price: float = Field(..., description="Level price")
    strength: int = Field(..., description="Strength (1-10)", ge=1, le=10)
    type: LevelType = Field(..., description="Support or resistance")
    touch_count: int = Field(..., description="Number of touches", ge=1)
    first_touch: int = Field(..., description="First touch open time (ms)")
    last_touch: int = Field(..., description="Last touch open time (ms)")

    model_config = ConfigDict(frozen=True)


class KeyLevels(BaseModel):
    """Nearest and strongest levels on each side of price."""

    nearest_support: Optional[Level] = None
    nearest_resistance: Optional[Level] = None
    strongest_support: Optional[Level] = None
    strongest_resistance: Optional[Level] = None


class CurrentPosition(BaseModel):
    """Price position relative to the discovered levels."""

    in_support_zone: bool = False
    in_resistance_zone: bool = False
    between_levels: bool = True
    price_action: PriceAction = PriceAction.CONSOLIDATING


class TradingZone(BaseModel):
    """Price range suggested for entries derived from a level."""

    type: ZoneType = Field(..., description="Buy or sell zone")
    price_range: PriceRange = Field(..., description="Zone price range")
    confidence: float = Field(..., description="Confidence of the underlying level")
    reasoning: str = Field(..., description="Why the zone was emitted")

    model_config = ConfigDict(frozen=True)


class SupportResistanceAnalysis(BaseModel):
    """Consolidated support/resistance report for one instrument."""

    symbol: str = Field(..., description="Instrument symbol")
    current_price: float = Field(..., description="Reference price")
    timestamp: int = Field(..., description="Open time of the reference candle (ms)")
    key_levels: KeyLevels = Field(default_factory=KeyLevels)
    supports: List[Level] = Field(default_factory=list, description="Sorted by price descending")
    resistances: List[Level] = Field(default_factory=list, description="Sorted by price ascending")
    current_position: CurrentPosition = Field(default_factory=CurrentPosition)
    trading_zones: List[TradingZone] = Field(default_factory=list)
    failed_timeframes: List[Timeframe] = Field(default_factory=list)
