"""
Configuration management for the candlelens analysis engine.

Every heuristic threshold used by the engines lives here as a default
value so it can be tuned or tested without touching the algorithms.
"""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from .models.market_data import Timeframe
from .utils import parse_size


class IndicatorConfig(BaseModel):
    """Indicator periods and parameters."""

    sma_short_period: int = Field(default=20, ge=1)
    sma_long_period: int = Field(default=50, ge=1)
    ema_fast_period: int = Field(default=12, ge=1)
    ema_slow_period: int = Field(default=26, ge=1)
    macd_fast: int = Field(default=12, ge=1)
    macd_slow: int = Field(default=26, ge=1)
    macd_signal: int = Field(default=9, ge=1)
    rsi_period: int = Field(default=14, ge=1)
    bollinger_period: int = Field(default=20, ge=1)
    bollinger_std_dev: float = Field(default=2.0, gt=0)
    stochastic_k: int = Field(default=14, ge=1)
    stochastic_d: int = Field(default=3, ge=1)
    williams_period: int = Field(default=14, ge=1)
    momentum_period: int = Field(default=10, ge=1)

    @model_validator(mode='after')
    def validate_macd_periods(self):
        """The fast MACD line must react faster than the slow one."""
        if self.macd_fast >= self.macd_slow:
            raise ValueError(
                f"macd_fast ({self.macd_fast}) must be lower than macd_slow ({self.macd_slow})"
            )
        return self


class LevelConfig(BaseModel):
    """Support/resistance discovery parameters."""

    swing_lookback: int = Field(default=5, ge=1, le=50)
    level_margin: float = Field(default=0.001, ge=0, le=0.1)
    range_volatility_factor: float = Field(default=0.5, gt=0)
    volume_anomaly_multiplier: float = Field(default=2.0, gt=1)
    volume_level_margin: float = Field(default=0.005, ge=0, le=0.1)
    volume_level_range: float = Field(default=0.005, gt=0, le=0.1)
    volume_level_confidence: int = Field(default=70, ge=0, le=100)
    merge_tolerance: float = Field(default=0.01, gt=0, le=0.1)
    min_confidence: int = Field(default=40, ge=0, le=100)
    active_lookback: int = Field(default=10, ge=1)
    breach_tolerance: float = Field(default=0.01, ge=0)
    approach_distance: float = Field(default=0.02, gt=0)
    zone_min_confidence: int = Field(default=60, ge=0, le=100)

    # Touch-based pivot levels consumed by the pattern detectors
    pivot_lookback: int = Field(default=50, ge=1)
    pivot_window: int = Field(default=5, ge=1)
    pivot_tolerance: float = Field(default=0.005, gt=0, le=0.1)
    pivot_min_touches: int = Field(default=2, ge=1)


class PatternConfig(BaseModel):
    """Chart pattern recognition thresholds."""

    box_min_duration: int = Field(default=20, ge=2)
    box_min_height: float = Field(default=0.02, gt=0)
    box_max_height: float = Field(default=0.15, gt=0)
    box_min_within_ratio: float = Field(default=0.7, gt=0, le=1)
    box_touch_tolerance: float = Field(default=0.01, gt=0)
    box_min_touches: int = Field(default=2, ge=1)
    box_max_confidence: float = Field(default=95.0, gt=0, le=100)
    breakout_proximity: float = Field(default=0.01, gt=0)
    breakout_window: int = Field(default=20, ge=1)
    breakout_volume_threshold: float = Field(default=1.5, gt=0)
    breakout_min_confidence: float = Field(default=60.0, ge=0, le=100)
    breakout_max_confidence: float = Field(default=95.0, gt=0, le=100)
    trend_period: int = Field(default=20, ge=5)
    trend_min_strength: float = Field(default=0.6, gt=0, le=1)

    @model_validator(mode='after')
    def validate_box_bounds(self):
        """Box height bounds must describe a non-empty interval."""
        if self.box_min_height >= self.box_max_height:
            raise ValueError(
                f"box_min_height ({self.box_min_height}) must be lower than "
                f"box_max_height ({self.box_max_height})"
            )
        return self


class TrendConfig(BaseModel):
    """Multi-timeframe trend aggregation parameters."""

    timeframes: List[Timeframe] = Field(
        default=[Timeframe.FIFTEEN_MINUTES, Timeframe.ONE_HOUR, Timeframe.FOUR_HOURS, Timeframe.ONE_DAY]
    )
    candle_limit: int = Field(default=200, ge=1)
    ema_short: int = Field(default=20, ge=1)
    ema_medium: int = Field(default=60, ge=1)
    ema_long: int = Field(default=120, ge=1)
    slope_window: int = Field(default=10, ge=2)
    min_aligned_timeframes: int = Field(default=3, ge=1)

    @field_validator('timeframes')
    @classmethod
    def validate_timeframes(cls, v: List[Timeframe]) -> List[Timeframe]:
        """Timeframes must be unique and non-empty."""
        if not v:
            raise ValueError("At least one timeframe is required")
        if len(set(v)) != len(v):
            raise ValueError(f"Duplicate timeframes: {v}")
        return v

    @model_validator(mode='after')
    def validate_ema_periods(self):
        """EMA periods must be strictly increasing and covered by the candle limit."""
        if not self.ema_short < self.ema_medium < self.ema_long:
            raise ValueError(
                f"EMA periods must increase: {self.ema_short}, {self.ema_medium}, {self.ema_long}"
            )
        if self.candle_limit < self.ema_long:
            raise ValueError(
                f"candle_limit ({self.candle_limit}) must cover ema_long ({self.ema_long})"
            )
        return self


class DataConfig(BaseModel):
    """Market data acquisition settings used by the service layer."""

    default_symbols: List[str] = Field(default=["BTCUSDT", "ETHUSDT"])
    candle_limit: int = Field(default=100, ge=1)
    min_candles: int = Field(default=20, ge=1, description="Fewest candles a single-timeframe analysis accepts")
    fetch_timeout_seconds: float = Field(default=10.0, gt=0)

    @model_validator(mode='after')
    def validate_candle_limit(self):
        """candle_limit must cover min_candles."""
        if self.candle_limit < self.min_candles:
            raise ValueError(
                f"candle_limit ({self.candle_limit}) must be at least min_candles ({self.min_candles})"
            )
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO")
    file_path: Optional[str] = Field(default=None)
    max_size: str = Field(default="10MB")
    backup_count: int = Field(default=5, ge=0)

    @field_validator('max_size')
    @classmethod
    def validate_max_size(cls, v: str) -> str:
        parse_size(v)
        return v


class Config(BaseModel):
    """Main configuration class."""

    indicators: IndicatorConfig = Field(default_factory=IndicatorConfig)
    levels: LevelConfig = Field(default_factory=LevelConfig)
    patterns: PatternConfig = Field(default_factory=PatternConfig)
    trend: TrendConfig = Field(default_factory=TrendConfig)
    data: DataConfig = Field(default_factory=DataConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load_from_env(cls, env_file: Optional[str] = None) -> "Config":
        """Load configuration from environment variables."""
        if env_file:
            load_dotenv(env_file)
        else:
            env_path = Path(".env")
            if env_path.exists():
                load_dotenv(env_path)

        levels = LevelConfig(
            swing_lookback=int(os.getenv("SWING_LOOKBACK", "5")),
            merge_tolerance=float(os.getenv("LEVEL_MERGE_TOLERANCE", "0.01")),
        )

        patterns = PatternConfig(
            box_min_height=float(os.getenv("BOX_MIN_HEIGHT_PCT", "2")) / 100,
            box_max_height=float(os.getenv("BOX_MAX_HEIGHT_PCT", "15")) / 100,
            box_min_duration=int(os.getenv("BOX_MIN_DURATION", "20")),
        )

        timeframes = os.getenv("ANALYSIS_TIMEFRAMES", "15m,1h,4h,1d").split(",")
        trend = TrendConfig(
            timeframes=[Timeframe(t.strip()) for t in timeframes if t.strip()],
            candle_limit=int(os.getenv("TREND_CANDLE_LIMIT", "200")),
        )

        symbols = os.getenv("DEFAULT_SYMBOLS", "BTCUSDT,ETHUSDT").split(",")
        data = DataConfig(
            default_symbols=[s.strip().upper() for s in symbols if s.strip()],
            candle_limit=int(os.getenv("CANDLE_LIMIT", "100")),
            min_candles=int(os.getenv("MIN_CANDLES", "20")),
            fetch_timeout_seconds=float(os.getenv("FETCH_TIMEOUT_SECONDS", "10")),
        )

        logging = LoggingConfig(
            level=os.getenv("LOG_LEVEL", "INFO"),
            file_path=os.getenv("LOG_FILE_PATH") or None,
            max_size=os.getenv("LOG_MAX_SIZE", "10MB"),
            backup_count=int(os.getenv("LOG_BACKUP_COUNT", "5"))
        )

        return cls(
            levels=levels,
            patterns=patterns,
            trend=trend,
            data=data,
            logging=logging
        )
