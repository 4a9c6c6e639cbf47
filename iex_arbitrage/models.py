"""
Data model for the forecasting and arbitrage engine.

All records are frozen dataclasses: the engine reads history owned by the
caller and returns results that are never mutated after creation.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Mapping, Optional, Tuple

from iex_arbitrage.constants import DAY_LABEL_FORMAT, TIME_BLOCK_FORMAT


class WindowKind(str, Enum):
    """Battery action for an arbitrage window."""
    CHARGE = 'CHARGE'
    DISCHARGE = 'DISCHARGE'


@dataclass(frozen=True)
class HistoricalPoint:
    """
    One 15-minute block of historical market clearing price.

    Attributes:
        timestamp: Start of the time block
        price_per_kwh: Market clearing price (Rs/kWh)
        hour: Hour of the block start (0-23)
        minute: Minute of the block start (0, 15, 30, 45)
        day_of_week: Monday = 0 ... Sunday = 6
        is_weekend: Saturday or Sunday
        purchase_bid: Purchase bid volume (MW), if known
        sell_bid: Sell bid volume (MW), if known
        mcv: Market clearing volume (MW), if known
    """
    timestamp: datetime
    price_per_kwh: float
    hour: int
    minute: int
    day_of_week: int
    is_weekend: bool
    purchase_bid: Optional[float] = None
    sell_bid: Optional[float] = None
    mcv: Optional[float] = None

    @classmethod
    def from_timestamp(cls, timestamp: datetime, price_per_kwh: float, **extra) -> 'HistoricalPoint':
        """Build a point, deriving the calendar features from the timestamp."""
        weekday = timestamp.weekday()
        return cls(
            timestamp=timestamp,
            price_per_kwh=float(price_per_kwh),
            hour=timestamp.hour,
            minute=timestamp.minute,
            day_of_week=weekday,
            is_weekend=weekday >= 5,
            **extra
        )

    @property
    def date_label(self) -> str:
        return self.timestamp.strftime(DAY_LABEL_FORMAT)

    @property
    def time_block_label(self) -> str:
        return self.timestamp.strftime(TIME_BLOCK_FORMAT)

    @property
    def price_per_mwh(self) -> float:
        return self.price_per_kwh * 1000

    @property
    def season(self) -> str:
        month = self.timestamp.month
        if month in (11, 12, 1, 2):
            return 'winter'
        if month in (3, 4):
            return 'spring'
        if month in (5, 6):
            return 'summer'
        return 'monsoon'

    @property
    def time_of_day(self) -> str:
        if 6 <= self.hour < 12:
            return 'morning'
        if 12 <= self.hour < 17:
            return 'afternoon'
        if 17 <= self.hour < 21:
            return 'evening'
        return 'night'


@dataclass(frozen=True)
class ModelDescriptor:
    """Static description of a candidate model in the panel."""
    name: str
    display_color: str
    category: str  # statistical, ensemble, boosting, deep_learning


@dataclass(frozen=True)
class ModelMetrics:
    """Back-test accuracy metrics for one model."""
    rmse: float
    mae: float
    mape: float  # percent
    r2: float
    directional_accuracy: float  # percent, 0-100


@dataclass(frozen=True)
class ModelResult:
    """Back-test of one panel model against the history."""
    name: str
    predicted_series: Tuple[float, ...]
    absolute_errors: Tuple[float, ...]
    metrics: ModelMetrics
    color: str
    penalty: float = 0.0


@dataclass(frozen=True)
class ForecastPoint:
    """
    Forecast for one future time block.

    Attributes:
        date: Calendar day of the block
        day_label: Day formatted DD-MM-YYYY
        time_block_label: Block start formatted HH:MM
        predicted_price: Forecast price (Rs/kWh)
        lower_bound: Lower confidence bound, floored at zero
        upper_bound: Upper confidence bound
    """
    date: date
    day_label: str
    time_block_label: str
    predicted_price: float
    lower_bound: float
    upper_bound: float

    @property
    def timestamp(self) -> datetime:
        hours, minutes = self.time_block_label.split(':')
        return datetime.combine(self.date, time(int(hours), int(minutes)))


@dataclass(frozen=True)
class ArbitrageWindow:
    """Contiguous run of blocks within one day sharing the same action."""
    start_time_label: str
    end_time_label: str
    kind: WindowKind
    average_price: float
    block_count: int = 1


@dataclass(frozen=True)
class ArbitrageDay:
    """Charge/discharge windows and thresholds for one forecast day."""
    day_label: str
    windows: Tuple[ArbitrageWindow, ...]
    daily_min: float
    daily_max: float
    charge_threshold: float
    discharge_threshold: float


@dataclass(frozen=True)
class DataCharacteristics:
    """Summary of the input series used for model selection."""
    volatility: float
    trend: float  # least-squares slope per block
    length: int
    mean: float = 0.0
    std: float = 0.0
    trend_strength: float = 0.0


@dataclass(frozen=True)
class SimulationResult:
    """Aggregate output of one simulation run."""
    input_echo: Tuple[HistoricalPoint, ...]
    model_results: Mapping[str, ModelResult]  # read-only view, panel order
    best_model_name: str
    forecasts: Tuple[ForecastPoint, ...]
    arbitrage_days: Tuple[ArbitrageDay, ...]
    characteristics: DataCharacteristics
    fingerprint: int = 0
    confidence_level: int = 95
    z_score: float = 1.96
    forecast_days: int = 0

    @property
    def best_model(self) -> ModelResult:
        return self.model_results[self.best_model_name]
