"""
IEX market price forecasting and battery arbitrage engine.
"""

from iex_arbitrage.exceptions import (
    ArbitrageEngineError,
    DataValidationError,
    EmptyInputError,
    InvalidConfigurationError,
)
from iex_arbitrage.models import (
    ArbitrageDay,
    ArbitrageWindow,
    DataCharacteristics,
    ForecastPoint,
    HistoricalPoint,
    ModelDescriptor,
    ModelMetrics,
    ModelResult,
    SimulationResult,
    WindowKind,
)
from iex_arbitrage.simulator import SimulationConfig, simulate

__version__ = '1.0.0'
