"""
Simulation engine entry point.

One call turns a price history and a configuration into a complete
SimulationResult: model panel scores, the best model, a multi-day forecast
and the arbitrage windows of every forecast day. Runs share no state, so
independent simulations may execute concurrently.
"""

import logging
import numbers
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional, Sequence

from iex_arbitrage.arbitrage import detect_arbitrage_windows
from iex_arbitrage.constants import DEFAULT_CONFIDENCE_LEVEL, DEFAULT_FORECAST_DAYS, Z_SCORES
from iex_arbitrage.exceptions import EmptyInputError, InvalidConfigurationError
from iex_arbitrage.forecasting import synthesize_forecast
from iex_arbitrage.model_panel import score_model_panel, select_best_model
from iex_arbitrage.models import DataCharacteristics, HistoricalPoint, SimulationResult
from iex_arbitrage.seeding import SeededGenerator, dataset_fingerprint, forecast_seed
from iex_arbitrage.series_stats import compute_series_statistics

logger = logging.getLogger(__name__)


@dataclass
class SimulationConfig:
    """Configuration for one simulation run."""
    forecast_days: int = DEFAULT_FORECAST_DAYS
    confidence_level: int = DEFAULT_CONFIDENCE_LEVEL  # 90, 95 or 99; others fall back to 95
    max_workers: Optional[int] = None  # parallel model back-testing when > 1

    def __post_init__(self):
        """Validate simulation parameters."""
        if isinstance(self.forecast_days, bool) or not isinstance(self.forecast_days, numbers.Integral):
            raise InvalidConfigurationError(
                f"forecast_days must be an integer, got {self.forecast_days!r}"
            )
        if self.forecast_days < 1:
            raise InvalidConfigurationError(
                f"forecast_days must be at least 1, got {self.forecast_days}"
            )
        # numpy integers included
        self.forecast_days = int(self.forecast_days)
        if self.max_workers is not None and self.max_workers < 1:
            raise InvalidConfigurationError("max_workers must be positive")


def simulate(
    history: Sequence[HistoricalPoint],
    forecast_days: int = DEFAULT_FORECAST_DAYS,
    confidence_level: int = DEFAULT_CONFIDENCE_LEVEL,
    max_workers: Optional[int] = None
) -> SimulationResult:
    """
    Run the full forecasting and arbitrage pipeline.

    Args:
        history: Chronological 15-minute price history
        forecast_days: Days to forecast (>= 1)
        confidence_level: 90, 95 or 99; unsupported values use 95
        max_workers: Back-test panel models in parallel when > 1

    Returns:
        SimulationResult, identical for identical inputs

    Raises:
        EmptyInputError: if history is empty
        InvalidConfigurationError: if forecast_days < 1
    """
    config = SimulationConfig(forecast_days, confidence_level, max_workers)
    if len(history) == 0:
        raise EmptyInputError("Price history is empty")

    history = tuple(history)
    fingerprint = dataset_fingerprint(history)
    rng = SeededGenerator(fingerprint)
    logger.info(f"Simulating {len(history)} blocks (fingerprint {fingerprint})")

    stats = compute_series_statistics([point.price_per_kwh for point in history])

    model_results = score_model_panel(history, stats, fingerprint, rng, config.max_workers)
    best_model_name = select_best_model(model_results)
    best_rmse = model_results[best_model_name].metrics.rmse
    logger.info(f"Best model: {best_model_name} (RMSE {best_rmse:.4f})")

    forecasts = synthesize_forecast(
        last_date=history[-1].timestamp.date(),
        mean_price=stats.mean,
        slope=stats.slope,
        history_length=stats.length,
        model_rmse=best_rmse,
        forecast_days=config.forecast_days,
        confidence_level=config.confidence_level,
        rng=SeededGenerator(forecast_seed(fingerprint)),
    )
    arbitrage_days = detect_arbitrage_windows(forecasts)
    logger.info(f"Forecast {len(forecasts)} blocks across {len(arbitrage_days)} days")

    return SimulationResult(
        input_echo=history,
        model_results=MappingProxyType(model_results),
        best_model_name=best_model_name,
        forecasts=tuple(forecasts),
        arbitrage_days=tuple(arbitrage_days),
        characteristics=DataCharacteristics(
            volatility=stats.volatility,
            trend=stats.slope,
            length=stats.length,
            mean=stats.mean,
            std=stats.std,
            trend_strength=stats.trend_strength,
        ),
        fingerprint=fingerprint,
        confidence_level=config.confidence_level,
        # synthesize_forecast has already warned about an unsupported level
        z_score=Z_SCORES.get(config.confidence_level, Z_SCORES[DEFAULT_CONFIDENCE_LEVEL]),
        forecast_days=config.forecast_days,
    )
