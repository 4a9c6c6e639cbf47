"""
Forecast synthesis.

Projects future 15-minute blocks from the historical mean with
time-of-day and weekend seasonality, trend carry-forward, growing
uncertainty and a confidence band sized by the winning model's RMSE.
"""

import logging
from datetime import date, timedelta
from typing import List

from iex_arbitrage.constants import (
    BLOCK_MINUTES,
    BLOCKS_PER_DAY,
    DAY_LABEL_FORMAT,
    DEFAULT_CONFIDENCE_LEVEL,
    EVENING_PEAK_FACTOR,
    MORNING_RAMP_FACTOR,
    NIGHT_FACTOR,
    RANDOM_VARIATION_SPAN,
    UNCERTAINTY_GROWTH_PER_DAY,
    WEEKEND_FACTOR,
    Z_SCORES,
)
from iex_arbitrage.exceptions import InvalidConfigurationError
from iex_arbitrage.models import ForecastPoint
from iex_arbitrage.seeding import SeededGenerator

logger = logging.getLogger(__name__)


def z_score_for(confidence_level: int) -> float:
    """Two-sided z-score for 90/95/99; any other level falls back to 95%."""
    if confidence_level not in Z_SCORES:
        logger.warning(
            f"Unsupported confidence level {confidence_level}, using {DEFAULT_CONFIDENCE_LEVEL}%"
        )
        return Z_SCORES[DEFAULT_CONFIDENCE_LEVEL]
    return Z_SCORES[confidence_level]


def seasonal_multiplier(hour: int) -> float:
    if 6 <= hour < 10:
        return MORNING_RAMP_FACTOR
    if 18 <= hour < 22:
        return EVENING_PEAK_FACTOR
    if hour < 6:
        return NIGHT_FACTOR
    return 1.0


def uncertainty_growth(day_offset: int) -> float:
    return 1 + day_offset * UNCERTAINTY_GROWTH_PER_DAY


def synthesize_forecast(
    last_date: date,
    mean_price: float,
    slope: float,
    history_length: int,
    model_rmse: float,
    forecast_days: int,
    confidence_level: int,
    rng: SeededGenerator
) -> List[ForecastPoint]:
    """
    Forecast every block of the days following the history.

    Args:
        last_date: Calendar day of the last historical block
        mean_price: Historical mean price (Rs/kWh)
        slope: Least-squares slope per block
        history_length: Number of historical blocks
        model_rmse: RMSE of the selected model
        forecast_days: Number of days to forecast (>= 1)
        confidence_level: 90, 95 or 99 (others fall back to 95)
        rng: Forecast generator, one draw per block

    Returns:
        Chronological list of forecast_days * 96 ForecastPoints
    """
    if forecast_days < 1:
        raise InvalidConfigurationError(f"forecast_days must be at least 1, got {forecast_days}")

    z_score = z_score_for(confidence_level)
    forecasts: List[ForecastPoint] = []

    for day_offset in range(1, forecast_days + 1):
        current_date = last_date + timedelta(days=day_offset)
        day_label = current_date.strftime(DAY_LABEL_FORMAT)
        is_weekend = current_date.weekday() >= 5
        growth = uncertainty_growth(day_offset)
        interval = model_rmse * z_score * growth

        for block in range(BLOCKS_PER_DAY):
            hour, minute = divmod(block * BLOCK_MINUTES, 60)

            base_price = mean_price * seasonal_multiplier(hour)
            # Trend carries forward past the end of history
            base_price += slope * (history_length + len(forecasts))
            if is_weekend:
                base_price *= WEEKEND_FACTOR

            random_variation = (rng.next() - 0.5) * RANDOM_VARIATION_SPAN * growth
            predicted_price = max(0.0, base_price * (1 + random_variation))

            forecasts.append(ForecastPoint(
                date=current_date,
                day_label=day_label,
                time_block_label=f"{hour:02d}:{minute:02d}",
                predicted_price=predicted_price,
                lower_bound=max(0.0, predicted_price - interval),
                upper_bound=predicted_price + interval,
            ))

    logger.debug(f"Synthesized {len(forecasts)} blocks over {forecast_days} days")
    return forecasts
