"""
Model panel scoring.

The panel is not a set of fitted models. Each named candidate gets an error
penalty from a fixed rule table keyed off the dataset characteristics, plus
seeded jitter, and that penalty is back-tested against the history to
produce accuracy metrics. Everything is reproducible from the dataset
fingerprint.
"""

import logging
import operator
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from iex_arbitrage.constants import (
    BASE_ERROR,
    JITTER_SPAN,
    MIN_PENALTY,
    MORNING_DIFFICULTY,
    PEAK_DIFFICULTY,
)
from iex_arbitrage.models import HistoricalPoint, ModelDescriptor, ModelMetrics, ModelResult
from iex_arbitrage.seeding import SeededGenerator, model_seed
from iex_arbitrage.series_stats import SeriesStatistics, sequential_sum

logger = logging.getLogger(__name__)


MODEL_PANEL: Tuple[ModelDescriptor, ...] = (
    ModelDescriptor('SARIMAX', '#3b82f6', 'statistical'),
    ModelDescriptor('Random Forest', '#10b981', 'ensemble'),
    ModelDescriptor('XGBoost', '#f59e0b', 'boosting'),
    ModelDescriptor('LightGBM', '#8b5cf6', 'boosting'),
    ModelDescriptor('CatBoost', '#ec4899', 'boosting'),
    ModelDescriptor('LSTM', '#ef4444', 'deep_learning'),
)


@dataclass(frozen=True)
class PenaltyRule:
    """
    One heuristic adjustment to a model's base error.

    A rule with no feature always applies. Features are looked up on the
    SeriesStatistics: 'volatility', 'trend_strength' or 'length'.
    """
    delta: float
    feature: Optional[str] = None
    compare: Optional[Callable[[float, float], bool]] = None
    threshold: float = 0.0

    def applies(self, stats: SeriesStatistics) -> bool:
        if self.feature is None:
            return True
        return self.compare(getattr(stats, self.feature), self.threshold)


PENALTY_RULES: Mapping[str, Tuple[PenaltyRule, ...]] = {
    'SARIMAX': (
        PenaltyRule(-0.01, 'volatility', operator.lt, 0.15),
        PenaltyRule(-0.005, 'trend_strength', operator.lt, 0.05),
    ),
    'Random Forest': (
        PenaltyRule(-0.01, 'volatility', operator.gt, 0.25),
        PenaltyRule(-0.005, 'length', operator.gt, 1000),
    ),
    'XGBoost': (
        PenaltyRule(-0.01, 'trend_strength', operator.gt, 0.05),
        PenaltyRule(-0.002),
    ),
    'LightGBM': (
        PenaltyRule(-0.01, 'length', operator.gt, 2000),
    ),
    'CatBoost': (
        PenaltyRule(-0.01, 'volatility', operator.gt, 0.3),
    ),
    'LSTM': (
        PenaltyRule(-0.015, 'length', operator.gt, 5000),
        PenaltyRule(-0.005, 'volatility', operator.gt, 0.2),
        PenaltyRule(+0.02, 'length', operator.lt, 500),
    ),
}


def compute_penalty(model_name: str, stats: SeriesStatistics) -> float:
    """Base error adjusted by the model's rule table, before jitter."""
    penalty = BASE_ERROR
    for rule in PENALTY_RULES.get(model_name, ()):
        if rule.applies(stats):
            penalty += rule.delta
    return penalty


def score_penalties(stats: SeriesStatistics, rng: SeededGenerator) -> Dict[str, float]:
    """
    Final penalty per panel model.

    Draws one jitter value per model from rng, in panel order, and floors
    the result at MIN_PENALTY.
    """
    penalties = {}
    for model in MODEL_PANEL:
        jitter = (rng.next() - 0.5) * JITTER_SPAN
        penalties[model.name] = max(MIN_PENALTY, compute_penalty(model.name, stats) + jitter)
        logger.debug(f"{model.name}: penalty={penalties[model.name]:.5f}")
    return penalties


def difficulty_multiplier(hour: int) -> float:
    """Error scaling for hard-to-predict hours of the day."""
    if 18 <= hour <= 22:
        return PEAK_DIFFICULTY
    if 7 <= hour <= 10:
        return MORNING_DIFFICULTY
    return 1.0


def directional_accuracy(actual: np.ndarray, predicted: np.ndarray) -> float:
    """
    Percentage of consecutive pairs where the predicted move from the
    previous actual has the same sign as the actual move.

    Flat pairs count only when both moves are exactly zero.
    """
    if len(actual) < 2:
        return 0.0
    previous = actual[:-1]
    actual_diff = actual[1:] - previous
    predicted_diff = predicted[1:] - previous

    matches = (
        ((actual_diff > 0) & (predicted_diff > 0))
        | ((actual_diff < 0) & (predicted_diff < 0))
        | ((actual_diff == 0) & (predicted_diff == 0))
    )
    return float(matches.sum() / len(matches) * 100)


def evaluate_forecast(actual: Sequence[float], predicted: Sequence[float]) -> ModelMetrics:
    """
    Calculate back-test error metrics.

    MAPE contributes nothing for zero actuals but still averages over the
    full length. R2 is 0 when the actual series has no variance.
    """
    actual = np.asarray(actual, dtype=float)
    predicted = np.asarray(predicted, dtype=float)
    n = len(actual)

    if n == 0:
        return ModelMetrics(rmse=0.0, mae=0.0, mape=0.0, r2=0.0, directional_accuracy=0.0)

    abs_errors = np.abs(actual - predicted)
    squared = abs_errors * abs_errors

    ss_res = sequential_sum(squared.tolist())
    rmse = float(np.sqrt(ss_res / n))
    mae = sequential_sum(abs_errors.tolist()) / n

    ratios = np.divide(abs_errors, np.abs(actual), out=np.zeros(n), where=actual != 0)
    mape = sequential_sum(ratios.tolist()) / n * 100

    mean = sequential_sum(actual.tolist()) / n
    ss_tot = sequential_sum(((actual - mean) ** 2).tolist())
    r2 = 0.0 if ss_tot == 0 else float(1 - ss_res / ss_tot)

    return ModelMetrics(
        rmse=rmse,
        mae=mae,
        mape=mape,
        r2=r2,
        directional_accuracy=directional_accuracy(actual, predicted),
    )


def backtest_model(
    model: ModelDescriptor,
    history: Sequence[HistoricalPoint],
    penalty: float,
    fingerprint: int
) -> ModelResult:
    """
    Back-test one model's penalty against the history.

    Draws exactly one value per block, in order, from the model's own
    generator, so the result does not depend on other models.

    Args:
        model: Panel entry
        history: Chronological price history
        penalty: Final penalty from score_penalties
        fingerprint: Dataset fingerprint

    Returns:
        ModelResult with predictions, absolute errors and metrics
    """
    rng = SeededGenerator(model_seed(fingerprint, model.name))

    actual = np.array([point.price_per_kwh for point in history], dtype=float)
    multipliers = np.array([difficulty_multiplier(point.hour) for point in history], dtype=float)
    draws = np.array([rng.next() for _ in history], dtype=float)

    noise = (draws - 0.5) * 2
    relative_error = penalty * multipliers * noise
    predicted = np.maximum(0, actual + actual * relative_error)
    abs_errors = np.abs(actual - predicted)

    return ModelResult(
        name=model.name,
        predicted_series=tuple(predicted.tolist()),
        absolute_errors=tuple(abs_errors.tolist()),
        metrics=evaluate_forecast(actual, predicted),
        color=model.display_color,
        penalty=penalty,
    )


def score_model_panel(
    history: Sequence[HistoricalPoint],
    stats: SeriesStatistics,
    fingerprint: int,
    rng: SeededGenerator,
    max_workers: Optional[int] = None
) -> Dict[str, ModelResult]:
    """
    Score every panel model against the history.

    Args:
        history: Chronological price history
        stats: Statistics of the history's prices
        fingerprint: Dataset fingerprint
        rng: Run-wide generator used for penalty jitter
        max_workers: Back-test models in a thread pool when > 1

    Returns:
        Dict mapping model name to ModelResult, in panel order
    """
    penalties = score_penalties(stats, rng)

    if max_workers is not None and max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [
                executor.submit(backtest_model, model, history, penalties[model.name], fingerprint)
                for model in MODEL_PANEL
            ]
            results: List[ModelResult] = [future.result() for future in futures]
    else:
        results = [
            backtest_model(model, history, penalties[model.name], fingerprint)
            for model in MODEL_PANEL
        ]

    return {result.name: result for result in results}


def select_best_model(model_results: Mapping[str, ModelResult]) -> str:
    """Name of the model with the lowest RMSE; the first one wins ties."""
    best_name = None
    best_rmse = float('inf')
    for name, result in model_results.items():
        if best_name is None or result.metrics.rmse < best_rmse:
            best_name = name
            best_rmse = result.metrics.rmse
    if best_name is None:
        raise ValueError("No model results to select from")
    return best_name
