"""
Summary statistics of a price series used for model selection.
"""

from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np


@dataclass(frozen=True)
class SeriesStatistics:
    """
    Summary of a price series.

    Attributes:
        length: Number of prices
        mean: Arithmetic mean (0 for an empty series)
        std: Population standard deviation
        volatility: std / mean, 0 when the mean is 0
        slope: Least-squares slope against block index
        trend_strength: |slope| * 1000, a scaling used only by model heuristics
    """
    length: int
    mean: float
    std: float
    volatility: float
    slope: float
    trend_strength: float


def sequential_sum(values: Iterable[float]) -> float:
    """Running total added strictly left to right, with no pairwise or compensated summation."""
    total = 0.0
    for value in values:
        total += value
    return total


def population_std(prices: Sequence[float]) -> float:
    """Population standard deviation (ddof=0), 0 for an empty series."""
    values = np.asarray(prices, dtype=float)
    if len(values) == 0:
        return 0.0
    mean = sequential_sum(values.tolist()) / len(values)
    return float(np.sqrt(sequential_sum(((values - mean) ** 2).tolist()) / len(values)))


def linear_trend_slope(prices: Sequence[float]) -> float:
    """
    Least-squares slope of price against block index.

    Uses the closed form with sums of indices, prices, index*price and
    squared indices. A zero denominator is replaced by 1.
    """
    values = np.asarray(prices, dtype=float)
    n = len(values)
    x_sum = n * (n - 1) / 2
    y_sum = sequential_sum(values.tolist())
    xy_sum = sequential_sum((np.arange(n) * values).tolist())
    x_squared_sum = n * (n - 1) * (2 * n - 1) / 6

    denominator = n * x_squared_sum - x_sum * x_sum
    if denominator == 0:
        denominator = 1
    return float((n * xy_sum - x_sum * y_sum) / denominator)


def compute_series_statistics(prices: Sequence[float]) -> SeriesStatistics:
    """Compute mean, spread, volatility and trend of a price series."""
    values = np.asarray(prices, dtype=float)
    n = len(values)

    mean = sequential_sum(values.tolist()) / n if n > 0 else 0.0
    std = population_std(values)
    volatility = 0.0 if mean == 0 else std / mean
    slope = linear_trend_slope(values)

    return SeriesStatistics(
        length=n,
        mean=mean,
        std=std,
        volatility=volatility,
        slope=slope,
        trend_strength=abs(slope) * 1000,
    )
