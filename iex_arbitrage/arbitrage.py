"""
Arbitrage window detection.

Splits each forecast day into CHARGE and DISCHARGE windows: blocks priced
at or below the day's 10th-percentile price are charge blocks, blocks at or
above the 90th-percentile price are discharge blocks, and contiguous runs
of the same kind are merged into one window.

Algorithm: O(n log n) per day - one sort plus a single pass
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from iex_arbitrage.constants import CHARGE_QUANTILE, DISCHARGE_QUANTILE
from iex_arbitrage.models import ArbitrageDay, ArbitrageWindow, ForecastPoint, WindowKind

logger = logging.getLogger(__name__)


def calculate_thresholds(
    prices: Sequence[float],
    charge_quantile: float = CHARGE_QUANTILE,
    discharge_quantile: float = DISCHARGE_QUANTILE
) -> Tuple[float, float]:
    """
    Charge/discharge thresholds from one day's prices.

    Picks the sorted price at index floor(q * N), without interpolation.

    Returns:
        Tuple of (charge_threshold, discharge_threshold)
    """
    ordered = sorted(prices)
    n = len(ordered)
    return ordered[int(n * charge_quantile)], ordered[int(n * discharge_quantile)]


def classify_price(
    price: float,
    charge_threshold: float,
    discharge_threshold: float
) -> Optional[WindowKind]:
    """CHARGE, DISCHARGE or None. CHARGE is checked first when thresholds coincide."""
    if price <= charge_threshold:
        return WindowKind.CHARGE
    if price >= discharge_threshold:
        return WindowKind.DISCHARGE
    return None


@dataclass
class _OpenWindow:
    kind: WindowKind
    start: str
    end: str
    running_sum: float
    running_count: int

    def extend(self, time_label: str, price: float):
        self.end = time_label
        self.running_sum += price
        self.running_count += 1

    def close(self) -> ArbitrageWindow:
        return ArbitrageWindow(
            start_time_label=self.start,
            end_time_label=self.end,
            kind=self.kind,
            average_price=self.running_sum / self.running_count,
            block_count=self.running_count,
        )


def find_windows(
    time_labels: Sequence[str],
    prices: Sequence[float],
    charge_threshold: float,
    discharge_threshold: float
) -> List[ArbitrageWindow]:
    """
    Merge classified blocks into windows.

    Args:
        time_labels: HH:MM labels of the day's blocks, chronological
        prices: Price of each block
        charge_threshold: Charge when price <= this
        discharge_threshold: Discharge when price >= this

    Returns:
        Windows in the order they closed (chronological)
    """
    windows: List[ArbitrageWindow] = []
    current: Optional[_OpenWindow] = None

    for time_label, price in zip(time_labels, prices):
        kind = classify_price(price, charge_threshold, discharge_threshold)

        if kind is None:
            if current is not None:
                windows.append(current.close())
                current = None
        elif current is not None and current.kind == kind:
            current.extend(time_label, price)
        else:
            if current is not None:
                windows.append(current.close())
            current = _OpenWindow(kind, time_label, time_label, price, 1)

    if current is not None:
        windows.append(current.close())

    return windows


def analyze_day(
    day_label: str,
    time_labels: Sequence[str],
    prices: Sequence[float]
) -> ArbitrageDay:
    """Thresholds, extremes and windows for one calendar day."""
    charge_threshold, discharge_threshold = calculate_thresholds(prices)
    windows = find_windows(time_labels, prices, charge_threshold, discharge_threshold)

    return ArbitrageDay(
        day_label=day_label,
        windows=tuple(windows),
        daily_min=min(prices),
        daily_max=max(prices),
        charge_threshold=charge_threshold,
        discharge_threshold=discharge_threshold,
    )


def group_by_day(forecasts: Sequence[ForecastPoint]) -> Dict[str, List[ForecastPoint]]:
    """Forecasts grouped by day label, keeping first-seen day order."""
    grouped: Dict[str, List[ForecastPoint]] = {}
    for point in forecasts:
        grouped.setdefault(point.day_label, []).append(point)
    return grouped


def detect_arbitrage_windows(forecasts: Sequence[ForecastPoint]) -> List[ArbitrageDay]:
    """
    Detect charge/discharge windows for every forecast day.

    Args:
        forecasts: Chronological forecast points

    Returns:
        One ArbitrageDay per calendar day, in day order
    """
    days = []
    for day_label, points in group_by_day(forecasts).items():
        day = analyze_day(
            day_label,
            [point.time_block_label for point in points],
            [point.predicted_price for point in points],
        )
        logger.debug(
            f"{day_label}: {len(day.windows)} windows, "
            f"charge <= {day.charge_threshold:.4f}, discharge >= {day.discharge_threshold:.4f}"
        )
        days.append(day)
    return days
