"""
Battery storage economics from a price forecast.

Consumes only forecast points grouped by day: each day the battery buys
the cheapest blocks and sells the dearest ones. The estimate ignores the
ordering constraint between charging and discharging.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from iex_arbitrage.arbitrage import group_by_day
from iex_arbitrage.battery import BessConfig
from iex_arbitrage.constants import KWH_PER_MWH
from iex_arbitrage.models import ForecastPoint


@dataclass(frozen=True)
class FinancialMetrics:
    """Projected economics of the configured battery (Rs)."""
    daily_revenue: float
    weekly_revenue: float
    annual_revenue: float
    annual_opex: float
    net_profit: float
    roi: float  # percent of capex per year
    payback_period: float  # years
    npv: float  # simplified 5-year, undiscounted


def daily_arbitrage_profits(
    forecasts: Sequence[ForecastPoint],
    config: BessConfig
) -> pd.DataFrame:
    """
    Net arbitrage profit for each forecast day.

    Args:
        forecasts: Chronological forecast points
        config: Battery configuration

    Returns:
        DataFrame with columns: date, revenue, buy_price, sell_price
    """
    rows = []
    energy_mwh = config.daily_throughput_mwh

    for day_label, points in group_by_day(forecasts).items():
        prices = np.sort(np.array([p.predicted_price for p in points], dtype=float))
        blocks = max(1, min(config.blocks_per_cycle, len(prices)))

        avg_buy_price = prices[:blocks].sum() / blocks
        avg_sell_price = prices[len(prices) - blocks:].sum() / blocks

        # Prices are per kWh
        cost_to_charge = avg_buy_price * KWH_PER_MWH * energy_mwh
        revenue_from_discharge = avg_sell_price * KWH_PER_MWH * energy_mwh * config.efficiency
        operational_cost = energy_mwh * config.opex_per_mwh

        rows.append({
            'date': day_label,
            'revenue': revenue_from_discharge - cost_to_charge - operational_cost,
            'buy_price': avg_buy_price,
            'sell_price': avg_sell_price,
        })

    return pd.DataFrame(rows, columns=['date', 'revenue', 'buy_price', 'sell_price'])


def estimate_financials(
    forecasts: Sequence[ForecastPoint],
    config: BessConfig
) -> FinancialMetrics:
    """
    Annualised revenue, ROI, payback and NPV of the battery.

    Never raises for numeric edge cases: no forecast days gives zero
    revenue, and a zero annual profit is treated as 1 for payback.
    """
    daily = daily_arbitrage_profits(forecasts, config)
    days_projected = len(daily)
    daily_revenue = float(daily['revenue'].sum() / days_projected) if days_projected else 0.0

    annual_revenue = daily_revenue * 365
    annual_opex = config.capacity_mw * config.duration_hours * config.cycles_per_day * 365 * config.opex_per_mwh
    # Opex is already deducted from the daily figures
    annual_net_profit = annual_revenue
    total_capex = config.total_capex

    return FinancialMetrics(
        daily_revenue=daily_revenue,
        weekly_revenue=daily_revenue * 7,
        annual_revenue=annual_revenue,
        annual_opex=annual_opex,
        net_profit=annual_net_profit,
        roi=(annual_net_profit / total_capex) * 100 if total_capex else 0.0,
        payback_period=total_capex / (annual_net_profit or 1),
        npv=-total_capex + annual_net_profit * 5,
    )
