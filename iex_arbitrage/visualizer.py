"""
Visualization module for forecast and arbitrage results.

Creates charts of the input prices, the forecast band, the model panel
and the daily arbitrage windows.
"""

from datetime import timedelta
from pathlib import Path
from typing import List, Optional, Sequence

import matplotlib.dates as mdates
import matplotlib.pyplot as plt

from iex_arbitrage.arbitrage import group_by_day
from iex_arbitrage.constants import DEFAULT_PLOT_DAYS
from iex_arbitrage.model_panel import MODEL_PANEL
from iex_arbitrage.models import ArbitrageDay, HistoricalPoint, SimulationResult, WindowKind

# Set style - use ggplot for cross-version compatibility
plt.style.use('ggplot')


def plot_price_history(
    history: Sequence[HistoricalPoint],
    plot_days: int = DEFAULT_PLOT_DAYS,
    save_path: Optional[str] = None,
    figsize: tuple = (14, 5)
) -> plt.Figure:
    """
    Plot the last plot_days days of market clearing price.

    Args:
        history: Chronological price history
        plot_days: Number of trailing days to show
        save_path: Optional path to save figure
        figsize: Figure size

    Returns:
        Matplotlib figure
    """
    cutoff = history[-1].timestamp - timedelta(days=plot_days)
    recent = [p for p in history if p.timestamp > cutoff]

    fig, ax = plt.subplots(figsize=figsize)
    x = [p.timestamp for p in recent]
    y = [p.price_per_kwh for p in recent]

    ax.plot(x, y, color='steelblue', linewidth=0.8)
    ax.fill_between(x, y, alpha=0.3, color='steelblue')
    ax.set_ylabel('MCP (Rs/kWh)', fontsize=11)
    ax.set_title(f'Market Clearing Price - last {plot_days} days', fontsize=14, fontweight='bold')
    ax.xaxis.set_major_formatter(mdates.DateFormatter('%d-%m %H:%M'))
    plt.setp(ax.xaxis.get_majorticklabels(), rotation=45)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig


def plot_forecast(
    result: SimulationResult,
    save_path: Optional[str] = None,
    figsize: tuple = (14, 6)
) -> plt.Figure:
    """Forecast price with its confidence band."""
    fig, ax = plt.subplots(figsize=figsize)

    x = [f.timestamp for f in result.forecasts]
    ax.plot(x, [f.predicted_price for f in result.forecasts],
            color=result.best_model.color, linewidth=1.2, label='Forecast')
    ax.fill_between(x,
                    [f.lower_bound for f in result.forecasts],
                    [f.upper_bound for f in result.forecasts],
                    color=result.best_model.color, alpha=0.2,
                    label=f'{result.confidence_level}% interval')

    ax.set_ylabel('Price (Rs/kWh)', fontsize=11)
    ax.set_title(f'{result.forecast_days}-Day Forecast ({result.best_model_name})',
                 fontsize=14, fontweight='bold')
    ax.legend(loc='upper left')
    ax.xaxis.set_major_formatter(mdates.DateFormatter('%d-%m'))

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig


def plot_model_comparison(
    result: SimulationResult,
    save_path: Optional[str] = None,
    figsize: tuple = (12, 6)
) -> plt.Figure:
    """RMSE and directional accuracy for every model in the panel."""
    fig, axes = plt.subplots(1, 2, figsize=figsize)

    names = [m.name for m in MODEL_PANEL]
    colors = [m.display_color for m in MODEL_PANEL]
    rmse = [result.model_results[name].metrics.rmse for name in names]
    direction = [result.model_results[name].metrics.directional_accuracy for name in names]

    ax1 = axes[0]
    bars = ax1.bar(names, rmse, color=colors, edgecolor='white', linewidth=2)
    ax1.set_ylabel('RMSE (Rs/kWh)', fontsize=11)
    ax1.set_title('Back-test RMSE', fontsize=14, fontweight='bold')
    for bar, value in zip(bars, rmse):
        ax1.annotate(f'{value:.4f}',
                     xy=(bar.get_x() + bar.get_width() / 2, bar.get_height()),
                     xytext=(0, 3),
                     textcoords="offset points",
                     ha='center', va='bottom', fontsize=9)

    ax2 = axes[1]
    ax2.bar(names, direction, color=colors, edgecolor='white', linewidth=2)
    ax2.set_ylabel('Directional Accuracy (%)', fontsize=11)
    ax2.set_title('Directional Accuracy', fontsize=14, fontweight='bold')
    ax2.set_ylim(0, 100)

    for ax in axes:
        plt.setp(ax.xaxis.get_majorticklabels(), rotation=30)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig


def plot_arbitrage_day(
    result: SimulationResult,
    day: ArbitrageDay,
    save_path: Optional[str] = None,
    figsize: tuple = (14, 5)
) -> plt.Figure:
    """One forecast day with charge windows shaded green and discharge red."""
    points = group_by_day(result.forecasts)[day.day_label]
    labels = [p.time_block_label for p in points]
    index = {label: i for i, label in enumerate(labels)}

    fig, ax = plt.subplots(figsize=figsize)
    ax.plot(range(len(points)), [p.predicted_price for p in points], color='steelblue', linewidth=1.5)
    ax.axhline(y=day.charge_threshold, color='green', linestyle=':', label='Charge threshold')
    ax.axhline(y=day.discharge_threshold, color='red', linestyle=':', label='Discharge threshold')

    for window in day.windows:
        color = 'green' if window.kind == WindowKind.CHARGE else 'red'
        ax.axvspan(index[window.start_time_label] - 0.5, index[window.end_time_label] + 0.5,
                   color=color, alpha=0.2)

    ticks = list(range(0, len(labels), 8))
    ax.set_xticks(ticks)
    ax.set_xticklabels([labels[i] for i in ticks], rotation=45)
    ax.set_ylabel('Price (Rs/kWh)', fontsize=11)
    ax.set_title(f'Arbitrage Windows {day.day_label}', fontsize=14, fontweight='bold')
    ax.legend(loc='upper left')

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig


def generate_all_charts(
    result: SimulationResult,
    output_dir: str = 'charts',
    plot_days: int = DEFAULT_PLOT_DAYS
) -> List[str]:
    """
    Generate all charts and save to output directory.

    Args:
        result: Simulation result
        output_dir: Directory to save charts
        plot_days: Trailing days of history to plot

    Returns:
        List of saved file paths
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    saved_files = []

    path = str(output_path / 'price_history.png')
    plot_price_history(result.input_echo, plot_days=plot_days, save_path=path)
    saved_files.append(path)
    plt.close()

    path = str(output_path / 'forecast.png')
    plot_forecast(result, save_path=path)
    saved_files.append(path)
    plt.close()

    path = str(output_path / 'model_comparison.png')
    plot_model_comparison(result, save_path=path)
    saved_files.append(path)
    plt.close()

    # First forecast day only
    if result.arbitrage_days:
        day = result.arbitrage_days[0]
        path = str(output_path / f'arbitrage_{day.day_label}.png')
        plot_arbitrage_day(result, day, save_path=path)
        saved_files.append(path)
        plt.close()

    return saved_files
