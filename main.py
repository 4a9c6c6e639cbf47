"""
IEX Price Forecasting & Arbitrage Engine - Main Entry Point

Runs model panel scoring, multi-day price forecasting, arbitrage window
detection and battery economics on an IEX market snapshot CSV.
"""

import logging
import sys
import time
from pathlib import Path

from iex_arbitrage.battery import BessConfig
from iex_arbitrage.constants import DEFAULT_CONFIDENCE_LEVEL, DEFAULT_FORECAST_DAYS, DEFAULT_PLOT_DAYS
from iex_arbitrage.data_loader import get_price_statistics, load_price_data, to_history, validate_data
from iex_arbitrage.exceptions import ArbitrageEngineError
from iex_arbitrage.export import export_dashboard_json, export_forecasts_csv
from iex_arbitrage.financials import estimate_financials
from iex_arbitrage.model_panel import MODEL_PANEL
from iex_arbitrage.simulator import simulate


def print_header(text: str):
    """Print formatted header."""
    print("\n" + "=" * 60)
    print(f"  {text}")
    print("=" * 60)


def print_section(text: str):
    """Print section divider."""
    print(f"\n--- {text} ---")


def run_simulation(
    data_path: str,
    forecast_days: int = DEFAULT_FORECAST_DAYS,
    confidence_level: int = DEFAULT_CONFIDENCE_LEVEL,
    output_dir: str = "output",
    generate_charts: bool = True,
    max_workers: int = None,
    bess: BessConfig = None
):
    print_header("IEX ARBITRAGE ENGINE")
    print(f"\nConfiguration:")
    print(f"  Forecast horizon: {forecast_days} days")
    print(f"  Confidence level: {confidence_level}%")

    data_file = Path(data_path)
    if not data_file.exists():
        print(f"\nError: Data file not found: {data_path}")
        return None

    # Load data
    print_section("Loading Data")
    df = load_price_data(data_path)

    if df.empty:
        print("Error: No data loaded. The CSV file may be empty or corrupted.")
        return None

    validation = validate_data(df)
    print(f"  Rows loaded: {validation['row_count']:,}")
    print(f"  Date range: {validation['date_range'][0]} to {validation['date_range'][1]}")
    print(f"  Gaps: {validation['gap_count']}")
    print(f"  Valid: {'Yes' if validation['valid'] else 'No'}")

    if not validation['valid']:
        print("  Issues found:")
        for issue in validation['issues']:
            print(f"    - {issue}")
        print("\nError: Data validation failed. Please check the data file.")
        return None

    print_section("Price Statistics")
    stats = get_price_statistics(df)
    print(f"  Mean:   Rs {stats['mean']:.4f}/kWh")
    print(f"  Median: Rs {stats['median']:.4f}/kWh")
    print(f"  Std:    Rs {stats['std']:.4f}/kWh")
    print(f"  Min:    Rs {stats['min']:.4f}/kWh")
    print(f"  Max:    Rs {stats['max']:.4f}/kWh")

    # Simulate
    print_section("Scoring Model Panel")
    start = time.perf_counter()
    result = simulate(to_history(df), forecast_days, confidence_level, max_workers=max_workers)
    elapsed = time.perf_counter() - start

    chars = result.characteristics
    print(f"  Volatility: {chars.volatility:.4f}")
    print(f"  Trend: {chars.trend:+.6f} Rs/kWh per block")
    print(f"  Fingerprint: {result.fingerprint}")

    print("\n  Model           |   RMSE   |   MAE    |  MAPE  |   R2    | Dir. Acc")
    print("  " + "-" * 68)
    for model in MODEL_PANEL:
        m = result.model_results[model.name].metrics
        marker = " *" if model.name == result.best_model_name else ""
        print(f"  {model.name:<15} | {m.rmse:>8.4f} | {m.mae:>8.4f} | {m.mape:>5.2f}% | "
              f"{m.r2:>7.4f} | {m.directional_accuracy:>6.1f}%{marker}")

    print(f"\n  Best Model: {result.best_model_name}")
    print(f"  Simulation time: {elapsed * 1000:.1f} ms")

    print_section("Arbitrage Windows")
    for day in result.arbitrage_days:
        print(f"  {day.day_label}  charge <= {day.charge_threshold:.4f}  "
              f"discharge >= {day.discharge_threshold:.4f}")
        for window in day.windows:
            print(f"    {window.kind.value:<9} {window.start_time_label}-{window.end_time_label}"
                  f"  avg Rs {window.average_price:.4f}/kWh")

    print_section("Battery Economics")
    bess = bess or BessConfig()
    financials = estimate_financials(result.forecasts, bess)
    print(f"  {bess}")
    print(f"  Daily revenue:  Rs {financials.daily_revenue:,.0f}")
    print(f"  Annual revenue: Rs {financials.annual_revenue:,.0f}")
    print(f"  ROI:            {financials.roi:.2f}%")
    print(f"  Payback:        {financials.payback_period:.1f} years")

    print_section("Exporting Results")
    csv_path = export_forecasts_csv(result, output_dir)
    print(f"  Forecast CSV: {csv_path}")
    json_path = export_dashboard_json(result, str(Path(output_dir) / "simulation.json"))
    print(f"  Dashboard JSON: {json_path}")

    if generate_charts:
        print_section("Generating Charts")
        try:
            from iex_arbitrage.visualizer import generate_all_charts
            saved = generate_all_charts(result, str(Path(output_dir) / "charts"), plot_days=DEFAULT_PLOT_DAYS)
            print(f"  Saved {len(saved)} charts")
            for path in saved:
                print(f"    - {Path(path).name}")
        except Exception as e:
            print(f"  Warning: Could not generate charts: {e}")

    print_header("SIMULATION COMPLETE")

    return result


def main():
    """Main entry point with command line support."""
    import argparse

    parser = argparse.ArgumentParser(
        description="IEX Arbitrage Engine - Price Forecasting and Battery Arbitrage"
    )
    parser.add_argument(
        "--data", "-d",
        required=True,
        help="Path to IEX market snapshot CSV"
    )
    parser.add_argument(
        "--days", "-n",
        type=int, default=DEFAULT_FORECAST_DAYS,
        help="Number of days to forecast"
    )
    parser.add_argument(
        "--confidence", "-c",
        type=int, default=DEFAULT_CONFIDENCE_LEVEL,
        help="Confidence level (90, 95 or 99)"
    )
    parser.add_argument(
        "--output", "-o",
        default="output",
        help="Directory for CSV, JSON and charts"
    )
    parser.add_argument(
        "--workers", "-w",
        type=int, default=None,
        help="Back-test models in parallel with this many threads"
    )
    parser.add_argument(
        "--no-charts",
        action="store_true",
        help="Skip chart generation"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable log output"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    try:
        result = run_simulation(
            data_path=args.data,
            forecast_days=args.days,
            confidence_level=args.confidence,
            output_dir=args.output,
            generate_charts=not args.no_charts,
            max_workers=args.workers
        )
    except ArbitrageEngineError as e:
        print(f"\nError: {e}")
        sys.exit(1)

    if result is None:
        sys.exit(1)


if __name__ == "__main__":
    main()
