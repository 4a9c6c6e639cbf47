"""
Export of simulation results: forecast CSV and dashboard JSON.
"""

import json
import logging
from dataclasses import asdict
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd

from iex_arbitrage.model_panel import MODEL_PANEL
from iex_arbitrage.models import ForecastPoint, SimulationResult

logger = logging.getLogger(__name__)

FORECAST_COLUMNS = ['Date', 'Time Block', 'Predicted Price', 'Lower Bound', 'Upper Bound', 'Model']


def forecasts_to_frame(forecasts: Sequence[ForecastPoint], model_name: str) -> pd.DataFrame:
    """Forecasts as a DataFrame with the CSV export columns (Rs/kWh)."""
    return pd.DataFrame(
        [
            [f.day_label, f.time_block_label, f.predicted_price, f.lower_bound, f.upper_bound, model_name]
            for f in forecasts
        ],
        columns=FORECAST_COLUMNS,
    )


def forecast_csv_text(result: SimulationResult) -> str:
    frame = forecasts_to_frame(result.forecasts, result.best_model_name)
    return frame.to_csv(index=False, float_format='%.4f')


def export_forecasts_csv(
    result: SimulationResult,
    output_dir: str = '.',
    as_of: Optional[date] = None
) -> Path:
    """
    Write the forecast to IEX_Forecast_<model>_<YYYY-MM-DD>.csv.

    Args:
        result: Simulation result
        output_dir: Directory to write into (created if missing)
        as_of: Date stamped in the file name, defaults to today

    Returns:
        Path of the written file
    """
    as_of = as_of or date.today()
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    path = output_path / f"IEX_Forecast_{result.best_model_name}_{as_of.isoformat()}.csv"
    path.write_text(forecast_csv_text(result))
    logger.info(f"Wrote {len(result.forecasts)} forecast rows to {path}")
    return path


def result_to_dict(result: SimulationResult) -> dict:
    """JSON-ready representation of a simulation result."""
    models = []
    for descriptor in MODEL_PANEL:
        model = result.model_results[descriptor.name]
        models.append({
            'name': model.name,
            'color': model.color,
            'category': descriptor.category,
            'penalty': round(model.penalty, 6),
            'metrics': asdict(model.metrics),
            'predictions': list(model.predicted_series),
            'errors': list(model.absolute_errors),
        })

    return {
        'fingerprint': result.fingerprint,
        'bestModel': result.best_model_name,
        'confidenceLevel': result.confidence_level,
        'zScore': result.z_score,
        'forecastDays': result.forecast_days,
        'characteristics': asdict(result.characteristics),
        'dataRange': {
            'start': result.input_echo[0].timestamp.isoformat(),
            'end': result.input_echo[-1].timestamp.isoformat(),
            'blocks': len(result.input_echo),
        },
        'models': models,
        'forecasts': [
            {
                'date': f.date.isoformat(),
                'dayLabel': f.day_label,
                'timeBlock': f.time_block_label,
                'price': f.predicted_price,
                'lowerBound': f.lower_bound,
                'upperBound': f.upper_bound,
            }
            for f in result.forecasts
        ],
        'arbitrage': [
            {
                'dayLabel': day.day_label,
                'dailyMin': day.daily_min,
                'dailyMax': day.daily_max,
                'chargeThreshold': day.charge_threshold,
                'dischargeThreshold': day.discharge_threshold,
                'windows': [
                    {
                        'startTime': w.start_time_label,
                        'endTime': w.end_time_label,
                        'type': w.kind.value,
                        'avgPrice': w.average_price,
                        'blocks': w.block_count,
                    }
                    for w in day.windows
                ],
            }
            for day in result.arbitrage_days
        ],
    }


def export_dashboard_json(result: SimulationResult, output_path: str) -> Path:
    """Write the result dictionary with a lastUpdated stamp."""
    data = result_to_dict(result)
    data['lastUpdated'] = datetime.now().isoformat()

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(data, f, indent=2)
    logger.info(f"Exported dashboard data to {path}")
    return path
