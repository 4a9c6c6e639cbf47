"""
End-to-End Smoke Test.

Tests the full pipeline: IEX CSV -> simulation -> CSV/JSON output, and the
HTTP forecast server.
"""

import json
import subprocess
import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest


# Project root
PROJECT_ROOT = Path(__file__).parent.parent


def write_iex_csv(path, days=3, start='2024-01-01', seed=42):
    """Write a market snapshot CSV in the IEX export layout."""
    np.random.seed(seed)
    timestamps = pd.date_range(start=start, periods=days * 96, freq='15min')
    hours = timestamps.hour.values
    prices = 4000 + 2000 * np.sin((hours - 6) / 24 * 2 * np.pi) + np.random.normal(0, 300, len(timestamps))

    df = pd.DataFrame({
        'Date': timestamps.strftime('%d-%m-%Y'),
        'Hour': hours + 1,
        'Time Block': [
            f"{ts.strftime('%H:%M')} - {(ts + pd.Timedelta(minutes=15)).strftime('%H:%M')}"
            for ts in timestamps
        ],
        'Purchase Bid (MW)': np.random.uniform(5000, 9000, len(timestamps)).round(2),
        'Sell Bid (MW)': np.random.uniform(5000, 9000, len(timestamps)).round(2),
        'MCV (MW)': np.random.uniform(4000, 6000, len(timestamps)).round(2),
        'MCP (Rs/MWh) *': np.clip(prices, 500, None).round(2),
    })
    df.to_csv(path, index=False)
    return path


class TestE2EPipeline:
    """End-to-end tests for the command line pipeline."""

    @pytest.fixture
    def data_file(self, tmp_path):
        return write_iex_csv(tmp_path / 'iex_snapshot.csv')

    def run_main(self, *args):
        return subprocess.run(
            [sys.executable, str(PROJECT_ROOT / "main.py"), *args],
            capture_output=True,
            text=True,
            timeout=300,
            cwd=str(PROJECT_ROOT)
        )

    def test_main_simulation_runs(self, data_file, tmp_path):
        """Test that main.py runs without errors."""
        output_dir = tmp_path / 'output'
        result = self.run_main("--data", str(data_file), "--days", "2",
                               "--output", str(output_dir), "--no-charts")

        assert result.returncode == 0, f"main.py failed:\nSTDOUT: {result.stdout}\nSTDERR: {result.stderr}"
        assert "SIMULATION COMPLETE" in result.stdout, "Simulation did not complete successfully"
        assert "Best Model:" in result.stdout

    def test_outputs_generated(self, data_file, tmp_path):
        """Test that the forecast CSV and dashboard JSON are written."""
        output_dir = tmp_path / 'output'
        self.run_main("--data", str(data_file), "--days", "2", "--confidence", "99",
                      "--output", str(output_dir), "--no-charts", "--workers", "3")

        csv_files = list(output_dir.glob("IEX_Forecast_*.csv"))
        assert len(csv_files) == 1
        forecast = pd.read_csv(csv_files[0])
        assert list(forecast.columns) == ['Date', 'Time Block', 'Predicted Price', 'Lower Bound', 'Upper Bound', 'Model']
        assert len(forecast) == 192

        with open(output_dir / "simulation.json") as f:
            data = json.load(f)

        assert data['confidenceLevel'] == 99
        assert data['zScore'] == 2.576
        assert data['forecastDays'] == 2
        assert len(data['arbitrage']) == 2
        assert csv_files[0].name.startswith(f"IEX_Forecast_{data['bestModel']}_")

    def test_runs_are_reproducible(self, data_file, tmp_path):
        """Test that two runs over the same file agree."""
        runs = []
        for name in ('first', 'second'):
            output_dir = tmp_path / name
            self.run_main("--data", str(data_file), "--days", "1",
                          "--output", str(output_dir), "--no-charts")
            with open(output_dir / "simulation.json") as f:
                data = json.load(f)
            data.pop('lastUpdated')
            runs.append(data)

        assert runs[0] == runs[1]

    def test_charts_generated(self, data_file, tmp_path):
        """Test that charts are saved unless disabled."""
        output_dir = tmp_path / 'output'
        result = self.run_main("--data", str(data_file), "--days", "1", "--output", str(output_dir))

        assert result.returncode == 0
        assert (output_dir / "charts" / "forecast.png").exists()

    def test_missing_data_file(self, tmp_path):
        """Test that a missing file exits with an error."""
        result = self.run_main("--data", str(tmp_path / "missing.csv"), "--no-charts")

        assert result.returncode == 1
        assert "Data file not found" in result.stdout

    def test_invalid_days(self, data_file, tmp_path):
        """Test that a zero-day horizon is rejected."""
        result = self.run_main("--data", str(data_file), "--days", "0",
                               "--output", str(tmp_path / 'output'), "--no-charts")

        assert result.returncode == 1
        assert "forecast_days" in result.stdout

    def test_cli_help_works(self):
        """Test that CLI help displays correctly."""
        result = self.run_main("--help")

        assert result.returncode == 0
        assert "IEX Arbitrage Engine" in result.stdout
        assert "--days" in result.stdout


class TestForecastServer:
    """Tests for the HTTP API."""

    @pytest.fixture
    def client(self):
        from fastapi.testclient import TestClient
        from forecast_server import app
        return TestClient(app)

    @pytest.fixture
    def payload(self):
        timestamps = pd.date_range(start='2024-01-01', periods=96, freq='15min')
        return {
            'history': [
                {'timestamp': ts.isoformat(), 'price_per_kwh': 3 + (i % 24) / 10}
                for i, ts in enumerate(timestamps)
            ],
            'forecast_days': 1,
            'confidence_level': 95,
        }

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()['status'] == 'running'
        assert len(response.json()['models']) == 6

    def test_models(self, client):
        models = client.get("/models").json()

        assert models[0] == {'name': 'SARIMAX', 'color': '#3b82f6', 'category': 'statistical'}
        assert models[-1]['name'] == 'LSTM'

    def test_simulate(self, client, payload):
        response = client.post("/simulate", json=payload)

        assert response.status_code == 200
        data = response.json()
        assert len(data['forecasts']) == 96
        assert data['forecasts'][0]['dayLabel'] == '02-01-2024'
        assert data['bestModel'] in [m['name'] for m in data['models']]
        assert data['dataRange']['blocks'] == 96

    def test_simulate_is_deterministic(self, client, payload):
        first = client.post("/simulate", json=payload).json()
        second = client.post("/simulate", json=payload).json()

        assert first == second

    def test_empty_history_rejected(self, client, payload):
        payload['history'] = []
        response = client.post("/simulate", json=payload)

        assert response.status_code == 400

    def test_zero_days_rejected(self, client, payload):
        payload['forecast_days'] = 0
        response = client.post("/simulate", json=payload)

        assert response.status_code == 400
        assert 'forecast_days' in response.json()['detail']

    def test_forecast_csv(self, client, payload):
        response = client.post("/forecast/csv", json=payload)

        assert response.status_code == 200
        assert response.headers['content-type'].startswith('text/csv')
        lines = response.text.splitlines()
        assert lines[0] == 'Date,Time Block,Predicted Price,Lower Bound,Upper Bound,Model'
        assert len(lines) == 97


class TestSimulationScenarios:
    """Whole-engine behaviour on small known inputs."""

    @pytest.fixture
    def week_history(self, tmp_path):
        from iex_arbitrage.data_loader import load_history
        return load_history(str(write_iex_csv(tmp_path / 'week.csv', days=7)))

    @pytest.fixture
    def flat_history(self):
        from datetime import datetime
        from iex_arbitrage.models import HistoricalPoint
        return [
            HistoricalPoint.from_timestamp(datetime(2024, 1, 1, 0, 15 * i), 10.0)
            for i in range(4)
        ]

    def test_deterministic(self, week_history):
        from iex_arbitrage.simulator import simulate

        assert simulate(week_history, 3) == simulate(week_history, 3)

    def test_result_invariants(self, week_history):
        from iex_arbitrage.simulator import simulate
        result = simulate(week_history, forecast_days=3)

        assert len(result.model_results) == 6
        assert len(result.forecasts) == 3 * 96
        for model in result.model_results.values():
            assert len(model.predicted_series) == len(week_history)
            assert 0 <= model.metrics.directional_accuracy <= 100
        best_rmse = result.best_model.metrics.rmse
        assert all(best_rmse <= m.metrics.rmse for m in result.model_results.values())
        for point in result.forecasts:
            assert 0 <= point.lower_bound <= point.predicted_price <= point.upper_bound

    def test_one_day_forecast(self, week_history):
        from iex_arbitrage.simulator import simulate
        result = simulate(week_history, forecast_days=1, confidence_level=95)

        assert len(result.forecasts) == 96
        assert len({p.day_label for p in result.forecasts}) == 1
        expected = result.best_model.metrics.rmse * 1.96 * 1.05
        for point in result.forecasts:
            assert point.upper_bound - point.predicted_price == pytest.approx(expected)

    def test_unsupported_confidence_uses_95(self, week_history):
        from iex_arbitrage.simulator import simulate

        fallback = simulate(week_history, forecast_days=1, confidence_level=42)
        standard = simulate(week_history, forecast_days=1, confidence_level=95)

        assert fallback.z_score == 1.96
        assert fallback.forecasts == standard.forecasts

    def test_flat_history(self, flat_history):
        from iex_arbitrage.simulator import simulate
        result = simulate(flat_history, forecast_days=1)

        assert result.characteristics.volatility == 0
        assert result.characteristics.length == 4
        for model in result.model_results.values():
            assert model.metrics.r2 == 0
        assert len(result.arbitrage_days) == 1

    def test_model_results_read_only(self, flat_history):
        from iex_arbitrage.simulator import simulate
        result = simulate(flat_history, forecast_days=1)

        with pytest.raises(TypeError):
            result.model_results['LSTM'] = result.model_results['SARIMAX']
        assert list(result.model_results) == ['SARIMAX', 'Random Forest', 'XGBoost', 'LightGBM', 'CatBoost', 'LSTM']

    def test_numpy_integer_forecast_days(self, flat_history):
        from iex_arbitrage.exceptions import InvalidConfigurationError
        from iex_arbitrage.simulator import SimulationConfig, simulate

        result = simulate(flat_history, forecast_days=np.int64(2))

        assert len(result.forecasts) == 2 * 96
        assert type(result.forecast_days) is int
        assert SimulationConfig(forecast_days=np.int32(3)).forecast_days == 3
        with pytest.raises(InvalidConfigurationError):
            SimulationConfig(forecast_days=True)

    def test_parallel_backtests_match(self, week_history):
        from iex_arbitrage.simulator import simulate

        assert simulate(week_history, 2, max_workers=4) == simulate(week_history, 2)

    def test_empty_history(self):
        from iex_arbitrage.exceptions import EmptyInputError
        from iex_arbitrage.simulator import simulate

        with pytest.raises(EmptyInputError):
            simulate([])

    def test_invalid_forecast_days(self, flat_history):
        from iex_arbitrage.exceptions import InvalidConfigurationError
        from iex_arbitrage.simulator import simulate

        with pytest.raises(InvalidConfigurationError):
            simulate(flat_history, forecast_days=0)
        with pytest.raises(ValueError):
            simulate(flat_history, forecast_days=-3)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
