"""
FastAPI Forecast Server for IEX price forecasting and arbitrage.

Runs the simulation engine on posted price histories.
Run: python forecast_server.py
"""

from datetime import datetime
from typing import List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field
import uvicorn

from iex_arbitrage.constants import DEFAULT_CONFIDENCE_LEVEL, DEFAULT_FORECAST_DAYS
from iex_arbitrage.exceptions import ArbitrageEngineError
from iex_arbitrage.export import forecast_csv_text, result_to_dict
from iex_arbitrage.model_panel import MODEL_PANEL
from iex_arbitrage.models import HistoricalPoint, SimulationResult
from iex_arbitrage.simulator import simulate

app = FastAPI(
    title="IEX Price Forecast API",
    description="Deterministic price forecasts and battery arbitrage windows",
    version="1.0.0"
)

# Enable CORS for dashboard
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class PricePoint(BaseModel):
    timestamp: datetime
    price_per_kwh: float


class SimulationRequest(BaseModel):
    history: List[PricePoint]
    forecast_days: int = Field(DEFAULT_FORECAST_DAYS)
    confidence_level: int = Field(DEFAULT_CONFIDENCE_LEVEL)


def run_request(request: SimulationRequest) -> SimulationResult:
    """Simulate a request, mapping engine errors to HTTP 400."""
    history = [
        HistoricalPoint.from_timestamp(point.timestamp, point.price_per_kwh)
        for point in request.history
    ]
    try:
        return simulate(history, request.forecast_days, request.confidence_level)
    except ArbitrageEngineError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "running",
        "models": [model.name for model in MODEL_PANEL],
    }


@app.get("/models")
async def get_models():
    """The fixed model panel."""
    return [
        {"name": model.name, "color": model.display_color, "category": model.category}
        for model in MODEL_PANEL
    ]


@app.post("/simulate")
def post_simulate(request: SimulationRequest):
    """Score the model panel, forecast and detect arbitrage windows."""
    return result_to_dict(run_request(request))


@app.post("/forecast/csv")
def post_forecast_csv(request: SimulationRequest):
    """Forecast as CSV: Date, Time Block, Predicted Price, Lower Bound, Upper Bound, Model."""
    result = run_request(request)
    return Response(
        content=forecast_csv_text(result),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="IEX_Forecast_{result.best_model_name}.csv"'},
    )


if __name__ == "__main__":
    print("Starting IEX Forecast Server...")
    print("API docs available at: http://localhost:8000/docs")
    uvicorn.run(app, host="0.0.0.0", port=8000)
