"""
Constants for the IEX price forecasting and arbitrage engine.

Centralizes magic numbers and configuration values.
"""

# Time blocks
BLOCK_MINUTES = 15  # IEX day-ahead market time block
BLOCKS_PER_HOUR = 4  # 60 / 15
BLOCKS_PER_DAY = 96  # 24 * 4

# IEX publishes prices in Indian Standard Time
IEX_TIMEZONE_NAME = 'Asia/Kolkata'

# Display formats
DAY_LABEL_FORMAT = '%d-%m-%Y'  # DD-MM-YYYY
TIME_BLOCK_FORMAT = '%H:%M'

# Model panel scoring
BASE_ERROR = 0.04
JITTER_SPAN = 0.04  # jitter = (r - 0.5) * JITTER_SPAN
MIN_PENALTY = 0.005
PEAK_DIFFICULTY = 1.25  # hours 18-22
MORNING_DIFFICULTY = 1.10  # hours 7-10

# Forecast synthesis
FORECAST_SEED_OFFSET = 9999
MORNING_RAMP_FACTOR = 1.25  # [06:00, 10:00)
EVENING_PEAK_FACTOR = 1.4  # [18:00, 22:00)
NIGHT_FACTOR = 0.75  # before 06:00
WEEKEND_FACTOR = 0.92
UNCERTAINTY_GROWTH_PER_DAY = 0.05
RANDOM_VARIATION_SPAN = 0.12

Z_SCORES = {
    90: 1.645,
    95: 1.96,
    99: 2.576,
}

# Defaults
DEFAULT_FORECAST_DAYS = 7
DEFAULT_CONFIDENCE_LEVEL = 95
DEFAULT_PLOT_DAYS = 7

# Arbitrage thresholds (daily price quantiles)
CHARGE_QUANTILE = 0.10
DISCHARGE_QUANTILE = 0.90

# Unit conversion
KWH_PER_MWH = 1000.0
