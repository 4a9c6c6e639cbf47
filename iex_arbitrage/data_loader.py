"""
Data loader module for IEX day-ahead market price data.

Handles loading, cleaning, and preprocessing of IEX market snapshot
exports for use in forecasting simulations.
"""

import logging
from typing import List, Optional
from zoneinfo import ZoneInfo

import pandas as pd

from iex_arbitrage.constants import BLOCK_MINUTES, IEX_TIMEZONE_NAME, KWH_PER_MWH
from iex_arbitrage.exceptions import DataValidationError
from iex_arbitrage.models import HistoricalPoint

logger = logging.getLogger(__name__)

# IEX uses Indian Standard Time
IEX_TIMEZONE = ZoneInfo(IEX_TIMEZONE_NAME)

OPTIONAL_COLUMNS = {
    'PURCHASE_BID': ['PURCHASE BID (MW)', 'PURCHASE BID', 'PURCHASE_BID'],
    'SELL_BID': ['SELL BID (MW)', 'SELL BID', 'SELL_BID'],
    'MCV': ['MCV (MW)', 'MCV'],
}


def _find_column(columns, candidates: List[str]) -> Optional[str]:
    for col in candidates:
        if col in columns:
            return col
    return None


def _to_number(series: pd.Series) -> pd.Series:
    """Numeric coercion tolerant of thousands separators."""
    return pd.to_numeric(series.astype(str).str.replace(',', '', regex=False).str.strip(), errors='coerce')


def load_price_data(
    filepath: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None
) -> pd.DataFrame:
    """
    Load and preprocess an IEX market snapshot CSV.

    Args:
        filepath: Path to the CSV file
        start_date: Optional start date filter (YYYY-MM-DD)
        end_date: Optional end date filter (YYYY-MM-DD)

    Returns:
        DataFrame with columns: TIMESTAMP, DATE, TIME_BLOCK, PURCHASE_BID,
        SELL_BID, MCV, MCP_MWH, MCP_KWH

    Raises:
        DataValidationError: if date, time block or price columns are missing
    """
    raw = pd.read_csv(filepath)

    # Standardize column names (handle variations)
    raw.columns = raw.columns.str.upper().str.strip()

    date_col = _find_column(raw.columns, ['DATE', 'DELIVERY DATE'])
    block_col = _find_column(raw.columns, ['TIME BLOCK', 'TIME_BLOCK', 'TIMEBLOCK'])
    price_col = next((col for col in raw.columns if col.startswith('MCP')), None)

    missing = [
        name for name, col in [('DATE', date_col), ('TIME BLOCK', block_col), ('MCP', price_col)]
        if col is None
    ]
    if missing:
        raise DataValidationError(f"Missing columns: {missing}")

    df = pd.DataFrame()
    df['DATE'] = raw[date_col].astype(str).str.strip()
    # "00:00 - 00:15" -> "00:00"
    df['TIME_BLOCK'] = raw[block_col].astype(str).str.split('-').str[0].str.strip()

    timestamps = pd.to_datetime(
        df['DATE'] + ' ' + df['TIME_BLOCK'], format='%d-%m-%Y %H:%M', errors='coerce'
    )
    df['TIMESTAMP'] = timestamps.dt.tz_localize(IEX_TIMEZONE)

    for name, candidates in OPTIONAL_COLUMNS.items():
        col = _find_column(raw.columns, candidates)
        df[name] = _to_number(raw[col]) if col else float('nan')

    df['MCP_MWH'] = _to_number(raw[price_col])
    df['MCP_KWH'] = df['MCP_MWH'] / KWH_PER_MWH

    invalid = df['TIMESTAMP'].isna() | df['MCP_KWH'].isna()
    if invalid.any():
        logger.warning(f"Dropping {int(invalid.sum())} rows with unparseable date, block or price")
        df = df[~invalid]

    # Filter by date range
    if start_date:
        df = df[df['TIMESTAMP'] >= pd.Timestamp(start_date, tz=IEX_TIMEZONE)]
    if end_date:
        df = df[df['TIMESTAMP'] <= pd.Timestamp(end_date, tz=IEX_TIMEZONE)]

    df = df.sort_values('TIMESTAMP').reset_index(drop=True)

    return df[['TIMESTAMP', 'DATE', 'TIME_BLOCK', 'PURCHASE_BID', 'SELL_BID', 'MCV', 'MCP_MWH', 'MCP_KWH']]


def _optional(value) -> Optional[float]:
    return None if pd.isna(value) else float(value)


def to_history(df: pd.DataFrame) -> List[HistoricalPoint]:
    """
    Convert a loaded price DataFrame into HistoricalPoints.

    Args:
        df: DataFrame from load_price_data

    Returns:
        Chronological list of HistoricalPoint
    """
    history = []
    for row in df.itertuples(index=False):
        history.append(HistoricalPoint.from_timestamp(
            row.TIMESTAMP.to_pydatetime(),
            row.MCP_KWH,
            purchase_bid=_optional(row.PURCHASE_BID),
            sell_bid=_optional(row.SELL_BID),
            mcv=_optional(row.MCV),
        ))
    return history


def load_history(filepath: str) -> List[HistoricalPoint]:
    """Load an IEX CSV straight into a price history."""
    return to_history(load_price_data(filepath))


def detect_gaps(df: pd.DataFrame, expected_interval_minutes: int = BLOCK_MINUTES) -> int:
    """Number of places where consecutive blocks are further apart than one interval."""
    if len(df) < 2:
        return 0
    diffs = df['TIMESTAMP'].sort_values().diff().dropna()
    return int((diffs > pd.Timedelta(minutes=expected_interval_minutes)).sum())


def get_price_statistics(df: pd.DataFrame) -> dict:
    """
    Calculate summary statistics for price data.

    Args:
        df: DataFrame with MCP_KWH column

    Returns:
        Dictionary of statistics (Rs/kWh)
    """
    mcp = df['MCP_KWH']

    return {
        'count': len(mcp),
        'mean': mcp.mean(),
        'median': mcp.median(),
        'std': mcp.std(),
        'min': mcp.min(),
        'max': mcp.max(),
    }


def validate_data(df: pd.DataFrame) -> dict:
    """
    Validate data quality and return a report.

    Args:
        df: DataFrame to validate

    Returns:
        Dictionary with validation results
    """
    issues = []

    # Check for required columns
    required_cols = ['TIMESTAMP', 'MCP_KWH']
    missing_cols = [col for col in required_cols if col not in df.columns]
    if missing_cols:
        issues.append(f"Missing columns: {missing_cols}")

    if len(df) == 0:
        issues.append("No price rows")

    # Check for missing values
    if 'MCP_KWH' in df.columns:
        null_count = df['MCP_KWH'].isna().sum()
        if null_count > 0:
            issues.append(f"Missing price values: {null_count}")

    gap_count = 0
    if 'TIMESTAMP' in df.columns:
        dupes = df.duplicated(subset=['TIMESTAMP']).sum()
        if dupes > 0:
            issues.append(f"Duplicate time blocks: {dupes}")
        gap_count = detect_gaps(df)

    return {
        'valid': len(issues) == 0,
        'issues': issues,
        'row_count': len(df),
        'gap_count': gap_count,
        'date_range': (
            df['TIMESTAMP'].min() if 'TIMESTAMP' in df.columns else None,
            df['TIMESTAMP'].max() if 'TIMESTAMP' in df.columns else None
        )
    }
