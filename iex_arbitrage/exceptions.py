"""
Custom exceptions for the arbitrage engine.
"""


class ArbitrageEngineError(Exception):
    """Base exception for the forecasting and arbitrage engine."""
    pass


class InvalidConfigurationError(ArbitrageEngineError, ValueError):
    """Exception raised for an invalid simulation or battery configuration."""
    pass


class EmptyInputError(ArbitrageEngineError, ValueError):
    """Exception raised when the price history is empty."""
    pass


class DataValidationError(ArbitrageEngineError, ValueError):
    """Exception raised when input price data cannot be used."""
    pass
