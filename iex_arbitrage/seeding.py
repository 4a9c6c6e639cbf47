"""
Reproducible seeding for the simulation.

Every pseudo-random draw in a run comes from a SeededGenerator whose seed is
derived from the input dataset, so re-running the same history yields the
same models, forecasts and windows.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from iex_arbitrage.constants import FORECAST_SEED_OFFSET
from iex_arbitrage.exceptions import EmptyInputError
from iex_arbitrage.models import HistoricalPoint

UINT32_MASK = 0xFFFFFFFF
INT32_SIGN_BIT = 0x80000000
GOLDEN_GAMMA = 0x6D2B79F5
SIGNATURE_PRICE_STEP = Decimal("0.001")


def _imul(a: int, b: int) -> int:
    """32-bit integer multiply with wraparound."""
    return (a * b) & UINT32_MASK


class SeededGenerator:
    """
    Mulberry32 pseudo-random generator.

    Produces floats in [0, 1). Two generators built from the same seed
    yield identical sequences. Not suitable for cryptographic use.
    """

    def __init__(self, seed: int):
        self.seed = seed
        self._state = seed & UINT32_MASK

    def next(self) -> float:
        self._state = (self._state + GOLDEN_GAMMA) & UINT32_MASK
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & UINT32_MASK
        return ((t ^ (t >> 14)) & UINT32_MASK) / 4294967296

    __call__ = next

    def __repr__(self) -> str:
        return f"SeededGenerator(seed={self.seed})"


def signature_price(price: float) -> str:
    """
    Price to three decimals, halves rounded away from zero.

    Rounds the exact binary value of the float, so 2.5625 gives "2.563"
    where format(2.5625, ".3f") would give "2.562". Zero never carries
    a minus sign.
    """
    if price == 0:
        price = 0.0
    return format(Decimal(price).quantize(SIGNATURE_PRICE_STEP, rounding=ROUND_HALF_UP), 'f')


def fingerprint_signature(history: Sequence[HistoricalPoint]) -> str:
    """Summary string the fingerprint is hashed from."""
    first = history[0]
    middle = history[len(history) // 2]
    last = history[-1]
    return '|'.join([
        str(len(history)),
        first.date_label,
        last.date_label,
        signature_price(first.price_per_kwh),
        signature_price(middle.price_per_kwh),
        signature_price(last.price_per_kwh),
    ])


def dataset_fingerprint(history: Sequence[HistoricalPoint]) -> int:
    """
    Derive a stable non-negative seed from a price history.

    Only the length, the first and last dates and the first, middle and
    last prices take part, so two histories agreeing on those always get
    the same seed.

    Args:
        history: Chronological price history

    Returns:
        Non-negative integer seed

    Raises:
        EmptyInputError: if history is empty
    """
    if len(history) == 0:
        raise EmptyInputError("Cannot fingerprint an empty price history")

    value = 0
    for char in fingerprint_signature(history):
        value = (value * 31 + ord(char)) & UINT32_MASK

    # Interpret as signed 32-bit before taking the magnitude
    if value & INT32_SIGN_BIT:
        value -= 1 << 32
    return abs(value)


def name_code_sum(name: str) -> int:
    return sum(ord(char) for char in name)


def model_seed(fingerprint: int, model_name: str) -> int:
    """Seed for a model's back-test generator: fingerprint plus the char codes of its name."""
    return fingerprint + name_code_sum(model_name)


def forecast_seed(fingerprint: int) -> int:
    return fingerprint + FORECAST_SEED_OFFSET
