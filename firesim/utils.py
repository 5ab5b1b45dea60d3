"""General utilities for firesim

Contents
--------
- Validation helpers
- Array helpers (ensure_1d)
- Statistics (nearest-rank percentiles)
- Calendar helpers (add_years)
- Formatting helpers (format_currency, format_currency_range)
"""

from __future__ import annotations

import math
from datetime import date
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from .constants import FAR_FUTURE_DATE
from .exceptions import ValidationError

__all__ = [
    # Validation
    "check_non_negative",
    # Arrays
    "ensure_1d",
    # Statistics
    "nearest_rank",
    "nearest_rank_percentiles",
    # Calendar
    "add_years",
    # Formatting
    "format_currency",
    "format_currency_range",
]

# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def check_non_negative(name: str, value: float) -> None:
    """Raise if *value* is negative (strict)."""
    if value < 0:
        raise ValueError(f"{name} must be non-negative (got {value}).")


# ---------------------------------------------------------------------------
# Array helpers
# ---------------------------------------------------------------------------
ArrayLike = Sequence[float] | np.ndarray | pd.Series


def ensure_1d(a: ArrayLike, *, name: str = "array") -> np.ndarray:
    """Convert input to a 1-D float NumPy array with helpful error messages."""
    arr = np.asarray(a, dtype=float)
    if arr.ndim != 1:
        raise ValidationError(f"{name} must be 1-D, got shape {arr.shape}.")
    return arr


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

def nearest_rank(sorted_values: Sequence[float], q: float) -> float:
    """Value at index ``floor(n * q)`` of an ascending sample.

    No interpolation between ranks. ``q = 0.5`` gives the element at
    ``floor(n / 2)``, which for even ``n`` is the upper of the two middle
    values. The index is clamped to ``n - 1`` so ``q = 1`` is valid.
    """
    n = len(sorted_values)
    if n == 0:
        raise ValueError("nearest_rank requires a non-empty sample.")
    idx = min(int(math.floor(n * q)), n - 1)
    return float(sorted_values[idx])


def nearest_rank_percentiles(
    values: Sequence[float],
    qs: Sequence[float] = (0.10, 0.25, 0.50, 0.75, 0.90),
) -> dict[str, float]:
    """Nearest-rank percentiles keyed ``p10``, ``p25``, ...; zeros when empty."""
    ordered = np.sort(np.asarray(values, dtype=float))
    out = {}
    for q in qs:
        key = f"p{int(round(q * 100))}"
        out[key] = nearest_rank(ordered, q) if ordered.size else 0.0
    return out


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------

def add_years(start: Optional[date], years: float) -> date:
    """Shift *start* (default: today) by the whole-year part of *years*.

    Non-finite *years* and results beyond the calendar map to
    ``FAR_FUTURE_DATE``. Feb 29 rolls back to Feb 28 in non-leap years.
    """
    if start is None:
        start = date.today()
    if not math.isfinite(years):
        return FAR_FUTURE_DATE
    whole = int(years)
    if start.year + whole > FAR_FUTURE_DATE.year:
        return FAR_FUTURE_DATE
    try:
        return start.replace(year=start.year + whole)
    except ValueError:
        return start.replace(year=start.year + whole, day=28)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def format_currency(value: float, symbol: str = "$") -> str:
    """
    Compact currency label for chart bins and CLI tables.

    Examples
    --------
    >>> format_currency(0)
    '$0'
    >>> format_currency(1_250_000)
    '$1.2M'
    >>> format_currency(45_600)
    '$46k'
    >>> format_currency(512)
    '$512'
    """
    if value == 0:
        return f"{symbol}0"
    if abs(value) >= 1_000_000:
        return f"{symbol}{value / 1_000_000:.1f}M"
    if abs(value) >= 1_000:
        return f"{symbol}{value / 1_000:.0f}k"
    return f"{symbol}{value:.0f}"


def format_currency_range(start: float, end: float) -> str:
    return f"{format_currency(start)} - {format_currency(end)}"
