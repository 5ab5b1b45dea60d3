"""
Global constants for firesim.

Purpose
-------
Centralizes default values and magic numbers used throughout the
simulation modules. Using constants instead of hardcoded values improves
maintainability and makes modeling assumptions explicit.

Usage
-----
>>> from firesim.constants import FAR_FUTURE_DATE
>>>
>>> if result.projected_fi_date == FAR_FUTURE_DATE:
...     print("FI is not reached within the projection horizon")

Categories
----------
- Simulation: Monte Carlo scenario counts, horizons, return assumptions
- Projection: loop caps and sentinels
- Probability curve: success thresholds and life expectancy
- Guardrails: band and cap defaults
"""

from datetime import date
from typing import Tuple

__all__ = [
    # Simulation
    "DEFAULT_N_SIMS",
    "DEFAULT_RETIREMENT_YEARS",
    "DEFAULT_RETURN_MEAN",
    "DEFAULT_RETURN_STDEV",
    "DEFAULT_INFLATION_RATE",
    "PERCENTILE_LOW",
    "PERCENTILE_HIGH",
    # Projection
    "MAX_PROJECTION_YEARS",
    "FAR_FUTURE_DATE",
    "RATE_EPSILON",
    "DEFAULT_WITHDRAWAL_RATE",
    "DEFAULT_EXPECTED_RETURN",
    # Probability curve
    "DEFAULT_LIFE_EXPECTANCY",
    "VIABLE_SUCCESS_RATE",
    "OPTIMAL_SUCCESS_RATE",
    "SAFE_SUCCESS_RATE",
    "SUCCESS_RATE_TIERS",
    # Guardrails
    "DEFAULT_GUARDRAILS_WITHDRAWAL_RATE",
    "DEFAULT_PROSPERITY_GUARDBAND",
    "DEFAULT_CAPITAL_PRESERVATION_GUARDBAND",
    "DEFAULT_ANNUAL_ADJUSTMENT_CAP",
    "GUARDRAILS_RATE_TRIGGER",
]


# =============================================================================
# Simulation Defaults
# =============================================================================

DEFAULT_N_SIMS: int = 10_000
"""Default number of simulated retirements per Monte Carlo batch."""

DEFAULT_RETIREMENT_YEARS: int = 30
"""Default retirement horizon in years."""

DEFAULT_RETURN_MEAN: float = 0.05
"""Default expected annual portfolio return (5%)."""

DEFAULT_RETURN_STDEV: float = 0.12
"""Default annual return volatility (12%)."""

DEFAULT_INFLATION_RATE: float = 0.02
"""Default annual inflation (2%)."""

PERCENTILE_LOW: float = 0.1
"""Nearest-rank quantile reported as the pessimistic outcome."""

PERCENTILE_HIGH: float = 0.9
"""Nearest-rank quantile reported as the optimistic outcome."""


# =============================================================================
# Projection Defaults
# =============================================================================

MAX_PROJECTION_YEARS: int = 100
"""Hard cap on year-by-year projection loops."""

FAR_FUTURE_DATE: date = date(9999, 12, 31)
"""Sentinel date for financial independence that is never reached."""

RATE_EPSILON: float = 1e-4
"""Below this |return - withdrawal rate| the closed form falls back to linear."""

DEFAULT_WITHDRAWAL_RATE: float = 0.04
"""The 4% rule."""

DEFAULT_EXPECTED_RETURN: float = 0.05
"""Default expected return for required-savings calculations."""


# =============================================================================
# Probability Curve Defaults
# =============================================================================

DEFAULT_LIFE_EXPECTANCY: int = 95
"""Age at which the retirement horizon ends."""

VIABLE_SUCCESS_RATE: float = 0.50
"""Success rate defining the earliest viable retirement age."""

OPTIMAL_SUCCESS_RATE: float = 0.90
"""Success rate defining the optimal retirement age."""

SAFE_SUCCESS_RATE: float = 0.95
"""Success rate defining the safe retirement age."""

SUCCESS_RATE_TIERS: Tuple[Tuple[float, str], ...] = (
    (0.95, "Very Safe - Excellent probability of success"),
    (0.90, "Optimal - Good probability of success"),
    (0.75, "Moderate - Reasonable chance of success"),
    (0.50, "Risky - Uncertain outcome"),
)
"""Descending (threshold, description) pairs; rates below the last are Very Risky."""


# =============================================================================
# Guardrails Defaults
# =============================================================================

DEFAULT_GUARDRAILS_WITHDRAWAL_RATE: float = 0.04
DEFAULT_PROSPERITY_GUARDBAND: float = 0.10
DEFAULT_CAPITAL_PRESERVATION_GUARDBAND: float = 0.10
DEFAULT_ANNUAL_ADJUSTMENT_CAP: float = 0.20

GUARDRAILS_RATE_TRIGGER: float = 1.5
"""Multiple of the initial withdrawal rate that forces a spending cut."""
