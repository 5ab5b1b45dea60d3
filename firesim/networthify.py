"""
Closed-form years-to-FI (the Networthify formula).

Mathematical Model
------------------
With FI number ``F = expenses / wr · margin``, remaining ``R = max(0, F - NW)``,
return ``r`` and annual savings ``S``:

    years = ln(1 + R·(r - wr) / S) / ln(1 + r)

Degenerate inputs resolve to sentinels, checked in this order:

1. ``NW >= F``              -> 0 years, 100% progress
2. ``S <= 0``               -> inf years, far-future date
3. ``|r - wr| < 1e-4``      -> linear fallback ``R / S``
4. numerator ``<= 0``       -> inf years, far-future date

Otherwise the log formula, floored at 0.

Also provides the constant-return net worth path and the savings needed to
reach FI in a target number of years (future value of an annuity).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from .config import NetworthifyInputs
from .constants import (
    FAR_FUTURE_DATE,
    RATE_EPSILON,
    DEFAULT_EXPECTED_RETURN,
    DEFAULT_WITHDRAWAL_RATE,
)
from .utils import add_years

__all__ = [
    "NetworthifyResult",
    "NetWorthPoint",
    "RequiredSavings",
    "calculate_years_to_fi",
    "project_net_worth_growth",
    "calculate_required_savings_rate",
]


@dataclass(frozen=True)
class NetworthifyResult:
    """
    Closed-form FI estimate.

    Attributes
    ----------
    years_to_fi : float
        Fractional years; ``math.inf`` when FI is unreachable.
    fi_number : float
    current_progress : float
        Net worth as a percentage of the FI number, capped at 100.
    projected_fi_date : datetime.date
    remaining_needed : float
    """
    years_to_fi: float
    fi_number: float
    current_progress: float
    projected_fi_date: date
    remaining_needed: float


@dataclass(frozen=True)
class NetWorthPoint:
    year: int
    net_worth: float
    date: date


@dataclass(frozen=True)
class RequiredSavings:
    required_annual_savings: float
    required_savings_rate: float  # percent of income
    is_feasible: bool


def calculate_years_to_fi(
    inputs: NetworthifyInputs,
    start: Optional[date] = None,
) -> NetworthifyResult:
    """
    Years until net worth reaches the FI number.

    Parameters
    ----------
    inputs : NetworthifyInputs
    start : datetime.date, optional
        Anchor for ``projected_fi_date``. Defaults to today.

    Returns
    -------
    NetworthifyResult

    Examples
    --------
    >>> res = calculate_years_to_fi(NetworthifyInputs(
    ...     current_net_worth=100_000, annual_expenses=40_000,
    ...     annual_savings=30_000, expected_return=0.05, withdrawal_rate=0.04))
    >>> res.fi_number
    1000000.0
    >>> round(res.years_to_fi, 2)
    5.38
    """
    nw = inputs.current_net_worth
    savings = inputs.annual_savings
    r = inputs.expected_return
    wr = inputs.withdrawal_rate

    fi_number = (inputs.annual_expenses / wr) * inputs.safety_margin
    progress = min(nw / fi_number * 100.0, 100.0) if fi_number > 0 else 0.0
    remaining = max(0.0, fi_number - nw)

    if nw >= fi_number:
        return NetworthifyResult(
            years_to_fi=0.0,
            fi_number=fi_number,
            current_progress=100.0,
            projected_fi_date=start or date.today(),
            remaining_needed=0.0,
        )

    if savings <= 0:
        return NetworthifyResult(math.inf, fi_number, progress, FAR_FUTURE_DATE, remaining)

    spread = r - wr
    if abs(spread) < RATE_EPSILON:
        years = remaining / savings
        return NetworthifyResult(years, fi_number, progress, add_years(start, years), remaining)

    numerator = 1.0 + remaining * spread / savings
    if numerator <= 0:
        return NetworthifyResult(math.inf, fi_number, progress, FAR_FUTURE_DATE, remaining)

    if 1.0 + r <= 0:
        return NetworthifyResult(math.inf, fi_number, progress, FAR_FUTURE_DATE, remaining)

    log_growth = math.log(1.0 + r)
    if log_growth == 0:
        # ln(x) / 0 diverges; the 0-year floor absorbs it, as for any r < wr
        years = 0.0 if numerator < 1 else math.inf
    else:
        years = math.log(numerator) / log_growth
    return NetworthifyResult(
        years_to_fi=max(0.0, years),
        fi_number=fi_number,
        current_progress=progress,
        projected_fi_date=add_years(start, max(0.0, years)),
        remaining_needed=remaining,
    )


def project_net_worth_growth(
    inputs: NetworthifyInputs,
    years: int,
    start: Optional[date] = None,
) -> List[NetWorthPoint]:
    """Net worth for years ``0..years`` at a constant return: grow, then save."""
    start = start or date.today()
    nw = inputs.current_net_worth
    points = []
    for year in range(years + 1):
        points.append(NetWorthPoint(year=year, net_worth=nw, date=add_years(start, year)))
        nw = nw * (1.0 + inputs.expected_return) + inputs.annual_savings
    return points


def calculate_required_savings_rate(
    current_net_worth: float,
    annual_income: float,
    annual_expenses: float,
    target_years: float,
    expected_return: float = DEFAULT_EXPECTED_RETURN,
    withdrawal_rate: float = DEFAULT_WITHDRAWAL_RATE,
) -> RequiredSavings:
    """
    Annual savings needed to reach FI in ``target_years``.

    Solves the future value of an annuity for the payment:

        S = R · r / ((1 + r)^n - 1)

    with the linear ``R / n`` when ``|r| < 1e-4``. Feasible when the required
    savings fit within ``income - expenses`` and the rate is at most 100%.
    Existing net worth is not compounded.
    """
    if target_years <= 0:
        raise ValueError(f"target_years must be positive, got {target_years}")
    fi_number = annual_expenses / withdrawal_rate
    remaining = max(0.0, fi_number - current_net_worth)

    r = expected_return
    if abs(r) < RATE_EPSILON:
        required = remaining / target_years
    else:
        fv_factor = ((1.0 + r) ** target_years - 1.0) / r
        required = remaining / fv_factor

    rate = required / annual_income * 100.0 if annual_income > 0 else 0.0
    feasible = required <= (annual_income - annual_expenses) and rate <= 100.0
    return RequiredSavings(
        required_annual_savings=required,
        required_savings_rate=rate,
        is_feasible=feasible,
    )
