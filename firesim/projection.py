"""
Year-by-year FIRE projection along a stock/bond glide path.

Each simulated year (1, 2, ..., at most ``MAX_PROJECTION_YEARS``):

1. stock allocation at the new age (linear glide path, clamped)
2. blended return ``a·stock + (1 - a)·bond``
3. net worth grows by the blended return, then this year's savings are added
4. expenses inflate, savings grow with income
5. the year is recorded
6. FI when ``net_worth >= expenses / withdrawal_rate``

Year 0 is the pre-growth snapshot and is never tested for FI. If the cap is
hit the result carries ``years_to_fi = inf`` and the far-future date.

Example
-------
>>> from firesim.config import FIProjectionInputs, GlidePathConfig
>>> inputs = FIProjectionInputs(
...     current_age=30, current_net_worth=200_000,
...     initial_annual_savings=50_000, initial_annual_expenses=40_000,
...     glide_path=GlidePathConfig(start_age=30, end_age=60,
...                                start_stock_allocation=0.9,
...                                end_stock_allocation=0.5))
>>> result = calculate_fi_projection(inputs)
>>> result.projection[0].year, result.projection[-1].year == result.years_to_fi
(0, True)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, asdict
from datetime import date
from typing import Optional, Tuple

import pandas as pd

from .config import FIProjectionInputs, GlidePathConfig
from .constants import MAX_PROJECTION_YEARS, FAR_FUTURE_DATE
from .utils import add_years

__all__ = [
    "FIProjectionYear",
    "FIProjectionResult",
    "stock_allocation",
    "blended_return",
    "calculate_fi_projection",
]


@dataclass(frozen=True)
class FIProjectionYear:
    """Single year of a deterministic trajectory."""
    year: int
    age: float
    net_worth: float
    expenses: float
    savings: float
    investment_return: float


@dataclass(frozen=True)
class FIProjectionResult:
    """
    Deterministic projection outcome.

    Attributes
    ----------
    years_to_fi : float
        First FI year, or ``math.inf`` if the cap was reached.
    projected_fi_date : datetime.date
    fi_number : float
        ``expenses / withdrawal_rate`` at the last simulated year.
    projection : tuple of FIProjectionYear
    """
    years_to_fi: float
    projected_fi_date: date
    fi_number: float
    projection: Tuple[FIProjectionYear, ...]

    @property
    def reached_fi(self) -> bool:
        return math.isfinite(self.years_to_fi)

    def net_worth_at(self, index: int) -> float:
        return self.projection[index].net_worth

    def to_frame(self) -> pd.DataFrame:
        """Trajectory as a DataFrame indexed by year."""
        return pd.DataFrame([asdict(y) for y in self.projection]).set_index("year")


def stock_allocation(age: float, glide_path: GlidePathConfig) -> float:
    """Stock share at *age*: endpoints outside the range, linear inside."""
    if age <= glide_path.start_age:
        return glide_path.start_stock_allocation
    if age >= glide_path.end_age:
        return glide_path.end_stock_allocation
    progress = (age - glide_path.start_age) / (glide_path.end_age - glide_path.start_age)
    return glide_path.start_stock_allocation - progress * (
        glide_path.start_stock_allocation - glide_path.end_stock_allocation
    )


def blended_return(allocation: float, stock_rate: float, bond_rate: float) -> float:
    return allocation * stock_rate + (1.0 - allocation) * bond_rate


def calculate_fi_projection(
    inputs: FIProjectionInputs,
    start: Optional[date] = None,
) -> FIProjectionResult:
    """
    Project net worth until financial independence.

    Parameters
    ----------
    inputs : FIProjectionInputs
    start : datetime.date, optional
        Anchor for ``projected_fi_date``; defaults to today.

    Returns
    -------
    FIProjectionResult
    """
    gp = inputs.glide_path
    year = 0
    age = inputs.current_age
    net_worth = inputs.current_net_worth
    savings = inputs.initial_annual_savings
    expenses = inputs.initial_annual_expenses

    initial_return = blended_return(
        stock_allocation(age, gp), inputs.stock_growth_rate, inputs.bond_growth_rate
    )
    projection = [FIProjectionYear(year, age, net_worth, expenses, savings, initial_return)]

    while year < MAX_PROJECTION_YEARS:
        year += 1
        age += 1

        r = blended_return(stock_allocation(age, gp), inputs.stock_growth_rate, inputs.bond_growth_rate)
        net_worth *= 1.0 + r
        net_worth += savings

        expenses *= 1.0 + inputs.inflation_rate
        savings *= 1.0 + inputs.income_growth_rate

        projection.append(FIProjectionYear(year, age, net_worth, expenses, savings, r))

        fi_number = expenses / inputs.withdrawal_rate
        if net_worth >= fi_number:
            return FIProjectionResult(
                years_to_fi=year,
                projected_fi_date=add_years(start, year),
                fi_number=fi_number,
                projection=tuple(projection),
            )

    return FIProjectionResult(
        years_to_fi=math.inf,
        projected_fi_date=FAR_FUTURE_DATE,
        fi_number=expenses / inputs.withdrawal_rate,
        projection=tuple(projection),
    )
