"""
Chart-ready data adapters.

Pure transforms from simulation results to plain records that a chart
renderer (line, area, bar) can consume directly. Nothing here draws.

Contents
--------
- format_for_recharts : probability curve points -> {age, year, probability, label}
- create_net_worth_projection : constant-return accumulation/retirement path
- monte_carlo_to_histogram : binned final portfolios
- downsample_chart_data, add_moving_average, get_chart_data_summary
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence, TypeVar, Union

import numpy as np

from .historical import HistoricalSimulationResult
from .montecarlo import MonteCarloResult
from .probability_curve import format_for_recharts
from .types import ChartSummaryDict, HistogramBinDict, NetWorthChartPointDict
from .utils import format_currency_range

__all__ = [
    "format_for_recharts",
    "create_net_worth_projection",
    "monte_carlo_to_histogram",
    "downsample_chart_data",
    "add_moving_average",
    "get_chart_data_summary",
]

T = TypeVar("T")


def create_net_worth_projection(
    current_age: int,
    retirement_age: int,
    life_expectancy: int,
    current_savings: float,
    annual_contribution: float,
    annual_expenses: float,
    expected_return: float,
    inflation_rate: float = 0.02,
    current_year: Optional[int] = None,
) -> List[NetWorthChartPointDict]:
    """
    Net worth path from ``current_age`` to ``life_expectancy`` inclusive.

    Before ``retirement_age`` the contribution is added and the return
    applied; from ``retirement_age`` on, expenses inflated since retirement
    are withdrawn before the return and the balance is floored at zero.

    Parameters
    ----------
    current_year : int, optional
        Calendar year of ``current_age``; defaults to this year.
    """
    if current_year is None:
        current_year = date.today().year
    horizon = life_expectancy - current_age
    net_worth = float(current_savings)
    data: List[NetWorthChartPointDict] = []

    for i in range(horizon + 1):
        age = current_age + i
        year = current_year + i
        phase = "accumulation" if age < retirement_age else "retirement"
        data.append({
            "year": year,
            "age": age,
            "net_worth": net_worth,
            "phase": phase,
            "year_label": str(year),
        })

        if i == horizon:
            break
        if phase == "accumulation":
            net_worth = (net_worth + annual_contribution) * (1.0 + expected_return)
        else:
            spending = annual_expenses * (1.0 + inflation_rate) ** (age - retirement_age)
            net_worth = max(0.0, (net_worth - spending) * (1.0 + expected_return))

    return data


def monte_carlo_to_histogram(
    result: Union[MonteCarloResult, HistoricalSimulationResult],
    bin_count: int = 20,
) -> List[HistogramBinDict]:
    """
    Bin the final portfolios into ``bin_count`` equal-width bins.

    Bins are half-open ``[start, end)`` except the last, which also holds
    the maximum. When every run ends at the same value the first bin holds
    them all.
    """
    if bin_count < 1:
        raise ValueError(f"bin_count must be >= 1 (got {bin_count}).")

    finals = result.final_portfolios()
    n = finals.size
    if n == 0:
        return []

    lo, hi = float(finals.min()), float(finals.max())
    width = (hi - lo) / bin_count
    if width > 0:
        idx = np.minimum(((finals - lo) // width).astype(int), bin_count - 1)
    else:
        idx = np.zeros(n, dtype=int)
    counts = np.bincount(idx, minlength=bin_count)

    bins: List[HistogramBinDict] = []
    for i in range(bin_count):
        start = lo + i * width
        end = start + width
        bins.append({
            "bin_start": start,
            "bin_end": end,
            "bin_label": format_currency_range(start, end),
            "count": int(counts[i]),
            "percentage": counts[i] / n * 100.0,
            "is_success": end > 0,
        })
    return bins


def downsample_chart_data(data: Sequence[T], max_points: int = 100) -> List[T]:
    """Keep every ``ceil(len / max_points)``-th point, starting with the first."""
    if len(data) <= max_points:
        return list(data)
    step = -(-len(data) // max_points)
    return list(data[::step])


def add_moving_average(
    data: Sequence[NetWorthChartPointDict],
    window: int = 5,
) -> List[NetWorthChartPointDict]:
    """Centered moving average of ``net_worth``, truncated at the edges."""
    out: List[NetWorthChartPointDict] = []
    for i, point in enumerate(data):
        lo = max(0, i - window // 2)
        hi = min(len(data), i + -(-window // 2))
        chunk = [p["net_worth"] for p in data[lo:hi]]
        out.append({**point, "moving_average": sum(chunk) / len(chunk)})
    return out


def get_chart_data_summary(data: Sequence[NetWorthChartPointDict]) -> ChartSummaryDict:
    """Min, max, mean, upper median and last value of a net worth path."""
    if not data:
        return {"min": 0.0, "max": 0.0, "average": 0.0, "median": 0.0, "final_value": 0.0}
    values = sorted(p["net_worth"] for p in data)
    return {
        "min": values[0],
        "max": values[-1],
        "average": sum(values) / len(values),
        "median": values[len(values) // 2],
        "final_value": data[-1]["net_worth"],
    }
