"""
Type definitions for firesim.

Purpose
-------
Provides TypedDict definitions for the chart-ready records produced by the
presentation adapters. Using TypedDicts documents the exact keys a chart
renderer can rely on, with no rendering logic in the package itself.

Usage
-----
>>> from firesim.types import RechartsPointDict
>>>
>>> point: RechartsPointDict = {
...     "age": 60, "year": 2050, "probability": 88, "label": "Age 60"
... }

Type Definitions
----------------
RechartsPointDict
    Probability curve point: {"age", "year", "probability", "label"}

NetWorthChartPointDict
    Net worth path point: {"year", "age", "net_worth", "phase", "year_label"}

HistogramBinDict
    Final-portfolio histogram bin: {"bin_start", "bin_end", "bin_label", ...}

ChartSummaryDict
    Summary of a net worth path: {"min", "max", "average", "median", "final_value"}

PercentileDict
    Nearest-rank percentiles: {"p10", "p25", "p50", "p75", "p90"}
"""

from typing import Literal
from typing_extensions import TypedDict, NotRequired

__all__ = [
    "RechartsPointDict",
    "NetWorthChartPointDict",
    "HistogramBinDict",
    "ChartSummaryDict",
    "PercentileDict",
]


class RechartsPointDict(TypedDict):
    """
    Probability curve point for a line chart.

    Attributes
    ----------
    age : int
        Retirement age.
    year : int
        Calendar year of retirement.
    probability : int
        Success rate as a rounded percentage, 0 to 100.
    label : str
        Axis label, e.g. ``"Age 60"``.
    """

    age: int
    year: int
    probability: int
    label: str


class NetWorthChartPointDict(TypedDict):
    """
    One year of a simple accumulation/retirement net worth path.

    ``moving_average`` is present only after ``add_moving_average``.

    Examples
    --------
    >>> point: NetWorthChartPointDict = {
    ...     "year": 2030, "age": 40, "net_worth": 450_000.0,
    ...     "phase": "accumulation", "year_label": "2030"
    ... }
    """

    year: int
    age: int
    net_worth: float
    phase: Literal["accumulation", "retirement"]
    year_label: str
    moving_average: NotRequired[float]


class HistogramBinDict(TypedDict):
    """
    Histogram bin of final portfolio values.

    Attributes
    ----------
    bin_start, bin_end : float
        Bin edges; the last bin also holds the maximum.
    bin_label : str
        Compact currency range, e.g. ``"$1.2M - $1.5M"``.
    count : int
    percentage : float
        Share of all runs in this bin, 0 to 100.
    is_success : bool
        True when the bin lies above zero.
    """

    bin_start: float
    bin_end: float
    bin_label: str
    count: int
    percentage: float
    is_success: bool


class ChartSummaryDict(TypedDict):
    min: float
    max: float
    average: float
    median: float
    final_value: float


class PercentileDict(TypedDict):
    p10: float
    p25: float
    p50: float
    p75: float
    p90: float
