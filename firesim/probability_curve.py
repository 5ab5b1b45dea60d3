"""
Success probability as a function of retirement age.

For each integer retirement age in ``[min_retirement_age, max_retirement_age]``:

1. ``years_to_retirement = max(0, age - current_age)``
2. net worth is projected to that age, each year adding the annual savings
   first and then applying ``1 + expected_return``
3. ``retirement_years = max(1, life_expectancy - age)``
4. a Monte Carlo batch with the fixed strategy withdraws ``annual_expenses``
   from the projected portfolio over that horizon

Key ages are read off the finished sweep: the first age reaching 50%
(earliest viable), 90% (optimal) and 95% (safe) success, each falling back
to the maximum age when never reached.

One sampler is threaded through the whole sweep, so a seed reproduces the
entire curve.

Example
-------
>>> from firesim.config import ProbabilityCurveConfig, MonteCarloSettings
>>> cfg = ProbabilityCurveConfig(
...     current_age=35, current_year=2025, min_retirement_age=50,
...     max_retirement_age=65, current_net_worth=200_000,
...     annual_savings=40_000, annual_expenses=50_000, expected_return=0.06,
...     monte_carlo=MonteCarloSettings(num_simulations=500))
>>> curve = generate_probability_curve(cfg, seed=7)
>>> [p.retirement_age for p in curve.points][:3]
[50, 51, 52]
"""

from __future__ import annotations

import math
import warnings
from dataclasses import dataclass, asdict
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from .config import MonteCarloConfig, ProbabilityCurveConfig
from .constants import (
    DEFAULT_LIFE_EXPECTANCY,
    VIABLE_SUCCESS_RATE,
    OPTIMAL_SUCCESS_RATE,
    SAFE_SUCCESS_RATE,
    SUCCESS_RATE_TIERS,
)
from .montecarlo import MonteCarloEngine
from .sampler import NormalSampler, SeedLike
from .types import RechartsPointDict

__all__ = [
    "ProbabilityCurvePoint",
    "ProbabilityCurveResult",
    "RetirementAgeTarget",
    "project_net_worth",
    "retirement_duration",
    "generate_probability_curve",
    "find_retirement_age_for_success_rate",
    "format_for_recharts",
    "success_rate_description",
]


@dataclass(frozen=True)
class ProbabilityCurvePoint:
    retirement_age: int
    retirement_year: int
    success_rate: float
    years_to_retirement: int
    median_final_portfolio: float


@dataclass(frozen=True)
class ProbabilityCurveResult:
    """
    Outcome of an age sweep.

    Attributes
    ----------
    points : tuple of ProbabilityCurvePoint
        One point per age, ascending.
    optimal_retirement_age : int
        First age with success >= 90%.
    safe_retirement_age : int
        First age with success >= 95%.
    earliest_viable_age : int
        First age with success >= 50%.
    """
    points: Tuple[ProbabilityCurvePoint, ...]
    optimal_retirement_age: int
    safe_retirement_age: int
    earliest_viable_age: int

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([asdict(p) for p in self.points]).set_index("retirement_age")


@dataclass(frozen=True)
class RetirementAgeTarget:
    retirement_age: int
    actual_success_rate: float
    years_to_retirement: int


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------

def project_net_worth(
    current_net_worth: float,
    annual_savings: float,
    years_to_retirement: int,
    expected_return: float,
) -> float:
    """Accumulate to retirement: savings are added before each year's growth."""
    net_worth = current_net_worth
    for _ in range(years_to_retirement):
        net_worth += annual_savings
        net_worth *= 1.0 + expected_return
    return net_worth


def retirement_duration(retirement_age: int, life_expectancy: int = DEFAULT_LIFE_EXPECTANCY) -> int:
    return max(1, life_expectancy - retirement_age)


def _first_age(points: Sequence[ProbabilityCurvePoint], threshold: float, fallback: int) -> int:
    for p in points:
        if p.success_rate >= threshold:
            return p.retirement_age
    return fallback


# ---------------------------------------------------------------------------
# Sweep
# ---------------------------------------------------------------------------

def generate_probability_curve(
    config: ProbabilityCurveConfig,
    sampler: Optional[NormalSampler] = None,
    seed: SeedLike = None,
) -> ProbabilityCurveResult:
    """
    Sweep retirement ages and estimate the success rate at each.

    Parameters
    ----------
    config : ProbabilityCurveConfig
    sampler : NormalSampler, optional
        Random stream shared by every age's batch.
    seed : optional
        Seed for a private stream when no sampler is given.

    Returns
    -------
    ProbabilityCurveResult
    """
    sampler = NormalSampler.coerce(sampler, seed)
    mc = config.monte_carlo
    points: List[ProbabilityCurvePoint] = []

    for age in range(config.min_retirement_age, config.max_retirement_age + 1):
        years_to_retirement = max(0, age - config.current_age)
        projected = project_net_worth(
            config.current_net_worth,
            config.annual_savings,
            years_to_retirement,
            config.expected_return,
        )
        mc_config = MonteCarloConfig(
            num_simulations=mc.num_simulations,
            retirement_years=retirement_duration(age, config.life_expectancy),
            initial_portfolio=projected,
            withdrawal_strategy="fixed",
            annual_withdrawal=config.annual_expenses,
            expected_return_mean=mc.expected_return_mean,
            expected_return_stdev=mc.expected_return_stdev,
            inflation_rate=mc.inflation_rate,
        )
        result = MonteCarloEngine(mc_config, sampler=sampler).run()
        points.append(ProbabilityCurvePoint(
            retirement_age=age,
            retirement_year=config.current_year + years_to_retirement,
            success_rate=result.success_rate,
            years_to_retirement=years_to_retirement,
            median_final_portfolio=result.median_final_portfolio,
        ))

    max_age = config.max_retirement_age
    return ProbabilityCurveResult(
        points=tuple(points),
        optimal_retirement_age=_first_age(points, OPTIMAL_SUCCESS_RATE, max_age),
        safe_retirement_age=_first_age(points, SAFE_SUCCESS_RATE, max_age),
        earliest_viable_age=_first_age(points, VIABLE_SUCCESS_RATE, max_age),
    )


def find_retirement_age_for_success_rate(
    target_success_rate: float,
    config: ProbabilityCurveConfig,
    sampler: Optional[NormalSampler] = None,
    seed: SeedLike = None,
    curve: Optional[ProbabilityCurveResult] = None,
) -> RetirementAgeTarget:
    """
    Earliest swept age whose success rate meets *target_success_rate*.

    If no age qualifies, the last (oldest) point of the sweep is returned and
    a ``UserWarning`` is issued. Pass an already generated *curve* to scan its
    points instead of running a new sweep.
    """
    if curve is None:
        curve = generate_probability_curve(config, sampler=sampler, seed=seed)
    for p in curve.points:
        if p.success_rate >= target_success_rate:
            return RetirementAgeTarget(p.retirement_age, p.success_rate, p.years_to_retirement)

    last = curve.points[-1]
    warnings.warn(
        f"Target success rate {target_success_rate:.0%} is not reached by age "
        f"{last.retirement_age} (best: {last.success_rate:.1%}). Returning the oldest age.",
        UserWarning,
    )
    return RetirementAgeTarget(last.retirement_age, last.success_rate, last.years_to_retirement)


# ---------------------------------------------------------------------------
# Presentation adapters
# ---------------------------------------------------------------------------

def format_for_recharts(points: Sequence[ProbabilityCurvePoint]) -> List[RechartsPointDict]:
    """
    Chart-ready records: success rate as an integer percentage.

    Examples
    --------
    >>> format_for_recharts([ProbabilityCurvePoint(60, 2050, 0.876, 25, 1.2e6)])
    [{'age': 60, 'year': 2050, 'probability': 88, 'label': 'Age 60'}]
    """
    return [
        {
            "age": p.retirement_age,
            "year": p.retirement_year,
            "probability": int(math.floor(p.success_rate * 100 + 0.5)),
            "label": f"Age {p.retirement_age}",
        }
        for p in points
    ]


def success_rate_description(success_rate: float) -> str:
    for threshold, description in SUCCESS_RATE_TIERS:
        if success_rate >= threshold:
            return description
    return "Very Risky - Low probability of success"
