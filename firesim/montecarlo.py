"""
Monte Carlo retirement simulation.

Methodology
-----------
- Simulate ``num_simulations`` independent retirements.
- Each run draws a fresh sequence of ``retirement_years`` annual returns
  from N(mean, stdev²) through an explicit ``NormalSampler`` stream.
- Each sequence is played through the configured withdrawal strategy.
- Aggregate: success rate and nearest-rank percentiles of the final
  portfolio (index ``floor(n·q)`` of the ascending sample, no
  interpolation).

The strategy is resolved from the configuration before any draw, so a
missing strategy parameter raises ``ConfigurationError`` without consuming
randomness.

Example
-------
>>> from firesim.config import MonteCarloConfig
>>> cfg = MonteCarloConfig(num_simulations=1000, retirement_years=30,
...                        initial_portfolio=1_000_000, annual_withdrawal=40_000)
>>> result = run_monte_carlo_simulation(cfg, seed=42)
>>> 0.0 <= result.success_rate <= 1.0
True
>>> result.percentile10_final_portfolio <= result.median_final_portfolio
True
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .config import MonteCarloConfig
from .constants import PERCENTILE_LOW, PERCENTILE_HIGH
from .sampler import NormalSampler, SeedLike
from .strategies import SimulationRun, WithdrawalStrategy, build_strategy
from .types import PercentileDict
from .utils import nearest_rank, nearest_rank_percentiles

__all__ = [
    "RunStatistics",
    "MonteCarloResult",
    "MonteCarloEngine",
    "summarize_runs",
    "runs_to_frame",
    "run_monte_carlo_simulation",
]


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RunStatistics:
    success_rate: float
    median_final_portfolio: float
    percentile10_final_portfolio: float
    percentile90_final_portfolio: float


def summarize_runs(runs: Sequence[SimulationRun]) -> RunStatistics:
    """
    Success rate and nearest-rank percentiles over a completed batch.

    Called only once every run of the batch exists.
    """
    n = len(runs)
    if n == 0:
        raise ValueError("cannot summarize an empty batch of runs")
    successes = sum(1 for run in runs if run.success)
    finals = np.sort(np.fromiter((run.final_portfolio for run in runs), dtype=float, count=n))
    return RunStatistics(
        success_rate=successes / n,
        median_final_portfolio=nearest_rank(finals, 0.5),
        percentile10_final_portfolio=nearest_rank(finals, PERCENTILE_LOW),
        percentile90_final_portfolio=nearest_rank(finals, PERCENTILE_HIGH),
    )


def runs_to_frame(runs: Sequence[SimulationRun]) -> pd.DataFrame:
    """One row per run, indexed by ``run_id``; return paths are omitted."""
    rows = [
        {
            "run_id": run.run_id,
            "success": run.success,
            "final_portfolio": run.final_portfolio,
            "years_lasted": run.years_lasted,
            "total_withdrawn": run.total_withdrawn,
            **({"start_year": run.start_year} if hasattr(run, "start_year") else {}),
        }
        for run in runs
    ]
    return pd.DataFrame(rows).set_index("run_id")


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MonteCarloResult:
    """
    Aggregate of a Monte Carlo batch.

    Attributes
    ----------
    success_rate : float
        Fraction of runs that never depleted, in [0, 1].
    median_final_portfolio : float
        Element ``floor(n/2)`` of the sorted final portfolios.
    percentile10_final_portfolio, percentile90_final_portfolio : float
        Elements ``floor(0.1·n)`` and ``floor(0.9·n)``.
    simulations : tuple of SimulationRun
        Every run, in run-id order.
    config : MonteCarloConfig
    """
    success_rate: float
    median_final_portfolio: float
    percentile10_final_portfolio: float
    percentile90_final_portfolio: float
    simulations: Tuple[SimulationRun, ...]
    config: MonteCarloConfig

    @property
    def n_simulations(self) -> int:
        return len(self.simulations)

    def final_portfolios(self) -> np.ndarray:
        return np.array([run.final_portfolio for run in self.simulations], dtype=float)

    def percentiles(self) -> PercentileDict:
        """p10, p25, p50, p75, p90 of the final portfolio (nearest rank)."""
        return nearest_rank_percentiles(self.final_portfolios())

    def to_frame(self) -> pd.DataFrame:
        return runs_to_frame(self.simulations)

    def summary(self) -> str:
        return (
            f"MonteCarloResult(n={self.n_simulations}, "
            f"strategy={self.config.withdrawal_strategy!r}, "
            f"success_rate={self.success_rate:.1%}, "
            f"median={self.median_final_portfolio:,.0f}, "
            f"p10={self.percentile10_final_portfolio:,.0f}, "
            f"p90={self.percentile90_final_portfolio:,.0f})"
        )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class MonteCarloEngine:
    """
    Runs a batch of simulated retirements.

    Parameters
    ----------
    config : MonteCarloConfig
    sampler : NormalSampler, optional
        Random stream to draw from. Takes precedence over ``seed``.
    seed : int, SeedSequence or Generator, optional
        Seed for a private stream when no sampler is given.

    Raises
    ------
    ConfigurationError
        At construction, if the strategy is unknown or missing a parameter.
    """

    def __init__(
        self,
        config: MonteCarloConfig,
        sampler: Optional[NormalSampler] = None,
        seed: SeedLike = None,
    ):
        self.config = config
        self.strategy: WithdrawalStrategy = build_strategy(config)
        self.sampler = NormalSampler.coerce(sampler, seed)

    def simulate_one(self, run_id: int) -> SimulationRun:
        cfg = self.config
        returns = self.sampler.generate_returns(
            cfg.retirement_years, cfg.expected_return_mean, cfg.expected_return_stdev
        )
        return self.strategy.run(cfg.initial_portfolio, returns).with_id(run_id)

    def run(self) -> MonteCarloResult:
        runs = tuple(self.simulate_one(i) for i in range(self.config.num_simulations))
        stats = summarize_runs(runs)
        return MonteCarloResult(
            success_rate=stats.success_rate,
            median_final_portfolio=stats.median_final_portfolio,
            percentile10_final_portfolio=stats.percentile10_final_portfolio,
            percentile90_final_portfolio=stats.percentile90_final_portfolio,
            simulations=runs,
            config=self.config,
        )

    def __repr__(self) -> str:
        return (f"MonteCarloEngine(n={self.config.num_simulations}, "
                f"years={self.config.retirement_years}, strategy={self.strategy!r})")


def run_monte_carlo_simulation(
    config: MonteCarloConfig,
    sampler: Optional[NormalSampler] = None,
    seed: SeedLike = None,
) -> MonteCarloResult:
    """Run a Monte Carlo batch; see ``MonteCarloEngine``."""
    return MonteCarloEngine(config, sampler=sampler, seed=seed).run()
