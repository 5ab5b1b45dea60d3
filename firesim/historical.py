"""
Historical returns backtesting.

Methodology
-----------
Instead of sampling returns, replay contiguous windows of an externally
supplied historical table (year -> stock return, bond return, inflation):

- ``sampling="random"``: each of ``num_simulations`` runs starts at a
  uniformly drawn index in ``[0, n - years]``.
- ``sampling="rolling"``: every contiguous window of ``retirement_years``
  years is replayed exactly once, in chronological order.

Each year's portfolio return is the stock/bond blend at the configured
allocation; the fixed strategy inflates its withdrawal by the *realized*
inflation of the previous historical year. Aggregation (success rate,
nearest-rank percentiles) is identical to the Monte Carlo engine, and the
result additionally names the start years of the worst and best outcomes.

The table is an injected dependency: callers pass a DataFrame or records;
``firesim.sample_data`` provides a 1926-2023 sample.

Example
-------
>>> from firesim.config import HistoricalSimulationConfig
>>> cfg = HistoricalSimulationConfig(retirement_years=30, initial_portfolio=1_000_000,
...                                  annual_withdrawal=40_000, sampling="rolling")
>>> result = run_historical_simulation(cfg)
>>> len(result.simulations)     # 98 years of data, 30-year windows
69
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from .config import HistoricalSimulationConfig
from .exceptions import ConfigurationError, ValidationError
from .montecarlo import summarize_runs, runs_to_frame
from .sample_data import HISTORY_COLUMNS, load_sample_history
from .sampler import NormalSampler, SeedLike
from .strategies import SimulationRun, build_strategy
from .types import PercentileDict
from .utils import nearest_rank_percentiles

__all__ = [
    "HistoricalRun",
    "HistoricalSimulationResult",
    "HistoryLike",
    "as_history_frame",
    "get_historical_data_by_year_range",
    "portfolio_returns",
    "run_historical_simulation",
]


HistoryLike = Union[pd.DataFrame, Iterable[Mapping[str, Any]]]


# ---------------------------------------------------------------------------
# Historical table
# ---------------------------------------------------------------------------

def as_history_frame(data: Optional[HistoryLike] = None) -> pd.DataFrame:
    """
    Normalize a historical returns table.

    Parameters
    ----------
    data : DataFrame or iterable of mappings, optional
        Must provide ``year``, ``stock_return``, ``bond_return`` and
        ``inflation_rate`` (``year`` may be the index). ``None`` loads the
        bundled sample.

    Returns
    -------
    pd.DataFrame
        Indexed by ``year``, sorted ascending, float columns.

    Raises
    ------
    ValidationError
        If required columns are missing.
    """
    if data is None:
        return load_sample_history()

    frame = data.copy() if isinstance(data, pd.DataFrame) else pd.DataFrame(list(data))
    if "year" in frame.columns:
        frame = frame.set_index("year")
    frame.index.name = "year"

    missing = [c for c in HISTORY_COLUMNS if c not in frame.columns]
    if missing:
        raise ValidationError(f"historical data is missing columns {missing}")

    frame = frame.loc[:, list(HISTORY_COLUMNS)].astype(float).sort_index()
    frame.index = frame.index.astype(int)
    return frame


def get_historical_data_by_year_range(
    start_year: int,
    end_year: int,
    data: Optional[HistoryLike] = None,
) -> pd.DataFrame:
    """Rows with ``start_year <= year <= end_year``."""
    frame = as_history_frame(data)
    mask = (frame.index >= start_year) & (frame.index <= end_year)
    return frame.loc[mask]


def portfolio_returns(frame: pd.DataFrame, stock_allocation: float) -> np.ndarray:
    """Blended annual return per row: ``stock·a + bond·(1 - a)``."""
    stock = frame["stock_return"].to_numpy(dtype=float)
    bond = frame["bond_return"].to_numpy(dtype=float)
    return stock * stock_allocation + bond * (1.0 - stock_allocation)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HistoricalRun(SimulationRun):
    """A SimulationRun replayed from history, tagged with its first year."""
    start_year: Optional[int] = None


@dataclass(frozen=True)
class HistoricalSimulationResult:
    """
    Aggregate of a historical backtest.

    Same statistics as ``MonteCarloResult`` plus the historical start years
    that produced the lowest and highest final portfolio.
    """
    success_rate: float
    median_final_portfolio: float
    percentile10_final_portfolio: float
    percentile90_final_portfolio: float
    worst_case_start_year: int
    best_case_start_year: int
    simulations: Tuple[HistoricalRun, ...]
    config: HistoricalSimulationConfig

    def final_portfolios(self) -> np.ndarray:
        return np.array([run.final_portfolio for run in self.simulations], dtype=float)

    def percentiles(self) -> PercentileDict:
        return nearest_rank_percentiles(self.final_portfolios())

    def success_by_start_year(self) -> pd.Series:
        """Success rate per historical start year."""
        frame = self.to_frame()
        return frame.groupby("start_year")["success"].mean()

    def to_frame(self) -> pd.DataFrame:
        return runs_to_frame(self.simulations)


# ---------------------------------------------------------------------------
# Backtest
# ---------------------------------------------------------------------------

def _window_starts(
    n_rows: int,
    config: HistoricalSimulationConfig,
    sampler: NormalSampler,
) -> List[int]:
    max_start = max(0, n_rows - config.retirement_years)
    if config.sampling == "rolling":
        starts = list(range(max_start + 1))
        if "num_simulations" in config.model_fields_set and config.num_simulations != len(starts):
            warnings.warn(
                f"Rolling backtest replays all {len(starts)} windows; "
                f"num_simulations={config.num_simulations} is ignored.",
                UserWarning,
            )
        return starts
    return [sampler.integers(0, max_start + 1) for _ in range(config.num_simulations)]


def run_historical_simulation(
    config: HistoricalSimulationConfig,
    data: Optional[HistoryLike] = None,
    sampler: Optional[NormalSampler] = None,
    seed: SeedLike = None,
) -> HistoricalSimulationResult:
    """
    Backtest a withdrawal strategy over historical return windows.

    Parameters
    ----------
    config : HistoricalSimulationConfig
    data : DataFrame or records, optional
        Historical table; defaults to the bundled 1926-2023 sample.
    sampler : NormalSampler, optional
        Stream for random window starts (ignored for rolling windows).
    seed : optional
        Seed for a private stream when no sampler is given.

    Returns
    -------
    HistoricalSimulationResult

    Raises
    ------
    ConfigurationError
        If the table has fewer rows than ``retirement_years``, or the
        strategy is unknown or missing a parameter.
    """
    frame = as_history_frame(data)
    years = config.retirement_years
    if len(frame) < years:
        raise ConfigurationError(
            f"Insufficient historical data. Need at least {years} years, have {len(frame)}"
        )

    strategy = build_strategy(config)
    sampler = NormalSampler.coerce(sampler, seed)

    blended = portfolio_returns(frame, config.stock_allocation)
    inflation = frame["inflation_rate"].to_numpy(dtype=float)
    calendar = frame.index.to_numpy()

    runs = []
    for run_id, start in enumerate(_window_starts(len(frame), config, sampler)):
        window = slice(start, start + years)
        run = strategy.run(config.initial_portfolio, blended[window], inflation[window])
        runs.append(HistoricalRun(
            success=run.success,
            final_portfolio=run.final_portfolio,
            years_lasted=run.years_lasted,
            total_withdrawn=run.total_withdrawn,
            returns=run.returns,
            run_id=run_id,
            start_year=int(calendar[start]),
        ))

    stats = summarize_runs(runs)
    worst = min(runs, key=lambda r: r.final_portfolio)
    best = max(reversed(runs), key=lambda r: r.final_portfolio)

    return HistoricalSimulationResult(
        success_rate=stats.success_rate,
        median_final_portfolio=stats.median_final_portfolio,
        percentile10_final_portfolio=stats.percentile10_final_portfolio,
        percentile90_final_portfolio=stats.percentile90_final_portfolio,
        worst_case_start_year=worst.start_year,
        best_case_start_year=best.start_year,
        simulations=tuple(runs),
        config=config,
    )
