"""
Withdrawal strategies for simulated retirements.

Purpose
-------
Each strategy consumes one sequence of annual returns and plays a single
retirement forward year by year:

    P_{t+1} = (P_t - w_t)(1 + R_t)

The withdrawal is taken at the START of the year, before that year's return.
A run ends in failure as soon as the portfolio reaches zero or below (the
final portfolio is reported as 0), and in success when the return sequence
is exhausted.

Key components
--------------
- SimulationRun:
    Immutable record of one retirement trial.
- WithdrawalStrategy:
    Abstract interface ``run(initial_portfolio, returns, inflation_rates)``.
- FixedWithdrawal, PercentageWithdrawal, GuardrailsWithdrawal:
    The built-in variants, registered as "fixed", "percentage",
    "guardrails".
- register_strategy / build_strategy:
    Name-based registry used by the Monte Carlo and historical engines, so
    a new strategy only needs a ``@register_strategy("name")`` decorator.

Example
-------
>>> import numpy as np
>>> strategy = FixedWithdrawal(annual_withdrawal=40_000, inflation_rate=0.0)
>>> run = strategy.run(1_000_000, np.full(30, 0.05))
>>> run.success, run.years_lasted
(True, 30)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional, Sequence, Type

import numpy as np

from .config import GuardrailsConfig
from .exceptions import ConfigurationError
from .guardrails import DEFAULT_GUARDRAILS_CONFIG, simulate_guardrails_retirement
from .utils import ensure_1d

__all__ = [
    "SimulationRun",
    "WithdrawalStrategy",
    "FixedWithdrawal",
    "PercentageWithdrawal",
    "GuardrailsWithdrawal",
    "register_strategy",
    "get_strategy",
    "available_strategies",
    "build_strategy",
]


# ---------------------------------------------------------------------------
# Run record
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SimulationRun:
    """
    One simulated retirement.

    Attributes
    ----------
    success : bool
        True when the portfolio never depleted before the horizon ended.
    final_portfolio : float
        Portfolio after the last year; 0 on depletion.
    years_lasted : int
        Years completed, including the year of depletion.
    total_withdrawn : float
    returns : np.ndarray
        Prefix of the return sequence actually consumed.
    run_id : int
        Position within its batch (assigned by the engine).
    """
    success: bool
    final_portfolio: float
    years_lasted: int
    total_withdrawn: float
    returns: np.ndarray
    run_id: int = 0

    def with_id(self, run_id: int) -> SimulationRun:
        return replace(self, run_id=run_id)


def _depleted(years_lasted: int, total_withdrawn: float, returns: np.ndarray) -> SimulationRun:
    return SimulationRun(
        success=False,
        final_portfolio=0.0,
        years_lasted=years_lasted,
        total_withdrawn=total_withdrawn,
        returns=returns[:years_lasted],
    )


# ---------------------------------------------------------------------------
# Strategy interface and registry
# ---------------------------------------------------------------------------

class WithdrawalStrategy(ABC):
    """
    Abstract withdrawal policy.

    Subclasses implement ``run`` and ``from_config``. ``from_config`` receives
    an engine configuration (``MonteCarloConfig`` or
    ``HistoricalSimulationConfig``) and must raise ``ConfigurationError`` when
    a parameter the strategy needs is missing.
    """

    name: str = ""

    @classmethod
    @abstractmethod
    def from_config(cls, config: Any) -> WithdrawalStrategy:
        ...

    @abstractmethod
    def run(
        self,
        initial_portfolio: float,
        returns: Sequence[float],
        inflation_rates: Optional[Sequence[float]] = None,
    ) -> SimulationRun:
        """
        Play one retirement forward.

        Parameters
        ----------
        initial_portfolio : float
        returns : sequence of float
            Annual returns; its length is the horizon.
        inflation_rates : sequence of float, optional
            Realized inflation per year (historical backtests). Strategies
            that inflate spending use entry ``t - 1`` in year ``t``.
        """


_REGISTRY: Dict[str, Type[WithdrawalStrategy]] = {}


def register_strategy(name: str) -> Callable[[Type[WithdrawalStrategy]], Type[WithdrawalStrategy]]:
    """Class decorator adding a strategy to the name registry."""
    def decorator(cls: Type[WithdrawalStrategy]) -> Type[WithdrawalStrategy]:
        cls.name = name
        _REGISTRY[name] = cls
        return cls
    return decorator


def available_strategies() -> list[str]:
    return sorted(_REGISTRY)


def get_strategy(name: str) -> Type[WithdrawalStrategy]:
    try:
        return _REGISTRY[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown withdrawal strategy {name!r}. "
            f"Available strategies: {available_strategies()}"
        ) from None


def build_strategy(config: Any) -> WithdrawalStrategy:
    """Instantiate the strategy named by ``config.withdrawal_strategy``."""
    return get_strategy(config.withdrawal_strategy).from_config(config)


# ---------------------------------------------------------------------------
# Built-in strategies
# ---------------------------------------------------------------------------

@register_strategy("fixed")
class FixedWithdrawal(WithdrawalStrategy):
    """
    Constant real spending: the first-year amount grows with inflation.

    Parameters
    ----------
    annual_withdrawal : float
        First-year withdrawal.
    inflation_rate : float
        Annual growth of the withdrawal after year 0, used when no realized
        inflation sequence is passed to ``run``.
    inflation_adjusted : bool, default True
        When False the withdrawal stays nominally constant.
    """

    def __init__(self, annual_withdrawal: float, inflation_rate: float = 0.0,
                 inflation_adjusted: bool = True):
        self.annual_withdrawal = float(annual_withdrawal)
        self.inflation_rate = float(inflation_rate)
        self.inflation_adjusted = inflation_adjusted

    @classmethod
    def from_config(cls, config: Any) -> FixedWithdrawal:
        if getattr(config, "annual_withdrawal", None) is None:
            raise ConfigurationError(
                "annual_withdrawal is required for the 'fixed' withdrawal strategy"
            )
        return cls(
            annual_withdrawal=config.annual_withdrawal,
            inflation_rate=getattr(config, "inflation_rate", 0.0),
            inflation_adjusted=getattr(config, "inflation_adjusted", True),
        )

    def run(self, initial_portfolio, returns, inflation_rates=None) -> SimulationRun:
        r = ensure_1d(returns, name="returns")
        portfolio = float(initial_portfolio)
        withdrawal = self.annual_withdrawal
        total = 0.0

        for year in range(r.size):
            if year > 0 and self.inflation_adjusted:
                step = self.inflation_rate if inflation_rates is None else float(inflation_rates[year - 1])
                withdrawal *= 1.0 + step

            portfolio -= withdrawal
            total += withdrawal
            if portfolio <= 0:
                return _depleted(year + 1, total, r)

            portfolio *= 1.0 + r[year]

        return SimulationRun(True, float(portfolio), int(r.size), total, r)

    def __repr__(self) -> str:
        return (f"FixedWithdrawal(annual_withdrawal={self.annual_withdrawal:,.0f}, "
                f"inflation_rate={self.inflation_rate:.2%})")


@register_strategy("percentage")
class PercentageWithdrawal(WithdrawalStrategy):
    """Withdraw a fixed fraction of the current portfolio every year."""

    def __init__(self, withdrawal_rate: float):
        self.withdrawal_rate = float(withdrawal_rate)

    @classmethod
    def from_config(cls, config: Any) -> PercentageWithdrawal:
        if getattr(config, "withdrawal_rate", None) is None:
            raise ConfigurationError(
                "withdrawal_rate is required for the 'percentage' withdrawal strategy"
            )
        return cls(config.withdrawal_rate)

    def run(self, initial_portfolio, returns, inflation_rates=None) -> SimulationRun:
        r = ensure_1d(returns, name="returns")
        portfolio = float(initial_portfolio)
        total = 0.0

        for year in range(r.size):
            withdrawal = portfolio * self.withdrawal_rate
            portfolio -= withdrawal
            total += withdrawal
            if portfolio <= 0:
                return _depleted(year + 1, total, r)

            portfolio *= 1.0 + r[year]

        return SimulationRun(True, float(portfolio), int(r.size), total, r)

    def __repr__(self) -> str:
        return f"PercentageWithdrawal(withdrawal_rate={self.withdrawal_rate:.2%})"


@register_strategy("guardrails")
class GuardrailsWithdrawal(WithdrawalStrategy):
    """
    Adaptive spending between inflation-adjusted guardbands.

    See ``firesim.guardrails`` for the decision rules. The run succeeds when
    every year of the sequence is completed with a positive portfolio.
    """

    def __init__(self, config: GuardrailsConfig = DEFAULT_GUARDRAILS_CONFIG):
        self.config = config

    @classmethod
    def from_config(cls, config: Any) -> GuardrailsWithdrawal:
        return cls(getattr(config, "guardrails_config", None) or DEFAULT_GUARDRAILS_CONFIG)

    def run(self, initial_portfolio, returns, inflation_rates=None) -> SimulationRun:
        r = ensure_1d(returns, name="returns")
        states = simulate_guardrails_retirement(initial_portfolio, r.size, r, self.config)
        total = sum(s.withdrawal for s in states)
        years = len(states)

        if years == 0:
            return SimulationRun(True, float(initial_portfolio), 0, 0.0, r)

        last = states[-1]
        end_value = (last.portfolio_value - last.withdrawal) * (1.0 + r[years - 1])
        if years < r.size or end_value <= 0:
            return _depleted(years, total, r)
        return SimulationRun(True, float(end_value), years, total, r)

    def __repr__(self) -> str:
        return f"GuardrailsWithdrawal(initial_rate={self.config.initial_withdrawal_rate:.2%})"
