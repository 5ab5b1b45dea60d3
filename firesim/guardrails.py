"""
Guardrails withdrawal strategy.

Rules
-----
- First-year withdrawal = initial portfolio × initial withdrawal rate.
- Each year an inflation-adjusted baseline is computed,

      baseline_t = W_0 · (1 + π)^t

  with an upper (prosperity) and lower (capital preservation) band around it.
- If the previous withdrawal is below the lower band and the current
  withdrawal rate is below 1.5× the initial rate, spending rises toward the
  lower band.
- If the previous withdrawal is above the upper band, or the current rate is
  above 1.5× the initial rate, spending is cut toward the upper band.
- Otherwise the withdrawal takes a plain inflation step.
- Every increase or cut is capped at ``annual_adjustment_cap`` of the
  previous withdrawal.

The withdrawal for year t is taken before that year's return is applied:

    P_{t+1} = (P_t - w_t)(1 + R_t)

and the simulation stops once the portfolio reaches zero or below.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Literal, Sequence

from .config import GuardrailsConfig
from .constants import GUARDRAILS_RATE_TRIGGER

__all__ = [
    "GuardrailsState",
    "GuardrailsAnalysis",
    "DEFAULT_GUARDRAILS_CONFIG",
    "calculate_guardrails_withdrawal",
    "simulate_guardrails_retirement",
    "analyze_guardrails_strategy",
]


DEFAULT_GUARDRAILS_CONFIG = GuardrailsConfig()


@dataclass(frozen=True)
class GuardrailsState:
    """
    Guardrails decision for one retirement year.

    ``portfolio_value`` is the value at the start of the year, before the
    withdrawal.
    """
    year: int
    portfolio_value: float
    withdrawal: float
    withdrawal_rate: float
    inflation_adjusted_baseline: float
    upper_guardband: float
    lower_guardband: float
    adjustment: Literal["none", "increase", "decrease"]
    adjustment_amount: float


@dataclass(frozen=True)
class GuardrailsAnalysis:
    success: bool
    final_portfolio_value: float
    average_withdrawal: float
    total_withdrawn: float
    increases: int
    decreases: int
    lowest_portfolio_value: float
    highest_withdrawal_rate: float


def _rate(withdrawal: float, portfolio_value: float) -> float:
    if portfolio_value <= 0:
        return math.inf
    return withdrawal / portfolio_value


def calculate_guardrails_withdrawal(
    portfolio_value: float,
    previous_withdrawal: float,
    initial_withdrawal: float,
    years_since_retirement: int,
    config: GuardrailsConfig,
) -> GuardrailsState:
    """
    Decide this year's withdrawal.

    Parameters
    ----------
    portfolio_value : float
        Portfolio at the start of the year.
    previous_withdrawal : float
        Last year's withdrawal (the initial withdrawal in year 0).
    initial_withdrawal : float
        First-year withdrawal, the base of the inflation-adjusted baseline.
    years_since_retirement : int
    config : GuardrailsConfig

    Returns
    -------
    GuardrailsState
    """
    baseline = initial_withdrawal * (1.0 + config.inflation_rate) ** years_since_retirement
    upper = baseline * (1.0 + config.prosperity_guardband)
    lower = baseline * (1.0 - config.capital_preservation_guardband)

    current_rate = _rate(previous_withdrawal, portfolio_value)
    trigger = config.initial_withdrawal_rate * GUARDRAILS_RATE_TRIGGER
    cap = previous_withdrawal * config.annual_adjustment_cap

    if previous_withdrawal < lower and current_rate < trigger:
        step = min(lower - previous_withdrawal, cap)
        withdrawal = previous_withdrawal + step
        adjustment, amount = "increase", step
    elif previous_withdrawal > upper or current_rate > trigger:
        step = min(abs(previous_withdrawal - upper), cap)
        withdrawal = previous_withdrawal - step
        adjustment, amount = "decrease", -step
    else:
        withdrawal = previous_withdrawal * (1.0 + config.inflation_rate)
        adjustment, amount = "none", withdrawal - previous_withdrawal

    return GuardrailsState(
        year=years_since_retirement,
        portfolio_value=portfolio_value,
        withdrawal=withdrawal,
        withdrawal_rate=_rate(withdrawal, portfolio_value),
        inflation_adjusted_baseline=baseline,
        upper_guardband=upper,
        lower_guardband=lower,
        adjustment=adjustment,
        adjustment_amount=amount,
    )


def simulate_guardrails_retirement(
    initial_portfolio: float,
    retirement_years: int,
    annual_returns: Sequence[float],
    config: GuardrailsConfig = DEFAULT_GUARDRAILS_CONFIG,
) -> List[GuardrailsState]:
    """
    Run the guardrails policy over a return sequence.

    Stops after ``retirement_years`` years, when the returns run out, or
    right after the year in which the portfolio reaches zero or below.
    """
    states: List[GuardrailsState] = []
    portfolio = initial_portfolio
    initial_withdrawal = initial_portfolio * config.initial_withdrawal_rate
    current = initial_withdrawal

    horizon = min(retirement_years, len(annual_returns))
    for year in range(horizon):
        state = calculate_guardrails_withdrawal(
            portfolio, current, initial_withdrawal, year, config
        )
        states.append(state)

        portfolio = (portfolio - state.withdrawal) * (1.0 + float(annual_returns[year]))
        current = state.withdrawal
        if portfolio <= 0:
            break

    return states


def analyze_guardrails_strategy(
    states: Sequence[GuardrailsState],
    target_years: int,
) -> GuardrailsAnalysis:
    """Summarize a guardrails run; an empty run counts as a failure."""
    if not states:
        return GuardrailsAnalysis(False, 0.0, 0.0, 0.0, 0, 0, 0.0, 0.0)

    last = states[-1]
    total = sum(s.withdrawal for s in states)
    return GuardrailsAnalysis(
        success=len(states) >= target_years and last.portfolio_value > 0,
        final_portfolio_value=last.portfolio_value,
        average_withdrawal=total / len(states),
        total_withdrawn=total,
        increases=sum(1 for s in states if s.adjustment == "increase"),
        decreases=sum(1 for s in states if s.adjustment == "decrease"),
        lowest_portfolio_value=min(s.portfolio_value for s in states),
        highest_withdrawal_rate=max(s.withdrawal_rate for s in states),
    )
