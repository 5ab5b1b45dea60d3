"""
Pytest configuration and fixtures for the firesim test suite.

This module provides reusable fixtures for testing all firesim components.
Fixtures follow the principle of "arrange-act-assert" with clear separation.
"""

from datetime import date

import numpy as np
import pandas as pd
import pytest

from firesim.config import (
    FIProjectionInputs,
    GlidePathConfig,
    GuardrailsConfig,
    HistoricalSimulationConfig,
    MonteCarloConfig,
    MonteCarloSettings,
    NetworthifyInputs,
    ProbabilityCurveConfig,
    ScenarioAssumptions,
)
from firesim.sampler import NormalSampler


# ---------------------------------------------------------------------------
# Date / randomness fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def start_date() -> date:
    """Standard anchor date for projected FI dates."""
    return date(2025, 1, 1)


@pytest.fixture
def seed() -> int:
    """Standard random seed for reproducibility."""
    return 42


@pytest.fixture
def sampler(seed) -> NormalSampler:
    """Seeded sampler."""
    return NormalSampler(seed)


# ---------------------------------------------------------------------------
# Projection fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def networthify_inputs() -> NetworthifyInputs:
    """
    Mid-career saver.

    FI number: 1,000,000 (40k expenses at 4%)
    Net worth: 100,000, saving 30,000/year at 5%
    """
    return NetworthifyInputs(
        current_net_worth=100_000,
        annual_expenses=40_000,
        annual_savings=30_000,
        expected_return=0.05,
        withdrawal_rate=0.04,
    )


@pytest.fixture
def projection_inputs() -> FIProjectionInputs:
    """
    Flat 100% stock glide path, no inflation and no income growth.

    Net worth grows at 7% plus 19,000/year toward a 1,000,000 FI number,
    first reached in year 10.
    """
    return FIProjectionInputs(
        current_age=30,
        current_net_worth=400_000,
        initial_annual_savings=19_000,
        initial_annual_expenses=40_000,
        stock_growth_rate=0.07,
        bond_growth_rate=0.03,
        inflation_rate=0.0,
        income_growth_rate=0.0,
        withdrawal_rate=0.04,
        glide_path=GlidePathConfig.flat(30),
    )


@pytest.fixture
def glide_path() -> GlidePathConfig:
    """90% stocks at 30 gliding to 50% at 60."""
    return GlidePathConfig(
        start_age=30,
        end_age=60,
        start_stock_allocation=0.9,
        end_stock_allocation=0.5,
    )


# ---------------------------------------------------------------------------
# Simulation fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mc_config() -> MonteCarloConfig:
    """Small fixed-withdrawal batch: 1M portfolio, 40k/year, 30 years."""
    return MonteCarloConfig(
        num_simulations=200,
        retirement_years=30,
        initial_portfolio=1_000_000,
        withdrawal_strategy="fixed",
        annual_withdrawal=40_000,
        expected_return_mean=0.05,
        expected_return_stdev=0.12,
        inflation_rate=0.02,
    )


@pytest.fixture
def deterministic_mc_config() -> MonteCarloConfig:
    """Zero-volatility, zero-inflation batch: every run is identical."""
    return MonteCarloConfig(
        num_simulations=50,
        retirement_years=30,
        initial_portfolio=1_000_000,
        withdrawal_strategy="fixed",
        annual_withdrawal=40_000,
        expected_return_mean=0.05,
        expected_return_stdev=0.0,
        inflation_rate=0.0,
    )


@pytest.fixture
def guardrails_config() -> GuardrailsConfig:
    """Default guardrails parameters."""
    return GuardrailsConfig()


@pytest.fixture
def historical_config() -> HistoricalSimulationConfig:
    """Rolling 30-year backtest of a 4% fixed withdrawal."""
    return HistoricalSimulationConfig(
        retirement_years=30,
        initial_portfolio=1_000_000,
        annual_withdrawal=40_000,
        stock_allocation=0.6,
        sampling="rolling",
    )


@pytest.fixture
def short_history() -> pd.DataFrame:
    """Five synthetic years with constant returns and inflation."""
    return pd.DataFrame({
        "year": [2000, 2001, 2002, 2003, 2004],
        "stock_return": [0.10, 0.10, 0.10, 0.10, 0.10],
        "bond_return": [0.02, 0.02, 0.02, 0.02, 0.02],
        "inflation_rate": [0.0, 0.0, 0.0, 0.0, 0.0],
    })


@pytest.fixture
def curve_config() -> ProbabilityCurveConfig:
    """Deterministic sweep over ages 55..70."""
    return ProbabilityCurveConfig(
        current_age=40,
        current_year=2025,
        min_retirement_age=55,
        max_retirement_age=70,
        current_net_worth=200_000,
        annual_savings=20_000,
        annual_expenses=60_000,
        expected_return=0.05,
        life_expectancy=95,
        monte_carlo=MonteCarloSettings(
            num_simulations=20,
            expected_return_mean=0.05,
            expected_return_stdev=0.0,
            inflation_rate=0.02,
        ),
    )


@pytest.fixture
def scenario() -> ScenarioAssumptions:
    """Basic user scenario."""
    return ScenarioAssumptions(
        name="Test Plan",
        current_age=35,
        current_net_worth=250_000,
        annual_savings=40_000,
        annual_expenses=45_000,
    )


@pytest.fixture
def constant_returns():
    """Factory for constant return sequences."""
    def _make(rate: float, years: int = 30) -> np.ndarray:
        return np.full(years, rate)
    return _make
