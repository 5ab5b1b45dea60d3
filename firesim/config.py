"""
Configuration management module for firesim.

Purpose
-------
Centralized configuration using Pydantic models for type-safe parameter
management and serialization. Every simulation entry point takes one of
these frozen records; results are plain dataclasses defined next to the
engines that produce them.

Design Principles
-----------------
- Type-safe: Pydantic enforces types and structural invariants
  (glide-path age ordering, allocations in [0, 1])
- Immutable: Frozen models prevent accidental mutation
- Decimal rates: 0.07 means 7%; percentages appear only where named so
  (``MarketCrashScenario.crash_percentage``)
- Strategy parameters are optional here; the engines raise
  ``ConfigurationError`` when a selected strategy is missing its input

Example
-------
>>> from firesim.config import MonteCarloConfig
>>> cfg = MonteCarloConfig(
...     num_simulations=1000,
...     retirement_years=30,
...     initial_portfolio=1_000_000,
...     withdrawal_strategy="fixed",
...     annual_withdrawal=40_000,
... )
>>> cfg.model_dump()["expected_return_mean"]
0.05
>>> MonteCarloConfig.model_validate_json(cfg.model_dump_json()) == cfg
True
"""

from __future__ import annotations
from typing import Optional, Literal

from pydantic import BaseModel, Field, field_validator, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_N_SIMS,
    DEFAULT_RETIREMENT_YEARS,
    DEFAULT_RETURN_MEAN,
    DEFAULT_RETURN_STDEV,
    DEFAULT_INFLATION_RATE,
    DEFAULT_LIFE_EXPECTANCY,
    DEFAULT_WITHDRAWAL_RATE,
    DEFAULT_GUARDRAILS_WITHDRAWAL_RATE,
    DEFAULT_PROSPERITY_GUARDBAND,
    DEFAULT_CAPITAL_PRESERVATION_GUARDBAND,
    DEFAULT_ANNUAL_ADJUSTMENT_CAP,
)

__all__ = [
    "GlidePathConfig",
    "ScenarioAssumptions",
    "NetworthifyInputs",
    "FIProjectionInputs",
    "GuardrailsConfig",
    "MonteCarloConfig",
    "HistoricalSimulationConfig",
    "MonteCarloSettings",
    "ProbabilityCurveConfig",
    "MarketCrashScenario",
    "AppSettings",
]


# ---------------------------------------------------------------------------
# Glide Path
# ---------------------------------------------------------------------------

class GlidePathConfig(BaseModel):
    """
    Linear stock-allocation schedule over an age range.

    Attributes
    ----------
    start_age, end_age : float
        Age range over which the allocation moves. Outside the range the
        nearest endpoint allocation applies.
    start_stock_allocation, end_stock_allocation : float
        Stock share at each endpoint, in [0, 1]. The remainder is bonds.

    Examples
    --------
    >>> gp = GlidePathConfig(start_age=30, end_age=60,
    ...                      start_stock_allocation=0.9, end_stock_allocation=0.5)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    start_age: float = Field(description="Age where the glide path begins")
    end_age: float = Field(description="Age where the glide path ends")
    start_stock_allocation: float = Field(ge=0.0, le=1.0)
    end_stock_allocation: float = Field(ge=0.0, le=1.0)

    @field_validator("end_age")
    @classmethod
    def validate_end_age(cls, v, info):
        """Ensure start_age <= end_age."""
        start_age = info.data.get("start_age")
        if start_age is not None and v < start_age:
            raise ValueError(f"end_age ({v}) must be >= start_age ({start_age})")
        return v

    @classmethod
    def flat(cls, age: float, stock_allocation: float = 1.0) -> GlidePathConfig:
        """Constant allocation regardless of age."""
        return cls(
            start_age=age,
            end_age=age,
            start_stock_allocation=stock_allocation,
            end_stock_allocation=stock_allocation,
        )


# ---------------------------------------------------------------------------
# Closed-form and glide-path projection inputs
# ---------------------------------------------------------------------------

class NetworthifyInputs(BaseModel):
    """Inputs to the closed-form years-to-FI formula."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    current_net_worth: float
    annual_expenses: float = Field(ge=0.0)
    annual_savings: float
    expected_return: float = Field(description="Decimal, e.g. 0.05")
    withdrawal_rate: float = Field(gt=0.0, description="Decimal, e.g. 0.04")
    safety_margin: float = Field(default=1.0, gt=0.0, description="FI-number multiplier")


class FIProjectionInputs(BaseModel):
    """
    Inputs to the year-by-year glide-path projection.

    Attributes
    ----------
    current_age : float
    current_net_worth : float
    initial_annual_savings, initial_annual_expenses : float
        Year-0 amounts; savings grow with ``income_growth_rate`` and
        expenses with ``inflation_rate``.
    stock_growth_rate, bond_growth_rate : float
        Expected asset-class returns, blended by the glide path.
    withdrawal_rate : float
        FI is reached when net worth >= expenses / withdrawal_rate.
    glide_path : GlidePathConfig
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    current_age: float = Field(ge=0.0)
    current_net_worth: float
    initial_annual_savings: float
    initial_annual_expenses: float = Field(ge=0.0)
    stock_growth_rate: float = 0.10
    bond_growth_rate: float = 0.03
    inflation_rate: float = 0.03
    income_growth_rate: float = 0.03
    withdrawal_rate: float = Field(default=DEFAULT_WITHDRAWAL_RATE, gt=0.0)
    glide_path: GlidePathConfig


# ---------------------------------------------------------------------------
# Withdrawal strategies
# ---------------------------------------------------------------------------

class GuardrailsConfig(BaseModel):
    """
    Guardrails withdrawal policy parameters.

    Attributes
    ----------
    initial_withdrawal_rate : float
        First-year withdrawal as a fraction of the starting portfolio.
    prosperity_guardband : float
        Upper band above the inflation-adjusted baseline (e.g. 0.10 = +10%).
    capital_preservation_guardband : float
        Lower band below the inflation-adjusted baseline.
    annual_adjustment_cap : float
        Largest single-year spending change as a fraction of the previous
        withdrawal.
    inflation_rate : float
        Baseline and in-band inflation step.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    initial_withdrawal_rate: float = Field(default=DEFAULT_GUARDRAILS_WITHDRAWAL_RATE, gt=0.0)
    prosperity_guardband: float = Field(default=DEFAULT_PROSPERITY_GUARDBAND, ge=0.0)
    capital_preservation_guardband: float = Field(
        default=DEFAULT_CAPITAL_PRESERVATION_GUARDBAND, ge=0.0, le=1.0
    )
    annual_adjustment_cap: float = Field(default=DEFAULT_ANNUAL_ADJUSTMENT_CAP, ge=0.0)
    inflation_rate: float = DEFAULT_INFLATION_RATE


class MonteCarloConfig(BaseModel):
    """
    Configuration for a Monte Carlo retirement batch.

    Attributes
    ----------
    num_simulations : int
        Number of independent simulated retirements.
    retirement_years : int
        Horizon of each simulated retirement.
    initial_portfolio : float
    withdrawal_strategy : str
        Registered strategy name: "fixed", "percentage", "guardrails".
    annual_withdrawal : float, optional
        Required by "fixed".
    withdrawal_rate : float, optional
        Required by "percentage".
    guardrails_config : GuardrailsConfig, optional
        Used by "guardrails"; defaults apply when omitted.
    expected_return_mean, expected_return_stdev : float
        Parameters of the normal annual-return distribution.
    inflation_rate : float
        Annual growth of the fixed withdrawal.

    Examples
    --------
    >>> cfg = MonteCarloConfig(initial_portfolio=1e6, withdrawal_strategy="percentage",
    ...                        withdrawal_rate=0.04)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    num_simulations: int = Field(default=DEFAULT_N_SIMS, ge=1)
    retirement_years: int = Field(default=DEFAULT_RETIREMENT_YEARS, ge=1)
    initial_portfolio: float
    withdrawal_strategy: str = "fixed"
    annual_withdrawal: Optional[float] = None
    withdrawal_rate: Optional[float] = None
    guardrails_config: Optional[GuardrailsConfig] = None
    expected_return_mean: float = DEFAULT_RETURN_MEAN
    expected_return_stdev: float = Field(default=DEFAULT_RETURN_STDEV, ge=0.0)
    inflation_rate: float = DEFAULT_INFLATION_RATE


class HistoricalSimulationConfig(BaseModel):
    """
    Configuration for a historical-returns backtest.

    ``sampling="random"`` draws a random window start for each of
    ``num_simulations`` runs; ``sampling="rolling"`` replays every
    contiguous window of the table exactly once.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    num_simulations: int = Field(default=1000, ge=1)
    retirement_years: int = Field(default=DEFAULT_RETIREMENT_YEARS, ge=1)
    initial_portfolio: float
    annual_withdrawal: Optional[float] = None
    stock_allocation: float = Field(default=0.6, ge=0.0, le=1.0)
    inflation_adjusted: bool = True
    sampling: Literal["random", "rolling"] = "random"
    withdrawal_strategy: str = "fixed"
    withdrawal_rate: Optional[float] = None
    guardrails_config: Optional[GuardrailsConfig] = None


# ---------------------------------------------------------------------------
# Probability curve
# ---------------------------------------------------------------------------

class MonteCarloSettings(BaseModel):
    """Monte Carlo parameters shared by every age of a probability sweep."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    num_simulations: int = Field(default=DEFAULT_N_SIMS, ge=1)
    expected_return_mean: float = DEFAULT_RETURN_MEAN
    expected_return_stdev: float = Field(default=DEFAULT_RETURN_STDEV, ge=0.0)
    inflation_rate: float = DEFAULT_INFLATION_RATE


class ProbabilityCurveConfig(BaseModel):
    """
    Configuration for a retirement-age success-probability sweep.

    Attributes
    ----------
    current_age, current_year : int
    min_retirement_age, max_retirement_age : int
        Inclusive integer sweep range.
    current_net_worth, annual_savings, annual_expenses : float
        ``annual_expenses`` is the fixed first-year retirement withdrawal.
    expected_return : float
        Accumulation-phase return used to project net worth to each age.
    life_expectancy : int
        End of the retirement horizon.
    monte_carlo : MonteCarloSettings
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    current_age: int = Field(ge=0)
    current_year: int
    min_retirement_age: int = Field(ge=0)
    max_retirement_age: int = Field(ge=0)
    current_net_worth: float
    annual_savings: float
    annual_expenses: float = Field(ge=0.0)
    expected_return: float
    life_expectancy: int = Field(default=DEFAULT_LIFE_EXPECTANCY, ge=1)
    monte_carlo: MonteCarloSettings = Field(default_factory=MonteCarloSettings)

    @field_validator("max_retirement_age")
    @classmethod
    def validate_age_range(cls, v, info):
        """Ensure min_retirement_age <= max_retirement_age."""
        lo = info.data.get("min_retirement_age")
        if lo is not None and v < lo:
            raise ValueError(
                f"max_retirement_age ({v}) must be >= min_retirement_age ({lo})"
            )
        return v


# ---------------------------------------------------------------------------
# Stress testing
# ---------------------------------------------------------------------------

class MarketCrashScenario(BaseModel):
    """
    Named market-crash definition.

    Attributes
    ----------
    name : str
    crash_percentage : float
        Stock drawdown in percent (0-100), applied in ``start_year``.
    start_year : int
        Projection year of the crash (0 = immediately).
    crash_duration : float
        Length of the crash bottom in years; may be fractional.
    recovery_pattern : {"V-shape", "U-shape", "L-shape"}
    recovery_years : float
        Length of the recovery window after the bottom.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, max_length=100)
    crash_percentage: float = Field(ge=0.0, le=100.0)
    start_year: int = Field(ge=0)
    crash_duration: float = Field(ge=0.0)
    recovery_pattern: Literal["V-shape", "U-shape", "L-shape"]
    recovery_years: float = Field(ge=0.0)


# ---------------------------------------------------------------------------
# Scenario assumptions (user-entered inputs)
# ---------------------------------------------------------------------------

class ScenarioAssumptions(BaseModel):
    """
    User-entered planning scenario.

    A single record from which every engine's input can be derived. Rates are
    decimals. The stock growth rate defaults to ``expected_return_mean`` so a
    scenario without a glide path projects at the Monte Carlo mean.

    Examples
    --------
    >>> s = ScenarioAssumptions(current_age=35, current_net_worth=250_000,
    ...                         annual_savings=40_000, annual_expenses=50_000)
    >>> s.to_monte_carlo_config(num_simulations=500).annual_withdrawal
    50000.0
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(default="Scenario", min_length=1, max_length=100)
    current_age: int = Field(ge=0, le=120)
    current_net_worth: float
    annual_savings: float
    annual_expenses: float = Field(ge=0.0)
    expected_return_mean: float = DEFAULT_RETURN_MEAN
    expected_return_stdev: float = Field(default=DEFAULT_RETURN_STDEV, ge=0.0)
    inflation_rate: float = DEFAULT_INFLATION_RATE
    withdrawal_rate: float = Field(default=DEFAULT_WITHDRAWAL_RATE, gt=0.0)
    safety_margin: float = Field(default=1.0, gt=0.0)
    income_growth_rate: float = 0.03
    stock_growth_rate: Optional[float] = None
    bond_growth_rate: float = 0.03
    life_expectancy: int = Field(default=DEFAULT_LIFE_EXPECTANCY, ge=1)
    glide_path: Optional[GlidePathConfig] = None

    def to_networthify_inputs(self) -> NetworthifyInputs:
        return NetworthifyInputs(
            current_net_worth=self.current_net_worth,
            annual_expenses=self.annual_expenses,
            annual_savings=self.annual_savings,
            expected_return=self.expected_return_mean,
            withdrawal_rate=self.withdrawal_rate,
            safety_margin=self.safety_margin,
        )

    def to_projection_inputs(self) -> FIProjectionInputs:
        stock = (
            self.expected_return_mean
            if self.stock_growth_rate is None
            else self.stock_growth_rate
        )
        return FIProjectionInputs(
            current_age=self.current_age,
            current_net_worth=self.current_net_worth,
            initial_annual_savings=self.annual_savings,
            initial_annual_expenses=self.annual_expenses,
            stock_growth_rate=stock,
            bond_growth_rate=self.bond_growth_rate,
            inflation_rate=self.inflation_rate,
            income_growth_rate=self.income_growth_rate,
            withdrawal_rate=self.withdrawal_rate,
            glide_path=self.glide_path or GlidePathConfig.flat(self.current_age),
        )

    def to_monte_carlo_config(
        self,
        num_simulations: int = DEFAULT_N_SIMS,
        retirement_years: int = DEFAULT_RETIREMENT_YEARS,
        withdrawal_strategy: str = "fixed",
    ) -> MonteCarloConfig:
        """Retire today: the current net worth funds ``annual_expenses``."""
        return MonteCarloConfig(
            num_simulations=num_simulations,
            retirement_years=retirement_years,
            initial_portfolio=self.current_net_worth,
            withdrawal_strategy=withdrawal_strategy,
            annual_withdrawal=self.annual_expenses,
            withdrawal_rate=self.withdrawal_rate,
            expected_return_mean=self.expected_return_mean,
            expected_return_stdev=self.expected_return_stdev,
            inflation_rate=self.inflation_rate,
        )

    def to_probability_curve_config(
        self,
        min_retirement_age: int,
        max_retirement_age: int,
        current_year: int,
        num_simulations: int = DEFAULT_N_SIMS,
        life_expectancy: Optional[int] = None,
    ) -> ProbabilityCurveConfig:
        """``life_expectancy`` overrides the scenario's own value when given."""
        return ProbabilityCurveConfig(
            current_age=self.current_age,
            current_year=current_year,
            min_retirement_age=min_retirement_age,
            max_retirement_age=max_retirement_age,
            current_net_worth=self.current_net_worth,
            annual_savings=self.annual_savings,
            annual_expenses=self.annual_expenses,
            expected_return=self.expected_return_mean,
            life_expectancy=life_expectancy or self.life_expectancy,
            monte_carlo=MonteCarloSettings(
                num_simulations=num_simulations,
                expected_return_mean=self.expected_return_mean,
                expected_return_stdev=self.expected_return_stdev,
                inflation_rate=self.inflation_rate,
            ),
        )


# ---------------------------------------------------------------------------
# Application Settings (Environment Variables)
# ---------------------------------------------------------------------------

class AppSettings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Supports .env files for local development. Environment variables
    are prefixed with FIRESIM_ (e.g., FIRESIM_N_SIMS=2000).

    Attributes
    ----------
    n_sims : int
        Default Monte Carlo batch size for CLI commands.
    seed : int, optional
        Default random seed for CLI commands (None = fresh entropy).
    life_expectancy : int
        Life expectancy used by ``curve`` when the scenario file omits one.
    debug : bool
        Re-raise errors with tracebacks in the CLI instead of short messages.

    Examples
    --------
    >>> settings = AppSettings()
    >>> settings.n_sims
    10000
    """

    model_config = SettingsConfigDict(
        env_prefix="FIRESIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    n_sims: int = Field(default=DEFAULT_N_SIMS, ge=1, le=1_000_000)
    seed: Optional[int] = None
    life_expectancy: int = Field(default=DEFAULT_LIFE_EXPECTANCY, ge=1)
    debug: bool = False
