"""
firesim: FIRE Retirement Simulation Engine

Projects when a saver reaches financial independence and estimates how
likely a retirement portfolio is to last, under deterministic, stochastic
and historical return assumptions.

Modules
-------
- networthify        : Closed-form years-to-FI, net worth path, required savings
- projection         : Year-by-year glide-path FI projection
- sampler            : Seedable Box-Muller return sampler
- strategies         : Withdrawal strategy interface and registry (fixed, percentage, guardrails)
- guardrails         : Guardrails withdrawal rules and analysis
- montecarlo         : Monte Carlo retirement simulation
- historical         : Historical returns backtesting
- probability_curve  : Success probability by retirement age
- stress_test        : Market-crash stress testing
- chart_data         : Chart-ready data adapters
- config / serialization / utils : Shared infrastructure
"""

from .config import (
    GlidePathConfig,
    NetworthifyInputs,
    FIProjectionInputs,
    GuardrailsConfig,
    MonteCarloConfig,
    HistoricalSimulationConfig,
    MonteCarloSettings,
    ProbabilityCurveConfig,
    MarketCrashScenario,
    ScenarioAssumptions,
    AppSettings,
)
from .exceptions import FireSimError, ConfigurationError, ValidationError
from .sampler import NormalSampler
from .networthify import calculate_years_to_fi, project_net_worth_growth, calculate_required_savings_rate
from .projection import calculate_fi_projection
from .strategies import (
    WithdrawalStrategy,
    FixedWithdrawal,
    PercentageWithdrawal,
    GuardrailsWithdrawal,
    register_strategy,
)
from .montecarlo import MonteCarloEngine, run_monte_carlo_simulation
from .historical import run_historical_simulation
from .probability_curve import (
    generate_probability_curve,
    find_retirement_age_for_success_rate,
    format_for_recharts,
)
from .stress_test import PRESET_CRASH_SCENARIOS, run_stress_test
from . import utils

__version__ = "0.1.0"

__all__ = [
    # Configs
    "GlidePathConfig",
    "NetworthifyInputs",
    "FIProjectionInputs",
    "GuardrailsConfig",
    "MonteCarloConfig",
    "HistoricalSimulationConfig",
    "MonteCarloSettings",
    "ProbabilityCurveConfig",
    "MarketCrashScenario",
    "ScenarioAssumptions",
    "AppSettings",
    # Errors
    "FireSimError",
    "ConfigurationError",
    "ValidationError",
    # Engines
    "NormalSampler",
    "calculate_years_to_fi",
    "project_net_worth_growth",
    "calculate_required_savings_rate",
    "calculate_fi_projection",
    "WithdrawalStrategy",
    "FixedWithdrawal",
    "PercentageWithdrawal",
    "GuardrailsWithdrawal",
    "register_strategy",
    "MonteCarloEngine",
    "run_monte_carlo_simulation",
    "run_historical_simulation",
    "generate_probability_curve",
    "find_retirement_age_for_success_rate",
    "format_for_recharts",
    "PRESET_CRASH_SCENARIOS",
    "run_stress_test",
    "utils",
]
