"""
Custom exceptions for firesim.

Purpose
-------
Provides a unified exception hierarchy for consistent error handling
across all simulation modules. All exceptions inherit from FireSimError,
enabling catch-all handling when needed.

Exception Hierarchy
-------------------
FireSimError (base)
├── ConfigurationError - Missing or unknown strategy parameters
└── ValidationError - Malformed injected data

Numeric degenerate cases (log of a non-positive numerator, zero savings)
are not exceptions: they resolve to sentinels (0, inf, far-future date).
A depleted portfolio is not an exception either: it is recorded as
``success=False`` on the run.

Usage
-----
>>> from firesim.exceptions import ConfigurationError
>>>
>>> raise ConfigurationError(
...     "annual_withdrawal is required for the 'fixed' withdrawal strategy"
... )
>>>
>>> # Catch all firesim exceptions
>>> try:
...     result = run_monte_carlo_simulation(config)
... except FireSimError as e:
...     print(f"firesim error: {e}")
"""


class FireSimError(Exception):
    """
    Base exception for all firesim errors.

    Examples
    --------
    >>> try:
    ...     run_historical_simulation(config)
    ... except FireSimError as e:
    ...     print(f"Backtest failed: {e}")
    """
    pass


class ConfigurationError(FireSimError):
    """
    Invalid simulation configuration.

    Raised before any simulation work is attempted, such as:
    - A withdrawal strategy missing its required parameter
      (``annual_withdrawal`` for fixed, ``withdrawal_rate`` for percentage)
    - An unknown withdrawal strategy name
    - A historical table shorter than the requested retirement horizon

    Examples
    --------
    >>> raise ConfigurationError(
    ...     "Unknown withdrawal strategy 'bucket'. "
    ...     "Available strategies: ['fixed', 'guardrails', 'percentage']"
    ... )
    """
    pass


class ValidationError(FireSimError):
    """
    Data validation failures.

    Raised when injected data fails structural checks, such as:
    - A historical returns table missing required columns
    - A return sequence that is not one-dimensional

    Examples
    --------
    >>> raise ValidationError(
    ...     "historical data is missing columns ['bond_return']"
    ... )
    """
    pass
