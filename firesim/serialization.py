"""
Serialization module for firesim scenarios and results.

Purpose
-------
Provides JSON persistence for user-entered scenario assumptions and crash
scenarios, and a converter that turns any result record into
JSON-compatible data for display or export by a caller.

Supports serialization of:
- ScenarioAssumptions (save/load with schema version)
- MarketCrashScenario (load custom crash definitions)
- Result dataclasses (to_jsonable: nested dataclasses, numpy arrays,
  dates, infinite values)

Design Principles
-----------------
- Type-safe: loaded documents are validated by the Pydantic configs
- Human-readable: indented JSON for easy editing
- Backward compatible: schema versions are checked on load
- Strict JSON: ``inf`` is written as the string ``"Infinity"``, never as a
  bare ``Infinity`` token

Example
-------
>>> from firesim.config import ScenarioAssumptions
>>> from firesim.serialization import save_scenario, load_scenario
>>> from pathlib import Path
>>>
>>> scenario = ScenarioAssumptions(current_age=35, current_net_worth=250_000,
...                                annual_savings=40_000, annual_expenses=45_000)
>>> save_scenario(scenario, Path("scenario.json"))
>>> load_scenario(Path("scenario.json")) == scenario
True
"""

from __future__ import annotations
from typing import Any, Dict, Union
from pathlib import Path
from datetime import date
import dataclasses
import json
import math
import warnings

import numpy as np
from pydantic import BaseModel

from .config import MarketCrashScenario, ScenarioAssumptions

__all__ = [
    "SCHEMA_VERSION",
    "scenario_to_dict",
    "scenario_from_dict",
    "save_scenario",
    "load_scenario",
    "load_crash_scenario",
    "to_jsonable",
    "dumps",
]


# ---------------------------------------------------------------------------
# Schema Version
# ---------------------------------------------------------------------------

SCHEMA_VERSION = "0.1.0"


def _check_schema(config: Dict[str, Any]) -> None:
    schema_version = config.get("schema_version", "0.0.0")
    if schema_version != SCHEMA_VERSION:
        warnings.warn(
            f"Config schema version {schema_version} differs from current "
            f"version {SCHEMA_VERSION}. May encounter compatibility issues.",
            UserWarning,
        )


# ---------------------------------------------------------------------------
# Scenario Serialization
# ---------------------------------------------------------------------------

def scenario_to_dict(scenario: ScenarioAssumptions) -> Dict[str, Any]:
    """
    Convert ScenarioAssumptions to a versioned dictionary.

    Parameters
    ----------
    scenario : ScenarioAssumptions

    Returns
    -------
    dict
        ``{"schema_version": ..., "scenario": {...}}``
    """
    return {
        "schema_version": SCHEMA_VERSION,
        "scenario": scenario.model_dump(mode="json"),
    }


def scenario_from_dict(data: Dict[str, Any]) -> ScenarioAssumptions:
    """
    Create ScenarioAssumptions from a dictionary.

    Accepts both the versioned document written by ``scenario_to_dict`` and
    a bare mapping of scenario fields (hand-written files).
    """
    if "scenario" in data:
        _check_schema(data)
        data = data["scenario"]
    return ScenarioAssumptions.model_validate(data)


def save_scenario(scenario: ScenarioAssumptions, path: Path) -> None:
    """
    Save scenario assumptions to a JSON file.

    Examples
    --------
    >>> save_scenario(scenario, Path("scenarios/early_retirement.json"))
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(scenario_to_dict(scenario), f, indent=2)


def load_scenario(path: Path) -> ScenarioAssumptions:
    """
    Load scenario assumptions from a JSON file.

    Raises
    ------
    pydantic.ValidationError
        If the document fails the scenario's range checks.
    """
    with open(path, "r") as f:
        config = json.load(f)
    return scenario_from_dict(config)


def load_crash_scenario(path: Path) -> MarketCrashScenario:
    """Load a custom crash scenario (bare or versioned JSON)."""
    with open(path, "r") as f:
        config = json.load(f)
    if "crash_scenario" in config:
        _check_schema(config)
        config = config["crash_scenario"]
    return MarketCrashScenario.model_validate(config)


# ---------------------------------------------------------------------------
# Result conversion
# ---------------------------------------------------------------------------

JSONValue = Union[None, bool, int, float, str, list, dict]


def _float(value: float) -> Union[float, str]:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return value


def to_jsonable(obj: Any) -> JSONValue:
    """
    Recursively convert results to JSON-compatible data.

    Dataclasses and Pydantic models become dicts, tuples and numpy arrays
    become lists, dates become ISO strings, and non-finite floats become
    ``"Infinity"``, ``"-Infinity"`` or ``"NaN"``.

    Examples
    --------
    >>> import math
    >>> to_jsonable({"years_to_fi": math.inf, "when": date(2040, 1, 1)})
    {'years_to_fi': 'Infinity', 'when': '2040-01-01'}
    """
    if obj is None or isinstance(obj, (bool, str)):
        return obj
    if isinstance(obj, (np.bool_,)):
        return bool(obj)
    if isinstance(obj, (int, np.integer)):
        return int(obj)
    if isinstance(obj, (float, np.floating)):
        return _float(float(obj))
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, BaseModel):
        return to_jsonable(obj.model_dump())
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, np.ndarray):
        return [to_jsonable(v) for v in obj.tolist()]
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def dumps(obj: Any, indent: int = 2) -> str:
    """``json.dumps(to_jsonable(obj))`` with strict JSON (no bare Infinity)."""
    return json.dumps(to_jsonable(obj), indent=indent, allow_nan=False)
