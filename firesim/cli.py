"""
Command-Line Interface for firesim.

Purpose
-------
Provides a CLI for running FIRE projections, retirement simulations,
backtests and stress tests without writing Python code.

Commands
--------
- fi: Closed-form years-to-FI and glide-path projection for a scenario
- simulate: Monte Carlo retirement simulation
- backtest: Historical returns backtest
- curve: Success probability by retirement age
- stress: Market-crash stress test of the FI projection
- scenario: Validate, display and create scenario files
- info: Package and dependency versions

Defaults for the number of simulations, the seed and the life expectancy
come from ``AppSettings`` (``FIRESIM_N_SIMS``, ``FIRESIM_SEED``,
``FIRESIM_LIFE_EXPECTANCY``, ``FIRESIM_DEBUG``).

Example Usage
-------------
    # Create and check a scenario
    $ firesim scenario create my_plan.json
    $ firesim scenario validate my_plan.json

    # Years to FI
    $ firesim fi --scenario my_plan.json

    # Monte Carlo with the guardrails strategy
    $ firesim simulate --portfolio 1000000 --strategy guardrails -n 5000 --seed 42

    # Probability curve as JSON
    $ firesim curve --scenario my_plan.json --min-age 50 --max-age 65 --json
"""

from __future__ import annotations

import sys
import warnings
from datetime import date
from pathlib import Path
from typing import Any, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import (
    AppSettings,
    GuardrailsConfig,
    HistoricalSimulationConfig,
    MonteCarloConfig,
    ScenarioAssumptions,
)
from .strategies import available_strategies
from .utils import format_currency

# Version
__version__ = "0.1.0"


def _fmt_years(years: float) -> str:
    return "never" if years == float("inf") else f"{years:.1f} years"


def _fail(ctx: click.Context, message: str, exc: Exception) -> None:
    if ctx.obj["settings"].debug:
        raise exc
    click.echo(f"{message}: {exc}", err=True)
    sys.exit(1)


def _guardrails_override(strategy: str, rate: Optional[float], inflation: Optional[float]) -> dict:
    if strategy != "guardrails" or rate is None:
        return {}
    params = {"initial_withdrawal_rate": rate}
    if inflation is not None:
        params["inflation_rate"] = inflation
    return {"guardrails_config": GuardrailsConfig(**params)}


def _load_scenario(ctx: click.Context, path: Path) -> ScenarioAssumptions:
    from .serialization import load_scenario

    try:
        return load_scenario(path)
    except Exception as e:
        _fail(ctx, "Error loading scenario", e)


def _emit_json(obj: Any) -> None:
    from .serialization import dumps

    click.echo(dumps(obj))


def _metric_table(title: str, rows: list[tuple[str, str]]) -> Table:
    table = Table(title=title, show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    for label, value in rows:
        table.add_row(label, value)
    return table


@click.group()
@click.version_option(version=__version__, prog_name="firesim")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.pass_context
def main(ctx: click.Context, quiet: bool) -> None:
    """
    firesim - FIRE retirement simulation engine.

    Deterministic FI projections, Monte Carlo and historical retirement
    simulations, probability curves and market-crash stress tests.

    Use 'firesim COMMAND --help' for command-specific help.
    """
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["console"] = Console()
    ctx.obj["settings"] = AppSettings()


# ---------------------------------------------------------------------------
# fi
# ---------------------------------------------------------------------------

@main.command()
@click.option(
    "--scenario", "-c",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Path to scenario file (JSON)"
)
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_context
def fi(ctx: click.Context, scenario: Path, as_json: bool) -> None:
    """
    Estimate years to financial independence.

    Runs the closed-form estimate and the year-by-year glide-path
    projection for a scenario.

    Example:
        firesim fi --scenario my_plan.json
    """
    from .networthify import calculate_years_to_fi
    from .projection import calculate_fi_projection

    console = ctx.obj["console"]
    s = _load_scenario(ctx, scenario)
    closed_form = calculate_years_to_fi(s.to_networthify_inputs())
    projection = calculate_fi_projection(s.to_projection_inputs())

    if as_json:
        _emit_json({"closed_form": closed_form, "projection": projection})
        return

    console.print(_metric_table(f"Financial Independence: {s.name}", [
        ("FI Number", f"${closed_form.fi_number:,.0f}"),
        ("Current Progress", f"{closed_form.current_progress:.1f}%"),
        ("Remaining Needed", f"${closed_form.remaining_needed:,.0f}"),
        ("Years to FI (closed form)", _fmt_years(closed_form.years_to_fi)),
        ("Projected FI Date", closed_form.projected_fi_date.isoformat()),
        ("Years to FI (glide path)", _fmt_years(projection.years_to_fi)),
        ("Glide Path FI Date", projection.projected_fi_date.isoformat()),
    ]))


# ---------------------------------------------------------------------------
# simulate
# ---------------------------------------------------------------------------

@main.command()
@click.option(
    "--scenario", "-c",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Scenario file; retire today with its net worth and expenses"
)
@click.option("--portfolio", type=float, default=None, help="Initial portfolio")
@click.option("--withdrawal", type=float, default=None, help="First-year withdrawal (fixed)")
@click.option("--rate", type=float, default=None, help="Withdrawal rate (percentage/guardrails)")
@click.option(
    "--strategy",
    type=click.Choice(available_strategies()),
    default="fixed",
    help="Withdrawal strategy (default: fixed)"
)
@click.option("--years", "-y", type=int, default=30, help="Retirement years (default: 30)")
@click.option("--mean", type=float, default=None, help="Expected annual return")
@click.option("--stdev", type=float, default=None, help="Annual return volatility")
@click.option("--inflation", type=float, default=None, help="Annual inflation")
@click.option("--simulations", "-n", type=int, default=None, help="Number of simulations")
@click.option("--seed", "-s", type=int, default=None, help="Random seed for reproducibility")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_context
def simulate(
    ctx: click.Context,
    scenario: Optional[Path],
    portfolio: Optional[float],
    withdrawal: Optional[float],
    rate: Optional[float],
    strategy: str,
    years: int,
    mean: Optional[float],
    stdev: Optional[float],
    inflation: Optional[float],
    simulations: Optional[int],
    seed: Optional[int],
    as_json: bool,
) -> None:
    """
    Run a Monte Carlo retirement simulation.

    Either load a scenario (retiring today) or give the portfolio and
    strategy parameters directly. Options override scenario values.

    Example:
        firesim simulate --portfolio 1000000 --withdrawal 40000 -n 5000 --seed 42
    """
    from .montecarlo import run_monte_carlo_simulation

    console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]
    settings = ctx.obj["settings"]
    n = simulations or settings.n_sims
    seed = seed if seed is not None else settings.seed

    if scenario is None and portfolio is None:
        click.echo("Error: provide --scenario or --portfolio", err=True)
        sys.exit(1)

    overrides = {
        "initial_portfolio": portfolio,
        "annual_withdrawal": withdrawal,
        "withdrawal_rate": rate,
        "expected_return_mean": mean,
        "expected_return_stdev": stdev,
        "inflation_rate": inflation,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    overrides.update(_guardrails_override(strategy, rate, inflation))

    try:
        if scenario is not None:
            base = _load_scenario(ctx, scenario).to_monte_carlo_config(
                num_simulations=n, retirement_years=years, withdrawal_strategy=strategy
            )
            config = MonteCarloConfig.model_validate({**base.model_dump(), **overrides})
        else:
            config = MonteCarloConfig(
                num_simulations=n,
                retirement_years=years,
                withdrawal_strategy=strategy,
                **overrides,
            )
        if not quiet and not as_json:
            console.print(f"[bold]Running {n:,} simulations over {years} years...[/bold]")
        result = run_monte_carlo_simulation(config, seed=seed)
    except Exception as e:
        _fail(ctx, "Error during simulation", e)

    if as_json:
        _emit_json({
            "success_rate": result.success_rate,
            "median_final_portfolio": result.median_final_portfolio,
            "percentile10_final_portfolio": result.percentile10_final_portfolio,
            "percentile90_final_portfolio": result.percentile90_final_portfolio,
            "percentiles": result.percentiles(),
            "config": result.config,
        })
        return

    console.print(_metric_table("Monte Carlo Results", [
        ("Strategy", config.withdrawal_strategy),
        ("Simulations", f"{result.n_simulations:,}"),
        ("Retirement Years", f"{config.retirement_years}"),
        ("Success Rate", f"{result.success_rate:.1%}"),
        ("Median Final Portfolio", f"${result.median_final_portfolio:,.0f}"),
        ("10th Percentile", f"${result.percentile10_final_portfolio:,.0f}"),
        ("90th Percentile", f"${result.percentile90_final_portfolio:,.0f}"),
    ]))


# ---------------------------------------------------------------------------
# backtest
# ---------------------------------------------------------------------------

@main.command()
@click.option("--portfolio", type=float, required=True, help="Initial portfolio")
@click.option("--withdrawal", type=float, default=None, help="First-year withdrawal (fixed)")
@click.option("--rate", type=float, default=None, help="Withdrawal rate (percentage/guardrails)")
@click.option(
    "--strategy",
    type=click.Choice(available_strategies()),
    default="fixed",
    help="Withdrawal strategy (default: fixed)"
)
@click.option("--years", "-y", type=int, default=30, help="Retirement years (default: 30)")
@click.option("--allocation", type=float, default=0.6, help="Stock allocation (default: 0.6)")
@click.option(
    "--sampling",
    type=click.Choice(["random", "rolling"]),
    default="rolling",
    help="Window sampling (default: rolling)"
)
@click.option("--simulations", "-n", type=int, default=1000, help="Runs for random sampling")
@click.option("--seed", "-s", type=int, default=None, help="Random seed for reproducibility")
@click.option(
    "--data",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="CSV with year, stock_return, bond_return, inflation_rate"
)
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_context
def backtest(
    ctx: click.Context,
    portfolio: float,
    withdrawal: Optional[float],
    rate: Optional[float],
    strategy: str,
    years: int,
    allocation: float,
    sampling: str,
    simulations: int,
    seed: Optional[int],
    data: Optional[Path],
    as_json: bool,
) -> None:
    """
    Backtest a withdrawal strategy over historical returns.

    Uses the bundled 1926-2023 sample unless --data is given.

    Example:
        firesim backtest --portfolio 1000000 --withdrawal 40000 --sampling rolling
    """
    import pandas as pd
    from .historical import run_historical_simulation

    console = ctx.obj["console"]
    seed = seed if seed is not None else ctx.obj["settings"].seed

    try:
        history = pd.read_csv(data) if data is not None else None
        config = HistoricalSimulationConfig(
            num_simulations=simulations,
            retirement_years=years,
            initial_portfolio=portfolio,
            annual_withdrawal=withdrawal,
            withdrawal_rate=rate,
            withdrawal_strategy=strategy,
            stock_allocation=allocation,
            sampling=sampling,
            **_guardrails_override(strategy, rate, None),
        )
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", UserWarning)
            result = run_historical_simulation(config, data=history, seed=seed)
    except Exception as e:
        _fail(ctx, "Error during backtest", e)

    if as_json:
        _emit_json({
            "success_rate": result.success_rate,
            "median_final_portfolio": result.median_final_portfolio,
            "percentile10_final_portfolio": result.percentile10_final_portfolio,
            "percentile90_final_portfolio": result.percentile90_final_portfolio,
            "worst_case_start_year": result.worst_case_start_year,
            "best_case_start_year": result.best_case_start_year,
            "runs": len(result.simulations),
        })
        return

    console.print(_metric_table("Historical Backtest", [
        ("Strategy", strategy),
        ("Sampling", sampling),
        ("Runs", f"{len(result.simulations):,}"),
        ("Success Rate", f"{result.success_rate:.1%}"),
        ("Median Final Portfolio", f"${result.median_final_portfolio:,.0f}"),
        ("10th Percentile", f"${result.percentile10_final_portfolio:,.0f}"),
        ("90th Percentile", f"${result.percentile90_final_portfolio:,.0f}"),
        ("Worst Start Year", f"{result.worst_case_start_year}"),
        ("Best Start Year", f"{result.best_case_start_year}"),
    ]))


# ---------------------------------------------------------------------------
# curve
# ---------------------------------------------------------------------------

@main.command()
@click.option(
    "--scenario", "-c",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Path to scenario file (JSON)"
)
@click.option("--min-age", type=int, required=True, help="Earliest retirement age")
@click.option("--max-age", type=int, required=True, help="Latest retirement age")
@click.option("--target", type=float, default=None, help="Also find the age for this success rate")
@click.option("--simulations", "-n", type=int, default=None, help="Simulations per age")
@click.option("--seed", "-s", type=int, default=None, help="Random seed for reproducibility")
@click.option("--json", "as_json", is_flag=True, help="Print chart-ready points as JSON")
@click.pass_context
def curve(
    ctx: click.Context,
    scenario: Path,
    min_age: int,
    max_age: int,
    target: Optional[float],
    simulations: Optional[int],
    seed: Optional[int],
    as_json: bool,
) -> None:
    """
    Success probability by retirement age.

    Example:
        firesim curve -c my_plan.json --min-age 50 --max-age 65 -n 2000
    """
    from .probability_curve import (
        find_retirement_age_for_success_rate,
        format_for_recharts,
        generate_probability_curve,
        success_rate_description,
    )
    from .sampler import NormalSampler

    console = ctx.obj["console"]
    settings = ctx.obj["settings"]
    n = simulations or settings.n_sims
    seed = seed if seed is not None else settings.seed

    s = _load_scenario(ctx, scenario)
    life_expectancy = None
    if "life_expectancy" not in s.model_fields_set:
        life_expectancy = settings.life_expectancy
    try:
        config = s.to_probability_curve_config(
            min_retirement_age=min_age,
            max_retirement_age=max_age,
            current_year=date.today().year,
            num_simulations=n,
            life_expectancy=life_expectancy,
        )
        sampler = NormalSampler(seed)
        result = generate_probability_curve(config, sampler=sampler)
        lookup = None
        if target is not None:
            with warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter("always", UserWarning)
                lookup = find_retirement_age_for_success_rate(target, config, curve=result)
            for w in caught:
                click.echo(f"Warning: {w.message}", err=True)
    except Exception as e:
        _fail(ctx, "Error generating probability curve", e)

    if as_json:
        payload = {
            "points": format_for_recharts(result.points),
            "optimal_retirement_age": result.optimal_retirement_age,
            "safe_retirement_age": result.safe_retirement_age,
            "earliest_viable_age": result.earliest_viable_age,
        }
        if lookup is not None:
            payload["target"] = lookup
        _emit_json(payload)
        return

    table = Table(title=f"Retirement Success by Age: {s.name}", show_header=True)
    table.add_column("Age", style="cyan", justify="right")
    table.add_column("Year", justify="right")
    table.add_column("Success", style="green", justify="right")
    table.add_column("Median Final", justify="right")
    table.add_column("Assessment")
    for p in result.points:
        table.add_row(
            str(p.retirement_age),
            str(p.retirement_year),
            f"{p.success_rate:.1%}",
            format_currency(p.median_final_portfolio),
            success_rate_description(p.success_rate),
        )
    console.print(table)
    console.print(
        f"Earliest viable: {result.earliest_viable_age}  "
        f"Optimal: {result.optimal_retirement_age}  "
        f"Safe: {result.safe_retirement_age}"
    )
    if lookup is not None:
        console.print(
            f"Target {target:.0%}: age {lookup.retirement_age} "
            f"({lookup.actual_success_rate:.1%})"
        )


# ---------------------------------------------------------------------------
# stress
# ---------------------------------------------------------------------------

@main.command()
@click.option(
    "--scenario", "-c",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Path to scenario file (JSON)"
)
@click.option(
    "--preset", "-p",
    type=click.Choice(
        ["2008_FINANCIAL_CRISIS", "DOT_COM_CRASH", "COVID_CRASH",
         "SEVERE_RECESSION", "MILD_CORRECTION"]
    ),
    default="2008_FINANCIAL_CRISIS",
    help="Preset crash scenario (default: 2008_FINANCIAL_CRISIS)"
)
@click.option(
    "--crash-file",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Custom crash scenario (JSON); overrides --preset"
)
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_context
def stress(
    ctx: click.Context,
    scenario: Path,
    preset: str,
    crash_file: Optional[Path],
    as_json: bool,
) -> None:
    """
    Stress-test the FI projection against a market crash.

    Example:
        firesim stress -c my_plan.json --preset DOT_COM_CRASH
    """
    from .serialization import load_crash_scenario
    from .stress_test import PRESET_CRASH_SCENARIOS, run_stress_test

    console = ctx.obj["console"]
    s = _load_scenario(ctx, scenario)
    try:
        crash = (
            load_crash_scenario(crash_file)
            if crash_file is not None
            else PRESET_CRASH_SCENARIOS[preset]
        )
        result = run_stress_test(s.to_projection_inputs(), crash)
    except Exception as e:
        _fail(ctx, "Error during stress test", e)

    impact = result.impact
    if as_json:
        _emit_json({
            "scenario": crash,
            "baseline_years_to_fi": result.baseline.years_to_fi,
            "stressed_years_to_fi": result.stressed.years_to_fi,
            "impact": impact,
        })
        return

    console.print(_metric_table(f"Stress Test: {crash.name}", [
        ("Baseline Years to FI", _fmt_years(result.baseline.years_to_fi)),
        ("Stressed Years to FI", _fmt_years(result.stressed.years_to_fi)),
        ("Delay", _fmt_years(impact.delay_in_years)),
        ("Delay (%)", "n/a" if impact.percentage_delay == float("inf")
         else f"{impact.percentage_delay:.1f}%"),
        ("Net Worth at Crash", f"${impact.net_worth_at_crash:,.0f}"),
        ("Net Worth after Crash", f"${impact.net_worth_after_crash:,.0f}"),
        ("Recovered", f"year {impact.recovery_year}" if impact.recovered else "No"),
    ]))


# ---------------------------------------------------------------------------
# scenario
# ---------------------------------------------------------------------------

@main.group()
def scenario() -> None:
    """
    Scenario file commands.

    Validate, display, and create scenario assumption files.
    """
    pass


@scenario.command("validate")
@click.argument("scenario_file", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def scenario_validate(ctx: click.Context, scenario_file: Path) -> None:
    """
    Validate a scenario file.

    Example:
        firesim scenario validate my_plan.json
    """
    console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]

    s = _load_scenario(ctx, scenario_file)
    if quiet:
        click.echo("Scenario is valid")
        return

    info = (
        f"[bold]Scenario Valid: {s.name}[/bold]\n\n"
        f"[cyan]Age:[/cyan] {s.current_age} (life expectancy {s.life_expectancy})\n"
        f"[cyan]Net worth:[/cyan] ${s.current_net_worth:,.0f}\n"
        f"[cyan]Savings / expenses:[/cyan] ${s.annual_savings:,.0f} / ${s.annual_expenses:,.0f}\n"
        f"[cyan]Return:[/cyan] {s.expected_return_mean:.1%} +/- {s.expected_return_stdev:.1%}\n"
        f"[cyan]Withdrawal rate:[/cyan] {s.withdrawal_rate:.2%}"
    )
    console.print(Panel(info, title="Scenario Summary", border_style="green"))


@scenario.command("show")
@click.argument("scenario_file", type=click.Path(exists=True, path_type=Path))
@click.option("--format", "-f", type=click.Choice(["json", "table"]), default="table")
@click.pass_context
def scenario_show(ctx: click.Context, scenario_file: Path, format: str) -> None:
    """
    Display a scenario with all defaults filled in.

    Example:
        firesim scenario show my_plan.json --format json
    """
    console = ctx.obj["console"]
    s = _load_scenario(ctx, scenario_file)

    if format == "json":
        _emit_json(s)
        return

    table = Table(title=s.name)
    table.add_column("Field", style="cyan")
    table.add_column("Value", justify="right")
    for key, value in s.model_dump().items():
        table.add_row(key, "-" if value is None else str(value))
    console.print(table)


@scenario.command("create")
@click.argument("output_file", type=click.Path(path_type=Path))
@click.option(
    "--template", "-t",
    type=click.Choice(["basic", "glide-path"]),
    default="basic"
)
@click.pass_context
def scenario_create(ctx: click.Context, output_file: Path, template: str) -> None:
    """
    Create a new scenario file from a template.

    Example:
        firesim scenario create my_plan.json --template glide-path
    """
    from .config import GlidePathConfig
    from .serialization import save_scenario

    console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]

    fields = dict(
        name="Basic FIRE Plan",
        current_age=35,
        current_net_worth=250_000,
        annual_savings=40_000,
        annual_expenses=45_000,
    )
    if template == "glide-path":
        fields.update(
            name="Glide Path FIRE Plan",
            stock_growth_rate=0.08,
            bond_growth_rate=0.03,
            glide_path=GlidePathConfig(
                start_age=35,
                end_age=60,
                start_stock_allocation=0.9,
                end_stock_allocation=0.5,
            ),
        )

    save_scenario(ScenarioAssumptions(**fields), output_file)
    if not quiet:
        console.print(f"[green]Created scenario file: {output_file}[/green]")


# ---------------------------------------------------------------------------
# info
# ---------------------------------------------------------------------------

@main.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """
    Display package information.

    Shows version numbers, installed dependencies, registered withdrawal
    strategies and the active settings.
    """
    console = ctx.obj["console"]
    settings = ctx.obj["settings"]

    info_lines = [
        f"firesim Version: {__version__}",
        f"Python: {sys.version.split()[0]}",
    ]

    for name in ("numpy", "pandas", "pydantic", "rich", "click"):
        try:
            mod = __import__(name)
            version = getattr(mod, "__version__", "installed")
            info_lines.append(f"{name}: {version}")
        except ImportError:
            info_lines.append(f"{name}: not installed")

    info_lines += [
        f"Strategies: {', '.join(available_strategies())}",
        f"Default simulations: {settings.n_sims:,}",
        f"Default seed: {settings.seed}",
        f"Default guardrails: {GuardrailsConfig().initial_withdrawal_rate:.1%} initial rate",
    ]
    console.print(Panel("\n".join(info_lines), title="System Information"))


if __name__ == "__main__":
    main()
