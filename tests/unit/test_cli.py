"""
Unit tests for CLI module.

Tests command-line interface functionality using Click's testing utilities.
"""

import json

import pytest
from click.testing import CliRunner

from firesim.cli import main, __version__
from firesim.exceptions import ConfigurationError
from firesim.serialization import load_scenario, save_scenario


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep FIRESIM_* settings from the environment out of the tests."""
    for var in ("FIRESIM_N_SIMS", "FIRESIM_SEED", "FIRESIM_DEBUG", "FIRESIM_LIFE_EXPECTANCY"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def scenario_file(tmp_path, scenario):
    """Saved copy of the basic scenario."""
    path = tmp_path / "plan.json"
    save_scenario(scenario, path)
    return path


@pytest.fixture
def history_csv(tmp_path, short_history):
    path = tmp_path / "history.csv"
    short_history.to_csv(path, index=False)
    return path


# ============================================================================
# MAIN GROUP
# ============================================================================

class TestMain:
    """Top-level group behavior."""

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        for command in ("fi", "simulate", "backtest", "curve", "stress", "scenario", "info"):
            assert command in result.output

    def test_info(self, runner):
        result = runner.invoke(main, ["info"])

        assert result.exit_code == 0
        assert "firesim Version" in result.output
        assert "numpy" in result.output


# ============================================================================
# SCENARIO FILES
# ============================================================================

class TestScenarioCommands:
    """Tests for scenario create/validate/show."""

    def test_create_basic(self, runner, tmp_path):
        path = tmp_path / "new.json"
        result = runner.invoke(main, ["scenario", "create", str(path)])

        assert result.exit_code == 0
        assert load_scenario(path).name == "Basic FIRE Plan"

    def test_create_glide_path(self, runner, tmp_path):
        path = tmp_path / "glide.json"
        result = runner.invoke(main, ["--quiet", "scenario", "create", str(path), "-t", "glide-path"])

        assert result.exit_code == 0
        assert result.output == ""
        assert load_scenario(path).glide_path.end_stock_allocation == 0.5

    def test_validate(self, runner, scenario_file):
        result = runner.invoke(main, ["scenario", "validate", str(scenario_file)])

        assert result.exit_code == 0
        assert "Scenario Valid" in result.output

    def test_validate_quiet(self, runner, scenario_file):
        result = runner.invoke(main, ["-q", "scenario", "validate", str(scenario_file)])

        assert result.exit_code == 0
        assert "Scenario is valid" in result.output

    def test_validate_invalid(self, runner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"current_age": -1}))
        result = runner.invoke(main, ["scenario", "validate", str(path)])

        assert result.exit_code == 1
        assert "Error loading scenario" in result.output

    def test_show_json(self, runner, scenario_file):
        result = runner.invoke(main, ["scenario", "show", str(scenario_file), "--format", "json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["name"] == "Test Plan"
        assert data["withdrawal_rate"] == 0.04

    def test_show_table(self, runner, scenario_file):
        result = runner.invoke(main, ["scenario", "show", str(scenario_file)])

        assert result.exit_code == 0
        assert "current_age" in result.output


# ============================================================================
# ANALYSES
# ============================================================================

class TestFiCommand:
    """Tests for fi."""

    def test_json(self, runner, scenario_file):
        result = runner.invoke(main, ["fi", "-c", str(scenario_file), "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["closed_form"]["fi_number"] == pytest.approx(1_125_000)
        assert data["projection"]["projection"][0]["year"] == 0

    def test_table(self, runner, scenario_file):
        result = runner.invoke(main, ["fi", "-c", str(scenario_file)])

        assert result.exit_code == 0
        assert "FI Number" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(main, ["fi", "-c", str(tmp_path / "nope.json")])
        assert result.exit_code != 0


class TestSimulateCommand:
    """Tests for simulate."""

    def test_portfolio_json(self, runner):
        args = ["simulate", "--portfolio", "1000000", "--withdrawal", "40000",
                "-n", "50", "--seed", "1", "--json"]
        result = runner.invoke(main, args)

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert 0.0 <= data["success_rate"] <= 1.0
        assert set(data["percentiles"]) == {"p10", "p25", "p50", "p75", "p90"}
        assert data["config"]["num_simulations"] == 50

    def test_seed_reproducible(self, runner):
        args = ["simulate", "--portfolio", "1000000", "--withdrawal", "40000",
                "-n", "50", "--seed", "9", "--json"]
        assert runner.invoke(main, args).output == runner.invoke(main, args).output

    def test_from_scenario(self, runner, scenario_file):
        args = ["simulate", "-c", str(scenario_file), "-n", "20", "--stdev", "0", "--json"]
        result = runner.invoke(main, args)

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["config"]["initial_portfolio"] == 250_000
        assert data["config"]["annual_withdrawal"] == 45_000
        assert data["config"]["expected_return_stdev"] == 0.0

    def test_guardrails_rate(self, runner):
        args = ["simulate", "--portfolio", "1000000", "--strategy", "guardrails",
                "--rate", "0.05", "-n", "20", "--seed", "1", "--json"]
        result = runner.invoke(main, args)

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["config"]["guardrails_config"]["initial_withdrawal_rate"] == 0.05

    def test_table_output(self, runner):
        args = ["simulate", "--portfolio", "1000000", "--withdrawal", "40000", "-n", "20"]
        result = runner.invoke(main, args)

        assert result.exit_code == 0
        assert "Success Rate" in result.output

    def test_requires_input(self, runner):
        result = runner.invoke(main, ["simulate"])

        assert result.exit_code == 1
        assert "provide --scenario or --portfolio" in result.output

    def test_missing_strategy_parameter(self, runner):
        args = ["simulate", "--portfolio", "1000000", "--strategy", "percentage", "-n", "10"]
        result = runner.invoke(main, args)

        assert result.exit_code == 1
        assert "Error during simulation" in result.output
        assert "withdrawal_rate" in result.output

    def test_debug_reraises(self, runner, monkeypatch):
        """FIRESIM_DEBUG surfaces the original exception."""
        monkeypatch.setenv("FIRESIM_DEBUG", "true")
        args = ["simulate", "--portfolio", "1000000", "--strategy", "percentage", "-n", "10"]
        result = runner.invoke(main, args)

        assert isinstance(result.exception, ConfigurationError)

    def test_settings_default_simulations(self, runner, monkeypatch):
        monkeypatch.setenv("FIRESIM_N_SIMS", "15")
        args = ["simulate", "--portfolio", "1000000", "--withdrawal", "40000", "--json"]
        result = runner.invoke(main, args)

        assert json.loads(result.output)["config"]["num_simulations"] == 15


class TestBacktestCommand:
    """Tests for backtest."""

    def test_sample_data(self, runner):
        args = ["backtest", "--portfolio", "1000000", "--withdrawal", "40000", "--json"]
        result = runner.invoke(main, args)

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["runs"] == 69
        assert 1926 <= data["worst_case_start_year"] <= 1994

    def test_custom_data(self, runner, history_csv):
        args = ["backtest", "--portfolio", "1000000", "--withdrawal", "40000",
                "--years", "3", "--data", str(history_csv), "--json"]
        result = runner.invoke(main, args)

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["runs"] == 3
        assert data["success_rate"] == 1.0

    def test_random_sampling(self, runner):
        args = ["backtest", "--portfolio", "1000000", "--withdrawal", "40000",
                "--sampling", "random", "-n", "25", "--seed", "3", "--json"]
        result = runner.invoke(main, args)

        assert json.loads(result.output)["runs"] == 25

    def test_insufficient_data(self, runner, history_csv):
        args = ["backtest", "--portfolio", "1000000", "--withdrawal", "40000",
                "--data", str(history_csv)]
        result = runner.invoke(main, args)

        assert result.exit_code == 1
        assert "Insufficient historical data" in result.output


class TestCurveCommand:
    """Tests for curve."""

    def test_json(self, runner, scenario_file):
        args = ["curve", "-c", str(scenario_file), "--min-age", "50", "--max-age", "52",
                "-n", "20", "--seed", "1", "--json"]
        result = runner.invoke(main, args)

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [p["age"] for p in data["points"]] == [50, 51, 52]
        assert all(isinstance(p["probability"], int) for p in data["points"])
        assert data["points"][0]["label"] == "Age 50"
        assert "target" not in data

    def test_target(self, runner, scenario_file):
        args = ["curve", "-c", str(scenario_file), "--min-age", "50", "--max-age", "52",
                "-n", "20", "--seed", "1", "--target", "0", "--json"]
        result = runner.invoke(main, args)

        assert result.exit_code == 0
        assert json.loads(result.output)["target"]["retirement_age"] == 50

    def test_table(self, runner, scenario_file):
        args = ["curve", "-c", str(scenario_file), "--min-age", "50", "--max-age", "51", "-n", "20"]
        result = runner.invoke(main, args)

        assert result.exit_code == 0
        assert "Optimal" in result.output


class TestStressCommand:
    """Tests for stress."""

    def test_preset_json(self, runner, scenario_file):
        result = runner.invoke(main, ["stress", "-c", str(scenario_file), "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["scenario"]["name"] == "2008 Financial Crisis"
        assert data["impact"]["net_worth_at_crash"] == 250_000
        assert data["stressed_years_to_fi"] >= data["baseline_years_to_fi"]

    def test_crash_file(self, runner, scenario_file, tmp_path):
        crash = tmp_path / "crash.json"
        crash.write_text(json.dumps({
            "name": "Custom Crash", "crash_percentage": 30, "start_year": 2,
            "crash_duration": 1, "recovery_pattern": "U-shape", "recovery_years": 3,
        }))
        args = ["stress", "-c", str(scenario_file), "--crash-file", str(crash), "--json"]
        result = runner.invoke(main, args)

        assert result.exit_code == 0
        assert json.loads(result.output)["scenario"]["name"] == "Custom Crash"

    def test_table(self, runner, scenario_file):
        result = runner.invoke(main, ["stress", "-c", str(scenario_file), "-p", "COVID_CRASH"])

        assert result.exit_code == 0
        assert "Stress Test" in result.output


class TestCurveDefaults:
    """Curve inputs taken from settings and from the printed sweep."""

    @pytest.fixture
    def bare_scenario(self, tmp_path):
        """Flat zero-return scenario that omits life_expectancy."""
        path = tmp_path / "bare.json"
        path.write_text(json.dumps({
            "current_age": 40, "current_net_worth": 100_000, "annual_savings": 0,
            "annual_expenses": 30_000, "expected_return_mean": 0.0,
            "expected_return_stdev": 0.0, "inflation_rate": 0.0,
        }))
        return path

    def test_life_expectancy_default(self, runner, bare_scenario):
        args = ["curve", "-c", str(bare_scenario), "--min-age", "50", "--max-age", "51",
                "-n", "5", "--json"]
        data = json.loads(runner.invoke(main, args).output)

        assert [p["probability"] for p in data["points"]] == [0, 0]

    def test_life_expectancy_from_settings(self, runner, bare_scenario, monkeypatch):
        """FIRESIM_LIFE_EXPECTANCY shortens the horizon of a scenario without one."""
        monkeypatch.setenv("FIRESIM_LIFE_EXPECTANCY", "52")
        args = ["curve", "-c", str(bare_scenario), "--min-age", "50", "--max-age", "51",
                "-n", "5", "--json"]
        result = runner.invoke(main, args)

        assert result.exit_code == 0
        assert [p["probability"] for p in json.loads(result.output)["points"]] == [100, 100]

    def test_scenario_life_expectancy_wins(self, runner, scenario_file, monkeypatch):
        monkeypatch.setenv("FIRESIM_LIFE_EXPECTANCY", "52")
        args = ["curve", "-c", str(scenario_file), "--min-age", "50", "--max-age", "51",
                "-n", "20", "--seed", "1", "--json"]
        baseline = runner.invoke(main, args).output
        monkeypatch.delenv("FIRESIM_LIFE_EXPECTANCY")

        assert runner.invoke(main, args).output == baseline

    def test_target_agrees_with_points(self, runner, scenario_file):
        args = ["curve", "-c", str(scenario_file), "--min-age", "50", "--max-age", "60",
                "-n", "50", "--seed", "4", "--target", "0", "--json"]
        data = json.loads(runner.invoke(main, args).output)

        target = data["target"]
        matching = [p for p in data["points"] if p["age"] == target["retirement_age"]]
        assert len(matching) == 1
        assert matching[0]["probability"] == int(target["actual_success_rate"] * 100 + 0.5)


class TestFiZeroReturn:
    """A 0% expected return resolves to a result, not an error."""

    def test_zero_return(self, runner, tmp_path):
        path = tmp_path / "flat.json"
        path.write_text(json.dumps({
            "current_age": 40, "current_net_worth": 900_000, "annual_savings": 50_000,
            "annual_expenses": 40_000, "expected_return_mean": 0.0,
        }))
        result = runner.invoke(main, ["fi", "-c", str(path), "--json"])

        assert result.exit_code == 0
        assert json.loads(result.output)["closed_form"]["years_to_fi"] == 0.0
