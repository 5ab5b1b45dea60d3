"""
Integration test for the full firesim workflow.

Tests one scenario flowing through every engine: closed-form estimate,
glide-path projection, Monte Carlo, historical backtest, probability curve,
stress test, chart adapters and JSON export.
"""

import json
import math
from datetime import date

import numpy as np
import pytest

from firesim import (
    GlidePathConfig,
    MonteCarloConfig,
    ScenarioAssumptions,
    calculate_fi_projection,
    calculate_years_to_fi,
    generate_probability_curve,
    run_historical_simulation,
    run_monte_carlo_simulation,
    run_stress_test,
)
from firesim.chart_data import (
    create_net_worth_projection,
    format_for_recharts,
    monte_carlo_to_histogram,
)
from firesim.config import HistoricalSimulationConfig
from firesim.sampler import NormalSampler
from firesim.serialization import dumps, load_scenario, save_scenario
from firesim.stress_test import PRESET_CRASH_SCENARIOS


@pytest.fixture
def plan() -> ScenarioAssumptions:
    return ScenarioAssumptions(
        name="Early Retirement",
        current_age=32,
        current_net_worth=150_000,
        annual_savings=45_000,
        annual_expenses=40_000,
        stock_growth_rate=0.08,
        bond_growth_rate=0.03,
        glide_path=GlidePathConfig(
            start_age=32, end_age=60, start_stock_allocation=0.9, end_stock_allocation=0.5
        ),
    )


@pytest.mark.integration
class TestFullWorkflow:
    """Integration tests for the complete planning workflow."""

    def test_accumulation_estimates_agree(self, plan):
        """The closed form and the glide-path projection both reach FI in a finite horizon."""
        start = date(2025, 1, 1)
        closed_form = calculate_years_to_fi(plan.to_networthify_inputs(), start=start)
        projection = calculate_fi_projection(plan.to_projection_inputs(), start=start)

        assert 0 < closed_form.years_to_fi < 40
        assert projection.reached_fi
        assert projection.projected_fi_date.year == 2025 + int(projection.years_to_fi)
        ages = [y.age for y in projection.projection]
        assert ages == sorted(ages)

    def test_simulation_pipeline(self, plan):
        """One seeded stream drives the retirement batch and the curve."""
        sampler = NormalSampler(2024)
        retire_at = 50
        curve = generate_probability_curve(
            plan.to_probability_curve_config(45, 55, current_year=2025, num_simulations=200),
            sampler=sampler,
        )
        point = next(p for p in curve.points if p.retirement_age == retire_at)

        config = MonteCarloConfig(
            num_simulations=500,
            retirement_years=45,
            initial_portfolio=1_500_000,
            annual_withdrawal=plan.annual_expenses,
        )
        result = run_monte_carlo_simulation(config, sampler=sampler)
        histogram = monte_carlo_to_histogram(result)

        assert len(curve.points) == 11
        assert point.years_to_retirement == retire_at - plan.current_age
        assert curve.earliest_viable_age <= curve.optimal_retirement_age <= curve.safe_retirement_age
        assert sum(b["count"] for b in histogram) == 500
        records = format_for_recharts(curve.points)
        assert all(0 <= r["probability"] <= 100 for r in records)

    def test_historical_vs_monte_carlo(self):
        """A 4% fixed withdrawal succeeds in most historical windows and simulations."""
        historical = run_historical_simulation(HistoricalSimulationConfig(
            retirement_years=30,
            initial_portfolio=1_000_000,
            annual_withdrawal=40_000,
            sampling="rolling",
        ))
        simulated = run_monte_carlo_simulation(
            MonteCarloConfig(num_simulations=1000, initial_portfolio=1_000_000,
                             annual_withdrawal=40_000, expected_return_mean=0.06,
                             expected_return_stdev=0.10),
            seed=7,
        )

        assert historical.success_rate > 0.8
        assert simulated.success_rate > 0.8
        assert historical.worst_case_start_year in historical.success_by_start_year().index

    def test_stress_every_preset(self, plan):
        """Every preset crash delays or preserves FI, never accelerates it."""
        inputs = plan.to_projection_inputs()
        for key, crash in PRESET_CRASH_SCENARIOS.items():
            result = run_stress_test(inputs, crash, start=date(2025, 1, 1))
            impact = result.impact

            assert math.isinf(impact.delay_in_years) or impact.delay_in_years >= 0, key
            assert impact.net_worth_at_crash == pytest.approx(plan.current_net_worth)

    def test_chart_path_matches_retirement(self, plan):
        data = create_net_worth_projection(
            current_age=plan.current_age,
            retirement_age=50,
            life_expectancy=plan.life_expectancy,
            current_savings=plan.current_net_worth,
            annual_contribution=plan.annual_savings,
            annual_expenses=plan.annual_expenses,
            expected_return=0.05,
            current_year=2025,
        )

        assert len(data) == plan.life_expectancy - plan.current_age + 1
        peak = int(np.argmax([p["net_worth"] for p in data]))
        assert data[peak]["age"] >= 50

    def test_persist_and_export(self, plan, tmp_path):
        """Scenario round-trips to disk and results export as strict JSON."""
        path = tmp_path / "plan.json"
        save_scenario(plan, path)
        restored = load_scenario(path)
        assert restored == plan

        result = run_stress_test(restored.to_projection_inputs(), PRESET_CRASH_SCENARIOS["SEVERE_RECESSION"])
        data = json.loads(dumps(result))

        assert data["scenario"]["recovery_pattern"] == "L-shape"
        assert data["baseline"]["projection"][0]["net_worth"] == 150_000
