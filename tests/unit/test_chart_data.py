"""
Unit tests for chart_data.py module.

Tests the net worth path, the final-portfolio histogram and the series
helpers.
"""

from types import SimpleNamespace

import numpy as np
import pytest

from firesim.chart_data import (
    add_moving_average,
    create_net_worth_projection,
    downsample_chart_data,
    get_chart_data_summary,
    monte_carlo_to_histogram,
)
from firesim.montecarlo import run_monte_carlo_simulation


def _finals(*values):
    """Stand-in result exposing only final_portfolios()."""
    arr = np.array(values, dtype=float)
    return SimpleNamespace(final_portfolios=lambda: arr)


def _series(*values):
    return [{"year": 2025 + i, "age": 30 + i, "net_worth": v, "phase": "accumulation",
             "year_label": str(2025 + i)} for i, v in enumerate(values)]


class TestNetWorthProjection:
    """Accumulation then retirement."""

    def test_phases(self):
        data = create_net_worth_projection(
            current_age=30, retirement_age=32, life_expectancy=34,
            current_savings=100, annual_contribution=10, annual_expenses=50,
            expected_return=0.0, inflation_rate=0.0, current_year=2025,
        )

        assert [p["net_worth"] for p in data] == [100, 110, 120, 70, 20]
        assert [p["phase"] for p in data] == [
            "accumulation", "accumulation", "retirement", "retirement", "retirement"
        ]
        assert data[2]["year_label"] == "2027"
        assert data[-1]["age"] == 34

    def test_floored_at_zero(self):
        data = create_net_worth_projection(
            current_age=60, retirement_age=60, life_expectancy=63,
            current_savings=100, annual_contribution=0, annual_expenses=80,
            expected_return=0.0, inflation_rate=0.0, current_year=2025,
        )
        assert [p["net_worth"] for p in data] == [100, 20, 0, 0]

    def test_inflated_spending(self):
        """Spending grows by inflation from the retirement age."""
        data = create_net_worth_projection(
            current_age=60, retirement_age=60, life_expectancy=62,
            current_savings=1_000, annual_contribution=0, annual_expenses=100,
            expected_return=0.0, inflation_rate=0.10, current_year=2025,
        )
        assert data[2]["net_worth"] == pytest.approx(1_000 - 100 - 110)


class TestHistogram:
    """Equal-width bins over final portfolios."""

    def test_even_spread(self):
        bins = monte_carlo_to_histogram(_finals(*range(10)), bin_count=5)

        assert [b["count"] for b in bins] == [2, 2, 2, 2, 2]
        assert sum(b["percentage"] for b in bins) == pytest.approx(100.0)
        assert bins[0]["bin_start"] == 0
        assert bins[-1]["bin_end"] == pytest.approx(9.0)

    def test_maximum_in_last_bin(self):
        """The last bin is closed on the right."""
        bins = monte_carlo_to_histogram(_finals(0, 0, 0, 100), bin_count=2)
        assert [b["count"] for b in bins] == [3, 1]

    def test_identical_values(self):
        """Zero width: every run lands in the first bin."""
        bins = monte_carlo_to_histogram(_finals(5, 5, 5), bin_count=4)

        assert bins[0]["count"] == 3
        assert sum(b["count"] for b in bins) == 3

    def test_empty(self):
        assert monte_carlo_to_histogram(_finals()) == []

    def test_invalid_bin_count(self):
        with pytest.raises(ValueError, match="bin_count"):
            monte_carlo_to_histogram(_finals(1, 2), bin_count=0)

    def test_from_monte_carlo_result(self, mc_config, seed):
        result = run_monte_carlo_simulation(mc_config, seed=seed)
        bins = monte_carlo_to_histogram(result)

        assert len(bins) == 20
        assert sum(b["count"] for b in bins) == mc_config.num_simulations
        assert bins[0]["bin_label"].startswith("$")


class TestSeriesHelpers:
    """Downsampling, smoothing and summary."""

    def test_downsample(self):
        out = downsample_chart_data(list(range(250)), max_points=100)

        assert out[0] == 0
        assert out[1] == 3
        assert len(out) == 84

    def test_downsample_short_series(self):
        data = list(range(10))
        out = downsample_chart_data(data, max_points=100)

        assert out == data
        assert out is not data

    def test_moving_average(self):
        out = add_moving_average(_series(1, 2, 3, 4, 5), window=3)

        assert [p["moving_average"] for p in out] == pytest.approx([1.5, 2.0, 3.0, 4.0, 4.5])
        assert out[0]["net_worth"] == 1

    def test_summary(self):
        summary = get_chart_data_summary(_series(3, 1, 2))

        assert summary == {"min": 1, "max": 3, "average": 2, "median": 2, "final_value": 2}

    def test_summary_empty(self):
        assert get_chart_data_summary([])["final_value"] == 0.0
