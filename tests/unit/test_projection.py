"""
Unit tests for projection.py module.

Tests the glide-path allocation helpers and the year-by-year FI projection.
"""

import math

import pandas as pd
import pytest

from firesim.config import FIProjectionInputs, GlidePathConfig
from firesim.constants import FAR_FUTURE_DATE, MAX_PROJECTION_YEARS
from firesim.projection import (
    blended_return,
    calculate_fi_projection,
    stock_allocation,
)


class TestGlidePath:
    """Allocation interpolation."""

    @pytest.mark.parametrize("age,expected", [
        (20, 0.9),
        (30, 0.9),
        (45, 0.7),
        (60, 0.5),
        (75, 0.5),
    ])
    def test_stock_allocation(self, glide_path, age, expected):
        """Linear inside the range, clamped outside."""
        assert stock_allocation(age, glide_path) == pytest.approx(expected)

    def test_flat_glide_path(self):
        """A zero-length glide path never divides by zero."""
        gp = GlidePathConfig.flat(40, stock_allocation=0.6)
        assert stock_allocation(39, gp) == 0.6
        assert stock_allocation(40, gp) == 0.6
        assert stock_allocation(41, gp) == 0.6

    def test_blended_return(self):
        """a * stock + (1 - a) * bond."""
        assert blended_return(0.7, 0.08, 0.03) == pytest.approx(0.065)
        assert blended_return(0.0, 0.08, 0.03) == pytest.approx(0.03)


class TestFIProjection:
    """Year-by-year trajectory."""

    def test_years_to_fi(self, projection_inputs, start_date):
        """FI is first reached in year 10."""
        result = calculate_fi_projection(projection_inputs, start=start_date)

        assert result.years_to_fi == 10
        assert result.reached_fi
        assert result.fi_number == pytest.approx(1_000_000)
        assert result.projected_fi_date.year == 2035

    def test_year_zero_snapshot(self, projection_inputs):
        """Year 0 holds the unmodified starting values."""
        result = calculate_fi_projection(projection_inputs)
        first = result.projection[0]

        assert first.year == 0
        assert first.age == 30
        assert first.net_worth == 400_000
        assert first.savings == 19_000

    def test_grow_then_save(self, projection_inputs):
        """Year 1 net worth is nw * (1 + r) + savings."""
        result = calculate_fi_projection(projection_inputs)
        assert result.net_worth_at(1) == pytest.approx(400_000 * 1.07 + 19_000)

    def test_trajectory_ends_at_fi_year(self, projection_inputs):
        """The recorded path stops at the FI year."""
        result = calculate_fi_projection(projection_inputs)

        assert len(result.projection) == 11
        assert result.projection[-1].year == result.years_to_fi
        assert result.projection[-1].net_worth >= result.fi_number
        assert result.projection[-2].net_worth < 1_000_000

    def test_inflation_raises_fi_number(self, projection_inputs):
        """With inflation the FI number reflects the FI year's expenses."""
        inputs = projection_inputs.model_copy(update={"inflation_rate": 0.03})
        result = calculate_fi_projection(inputs)
        last = result.projection[-1]

        assert result.fi_number == pytest.approx(last.expenses / 0.04)
        assert last.expenses == pytest.approx(40_000 * 1.03 ** result.years_to_fi)

    def test_income_growth(self, projection_inputs):
        """Savings grow with income."""
        inputs = projection_inputs.model_copy(update={"income_growth_rate": 0.05})
        result = calculate_fi_projection(inputs)
        assert result.projection[2].savings == pytest.approx(19_000 * 1.05 ** 2)

    def test_unreachable_hits_cap(self):
        """No growth and no savings: infinite with the far-future date."""
        inputs = FIProjectionInputs(
            current_age=30,
            current_net_worth=100_000,
            initial_annual_savings=0,
            initial_annual_expenses=40_000,
            stock_growth_rate=0.0,
            bond_growth_rate=0.0,
            glide_path=GlidePathConfig.flat(30),
        )
        result = calculate_fi_projection(inputs)

        assert math.isinf(result.years_to_fi)
        assert not result.reached_fi
        assert result.projected_fi_date == FAR_FUTURE_DATE
        assert len(result.projection) == MAX_PROJECTION_YEARS + 1

    def test_year_zero_is_never_fi(self):
        """Already above the FI number still reports year 1."""
        inputs = FIProjectionInputs(
            current_age=50,
            current_net_worth=5_000_000,
            initial_annual_savings=0,
            initial_annual_expenses=40_000,
            glide_path=GlidePathConfig.flat(50),
        )
        assert calculate_fi_projection(inputs).years_to_fi == 1

    def test_to_frame(self, projection_inputs):
        """DataFrame indexed by year."""
        frame = calculate_fi_projection(projection_inputs).to_frame()

        assert isinstance(frame, pd.DataFrame)
        assert frame.index.name == "year"
        assert list(frame.columns) == ["age", "net_worth", "expenses", "savings", "investment_return"]
