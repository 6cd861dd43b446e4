"""
Tests for target ABV recipe planning and input validation.
"""

import math

import pytest
from mead_common.allocation import AllocationSet
from mead_common.planning import plan_for_target_abv
from mead_common.validation import (
    parse_optional_number,
    require_number,
    require_positive,
    require_in_range,
)
from mead_common.exceptions import ValidationError


class TestPlanForTargetAbv:
    """Tests for planning ingredient masses."""

    def test_honey_only_default(self):
        plan = plan_for_target_abv(12, 5)
        assert abs(plan.requirement.required_og - 1.0914) < 0.0001
        assert abs(plan.requirement.total_sugar_lbs - 9.94) < 0.01
        assert len(plan.amounts) == 1
        assert abs(plan.honey_lbs - 12.42) < 0.01
        assert plan.honey_lbs_per_gallon == pytest.approx(plan.honey_lbs / 5)
        assert plan.warnings == []

    def test_honey_and_fruit(self):
        allocation = AllocationSet.honey_only()
        berry = allocation.add_entry("raspberry")
        allocation.set_percentage(berry, 30)

        plan = plan_for_target_abv(12, 5, allocation)
        sugar = plan.requirement.total_sugar_lbs
        honey, raspberry = plan.amounts
        assert honey.mass_lbs == pytest.approx(sugar * 0.7 / 0.8)
        assert raspberry.mass_lbs == pytest.approx(sugar * 0.3 / 0.12)
        assert plan.total_mass_lbs == pytest.approx(honey.mass_lbs + raspberry.mass_lbs)

    def test_high_abv_warnings(self):
        plan = plan_for_target_abv(22, 1)
        assert len(plan.warnings) == 2

    def test_unbalanced_allocation(self):
        allocation = AllocationSet()
        a = allocation.add_entry("apple")
        allocation.set_percentage(a, 40)
        with pytest.raises(ValidationError):
            plan_for_target_abv(12, 5, allocation)

    def test_invalid_target(self):
        with pytest.raises(ValidationError):
            plan_for_target_abv("", 5)


class TestValidation:
    """Tests for numeric input helpers."""

    def test_optional_empty(self):
        assert parse_optional_number(None) is None
        assert parse_optional_number("   ") is None

    def test_optional_value(self):
        assert parse_optional_number(" 1.5 ") == 1.5
        assert parse_optional_number(3) == 3.0

    def test_optional_garbage(self):
        with pytest.raises(ValidationError):
            parse_optional_number("1.5kg")

    def test_optional_label_in_message(self):
        with pytest.raises(ValidationError, match="Final Gravity must be a number"):
            parse_optional_number("abc", "Final Gravity")

    def test_required_missing(self):
        with pytest.raises(ValidationError, match="Please enter Batch size"):
            require_number(None, "Batch size")

    @pytest.mark.parametrize("value", [True, math.nan, math.inf, "abc"])
    def test_required_rejects(self, value):
        with pytest.raises(ValidationError):
            require_number(value, "Value")

    def test_positive(self):
        assert require_positive("2", "Batch size") == 2.0
        with pytest.raises(ValidationError, match="greater than zero"):
            require_positive(0, "Batch size")

    def test_range(self):
        assert require_in_range(5, "ABV", 0, 25) == 5.0
        with pytest.raises(ValidationError, match="ABV must be between 0 and 25"):
            require_in_range(26, "ABV", 0, 25)
