"""
Tests for ingredient percentage allocation.
"""

import random

import pytest
from mead_common.allocation import (
    AllocationMode,
    AllocationState,
    AllocationSet,
)
from mead_common.catalog import ingredient
from mead_common.exceptions import NotFoundError, ValidationError


def _non_base_total(allocation: AllocationSet, exclude: int | None = None) -> float:
    return sum(
        e.percentage
        for e in allocation
        if not e.is_base and e.id != exclude
    )


class TestAddRemove:
    """Tests for adding and removing entries."""

    def test_add_starts_at_zero(self):
        allocation = AllocationSet()
        entry_id = allocation.add_entry("raspberry")
        assert allocation.entry(entry_id).percentage == 0
        assert allocation.entry(entry_id).ingredient_id == "raspberry"

    def test_ids_unique(self):
        allocation = AllocationSet()
        first = allocation.add_entry("peach")
        allocation.remove_entry(first)
        second = allocation.add_entry("peach")
        assert first != second

    def test_unknown_ingredient(self):
        allocation = AllocationSet()
        with pytest.raises(NotFoundError):
            allocation.add_entry("mango")
        assert len(allocation) == 0

    def test_honey_only(self):
        allocation = AllocationSet.honey_only()
        assert len(allocation) == 1
        assert allocation.base.ingredient_id == "honey"
        assert allocation.base.percentage == 100
        assert allocation.state == AllocationState.BALANCED

    def test_base_absorbs_slack_when_added(self):
        allocation = AllocationSet()
        fruit = allocation.add_entry("cherry")
        allocation.set_percentage(fruit, 40)
        allocation.add_entry("honey", base=True)
        assert allocation.base.percentage == 60
        assert allocation.total_percentage() == 100

    def test_second_base_rejected(self):
        allocation = AllocationSet.honey_only()
        with pytest.raises(ValidationError):
            allocation.add_entry("cane-sugar", base=True)

    def test_remove_returns_share_to_base(self):
        allocation = AllocationSet.honey_only()
        fruit = allocation.add_entry("blueberry")
        allocation.set_percentage(fruit, 25)
        assert allocation.base.percentage == 75
        allocation.remove_entry(fruit)
        assert allocation.base.percentage == 100
        assert len(allocation) == 1

    def test_remove_base(self):
        allocation = AllocationSet.honey_only()
        fruit = allocation.add_entry("pear")
        allocation.set_percentage(fruit, 30)
        allocation.remove_entry(allocation.base.id)
        assert allocation.base is None
        assert allocation.total_percentage() == 30
        assert allocation.state == AllocationState.UNBALANCED

    def test_remove_unknown(self):
        allocation = AllocationSet()
        with pytest.raises(NotFoundError):
            allocation.remove_entry(42)

    def test_entries_in_insertion_order(self):
        allocation = AllocationSet.honey_only()
        allocation.add_entry("apple")
        allocation.add_entry("agave")
        assert [e.ingredient_id for e in allocation.entries] == ["honey", "apple", "agave"]

    def test_reset(self):
        allocation = AllocationSet.honey_only()
        allocation.add_entry("apple")
        allocation.reset()
        assert len(allocation) == 0
        assert allocation.base is None
        assert allocation.state == AllocationState.EMPTY


class TestSetPercentage:
    """Tests for setting percentages and base rebalancing."""

    def test_peer_change_rebalances_base(self):
        allocation = AllocationSet.honey_only()
        berry = allocation.add_entry("raspberry")
        assert allocation.set_percentage(berry, 30) == 30
        assert allocation.base.percentage == 70
        assert allocation.set_percentage(berry, 10) == 10
        assert allocation.base.percentage == 90

    def test_clamped_to_headroom(self):
        allocation = AllocationSet.honey_only()
        a = allocation.add_entry("apple")
        b = allocation.add_entry("pear")
        allocation.set_percentage(a, 70)
        assert allocation.set_percentage(b, 50) == 30
        assert allocation.base.percentage == 0
        assert allocation.total_percentage() == 100

    def test_clamped_without_base(self):
        allocation = AllocationSet(mode=AllocationMode.BREAKDOWN)
        a = allocation.add_entry("apple")
        b = allocation.add_entry("pear")
        allocation.set_percentage(a, 60)
        assert allocation.set_percentage(b, 80) == 40
        assert allocation.total_percentage() == 100

    def test_negative_clamped_to_zero(self):
        allocation = AllocationSet.honey_only()
        berry = allocation.add_entry("raspberry")
        assert allocation.set_percentage(berry, -5) == 0
        assert allocation.base.percentage == 100

    def test_string_percentage(self):
        allocation = AllocationSet.honey_only()
        berry = allocation.add_entry("raspberry")
        assert allocation.set_percentage(berry, "12.5") == 12.5

    def test_non_numeric(self):
        allocation = AllocationSet.honey_only()
        berry = allocation.add_entry("raspberry")
        with pytest.raises(ValidationError):
            allocation.set_percentage(berry, "lots")

    def test_set_base_directly(self):
        allocation = AllocationSet.honey_only()
        berry = allocation.add_entry("raspberry")
        allocation.set_percentage(berry, 20)
        assert allocation.set_percentage(allocation.base.id, 95) == 80
        assert allocation.set_percentage(allocation.base.id, 50) == 50
        assert allocation.state == AllocationState.UNBALANCED

    def test_rebalance_caps_changed_entry(self):
        allocation = AllocationSet.honey_only()
        a = allocation.add_entry("apple")
        b = allocation.add_entry("pear")
        allocation.set_percentage(a, 60)
        allocation.set_percentage(b, 40)
        assert allocation.base.percentage == 0
        # Base has nothing left to give, so the change is capped
        assert allocation.auto_rebalance_base(a, 90, 60) == 60
        assert allocation.total_percentage() == 100

    def test_rebalance_without_base(self):
        allocation = AllocationSet()
        a = allocation.add_entry("apple")
        assert allocation.auto_rebalance_base(a, 30, 0) == 30

    def test_rebalance_base_is_noop(self):
        allocation = AllocationSet.honey_only()
        base_id = allocation.base.id
        assert allocation.auto_rebalance_base(base_id, 80, 100) == 80
        assert allocation.total_percentage() == 80

    def test_invariants_hold_for_random_edits(self):
        rng = random.Random(1234)
        ids = ["apple", "pear", "peach", "cane-sugar", "cherry", "agave"]
        allocation = AllocationSet.honey_only()

        for _ in range(500):
            action = rng.random()
            entries = allocation.entries
            if action < 0.2 or not entries:
                allocation.add_entry(rng.choice(ids))
            elif action < 0.3:
                allocation.remove_entry(rng.choice(entries).id)
            elif action < 0.85:
                allocation.set_percentage(rng.choice(entries).id, rng.uniform(-20, 120))
            else:
                entry = rng.choice(entries)
                allocation.auto_rebalance_base(
                    entry.id,
                    rng.uniform(0, 100),
                    entry.percentage,
                )

            assert allocation.total_percentage() <= 100 + 1e-9
            if allocation.base is not None:
                for entry in allocation:
                    if not entry.is_base:
                        headroom = 100 - _non_base_total(allocation, exclude=entry.id)
                        assert entry.percentage <= headroom + 1e-9


class TestState:
    """Tests for readiness and lifecycle state."""

    def test_empty(self):
        allocation = AllocationSet()
        assert allocation.state == AllocationState.EMPTY
        assert not allocation.is_ready()

    def test_unbalanced_target(self):
        allocation = AllocationSet()
        a = allocation.add_entry("apple")
        allocation.set_percentage(a, 50)
        assert allocation.state == AllocationState.UNBALANCED
        assert not allocation.is_ready()

    def test_breakdown_accepts_partial(self):
        allocation = AllocationSet(mode="breakdown")
        a = allocation.add_entry("apple")
        allocation.set_percentage(a, 50)
        assert allocation.is_ready()

    def test_float_sum_counts_as_balanced(self):
        allocation = AllocationSet()
        for ingredient_id, pct in (("apple", 33.3), ("pear", 33.3), ("peach", 33.4)):
            allocation.set_percentage(allocation.add_entry(ingredient_id), pct)
        assert allocation.state == AllocationState.BALANCED


class TestAmountsForTarget:
    """Tests for converting percentages into ingredient masses."""

    def test_honey_only(self):
        allocation = AllocationSet.honey_only()
        amounts = allocation.amounts_for_target(9.94)
        assert len(amounts) == 1
        assert amounts[0].sugar_lbs == pytest.approx(9.94)
        assert amounts[0].mass_lbs == pytest.approx(12.425)

    def test_split(self):
        allocation = AllocationSet.honey_only()
        berry = allocation.add_entry("raspberry")
        allocation.set_percentage(berry, 30)
        amounts = allocation.amounts_for_target(10)
        honey, raspberry = amounts
        assert honey.sugar_lbs == pytest.approx(7)
        assert honey.mass_lbs == pytest.approx(8.75)
        assert raspberry.sugar_lbs == pytest.approx(3)
        assert raspberry.mass_lbs == pytest.approx(25)

    def test_masses_sum_back_to_sugar(self):
        allocation = AllocationSet.honey_only()
        for ingredient_id, pct in (("cherry-tart", 15), ("maple-syrup", 20), ("grape", 7.5)):
            allocation.set_percentage(allocation.add_entry(ingredient_id), pct)
        total_sugar = 11.3
        amounts = allocation.amounts_for_target(total_sugar)
        recovered = sum(
            a.mass_lbs * ingredient(a.ingredient_id).fermentable_fraction
            for a in amounts
        )
        assert recovered == pytest.approx(total_sugar)

    def test_zero_entries_skipped(self):
        allocation = AllocationSet.honey_only()
        allocation.add_entry("peach")
        amounts = allocation.amounts_for_target(5)
        assert [a.ingredient_id for a in amounts] == ["honey"]

    def test_requires_full_allocation(self):
        allocation = AllocationSet()
        a = allocation.add_entry("apple")
        allocation.set_percentage(a, 99)
        with pytest.raises(ValidationError, match="must total 100%"):
            allocation.amounts_for_target(5)

    def test_empty_set_fails(self):
        with pytest.raises(ValidationError):
            AllocationSet().amounts_for_target(5)
