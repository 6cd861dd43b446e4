"""
Percentage allocation of fermentable sugar across ingredients.

An AllocationSet holds an ordered list of (ingredient, percentage)
entries for one calculation panel. Percentages never sum past 100.
At most one entry is the base (conventionally honey): it absorbs the
slack whenever another entry changes, so a recipe stays at 100% as
fruit and sugars are dialled in.
"""

import logging
from collections.abc import Iterator
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from mead_common.catalog import HONEY_ID, ingredient
from mead_common.exceptions import NotFoundError, ValidationError
from mead_common.validation import require_non_negative, require_number

logger = logging.getLogger(__name__)

# Slack allowed when comparing a float sum to exactly 100
PERCENT_TOLERANCE = 1e-9


class AllocationMode(str, Enum):
    """How strictly percentages must add up before amounts are computed."""

    TARGET = "target"  # must total exactly 100
    BREAKDOWN = "breakdown"  # may total less than 100


class AllocationState(str, Enum):
    """Where an allocation set is in its lifecycle."""

    EMPTY = "empty"
    BALANCED = "balanced"
    UNBALANCED = "unbalanced"


class AllocationEntry(BaseModel):
    """One ingredient's share of the total fermentable sugar."""

    model_config = ConfigDict(validate_assignment=True)

    id: int = Field(..., description="Unique within the owning set")
    ingredient_id: str = Field(..., description="Catalog id, or 'honey'")
    percentage: float = Field(default=0.0, ge=0, le=100)
    is_base: bool = Field(
        default=False,
        description="Absorbs the remainder when other entries change",
    )


class IngredientAmount(BaseModel):
    """Mass of one ingredient needed to supply its share of sugar."""

    model_config = ConfigDict(frozen=True)

    entry_id: int
    ingredient_id: str
    display_name: str
    percentage: float
    fermentable_fraction: float
    sugar_lbs: float
    mass_lbs: float


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(max(low, high), value))


class AllocationSet:
    """
    Ordered collection of ingredient percentage entries.

    Example:
        >>> allocation = AllocationSet.honey_only()
        >>> berry = allocation.add_entry("raspberry")
        >>> allocation.set_percentage(berry, 30)
        30.0
        >>> allocation.base.percentage
        70.0
    """

    def __init__(
        self,
        mode: AllocationMode | str = AllocationMode.TARGET,
        name: str = "allocation",
    ):
        """
        Initialize an empty allocation set.

        Args:
            mode: TARGET requires a 100% total before amounts are
                computed; BREAKDOWN accepts any total up to 100%
            name: Label used in log records
        """
        self.mode = AllocationMode(mode)
        self.name = name
        self._entries: dict[int, AllocationEntry] = {}
        self._next_id = 1
        self._base_id: int | None = None

    @classmethod
    def honey_only(
        cls,
        mode: AllocationMode | str = AllocationMode.TARGET,
        name: str = "allocation",
    ) -> "AllocationSet":
        """Create a set holding a single honey base entry at 100%."""
        allocation = cls(mode=mode, name=name)
        allocation.add_entry(HONEY_ID, base=True)
        return allocation

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[AllocationEntry]:
        return iter(list(self._entries.values()))

    @property
    def entries(self) -> list[AllocationEntry]:
        """Entries in the order they were added."""
        return list(self._entries.values())

    @property
    def base(self) -> AllocationEntry | None:
        """The entry that absorbs slack, if one is designated."""
        if self._base_id is None:
            return None
        return self._entries[self._base_id]

    def entry(self, entry_id: int) -> AllocationEntry:
        """
        Get an entry by id.

        Raises:
            NotFoundError: If no entry has this id
        """
        try:
            return self._entries[entry_id]
        except KeyError as e:
            raise NotFoundError(f"No allocation entry with id {entry_id}") from e

    def total_percentage(self) -> float:
        """Sum of all entry percentages."""
        return sum(e.percentage for e in self._entries.values())

    def is_balanced(self) -> bool:
        """Check the percentages total 100."""
        return abs(self.total_percentage() - 100) <= PERCENT_TOLERANCE

    @property
    def state(self) -> AllocationState:
        if not self._entries:
            return AllocationState.EMPTY
        if self.is_balanced():
            return AllocationState.BALANCED
        return AllocationState.UNBALANCED

    def is_ready(self) -> bool:
        """
        Check whether amounts can be computed under this set's mode.

        TARGET sets must total exactly 100; BREAKDOWN sets only need
        at least one entry and a total no greater than 100.
        """
        if not self._entries:
            return False
        if self.mode == AllocationMode.TARGET:
            return self.is_balanced()
        return self.total_percentage() <= 100 + PERCENT_TOLERANCE

    def add_entry(self, ingredient_id: str, base: bool = False) -> int:
        """
        Append an ingredient at 0%.

        A base entry instead takes whatever percentage is unallocated,
        so a fresh set with a honey base starts at 100% honey.

        Args:
            ingredient_id: Catalog id, or "honey"
            base: Designate this entry as the slack absorber

        Returns:
            The new entry's id

        Raises:
            NotFoundError: If the ingredient is not in the catalog
            ValidationError: If a base entry already exists
        """
        definition = ingredient(ingredient_id)
        if base and self._base_id is not None:
            raise ValidationError(
                f"{self.name} already has a base ingredient "
                f"({self.base.ingredient_id})"
            )

        entry = AllocationEntry(
            id=self._next_id,
            ingredient_id=definition.id,
            is_base=base,
        )
        if base:
            entry.percentage = _clamp(100 - self.total_percentage(), 0, 100)
            self._base_id = entry.id

        self._entries[entry.id] = entry
        self._next_id += 1
        logger.debug("%s: added %s as entry %d", self.name, definition.id, entry.id)
        return entry.id

    def remove_entry(self, entry_id: int) -> None:
        """
        Remove an entry.

        A removed non-base entry's percentage is handed back to the
        base, capped at 100. Removing the base leaves the set without one.

        Raises:
            NotFoundError: If no entry has this id
        """
        entry = self.entry(entry_id)
        del self._entries[entry_id]

        if entry.is_base:
            self._base_id = None
            return

        base = self.base
        if base is not None:
            base.percentage = min(100.0, base.percentage + entry.percentage)
            logger.debug(
                "%s: returned %.4g%% from entry %d to base",
                self.name,
                entry.percentage,
                entry_id,
            )

    def set_percentage(self, entry_id: int, percentage: float | str) -> float:
        """
        Set an entry's percentage within the remaining headroom.

        The value is clamped to [0, 100 - others]. For a non-base entry
        "others" excludes the base, which is then rebalanced to keep
        the total at 100.

        Returns:
            The percentage actually stored; callers should show this
            value rather than the one they asked for

        Raises:
            NotFoundError: If no entry has this id
            ValidationError: If the percentage is not a number
        """
        entry = self.entry(entry_id)
        requested = require_number(percentage, "Percentage")
        old = entry.percentage

        base = self.base
        rebalance = base is not None and entry.id != base.id
        skip = {entry.id, base.id} if rebalance else {entry.id}
        others = sum(e.percentage for e in self._entries.values() if e.id not in skip)

        stored = _clamp(requested, 0, 100 - others)
        if stored != requested:
            logger.debug(
                "%s: clamped entry %d from %.4g%% to %.4g%%",
                self.name,
                entry_id,
                requested,
                stored,
            )
        entry.percentage = stored

        if rebalance:
            stored = self.auto_rebalance_base(entry_id, stored, old)
        return stored

    def auto_rebalance_base(
        self,
        changed_id: int,
        new_pct: float | str,
        old_pct: float | str,
    ) -> float:
        """
        Apply a change to one entry and let the base absorb it.

        The base moves by -(new - old), clamped to [0, 100]. If the base
        cannot absorb the whole change the changed entry is capped so
        the total stays at or below 100. When the changed entry is the
        base, or there is no base, it is only limited to the headroom.

        Returns:
            The changed entry's final percentage
        """
        changed = self.entry(changed_id)
        new_pct = _clamp(require_number(new_pct, "Percentage"), 0, 100)
        old_pct = require_number(old_pct, "Percentage")

        base = self.base
        if base is None or changed.id == base.id:
            # Nothing absorbs the change; keep within the headroom
            others = self.total_percentage() - changed.percentage
            changed.percentage = _clamp(new_pct, 0, 100 - others)
            return changed.percentage

        changed.percentage = new_pct
        base.percentage = _clamp(base.percentage - (new_pct - old_pct), 0, 100)

        overflow = self.total_percentage() - 100
        if overflow > 0:
            changed.percentage = max(0.0, changed.percentage - overflow)
            logger.debug(
                "%s: base exhausted, capped entry %d at %.4g%%",
                self.name,
                changed_id,
                changed.percentage,
            )
        return changed.percentage

    def reset(self) -> None:
        """Remove every entry."""
        self._entries.clear()
        self._base_id = None

    def amounts_for_target(self, total_sugar_lbs: float | str) -> list[IngredientAmount]:
        """
        Split a total sugar requirement into ingredient masses.

        For each entry above 0%:
            sugar = total × percentage / 100
            mass = sugar / fermentable fraction

        Args:
            total_sugar_lbs: Fermentable sugar needed, in pounds

        Returns:
            One IngredientAmount per non-zero entry, in entry order

        Raises:
            ValidationError: If the percentages do not total 100
        """
        total_sugar = require_non_negative(total_sugar_lbs, "Total sugar")
        if not self.is_balanced():
            raise ValidationError(
                "Ingredient percentages must total 100% "
                f"(currently {self.total_percentage():.1f}%)"
            )

        amounts = []
        for entry in self._entries.values():
            if entry.percentage <= 0:
                continue
            definition = ingredient(entry.ingredient_id)
            if definition.fermentable_fraction <= 0:
                raise ValidationError(
                    f"{definition.display_name} contains no fermentable sugar"
                )
            sugar = total_sugar * entry.percentage / 100
            amounts.append(
                IngredientAmount(
                    entry_id=entry.id,
                    ingredient_id=definition.id,
                    display_name=definition.display_name,
                    percentage=entry.percentage,
                    fermentable_fraction=definition.fermentable_fraction,
                    sugar_lbs=sugar,
                    mass_lbs=sugar / definition.fermentable_fraction,
                )
            )
        return amounts
