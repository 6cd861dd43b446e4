"""
Calculator session for the MeadCalc tools.

A session owns the unit selection, the ingredient allocations and the
most recent result of each calculator panel. Results are kept in
canonical units (pounds, gallons) and rendered to display strings on
demand, so changing units re-renders every panel without recomputing.
"""

import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel

from mead_common.allocation import AllocationMode, AllocationSet, AllocationState
from mead_common.catalog import HONEY_ID, ingredient, resolve_ingredient
from mead_common.exceptions import NotFoundError
from mead_common.gravity import (
    AbvResult,
    IngredientGravityResult,
    abv_from_gravities,
    cross_scale_convert,
    gravity_from_ingredients,
    is_plausible_gravity,
)
from mead_common.planning import RecipePlan, plan_for_target_abv
from mead_common.units import (
    GRAMS_PER_KILOGRAM,
    OUNCES_PER_POUND,
    UnitContext,
    UnitSystem,
    canonical_to_display,
    canonical_to_display_volume,
    coerce_unit_system,
    combine_mass,
    format_mass,
    format_volume,
    mass_to_canonical,
    normalize_overflow,
    split_mass,
    volume_to_canonical,
)
from mead_common.validation import parse_optional_number, require_positive

logger = logging.getLogger(__name__)

TARGET_PANEL = "target"
BREAKDOWN_PANEL = "breakdown"


def _incomplete() -> dict[str, Any]:
    return {"status": "incomplete"}


def _unbalanced_message(allocation: AllocationSet) -> str:
    if allocation.state == AllocationState.EMPTY:
        return "Add at least one ingredient"
    return (
        "Ingredient percentages must total 100% "
        f"(currently {allocation.total_percentage():.1f}%)"
    )


class CalculatorSession:
    """
    State for one user's calculator.

    Inputs are taken in the session's current display units; empty
    inputs mean the panel is incomplete and nothing is computed.
    Each new input clears the panel's previous result first, so an
    incomplete or rejected input leaves the panel empty.
    """

    def __init__(self, units: UnitContext | None = None):
        self.units = units or UnitContext()
        self.allocations: dict[str, AllocationSet] = {
            TARGET_PANEL: AllocationSet.honey_only(
                mode=AllocationMode.TARGET,
                name=TARGET_PANEL,
            ),
            BREAKDOWN_PANEL: AllocationSet(
                mode=AllocationMode.BREAKDOWN,
                name=BREAKDOWN_PANEL,
            ),
        }
        self.displays: dict[str, dict[str, Any]] = {}
        self._results: dict[str, BaseModel] = {}
        self._plan_inputs: tuple[float, float] | None = None
        self._listeners: list[Callable[[dict[str, dict[str, Any]]], None]] = []

    def allocation(self, panel: str = TARGET_PANEL) -> AllocationSet:
        """
        Get an allocation set by panel name.

        Raises:
            NotFoundError: If the panel does not exist
        """
        try:
            return self.allocations[panel]
        except KeyError as e:
            raise NotFoundError(f"Unknown allocation panel: {panel}") from e

    def subscribe(self, callback: Callable[[dict[str, dict[str, Any]]], None]) -> None:
        """Call `callback` with all displays after every full recompute."""
        self._listeners.append(callback)

    # Units

    def set_units(
        self,
        weight: UnitSystem | str | None = None,
        volume: UnitSystem | str | None = None,
    ) -> UnitContext:
        """
        Change the display units and re-render every panel.

        Raises:
            UnitConversionError: If a unit system is not recognised
        """
        self.units = UnitContext(
            weight=self.units.weight if weight is None else coerce_unit_system(weight),
            volume=self.units.volume if volume is None else coerce_unit_system(volume),
        )
        logger.info(
            "Units set to weight=%s volume=%s",
            self.units.weight.value,
            self.units.volume.value,
        )
        self.recompute()
        return self.units

    def recompute(self) -> dict[str, dict[str, Any]]:
        """Re-render every cached result and allocation in the current units."""
        displays = dict(self.displays)
        for panel, result in self._results.items():
            displays[panel] = self._render(result)
        for panel, allocation in self.allocations.items():
            displays[f"allocation:{panel}"] = self.render_allocation(allocation)
        self.displays = displays

        for callback in self._listeners:
            callback(displays)
        return displays

    def enter_mass(
        self,
        main: float | str | None,
        sub: float | str | None = None,
    ) -> dict[str, Any]:
        """
        Take a two-field mass input and normalize sub-unit overflow.

        18 oz entered alongside 2 lb comes back as 3 lb 2 oz.
        """
        weight = self.units.weight
        main_value, sub_value = normalize_overflow(
            parse_optional_number(main, "Mass") or 0.0,
            parse_optional_number(sub, "Mass") or 0.0,
            weight,
        )
        pounds = combine_mass(main_value, sub_value, weight)
        return {
            "main": main_value,
            "sub": sub_value,
            "pounds": pounds,
            "display": format_mass(pounds, weight),
        }

    # Calculators

    def calculate_abv(
        self,
        og: float | str | None,
        fg: float | str | None,
    ) -> dict[str, Any]:
        """ABV, potential ABV and attenuation from two gravity readings."""
        self._forget("abv")
        og = parse_optional_number(og, "Original Gravity")
        fg = parse_optional_number(fg, "Final Gravity")
        if og is None or fg is None:
            return _incomplete()
        return self._remember("abv", abv_from_gravities(og, fg))

    def estimate_gravity(
        self,
        batch_size: float | str | None,
        honey_amount: float | str | None = None,
        ingredients: dict[str, float | str | None] | None = None,
    ) -> dict[str, Any]:
        """
        Estimate original gravity from ingredient masses.

        Also fills the breakdown allocation with each ingredient's share
        of the fermentable sugar.

        Args:
            batch_size: Batch volume in the session's volume unit
            honey_amount: Honey mass in the session's weight unit
            ingredients: Other ingredients by name, masses in the
                session's weight unit
        """
        self._forget("gravity")
        self._clear_breakdown()
        batch = parse_optional_number(batch_size, "Batch size")
        if batch is None:
            return _incomplete()

        weight = self.units.weight
        additions = []
        honey = parse_optional_number(honey_amount, "Honey amount")
        if honey:
            additions.append((HONEY_ID, mass_to_canonical(honey, weight)))
        for name, amount in (ingredients or {}).items():
            value = parse_optional_number(amount, f"{name} amount")
            if value is None:
                continue
            additions.append((resolve_ingredient(name).id, mass_to_canonical(value, weight)))

        result = gravity_from_ingredients(
            additions,
            volume_to_canonical(batch, self.units.volume),
        )
        self._fill_breakdown(result)
        return self._remember("gravity", result)

    def plan_recipe(
        self,
        target_abv: float | str | None,
        batch_size: float | str | None,
    ) -> dict[str, Any]:
        """
        Ingredient masses for a target ABV using the target allocation.

        The inputs are remembered so later allocation edits refresh
        the plan.
        """
        self._plan_inputs = None
        self._forget("plan")
        abv = parse_optional_number(target_abv, "Target ABV")
        batch = parse_optional_number(batch_size, "Batch size")
        if abv is None or batch is None:
            return _incomplete()

        gallons = volume_to_canonical(batch, self.units.volume)
        self._plan_inputs = (
            require_positive(abv, "Target ABV"),
            require_positive(gallons, "Batch size"),
        )
        return self._refresh_plan()

    def convert_gravity(
        self,
        value: float | str | None,
        from_scale: str,
    ) -> dict[str, Any]:
        """Express a reading in SG, Brix, Baumé, ABV and ABW."""
        number = parse_optional_number(value, "Reading")
        if number is None:
            return _incomplete()
        readings = cross_scale_convert(number, from_scale)
        return {
            "source": readings.source.value,
            "sg": f"{readings.sg:.3f}",
            "brix": f"{readings.brix:.1f}",
            "baume": f"{readings.baume:.1f}",
            "abv": f"{readings.abv:.2f}%",
            "abw": f"{readings.abw:.2f}%",
        }

    # Allocation editing

    def add_ingredient(self, name: str, panel: str = TARGET_PANEL) -> dict[str, Any]:
        """
        Add an ingredient to an allocation.

        Honey added to a target allocation without a base becomes the base.
        """
        allocation = self.allocation(panel)
        definition = resolve_ingredient(name)
        base = (
            definition.id == HONEY_ID
            and allocation.base is None
            and allocation.mode == AllocationMode.TARGET
        )
        entry_id = allocation.add_entry(definition.id, base=base)
        return self._allocation_changed(panel, entry_id=entry_id)

    def remove_ingredient(self, entry_id: int, panel: str = TARGET_PANEL) -> dict[str, Any]:
        """Remove an entry, returning its share to the base."""
        self.allocation(panel).remove_entry(entry_id)
        return self._allocation_changed(panel)

    def set_percentage(
        self,
        entry_id: int,
        percentage: float | str | None,
        panel: str = TARGET_PANEL,
    ) -> dict[str, Any]:
        """
        Set an entry's percentage.

        The result includes `stored`, the value actually kept after
        clamping, which the caller should display.
        """
        stored = self.allocation(panel).set_percentage(entry_id, percentage)
        return self._allocation_changed(panel, stored=stored)

    def reset_allocation(self, panel: str = TARGET_PANEL) -> dict[str, Any]:
        """Reset a panel; the target panel goes back to 100% honey."""
        allocation = self.allocation(panel)
        allocation.reset()
        if allocation.mode == AllocationMode.TARGET:
            allocation.add_entry(HONEY_ID, base=True)
        return self._allocation_changed(panel)

    def render_allocation(self, allocation: AllocationSet) -> dict[str, Any]:
        """Entries, total and state of an allocation set."""
        total = allocation.total_percentage()
        display = {
            "panel": allocation.name,
            "state": allocation.state.value,
            "total_percentage": round(total, 4),
            "entries": [
                {
                    "id": e.id,
                    "ingredient_id": e.ingredient_id,
                    "name": ingredient(e.ingredient_id).display_name,
                    "percentage": e.percentage,
                    "base": e.is_base,
                }
                for e in allocation
            ],
        }
        if allocation.mode == AllocationMode.TARGET and not allocation.is_ready():
            display["message"] = _unbalanced_message(allocation)
        return display

    # Rendering

    def render_abv(self, result: AbvResult) -> dict[str, Any]:
        display: dict[str, Any] = {
            "abv": f"{result.abv:.2f}%",
            "potential_abv": f"{result.potential_abv:.2f}%",
            "attenuation": f"{result.attenuation:.1f}%",
        }
        warnings = [
            f"{label} {value:.3f} is outside the usual 0.900-1.300 range"
            for label, value in (("Original Gravity", result.og), ("Final Gravity", result.fg))
            if not is_plausible_gravity(value)
        ]
        if warnings:
            display["warnings"] = warnings
        return display

    def render_gravity(self, result: IngredientGravityResult) -> dict[str, Any]:
        gravity = result.gravity
        weight = self.units.weight

        if weight == UnitSystem.IMPERIAL:
            sub_per_main, sub_label = OUNCES_PER_POUND, "oz"
        else:
            sub_per_main, sub_label = GRAMS_PER_KILOGRAM, "g"
        sugar_sub = canonical_to_display(gravity.total_sugar_lbs, weight) * sub_per_main
        volume = canonical_to_display_volume(gravity.batch_gallons, self.units.volume)

        return {
            "batch_size": format_volume(gravity.batch_gallons, self.units.volume),
            "original_gravity": f"{gravity.sg:.3f}",
            "potential_abv": f"{gravity.potential_abv:.2f}%",
            "total_sugar": format_mass(gravity.total_sugar_lbs, weight),
            "sugar_concentration": (
                f"{sugar_sub / volume:.1f} {sub_label} per {self.units.volume_label}"
            ),
            "ingredients": [
                f"{format_mass(c.amount_lbs, weight)} {c.display_name} "
                f"({format_mass(c.sugar_lbs, weight)} fermentable sugar)"
                for c in result.contributions
            ],
        }

    def render_plan(self, plan: RecipePlan) -> dict[str, Any]:
        requirement = plan.requirement
        weight = self.units.weight
        volume = canonical_to_display_volume(requirement.batch_gallons, self.units.volume)

        ingredients = []
        for a in plan.amounts:
            # Unrounded two-field values for filling mass inputs
            main, sub = split_mass(a.mass_lbs, weight)
            ingredients.append({
                "name": a.display_name,
                "amount": format_mass(a.mass_lbs, weight),
                "fields": {"main": main, "sub": sub},
                "percentage": f"{a.percentage:g}%",
                "sugar": format_mass(a.sugar_lbs, weight),
            })

        return {
            "target": (
                f"{requirement.target_abv:g}% ABV in "
                f"{format_volume(requirement.batch_gallons, self.units.volume)}"
            ),
            "target_og": f"{requirement.required_og:.3f}",
            "total_sugar": format_mass(requirement.total_sugar_lbs, weight),
            "ingredients": ingredients,
            "honey_per_volume": (
                f"{format_mass(plan.honey_lbs / volume, weight)} "
                f"per {self.units.volume_label}"
            ),
            "warnings": list(plan.warnings),
        }

    def _render(self, result: BaseModel) -> dict[str, Any]:
        if isinstance(result, AbvResult):
            return self.render_abv(result)
        if isinstance(result, IngredientGravityResult):
            return self.render_gravity(result)
        if isinstance(result, RecipePlan):
            return self.render_plan(result)
        raise TypeError(f"No renderer for {type(result).__name__}")

    def _remember(self, panel: str, result: BaseModel) -> dict[str, Any]:
        self._results[panel] = result
        display = self._render(result)
        self.displays[panel] = display
        return display

    def _refresh_plan(self) -> dict[str, Any]:
        target_abv, gallons = self._plan_inputs
        allocation = self.allocations[TARGET_PANEL]
        if not allocation.is_ready():
            # Amounts are withheld until the allocation balances
            self._results.pop("plan", None)
            display = {
                "status": allocation.state.value,
                "message": _unbalanced_message(allocation),
            }
            self.displays["plan"] = display
            return display
        return self._remember("plan", plan_for_target_abv(target_abv, gallons, allocation))

    def _allocation_changed(self, panel: str, **extra: Any) -> dict[str, Any]:
        display = self.render_allocation(self.allocations[panel])
        self.displays[f"allocation:{panel}"] = display
        if panel == TARGET_PANEL and self._plan_inputs is not None:
            display = {**display, "plan": self._refresh_plan()}
        return {**display, **extra}

    def _forget(self, panel: str) -> None:
        self._results.pop(panel, None)
        self.displays.pop(panel, None)

    def _clear_breakdown(self) -> None:
        breakdown = self.allocations[BREAKDOWN_PANEL]
        breakdown.reset()
        self.displays[f"allocation:{BREAKDOWN_PANEL}"] = self.render_allocation(breakdown)

    def _fill_breakdown(self, result: IngredientGravityResult) -> None:
        breakdown = self.allocations[BREAKDOWN_PANEL]
        total = result.gravity.total_sugar_lbs
        for contribution in result.contributions:
            entry_id = breakdown.add_entry(contribution.ingredient_id)
            breakdown.set_percentage(entry_id, contribution.sugar_lbs / total * 100)
        self.displays[f"allocation:{BREAKDOWN_PANEL}"] = self.render_allocation(breakdown)
