"""
Recipe planning for a target ABV.

Combines the sugar requirement for a batch with an ingredient
allocation to produce the mass of each ingredient to buy.
"""

from pydantic import BaseModel, ConfigDict, Field

from mead_common.allocation import AllocationSet, IngredientAmount
from mead_common.catalog import HONEY_ID
from mead_common.gravity import SugarRequirement, recipe_warnings, required_sugar_mass


class RecipePlan(BaseModel):
    """Ingredient masses needed to hit a target ABV."""

    model_config = ConfigDict(frozen=True)

    requirement: SugarRequirement
    amounts: list[IngredientAmount] = Field(default_factory=list)
    honey_lbs_per_gallon: float = Field(
        default=0.0,
        description="Honey mass per gallon of batch",
    )
    warnings: list[str] = Field(default_factory=list)

    @property
    def total_mass_lbs(self) -> float:
        """Combined mass of all ingredients."""
        return sum(a.mass_lbs for a in self.amounts)

    @property
    def honey_lbs(self) -> float:
        return sum(a.mass_lbs for a in self.amounts if a.ingredient_id == HONEY_ID)


def plan_for_target_abv(
    target_abv: float | str | None,
    batch_gallons: float | str | None,
    allocation: AllocationSet | None = None,
) -> RecipePlan:
    """
    Work out how much of each ingredient a batch needs.

    Args:
        target_abv: Desired alcohol by volume percentage
        batch_gallons: Batch size in gallons
        allocation: How the sugar is split between ingredients.
            Defaults to honey only.

    Returns:
        RecipePlan with the sugar requirement, per-ingredient masses
        and any advisory warnings

    Raises:
        ValidationError: If the inputs are invalid or the allocation
            does not total 100%
    """
    if allocation is None:
        allocation = AllocationSet.honey_only()

    requirement = required_sugar_mass(target_abv, batch_gallons)
    amounts = allocation.amounts_for_target(requirement.total_sugar_lbs)

    honey_lbs = sum(a.mass_lbs for a in amounts if a.ingredient_id == HONEY_ID)
    return RecipePlan(
        requirement=requirement,
        amounts=amounts,
        honey_lbs_per_gallon=honey_lbs / requirement.batch_gallons,
        warnings=recipe_warnings(
            requirement.target_abv,
            honey_lbs,
            requirement.batch_gallons,
        ),
    )
