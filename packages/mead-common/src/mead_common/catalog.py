"""
Catalog of fermentable ingredients and their sugar content.

Fermentable fractions are the proportion of an ingredient's mass that
is sugar available to yeast. Honey is kept outside the generic table
because it is the default base ingredient of every mead.
"""

from pydantic import BaseModel, ConfigDict, Field

from mead_common.exceptions import NotFoundError
from mead_common.matching import (
    find_canonical_name,
    match_objects,
    normalise_ingredient_name,
)

# Honey has approximately 80% fermentable sugars
HONEY_FERMENTABLE_FRACTION = 0.80

HONEY_ID = "honey"


class IngredientDefinition(BaseModel):
    """A fermentable ingredient and its sugar content."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Catalog key, e.g. 'cherry-tart'")
    display_name: str = Field(..., description="Human readable name")
    fermentable_fraction: float = Field(
        ...,
        ge=0,
        le=1,
        description="Fraction of mass that is fermentable sugar",
    )


def _define(id: str, display_name: str, fraction: float) -> IngredientDefinition:
    return IngredientDefinition(
        id=id,
        display_name=display_name,
        fermentable_fraction=fraction,
    )


HONEY = _define(HONEY_ID, "Honey", HONEY_FERMENTABLE_FRACTION)

INGREDIENTS: dict[str, IngredientDefinition] = {
    d.id: d
    for d in (
        _define("apple", "Apple (fresh)", 0.13),
        _define("apple-juice", "Apple Juice", 0.24),
        _define("blackberry", "Blackberry", 0.10),
        _define("blueberry", "Blueberry", 0.14),
        _define("cherry", "Cherry (sweet)", 0.16),
        _define("cherry-tart", "Cherry (tart)", 0.12),
        _define("cranberry", "Cranberry", 0.04),
        _define("grape", "Grape (fresh)", 0.16),
        _define("grape-juice", "Grape Juice", 0.24),
        _define("orange", "Orange", 0.12),
        _define("orange-juice", "Orange Juice", 0.21),
        _define("peach", "Peach", 0.13),
        _define("pear", "Pear", 0.15),
        _define("raspberry", "Raspberry", 0.12),
        _define("strawberry", "Strawberry", 0.09),
        _define("elderberry", "Elderberry", 0.07),
        _define("elderflower", "Elderflower", 0.05),
        _define("cane-sugar", "Cane Sugar", 1.00),
        _define("brown-sugar", "Brown Sugar", 0.97),
        _define("maple-syrup", "Maple Syrup", 0.67),
        _define("agave", "Agave Nectar", 0.76),
    )
}


def list_ingredients(include_honey: bool = True) -> list[IngredientDefinition]:
    """All ingredients in catalog order, honey first when included."""
    items = list(INGREDIENTS.values())
    return [HONEY, *items] if include_honey else items


def find_ingredient(ingredient_id: str) -> IngredientDefinition | None:
    """Look up an ingredient by id, returning None when it is unknown."""
    key = ingredient_id.strip().lower()
    if key == HONEY_ID:
        return HONEY
    return INGREDIENTS.get(key)


def search_ingredients(
    query: str,
    threshold: float = 0.6,
    limit: int = 5,
) -> list[tuple[IngredientDefinition, float]]:
    """
    Fuzzy search the catalog by display name.

    Returns:
        (definition, confidence) pairs, best first
    """
    return match_objects(
        query,
        list_ingredients(),
        key=lambda d: d.display_name,
        threshold=threshold,
        limit=limit,
    )


def ingredient(ingredient_id: str) -> IngredientDefinition:
    """
    Look up an ingredient by id.

    Args:
        ingredient_id: Catalog key such as "raspberry", or "honey"

    Returns:
        The ingredient definition

    Raises:
        NotFoundError: If the id is not in the catalog. The message
            lists close matches when there are any.
    """
    found = find_ingredient(ingredient_id)
    if found is not None:
        return found

    suggestions = [d.id for d, _ in search_ingredients(ingredient_id, limit=3)]
    message = f"Unknown ingredient: {ingredient_id}"
    if suggestions:
        message += f". Did you mean: {', '.join(suggestions)}?"
    raise NotFoundError(message)


def resolve_ingredient(name: str) -> IngredientDefinition:
    """
    Resolve a free-text ingredient name to a catalog entry.

    Tries, in order: exact id, known alias, fuzzy alias match and
    fuzzy display name match.

    Raises:
        NotFoundError: If nothing matches closely enough
    """
    found = find_ingredient(name) or find_ingredient(normalise_ingredient_name(name))
    if found is not None:
        return found

    canonical = find_canonical_name(name)
    if canonical is not None:
        return ingredient(canonical)

    matches = search_ingredients(name, threshold=0.85, limit=1)
    if matches:
        return matches[0][0]

    # Raises with suggestions
    return ingredient(name)
