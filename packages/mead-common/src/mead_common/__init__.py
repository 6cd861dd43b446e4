"""
mead-common: Calculation core for mead and wine strength.

Provides the fermentable ingredient catalog, unit conversion,
gravity/ABV formulas and ingredient percentage allocation.
"""

from mead_common.catalog import (
    HONEY,
    HONEY_FERMENTABLE_FRACTION,
    IngredientDefinition,
    find_ingredient,
    ingredient,
    list_ingredients,
    resolve_ingredient,
    search_ingredients,
)
from mead_common.units import (
    UnitSystem,
    UnitContext,
    mass_to_canonical,
    canonical_to_display,
    volume_to_canonical,
    canonical_to_display_volume,
    format_mass,
    format_mass_imperial,
    format_mass_metric,
    format_volume,
    normalize_overflow,
)
from mead_common.gravity import (
    ABV_FACTOR,
    GRAVITY_POINTS_PER_LB_SUGAR_PER_GALLON,
    GravityScale,
    abv_from_gravities,
    gravity_from_sugar_mass,
    gravity_from_ingredients,
    required_sugar_mass,
    cross_scale_convert,
)
from mead_common.allocation import (
    AllocationMode,
    AllocationState,
    AllocationEntry,
    AllocationSet,
    IngredientAmount,
)
from mead_common.planning import RecipePlan, plan_for_target_abv
from mead_common.exceptions import (
    MeadCommonError,
    ValidationError,
    NotFoundError,
    UnitConversionError,
    ConfigurationError,
)

__version__ = "0.1.0"

__all__ = [
    # Catalog
    "HONEY",
    "HONEY_FERMENTABLE_FRACTION",
    "IngredientDefinition",
    "find_ingredient",
    "ingredient",
    "list_ingredients",
    "resolve_ingredient",
    "search_ingredients",
    # Units
    "UnitSystem",
    "UnitContext",
    "mass_to_canonical",
    "canonical_to_display",
    "volume_to_canonical",
    "canonical_to_display_volume",
    "format_mass",
    "format_mass_imperial",
    "format_mass_metric",
    "format_volume",
    "normalize_overflow",
    # Formulas
    "ABV_FACTOR",
    "GRAVITY_POINTS_PER_LB_SUGAR_PER_GALLON",
    "GravityScale",
    "abv_from_gravities",
    "gravity_from_sugar_mass",
    "gravity_from_ingredients",
    "required_sugar_mass",
    "cross_scale_convert",
    # Allocation
    "AllocationMode",
    "AllocationState",
    "AllocationEntry",
    "AllocationSet",
    "IngredientAmount",
    # Planning
    "RecipePlan",
    "plan_for_target_abv",
    # Exceptions
    "MeadCommonError",
    "ValidationError",
    "NotFoundError",
    "UnitConversionError",
    "ConfigurationError",
]
