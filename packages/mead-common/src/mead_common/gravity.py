"""
Gravity and alcohol formulas.

Closed-form conversions between sugar mass, specific gravity and
alcohol content, plus the alternative sugar scales (Brix, Baumé) and
alcohol by weight. Masses are in pounds and volumes in US gallons;
callers convert display units with mead_common.units first.
"""

import logging
from collections.abc import Iterable
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from mead_common.catalog import ingredient
from mead_common.exceptions import UnitConversionError, ValidationError
from mead_common.validation import (
    require_in_range,
    require_non_negative,
    require_number,
    require_positive,
)

logger = logging.getLogger(__name__)

# Conversion constants
GRAVITY_POINTS_PER_LB_SUGAR_PER_GALLON = 46  # 1 lb sugar in 1 gal = 1.046
ABV_FACTOR = 131.25
ETHANOL_DENSITY_RATIO = 0.789 / 1.000  # ethanol vs water, for ABV <-> ABW

# Advisory thresholds
HIGH_ABV_WARNING = 18
HIGH_HONEY_LBS_PER_GALLON = 4.5
PLAUSIBLE_GRAVITY_RANGE = (0.900, 1.300)


class AbvResult(BaseModel):
    """Alcohol content derived from original and final gravity."""

    model_config = ConfigDict(frozen=True)

    og: float
    fg: float
    abv: float = Field(..., description="Alcohol by volume percentage")
    potential_abv: float = Field(
        ...,
        description="ABV if fermented all the way to 1.000",
    )
    attenuation: float = Field(..., description="Apparent attenuation percentage")


class GravityResult(BaseModel):
    """Estimated gravity for a known amount of fermentable sugar."""

    model_config = ConfigDict(frozen=True)

    total_sugar_lbs: float
    batch_gallons: float
    gravity_points: float
    sg: float = Field(..., description="Estimated original gravity")
    potential_abv: float
    sugar_concentration_oz_per_gallon: float


class SugarRequirement(BaseModel):
    """Fermentable sugar needed to reach a target ABV."""

    model_config = ConfigDict(frozen=True)

    target_abv: float
    batch_gallons: float
    required_og: float
    gravity_points: float
    total_sugar_lbs: float


class SugarContribution(BaseModel):
    """Sugar supplied by one ingredient."""

    model_config = ConfigDict(frozen=True)

    ingredient_id: str
    display_name: str
    amount_lbs: float
    sugar_lbs: float


class IngredientGravityResult(BaseModel):
    """Gravity estimate together with per-ingredient sugar contributions."""

    model_config = ConfigDict(frozen=True)

    gravity: GravityResult
    contributions: list[SugarContribution] = Field(default_factory=list)


class GravityScale(str, Enum):
    """Scales a gravity or alcohol reading can be expressed in."""

    SG = "sg"
    BRIX = "brix"
    BAUME = "baume"
    ABV = "abv"
    ABW = "abw"


SCALE_ALIASES: dict[str, GravityScale] = {
    "specific gravity": GravityScale.SG,
    "gravity": GravityScale.SG,
    "bx": GravityScale.BRIX,
    "°bx": GravityScale.BRIX,
    "baumé": GravityScale.BAUME,
    "be": GravityScale.BAUME,
    "°be": GravityScale.BAUME,
}

# (low, high, label, bound format)
SCALE_RANGES: dict[GravityScale, tuple[float, float, str, str]] = {
    GravityScale.SG: (0.990, 1.200, "SG", ".3f"),
    GravityScale.BRIX: (0, 50, "Brix", "g"),
    GravityScale.BAUME: (0, 25, "Baumé", "g"),
    GravityScale.ABV: (0, 25, "ABV", "g"),
    GravityScale.ABW: (0, 25, "ABW", "g"),
}


class ScaleReadings(BaseModel):
    """One reading expressed in every supported scale."""

    model_config = ConfigDict(frozen=True)

    source: GravityScale
    sg: float
    brix: float
    baume: float
    abv: float
    abw: float


def abv_from_gravities(og: float | str | None, fg: float | str | None) -> AbvResult:
    """
    Calculate alcohol content from original and final gravity.

    ABV = (OG - FG) × 131.25

    Args:
        og: Original gravity (e.g., 1.060)
        fg: Final gravity (e.g., 1.010)

    Returns:
        AbvResult with ABV, potential ABV and apparent attenuation

    Raises:
        ValidationError: If either gravity is missing or non-numeric,
            if OG is not higher than FG, or if OG is not above 1.000
    """
    if og is None or fg is None or og == "" or fg == "":
        raise ValidationError("Please enter both Original Gravity and Final Gravity")

    og = require_number(og, "Original Gravity")
    fg = require_number(fg, "Final Gravity")

    if og <= fg:
        raise ValidationError("Original Gravity must be higher than Final Gravity")
    if og <= 1.0:
        raise ValidationError("Original Gravity must be above 1.000")

    return AbvResult(
        og=og,
        fg=fg,
        abv=(og - fg) * ABV_FACTOR,
        potential_abv=(og - 1.0) * ABV_FACTOR,
        attenuation=(og - fg) / (og - 1.0) * 100,
    )


def gravity_from_sugar_mass(
    total_sugar_lbs: float | str | None,
    batch_gallons: float | str | None,
) -> GravityResult:
    """
    Estimate specific gravity from fermentable sugar and batch size.

    SG = 1 + (sugar_lbs / gallons × 46) / 1000

    Raises:
        ValidationError: If the batch size is not positive or the sugar
            mass is negative
    """
    batch_gallons = require_positive(batch_gallons, "Batch size")
    total_sugar_lbs = require_non_negative(total_sugar_lbs, "Fermentable sugar")

    sugar_per_gallon = total_sugar_lbs / batch_gallons
    gravity_points = sugar_per_gallon * GRAVITY_POINTS_PER_LB_SUGAR_PER_GALLON
    sg = 1.0 + gravity_points / 1000

    return GravityResult(
        total_sugar_lbs=total_sugar_lbs,
        batch_gallons=batch_gallons,
        gravity_points=gravity_points,
        sg=sg,
        potential_abv=(sg - 1.0) * ABV_FACTOR,
        sugar_concentration_oz_per_gallon=sugar_per_gallon * 16,
    )


def gravity_from_ingredients(
    additions: Iterable[tuple[str, float]],
    batch_gallons: float | str | None,
) -> IngredientGravityResult:
    """
    Estimate gravity from a list of ingredient additions.

    Args:
        additions: (ingredient id, mass in pounds) pairs. Zero masses
            are skipped.
        batch_gallons: Batch size in gallons

    Raises:
        ValidationError: If the batch size is invalid, a mass is
            negative, or no fermentable sugar is supplied
        NotFoundError: If an ingredient id is unknown
    """
    batch_gallons = require_positive(batch_gallons, "Batch size")

    contributions = []
    for ingredient_id, amount in additions:
        amount_lbs = require_non_negative(amount, f"Amount of {ingredient_id}")
        if amount_lbs == 0:
            continue
        definition = ingredient(ingredient_id)
        contributions.append(
            SugarContribution(
                ingredient_id=definition.id,
                display_name=definition.display_name,
                amount_lbs=amount_lbs,
                sugar_lbs=amount_lbs * definition.fermentable_fraction,
            )
        )

    total_sugar = sum(c.sugar_lbs for c in contributions)
    if total_sugar == 0:
        raise ValidationError("Please add some fermentable ingredients")

    return IngredientGravityResult(
        gravity=gravity_from_sugar_mass(total_sugar, batch_gallons),
        contributions=contributions,
    )


def required_sugar_mass(
    target_abv: float | str | None,
    batch_gallons: float | str | None,
) -> SugarRequirement:
    """
    Calculate the fermentable sugar needed to reach a target ABV.

    Assumes fermentation finishes at 1.000.

    Raises:
        ValidationError: If either argument is missing or not positive
    """
    target_abv = require_positive(target_abv, "Target ABV")
    batch_gallons = require_positive(batch_gallons, "Batch size")

    required_og = 1.0 + target_abv / ABV_FACTOR
    gravity_points = (required_og - 1.0) * 1000
    total_sugar = gravity_points * batch_gallons / GRAVITY_POINTS_PER_LB_SUGAR_PER_GALLON

    return SugarRequirement(
        target_abv=target_abv,
        batch_gallons=batch_gallons,
        required_og=required_og,
        gravity_points=gravity_points,
        total_sugar_lbs=total_sugar,
    )


def recipe_warnings(
    target_abv: float,
    honey_lbs: float,
    batch_gallons: float,
) -> list[str]:
    """Advisory notes for recipes at the extremes of what yeast tolerates."""
    warnings = []
    if target_abv > HIGH_ABV_WARNING:
        warnings.append(
            f"ABV above {HIGH_ABV_WARNING}% may require specialized "
            "high-alcohol tolerant yeast"
        )
    if batch_gallons > 0 and honey_lbs / batch_gallons > HIGH_HONEY_LBS_PER_GALLON:
        warnings.append(
            "Very high honey concentration - consider nutrient additions "
            "and temperature control"
        )
    return warnings


def is_plausible_gravity(sg: float) -> bool:
    """Check a hydrometer reading falls in the range real musts occupy."""
    low, high = PLAUSIBLE_GRAVITY_RANGE
    return low <= sg <= high


# Scale conversions
def brix_to_sg(brix: float) -> float:
    """
    Convert Brix to specific gravity.

    Args:
        brix: Degrees Brix

    Returns:
        Specific gravity
    """
    return brix / (258.6 - ((brix / 258.2) * 227.1)) + 1


def sg_to_brix(sg: float) -> float:
    """
    Convert specific gravity to Brix.

    Note: Only accurate for unfermented must.
    """
    return ((182.4601 * sg - 775.6821) * sg + 1262.7794) * sg - 669.5622


def baume_to_sg(baume: float) -> float:
    """Convert degrees Baumé to specific gravity."""
    return 145 / (145 - baume)


def sg_to_baume(sg: float) -> float:
    """Convert specific gravity to degrees Baumé."""
    return 145 - 145 / sg


def sg_to_abv(sg: float) -> float:
    """Potential ABV of a must at this gravity."""
    return (sg - 1.0) * ABV_FACTOR


def abv_to_sg_legacy(abv: float) -> float:
    """
    Approximate gravity for an ABV reading.

    This is not the inverse of sg_to_abv(): it divides by an extra
    1000, so results sit just above 1.000. Kept as-is so converted
    readings match the published calculator.
    """
    return 1 + abv / ABV_FACTOR / 1000


def abv_to_abw(abv: float) -> float:
    """Convert alcohol by volume to alcohol by weight."""
    return abv * ETHANOL_DENSITY_RATIO


def abw_to_abv(abw: float) -> float:
    """Convert alcohol by weight to alcohol by volume."""
    return abw / ETHANOL_DENSITY_RATIO


def coerce_scale(scale: GravityScale | str) -> GravityScale:
    """
    Resolve a scale from an enum member or a name such as "Brix".

    Raises:
        UnitConversionError: If the scale is unknown
    """
    if isinstance(scale, GravityScale):
        return scale
    key = str(scale).strip().lower()
    try:
        return GravityScale(key)
    except ValueError as e:
        if key in SCALE_ALIASES:
            return SCALE_ALIASES[key]
        raise UnitConversionError(f"Unknown gravity scale: {scale}") from e


def cross_scale_convert(
    value: float | str | None,
    from_scale: GravityScale | str,
) -> ScaleReadings:
    """
    Express a reading in every supported scale.

    The reading is validated against the physical range of its own
    scale, converted to SG and then out to the others. The source
    scale's value is reported exactly as given.

    Args:
        value: The reading
        from_scale: Scale of the reading (sg, brix, baume, abv or abw)

    Returns:
        ScaleReadings with sg, brix, baume, abv and abw

    Raises:
        ValidationError: If the value is missing or outside the range
            for its scale
        UnitConversionError: If the scale is unknown
    """
    from_scale = coerce_scale(from_scale)
    low, high, label, fmt = SCALE_RANGES[from_scale]
    value = require_in_range(value, label, low, high, fmt)

    if from_scale == GravityScale.SG:
        sg = value
    elif from_scale == GravityScale.BRIX:
        sg = brix_to_sg(value)
    elif from_scale == GravityScale.BAUME:
        sg = baume_to_sg(value)
    elif from_scale == GravityScale.ABV:
        sg = abv_to_sg_legacy(value)
    else:
        sg = abv_to_sg_legacy(abw_to_abv(value))

    if from_scale == GravityScale.ABV:
        abv = value
    elif from_scale == GravityScale.ABW:
        abv = abw_to_abv(value)
    else:
        abv = sg_to_abv(sg)

    readings = ScaleReadings(
        source=from_scale,
        sg=sg,
        brix=value if from_scale == GravityScale.BRIX else sg_to_brix(sg),
        baume=value if from_scale == GravityScale.BAUME else sg_to_baume(sg),
        abv=abv,
        abw=value if from_scale == GravityScale.ABW else abv_to_abw(abv),
    )
    logger.debug("Converted %s %s: %s", value, from_scale.value, readings)
    return readings
