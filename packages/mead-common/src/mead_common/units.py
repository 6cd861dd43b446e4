"""
Unit conversion utilities for mead measurements.

Two unit systems are supported, selected independently for mass and
volume. All internal representations use imperial canonical units:
- Mass: pounds
- Volume: US gallons

Display values are derived from the canonical value on demand, so
switching unit system never changes what is stored.
"""

import logging
import math
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mead_common.exceptions import UnitConversionError, ValidationError

logger = logging.getLogger(__name__)


class UnitSystem(str, Enum):
    """Measurement system used for display and input."""

    IMPERIAL = "imperial"
    METRIC = "metric"


UNIT_ALIASES: dict[str, UnitSystem] = {
    "imperial": UnitSystem.IMPERIAL,
    "us": UnitSystem.IMPERIAL,
    "lb": UnitSystem.IMPERIAL,
    "lbs": UnitSystem.IMPERIAL,
    "pound": UnitSystem.IMPERIAL,
    "pounds": UnitSystem.IMPERIAL,
    "gal": UnitSystem.IMPERIAL,
    "gallon": UnitSystem.IMPERIAL,
    "gallons": UnitSystem.IMPERIAL,
    "metric": UnitSystem.METRIC,
    "kg": UnitSystem.METRIC,
    "kilogram": UnitSystem.METRIC,
    "kilograms": UnitSystem.METRIC,
    "l": UnitSystem.METRIC,
    "litre": UnitSystem.METRIC,
    "litres": UnitSystem.METRIC,
    "liter": UnitSystem.METRIC,
    "liters": UnitSystem.METRIC,
}

# Authoritative factors; the reverse directions are exact reciprocals
# so repeated conversions do not drift.
KG_PER_LB = 0.453592
LB_PER_KG = 1 / KG_PER_LB
LITRES_PER_GALLON = 3.78541
GALLONS_PER_LITRE = 1 / LITRES_PER_GALLON

OUNCES_PER_POUND = 16
GRAMS_PER_KILOGRAM = 1000


def coerce_unit_system(unit: UnitSystem | str) -> UnitSystem:
    """
    Resolve a unit system from an enum member or a string alias.

    Raises:
        UnitConversionError: If the string is not a known unit system
    """
    if isinstance(unit, UnitSystem):
        return unit
    if isinstance(unit, str):
        resolved = UNIT_ALIASES.get(unit.strip().lower())
        if resolved is not None:
            return resolved
    raise UnitConversionError(f"Unknown unit system: {unit}")


class UnitContext(BaseModel):
    """
    Display unit selection for one calculation session.

    Mass and volume are chosen independently.
    """

    model_config = ConfigDict(frozen=True)

    weight: UnitSystem = Field(
        default=UnitSystem.IMPERIAL,
        description="Unit system for ingredient masses",
    )
    volume: UnitSystem = Field(
        default=UnitSystem.IMPERIAL,
        description="Unit system for batch volumes",
    )

    @field_validator("weight", "volume", mode="before")
    @classmethod
    def _coerce(cls, v):
        return coerce_unit_system(v)

    @property
    def weight_label(self) -> str:
        return "lbs" if self.weight == UnitSystem.IMPERIAL else "kg"

    @property
    def volume_label(self) -> str:
        return "gal" if self.volume == UnitSystem.IMPERIAL else "L"


def _check_non_negative(value: float, label: str) -> None:
    if value < 0:
        raise ValidationError(f"{label} cannot be negative")


# Mass
def mass_to_canonical(value: float, unit: UnitSystem | str) -> float:
    """
    Convert a displayed mass to canonical pounds.

    Args:
        value: Mass in the main unit of `unit` (pounds or kilograms)
        unit: Unit system the value was entered in

    Returns:
        Mass in pounds
    """
    unit = coerce_unit_system(unit)
    _check_non_negative(value, "Mass")
    if unit == UnitSystem.METRIC:
        return value * LB_PER_KG
    return value


def canonical_to_display(pounds: float, unit: UnitSystem | str) -> float:
    """
    Convert canonical pounds to the main unit of a display system.

    Args:
        pounds: Mass in pounds
        unit: Target unit system

    Returns:
        Mass in pounds or kilograms
    """
    unit = coerce_unit_system(unit)
    _check_non_negative(pounds, "Mass")
    if unit == UnitSystem.METRIC:
        return pounds * KG_PER_LB
    return pounds


# Volume
def volume_to_canonical(value: float, unit: UnitSystem | str) -> float:
    """Convert a displayed volume (gallons or litres) to canonical gallons."""
    unit = coerce_unit_system(unit)
    _check_non_negative(value, "Volume")
    if unit == UnitSystem.METRIC:
        return value * GALLONS_PER_LITRE
    return value


def canonical_to_display_volume(gallons: float, unit: UnitSystem | str) -> float:
    """Convert canonical gallons to gallons or litres."""
    unit = coerce_unit_system(unit)
    _check_non_negative(gallons, "Volume")
    if unit == UnitSystem.METRIC:
        return gallons * LITRES_PER_GALLON
    return gallons


# Two-field (main + sub unit) handling
def _sub_units(unit: UnitSystem) -> int:
    return OUNCES_PER_POUND if unit == UnitSystem.IMPERIAL else GRAMS_PER_KILOGRAM


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _decompose(value: float, per_main: int) -> tuple[int, int]:
    """Split into whole main units and rounded sub units, carrying a full sub unit."""
    whole = int(math.floor(value))
    sub = _round_half_up((value - whole) * per_main)
    if sub >= per_main:
        whole += 1
        sub -= per_main
    return whole, sub


def format_mass_imperial(pounds: float) -> str:
    """
    Format a mass in pounds as whole pounds and ounces.

    Ounces are rounded to the nearest whole ounce; 16 oz carries into
    an extra pound.

    Example:
        >>> format_mass_imperial(3.125)
        "3 lbs 2 oz"
        >>> format_mass_imperial(0)
        "0 lbs"
    """
    _check_non_negative(pounds, "Mass")
    whole, ounces = _decompose(pounds, OUNCES_PER_POUND)

    if whole == 0 and ounces == 0:
        return "0 lbs"

    parts = []
    if whole:
        parts.append(f"{whole} {'lb' if whole == 1 else 'lbs'}")
    if ounces:
        parts.append(f"{ounces} oz")
    return " ".join(parts)


def format_mass_metric(kg: float) -> str:
    """
    Format a mass in kilograms as whole kilograms and grams.

    Example:
        >>> format_mass_metric(2.25)
        "2 kg 250 g"
    """
    _check_non_negative(kg, "Mass")
    whole, grams = _decompose(kg, GRAMS_PER_KILOGRAM)

    if whole == 0 and grams == 0:
        return "0 kg"

    parts = []
    if whole:
        parts.append(f"{whole} kg")
    if grams:
        parts.append(f"{grams} g")
    return " ".join(parts)


def format_mass(pounds: float, unit: UnitSystem | str) -> str:
    """Format a canonical mass for the given unit system."""
    unit = coerce_unit_system(unit)
    if unit == UnitSystem.METRIC:
        return format_mass_metric(canonical_to_display(pounds, unit))
    return format_mass_imperial(pounds)


def format_volume(gallons: float, unit: UnitSystem | str, decimals: int = 2) -> str:
    """Format a canonical volume for the given unit system."""
    unit = coerce_unit_system(unit)
    value = canonical_to_display_volume(gallons, unit)
    label = "L" if unit == UnitSystem.METRIC else "gal"
    return f"{value:.{decimals}f} {label}"


def split_mass(pounds: float, unit: UnitSystem | str) -> tuple[int, float]:
    """
    Split a canonical mass into a (main, sub) pair for a two-field input.

    The sub value is not rounded, so combine_mass() gives back the
    original mass.

    Returns:
        (whole pounds, ounces) or (whole kilograms, grams)
    """
    unit = coerce_unit_system(unit)
    value = canonical_to_display(pounds, unit)
    whole = int(math.floor(value))
    return whole, (value - whole) * _sub_units(unit)


def combine_mass(main: float, sub: float, unit: UnitSystem | str) -> float:
    """
    Combine a (main, sub) pair into canonical pounds.

    Example:
        >>> combine_mass(2, 18, "imperial")
        3.125
    """
    unit = coerce_unit_system(unit)
    _check_non_negative(main, "Mass")
    _check_non_negative(sub, "Mass")
    return mass_to_canonical(main + sub / _sub_units(unit), unit)


def normalize_overflow(
    main: float,
    sub: float,
    unit: UnitSystem | str,
) -> tuple[float, float]:
    """
    Carry whole multiples of the sub unit into the main unit.

    18 oz on top of 2 lb becomes 3 lb 2 oz; 1250 g on top of 1 kg
    becomes 2 kg 250 g. Values already below the carry threshold are
    returned unchanged, so the operation is idempotent.

    Raises:
        ValidationError: If either value is negative
    """
    unit = coerce_unit_system(unit)
    _check_non_negative(main, "Mass")
    _check_non_negative(sub, "Mass")

    per_main = _sub_units(unit)
    if sub < per_main:
        return main, sub

    carry = math.floor(sub / per_main)
    normalized = (main + carry, sub - carry * per_main)
    logger.debug("Normalized %s/%s (%s) to %s", main, sub, unit.value, normalized)
    return normalized
