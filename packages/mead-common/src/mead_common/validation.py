"""
Numeric input validation.

Form fields arrive as floats, ints or raw strings. These helpers turn
them into floats or raise ValidationError with a message fit for display.
"""

import math

from mead_common.exceptions import ValidationError


def parse_optional_number(
    value: float | int | str | None,
    label: str = "Value",
) -> float | None:
    """
    Parse an optional numeric input.

    Empty input (None or a blank string) is a valid intermediate state
    and returns None rather than raising.

    Raises:
        ValidationError: If the value is present but not a finite number
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    return require_number(value, label)


def require_number(value: float | int | str | None, label: str) -> float:
    """
    Convert a required input to a finite float.

    Args:
        value: The raw input
        label: Human readable field name used in the error message

    Returns:
        The value as a float

    Raises:
        ValidationError: If the value is missing, non-numeric or not finite
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"Please enter {label}")

    # bool is an int subclass but never a meaningful measurement
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a number")

    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{label} must be a number, got {value!r}") from e

    if not math.isfinite(number):
        raise ValidationError(f"{label} must be a finite number")
    return number


def require_positive(value: float | int | str | None, label: str) -> float:
    """Convert a required input and check it is greater than zero."""
    number = require_number(value, label)
    if number <= 0:
        raise ValidationError(f"{label} must be greater than zero")
    return number


def require_non_negative(value: float | int | str | None, label: str) -> float:
    """Convert a required input and check it is not negative."""
    number = require_number(value, label)
    if number < 0:
        raise ValidationError(f"{label} cannot be negative")
    return number


def require_in_range(
    value: float | int | str | None,
    label: str,
    low: float,
    high: float,
    fmt: str = "g",
) -> float:
    """
    Convert a required input and check it lies within [low, high].

    Args:
        value: The raw input
        label: Field name for the error message
        low: Inclusive lower bound
        high: Inclusive upper bound
        fmt: Format spec used to render the bounds in the message

    Raises:
        ValidationError: If the value is outside the range
    """
    number = require_number(value, label)
    if number < low or number > high:
        raise ValidationError(
            f"{label} must be between {low:{fmt}} and {high:{fmt}}"
        )
    return number
