"""
Configuration management for the MeadCalc MCP server.
"""

import logging
import os
from dataclasses import dataclass

from mead_common.exceptions import ConfigurationError, UnitConversionError
from mead_common.units import UnitContext, UnitSystem, coerce_unit_system


@dataclass
class MeadCalcConfig:
    """Configuration for the MeadCalc server."""

    weight_unit: UnitSystem = UnitSystem.IMPERIAL
    volume_unit: UnitSystem = UnitSystem.IMPERIAL
    log_level: str = "WARNING"

    @property
    def units(self) -> UnitContext:
        """Initial unit selection for new sessions."""
        return UnitContext(weight=self.weight_unit, volume=self.volume_unit)


def _unit_from_env(name: str) -> UnitSystem:
    value = os.environ.get(name)
    if not value:
        return UnitSystem.IMPERIAL
    try:
        return coerce_unit_system(value)
    except UnitConversionError as e:
        raise ConfigurationError(
            f"{name} must be 'imperial' or 'metric', got {value!r}"
        ) from e


def get_config() -> MeadCalcConfig:
    """
    Get MeadCalc configuration from environment.

    Environment variables:
        MEADCALC_WEIGHT_UNIT: imperial or metric (default imperial)
        MEADCALC_VOLUME_UNIT: imperial or metric (default imperial)
        MEADCALC_LOG_LEVEL: Python logging level name (default WARNING)

    Returns:
        MeadCalcConfig instance

    Raises:
        ConfigurationError: If a variable holds an unrecognised value
    """
    log_level = os.environ.get("MEADCALC_LOG_LEVEL", "WARNING").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigurationError(f"MEADCALC_LOG_LEVEL is not a logging level: {log_level}")

    return MeadCalcConfig(
        weight_unit=_unit_from_env("MEADCALC_WEIGHT_UNIT"),
        volume_unit=_unit_from_env("MEADCALC_VOLUME_UNIT"),
        log_level=log_level,
    )
