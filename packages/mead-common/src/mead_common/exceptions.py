"""
Exception types for mead-common.

All exceptions inherit from MeadCommonError so callers can catch
any calculator error in one place and decide how to surface it.
"""


class MeadCommonError(Exception):
    """Base exception for all mead-common errors."""

    pass


class ValidationError(MeadCommonError):
    """Raised when a user-supplied value is missing, non-numeric or out of range."""

    pass


class NotFoundError(MeadCommonError):
    """Raised when an ingredient or allocation entry does not exist."""

    pass


class UnitConversionError(MeadCommonError):
    """Raised when a unit system or unit name is not recognised."""

    pass


class ConfigurationError(MeadCommonError):
    """Raised when configuration is invalid."""

    pass
