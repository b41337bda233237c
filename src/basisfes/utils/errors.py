"""Project-specific exception hierarchy for the basis-function method."""

from __future__ import annotations


class BasisFunctionError(Exception):
    """Base class for basis-function method errors."""


class ConfigurationError(BasisFunctionError, ValueError):
    """Invalid or inconsistent method configuration."""


class DimensionMismatchError(ConfigurationError):
    """Histogram dimensionality does not match the number of CVs."""


class TemperatureError(BasisFunctionError):
    """No usable temperature for computing the inverse thermal energy."""


class CollectiveAbort(BasisFunctionError):
    """A walker aborted the run while others were waiting on a collective."""
