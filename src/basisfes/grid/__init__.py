"""Histogram grid over collective-variable space."""

from .histogram import GridPoint, HistogramGrid  # noqa: F401
