from __future__ import annotations


class PlotDataError(ValueError):
    """Raised when chart input data or configuration cannot be used."""


class EmptyDomainError(PlotDataError):
    """No record yields a defined value for an accessor."""


class DegenerateDomainError(PlotDataError):
    """A scale domain collapses to a single point."""


class InvalidLayoutError(PlotDataError):
    """Margins leave no positive drawing area."""


class OutOfRangeQuery(PlotDataError):
    """A pointer query lies outside the bounded drawing rectangle."""
