"""
Geometry Errors
===============

Error taxonomy of the buffering engine.

Strict builders raise these; the fail-soft builders and the zone composer
catch them so that one bad zone never aborts the others.
"""


class GeometryError(ValueError):
    """Base class for buffering engine failures."""


class InvalidInputError(GeometryError):
    """Non-finite coordinate, or no usable points left after filtering."""


class DegenerateGeometryError(GeometryError):
    """An offset could not produce at least 3 valid vertices."""


class UnsupportedShapeError(GeometryError):
    """Polygon offsetting requested on a non-convex ring."""
