"""Shared constants for feature validation."""

from __future__ import annotations

# LineString parts need a start and an end
MIN_LINE_POSITIONS = 2

# Minimum positions for a polygon ring (3 distinct + closing = 4)
MIN_RING_POSITIONS = 4

# Geometries with more positions than this are elided in error output
MAX_REPORTED_POSITIONS = 64

GEOMETRY_TYPES = frozenset(
    {
        "Point",
        "MultiPoint",
        "LineString",
        "MultiLineString",
        "Polygon",
        "MultiPolygon",
    }
)
