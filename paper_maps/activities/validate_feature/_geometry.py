"""Geometry rules that the structural schema cannot express.

Responsibilities:
- Minimum position counts for line parts and polygon rings
- Polygon ring closure
- Right-hand-rule winding order (exterior counterclockwise, holes clockwise)

All functions expect a geometry that already passed the structural
schema, so coordinates are well-formed 2D positions.
"""

from __future__ import annotations

import math
from itertools import pairwise
from typing import Any

from paper_maps.activities.validate_feature._constants import (
    MIN_LINE_POSITIONS,
    MIN_RING_POSITIONS,
)
from paper_maps.activities.validate_feature._schema import Violation

Ring = list[list[float]]

# ---------------------------------------------------------------------------
# Winding
# ---------------------------------------------------------------------------


def ring_signed_area(ring: Ring) -> float:
    """Return the shoelace signed area of *ring*.

    Positive for counterclockwise rings, negative for clockwise, in
    squared coordinate units.  The ring does not need to be closed.
    """
    if len(ring) < 3:
        return 0.0
    closed = [*ring, ring[0]]
    return math.fsum(x1 * y2 - x2 * y1 for (x1, y1), (x2, y2) in pairwise(closed)) / 2.0


def rewind_ring(ring: Ring, *, clockwise: bool) -> Ring:
    """Return *ring* in the requested orientation.

    Zero-area rings have no orientation and are returned unchanged.
    """
    area = ring_signed_area(ring)
    if (clockwise and area > 0) or (not clockwise and area < 0):
        return ring[::-1]
    return list(ring)


def rewind_polygon(rings: list[Ring]) -> list[Ring]:
    """Rewind a polygon's rings: exterior counterclockwise, holes clockwise."""
    if not rings:
        return []
    exterior, *holes = rings
    return [
        rewind_ring(exterior, clockwise=False),
        *(rewind_ring(hole, clockwise=True) for hole in holes),
    ]


def _polygons(geometry: dict[str, Any]) -> list[tuple[str, list[Ring]]]:
    """Return ``(path, rings)`` for each polygon in a (Multi)Polygon."""
    coords = geometry["coordinates"]
    if geometry["type"] == "Polygon":
        return [("geometry.coordinates", coords)]
    if geometry["type"] == "MultiPolygon":
        return [(f"geometry.coordinates.{i}", rings) for i, rings in enumerate(coords)]
    return []


def winding_violations(geometry: dict[str, Any]) -> list[Violation]:
    """Report every ring whose re-wound form differs from the stored ring.

    An exterior ring must also enclose positive area; a degenerate one has
    no orientation to get right.  Zero-area holes are allowed.

    Winding errors are reported, never repaired here; see
    ``paper_maps.utils.geometry.rewind_geometry`` for the deliberate fix.
    """
    violations: list[Violation] = []
    for path, rings in _polygons(geometry):
        for j, (ring, rewound) in enumerate(zip(rings, rewind_polygon(rings), strict=True)):
            if rewound != ring or (j == 0 and ring_signed_area(ring) <= 0):
                expected = "counterclockwise" if j == 0 else "clockwise"
                kind = "exterior ring" if j == 0 else "hole"
                violations.append(
                    Violation(
                        path=f"{path}.{j}",
                        reason=f"invalid winding order: {kind} must be {expected}",
                    )
                )
    return violations


# ---------------------------------------------------------------------------
# Ring / line structure
# ---------------------------------------------------------------------------


def _line_violations(line: Ring, path: str) -> list[Violation]:
    if len(line) < MIN_LINE_POSITIONS:
        return [
            Violation(
                path=path,
                reason=f"line needs at least {MIN_LINE_POSITIONS} positions, got {len(line)}",
            )
        ]
    return []


def _ring_violations(ring: Ring, path: str) -> list[Violation]:
    violations: list[Violation] = []
    if len(ring) < MIN_RING_POSITIONS:
        violations.append(
            Violation(
                path=path,
                reason=f"ring needs at least {MIN_RING_POSITIONS} positions, got {len(ring)}",
            )
        )
    if ring[0] != ring[-1]:
        violations.append(
            Violation(path=path, reason="ring is not closed (first and last positions differ)")
        )
    return violations


def geometry_violations(geometry: dict[str, Any]) -> list[Violation]:
    """Check line lengths and polygon ring closure."""
    gtype = geometry["type"]
    coords = geometry["coordinates"]
    violations: list[Violation] = []

    if gtype == "LineString":
        violations.extend(_line_violations(coords, "geometry.coordinates"))
    elif gtype == "MultiLineString":
        for i, line in enumerate(coords):
            violations.extend(_line_violations(line, f"geometry.coordinates.{i}"))

    for path, rings in _polygons(geometry):
        for j, ring in enumerate(rings):
            violations.extend(_ring_violations(ring, f"{path}.{j}"))

    return violations
