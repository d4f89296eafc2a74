"""Deliberate geometry transforms for source collaborators.

Publisher data often arrives with altitude values or with rings wound the
wrong way round.  These transforms fix that *before* validation; the
validator itself never repairs anything.

- ``ensure_coordinates_2d`` drops the third (and any later) ordinate.
- ``rewind_geometry`` applies the right-hand rule to polygon rings with
  shapely (exterior counterclockwise, holes clockwise).
"""

from __future__ import annotations

import logging
from typing import Any

from shapely.errors import ShapelyError
from shapely.geometry import MultiPolygon, mapping, shape
from shapely.geometry.polygon import orient

from paper_maps.core.exceptions import ContractError

logger = logging.getLogger("paper_maps.utils.geometry")


class CoordinateError(ContractError):
    """Raised when a collaborator hands over malformed coordinates."""

    default_stage = "normalize_geometry"
    default_code = "COORDINATES_MALFORMED"


def _coordinates_2d(coords: Any) -> Any:
    if isinstance(coords, list | tuple) and coords and all(
        isinstance(c, list | tuple) for c in coords
    ):
        return [_coordinates_2d(c) for c in coords]
    if (
        isinstance(coords, list | tuple)
        and len(coords) >= 2
        and all(isinstance(v, int | float) and not isinstance(v, bool) for v in coords)
    ):
        return [coords[0], coords[1]]
    msg = f"invalid coordinates: {coords!r}"
    raise CoordinateError(msg)


def ensure_coordinates_2d(geometry: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *geometry* with every position cut down to ``[x, y]``.

    Raises:
        CoordinateError: If the geometry has no ``coordinates`` or a
            position has fewer than two numbers.
    """
    if "coordinates" not in geometry:
        msg = f"unexpected geometry shape: {sorted(geometry)}"
        raise CoordinateError(msg)
    return {**geometry, "coordinates": _coordinates_2d(geometry["coordinates"])}


def _as_lists(coords: Any) -> Any:
    if isinstance(coords, list | tuple):
        return [_as_lists(c) for c in coords]
    return coords


def _ring_count(geom: Any) -> int:
    polygons = geom.geoms if isinstance(geom, MultiPolygon) else [geom]
    return sum(1 + len(poly.interiors) for poly in polygons)


def rewind_geometry(geometry: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *geometry* following the right-hand rule.

    Non-polygonal geometries are returned unchanged.  Rings are closed by
    shapely if they were not already.

    Raises:
        CoordinateError: If shapely cannot build the polygon.
    """
    gtype = geometry.get("type")
    if gtype not in ("Polygon", "MultiPolygon"):
        return dict(geometry)

    try:
        geom = shape(geometry)
    except (ShapelyError, ValueError, TypeError, AttributeError) as exc:
        msg = f"cannot build {gtype} for rewinding: {exc}"
        raise CoordinateError(msg) from exc

    if gtype == "Polygon":
        rewound = orient(geom, sign=1.0)
    else:
        rewound = MultiPolygon([orient(poly, sign=1.0) for poly in geom.geoms])

    logger.debug("Rewound %s | rings=%d", gtype, _ring_count(rewound))
    return {**geometry, "coordinates": _as_lists(mapping(rewound)["coordinates"])}
