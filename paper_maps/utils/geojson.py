"""Single-pass GeoJSON serialization.

Feature collections are written with properties pretty-printed (so diffs
of the sample file stay readable) while each geometry is rendered
compactly on one line.  Both happen in the same pass over the
collection; there is no placeholder substitution afterwards.

The same renderer is used for diagnostics, where large coordinate arrays
are replaced by a short position count.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator

DEFAULT_INDENT = 4


def count_positions(coordinates: object) -> int:
    """Count ``[x, y]`` positions in an arbitrarily nested coordinate array."""
    if not isinstance(coordinates, list | tuple):
        return 0
    if coordinates and all(not isinstance(c, list | tuple) for c in coordinates):
        return 1
    return sum(count_positions(c) for c in coordinates)


def _indent_tail(text: str, prefix: str) -> str:
    """Indent every line of *text* but the first by *prefix*."""
    first, *rest = text.split("\n")
    return "\n".join([first, *(prefix + line for line in rest)])


def _render_geometry(geometry: dict[str, Any], max_positions: int | None) -> str:
    if max_positions is not None:
        n = count_positions(geometry.get("coordinates"))
        if n > max_positions:
            geometry = {**geometry, "coordinates": f"<{n} positions elided>"}
    return json.dumps(geometry, separators=(", ", ": "), ensure_ascii=False)


def render_feature(
    feature: object,
    *,
    indent: int = DEFAULT_INDENT,
    level: int = 0,
    max_positions: int | None = None,
) -> str:
    """Render a feature as pretty JSON with a one-line geometry.

    Args:
        feature: Feature dict.  Anything else is rendered with ``json.dumps``.
        indent: Spaces per nesting level.
        level: Nesting level of the feature itself; continuation lines are
            indented accordingly, the first line is not.
        max_positions: If set, geometries with more positions than this have
            their coordinates replaced by a position count.
    """
    outer = " " * (indent * level)
    if not isinstance(feature, dict) or not feature:
        return _indent_tail(json.dumps(feature, indent=indent, ensure_ascii=False), outer)

    inner = " " * (indent * (level + 1))
    members = []
    for key, value in feature.items():
        if key == "geometry" and isinstance(value, dict):
            rendered = _render_geometry(value, max_positions)
        else:
            rendered = _indent_tail(json.dumps(value, indent=indent, ensure_ascii=False), inner)
        members.append(f"{inner}{json.dumps(key)}: {rendered}")
    return "{\n" + ",\n".join(members) + "\n" + outer + "}"


def _iter_features(features: list[Any], indent: int) -> Iterator[str]:
    if not features:
        yield "[]"
        return
    item_pad = " " * (indent * 2)
    yield "["
    for i, feature in enumerate(features):
        sep = "," if i else ""
        yield f"{sep}\n{item_pad}{render_feature(feature, indent=indent, level=2)}"
    yield "\n" + " " * indent + "]"


def iter_collection_json(
    collection: dict[str, Any],
    *,
    indent: int = DEFAULT_INDENT,
) -> Iterator[str]:
    """Yield the JSON text of *collection* chunk by chunk.

    Keys are emitted in their existing order; ``features`` is streamed one
    feature at a time.
    """
    pad = " " * indent
    yield "{"
    for i, (key, value) in enumerate(collection.items()):
        sep = "," if i else ""
        yield f"{sep}\n{pad}{json.dumps(key)}: "
        if key == "features" and isinstance(value, list):
            yield from _iter_features(value, indent)
        else:
            yield _indent_tail(json.dumps(value, indent=indent, ensure_ascii=False), pad)
    yield "\n}\n"
