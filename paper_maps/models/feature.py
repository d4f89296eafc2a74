"""Pydantic schema for a paper-map GeoJSON feature.

A MapFeature is a single map product: a GeoJSON ``Feature`` whose
geometry is one of the six simple geometry types and whose properties
carry the publisher catalogue fields.

Features travel through the pipeline as plain JSON dicts.  These models
are only used to *validate* that shape (see
``paper_maps.activities.validate_feature``); the validated model output
is discarded so unknown keys and key order survive untouched.

Design notes:
- Ordinates are strict floats: ints are accepted, strings and bools are
  not, and NaN / Infinity are rejected.
- Positions are exactly ``(lon, lat)``; 3D positions are rejected rather
  than truncated.
- Optional properties default to ``None`` but an explicit JSON ``null``
  is a violation.  Absence is fine; a null is not silently accepted.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal
from urllib.parse import urlsplit

from pydantic import AfterValidator, AllowInfNan, BaseModel, Field, Strict

ISO_TIMESTAMP_PATTERN = r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$"
HEX_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"
ABSOLUTE_URL_SCHEMES = ("http", "https")

# ---------------------------------------------------------------------------
# Scalar types
# ---------------------------------------------------------------------------


def require_absolute_url(value: str) -> str:
    """Check that *value* is an absolute ``http``/``https`` URL.

    Raises:
        ValueError: If the URL does not parse, has another scheme, or has
            no host.
    """
    if any(ch.isspace() for ch in value):
        msg = "url must not contain whitespace"
        raise ValueError(msg)
    try:
        parts = urlsplit(value)
        port_ok = parts.port is None or parts.port > 0
    except ValueError as exc:
        msg = f"not a valid url: {exc}"
        raise ValueError(msg) from exc
    if parts.scheme not in ABSOLUTE_URL_SCHEMES:
        msg = "url must start with https:// or http://"
        raise ValueError(msg)
    if not parts.hostname or not port_ok:
        msg = "url must have a valid host"
        raise ValueError(msg)
    return value


Ordinate = Annotated[float, Strict(), AllowInfNan(False)]
Position = tuple[Ordinate, Ordinate]
AbsoluteURL = Annotated[str, AfterValidator(require_absolute_url)]
HexColor = Annotated[str, Field(pattern=HEX_COLOR_PATTERN)]
IsoTimestamp = Annotated[str, Field(pattern=ISO_TIMESTAMP_PATTERN)]

_Line = Annotated[list[Position], Field(min_length=1)]
_Rings = Annotated[list[_Line], Field(min_length=1)]

# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


class PointGeometry(BaseModel):
    type: Literal["Point"]
    coordinates: Position


class MultiPointGeometry(BaseModel):
    type: Literal["MultiPoint"]
    coordinates: _Line


class LineStringGeometry(BaseModel):
    type: Literal["LineString"]
    coordinates: _Line


class MultiLineStringGeometry(BaseModel):
    type: Literal["MultiLineString"]
    coordinates: _Rings


class PolygonGeometry(BaseModel):
    type: Literal["Polygon"]
    coordinates: _Rings


class MultiPolygonGeometry(BaseModel):
    type: Literal["MultiPolygon"]
    coordinates: Annotated[list[_Rings], Field(min_length=1)]


Geometry = Annotated[
    PointGeometry
    | MultiPointGeometry
    | LineStringGeometry
    | MultiLineStringGeometry
    | PolygonGeometry
    | MultiPolygonGeometry,
    Field(discriminator="type"),
]

POLYGONAL_TYPES = frozenset({"Polygon", "MultiPolygon"})

# ---------------------------------------------------------------------------
# Feature
# ---------------------------------------------------------------------------


class MapFeatureProperties(BaseModel):
    """Catalogue properties of a map product.

    Attributes:
        last_updated: UTC timestamp ``YYYY-MM-DDTHH:MM:SSZ``.
        title: Full product title (non-empty).
        short_title: Publisher-supplied short label (e.g. a sheet number).
        truncated_title: Derived label for titles without ``short_title``.
        publisher: Key into the publisher icon registry.
        series: Product series within the publisher's catalogue.
        isbn: ISBN of the printed product.
        color: Series colour as ``#RRGGBB``.
        url: Product page.
        icon: Publisher icon.
        thumbnail: Cover thumbnail.
        images: Gallery images, in publisher order.
        description: Plain-text description.
        description_html: Sanitised HTML description.
    """

    last_updated: IsoTimestamp
    title: Annotated[str, Field(min_length=1)]
    short_title: str = Field(default=None)
    truncated_title: str = Field(default=None)
    publisher: str
    series: str = Field(default=None)
    isbn: str = Field(default=None)
    color: HexColor = Field(default=None)
    url: AbsoluteURL = Field(default=None)
    icon: AbsoluteURL = Field(default=None)
    thumbnail: AbsoluteURL = Field(default=None)
    images: list[AbsoluteURL] = Field(default=None)
    description: str = Field(default=None)
    description_html: str = Field(default=None)


class MapFeature(BaseModel):
    """Top-level shape of a single map feature."""

    type: Literal["Feature"]
    geometry: Geometry
    properties: MapFeatureProperties


class MapFeatureCollection(BaseModel):
    """Collection envelope.  Members are validated one by one."""

    type: Literal["FeatureCollection"]
    features: list[dict[str, Any]]
