"""Data models and schemas.

Defines the data structures used throughout the pipeline:
- MapFeature: pydantic schema of a single paper-map GeoJSON feature
- MapFeatureCollection: collection envelope
- Publisher: per-publisher registry entry derived during assembly
"""

from paper_maps.models.feature import (
    MapFeature,
    MapFeatureCollection,
    MapFeatureProperties,
    require_absolute_url,
)
from paper_maps.models.publisher import Publisher

__all__ = [
    "MapFeature",
    "MapFeatureCollection",
    "MapFeatureProperties",
    "Publisher",
    "require_absolute_url",
]
