"""Structural schema checks for a single feature.

Runs the pydantic ``MapFeature`` model over the raw feature dict and
turns every pydantic error into a ``Violation`` carrying a dotted field
path.  This covers the type literal, the geometry discriminated union,
property types and formats, and coordinate dimensionality.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import ValidationError as PydanticValidationError

from paper_maps.activities.validate_feature._constants import GEOMETRY_TYPES
from paper_maps.models.feature import MapFeature, MapFeatureCollection


@dataclass(frozen=True, slots=True)
class Violation:
    """A single rule a feature breaks.

    Attributes:
        path: Dotted field path (``geometry.coordinates.0.3``); empty for
            the feature itself.
        reason: Human-readable description of the rule.
    """

    path: str
    reason: str

    def __str__(self) -> str:
        return f"{self.path or '<feature>'}: {self.reason}"

    def under(self, prefix: str) -> Violation:
        """Return this violation re-rooted below *prefix*."""
        path = f"{prefix}.{self.path}" if self.path else prefix
        return Violation(path=path, reason=self.reason)


def format_loc(loc: tuple[int | str, ...]) -> str:
    """Render a pydantic error location as a dotted path.

    The discriminator tag pydantic inserts after ``geometry`` is dropped so
    paths read ``geometry.coordinates.0`` regardless of geometry type.
    """
    parts = list(loc)
    if len(parts) > 1 and parts[0] == "geometry" and parts[1] in GEOMETRY_TYPES:
        del parts[1]
    return ".".join(str(p) for p in parts)


def _violations_from(exc: PydanticValidationError) -> list[Violation]:
    return [Violation(path=format_loc(err["loc"]), reason=err["msg"]) for err in exc.errors()]


def schema_violations(feature: object) -> list[Violation]:
    """Return the structural violations of *feature* (empty when it conforms)."""
    try:
        MapFeature.model_validate(feature)
    except PydanticValidationError as exc:
        return _violations_from(exc)
    return []


def envelope_violations(collection: object) -> list[Violation]:
    """Return violations of the ``FeatureCollection`` envelope only."""
    try:
        MapFeatureCollection.model_validate(collection)
    except PydanticValidationError as exc:
        return _violations_from(exc)
    return []
