"""Feature validation activity: composable checks.

Validates a single paper-map feature against the canonical schema.  A
feature is valid only if every stage passes; nothing is coerced or
repaired here.

The checks run in order and stop at the first failing stage:
- **_schema**: pydantic ``MapFeature`` model (type literal, geometry
  union, property types/formats, 2D finite coordinates)
- **_geometry**: line lengths, ring length and closure
- **_geometry**: right-hand-rule winding order of polygon rings

Callers decide what to do with violations: ``validate_feature`` returns
them, ``check_feature`` raises ``FeatureValidationError``.
"""

from __future__ import annotations

import logging
from typing import Any

from paper_maps.activities.validate_feature._constants import (
    MAX_REPORTED_POSITIONS,
    MIN_LINE_POSITIONS,
    MIN_RING_POSITIONS,
)
from paper_maps.activities.validate_feature._geometry import (
    geometry_violations,
    rewind_polygon,
    rewind_ring,
    ring_signed_area,
    winding_violations,
)
from paper_maps.activities.validate_feature._schema import (
    Violation,
    envelope_violations,
    schema_violations,
)
from paper_maps.core.exceptions import ValidationError
from paper_maps.utils.geojson import render_feature

logger = logging.getLogger("paper_maps.activities.validate_feature")

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    "MAX_REPORTED_POSITIONS",
    "MIN_LINE_POSITIONS",
    "MIN_RING_POSITIONS",
    "FeatureValidationError",
    "Violation",
    "check_collection",
    "check_feature",
    "geometry_violations",
    "rewind_polygon",
    "rewind_ring",
    "ring_signed_area",
    "schema_violations",
    "validate_collection",
    "validate_feature",
    "winding_violations",
]


class FeatureValidationError(ValidationError):
    """Raised when a feature (or collection) breaks the schema.

    Attributes:
        violations: Every violation found, in check order.
        feature: The offending feature, or ``None`` for envelope errors.
    """

    default_stage = "validate_feature"
    default_code = "FEATURE_INVALID"

    def __init__(
        self,
        violations: list[Violation],
        feature: object = None,
        *,
        source: str = "",
    ) -> None:
        self.violations = list(violations)
        self.feature = feature
        lines = [f"invalid feature ({len(self.violations)} violation(s)):"]
        lines.extend(f"  {v}" for v in self.violations)
        if feature is not None:
            lines.append(self.rendered_feature)
        super().__init__("\n".join(lines), correlation_id=source)

    @property
    def rendered_feature(self) -> str:
        """Pretty-printed feature with large coordinate arrays elided."""
        if self.feature is None:
            return ""
        return render_feature(self.feature, indent=2, max_positions=MAX_REPORTED_POSITIONS)


def validate_feature(feature: object) -> list[Violation]:
    """Validate one feature.

    Returns:
        The violations of the first failing stage, or an empty list when
        the feature is valid.
    """
    violations = schema_violations(feature)
    if violations:
        return violations

    geometry: dict[str, Any] = feature["geometry"]  # type: ignore[index]
    violations = geometry_violations(geometry)
    if violations:
        return violations

    return winding_violations(geometry)


def check_feature(feature: object, *, source: str = "") -> None:
    """Validate one feature, raising on the first failing stage.

    Raises:
        FeatureValidationError: With the violations and rendered feature.
    """
    violations = validate_feature(feature)
    if violations:
        logger.error(
            "Invalid feature | source=%s | violations=%d | first=%s",
            source,
            len(violations),
            violations[0],
        )
        raise FeatureValidationError(violations, feature, source=source)


def validate_collection(collection: object) -> list[Violation]:
    """Validate a FeatureCollection and every member feature.

    Member violations are re-rooted under ``features.<index>``.
    """
    violations = envelope_violations(collection)
    if violations:
        return violations

    features: list[Any] = collection["features"]  # type: ignore[index]
    for i, feature in enumerate(features):
        violations.extend(v.under(f"features.{i}") for v in validate_feature(feature))
    return violations


def check_collection(collection: object, *, source: str = "") -> None:
    """Validate a FeatureCollection, raising on the first invalid member.

    Raises:
        FeatureValidationError: For an envelope error (``feature`` is
            ``None``) or for the first invalid member feature.
    """
    violations = envelope_violations(collection)
    if violations:
        raise FeatureValidationError(violations, source=source)

    for i, feature in enumerate(collection["features"]):  # type: ignore[index]
        check_feature(feature, source=f"{source}#{i}" if source else f"#{i}")
