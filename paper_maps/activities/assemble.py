"""Assemble activity: merge per-source collections into one corpus.

Every source collaborator writes its own FeatureCollection.  This activity
merges them into a single collection, checking each feature against the
schema on the way through, and derives the two side products the site
needs: the publisher registry (icon plus the series seen for each
publisher) and a small random sample for quick inspection.

Any invalid feature or unknown publisher aborts the whole run.  Filtering
out known-bad features is the source collaborator's job, not this one.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from paper_maps.activities.validate_feature import check_feature
from paper_maps.core.constants import (
    ELLIPSIS,
    PUBLISHER_ICONS,
    SAMPLE_SIZE_PER_PUBLISHER,
    TRUNCATION_LENGTH,
)
from paper_maps.core.exceptions import ContractError, PermanentError
from paper_maps.models.publisher import Publisher

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

logger = logging.getLogger("paper_maps.activities.assemble")


class UnknownPublisherError(PermanentError):
    """Raised when a feature names a publisher missing from the icon registry."""

    default_stage = "assemble"
    default_code = "PUBLISHER_UNKNOWN"

    def __init__(self, publisher: str, *, source: str = "") -> None:
        self.publisher = publisher
        super().__init__(
            f"Publisher {publisher!r} is not in the publisher icon registry",
            correlation_id=source,
        )


@dataclass(frozen=True, slots=True)
class AssemblyResult:
    """Output of one assembly run.

    Attributes:
        merged: The merged FeatureCollection, source order preserved.
        publishers: Publisher name → Publisher, in first-seen order.
        sample: A FeatureCollection of sampled features.
    """

    merged: dict[str, Any]
    publishers: dict[str, Publisher] = field(default_factory=dict)
    sample: dict[str, Any] = field(default_factory=dict)

    @property
    def feature_count(self) -> int:
        return len(self.merged.get("features", []))


def derive_truncated_title(title: str) -> str:
    """Return *title* shortened for map labels.

    Titles of up to ``TRUNCATION_LENGTH`` characters are returned verbatim.
    Longer ones keep their first ``TRUNCATION_LENGTH - len(ELLIPSIS)``
    characters followed by the ellipsis, so the result is exactly
    ``TRUNCATION_LENGTH`` long.
    """
    if len(title) <= TRUNCATION_LENGTH:
        return title
    return title[: TRUNCATION_LENGTH - len(ELLIPSIS)] + ELLIPSIS


def with_truncated_title(feature: dict[str, Any]) -> dict[str, Any]:
    """Return *feature* with ``truncated_title`` set unless it has ``short_title``.

    The input is not modified.  Features without a string title are returned
    unchanged so that validation reports the problem.
    """
    props = feature.get("properties")
    if not isinstance(props, dict) or "short_title" in props:
        return feature
    title = props.get("title")
    if not isinstance(title, str):
        return feature
    return {**feature, "properties": {**props, "truncated_title": derive_truncated_title(title)}}


def sample_features(
    by_publisher: Mapping[str, list[dict[str, Any]]],
    *,
    rng: random.Random,
    size: int = SAMPLE_SIZE_PER_PUBLISHER,
) -> list[dict[str, Any]]:
    """Pick sample features per publisher, publishers in sorted order.

    A publisher with fewer than *size* features contributes all of them and
    then its random draws on top, so small publishers can appear twice.
    Draws are distinct indices, capped at the pool size.
    """
    sampled: list[dict[str, Any]] = []
    for name in sorted(by_publisher):
        pool = by_publisher[name]
        if len(pool) < size:
            sampled.extend(pool)
        for i in rng.sample(range(len(pool)), min(size, len(pool))):
            sampled.append(pool[i])
    return sampled


def assemble(
    source_collections: Iterable[tuple[str, Any]],
    *,
    publisher_icons: Mapping[str, str] = PUBLISHER_ICONS,
    rng: random.Random | None = None,
) -> AssemblyResult:
    """Merge source FeatureCollections into one validated corpus.

    Args:
        source_collections: ``(source name, parsed FeatureCollection)``
            pairs, in the order their features should appear.
        publisher_icons: Publisher name → icon URL registry.
        rng: Random source for sampling.  Pass a seeded instance for a
            reproducible sample.

    Returns:
        AssemblyResult with the merged collection, publishers and sample.

    Raises:
        ContractError: If a source is not a FeatureCollection.
        FeatureValidationError: On the first invalid feature.
        UnknownPublisherError: On the first unregistered publisher.
    """
    if rng is None:
        rng = random.Random()

    features: list[dict[str, Any]] = []
    by_publisher: dict[str, list[dict[str, Any]]] = {}
    icons: dict[str, str] = {}
    series: dict[str, list[str]] = {}

    for source, collection in source_collections:
        if isinstance(collection, dict):
            ctype = collection.get("type")
        else:
            ctype = type(collection).__name__
        if ctype != "FeatureCollection":
            msg = f"Expected FeatureCollection, got {ctype!r}"
            raise ContractError(msg, stage="assemble", correlation_id=source)
        if not isinstance(collection.get("features"), list):
            msg = "FeatureCollection has no features list"
            raise ContractError(msg, stage="assemble", correlation_id=source)

        logger.info(
            "Assembling source | source=%s | features=%d",
            source,
            len(collection["features"]),
        )

        for i, raw in enumerate(collection["features"]):
            feature = with_truncated_title(raw) if isinstance(raw, dict) else raw
            check_feature(feature, source=f"{source}#{i}")

            props = feature["properties"]
            publisher = props["publisher"]
            if publisher not in icons:
                icon = publisher_icons.get(publisher)
                if not icon:
                    raise UnknownPublisherError(publisher, source=f"{source}#{i}")
                icons[publisher] = icon
                series[publisher] = []

            value = props.get("series")
            if value is not None and value not in series[publisher]:
                series[publisher].append(value)

            features.append(feature)
            by_publisher.setdefault(publisher, []).append(feature)

    publishers = {
        name: Publisher(name=name, icon=icon, series=tuple(series[name]))
        for name, icon in icons.items()
    }
    sample = sample_features(by_publisher, rng=rng)

    logger.info(
        "Assembly completed | features=%d | publishers=%d | sampled=%d",
        len(features),
        len(publishers),
        len(sample),
    )

    return AssemblyResult(
        merged={"type": "FeatureCollection", "features": features},
        publishers=publishers,
        sample={"type": "FeatureCollection", "features": sample},
    )
