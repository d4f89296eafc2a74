"""Build orchestrator: sources directory in, published artifacts out.

Runs the assembly pipeline end to end:

1. Load ``<sources_dir>/<source>/geojson.json`` for every source
   directory, in sorted order.
2. Assemble (validate, register publishers, sample).
3. Emit ``publishers.json``, the sample, the gzip archive and the
   uncompressed tile-generator input.
4. Describe the tile generator run.  The generator is not invoked here.
"""

from __future__ import annotations

import json
import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from paper_maps.activities.assemble import AssemblyResult, assemble
from paper_maps.activities.emit import (
    TileJob,
    build_tile_job,
    write_archive,
    write_collection,
    write_publishers,
)
from paper_maps.core.constants import (
    ARCHIVE_FILENAME,
    PUBLISHERS_FILENAME,
    SAMPLE_FILENAME,
    SOURCE_GEOJSON_NAME,
    TILE_INPUT_FILENAME,
    TILES_FILENAME,
)
from paper_maps.core.exceptions import ContractError

if TYPE_CHECKING:
    from datetime import datetime

    from paper_maps.core.config import PaperMapsConfig

logger = logging.getLogger("paper_maps.orchestrators.build")


@dataclass(frozen=True, slots=True)
class BuildResult:
    """Paths written by a build run plus the prepared tile job."""

    assembly: AssemblyResult
    publishers_path: Path
    sample_path: Path
    archive_path: Path
    tile_input_path: Path
    tile_job: TileJob

    def to_dict(self) -> dict[str, object]:
        return {
            "features": self.assembly.feature_count,
            "publishers": sorted(self.assembly.publishers),
            "publishers_path": str(self.publishers_path),
            "sample_path": str(self.sample_path),
            "archive_path": str(self.archive_path),
            "tile_input_path": str(self.tile_input_path),
            "tile_command": self.tile_job.to_args(),
        }


def load_source_collections(sources_dir: str | Path) -> list[tuple[str, Any]]:
    """Read every ``<source>/geojson.json`` under *sources_dir*.

    Returns:
        ``(source name, parsed JSON)`` pairs in sorted source order.

    Raises:
        ContractError: If *sources_dir* is missing, a source directory has
            no ``geojson.json``, or the file is not valid JSON.
    """
    root = Path(sources_dir)
    if not root.is_dir():
        msg = f"Sources directory not found: {root}"
        raise ContractError(msg, stage="load_sources")

    collections: list[tuple[str, Any]] = []
    for source_dir in sorted(p for p in root.iterdir() if p.is_dir()):
        path = source_dir / SOURCE_GEOJSON_NAME
        logger.info("Reading source | path=%s", path)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            msg = f"Source {source_dir.name!r} has no {SOURCE_GEOJSON_NAME}"
            raise ContractError(msg, stage="load_sources", correlation_id=source_dir.name) from exc
        try:
            collections.append((source_dir.name, json.loads(text)))
        except json.JSONDecodeError as exc:
            msg = f"{path}: invalid JSON: {exc.msg} (line {exc.lineno})"
            raise ContractError(msg, stage="load_sources", correlation_id=source_dir.name) from exc
    return collections


def run_build(
    config: PaperMapsConfig,
    *,
    seed: int | None = None,
    generated_at: datetime | None = None,
) -> BuildResult:
    """Assemble the sources in ``config.sources_dir`` into ``config.output_dir``.

    Args:
        config: Pipeline configuration.
        seed: Seed for the sample; ``None`` for a fresh random sample.
        generated_at: Timestamp embedded in the tileset description.

    Raises:
        ContractError: On unreadable or mistyped sources.
        FeatureValidationError: On the first invalid feature.
        UnknownPublisherError: On the first unregistered publisher.
    """
    out = Path(config.output_dir)
    logger.info(
        "Build started | sources=%s | output=%s | seed=%s",
        config.sources_dir,
        out,
        seed,
    )

    sources = load_source_collections(config.sources_dir)
    result = assemble(sources, rng=random.Random(seed))

    publishers_path = write_publishers(result.publishers, out / PUBLISHERS_FILENAME)
    sample_path = write_collection(result.sample, out / SAMPLE_FILENAME)
    archive_path = write_archive(result.merged, out / ARCHIVE_FILENAME)
    tile_input_path = write_collection(result.merged, out / TILE_INPUT_FILENAME)

    tile_job = build_tile_job(
        tile_input_path,
        out / TILES_FILENAME,
        attribution=config.load_attribution(),
        generated_at=generated_at,
    )

    logger.info(
        "Build completed | sources=%d | features=%d | publishers=%d",
        len(sources),
        result.feature_count,
        len(result.publishers),
    )
    return BuildResult(
        assembly=result,
        publishers_path=publishers_path,
        sample_path=sample_path,
        archive_path=archive_path,
        tile_input_path=tile_input_path,
        tile_job=tile_job,
    )
