"""Emit activity: write the assembled artifacts.

Outputs (see ``paper_maps.core.constants`` for file names):
- the merged collection, gzip-compressed, for archival
- the merged collection, uncompressed, as tile-generator input
- the sample collection, pretty-printed with one-line geometries
- the publisher registry

The tile generator itself is an external collaborator.  ``build_tile_job``
describes the exact command line it is handed; running it is left to
whoever owns the binary.

All writes are atomic.
"""

from __future__ import annotations

import gzip
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from paper_maps.core.constants import (
    PROJECT_URL,
    TILE_GENERATOR,
    TILE_LAYER_NAME,
    TILESET_NAME,
)
from paper_maps.utils.files import atomic_write_bytes, atomic_write_text
from paper_maps.utils.geojson import iter_collection_json
from paper_maps.utils.helpers import iso_timestamp

if TYPE_CHECKING:
    from collections.abc import Mapping

    from paper_maps.models.publisher import Publisher

logger = logging.getLogger("paper_maps.activities.emit")

#: gzip ``--best``.
ARCHIVE_COMPRESSION_LEVEL = 9


def _collection_text(collection: dict[str, Any], indent: int) -> str:
    return "".join(iter_collection_json(collection, indent=indent))


def write_collection(collection: dict[str, Any], path: str | Path, *, indent: int = 4) -> Path:
    """Write *collection* as pretty JSON with compact geometries."""
    path = atomic_write_text(path, _collection_text(collection, indent))
    logger.info("Wrote collection | path=%s | features=%d", path, len(collection["features"]))
    return path


def write_archive(collection: dict[str, Any], path: str | Path, *, indent: int = 4) -> Path:
    """Write *collection* gzip-compressed.

    The gzip header carries no modification time, so identical input
    yields byte-identical archives.
    """
    raw = _collection_text(collection, indent).encode("utf-8")
    data = gzip.compress(raw, compresslevel=ARCHIVE_COMPRESSION_LEVEL, mtime=0)
    path = atomic_write_bytes(path, data)
    logger.info(
        "Wrote archive | path=%s | raw=%d bytes | compressed=%d bytes",
        path,
        len(raw),
        len(data),
    )
    return path


def read_archive(path: str | Path) -> Any:
    """Read back an archive written by ``write_archive``."""
    with gzip.open(path, "rt", encoding="utf-8") as fp:
        return json.load(fp)


def write_publishers(publishers: Mapping[str, Publisher], path: str | Path) -> Path:
    """Write the publisher registry as ``{name: entry}``."""
    payload = {name: publisher.to_dict() for name, publisher in publishers.items()}
    path = atomic_write_text(path, json.dumps(payload, indent=4, ensure_ascii=False))
    logger.info("Wrote publishers | path=%s | publishers=%d", path, len(payload))
    return path


# ---------------------------------------------------------------------------
# Tile generation contract
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TileJob:
    """Command line for the vector tile generator.

    Attributes:
        input_path: Uncompressed merged GeoJSON.
        output_path: Tileset to (re)create.
        name: Human-readable tileset name.
        description: Description embedding the generation time.
        attribution: Attribution HTML, on one line.
        layer: Name of the single output layer.
        program: Generator executable.
    """

    input_path: str
    output_path: str
    name: str
    description: str
    attribution: str
    layer: str = TILE_LAYER_NAME
    program: str = TILE_GENERATOR

    def to_args(self) -> list[str]:
        """Return the argv, program first.

        Zoom levels are guessed from the data (``-zg``, ``--base-zoom=g``)
        and extended while features are still being dropped.
        """
        return [
            self.program,
            "--name",
            self.name,
            "--description",
            self.description,
            "--attribution",
            self.attribution,
            "--base-zoom=g",
            "-zg",
            "--extend-zooms-if-still-dropping",
            "--generate-ids",
            f"--layer={self.layer}",
            "--no-tile-stats",
            "--output",
            self.output_path,
            "--force",
            self.input_path,
        ]


def describe_tileset(generated_at: datetime | None = None) -> str:
    """Return the tileset description, e.g. ``Paper Maps generated ... by ...``."""
    project = PROJECT_URL.removeprefix("https://")
    return f"{TILESET_NAME} generated {iso_timestamp(generated_at)} by {project}"


def build_tile_job(
    input_path: str | Path,
    output_path: str | Path,
    *,
    attribution: str,
    generated_at: datetime | None = None,
) -> TileJob:
    """Describe the tile generator run for an assembled collection."""
    job = TileJob(
        input_path=str(input_path),
        output_path=str(output_path),
        name=TILESET_NAME,
        description=describe_tileset(generated_at),
        attribution=attribution.replace("\n", ""),
    )
    logger.info("Tile job prepared | input=%s | output=%s", job.input_path, job.output_path)
    return job
