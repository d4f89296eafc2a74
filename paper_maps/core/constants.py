"""Shared pipeline constants.

Centralises the publisher icon registry, output file names and the
string literals shared by the assembler, the emitters and the CLI.
"""

from __future__ import annotations

from paper_maps import __version__

PROJECT_URL: str = "https://github.com/dzfranklin/paper-maps"
"""Project home, used as the contact address in the user agent."""

DEFAULT_USER_AGENT: str = f"paper-maps/{__version__} (+{PROJECT_URL})"
"""Sent on every outbound request."""

# ---------------------------------------------------------------------------
# Publisher registry
# ---------------------------------------------------------------------------

PUBLISHER_ICONS: dict[str, str] = {
    "Harvey Maps": "https://plantopo-storage.b-cdn.net/paper-maps/publisher-icons/harvey.png",
    "Ordnance Survey": "https://plantopo-storage.b-cdn.net/paper-maps/publisher-icons/os.png",
    "Ordnance Survey of Northern Ireland": (
        "https://plantopo-storage.b-cdn.net/paper-maps/publisher-icons/osni.png"
    ),
    "US Forest Service": "https://plantopo-storage.b-cdn.net/paper-maps/publisher-icons/usfs.png",
}
"""Publisher name → icon URL.  Every new source needs an entry here."""

# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------

TRUNCATION_LENGTH: int = 23
"""Titles longer than this get a ``truncated_title``."""

ELLIPSIS: str = "..."

SAMPLE_SIZE_PER_PUBLISHER: int = 3

# ---------------------------------------------------------------------------
# Output layout
# ---------------------------------------------------------------------------

SOURCE_GEOJSON_NAME: str = "geojson.json"
"""File each source collaborator writes inside its ``sources/<name>/`` dir."""

PUBLISHERS_FILENAME: str = "publishers.json"
SAMPLE_FILENAME: str = "geojson_sample.json"
ARCHIVE_FILENAME: str = "paper_maps_geojson.json.gz"
TILE_INPUT_FILENAME: str = "paper_maps_geojson.json"
TILES_FILENAME: str = "paper_maps.pmtiles"

NOT_FOUND_FILENAME: str = "notfound.json"
"""Name of the persisted not-found set inside the cache directory."""

# ---------------------------------------------------------------------------
# Tile generation
# ---------------------------------------------------------------------------

TILESET_NAME: str = "Paper Maps"
TILE_LAYER_NAME: str = "default"
TILE_GENERATOR: str = "tippecanoe"

DEFAULT_ATTRIBUTION: str = (
    '<a href="https://github.com/dzfranklin/paper-maps">Paper Maps</a> '
    "compiled from publisher catalogues"
)
