"""Tests for shared utilities: timestamps, constants, atomic writes, NDJSON.

Covers:
- iso_timestamp renders second-precision UTC
- Publisher registry and output file name constants
- Atomic writes leave no temporary files behind
- NDJSON streams end at EOF or at the first blank line
"""

from __future__ import annotations

import unittest
from datetime import UTC, datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from paper_maps.core.constants import (
    ARCHIVE_FILENAME,
    DEFAULT_USER_AGENT,
    PROJECT_URL,
    PUBLISHER_ICONS,
    TRUNCATION_LENGTH,
)
from paper_maps.utils.files import atomic_write_bytes, atomic_write_text
from paper_maps.utils.helpers import iso_timestamp
from paper_maps.utils.ndjson import NDJSONStreamError, NDJSONWriter, iter_ndjson

# ---------------------------------------------------------------------------
# Tests: core.constants
# ---------------------------------------------------------------------------


class TestConstants(unittest.TestCase):
    """Verify centralised pipeline constants."""

    def test_user_agent_identifies_tool_and_contact(self) -> None:
        assert DEFAULT_USER_AGENT.startswith("paper-maps/")
        assert PROJECT_URL in DEFAULT_USER_AGENT

    def test_registry_icons_are_https(self) -> None:
        assert set(PUBLISHER_ICONS) == {
            "Harvey Maps",
            "Ordnance Survey",
            "Ordnance Survey of Northern Ireland",
            "US Forest Service",
        }
        assert all(url.startswith("https://") for url in PUBLISHER_ICONS.values())

    def test_output_names(self) -> None:
        assert ARCHIVE_FILENAME == "paper_maps_geojson.json.gz"
        assert TRUNCATION_LENGTH == 23


# ---------------------------------------------------------------------------
# Tests: utils.helpers
# ---------------------------------------------------------------------------


class TestIsoTimestamp(unittest.TestCase):
    """iso_timestamp renders second-precision UTC."""

    def test_aware_datetime(self) -> None:
        moment = datetime(2025, 2, 14, 9, 30, 0, 123456, tzinfo=UTC)
        assert iso_timestamp(moment) == "2025-02-14T09:30:00Z"

    def test_converts_to_utc(self) -> None:
        moment = datetime(2025, 2, 14, 10, 30, tzinfo=timezone(timedelta(hours=1)))
        assert iso_timestamp(moment) == "2025-02-14T09:30:00Z"

    def test_naive_is_utc(self) -> None:
        assert iso_timestamp(datetime(2025, 2, 14, 9, 30)) == "2025-02-14T09:30:00Z"

    def test_default_now(self) -> None:
        fixed = datetime(2024, 12, 31, 23, 59, 59, tzinfo=UTC)
        with patch("paper_maps.utils.helpers.datetime") as mock_dt:
            mock_dt.now.return_value = fixed
            assert iso_timestamp() == "2024-12-31T23:59:59Z"


# ---------------------------------------------------------------------------
# Tests: utils.files
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    """Atomic writes create parents and leave no temp files."""

    def test_creates_parents(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "c.bin"
        assert atomic_write_bytes(target, b"data") == target
        assert target.read_bytes() == b"data"

    def test_replaces_existing(self, tmp_path: Path) -> None:
        target = tmp_path / "c.txt"
        target.write_text("old")
        atomic_write_text(target, "néw")
        assert target.read_text(encoding="utf-8") == "néw"
        assert [p.name for p in tmp_path.iterdir()] == ["c.txt"]

    def test_failed_write_keeps_old_file(self, tmp_path: Path) -> None:
        target = tmp_path / "c.txt"
        target.write_text("old")
        with patch("paper_maps.utils.files.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                atomic_write_text(target, "new")
        assert target.read_text() == "old"
        assert [p.name for p in tmp_path.iterdir()] == ["c.txt"]


# ---------------------------------------------------------------------------
# Tests: utils.ndjson
# ---------------------------------------------------------------------------


class TestNDJSON:
    """NDJSON writer and lazy reader."""

    def test_round_trip(self, tmp_path: Path) -> None:
        path = tmp_path / "results.ndjson"
        values = [{"scrapeStartTimestamp": "2025-02-14T09:30:00Z"}, {"n": 1}, ["x", "ÿ"]]
        with NDJSONWriter.open(path) as out:
            for value in values:
                out.write(value)
        assert list(iter_ndjson(path)) == values
        assert path.read_text(encoding="utf-8").count("\n") == 3

    def test_blank_line_ends_stream(self, tmp_path: Path) -> None:
        path = tmp_path / "x.ndjson"
        path.write_text('{"a": 1}\n\n{"b": 2}\n')
        assert list(iter_ndjson(path)) == [{"a": 1}]

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "x.ndjson"
        path.write_text("")
        assert list(iter_ndjson(path)) == []

    def test_lazy(self, tmp_path: Path) -> None:
        path = tmp_path / "x.ndjson"
        path.write_text('{"a": 1}\nnot json\n')
        stream = iter_ndjson(path)
        assert next(stream) == {"a": 1}
        with pytest.raises(NDJSONStreamError) as exc_info:
            next(stream)
        assert exc_info.value.line_number == 2
        assert exc_info.value.code == "NDJSON_DECODE_FAILED"

    def test_write_after_close(self, tmp_path: Path) -> None:
        out = NDJSONWriter.open(tmp_path / "x.ndjson")
        out.close()
        with pytest.raises(ValueError, match="closed"):
            out.write({})
