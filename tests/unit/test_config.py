"""Tests for pipeline configuration.

Covers:
- Default values
- Loading from environment variables
- Type coercion (string env vars → numeric fields)
- Fail-fast range validation
- Attribution loading
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from paper_maps.core.config import ConfigValidationError, PaperMapsConfig
from paper_maps.core.constants import DEFAULT_ATTRIBUTION, DEFAULT_USER_AGENT


class TestPaperMapsConfigDefaults:
    """Verify default configuration values."""

    def test_default_directories(self) -> None:
        cfg = PaperMapsConfig()
        assert cfg.cache_dir == ".cache"
        assert cfg.sources_dir == "sources"
        assert cfg.output_dir == "out"

    def test_default_user_agent(self) -> None:
        assert PaperMapsConfig().user_agent == DEFAULT_USER_AGENT

    def test_default_delays(self) -> None:
        cfg = PaperMapsConfig()
        assert cfg.fetch_delay_s == 1.0
        assert cfg.link_check_delay_s == 1.0

    def test_default_limits(self) -> None:
        cfg = PaperMapsConfig()
        assert cfg.request_timeout_s == 30.0
        assert cfg.max_concurrent_origins == 16


class TestPaperMapsConfigFromEnv:
    """Verify loading from environment variables."""

    def test_loads_from_environment(self) -> None:
        """All env vars are read and coerced to correct types."""
        env = {
            "PAPER_MAPS_CACHE_DIR": "/tmp/cache",
            "PAPER_MAPS_SOURCES_DIR": "src",
            "PAPER_MAPS_OUTPUT_DIR": "dist",
            "PAPER_MAPS_USER_AGENT": "test-agent (ops@example.test)",
            "PAPER_MAPS_FETCH_DELAY_S": "0.5",
            "PAPER_MAPS_LINK_CHECK_DELAY_S": "2",
            "PAPER_MAPS_REQUEST_TIMEOUT_S": "10",
            "PAPER_MAPS_MAX_CONCURRENT_ORIGINS": "4",
            "PAPER_MAPS_ATTRIBUTION_PATH": "attribution.html",
        }
        with patch.dict(os.environ, env, clear=False):
            cfg = PaperMapsConfig.from_env()

        assert cfg.cache_dir == "/tmp/cache"
        assert cfg.sources_dir == "src"
        assert cfg.output_dir == "dist"
        assert cfg.user_agent == "test-agent (ops@example.test)"
        assert cfg.fetch_delay_s == 0.5
        assert cfg.link_check_delay_s == 2.0
        assert cfg.request_timeout_s == 10.0
        assert cfg.max_concurrent_origins == 4
        assert cfg.attribution_path == "attribution.html"

    def test_defaults_when_env_missing(self) -> None:
        """Missing environment variables fall back to defaults."""
        with patch.dict(os.environ, {}, clear=True):
            cfg = PaperMapsConfig.from_env()
        assert cfg == PaperMapsConfig()

    def test_frozen_immutability(self) -> None:
        cfg = PaperMapsConfig()
        with pytest.raises(AttributeError):
            cfg.cache_dir = "elsewhere"  # type: ignore[misc]


class TestPaperMapsConfigValidation:
    """Fail-fast range validation in from_env."""

    def test_zero_delays_accepted(self) -> None:
        env = {"PAPER_MAPS_FETCH_DELAY_S": "0", "PAPER_MAPS_LINK_CHECK_DELAY_S": "0"}
        with patch.dict(os.environ, env, clear=True):
            cfg = PaperMapsConfig.from_env()
        assert cfg.fetch_delay_s == 0.0
        assert cfg.link_check_delay_s == 0.0

    @pytest.mark.parametrize(
        ("key", "value", "match"),
        [
            ("PAPER_MAPS_FETCH_DELAY_S", "-1", "must be >= 0"),
            ("PAPER_MAPS_LINK_CHECK_DELAY_S", "-0.5", "must be >= 0"),
            ("PAPER_MAPS_REQUEST_TIMEOUT_S", "0", "must be > 0"),
            ("PAPER_MAPS_MAX_CONCURRENT_ORIGINS", "0", "must be >= 1"),
            ("PAPER_MAPS_USER_AGENT", "  ", "must not be empty"),
            ("PAPER_MAPS_CACHE_DIR", "", "must not be empty"),
        ],
    )
    def test_out_of_range_rejected(self, key: str, value: str, match: str) -> None:
        with (
            patch.dict(os.environ, {key: value}, clear=True),
            pytest.raises(ConfigValidationError, match=match) as exc_info,
        ):
            PaperMapsConfig.from_env()
        assert exc_info.value.key == key
        assert key in str(exc_info.value)

    def test_non_numeric_env_raises_value_error(self) -> None:
        with (
            patch.dict(os.environ, {"PAPER_MAPS_FETCH_DELAY_S": "abc"}, clear=True),
            pytest.raises(ValueError),
        ):
            PaperMapsConfig.from_env()

    def test_error_taxonomy_fields(self) -> None:
        with (
            patch.dict(os.environ, {"PAPER_MAPS_REQUEST_TIMEOUT_S": "-3"}, clear=True),
            pytest.raises(ConfigValidationError) as exc_info,
        ):
            PaperMapsConfig.from_env()
        err = exc_info.value
        assert err.value == -3.0
        assert err.stage == "config"
        assert err.code == "CONFIG_VALIDATION_FAILED"


class TestAttribution:
    def test_builtin_attribution(self) -> None:
        assert PaperMapsConfig().load_attribution() == DEFAULT_ATTRIBUTION

    def test_file_newlines_removed(self, tmp_path: Path) -> None:
        path = tmp_path / "attribution.html"
        path.write_text('<a href="https://example.test">A</a>\n<a href="https://b.test">B</a>\n')
        cfg = PaperMapsConfig(attribution_path=str(path))
        assert cfg.load_attribution() == (
            '<a href="https://example.test">A</a><a href="https://b.test">B</a>'
        )
