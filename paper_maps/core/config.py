"""Pipeline configuration loaded from environment variables.

All configuration values have defaults that work from a checkout of the
repository (``sources/`` in, ``out/`` and ``.cache/`` alongside).

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any numeric
    value is out of its valid range.  Bad configuration is caught before
    the first request goes out.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from paper_maps.core.constants import DEFAULT_ATTRIBUTION, DEFAULT_USER_AGENT
from paper_maps.core.exceptions import PipelineError


class ConfigValidationError(PipelineError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class PaperMapsConfig:
    """Immutable pipeline configuration.

    Attributes:
        cache_dir: Directory holding fetch-cache artifacts and ``notfound.json``.
        sources_dir: Directory with one sub-directory per publisher source.
        output_dir: Directory receiving the assembled artifacts.
        user_agent: User agent sent on every outbound request.
        fetch_delay_s: Minimum delay in seconds before an uncached fetch.
        link_check_delay_s: Minimum delay in seconds between probes of one origin.
        request_timeout_s: Per-request timeout in seconds.
        max_concurrent_origins: Upper bound on origins probed at once.
        attribution_path: Optional file holding the tileset attribution HTML.
    """

    cache_dir: str = ".cache"
    sources_dir: str = "sources"
    output_dir: str = "out"
    user_agent: str = DEFAULT_USER_AGENT
    fetch_delay_s: float = 1.0
    link_check_delay_s: float = 1.0
    request_timeout_s: float = 30.0
    max_concurrent_origins: int = 16
    attribution_path: str = ""

    @classmethod
    def from_env(cls) -> PaperMapsConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a numeric value is out of range
                or a required string value is empty.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``PAPER_MAPS_FETCH_DELAY_S=abc``).
        """
        config = cls(
            cache_dir=os.getenv("PAPER_MAPS_CACHE_DIR", ".cache"),
            sources_dir=os.getenv("PAPER_MAPS_SOURCES_DIR", "sources"),
            output_dir=os.getenv("PAPER_MAPS_OUTPUT_DIR", "out"),
            user_agent=os.getenv("PAPER_MAPS_USER_AGENT", DEFAULT_USER_AGENT),
            fetch_delay_s=float(os.getenv("PAPER_MAPS_FETCH_DELAY_S", "1")),
            link_check_delay_s=float(os.getenv("PAPER_MAPS_LINK_CHECK_DELAY_S", "1")),
            request_timeout_s=float(os.getenv("PAPER_MAPS_REQUEST_TIMEOUT_S", "30")),
            max_concurrent_origins=int(os.getenv("PAPER_MAPS_MAX_CONCURRENT_ORIGINS", "16")),
            attribution_path=os.getenv("PAPER_MAPS_ATTRIBUTION_PATH", ""),
        )
        _validate(config)
        return config

    def load_attribution(self) -> str:
        """Return the tileset attribution as a single line of HTML."""
        if not self.attribution_path:
            return DEFAULT_ATTRIBUTION
        return Path(self.attribution_path).read_text(encoding="utf-8").replace("\n", "")


def _validate(config: PaperMapsConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if config.fetch_delay_s < 0:
        raise ConfigValidationError(
            "PAPER_MAPS_FETCH_DELAY_S",
            config.fetch_delay_s,
            "must be >= 0 (seconds)",
        )

    if config.link_check_delay_s < 0:
        raise ConfigValidationError(
            "PAPER_MAPS_LINK_CHECK_DELAY_S",
            config.link_check_delay_s,
            "must be >= 0 (seconds)",
        )

    if config.request_timeout_s <= 0:
        raise ConfigValidationError(
            "PAPER_MAPS_REQUEST_TIMEOUT_S",
            config.request_timeout_s,
            "must be > 0 (seconds)",
        )

    if config.max_concurrent_origins < 1:
        raise ConfigValidationError(
            "PAPER_MAPS_MAX_CONCURRENT_ORIGINS",
            config.max_concurrent_origins,
            "must be >= 1",
        )

    if not config.user_agent.strip():
        raise ConfigValidationError(
            "PAPER_MAPS_USER_AGENT",
            config.user_agent,
            "must not be empty",
        )

    if not config.cache_dir:
        raise ConfigValidationError(
            "PAPER_MAPS_CACHE_DIR",
            config.cache_dir,
            "must not be empty",
        )
