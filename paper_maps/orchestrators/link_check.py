"""Link check orchestrator: archive in, ``LinkReport`` out."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from paper_maps.activities.check_links import LinkReport, check_links
from paper_maps.activities.emit import read_archive
from paper_maps.activities.validate_feature import check_collection
from paper_maps.core.constants import ARCHIVE_FILENAME
from paper_maps.fetch.session import SharedClient

if TYPE_CHECKING:
    import httpx

    from paper_maps.core.config import PaperMapsConfig

logger = logging.getLogger("paper_maps.orchestrators.link_check")


def default_archive_path(config: PaperMapsConfig) -> Path:
    return Path(config.output_dir) / ARCHIVE_FILENAME


async def run_link_check(
    config: PaperMapsConfig,
    archive_path: str | Path | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> LinkReport:
    """Validate the archived collection and probe every URL it references.

    Args:
        config: Pipeline configuration (user agent, delays, timeouts).
        archive_path: Archive to check.  Defaults to the build output.
        transport: Optional httpx transport, for tests.

    Raises:
        FeatureValidationError: If the archive does not validate.
    """
    path = Path(archive_path) if archive_path else default_archive_path(config)
    collection = read_archive(path)
    check_collection(collection, source=str(path))
    logger.info("Checking archive | path=%s | features=%d", path, len(collection["features"]))

    session = SharedClient(
        user_agent=config.user_agent,
        timeout_s=config.request_timeout_s,
        transport=transport,
    )
    return await check_links(
        collection,
        session=session,
        delay_s=config.link_check_delay_s,
        max_concurrent_origins=config.max_concurrent_origins,
    )
