"""Resumable, content-addressed fetch cache.

Scraping a publisher catalogue takes thousands of requests and is often
interrupted.  Every successful response is persisted under a key derived
from its URL, so re-running a scraper replays from disk and only fetches
what is still missing.

Lookup order for ``fetch_bytes`` / ``fetch_text`` / ``fetch_json``:
    1. A cached artifact exists → return it.  No network I/O.
    2. The URL is in the persisted not-found set → ``NotFoundError``
       (``known_missing=True``).  No network I/O.
    3. Fetch.  404 → record the URL in the not-found set, then
       ``NotFoundError``.  Any other failure → ``FetchError`` and nothing
       is cached, so the next run retries.  Success → persist, return.

``fetch_cached`` / ``cached_json`` memoize arbitrary async producers (for
example "search the catalogue page for exactly one product link").

Nothing expires.  Invalidation is deleting files from the cache directory.
Pacing is the caller's job: pass a ``Pacer`` and it is awaited before
every uncached network fetch.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, urlsplit

import httpx

from paper_maps.core.constants import NOT_FOUND_FILENAME
from paper_maps.core.exceptions import ContractError, PermanentError, TransientError
from paper_maps.fetch.pacing import Pacer
from paper_maps.utils.files import atomic_write_bytes, atomic_write_text

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from paper_maps.core.config import PaperMapsConfig
    from paper_maps.fetch.session import SharedClient

logger = logging.getLogger("paper_maps.fetch.cache")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Keys longer than this are replaced by hostname + SHA-256 digest.
MAX_KEY_LENGTH = 100

# Characters encodeURIComponent leaves alone besides alphanumerics.
_URI_COMPONENT_SAFE = "-_.!~*'()"

# Sub-directory for memoized producer results, kept apart from raw responses.
MEMO_DIR = "memo"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class FetchError(TransientError):
    """Network failure other than 404.  Never cached; re-run to retry.

    Attributes:
        url: The URL that failed.
        status_code: HTTP status, or ``None`` for transport errors.
    """

    default_stage = "fetch"
    default_code = "FETCH_FAILED"

    def __init__(self, url: str, message: str, *, status_code: int | None = None) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(f"Fetch failed for {url}: {message}")


class NotFoundError(PermanentError):
    """The URL returned 404, now or on an earlier run.

    Attributes:
        url: The missing URL.
        known_missing: ``True`` if the failure came from the persisted
            not-found set without any network request.
    """

    default_stage = "fetch"
    default_code = "FETCH_NOT_FOUND"

    def __init__(self, url: str, *, known_missing: bool = False) -> None:
        self.url = url
        self.known_missing = known_missing
        detail = "in not-found cache" if known_missing else "404 Not Found"
        super().__init__(f"{url}: {detail}")


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


def derive_cache_key(key: str) -> str:
    """Derive a filesystem-safe cache file name from *key*.

    The key is percent-encoded like ``encodeURIComponent``.  If that is
    longer than ``MAX_KEY_LENGTH`` it becomes ``<hostname>+<sha256 hex>``
    (``key+<sha256 hex>`` when *key* is not a URL).
    """
    encoded = quote(key, safe=_URI_COMPONENT_SAFE)
    if len(encoded) <= MAX_KEY_LENGTH:
        return encoded
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
    try:
        host = urlsplit(key).hostname
    except ValueError:
        host = None
    return f"{host or 'key'}+{digest}"


# ---------------------------------------------------------------------------
# Not-found set
# ---------------------------------------------------------------------------


class NotFoundSet:
    """Persisted set of URLs known to return 404.

    Stored as a JSON list.  Appends are serialized through one lock and
    merged with what is on disk before the atomic rewrite.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._urls: list[str] | None = None
        self._lock = asyncio.Lock()

    def _read(self) -> list[str]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            msg = f"{self._path} is not valid JSON: {exc.msg} (line {exc.lineno})"
            raise ContractError(msg, stage="fetch") from exc
        if not isinstance(data, list):
            msg = f"{self._path} must hold a JSON list, got {type(data).__name__}"
            raise ContractError(msg, stage="fetch")
        return [str(u) for u in data]

    def __contains__(self, url: object) -> bool:
        if self._urls is None:
            self._urls = self._read()
        return url in self._urls

    async def add(self, url: str) -> None:
        async with self._lock:
            urls = self._read()
            if url not in urls:
                urls.append(url)
                atomic_write_text(self._path, json.dumps(urls, indent=2))
            self._urls = urls


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class FetchCache:
    """Disk-backed fetch cache.

    Args:
        cache_dir: Directory for artifacts; created on first write.
        session: Shared HTTP client handle.
        pacer: Optional pacer awaited before every uncached fetch.
    """

    def __init__(
        self,
        cache_dir: str | Path,
        session: SharedClient,
        *,
        pacer: Pacer | None = None,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self._session = session
        self._pacer = pacer
        self._not_found = NotFoundSet(self.cache_dir / NOT_FOUND_FILENAME)

    @classmethod
    def from_config(cls, config: PaperMapsConfig, session: SharedClient) -> FetchCache:
        """Build a cache in ``config.cache_dir`` paced by ``config.fetch_delay_s``."""
        return cls(config.cache_dir, session, pacer=Pacer(config.fetch_delay_s))

    def path_for(self, url: str) -> Path:
        """Return the artifact path for a URL response."""
        return self.cache_dir / derive_cache_key(url)

    def memo_path_for(self, key: str) -> Path:
        """Return the artifact path for a memoized producer result."""
        return self.cache_dir / MEMO_DIR / derive_cache_key(key)

    def is_known_missing(self, url: str) -> bool:
        return url in self._not_found

    # ------------------------------------------------------------------
    # Generic memoization
    # ------------------------------------------------------------------

    async def _cached(self, path: Path, producer: Callable[[], Awaitable[bytes]]) -> bytes:
        if path.exists():
            logger.debug("Cache hit | path=%s", path)
            return path.read_bytes()
        data = await producer()
        atomic_write_bytes(path, data)
        logger.debug("Cached | path=%s | size=%d bytes", path, len(data))
        return data

    async def fetch_cached(self, key: str, producer: Callable[[], Awaitable[bytes]]) -> bytes:
        """Return the memoized bytes for *key*, running *producer* on a miss.

        A producer that raises leaves nothing behind; the next call runs it
        again.
        """
        return await self._cached(self.memo_path_for(key), producer)

    async def cached_json(self, key: str, producer: Callable[[], Awaitable[Any]]) -> Any:
        """Memoize a JSON-serializable producer result under *key*."""

        async def produce() -> bytes:
            value = await producer()
            return json.dumps(value, ensure_ascii=False).encode("utf-8")

        return json.loads(await self.fetch_cached(key, produce))

    # ------------------------------------------------------------------
    # URL fetches
    # ------------------------------------------------------------------

    async def fetch_bytes(self, url: str) -> bytes:
        """Fetch *url* through the cache.

        Raises:
            NotFoundError: The URL returned 404 now or on an earlier run.
            FetchError: Any other failure; nothing is cached.
        """

        async def download() -> bytes:
            if self.is_known_missing(url):
                logger.info("Skipping known-missing url | url=%s", url)
                raise NotFoundError(url, known_missing=True)
            return await self._download(url)

        return await self._cached(self.path_for(url), download)

    async def fetch_text(self, url: str) -> str:
        """Fetch *url* through the cache and decode it as UTF-8."""
        data = await self.fetch_bytes(url)
        return data.decode("utf-8", errors="replace")

    async def fetch_json(self, url: str) -> Any:
        """Fetch *url* through the cache and parse it as JSON.

        Raises:
            ContractError: If the cached body is not valid JSON.
        """
        text = await self.fetch_text(url)
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            msg = f"{url}: response is not valid JSON: {exc.msg}"
            raise ContractError(msg, stage="fetch") from exc

    async def _download(self, url: str) -> bytes:
        if self._pacer is not None:
            await self._pacer.wait()

        logger.info("Downloading | url=%s", url)
        async with self._session.lease() as client:
            try:
                response = await client.get(url, follow_redirects=True)
            except httpx.HTTPError as exc:
                raise FetchError(url, f"request failed: {exc}") from exc

        if response.status_code == httpx.codes.NOT_FOUND:
            await self._not_found.add(url)
            logger.warning("Recorded not-found url | url=%s", url)
            raise NotFoundError(url)
        if not response.is_success:
            raise FetchError(
                url,
                f"HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response.content
