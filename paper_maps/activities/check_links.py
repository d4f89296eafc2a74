"""Check links activity: verify every URL in the merged corpus is reachable.

Steps:
1. Extract URL references from each feature: ``url``, ``icon``,
   ``thumbnail``, every entry of ``images``, and every ``<a href>`` and
   ``<img src>`` in ``description_html`` (resolved against the feature's
   own ``url``).
2. Normalize each URL and bucket it by origin (scheme, host, port).  Each
   distinct URL is probed once no matter how many features reference it;
   the features are kept for attribution.
3. Probe the origins concurrently.  Within one origin URLs are probed one
   at a time, in discovery order, with a minimum delay between requests.
4. A probe is a HEAD following redirects, then (if that did not succeed) a
   GET following redirects.  A URL that fails both is broken.

One broken URL never stops the others from being checked.  The report is
ordered by discovery, not by completion, so it is stable across runs.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, urljoin, urlsplit, urlunsplit

import httpx
import lxml.html
from lxml.etree import ParserError

from paper_maps.core.exceptions import PermanentError
from paper_maps.fetch.pacing import Pacer

if TYPE_CHECKING:
    from collections.abc import Iterable

    from paper_maps.fetch.session import SharedClient

logger = logging.getLogger("paper_maps.activities.check_links")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

URL_PROPERTIES = ("url", "icon", "thumbnail")
PROBED_SCHEMES = ("http", "https")
DEFAULT_PORTS = {"http": 80, "https": 443}

#: Origin under which unresolvable references are reported.
NULL_ORIGIN = "null"

MAX_ATTRIBUTION_LENGTH = 1024
ATTRIBUTION_ELLIPSIS = "..."

# Characters left alone when re-encoding a path or query.  ``%`` is kept so
# existing escapes are not double encoded.
_PATH_SAFE = "/%:@!$&'()*+,;=-._~"
_QUERY_SAFE = _PATH_SAFE + "?"
_ESCAPE = re.compile(r"%[0-9a-fA-F]{2}")

#: origin → normalized URL → referencing features, in discovery order.
OriginLinkSet = dict[str, dict[str, list[dict[str, Any]]]]


class LinkIntegrityFailure(PermanentError):
    """Raised when a link check finds broken URLs.

    Attributes:
        report: The full ``LinkReport``.
    """

    default_stage = "check_links"
    default_code = "LINKS_BROKEN"

    def __init__(self, report: LinkReport) -> None:
        self.report = report
        super().__init__(f"{report.failure_count} urls are broken\n{report.format()}")


# ---------------------------------------------------------------------------
# Extraction and normalization
# ---------------------------------------------------------------------------


def _html_references(html: str) -> list[str]:
    """Return ``<a href>`` values, then ``<img src>`` values, in document order."""
    if not html.strip():
        return []
    try:
        root = lxml.html.fragment_fromstring(html, create_parent="div")
    except ParserError:
        logger.debug("Unparseable description_html | length=%d", len(html))
        return []
    refs = [a.get("href") for a in root.iter("a") if a.get("href") is not None]
    refs.extend(img.get("src") for img in root.iter("img") if img.get("src") is not None)
    return refs


def extract_urls(feature: dict[str, Any]) -> list[str]:
    """Return every URL reference in *feature*, in discovery order.

    References found in ``description_html`` are resolved against the
    feature's ``url`` when it has one.
    """
    props = feature.get("properties") or {}
    urls = [props[key] for key in URL_PROPERTIES if isinstance(props.get(key), str)]
    urls.extend(u for u in props.get("images") or [] if isinstance(u, str))

    html = props.get("description_html")
    if isinstance(html, str):
        base = props.get("url")
        for ref in _html_references(html):
            ref = ref.strip()
            urls.append(urljoin(base, ref) if isinstance(base, str) else ref)
    return urls


def _remove_dot_segments(path: str) -> str:
    """Resolve ``.`` and ``..`` segments (RFC 3986 section 5.2.4)."""
    segments: list[str] = []
    parts = path.split("/")
    for i, segment in enumerate(parts):
        last = i == len(parts) - 1
        if segment == ".":
            if last:
                segments.append("")
        elif segment == "..":
            if len(segments) > 1:
                segments.pop()
            if last:
                segments.append("")
        else:
            segments.append(segment)
    resolved = "/".join(segments)
    if path.startswith("/") and not resolved.startswith("/"):
        resolved = "/" + resolved
    return resolved


def _encode(component: str, safe: str) -> str:
    encoded = quote(component, safe=safe)
    return _ESCAPE.sub(lambda m: m.group(0).upper(), encoded)


def normalize_url(raw: str) -> tuple[str, str]:
    """Normalize an absolute http(s) URL.

    The scheme and host are lowercased, a default port and any userinfo are
    dropped, an empty path becomes ``/``, dot segments are resolved, path
    and query are percent-encoded consistently, and the fragment is dropped.

    Returns:
        ``(origin, url)``, e.g. ``("https://example.test", "https://example.test/a")``.

    Raises:
        ValueError: If *raw* is not an absolute http(s) URL with a host.
    """
    parts = urlsplit(raw.strip())
    scheme = parts.scheme.lower()
    if scheme not in PROBED_SCHEMES:
        msg = f"not an http(s) url: {raw!r}"
        raise ValueError(msg)
    host = parts.hostname
    if not host:
        msg = f"url has no host: {raw!r}"
        raise ValueError(msg)
    try:
        host = host.encode("idna").decode("ascii")
    except UnicodeError as exc:
        msg = f"invalid host in {raw!r}"
        raise ValueError(msg) from exc
    if ":" in host:
        host = f"[{host}]"

    port = parts.port
    netloc = host if port is None or port == DEFAULT_PORTS[scheme] else f"{host}:{port}"
    origin = f"{scheme}://{netloc}"

    path = _encode(_remove_dot_segments(parts.path), _PATH_SAFE) or "/"
    query = _encode(parts.query, _QUERY_SAFE)
    return origin, urlunsplit((scheme, netloc, path, query, ""))


def collect_links(features: Iterable[dict[str, Any]]) -> OriginLinkSet:
    """Bucket the URL references of *features* by origin.

    References with a non-http(s) scheme (``mailto:``, ``data:``, ...) are
    skipped.  References that cannot be resolved to an absolute http(s) URL
    are kept verbatim under ``NULL_ORIGIN``.
    """
    links: OriginLinkSet = {}
    for feature in features:
        for raw in extract_urls(feature):
            try:
                scheme = urlsplit(raw).scheme.lower()
            except ValueError:
                scheme = ""
            if scheme and scheme not in PROBED_SCHEMES:
                continue
            try:
                origin, url = normalize_url(raw)
            except ValueError:
                origin, url = NULL_ORIGIN, raw
            links.setdefault(origin, {}).setdefault(url, []).append(feature)
    return links


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


def feature_identifier(feature: dict[str, Any]) -> str:
    """Identify a feature in reports: its ``url``, else ``publisher:title``."""
    props = feature.get("properties") or {}
    url = props.get("url")
    if url is not None:
        return str(url)
    return f"{props.get('publisher')}:{props.get('title')}"


@dataclass(frozen=True, slots=True)
class BrokenLink:
    """A URL that failed both probes, with the features referencing it."""

    url: str
    referenced_by: tuple[str, ...] = ()

    @property
    def attribution(self) -> str:
        """Referencing features joined by ``", "``, truncated to 1024 chars."""
        text = ", ".join(self.referenced_by)
        if len(text) > MAX_ATTRIBUTION_LENGTH:
            keep = MAX_ATTRIBUTION_LENGTH - len(ATTRIBUTION_ELLIPSIS)
            text = text[:keep] + ATTRIBUTION_ELLIPSIS
        return text


@dataclass(slots=True)
class LinkReport:
    """Outcome of a link check.

    Attributes:
        broken: origin → broken links, both in discovery order.  Origins
            without failures are absent.
        origin_count: Number of distinct origins checked.
        url_count: Number of distinct URLs checked.
    """

    broken: dict[str, list[BrokenLink]] = field(default_factory=dict)
    origin_count: int = 0
    url_count: int = 0

    @property
    def failure_count(self) -> int:
        return sum(len(links) for links in self.broken.values())

    @property
    def ok(self) -> bool:
        return not self.broken

    def format(self) -> str:
        """Render the report, one origin header followed by its broken URLs."""
        if self.ok:
            return "ALL OK"
        lines = [f"FAILURE {self.failure_count} urls are broken"]
        for origin, links in self.broken.items():
            lines.append(origin)
            lines.extend(f"   {link.url} : {link.attribution}" for link in links)
        return "\n".join(lines)

    def raise_for_failures(self) -> None:
        """Raise ``LinkIntegrityFailure`` if any URL is broken."""
        if not self.ok:
            raise LinkIntegrityFailure(self)


# ---------------------------------------------------------------------------
# Probing
# ---------------------------------------------------------------------------


async def probe_url(client: httpx.AsyncClient, url: str) -> bool:
    """HEAD *url*, falling back to GET.  Return whether either succeeded.

    Transport errors count as a failed request.  The GET body is never
    read.
    """
    try:
        response = await client.head(url, follow_redirects=True)
    except httpx.HTTPError as exc:
        logger.info("HEAD failed | url=%s | error=%s", url, exc)
    else:
        if response.is_success:
            return True
        logger.info("HEAD not ok | url=%s | status=%d", url, response.status_code)

    try:
        async with client.stream("GET", url, follow_redirects=True) as response:
            if response.is_success:
                return True
            logger.info("GET not ok | url=%s | status=%d", url, response.status_code)
    except httpx.HTTPError as exc:
        logger.info("GET failed | url=%s | error=%s", url, exc)
    return False


async def _check_origin(
    origin: str,
    urls: list[str],
    *,
    session: SharedClient,
    delay_s: float,
    limit: asyncio.Semaphore,
) -> list[str]:
    if origin == NULL_ORIGIN:
        for url in urls:
            logger.warning("Unresolvable url reference | url=%s", url)
        return list(urls)

    broken: list[str] = []
    pacer = Pacer(delay_s)
    async with limit, session.lease() as client:
        for url in urls:
            await pacer.wait()
            logger.debug("Probing | origin=%s | url=%s", origin, url)
            if not await probe_url(client, url):
                broken.append(url)
    return broken


async def check_links(
    collection: dict[str, Any],
    *,
    session: SharedClient,
    delay_s: float = 1.0,
    max_concurrent_origins: int = 16,
) -> LinkReport:
    """Probe every URL referenced by *collection*.

    Args:
        collection: A (validated) merged FeatureCollection.
        session: Shared HTTP client.
        delay_s: Minimum delay between two probes of the same origin.
        max_concurrent_origins: Upper bound on origins probed at once.

    Returns:
        A ``LinkReport``; call ``raise_for_failures()`` to turn failures
        into an exception.
    """
    links = collect_links(collection["features"])
    url_count = sum(len(urls) for urls in links.values())
    logger.info(
        "Link check started | features=%d | origins=%d | urls=%d",
        len(collection["features"]),
        len(links),
        url_count,
    )

    limit = asyncio.Semaphore(max_concurrent_origins)
    results = await asyncio.gather(
        *(
            _check_origin(
                origin,
                list(urls),
                session=session,
                delay_s=delay_s,
                limit=limit,
            )
            for origin, urls in links.items()
        )
    )

    report = LinkReport(origin_count=len(links), url_count=url_count)
    for (origin, urls), broken in zip(links.items(), results, strict=True):
        if broken:
            report.broken[origin] = [
                BrokenLink(url, tuple(feature_identifier(f) for f in urls[url]))
                for url in broken
            ]

    logger.info(
        "Link check completed | origins=%d | urls=%d | broken=%d",
        report.origin_count,
        report.url_count,
        report.failure_count,
    )
    return report
