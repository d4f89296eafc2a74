"""Reference-counted HTTP client.

Several independent consumers (the fetch cache, one task per origin in
the link checker) share a single ``httpx.AsyncClient`` so connections are
pooled.  Nobody owns the client globally: it is opened by the first
``acquire()`` and closed by the ``release()`` that brings the count of
outstanding leases back to zero.  The ``SharedClient`` handle itself is
passed explicitly to whoever needs it.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

import httpx

from paper_maps.core.constants import DEFAULT_USER_AGENT

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger("paper_maps.fetch.session")


class SharedClient:
    """Lazily created, reference-counted ``httpx.AsyncClient``.

    Example usage::

        session = SharedClient(user_agent=config.user_agent)
        async with session.lease() as client:
            response = await client.get(url)
    """

    def __init__(
        self,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.user_agent = user_agent
        self._timeout = httpx.Timeout(timeout_s)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._refs = 0
        self._lock = asyncio.Lock()

    @property
    def refs(self) -> int:
        """Number of outstanding leases."""
        return self._refs

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def acquire(self) -> httpx.AsyncClient:
        """Take a lease, opening the client if this is the first one."""
        async with self._lock:
            if self._client is None:
                logger.debug("Opening HTTP client | user_agent=%s", self.user_agent)
                self._client = httpx.AsyncClient(
                    headers={"User-Agent": self.user_agent},
                    timeout=self._timeout,
                    transport=self._transport,
                )
            self._refs += 1
            return self._client

    async def release(self) -> None:
        """Return a lease, closing the client when none remain.

        Raises:
            RuntimeError: If called more often than ``acquire()``.
        """
        async with self._lock:
            if self._refs == 0:
                msg = "SharedClient.release() called without a matching acquire()"
                raise RuntimeError(msg)
            self._refs -= 1
            if self._refs == 0 and self._client is not None:
                client, self._client = self._client, None
                logger.debug("Closing HTTP client")
                await client.aclose()

    @contextlib.asynccontextmanager
    async def lease(self) -> AsyncIterator[httpx.AsyncClient]:
        """Hold a lease for the duration of the ``async with`` block."""
        client = await self.acquire()
        try:
            yield client
        finally:
            await self.release()
