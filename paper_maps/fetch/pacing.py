"""Request pacing.

Politeness towards publisher sites is cooperative: whoever is about to
make a request awaits ``Pacer.wait()`` first.  A pacer guarantees a
minimum interval between consecutive ``wait()`` returns; it is not a
token bucket and never lets requests burst.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


class Pacer:
    """Enforce a minimum delay between consecutive requests.

    Attributes:
        min_interval_s: Minimum seconds between two ``wait()`` returns.
    """

    def __init__(
        self,
        min_interval_s: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if min_interval_s < 0:
            msg = f"min_interval_s must be >= 0, got {min_interval_s}"
            raise ValueError(msg)
        self.min_interval_s = min_interval_s
        self._clock = clock
        self._sleep = sleep
        self._last: float | None = None
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        """Return once at least ``min_interval_s`` has passed since the last call."""
        async with self._lock:
            if self._last is not None:
                remaining = self.min_interval_s - (self._clock() - self._last)
                if remaining > 0:
                    await self._sleep(remaining)
            self._last = self._clock()
