"""Fixed-interval throttling for write calls."""

from __future__ import annotations

import asyncio
import time


class RateLimiter:
    """Enforce a minimum delay between consecutive calls."""

    def __init__(self, *, delay: float = 0.15) -> None:
        self.delay = delay
        self._lock = asyncio.Lock()
        self._last_call: float | None = None

    async def wait(self) -> None:
        async with self._lock:
            if self._last_call is not None and self.delay > 0:
                elapsed = time.monotonic() - self._last_call
                if elapsed < self.delay:
                    await asyncio.sleep(self.delay - elapsed)
            self._last_call = time.monotonic()
