"""Backoff helpers for rate-limited API calls."""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable

from awinsync.errors import RateLimitError

logger = logging.getLogger(__name__)

DEFAULT_RETRIES = 5
DEFAULT_INITIAL_DELAY = 0.15


def retry_async(
    func: Callable[..., Awaitable],
    *,
    retries: int = DEFAULT_RETRIES,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
):
    """Retry ``func`` on :class:`RateLimitError` with exponential backoff.

    Any other exception propagates on the first attempt. After ``retries``
    retries the last ``RateLimitError`` is re-raised.
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        delay = initial_delay
        for attempt in range(retries + 1):
            try:
                return await func(*args, **kwargs)
            except RateLimitError:
                if attempt == retries:
                    raise
                logger.warning(
                    "Rate limited, retrying in %.0fms (attempt %s/%s)",
                    delay * 1000,
                    attempt + 1,
                    retries + 1,
                )
                await asyncio.sleep(delay)
                delay *= 2

    return wrapper
