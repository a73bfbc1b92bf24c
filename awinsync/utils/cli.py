"""Shared entry-point plumbing for the job scripts."""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable

from awinsync.errors import ApiError, ConfigError

EXIT_CONFIG = 1
EXIT_REMOTE = 2


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def run_job(job: Callable[[], Awaitable[object]]) -> None:
    """Run ``job`` and map fatal errors onto process exit codes."""
    configure_logging()
    try:
        asyncio.run(job())
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(EXIT_CONFIG)
    except OSError as exc:
        print(f"Input/output error: {exc}", file=sys.stderr)
        sys.exit(EXIT_CONFIG)
    except ApiError as exc:
        print(f"Remote API failure: {exc}", file=sys.stderr)
        sys.exit(EXIT_REMOTE)
