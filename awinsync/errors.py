"""Error taxonomy for the sync jobs."""

from __future__ import annotations


class SyncError(Exception):
    """Base class for every error raised by awinsync."""


class ConfigError(SyncError):
    """Missing credential, input path or remote default. Fatal."""


class ApiError(SyncError):
    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {body}")


class RemoteReadError(ApiError):
    """Read API failure; a partial catalog invalidates the whole run."""


RemoteFetchError = RemoteReadError


class RateLimitError(ApiError):
    def __init__(self, body: str = "") -> None:
        super().__init__(429, body)


class RecordError(SyncError):
    """A single feed or report row could not be processed."""

    def __init__(self, kind: str, reason: str, *, handle: str | None = None) -> None:
        self.kind = kind
        self.reason = reason
        self.handle = handle
        super().__init__(f"{kind}: {reason}")
