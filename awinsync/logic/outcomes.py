"""Per-record outcomes and the append-only logs that persist them."""

from __future__ import annotations

import json
import logging
import pathlib
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Union

from awinsync.utils.dates import timestamp

logger = logging.getLogger(__name__)

SKIP_TYPES = frozenset({"skip"})
RESUMABLE_TYPES = frozenset({"created", "skip"})


@dataclass(slots=True)
class LogEntry:
    type: str
    handle: str | None = None
    reason: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    ts: str = field(default_factory=timestamp)

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.type}
        if self.handle is not None:
            payload["handle"] = self.handle
        if self.reason is not None:
            payload["reason"] = self.reason
        payload.update(self.data)
        payload["ts"] = self.ts
        return payload


@dataclass(slots=True)
class Ok:
    entry: LogEntry


@dataclass(slots=True)
class Err:
    entry: LogEntry


Result = Union[Ok, Err]


@dataclass(slots=True)
class Buckets:
    succeeded: list[LogEntry] = field(default_factory=list)
    skipped: list[LogEntry] = field(default_factory=list)
    failed: list[LogEntry] = field(default_factory=list)

    def totals(self) -> dict[str, int]:
        return {
            "succeeded": len(self.succeeded),
            "skipped": len(self.skipped),
            "failed": len(self.failed),
        }


def fold(results: Iterable[Result]) -> Buckets:
    buckets = Buckets()
    for result in results:
        if isinstance(result, Err):
            buckets.failed.append(result.entry)
        elif result.entry.type in SKIP_TYPES:
            buckets.skipped.append(result.entry)
        else:
            buckets.succeeded.append(result.entry)
    return buckets


class OutcomeLog:
    """Newline-delimited JSON logs: successes in one file, failures in another.

    Every entry is flushed before the next record is touched.
    """

    def __init__(self, log_path: pathlib.Path, failures_path: pathlib.Path, *, fresh: bool = False) -> None:
        self.log_path = pathlib.Path(log_path)
        self.failures_path = pathlib.Path(failures_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self.failures_path.parent.mkdir(parents=True, exist_ok=True)
        if fresh:
            self.log_path.unlink(missing_ok=True)
            self.failures_path.unlink(missing_ok=True)

    def append(self, result: Result) -> Result:
        path = self.failures_path if isinstance(result, Err) else self.log_path
        with path.open("a", encoding="utf-8") as fp:
            fp.write(json.dumps(result.entry.to_json(), default=str) + "\n")
            fp.flush()
        return result


def read_entries(path: pathlib.Path) -> Iterator[dict[str, Any]]:
    path = pathlib.Path(path)
    if not path.exists():
        return
    with path.open(encoding="utf-8") as fp:
        for line_no, line in enumerate(fp, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                logger.warning("Ignoring truncated log line %s in %s", line_no, path)


def completed_handles(path: pathlib.Path) -> frozenset[str]:
    """Handles already created or skipped according to a previous run's log."""
    return frozenset(
        entry["handle"]
        for entry in read_entries(path)
        if entry.get("type") in RESUMABLE_TYPES and entry.get("handle")
    )
