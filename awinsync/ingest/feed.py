"""AWIN feed reading."""

from __future__ import annotations

import csv
import io
import logging
import pathlib

from awinsync.ingest.models import FeedRecord

logger = logging.getLogger(__name__)

DELIMITER = ";"


def parse_csv(content: str, *, delimiter: str = DELIMITER) -> tuple[list[str], list[dict[str, str]]]:
    """Parse delimiter-separated ``content`` into headers and row mappings.

    Quoted fields may contain the delimiter, doubled quotes and newlines.
    Blank lines are skipped, cells are trimmed and short rows are padded
    with empty strings. An unterminated quote runs to the end of the input.
    """
    reader = csv.reader(io.StringIO(content.lstrip("\ufeff"), newline=""), delimiter=delimiter, strict=False)
    headers: list[str] | None = None
    rows: list[dict[str, str]] = []
    # a single field may span the whole input
    previous_limit = csv.field_size_limit(max(len(content), csv.field_size_limit()))
    try:
        for cells in reader:
            if not any(cell.strip() for cell in cells):
                continue
            cells = [cell.strip() for cell in cells]
            if headers is None:
                headers = cells
                continue
            rows.append({header: cells[idx] if idx < len(cells) else "" for idx, header in enumerate(headers)})
    finally:
        csv.field_size_limit(previous_limit)
    return headers or [], rows


def read_csv(path: pathlib.Path) -> tuple[list[str], list[dict[str, str]]]:
    return parse_csv(pathlib.Path(path).read_text(encoding="utf-8"))


def load_feed(path: pathlib.Path, *, currency: str = "GBP") -> list[FeedRecord]:
    _, rows = read_csv(path)
    logger.info("Loaded %s feed rows from %s", len(rows), path)
    return [FeedRecord.from_row(row, currency=currency) for row in rows]
