"""Ingestion helpers."""

from __future__ import annotations

from awinsync.ingest.feed import load_feed, parse_csv, read_csv

__all__ = ["load_feed", "parse_csv", "read_csv"]
