"""Carve a small pilot batch out of the missing-products report."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from awinsync.config import load_settings
from awinsync.errors import ConfigError
from awinsync.ingest.feed import read_csv
from awinsync.logic.export_csv import MISSING_CSV, write_csv
from awinsync.utils.cli import run_job

logger = logging.getLogger(__name__)

PILOT_SIZE = 10


def write_pilot(csv_path: Path, output_dir: Path, size: int = PILOT_SIZE) -> Path:
    csv_path = Path(csv_path)
    if not csv_path.is_file():
        raise ConfigError(f"Missing-products report not found: {csv_path}")
    if size < 1:
        raise ConfigError("Pilot size must be positive")
    headers, rows = read_csv(csv_path)
    pilot_path = Path(output_dir) / f"pilot-missing-awin-{size}.csv"
    write_csv(pilot_path, headers, rows[:size])
    logger.info("Created pilot CSV with %s rows at %s", min(size, len(rows)), pilot_path)
    return pilot_path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Write the first N missing products to a pilot CSV.")
    parser.add_argument("--csv", type=Path, default=None, help="Missing-products report CSV")
    parser.add_argument("--out", type=Path, default=None, help="Directory for the pilot CSV")
    parser.add_argument("--size", type=int, default=PILOT_SIZE, help="Number of rows to keep")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    async def job() -> None:
        settings = load_settings()
        output_dir = args.out or settings.output_dir
        pilot_path = write_pilot(args.csv or output_dir / MISSING_CSV, output_dir, args.size)
        print(f"Run the import with: python -m awinsync.jobs.import_missing --csv {pilot_path} --out {output_dir}")

    run_job(job)


if __name__ == "__main__":
    main()
