"""Detection job: compare the AWIN feed with the Medusa catalog."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from awinsync.config import Settings, load_settings
from awinsync.errors import ConfigError
from awinsync.ingest import load_feed
from awinsync.ingest.medusa import MedusaStoreClient
from awinsync.logic.export_csv import ReportSummary, write_reports
from awinsync.logic.reconcile import reconcile
from awinsync.utils.cli import run_job

logger = logging.getLogger(__name__)

DEFAULT_FEED_NAME = "awin.csv"


async def run_sync(
    feed_path: Path,
    output_dir: Path,
    *,
    settings: Settings | None = None,
    client: MedusaStoreClient | None = None,
) -> ReportSummary:
    settings = settings or load_settings()
    feed_path = Path(feed_path)
    if not feed_path.is_file():
        raise ConfigError(f"Feed file not found: {feed_path}")
    if client is None:
        client = MedusaStoreClient(
            settings.backend_url,
            settings.require_read(),
            retries=settings.rate_limit_retries,
        )

    feed = load_feed(feed_path, currency=settings.currency)
    try:
        products = await client.fetch_all_products()
    finally:
        await client.close()
    logger.info("Fetched %s catalog products from %s", len(products), settings.backend_url)

    report = reconcile(feed, products)
    return write_reports(report, output_dir)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compare the AWIN feed against the Medusa catalog.")
    parser.add_argument("--awin", type=Path, default=None, help="Path to the AWIN feed CSV")
    parser.add_argument("--out", type=Path, default=None, help="Directory for report files")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    async def job() -> None:
        settings = load_settings()
        output_dir = args.out or settings.output_dir
        feed_path = args.awin or output_dir / DEFAULT_FEED_NAME
        summary = await run_sync(feed_path, output_dir, settings=settings)
        print("AWIN/Medusa sync report created:")
        print(json.dumps(summary.to_json(), indent=2))

    run_job(job)


if __name__ == "__main__":
    main()
