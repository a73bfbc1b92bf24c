"""Write job: set absolute stock levels for stock-mismatch records."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from awinsync.config import Settings, load_settings
from awinsync.errors import ApiError, ConfigError
from awinsync.ingest.feed import read_csv
from awinsync.ingest.medusa import MedusaAdminClient
from awinsync.ingest.models import StockMismatch
from awinsync.logic.export_csv import STOCK_MISMATCHES_CSV, write_json
from awinsync.logic.outcomes import Err, LogEntry, Ok, OutcomeLog, Result, fold
from awinsync.utils.cli import run_job
from awinsync.utils.dates import timestamp
from awinsync.utils.rate_limit import RateLimiter

logger = logging.getLogger(__name__)

BATCH_SIZE = 50
IN_STOCK_QUANTITY = 10
LOG_NAME = "reconcile-stock-log.ndjson"
FAILURES_NAME = "reconcile-stock-failures.ndjson"
SUMMARY_NAME = "reconcile-stock-summary.json"


@dataclass(slots=True)
class StockSummary:
    rows: int
    location_id: str
    updated: list[LogEntry]
    failed: list[LogEntry]

    def totals(self) -> dict[str, int]:
        return {"rows": self.rows, "updated": len(self.updated), "failed": len(self.failed)}


def load_mismatches(path: Path) -> list[StockMismatch]:
    _, rows = read_csv(Path(path))
    return [StockMismatch.from_row(row) for row in rows]


def target_quantity(record: StockMismatch, in_stock_quantity: int = IN_STOCK_QUANTITY) -> int:
    return in_stock_quantity if record.awin_in_stock else 0


async def reconcile_record(
    record: StockMismatch,
    client: MedusaAdminClient,
    *,
    location_id: str,
    in_stock_quantity: int = IN_STOCK_QUANTITY,
) -> list[Result]:
    if not record.id:
        entry = LogEntry(type="invalid", handle=record.handle or None, reason="missing product id", data={"row": record.to_row()})
        return [Err(entry)]
    base = {"productId": record.id}
    try:
        product = await client.get_product(record.id)
    except ApiError as exc:
        logger.error("Failed to fetch product %s: %s", record.handle, exc)
        return [Err(LogEntry(type="fetch_error", handle=record.handle, reason=str(exc), data=base))]
    if not product.variants:
        return [Err(LogEntry(type="no_variants", handle=record.handle, reason="no variants", data=base))]

    quantity = target_quantity(record, in_stock_quantity)
    results: list[Result] = []
    for variant in product.variants:
        data = {**base, "variantId": variant.id}
        if not variant.inventory_item_ids:
            results.append(Err(LogEntry(type="no_inventory_item", handle=record.handle, reason="no inventory_item_id", data=data)))
            continue
        item_id = variant.inventory_item_ids[0]
        data["inventoryItemId"] = item_id
        try:
            await client.set_stocked_quantity(item_id, location_id, quantity)
        except ApiError as exc:
            logger.error("Failed to update stock for %s: %s", record.handle, exc)
            results.append(Err(LogEntry(type="update_error", handle=record.handle, reason=str(exc), data=data)))
            continue
        logger.info("Updated stock for %s variant %s: %s", record.handle, variant.sku, quantity)
        results.append(
            Ok(
                LogEntry(
                    type="updated",
                    handle=record.handle,
                    data={**data, "targetStock": quantity, "previousStock": record.medusa_stock},
                )
            )
        )
    return results


async def reconcile_stock(
    records: Sequence[StockMismatch],
    client: MedusaAdminClient,
    log: OutcomeLog,
    *,
    location_id: str,
    in_stock_quantity: int = IN_STOCK_QUANTITY,
    batch_size: int = BATCH_SIZE,
) -> StockSummary:
    """Set each mismatched product's stocked quantity at ``location_id``.

    Quantities are absolute (``in_stock_quantity`` or 0), so replaying the
    same records leaves inventory unchanged.
    """
    results: list[Result] = []
    total_batches = (len(records) + batch_size - 1) // batch_size
    for start in range(0, len(records), batch_size):
        batch = records[start : start + batch_size]
        logger.info("Processing batch %s/%s (%s items)", start // batch_size + 1, total_batches, len(batch))
        for record in batch:
            for result in await reconcile_record(
                record, client, location_id=location_id, in_stock_quantity=in_stock_quantity
            ):
                results.append(log.append(result))
    buckets = fold(results)
    return StockSummary(
        rows=len(records),
        location_id=location_id,
        updated=buckets.succeeded,
        failed=buckets.failed,
    )


async def run_reconcile_stock(
    csv_path: Path,
    output_dir: Path,
    *,
    settings: Settings | None = None,
    client: MedusaAdminClient | None = None,
    fresh: bool = False,
) -> StockSummary:
    settings = settings or load_settings()
    csv_path = Path(csv_path)
    if not csv_path.is_file():
        raise ConfigError(f"Stock-mismatch report not found: {csv_path}")
    if client is None:
        settings.require_write()
        client = MedusaAdminClient(
            settings.backend_url,
            api_key=settings.admin_api_key,
            email=settings.admin_email,
            password=settings.admin_password,
            rate_limiter=RateLimiter(delay=settings.stock_delay),
            retries=settings.rate_limit_retries,
        )

    records = load_mismatches(csv_path)
    output_dir = Path(output_dir)
    log = OutcomeLog(output_dir / LOG_NAME, output_dir / FAILURES_NAME, fresh=fresh)

    try:
        await client.authenticate()
        defaults = await client.resolve_defaults(require_shipping_profile=False)
        summary = await reconcile_stock(
            records,
            client,
            log,
            location_id=defaults.stock_location_id,
            in_stock_quantity=settings.in_stock_quantity,
        )
    finally:
        await client.close()

    write_json(
        output_dir / SUMMARY_NAME,
        {
            "timestamp": timestamp(),
            "defaultLocation": summary.location_id,
            "totals": summary.totals(),
            "outputs": {"log": str(log.log_path), "failures": str(log.failures_path)},
        },
    )
    logger.info("Stock reconciliation summary: %s", summary.totals())
    return summary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Set Medusa stock levels for AWIN stock mismatches.")
    parser.add_argument("--csv", type=Path, default=None, help="Stock-mismatch report CSV")
    parser.add_argument("--out", type=Path, default=None, help="Directory for logs and summary")
    parser.add_argument("--fresh", action="store_true", help="Truncate previous logs before running")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    async def job() -> None:
        settings = load_settings()
        output_dir = args.out or settings.output_dir
        csv_path = args.csv or output_dir / STOCK_MISMATCHES_CSV
        summary = await run_reconcile_stock(csv_path, output_dir, settings=settings, fresh=args.fresh)
        print("Stock reconciliation summary:", json.dumps(summary.totals()))

    run_job(job)


if __name__ == "__main__":
    main()
