"""Write job: create catalog products for feed records missing from Medusa."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Sequence

from awinsync.config import Settings, load_settings
from awinsync.errors import ApiError, ConfigError, RecordError
from awinsync.ingest.feed import read_csv
from awinsync.ingest.medusa import CatalogDefaults, MedusaAdminClient
from awinsync.ingest.models import MissingRecord
from awinsync.logic.export_csv import MISSING_CSV, write_json
from awinsync.logic.outcomes import Err, LogEntry, Ok, OutcomeLog, Result, completed_handles, fold
from awinsync.utils.cli import run_job
from awinsync.utils.dates import timestamp
from awinsync.utils.rate_limit import RateLimiter

logger = logging.getLogger(__name__)

BATCH_SIZE = 50
LOG_NAME = "import-missing-awin-log.ndjson"
FAILURES_NAME = "import-missing-awin-failures.ndjson"
SUMMARY_NAME = "import-missing-awin-summary.json"


@dataclass(slots=True)
class ImportSummary:
    rows: int
    created: list[LogEntry]
    skipped: list[LogEntry]
    failed: list[LogEntry]

    def totals(self) -> dict[str, int]:
        return {
            "rows": self.rows,
            "created": len(self.created),
            "skipped": len(self.skipped),
            "failed": len(self.failed),
        }


def load_missing(path: Path) -> list[MissingRecord]:
    """Read a missing-products report, either the CSV or its JSON mirror."""
    path = Path(path)
    if path.suffix.lower() == ".json":
        rows = json.loads(path.read_text(encoding="utf-8"))
    else:
        _, rows = read_csv(path)
    return [MissingRecord.from_row(row) for row in rows]


def build_product_payload(record: MissingRecord, defaults: CatalogDefaults) -> dict[str, Any]:
    handle = record.handle
    title = record.product_name or handle
    variant: dict[str, Any] = {
        "title": title,
        "sku": record.product_id or handle,
        "prices": [
            {
                "amount": round(record.price * 100),
                "currency_code": record.price_currency.lower(),
            }
        ],
        "manage_inventory": True,
        "options": {"Default": "Default"},
    }
    ean = record.ean or record.gtin
    if ean:
        variant["ean"] = ean
    return {
        "handle": handle,
        "title": title,
        "description": record.description or "",
        "status": "published",
        "shipping_profile_id": defaults.shipping_profile_id,
        "sales_channels": [{"id": defaults.sales_channel_id}],
        "options": [{"title": "Default", "values": ["Default"]}],
        "variants": [variant],
        "images": [{"url": record.image_url}] if record.image_url else [],
    }


def _validate(record: MissingRecord) -> str:
    handle = record.handle
    if not handle:
        raise RecordError("invalid", "empty handle")
    if record.price is None:
        raise RecordError("invalid", "invalid price", handle=handle)
    return handle


async def import_record(
    record: MissingRecord,
    client: MedusaAdminClient,
    defaults: CatalogDefaults,
) -> Result:
    try:
        handle = _validate(record)
    except RecordError as exc:
        return Err(LogEntry(type=exc.kind, handle=exc.handle, reason=exc.reason, data={"row": record.to_row()}))

    try:
        existing = await client.find_product_by_handle(handle)
    except ApiError as exc:
        return Err(LogEntry(type="lookup_error", handle=handle, reason=str(exc)))
    if existing:
        return Ok(LogEntry(type="skip", handle=handle, reason="already exists", data={"id": existing.get("id")}))

    payload = build_product_payload(record, defaults)
    logger.debug("Creating product %s: %s", handle, payload)
    try:
        product = await client.create_product(payload)
    except ApiError as exc:
        logger.error("Failed to create %s: %s", handle, exc)
        return Err(LogEntry(type="create_error", handle=handle, reason=str(exc), data={"payload": payload}))

    variants = product.get("variants") or []
    if variants and record.in_stock:
        variant = variants[0]
        try:
            await client.create_inventory_item(sku=variant.get("sku"), title=variant.get("title") or handle)
        except ApiError as exc:
            logger.warning("Failed to create inventory for %s: %s", handle, exc)

    logger.info("Created product %s (%s)", handle, product.get("id"))
    return Ok(
        LogEntry(
            type="created",
            handle=handle,
            data={"id": product.get("id"), "title": product.get("title")},
        )
    )


async def import_missing(
    records: Sequence[MissingRecord],
    client: MedusaAdminClient,
    log: OutcomeLog,
    *,
    defaults: CatalogDefaults,
    batch_size: int = BATCH_SIZE,
    skip_handles: Iterable[str] = (),
) -> ImportSummary:
    """Create every record's product unless its handle already exists.

    Records are processed one at a time and each outcome is appended to
    ``log`` before the next record starts.
    """
    done = frozenset(skip_handles)
    results: list[Result] = []
    total_batches = (len(records) + batch_size - 1) // batch_size
    for start in range(0, len(records), batch_size):
        batch = records[start : start + batch_size]
        logger.info("Processing batch %s/%s (%s items)", start // batch_size + 1, total_batches, len(batch))
        for record in batch:
            if record.handle and record.handle in done:
                result: Result = Ok(LogEntry(type="skip", handle=record.handle, reason="logged in previous run"))
            else:
                result = await import_record(record, client, defaults)
            results.append(log.append(result))
    buckets = fold(results)
    return ImportSummary(
        rows=len(records),
        created=buckets.succeeded,
        skipped=buckets.skipped,
        failed=buckets.failed,
    )


async def run_import(
    csv_path: Path,
    output_dir: Path,
    *,
    settings: Settings | None = None,
    client: MedusaAdminClient | None = None,
    resume: bool = False,
    fresh: bool = False,
) -> ImportSummary:
    settings = settings or load_settings()
    csv_path = Path(csv_path)
    if not csv_path.is_file():
        raise ConfigError(f"Missing-products report not found: {csv_path}")
    if client is None:
        settings.require_write()
        client = MedusaAdminClient(
            settings.backend_url,
            api_key=settings.admin_api_key,
            email=settings.admin_email,
            password=settings.admin_password,
            rate_limiter=RateLimiter(delay=settings.import_delay),
            retries=settings.rate_limit_retries,
        )

    records = load_missing(csv_path)
    output_dir = Path(output_dir)
    log_path = output_dir / LOG_NAME
    skip_handles = completed_handles(log_path) if resume and not fresh else frozenset()
    log = OutcomeLog(log_path, output_dir / FAILURES_NAME, fresh=fresh)

    try:
        await client.authenticate()
        defaults = await client.resolve_defaults()
        summary = await import_missing(records, client, log, defaults=defaults, skip_handles=skip_handles)
    finally:
        await client.close()

    write_json(
        output_dir / SUMMARY_NAME,
        {
            "timestamp": timestamp(),
            "totals": summary.totals(),
            "outputs": {"log": str(log.log_path), "failures": str(log.failures_path)},
        },
    )
    logger.info("Import summary: %s", summary.totals())
    return summary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create Medusa products for AWIN records missing from the catalog.")
    parser.add_argument("--csv", type=Path, default=None, help="Missing-products report (CSV or JSON)")
    parser.add_argument("--out", type=Path, default=None, help="Directory for logs and summary")
    parser.add_argument("--resume", action="store_true", help="Skip handles already created or skipped in the log")
    parser.add_argument("--fresh", action="store_true", help="Truncate previous logs before running")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    async def job() -> None:
        settings = load_settings()
        output_dir = args.out or settings.output_dir
        csv_path = args.csv or output_dir / MISSING_CSV
        summary = await run_import(csv_path, output_dir, settings=settings, resume=args.resume, fresh=args.fresh)
        print("Import summary:", json.dumps(summary.totals()))

    run_job(job)


if __name__ == "__main__":
    main()
