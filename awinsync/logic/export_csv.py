"""CSV and JSON report export."""

from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from awinsync.ingest.feed import DELIMITER
from awinsync.ingest.models import CatalogOnlyRecord, MissingRecord, ReconcileReport, StockMismatch
from awinsync.utils.dates import timestamp

logger = logging.getLogger(__name__)

MISSING_CSV = "missing-awin-products.csv"
MISSING_JSON = "missing-awin-products.json"
CATALOG_ONLY_CSV = "medusa-only-products.csv"
STOCK_MISMATCHES_CSV = "stock-mismatches.csv"
LOOSE_MATCHES_JSON = "loose-handle-matches.json"
SUMMARY_JSON = "awin-medusa-summary.json"


@dataclass(slots=True)
class ReportSummary:
    totals: dict[str, int]
    outputs: dict[str, str]
    generated_at: str

    def to_json(self) -> dict[str, Any]:
        return {"generated_at": self.generated_at, "totals": self.totals, "outputs": self.outputs}


def write_csv(path: Path, columns: Sequence[str], rows: Iterable[Mapping[str, Any]]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as csvfile:
        writer = csv.DictWriter(
            csvfile,
            fieldnames=list(columns),
            delimiter=DELIMITER,
            lineterminator="\n",
            extrasaction="ignore",
        )
        writer.writeheader()
        writer.writerows(rows)
    return path


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def write_reports(report: ReconcileReport, output_dir: Path) -> ReportSummary:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    missing_csv = write_csv(
        output_dir / MISSING_CSV,
        MissingRecord.CSV_COLUMNS,
        (record.to_row() for record in report.missing),
    )
    missing_json = write_json(output_dir / MISSING_JSON, [record.to_json() for record in report.missing])
    catalog_only_csv = write_csv(
        output_dir / CATALOG_ONLY_CSV,
        CatalogOnlyRecord.CSV_COLUMNS,
        (record.to_row() for record in report.catalog_only),
    )
    stock_csv = write_csv(
        output_dir / STOCK_MISMATCHES_CSV,
        StockMismatch.CSV_COLUMNS,
        (record.to_row() for record in report.stock_mismatches),
    )
    loose_json = write_json(output_dir / LOOSE_MATCHES_JSON, [match.to_json() for match in report.loose_matches])

    summary = ReportSummary(
        totals={
            "awin_rows": report.feed_rows,
            "medusa_products": report.catalog_products,
            "missing_in_medusa": len(report.missing),
            "medusa_only": len(report.catalog_only),
            "stock_issues": len(report.stock_mismatches),
            "loose_matches": len(report.loose_matches),
        },
        outputs={
            "missing_csv": str(missing_csv),
            "missing_json": str(missing_json),
            "medusa_only_csv": str(catalog_only_csv),
            "stock_mismatches_csv": str(stock_csv),
            "loose_matches_json": str(loose_json),
        },
        generated_at=timestamp(),
    )
    summary_path = write_json(output_dir / SUMMARY_JSON, summary.to_json())
    summary.outputs["summary_json"] = str(summary_path)
    logger.info("Wrote reconciliation reports to %s", output_dir)
    return summary
