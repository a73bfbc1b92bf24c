import json

from awinsync.ingest.feed import read_csv
from awinsync.ingest.models import CatalogProduct, FeedRecord, MissingRecord, StockMismatch
from awinsync.logic import export_csv
from awinsync.logic.reconcile import reconcile

from conftest import store_product


def _report():
    feed = [
        FeedRecord.from_row(
            {
                "product_id": "1",
                "product_name": 'Wand; "Deluxe"',
                "price": "24.99",
                "deep_link": "https://shop.test/deluxe-wand",
                "description": "Line one\nLine two; with delimiter",
                "in_stock": "1",
            }
        ),
        FeedRecord.from_row({"product_id": "2", "product_name": "Silk Tie", "deep_link": "https://shop.test/silk-tie", "in_stock": "1"}),
        FeedRecord.from_row({"product_id": "3", "product_name": "Lace", "price": "??", "deep_link": "https://shop.test/lace"}),
    ]
    products = [
        CatalogProduct.from_api(store_product("prod_1", "silk-tie", quantity=0)),
        CatalogProduct.from_api(store_product("prod_2", "velvet-rope", quantity=2)),
    ]
    return reconcile(feed, products)


def test_write_reports_files_and_summary(tmp_path):
    summary = export_csv.write_reports(_report(), tmp_path)

    assert summary.totals == {
        "awin_rows": 3,
        "medusa_products": 2,
        "missing_in_medusa": 2,
        "medusa_only": 1,
        "stock_issues": 1,
        "loose_matches": 0,
    }
    on_disk = json.loads((tmp_path / export_csv.SUMMARY_JSON).read_text())
    assert on_disk["totals"] == summary.totals
    assert on_disk["outputs"]["missing_csv"].endswith(export_csv.MISSING_CSV)
    assert json.loads((tmp_path / export_csv.LOOSE_MATCHES_JSON).read_text()) == []

    headers, rows = read_csv(tmp_path / export_csv.CATALOG_ONLY_CSV)
    assert headers == list(export_csv.CatalogOnlyRecord.CSV_COLUMNS)
    assert rows == [{"id": "prod_2", "handle": "velvet-rope", "comparison_key": "velvet-rope", "title": "Velvet Rope"}]


def test_missing_report_round_trips_through_reader(tmp_path):
    report = _report()
    export_csv.write_reports(report, tmp_path)

    headers, rows = read_csv(tmp_path / export_csv.MISSING_CSV)
    assert headers == list(MissingRecord.CSV_COLUMNS)
    assert rows == [record.to_row() for record in report.missing]
    assert [MissingRecord.from_row(row) for row in rows] == report.missing

    mirrored = json.loads((tmp_path / export_csv.MISSING_JSON).read_text())
    assert [MissingRecord.from_row(row) for row in mirrored] == report.missing


def test_stock_report_is_the_stock_job_contract(tmp_path):
    report = _report()
    export_csv.write_reports(report, tmp_path)

    _, rows = read_csv(tmp_path / export_csv.STOCK_MISMATCHES_CSV)
    assert rows == [{"id": "prod_1", "handle": "silk-tie", "title": "Silk Tie", "awin_in_stock": "true", "medusa_stock": "0"}]
    assert [StockMismatch.from_row(row) for row in rows] == report.stock_mismatches


def test_write_csv_with_no_rows_writes_header(tmp_path):
    path = export_csv.write_csv(tmp_path / "empty.csv", ["a", "b"], [])
    assert path.read_text() == "a;b\n"
