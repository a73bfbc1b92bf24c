import csv

from awinsync.ingest import load_feed, parse_csv
from awinsync.ingest.models import FeedRecord, parse_boolean, parse_price


def test_parse_csv_quotes_and_embedded_delimiters():
    content = 'id;name;description\n1;"Wand; Deluxe";"Says ""hello""\nover two lines"\n'
    headers, rows = parse_csv(content)
    assert headers == ["id", "name", "description"]
    assert rows == [{"id": "1", "name": "Wand; Deluxe", "description": 'Says "hello"\nover two lines'}]


def test_parse_csv_skips_blank_lines_and_pads_short_rows():
    content = "a;b;c\n\n  1 ; 2 \n\n3;4;5;6\n"
    _, rows = parse_csv(content)
    assert rows == [{"a": "1", "b": "2", "c": ""}, {"a": "3", "b": "4", "c": "5"}]


def test_parse_csv_tolerates_unterminated_quote():
    content = 'a;b\n1;"never closed\n2;3\n'
    _, rows = parse_csv(content)
    assert len(rows) == 1
    assert rows[0]["a"] == "1"
    assert rows[0]["b"].startswith("never closed")
    assert "2;3" in rows[0]["b"]


def test_parse_csv_empty():
    assert parse_csv("") == ([], [])
    assert parse_csv("\n\n") == ([], [])


def test_parse_csv_strips_bom():
    headers, _ = parse_csv("\ufeffproduct_id;price\n1;2\n")
    assert headers == ["product_id", "price"]


def test_feed_record_derived_fields():
    record = FeedRecord.from_row(
        {
            "product_id": "42",
            "product_name": "Magic Wand Mini",
            "price": "£24.99",
            "deep_link": "https://shop.example.com/products/Magic-Wand-Mini/?ref=awin",
            "Ean": "5012345678900",
            "in_stock": "0",
            "StockStatus": "100",
        }
    )
    assert record.normalized_slug == "magic-wand-mini"
    assert record.comparison_key == "magic-wand"
    assert record.in_stock is True
    assert record.gtin == record.ean == "5012345678900"


def test_feed_record_slug_falls_back_to_name():
    record = FeedRecord.from_row({"product_id": "1", "product_name": "Velvet Rope", "deep_link": ""})
    assert record.normalized_slug == "velvet-rope"


def test_feed_record_relative_link():
    record = FeedRecord.from_row({"product_id": "1", "product_name": "x", "deep_link": "shop/items/silk-tie"})
    assert record.normalized_slug == "silk-tie"


def test_parse_boolean_and_price():
    assert parse_boolean("YES")
    assert parse_boolean("1")
    assert not parse_boolean("0")
    assert not parse_boolean(None)
    assert parse_price("£12,99") == 12.99
    assert parse_price("19.50 GBP") == 19.5
    assert parse_price("n/a") is None
    assert parse_price("") is None


def test_load_feed(tmp_path):
    path = tmp_path / "awin.csv"
    path.write_text("product_id;product_name;deep_link;in_stock\n7;Silk Tie;https://x.test/silk-tie;yes\n")
    records = load_feed(path)
    assert [r.product_id for r in records] == ["7"]
    assert records[0].in_stock


def test_parse_csv_unterminated_quote_in_large_feed():
    body = "".join(f"{i};row {i}\n" for i in range(20000))
    headers, rows = parse_csv('a;b\n1;"never closed\n' + body)
    assert headers == ["a", "b"]
    assert len(rows) == 1
    assert rows[0]["b"].endswith("row 19999")
    assert len(rows[0]["b"]) > 131072


def test_parse_csv_long_field_restores_limit():
    before = csv.field_size_limit()
    _, rows = parse_csv("a;b\n1;" + "x" * 200_000 + "\n")
    assert len(rows[0]["b"]) == 200_000
    assert csv.field_size_limit() == before
