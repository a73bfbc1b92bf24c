"""Feed/catalog reconciliation."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Sequence

from awinsync.ingest.models import (
    CatalogOnlyRecord,
    CatalogProduct,
    FeedRecord,
    LooseMatch,
    MatchResult,
    MissingRecord,
    ReconcileReport,
    StockMismatch,
    parse_price,
)

logger = logging.getLogger(__name__)

__all__ = ["CatalogIndex", "parse_price", "reconcile"]


class CatalogIndex:
    """Exact (handle slug) and fuzzy (comparison key) lookups over a catalog."""

    def __init__(self, products: Sequence[CatalogProduct]) -> None:
        self.products = list(products)
        self.by_slug: dict[str, int] = {}
        self.by_key: dict[str, list[int]] = defaultdict(list)
        for position, product in enumerate(self.products):
            slug = product.handle_slug
            if not slug:
                continue
            if slug in self.by_slug:
                logger.warning("Duplicate catalog handle %s; keeping the first product", slug)
                continue
            self.by_slug[slug] = position
            self.by_key[product.comparison_key].append(position)

    def lookup(self, record: FeedRecord) -> tuple[int | None, str]:
        slug = record.normalized_slug
        if slug and slug in self.by_slug:
            return self.by_slug[slug], "exact"
        candidates = self.by_key.get(record.comparison_key) or []
        if record.comparison_key and len(candidates) == 1:
            return candidates[0], "loose"
        return None, "none"


def reconcile(feed_records: Sequence[FeedRecord], catalog_products: Sequence[CatalogProduct]) -> ReconcileReport:
    """Classify every feed record and catalog product.

    Feed records are visited in feed order; each either matches a catalog
    product (exactly by handle, or loosely when its comparison key has a
    single candidate) or becomes a missing record. Catalog products no feed
    record matched are reported as catalog-only, in catalog order.
    """
    index = CatalogIndex(catalog_products)
    unmatched = dict.fromkeys(range(len(index.products)))
    report = ReconcileReport(feed_rows=len(feed_records), catalog_products=len(index.products))

    for record in feed_records:
        position, kind = index.lookup(record)
        if position is None:
            report.matches.append(MatchResult(feed=record, product=None, kind="none"))
            report.missing.append(MissingRecord.from_feed(record))
            continue

        product = index.products[position]
        report.matches.append(MatchResult(feed=record, product=product, kind=kind))
        unmatched.pop(position, None)
        if kind == "loose":
            report.loose_matches.append(
                LooseMatch(
                    awin_slug=record.normalized_slug,
                    medusa_handle=product.handle,
                    comparison_key=record.comparison_key,
                )
            )
        feed_price = parse_price(record.price)
        catalog_price = product.price_for(record.currency)
        if feed_price is not None and catalog_price is not None and round(feed_price, 2) != round(catalog_price, 2):
            logger.debug("Price drift for %s: feed %s, catalog %s", product.handle, feed_price, catalog_price)
        stock = product.inventory_total
        if record.in_stock and stock <= 0:
            report.stock_mismatches.append(
                StockMismatch(
                    id=product.id,
                    handle=product.handle,
                    title=product.title,
                    awin_in_stock=True,
                    medusa_stock=stock,
                )
            )

    for position in unmatched:
        report.catalog_only.append(CatalogOnlyRecord.from_product(index.products[position]))
        report.matches.append(MatchResult(feed=None, product=index.products[position], kind="none"))

    exact = sum(1 for match in report.matches if match.kind == "exact")
    logger.info(
        "Reconciled %s feed rows against %s products: %s exact, %s missing, %s catalog-only, %s stock, %s loose",
        report.feed_rows,
        report.catalog_products,
        exact,
        len(report.missing),
        len(report.catalog_only),
        len(report.stock_mismatches),
        len(report.loose_matches),
    )
    return report
