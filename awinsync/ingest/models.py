"""Feed, catalog and report data models."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, ClassVar, Literal, Mapping
from urllib.parse import urlparse

from awinsync.logic.slugs import comparison_key, slugify

TRUE_VALUES = frozenset({"1", "true", "yes", "y"})
IN_STOCK_STATUS = "100"
PRICE_CHARS_RE = re.compile(r"[^0-9.,]")
PRICE_PREFIX_RE = re.compile(r"\d+(?:\.\d+)?|\.\d+")

MatchKind = Literal["exact", "loose", "none"]


def parse_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUE_VALUES


def parse_price(value: Any) -> float | None:
    """Parse a loosely formatted price ("£12,99", "12.99 GBP") into a float."""
    if value in (None, ""):
        return None
    cleaned = PRICE_CHARS_RE.sub("", str(value)).replace(",", ".", 1)
    match = PRICE_PREFIX_RE.match(cleaned)
    if not match:
        return None
    amount = float(match.group(0))
    return amount if math.isfinite(amount) else None


def format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _slug_from_link(link: str) -> str:
    if not link:
        return ""
    try:
        path = urlparse(link).path if "://" in link else link
    except ValueError:
        path = link
    segments = [segment for segment in path.split("/") if segment]
    return slugify(segments[-1]) if segments else ""


@dataclass(slots=True, frozen=True)
class FeedRecord:
    product_id: str
    product_name: str
    price: str = ""
    currency: str = "GBP"
    deep_link: str = ""
    image_url: str = ""
    gtin: str = ""
    ean: str = ""
    description: str = ""
    brand: str = ""
    merchant_category: str = ""
    in_stock_flag: str = ""
    stock_status: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, str], *, currency: str = "GBP") -> "FeedRecord":
        gtin = row.get("gtin") or row.get("Ean") or ""
        ean = row.get("Ean") or row.get("gtin") or ""
        return cls(
            product_id=row.get("product_id", ""),
            product_name=row.get("product_name", ""),
            price=row.get("price", ""),
            currency=currency.upper(),
            deep_link=row.get("deep_link", ""),
            image_url=row.get("image_url", ""),
            gtin=gtin,
            ean=ean,
            description=row.get("description", ""),
            brand=row.get("brand_name", ""),
            merchant_category=row.get("merchant_category", ""),
            in_stock_flag=row.get("in_stock", ""),
            stock_status=row.get("StockStatus", ""),
        )

    @property
    def in_stock(self) -> bool:
        return parse_boolean(self.in_stock_flag) or self.stock_status == IN_STOCK_STATUS

    @property
    def normalized_slug(self) -> str:
        return _slug_from_link(self.deep_link) or slugify(self.product_name)

    @property
    def comparison_key(self) -> str:
        return comparison_key(self.normalized_slug)


@dataclass(slots=True, frozen=True)
class CatalogVariant:
    id: str
    sku: str | None = None
    title: str = ""
    prices: tuple[Mapping[str, Any], ...] = ()
    inventory_quantity: int | None = None
    inventory_item_ids: tuple[str, ...] = ()

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "CatalogVariant":
        quantity = data.get("inventory_quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, (int, float)):
            quantity = None
        items = data.get("inventory_items") or []
        item_ids = []
        for item in items:
            item_id = item.get("inventory_item_id") or item.get("id")
            if item_id:
                item_ids.append(str(item_id))
        return cls(
            id=str(data.get("id", "")),
            sku=data.get("sku"),
            title=data.get("title") or "",
            prices=tuple(data.get("prices") or ()),
            inventory_quantity=int(quantity) if quantity is not None else None,
            inventory_item_ids=tuple(item_ids),
        )


@dataclass(slots=True, frozen=True)
class CatalogProduct:
    id: str
    handle: str
    title: str = ""
    variants: tuple[CatalogVariant, ...] = ()

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "CatalogProduct":
        return cls(
            id=str(data.get("id", "")),
            handle=data.get("handle") or "",
            title=data.get("title") or "",
            variants=tuple(CatalogVariant.from_api(v) for v in data.get("variants") or ()),
        )

    @property
    def handle_slug(self) -> str:
        return slugify(self.handle)

    @property
    def comparison_key(self) -> str:
        return comparison_key(self.handle_slug)

    @property
    def inventory_total(self) -> int:
        return sum(v.inventory_quantity or 0 for v in self.variants)

    def price_for(self, currency: str) -> float | None:
        code = currency.lower()
        for variant in self.variants:
            for price in variant.prices:
                amount = price.get("amount")
                if str(price.get("currency_code", "")).lower() != code:
                    continue
                if isinstance(amount, (int, float)) and not isinstance(amount, bool):
                    return amount / 100
        return None


@dataclass(slots=True)
class MatchResult:
    feed: FeedRecord | None
    product: CatalogProduct | None
    kind: MatchKind = "none"


@dataclass(slots=True)
class MissingRecord:
    CSV_COLUMNS: ClassVar[tuple[str, ...]] = (
        "product_id",
        "product_name",
        "normalized_slug",
        "comparison_key",
        "price",
        "price_currency",
        "deep_link",
        "image_url",
        "gtin",
        "ean",
        "description",
        "brand",
        "in_stock",
        "stock_status",
        "merchant_category",
    )

    product_id: str
    product_name: str
    normalized_slug: str
    comparison_key: str
    price: float | None
    price_currency: str = "GBP"
    deep_link: str = ""
    image_url: str = ""
    gtin: str = ""
    ean: str = ""
    description: str = ""
    brand: str = ""
    in_stock: bool = False
    stock_status: str = ""
    merchant_category: str = ""

    @classmethod
    def from_feed(cls, record: FeedRecord) -> "MissingRecord":
        return cls(
            product_id=record.product_id,
            product_name=record.product_name,
            normalized_slug=record.normalized_slug,
            comparison_key=record.comparison_key,
            price=parse_price(record.price),
            price_currency=record.currency,
            deep_link=record.deep_link,
            image_url=record.image_url,
            gtin=record.gtin,
            ean=record.ean,
            description=record.description,
            brand=record.brand,
            in_stock=record.in_stock,
            stock_status=record.stock_status,
            merchant_category=record.merchant_category,
        )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "MissingRecord":
        return cls(
            product_id=str(row.get("product_id") or ""),
            product_name=str(row.get("product_name") or ""),
            normalized_slug=str(row.get("normalized_slug") or ""),
            comparison_key=str(row.get("comparison_key") or ""),
            price=parse_price(row.get("price")),
            price_currency=str(row.get("price_currency") or "GBP"),
            deep_link=str(row.get("deep_link") or ""),
            image_url=str(row.get("image_url") or ""),
            gtin=str(row.get("gtin") or ""),
            ean=str(row.get("ean") or ""),
            description=str(row.get("description") or ""),
            brand=str(row.get("brand") or ""),
            in_stock=parse_boolean(row.get("in_stock")),
            stock_status=str(row.get("stock_status") or ""),
            merchant_category=str(row.get("merchant_category") or ""),
        )

    @property
    def handle(self) -> str:
        return slugify(self.normalized_slug)

    def to_row(self) -> dict[str, str]:
        return {column: format_cell(getattr(self, column)) for column in self.CSV_COLUMNS}

    def to_json(self) -> dict[str, Any]:
        data = {column: getattr(self, column) for column in self.CSV_COLUMNS}
        if data["price"] is None:
            data["price"] = ""
        return data


@dataclass(slots=True)
class CatalogOnlyRecord:
    CSV_COLUMNS: ClassVar[tuple[str, ...]] = ("id", "handle", "comparison_key", "title")

    id: str
    handle: str
    comparison_key: str
    title: str

    @classmethod
    def from_product(cls, product: CatalogProduct) -> "CatalogOnlyRecord":
        return cls(
            id=product.id,
            handle=product.handle_slug,
            comparison_key=product.comparison_key,
            title=product.title,
        )

    def to_row(self) -> dict[str, str]:
        return {column: format_cell(getattr(self, column)) for column in self.CSV_COLUMNS}


@dataclass(slots=True)
class StockMismatch:
    CSV_COLUMNS: ClassVar[tuple[str, ...]] = ("id", "handle", "title", "awin_in_stock", "medusa_stock")

    id: str
    handle: str
    title: str
    awin_in_stock: bool
    medusa_stock: int

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "StockMismatch":
        try:
            medusa_stock = int(str(row.get("medusa_stock") or "0"))
        except ValueError:
            medusa_stock = 0
        return cls(
            id=str(row.get("id") or ""),
            handle=str(row.get("handle") or ""),
            title=str(row.get("title") or ""),
            awin_in_stock=parse_boolean(row.get("awin_in_stock")),
            medusa_stock=medusa_stock,
        )

    def to_row(self) -> dict[str, str]:
        return {column: format_cell(getattr(self, column)) for column in self.CSV_COLUMNS}


@dataclass(slots=True)
class LooseMatch:
    awin_slug: str
    medusa_handle: str
    comparison_key: str

    def to_json(self) -> dict[str, str]:
        return {
            "awin_slug": self.awin_slug,
            "medusa_handle": self.medusa_handle,
            "comparison_key": self.comparison_key,
        }


@dataclass(slots=True)
class ReconcileReport:
    matches: list[MatchResult] = field(default_factory=list)
    missing: list[MissingRecord] = field(default_factory=list)
    catalog_only: list[CatalogOnlyRecord] = field(default_factory=list)
    stock_mismatches: list[StockMismatch] = field(default_factory=list)
    loose_matches: list[LooseMatch] = field(default_factory=list)
    feed_rows: int = 0
    catalog_products: int = 0
