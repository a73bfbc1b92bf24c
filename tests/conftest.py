import itertools
import json
import re

import httpx
import pytest
import respx

from awinsync.config import Settings
from awinsync.ingest.medusa import MedusaAdminClient, MedusaStoreClient
from awinsync.utils.rate_limit import RateLimiter

BASE_URL = "https://medusa.test"
ESCAPED_BASE = re.escape(BASE_URL)

FEED_HEADER = "product_id;product_name;price;deep_link;image_url;Ean;description;brand_name;in_stock;StockStatus;merchant_category"


def feed_line(product_id, name, price, link, in_stock="0", status="", description="", image=""):
    return ";".join([product_id, name, price, link, image, "5012345678900", description, "Acme", in_stock, status, "Toys"])


def store_product(product_id, handle, *, quantity=None, title=None, prices=None):
    variant = {"id": f"var_{product_id}", "sku": f"SKU-{product_id}", "prices": prices or []}
    if quantity is not None:
        variant["inventory_quantity"] = quantity
    return {"id": product_id, "handle": handle, "title": title or handle.replace("-", " ").title(), "variants": [variant]}


class FakeMedusa:
    """In-memory Admin API backing respx routes."""

    def __init__(self) -> None:
        self.products: dict[str, dict] = {}
        self.levels: dict[tuple[str, str], int] = {}
        self.inventory_items: list[dict] = []
        self.create_calls = 0
        self._ids = itertools.count(1)

    def add_product(self, handle: str, *, with_inventory: bool = True) -> dict:
        seq = next(self._ids)
        variant = {"id": f"variant_{seq}", "sku": f"SKU-{seq}", "title": handle, "inventory_items": []}
        if with_inventory:
            variant["inventory_items"] = [{"inventory_item_id": f"iitem_{seq}"}]
        product = {"id": f"prod_{seq}", "handle": handle, "title": handle, "variants": [variant]}
        self.products[product["id"]] = product
        return product

    def install(self, router: respx.MockRouter) -> None:
        router.post(f"{BASE_URL}/auth/user/emailpass").mock(return_value=httpx.Response(200, json={"token": "jwt-token"}))
        router.get(f"{BASE_URL}/admin/sales-channels").mock(
            return_value=httpx.Response(200, json={"sales_channels": [{"id": "sc_1"}]})
        )
        router.get(f"{BASE_URL}/admin/stock-locations").mock(
            return_value=httpx.Response(200, json={"stock_locations": [{"id": "sloc_1"}]})
        )
        router.get(f"{BASE_URL}/admin/shipping-profiles").mock(
            return_value=httpx.Response(200, json={"shipping_profiles": [{"id": "sp_1"}]})
        )
        router.get(f"{BASE_URL}/admin/products", name="list_products").mock(side_effect=self._list_products)
        router.post(f"{BASE_URL}/admin/products", name="create_product").mock(side_effect=self._create_product)
        router.post(f"{BASE_URL}/admin/inventory-items", name="create_inventory_item").mock(side_effect=self._create_inventory_item)
        router.get(url__regex=rf"{ESCAPED_BASE}/admin/products/(?P<product_id>[^/?]+)", name="get_product").mock(
            side_effect=self._get_product
        )
        router.post(
            url__regex=rf"{ESCAPED_BASE}/admin/inventory-items/(?P<item_id>[^/?]+)/location-levels/(?P<location_id>[^/?]+)",
            name="set_level",
        ).mock(side_effect=self._set_level)

    def _list_products(self, request):
        handle = request.url.params.get("handle")
        found = [p for p in self.products.values() if p["handle"] == handle]
        return httpx.Response(200, json={"products": found[:1]})

    def _create_product(self, request):
        self.create_calls += 1
        payload = json.loads(request.content)
        product = self.add_product(payload["handle"])
        product["title"] = payload["title"]
        product["variants"][0]["sku"] = payload["variants"][0]["sku"]
        product["variants"][0]["title"] = payload["variants"][0]["title"]
        return httpx.Response(200, json={"product": product})

    def _create_inventory_item(self, request):
        item = json.loads(request.content)
        self.inventory_items.append(item)
        return httpx.Response(200, json={"inventory_item": {"id": f"iitem_extra_{len(self.inventory_items)}", **item}})

    def _get_product(self, request, product_id):
        product = self.products.get(product_id)
        if product is None:
            return httpx.Response(404, json={"message": f"Product {product_id} not found"})
        return httpx.Response(200, json={"product": product})

    def _set_level(self, request, item_id, location_id):
        body = json.loads(request.content)
        self.levels[(item_id, location_id)] = body["stocked_quantity"]
        return httpx.Response(200, json={"inventory_item": {"id": item_id}})


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        backend_url=BASE_URL,
        publishable_key="pk_test",
        admin_api_key="sk_test",
        output_dir=tmp_path,
        import_delay=0,
        stock_delay=0,
    )


@pytest.fixture()
def router():
    with respx.mock(assert_all_called=False) as mock:
        yield mock


@pytest.fixture()
def fake_medusa(router):
    fake = FakeMedusa()
    fake.install(router)
    return fake


@pytest.fixture()
def admin_client():
    return MedusaAdminClient(
        BASE_URL,
        api_key="sk_test",
        rate_limiter=RateLimiter(delay=0),
        initial_delay=0,
    )


@pytest.fixture()
def store_client():
    return MedusaStoreClient(BASE_URL, "pk_test", page_size=2, initial_delay=0)
