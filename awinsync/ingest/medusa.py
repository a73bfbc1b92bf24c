"""Medusa Store and Admin API clients."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from awinsync.errors import ApiError, ConfigError, RateLimitError, RemoteReadError
from awinsync.ingest.models import CatalogProduct
from awinsync.utils.rate_limit import RateLimiter
from awinsync.utils.retry import DEFAULT_INITIAL_DELAY, DEFAULT_RETRIES, retry_async

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
PRODUCT_INVENTORY_FIELDS = "*variants,*variants.inventory_items"


def _check(response: httpx.Response, error_cls: type[ApiError] = ApiError) -> httpx.Response:
    if response.status_code == 429:
        raise RateLimitError(response.text)
    if response.is_error:
        raise error_cls(response.status_code, response.text)
    return response


def _json(response: httpx.Response, error_cls: type[ApiError] = ApiError) -> dict[str, Any]:
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError as exc:
        raise error_cls(response.status_code, response.text) from exc


class MedusaStoreClient:
    """Read-only catalog access through the Store API."""

    def __init__(
        self,
        base_url: str,
        publishable_key: str,
        *,
        session: httpx.AsyncClient | None = None,
        page_size: int = PAGE_SIZE,
        retries: int = DEFAULT_RETRIES,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self._owns_session = session is None
        self._session = session or httpx.AsyncClient(timeout=30.0)
        self._headers = {"x-publishable-api-key": publishable_key}
        self._get = retry_async(self._get_once, retries=retries, initial_delay=initial_delay)

    async def close(self) -> None:
        if self._owns_session:
            await self._session.aclose()

    async def fetch_all_products(self) -> list[CatalogProduct]:
        """Page through ``/store/products`` until a short page comes back."""
        products: list[CatalogProduct] = []
        offset = 0
        while True:
            try:
                data = await self._get(
                    "/store/products",
                    params={"limit": self.page_size, "offset": offset},
                )
            except RateLimitError as exc:
                raise RemoteReadError(exc.status_code, exc.body) from exc
            page = data.get("products") or []
            products.extend(CatalogProduct.from_api(item) for item in page)
            logger.info("Fetched %s catalog products (offset %s)", len(page), offset)
            if len(page) < self.page_size:
                break
            offset += self.page_size
        return products

    async def _get_once(self, path: str, *, params: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            response = await self._session.get(f"{self.base_url}{path}", params=params, headers=self._headers)
        except httpx.HTTPError as exc:
            raise RemoteReadError(0, str(exc)) from exc
        return _json(_check(response, RemoteReadError), RemoteReadError)


@dataclass(slots=True, frozen=True)
class CatalogDefaults:
    sales_channel_id: str
    stock_location_id: str
    shipping_profile_id: str | None = None


class MedusaAdminClient:
    """Write access through the Admin API.

    Authenticates either by exchanging email/password for a bearer token or
    with a secret API key sent as the Basic auth username. Every mutating
    call waits on the rate limiter first; 429 responses are retried with
    exponential backoff, any other error status raises :class:`ApiError`.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        email: str | None = None,
        password: str | None = None,
        session: httpx.AsyncClient | None = None,
        rate_limiter: RateLimiter | None = None,
        retries: int = DEFAULT_RETRIES,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.email = email
        self.password = password
        self._owns_session = session is None
        self._session = session or httpx.AsyncClient(timeout=30.0)
        self._rate_limiter = rate_limiter or RateLimiter()
        self._headers: dict[str, str] = {}
        self._auth: httpx.Auth | None = None
        self._send = retry_async(self._send_once, retries=retries, initial_delay=initial_delay)

    async def close(self) -> None:
        if self._owns_session:
            await self._session.aclose()

    async def authenticate(self) -> None:
        if self.email and self.password:
            data = await self._send(
                "POST",
                "/auth/user/emailpass",
                json={"email": self.email, "password": self.password},
                authenticated=False,
            )
            token = data.get("token")
            if not token:
                raise ConfigError("Credential exchange returned no token")
            self._headers = {"Authorization": f"Bearer {token}"}
            self._auth = None
        elif self.api_key:
            self._auth = httpx.BasicAuth(self.api_key, "")
        else:
            raise ConfigError("No admin credentials configured")

    async def resolve_defaults(self, *, require_shipping_profile: bool = True) -> CatalogDefaults:
        channels = await self._send("GET", "/admin/sales-channels")
        locations = await self._send("GET", "/admin/stock-locations")
        sales_channel_id = _first_id(channels.get("sales_channels"))
        stock_location_id = _first_id(locations.get("stock_locations"))
        if not sales_channel_id:
            raise ConfigError("No sales channels found")
        if not stock_location_id:
            raise ConfigError("No stock locations found")
        shipping_profile_id = None
        if require_shipping_profile:
            profiles = await self._send("GET", "/admin/shipping-profiles", params={"limit": 1})
            shipping_profile_id = _first_id(profiles.get("shipping_profiles"))
            if not shipping_profile_id:
                raise ConfigError("No shipping profiles found")
        return CatalogDefaults(
            sales_channel_id=sales_channel_id,
            stock_location_id=stock_location_id,
            shipping_profile_id=shipping_profile_id,
        )

    async def find_product_by_handle(self, handle: str) -> dict[str, Any] | None:
        data = await self._send("GET", "/admin/products", params={"handle": handle, "limit": 1})
        products = data.get("products") or []
        return products[0] if products else None

    async def create_product(self, payload: dict[str, Any]) -> dict[str, Any]:
        data = await self._send("POST", "/admin/products", json=payload, write=True)
        return data.get("product") or {}

    async def create_inventory_item(self, *, sku: str | None, title: str) -> dict[str, Any]:
        data = await self._send(
            "POST",
            "/admin/inventory-items",
            json={"sku": sku, "title": title, "requires_shipping": True},
            write=True,
        )
        return data.get("inventory_item") or {}

    async def get_product(self, product_id: str) -> CatalogProduct:
        data = await self._send(
            "GET",
            f"/admin/products/{product_id}",
            params={"fields": PRODUCT_INVENTORY_FIELDS},
        )
        return CatalogProduct.from_api(data.get("product") or {})

    async def set_stocked_quantity(self, inventory_item_id: str, location_id: str, quantity: int) -> dict[str, Any]:
        return await self._send(
            "POST",
            f"/admin/inventory-items/{inventory_item_id}/location-levels/{location_id}",
            json={"stocked_quantity": quantity},
            write=True,
        )

    async def _send_once(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        write: bool = False,
        authenticated: bool = True,
    ) -> dict[str, Any]:
        if write:
            await self._rate_limiter.wait()
        headers = dict(self._headers) if authenticated else {}
        auth = self._auth if authenticated and self._auth is not None else httpx.USE_CLIENT_DEFAULT
        try:
            response = await self._session.request(
                method,
                f"{self.base_url}{path}",
                params=params,
                json=json,
                headers=headers,
                auth=auth,
            )
        except httpx.HTTPError as exc:
            raise ApiError(0, str(exc)) from exc
        return _json(_check(response))


def _first_id(items: Any) -> str | None:
    if not items:
        return None
    value = items[0].get("id")
    return str(value) if value else None
