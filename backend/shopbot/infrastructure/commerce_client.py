from __future__ import annotations

from typing import Any, Protocol

import httpx

from shopbot.core.config import Settings
from shopbot.infrastructure.logging import get_logger
from shopbot.models.tenant import StoreCredentials

logger = get_logger(__name__)


class CommerceAPI(Protocol):
    async def get_shop(self, credentials: StoreCredentials) -> dict[str, Any] | None: ...

    async def list_products(self, credentials: StoreCredentials, *, limit: int = 10) -> list[dict[str, Any]]: ...

    async def search_products(self, credentials: StoreCredentials, query: str) -> list[dict[str, Any]]: ...

    async def list_orders_by_email(
        self, credentials: StoreCredentials, email: str, *, limit: int = 5
    ) -> list[dict[str, Any]]: ...

    async def get_order(self, credentials: StoreCredentials, order_id: str) -> dict[str, Any] | None: ...

    async def calculate_refund(
        self, credentials: StoreCredentials, order_id: str, line_items: list[dict[str, Any]]
    ) -> dict[str, Any] | None: ...

    async def create_draft_order(
        self, credentials: StoreCredentials, *, email: str, line_items: list[dict[str, Any]]
    ) -> dict[str, Any] | None: ...

    async def get_draft_order(self, credentials: StoreCredentials, draft_id: str) -> dict[str, Any] | None: ...

    async def update_draft_order(
        self, credentials: StoreCredentials, draft_id: str, *, line_items: list[dict[str, Any]]
    ) -> dict[str, Any] | None: ...


class ShopifyCommerceClient:
    """Shopify Admin REST client scoped per call to one store's credentials.

    Every method degrades to ``None`` (or an empty list) when the store cannot
    be reached, answers with a non-2xx status, or returns a body that is not
    JSON. The failure is logged; callers only ever see "no data".
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.api_version = settings.shopify_api_version
        self.timeout = settings.commerce_timeout_seconds
        self.transport = transport

    def _base_url(self, credentials: StoreCredentials) -> str:
        return f"https://{credentials.shop_domain}/admin/api/{self.api_version}"

    def _headers(self, credentials: StoreCredentials) -> dict[str, str]:
        return {
            "X-Shopify-Access-Token": credentials.access_token,
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        credentials: StoreCredentials,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        url = f"{self._base_url(credentials)}/{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers=self._headers(credentials),
                )
        except httpx.HTTPError as exc:
            logger.warning(
                "commerce_request_failed",
                shop=credentials.shop_domain,
                method=method,
                path=path,
                error=str(exc),
            )
            return None

        if response.status_code >= 400:
            logger.warning(
                "commerce_request_rejected",
                shop=credentials.shop_domain,
                method=method,
                path=path,
                status_code=response.status_code,
                body=response.text[:500],
            )
            return None

        try:
            payload = response.json()
        except ValueError:
            logger.warning("commerce_response_not_json", shop=credentials.shop_domain, path=path)
            return None
        return payload if isinstance(payload, dict) else None

    async def get_shop(self, credentials: StoreCredentials) -> dict[str, Any] | None:
        payload = await self._request(credentials, "GET", "shop.json")
        return _dict_field(payload, "shop")

    async def list_products(self, credentials: StoreCredentials, *, limit: int = 10) -> list[dict[str, Any]]:
        payload = await self._request(
            credentials,
            "GET",
            "products.json",
            params={"limit": limit, "published_status": "published"},
        )
        return _list_field(payload, "products")

    async def search_products(self, credentials: StoreCredentials, query: str) -> list[dict[str, Any]]:
        # The Admin API title filter is exact-match only, so name resolution
        # happens client-side over one catalog page.
        logger.debug("commerce_product_search", shop=credentials.shop_domain, query=query)
        return await self.list_products(credentials, limit=50)

    async def list_orders_by_email(
        self,
        credentials: StoreCredentials,
        email: str,
        *,
        limit: int = 5,
    ) -> list[dict[str, Any]]:
        payload = await self._request(
            credentials,
            "GET",
            "orders.json",
            params={"email": email, "status": "any", "limit": limit},
        )
        return _list_field(payload, "orders")

    async def get_order(self, credentials: StoreCredentials, order_id: str) -> dict[str, Any] | None:
        payload = await self._request(credentials, "GET", f"orders/{order_id}.json")
        return _dict_field(payload, "order")

    async def calculate_refund(
        self,
        credentials: StoreCredentials,
        order_id: str,
        line_items: list[dict[str, Any]],
    ) -> dict[str, Any] | None:
        body = {
            "refund": {
                "shipping": {"full_refund": True},
                "refund_line_items": [
                    {
                        "line_item_id": item.get("id"),
                        "quantity": item.get("quantity", 1),
                        "restock_type": "return",
                    }
                    for item in line_items
                ],
            }
        }
        payload = await self._request(
            credentials,
            "POST",
            f"orders/{order_id}/refunds/calculate.json",
            json=body,
        )
        return _dict_field(payload, "refund")

    async def create_draft_order(
        self,
        credentials: StoreCredentials,
        *,
        email: str,
        line_items: list[dict[str, Any]],
    ) -> dict[str, Any] | None:
        body = {"draft_order": {"email": email, "line_items": line_items, "use_customer_default_address": True}}
        payload = await self._request(credentials, "POST", "draft_orders.json", json=body)
        return _dict_field(payload, "draft_order")

    async def get_draft_order(self, credentials: StoreCredentials, draft_id: str) -> dict[str, Any] | None:
        payload = await self._request(credentials, "GET", f"draft_orders/{draft_id}.json")
        return _dict_field(payload, "draft_order")

    async def update_draft_order(
        self,
        credentials: StoreCredentials,
        draft_id: str,
        *,
        line_items: list[dict[str, Any]],
    ) -> dict[str, Any] | None:
        body = {"draft_order": {"id": draft_id, "line_items": line_items}}
        payload = await self._request(credentials, "PUT", f"draft_orders/{draft_id}.json", json=body)
        return _dict_field(payload, "draft_order")


def _dict_field(payload: dict[str, Any] | None, key: str) -> dict[str, Any] | None:
    if not payload:
        return None
    value = payload.get(key)
    return value if isinstance(value, dict) else None


def _list_field(payload: dict[str, Any] | None, key: str) -> list[dict[str, Any]]:
    if not payload:
        return []
    value = payload.get(key)
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]
