from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import pytest

from shopbot.core.config import Settings
from shopbot.core.errors import IdentityProviderError
from shopbot.infrastructure.commerce_client import ShopifyCommerceClient
from shopbot.infrastructure.identity_provider import ShopifyIdentityProvider
from shopbot.models.tenant import StoreCredentials

CREDENTIALS = StoreCredentials(shop_domain="demo.myshopify.com", access_token="shpat_demo")


def _settings(**overrides: Any) -> Settings:
    base = {
        "shopify_api_key": "test-key",
        "shopify_api_secret": "test-secret",
        "base_url": "https://bot.example.com",
    }
    base.update(overrides)
    return Settings(**base)


def _client(handler: Any) -> ShopifyCommerceClient:
    return ShopifyCommerceClient(settings=_settings(), transport=httpx.MockTransport(handler))


def test_orders_are_requested_by_email_with_store_token() -> None:
    captured: dict[str, Any] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["request"] = request
        return httpx.Response(200, json={"orders": [{"id": 1, "name": "#1001"}]})

    orders = asyncio.run(_client(handler).list_orders_by_email(CREDENTIALS, "jane@x.com"))

    request = captured["request"]
    assert orders == [{"id": 1, "name": "#1001"}]
    assert request.url.path == "/admin/api/2024-10/orders.json"
    assert request.url.params["email"] == "jane@x.com"
    assert request.url.params["status"] == "any"
    assert request.url.params["limit"] == "5"
    assert request.headers["X-Shopify-Access-Token"] == "shpat_demo"


def test_error_statuses_and_bad_bodies_degrade_to_no_data() -> None:
    def rejected(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"errors": "Invalid API key"})

    def garbled(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>maintenance</html>")

    assert asyncio.run(_client(rejected).list_products(CREDENTIALS)) == []
    assert asyncio.run(_client(rejected).get_order(CREDENTIALS, "1")) is None
    assert asyncio.run(_client(garbled).get_shop(CREDENTIALS)) is None


def test_transport_failures_degrade_to_no_data() -> None:
    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    assert asyncio.run(_client(unreachable).get_draft_order(CREDENTIALS, "9001")) is None


def test_refund_calculation_requests_full_return() -> None:
    captured: dict[str, Any] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"refund": {"refund_line_items": [{"subtotal": "20.00"}]}})

    refund = asyncio.run(
        _client(handler).calculate_refund(CREDENTIALS, "5001", [{"id": 77, "quantity": 2}])
    )

    assert refund == {"refund_line_items": [{"subtotal": "20.00"}]}
    assert captured["method"] == "POST"
    assert captured["path"].endswith("/orders/5001/refunds/calculate.json")
    assert captured["body"] == {
        "refund": {
            "shipping": {"full_refund": True},
            "refund_line_items": [{"line_item_id": 77, "quantity": 2, "restock_type": "return"}],
        }
    }


def test_identity_provider_exchanges_code_for_token() -> None:
    captured: dict[str, Any] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"access_token": "shpat_new", "scope": "read_orders"})

    provider = ShopifyIdentityProvider(settings=_settings(), transport=httpx.MockTransport(handler))
    grant = asyncio.run(provider.exchange_code("demo.myshopify.com", "code-1"))

    assert grant.access_token == "shpat_new"
    assert captured["url"] == "https://demo.myshopify.com/admin/oauth/access_token"
    assert captured["body"] == {"client_id": "test-key", "client_secret": "test-secret", "code": "code-1"}

    url = provider.build_authorize_url("demo.myshopify.com", "state-1")
    assert url.startswith("https://demo.myshopify.com/admin/oauth/authorize?")
    assert "state=state-1" in url
    assert "redirect_uri=https%3A%2F%2Fbot.example.com%2Fv1%2Fauth%2Fcallback" in url


def test_identity_provider_raises_on_rejected_exchange() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "invalid_request"})

    provider = ShopifyIdentityProvider(settings=_settings(), transport=httpx.MockTransport(handler))
    with pytest.raises(IdentityProviderError):
        asyncio.run(provider.exchange_code("demo.myshopify.com", "bad-code"))
