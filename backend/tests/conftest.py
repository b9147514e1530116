from __future__ import annotations

from copy import deepcopy
from typing import Any, Iterator

import pytest
from fastapi.testclient import TestClient

from shopbot.api.deps import get_container
from shopbot.container import Container
from shopbot.core.config import Settings
from shopbot.core.errors import IdentityProviderError
from shopbot.infrastructure.identity_provider import TokenGrant
from shopbot.main import app
from shopbot.models.tenant import StoreCredentials, Tenant


class FakeCommerce:
    """In-process stand-in for the Shopify Admin API."""

    def __init__(self) -> None:
        self.shop: dict[str, Any] = {
            "name": "Demo Store",
            "email": "owner@demo.test",
            "currency": "USD",
            "iana_timezone": "America/New_York",
        }
        self.products: list[dict[str, Any]] = []
        self.orders: list[dict[str, Any]] = []
        self.orders_by_id: dict[str, dict[str, Any]] = {}
        self.refund: dict[str, Any] | None = None
        self.drafts: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, Any]] = []
        self.unavailable = False
        self._next_draft_id = 9001

    async def get_shop(self, credentials: StoreCredentials) -> dict[str, Any] | None:
        self.calls.append(("get_shop", credentials.access_token))
        return None if self.unavailable else dict(self.shop)

    async def list_products(self, credentials: StoreCredentials, *, limit: int = 10) -> list[dict[str, Any]]:
        self.calls.append(("list_products", limit))
        return [] if self.unavailable else deepcopy(self.products[:limit])

    async def search_products(self, credentials: StoreCredentials, query: str) -> list[dict[str, Any]]:
        self.calls.append(("search_products", query))
        return [] if self.unavailable else deepcopy(self.products)

    async def list_orders_by_email(
        self, credentials: StoreCredentials, email: str, *, limit: int = 5
    ) -> list[dict[str, Any]]:
        self.calls.append(("list_orders_by_email", email))
        return [] if self.unavailable else deepcopy(self.orders[:limit])

    async def get_order(self, credentials: StoreCredentials, order_id: str) -> dict[str, Any] | None:
        self.calls.append(("get_order", order_id))
        return deepcopy(self.orders_by_id.get(str(order_id)))

    async def calculate_refund(
        self, credentials: StoreCredentials, order_id: str, line_items: list[dict[str, Any]]
    ) -> dict[str, Any] | None:
        self.calls.append(("calculate_refund", order_id))
        return deepcopy(self.refund)

    async def create_draft_order(
        self, credentials: StoreCredentials, *, email: str, line_items: list[dict[str, Any]]
    ) -> dict[str, Any] | None:
        self.calls.append(("create_draft_order", deepcopy(line_items)))
        if self.unavailable:
            return None
        draft_id = self._next_draft_id
        self._next_draft_id += 1
        draft = {
            "id": draft_id,
            "status": "open",
            "email": email,
            "line_items": deepcopy(line_items),
            "invoice_url": f"https://{credentials.shop_domain}/invoices/{draft_id}",
        }
        self.drafts[str(draft_id)] = draft
        return deepcopy(draft)

    async def get_draft_order(self, credentials: StoreCredentials, draft_id: str) -> dict[str, Any] | None:
        self.calls.append(("get_draft_order", draft_id))
        return deepcopy(self.drafts.get(str(draft_id)))

    async def update_draft_order(
        self, credentials: StoreCredentials, draft_id: str, *, line_items: list[dict[str, Any]]
    ) -> dict[str, Any] | None:
        self.calls.append(("update_draft_order", deepcopy(line_items)))
        draft = self.drafts.get(str(draft_id))
        if draft is None:
            return None
        draft["line_items"] = deepcopy(line_items)
        return deepcopy(draft)


class FakeIdentityProvider:
    def __init__(self) -> None:
        self.rejects = False
        self.exchanges: list[tuple[str, str]] = []

    def build_authorize_url(self, shop: str, state: str) -> str:
        return f"https://{shop}/admin/oauth/authorize?state={state}"

    async def exchange_code(self, shop: str, code: str) -> TokenGrant:
        self.exchanges.append((shop, code))
        if self.rejects:
            raise IdentityProviderError("Token exchange rejected with status 400")
        return TokenGrant(access_token=f"shpat_{code}", scope="read_orders")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        base_url="https://bot.example.com",
        shopify_api_key="test-key",
        shopify_api_secret="test-secret",
    )


@pytest.fixture
def fake_commerce() -> FakeCommerce:
    return FakeCommerce()


@pytest.fixture
def fake_identity() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def container(settings: Settings, fake_commerce: FakeCommerce, fake_identity: FakeIdentityProvider) -> Container:
    return Container(settings=settings, commerce_client=fake_commerce, identity_provider=fake_identity)


@pytest.fixture
def tenant(container: Container) -> Tenant:
    tenant = Tenant(
        tenant_id="biz_demo",
        shop_domain="demo.myshopify.com",
        access_token="shpat_demo",
        shop_name="Demo Store",
        shop_email="owner@demo.test",
        connected_at="2026-01-01T00:00:00+00:00",
        webhook_url=container.tenant_registry.webhook_url("biz_demo"),
    )
    container.tenant_repository.save(tenant)
    return tenant


@pytest.fixture
def client(container: Container) -> Iterator[TestClient]:
    app.dependency_overrides[get_container] = lambda: container
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_container, None)
