from __future__ import annotations

from datetime import timedelta
from typing import Any

from shopbot.core.config import Settings
from shopbot.core.errors import TenantNotFoundError
from shopbot.core.utils import generate_id, iso_now, utc_now
from shopbot.infrastructure.identity_provider import TokenGrant
from shopbot.infrastructure.logging import get_logger
from shopbot.models.tenant import Tenant
from shopbot.repositories.tenant_repository import TenantRepository
from shopbot.services.store_analysis import StoreProfile

logger = get_logger(__name__)


def _apply_profile(tenant: Tenant, profile: StoreProfile) -> None:
    tenant.features = [dict(item) for item in profile.features]
    tenant.categories = list(profile.categories)
    tenant.product_count = profile.total_products


class TenantRegistry:
    def __init__(self, *, settings: Settings, repository: TenantRepository) -> None:
        self.settings = settings
        self.repository = repository

    def webhook_url(self, tenant_id: str) -> str:
        return f"{self.settings.base_url}{self.settings.api_prefix}/tenants/{tenant_id}/messages"

    def bot_script_url(self, tenant_id: str) -> str:
        return f"{self.settings.base_url}{self.settings.api_prefix}/tenants/{tenant_id}/bot-script"

    def get(self, tenant_id: str) -> Tenant | None:
        return self.repository.get(tenant_id)

    def require(self, tenant_id: str) -> Tenant:
        tenant = self.repository.get(tenant_id)
        if tenant is None:
            raise TenantNotFoundError(tenant_id)
        return tenant

    def find_by_shop(self, shop_domain: str) -> Tenant | None:
        tenant_id = self.repository.find_id_by_shop(shop_domain)
        if not tenant_id:
            return None
        return self.repository.get(tenant_id)

    def connect(
        self,
        *,
        shop_domain: str,
        grant: TokenGrant,
        shop: dict[str, Any] | None,
        profile: StoreProfile | None = None,
    ) -> Tenant:
        """Creates the tenant for a shop, or refreshes it on reconnect.

        A shop domain maps to a single tenant id: reconnecting replaces the
        credential, reactivates the tenant and stamps the reconnect time.
        A fresh ``profile`` replaces the stored feature list.
        """
        shop = shop or {}
        now = iso_now()
        expires_at = (utc_now() + timedelta(seconds=grant.expires_in)).isoformat() if grant.expires_in else None
        existing = self.find_by_shop(shop_domain)

        if existing is not None:
            existing.access_token = grant.access_token
            existing.refresh_token = grant.refresh_token
            existing.expires_at = expires_at
            existing.status = "active"
            existing.last_reconnected_at = now
            existing.shop_name = str(shop.get("name") or existing.shop_name)
            existing.shop_email = str(shop.get("email") or existing.shop_email)
            existing.currency = str(shop.get("currency") or existing.currency)
            existing.timezone = shop.get("iana_timezone") or existing.timezone
            existing.webhook_url = self.webhook_url(existing.tenant_id)
            if profile is not None:
                _apply_profile(existing, profile)
            self.repository.save(existing)
            logger.info("tenant_reconnected", tenant_id=existing.tenant_id, shop=shop_domain)
            return existing

        tenant_id = generate_id("biz")
        tenant = Tenant(
            tenant_id=tenant_id,
            shop_domain=shop_domain,
            access_token=grant.access_token,
            shop_name=str(shop.get("name") or ""),
            shop_email=str(shop.get("email") or ""),
            refresh_token=grant.refresh_token,
            expires_at=expires_at,
            currency=str(shop.get("currency") or "USD"),
            timezone=shop.get("iana_timezone"),
            status="active",
            connected_at=now,
            webhook_url=self.webhook_url(tenant_id),
        )
        if profile is not None:
            _apply_profile(tenant, profile)
        self.repository.save(tenant)
        logger.info("tenant_connected", tenant_id=tenant_id, shop=shop_domain)
        return tenant

    def list_tenants(self) -> list[Tenant]:
        return self.repository.list_all()

    def count(self) -> int:
        return self.repository.count()
