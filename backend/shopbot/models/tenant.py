from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any

# Capabilities every connected store gets, whatever its catalog looks like.
BASE_FEATURES = (
    ("Product Browsing", "Always enabled"),
    ("Order Tracking", "Always enabled"),
    ("Add to Cart", "Always enabled"),
    ("Buy Now", "Always enabled"),
    ("Process Returns", "Always enabled"),
    ("Memory Context", "Always enabled"),
)


def feature(name: str, reason: str) -> dict[str, Any]:
    return {"name": name, "enabled": True, "reason": reason}


def base_features() -> list[dict[str, Any]]:
    return [feature(name, reason) for name, reason in BASE_FEATURES]


@dataclass(frozen=True)
class StoreCredentials:
    shop_domain: str
    access_token: str


@dataclass
class Tenant:
    tenant_id: str
    shop_domain: str
    access_token: str
    shop_name: str = ""
    shop_email: str = ""
    refresh_token: str | None = None
    expires_at: str | None = None
    currency: str = "USD"
    timezone: str | None = None
    status: str = "active"
    connected_at: str = ""
    last_reconnected_at: str | None = None
    webhook_url: str = ""
    features: list[dict[str, Any]] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    product_count: int = 0

    @property
    def credentials(self) -> StoreCredentials:
        return StoreCredentials(shop_domain=self.shop_domain, access_token=self.access_token)

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @property
    def display_name(self) -> str:
        return self.shop_name or self.shop_domain.replace(".myshopify.com", "")

    def to_record(self) -> dict[str, Any]:
        return {
            "tenantId": self.tenant_id,
            "shopDomain": self.shop_domain,
            "shopName": self.shop_name,
            "shopEmail": self.shop_email,
            "accessToken": self.access_token,
            "refreshToken": self.refresh_token,
            "expiresAt": self.expires_at,
            "currency": self.currency,
            "timezone": self.timezone,
            "status": self.status,
            "connectedAt": self.connected_at,
            "lastReconnectedAt": self.last_reconnected_at,
            "webhookUrl": self.webhook_url,
            "features": deepcopy(self.features),
            "categories": list(self.categories),
            "productCount": self.product_count,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Tenant":
        return cls(
            tenant_id=str(record["tenantId"]),
            shop_domain=str(record.get("shopDomain", "")),
            access_token=str(record.get("accessToken", "")),
            shop_name=str(record.get("shopName") or ""),
            shop_email=str(record.get("shopEmail") or ""),
            refresh_token=record.get("refreshToken"),
            expires_at=record.get("expiresAt"),
            currency=str(record.get("currency") or "USD"),
            timezone=record.get("timezone"),
            status=str(record.get("status") or "active"),
            connected_at=str(record.get("connectedAt") or ""),
            last_reconnected_at=record.get("lastReconnectedAt"),
            webhook_url=str(record.get("webhookUrl") or ""),
            features=[dict(item) for item in record.get("features") or [] if isinstance(item, dict)],
            categories=[str(item) for item in record.get("categories") or []],
            product_count=int(record.get("productCount") or 0),
        )

    def public_view(self) -> dict[str, Any]:
        """Tenant metadata that is safe to hand to callers (no credentials)."""
        return {
            "tenantId": self.tenant_id,
            "shopName": self.shop_name,
            "shopDomain": self.shop_domain,
            "shopEmail": self.shop_email,
            "currency": self.currency,
            "timezone": self.timezone,
            "status": self.status,
            "connectedAt": self.connected_at,
            "lastReconnectedAt": self.last_reconnected_at,
            "webhookUrl": self.webhook_url,
            "features": deepcopy(self.features) or base_features(),
            "categories": list(self.categories),
            "productCount": self.product_count,
        }
