from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class AuthStartResponse(BaseModel):
    authUrl: str
    state: str


class ReturnOrderRequest(BaseModel):
    orderId: str | None = None
    orderNumber: str | None = None


class FeatureFlag(BaseModel):
    name: str
    enabled: bool
    reason: str = ""


class TenantView(BaseModel):
    tenantId: str
    shopName: str
    shopDomain: str
    shopEmail: str
    currency: str
    timezone: str | None = None
    status: str
    connectedAt: str
    lastReconnectedAt: str | None = None
    webhookUrl: str
    features: list[FeatureFlag]
    categories: list[str] = []
    productCount: int = 0


class HealthResponse(BaseModel):
    status: str
    tenants: int
    activeSessions: int
    store: str
    services: dict[str, Any]
