from __future__ import annotations

import re
import secrets
import time
from dataclasses import dataclass
from threading import RLock
from typing import Any, Callable

from shopbot.core.config import Settings
from shopbot.core.errors import ConfigurationError, OAuthStateError
from shopbot.infrastructure.commerce_client import CommerceAPI
from shopbot.infrastructure.identity_provider import IdentityProvider
from shopbot.infrastructure.logging import get_logger
from shopbot.models.tenant import StoreCredentials, Tenant
from shopbot.services.store_analysis import analyze_store
from shopbot.services.tenant_registry import TenantRegistry

logger = get_logger(__name__)

_SHOP_RE = re.compile(r"^[a-z0-9][a-z0-9-]*(\.[a-z0-9-]+)+$")


def normalize_shop(shop: str) -> str:
    value = shop.strip().lower()
    for scheme in ("https://", "http://"):
        if value.startswith(scheme):
            value = value[len(scheme):]
    value = value.split("/", 1)[0]
    if value and "." not in value:
        value = f"{value}.myshopify.com"
    if not _SHOP_RE.match(value):
        raise ValueError(f"Invalid shop domain: {shop}")
    return value


@dataclass
class PendingState:
    shop: str
    expires_at: float


class OAuthService:
    """Install handshake: issues single-use state tokens and connects tenants."""

    def __init__(
        self,
        *,
        settings: Settings,
        identity_provider: IdentityProvider,
        commerce: CommerceAPI,
        tenant_registry: TenantRegistry,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self.identity_provider = identity_provider
        self.commerce = commerce
        self.tenant_registry = tenant_registry
        self.clock = clock
        self.lock = RLock()
        self.states: dict[str, PendingState] = {}

    def ensure_configured(self) -> None:
        if not self.settings.oauth_configured:
            raise ConfigurationError("Shopify OAuth is not configured: set SHOPIFY_API_KEY and SHOPIFY_API_SECRET")

    def config_report(self) -> dict[str, Any]:
        return {
            "configured": {
                "SHOPIFY_API_KEY": bool(self.settings.shopify_api_key),
                "SHOPIFY_API_SECRET": bool(self.settings.shopify_api_secret),
                "BASE_URL": bool(self.settings.base_url),
            },
            "redirectUri": self.settings.oauth_redirect_uri,
            "scopes": self.settings.shopify_scopes.split(","),
            "apiVersion": self.settings.shopify_api_version,
        }

    def start(self, shop: str) -> dict[str, str]:
        self.ensure_configured()
        shop_domain = normalize_shop(shop)
        state = secrets.token_urlsafe(24)
        with self.lock:
            self._purge_expired()
            self.states[state] = PendingState(
                shop=shop_domain,
                expires_at=self.clock() + self.settings.oauth_state_ttl_seconds,
            )
        logger.info("oauth_started", shop=shop_domain)
        return {
            "authUrl": self.identity_provider.build_authorize_url(shop_domain, state),
            "state": state,
        }

    def consume_state(self, state: str) -> PendingState:
        with self.lock:
            pending = self.states.pop(state, None) if state else None
        if pending is None:
            raise OAuthStateError("Invalid or unknown state parameter")
        if pending.expires_at < self.clock():
            raise OAuthStateError("State parameter has expired")
        return pending

    async def callback(self, *, code: str, shop: str, state: str) -> Tenant:
        """Completes the install for ``shop``.

        The state is checked (and spent) before anything else. The catalog is
        sampled to detect which features the store supports. Exchange
        failures raise ``IdentityProviderError``.
        """
        pending = self.consume_state(state)
        self.ensure_configured()
        shop_domain = normalize_shop(shop)
        if shop_domain != pending.shop:
            raise OAuthStateError("State was issued for a different shop")

        grant = await self.identity_provider.exchange_code(shop_domain, code)
        credentials = StoreCredentials(shop_domain=shop_domain, access_token=grant.access_token)
        shop_info = await self.commerce.get_shop(credentials)
        if shop_info is None:
            logger.warning("oauth_shop_metadata_missing", shop=shop_domain)
        profile = await analyze_store(self.commerce, credentials)
        return self.tenant_registry.connect(shop_domain=shop_domain, grant=grant, shop=shop_info, profile=profile)

    def _purge_expired(self) -> None:
        now = self.clock()
        for key in [key for key, pending in self.states.items() if pending.expires_at < now]:
            del self.states[key]
