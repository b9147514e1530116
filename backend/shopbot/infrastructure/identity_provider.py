from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol
from urllib.parse import urlencode

import httpx

from shopbot.core.config import Settings
from shopbot.core.errors import IdentityProviderError
from shopbot.infrastructure.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TokenGrant:
    access_token: str
    scope: str = ""
    refresh_token: str | None = None
    expires_in: int | None = None


class IdentityProvider(Protocol):
    def build_authorize_url(self, shop: str, state: str) -> str: ...

    async def exchange_code(self, shop: str, code: str) -> TokenGrant: ...


class ShopifyIdentityProvider:
    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self.transport = transport

    def build_authorize_url(self, shop: str, state: str) -> str:
        query = urlencode(
            {
                "client_id": self.settings.shopify_api_key,
                "scope": self.settings.shopify_scopes,
                "redirect_uri": self.settings.oauth_redirect_uri,
                "state": state,
            }
        )
        return f"https://{shop}/admin/oauth/authorize?{query}"

    async def exchange_code(self, shop: str, code: str) -> TokenGrant:
        url = f"https://{shop}/admin/oauth/access_token"
        body = {
            "client_id": self.settings.shopify_api_key,
            "client_secret": self.settings.shopify_api_secret,
            "code": code,
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.commerce_timeout_seconds,
                transport=self.transport,
            ) as client:
                response = await client.post(url, json=body)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "token_exchange_rejected",
                shop=shop,
                status_code=exc.response.status_code,
                body=exc.response.text[:500],
            )
            raise IdentityProviderError(f"Token exchange rejected with status {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.warning("token_exchange_failed", shop=shop, error=str(exc))
            raise IdentityProviderError("Token exchange request failed") from exc
        except ValueError as exc:
            raise IdentityProviderError("Token exchange returned an unreadable body") from exc

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            raise IdentityProviderError("Token exchange returned no access token")
        expires_in = payload.get("expires_in")
        return TokenGrant(
            access_token=str(access_token),
            scope=str(payload.get("scope") or ""),
            refresh_token=payload.get("refresh_token"),
            expires_in=int(expires_in) if isinstance(expires_in, (int, float)) else None,
        )
