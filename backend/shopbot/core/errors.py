from __future__ import annotations


class ShopBotError(Exception):
    """Base class for domain errors raised by the bridge."""


class ConfigurationError(ShopBotError):
    """Raised when OAuth credentials are missing from the environment."""


class OAuthStateError(ShopBotError):
    """Raised when an OAuth callback presents an unknown or expired state."""


class IdentityProviderError(ShopBotError):
    """Raised when the authorization code cannot be exchanged for a token."""


class TenantNotFoundError(ShopBotError):
    def __init__(self, tenant_id: str) -> None:
        super().__init__(f"Tenant not found: {tenant_id}")
        self.tenant_id = tenant_id
