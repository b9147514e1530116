from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    app_name: str = "Storefront Chat Bridge"
    api_prefix: str = "/v1"
    base_url: str = "http://localhost:8000"
    cors_origins: str = "*"
    log_level: str = "INFO"

    shopify_api_key: str = ""
    shopify_api_secret: str = ""
    shopify_api_version: str = "2024-10"
    shopify_scopes: str = "read_products,read_orders,write_orders,read_draft_orders,write_draft_orders"
    oauth_state_ttl_seconds: int = 600

    commerce_timeout_seconds: float = 10.0
    memory_max_messages: int = 50
    memory_max_sessions: int = 10000

    enable_external_services: bool = False
    mongodb_uri: str = "mongodb://localhost:27017/storebot"
    redis_url: str = "redis://localhost:6379/0"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            app_name=os.getenv("APP_NAME", cls.app_name),
            api_prefix=os.getenv("API_PREFIX", cls.api_prefix),
            base_url=os.getenv("BASE_URL", cls.base_url).rstrip("/"),
            cors_origins=os.getenv("CORS_ORIGINS", cls.cors_origins),
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
            shopify_api_key=os.getenv("SHOPIFY_API_KEY", ""),
            shopify_api_secret=os.getenv("SHOPIFY_API_SECRET", ""),
            shopify_api_version=os.getenv("SHOPIFY_API_VERSION", cls.shopify_api_version),
            shopify_scopes=os.getenv("SHOPIFY_SCOPES", cls.shopify_scopes),
            oauth_state_ttl_seconds=_env_int("OAUTH_STATE_TTL_SECONDS", cls.oauth_state_ttl_seconds),
            commerce_timeout_seconds=_env_float("COMMERCE_TIMEOUT_SECONDS", cls.commerce_timeout_seconds),
            memory_max_messages=_env_int("MEMORY_MAX_MESSAGES", cls.memory_max_messages),
            memory_max_sessions=_env_int("MEMORY_MAX_SESSIONS", cls.memory_max_sessions),
            enable_external_services=_env_bool("ENABLE_EXTERNAL_SERVICES", cls.enable_external_services),
            mongodb_uri=os.getenv("MONGODB_URI", cls.mongodb_uri),
            redis_url=os.getenv("REDIS_URL", cls.redis_url),
        )

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def oauth_configured(self) -> bool:
        return bool(self.shopify_api_key and self.shopify_api_secret)

    @property
    def oauth_redirect_uri(self) -> str:
        return f"{self.base_url}{self.api_prefix}/auth/callback"
