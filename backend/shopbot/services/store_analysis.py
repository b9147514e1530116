from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from shopbot.infrastructure.commerce_client import CommerceAPI
from shopbot.infrastructure.logging import get_logger
from shopbot.models.tenant import StoreCredentials, base_features, feature

logger = get_logger(__name__)

SAMPLE_SIZE = 10
MAX_CATEGORIES = 5


@dataclass
class StoreProfile:
    features: list[dict[str, Any]] = field(default_factory=base_features)
    categories: list[str] = field(default_factory=list)
    total_products: int = 0


def _price(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _discounted(variant: dict[str, Any]) -> bool:
    compare_at = _price(variant.get("compare_at_price"))
    price = _price(variant.get("price"))
    return compare_at is not None and price is not None and compare_at > price


def detect_features(products: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Base capabilities plus the ones a catalog sample shows the store supports."""
    features = base_features()
    if any(len(product.get("variants") or []) > 1 for product in products):
        features.append(feature("Size/Color Selection", "Variants detected"))
    if any(product.get("images") for product in products):
        features.append(feature("Visual Product Cards", "Product images found"))
    if any(_discounted(variant) for product in products for variant in product.get("variants") or []):
        features.append(feature("Deals & Discounts", "Sale prices detected"))
    return features


def store_categories(products: list[dict[str, Any]]) -> list[str]:
    categories: list[str] = []
    for product in products:
        product_type = str(product.get("product_type") or "").strip()
        if product_type and product_type not in categories:
            categories.append(product_type)
    return categories[:MAX_CATEGORIES]


async def analyze_store(commerce: CommerceAPI, credentials: StoreCredentials) -> StoreProfile:
    products = await commerce.list_products(credentials, limit=SAMPLE_SIZE)
    profile = StoreProfile(
        features=detect_features(products),
        categories=store_categories(products),
        total_products=len(products),
    )
    logger.info(
        "store_analyzed",
        shop=credentials.shop_domain,
        products=profile.total_products,
        features=[item["name"] for item in profile.features],
    )
    return profile
