from __future__ import annotations

import math
import re
from typing import Any

from shopbot.agents.base_agent import BaseAgent, format_money
from shopbot.infrastructure.commerce_client import CommerceAPI
from shopbot.models.tenant import StoreCredentials
from shopbot.orchestrator.product_matcher import LevenshteinProductMatcher, ProductMatcher
from shopbot.orchestrator.types import ActionResult, Button, Card

MAX_DEALS = 5
DESCRIPTION_LIMIT = 280

_TAG_RE = re.compile(r"<[^>]+>")
_INFO_WORDS_RE = re.compile(
    r"\b(tell|me|more|about|info|information|details|describe|specifications|specs?|the|this|that|product|please)\b"
)


def discount_percent(price: Any, compare_at: Any) -> int | None:
    try:
        current = float(price)
        original = float(compare_at)
    except (TypeError, ValueError):
        return None
    if original <= 0 or original <= current:
        return None
    return int(math.floor((original - current) / original * 100 + 0.5))


def price_text(price: Any, compare_at: Any) -> str:
    label = format_money(price, None) if price not in (None, "") else "N/A"
    discount = discount_percent(price, compare_at)
    if discount is None:
        return label
    return f"{label} (Save {discount}%)"


def first_variant(product: dict[str, Any]) -> dict[str, Any]:
    variants = product.get("variants") or []
    return variants[0] if variants and isinstance(variants[0], dict) else {}


def product_image(product: dict[str, Any]) -> str | None:
    image = product.get("image")
    if isinstance(image, dict) and image.get("src"):
        return str(image["src"])
    images = product.get("images") or []
    if images and isinstance(images[0], dict) and images[0].get("src"):
        return str(images[0]["src"])
    return None


class ProductAgent(BaseAgent):
    name = "product"
    intents = frozenset({"browse_deals", "product_info"})

    def __init__(self, commerce: CommerceAPI, matcher: ProductMatcher | None = None) -> None:
        super().__init__(commerce)
        self.matcher = matcher or LevenshteinProductMatcher()

    async def execute(
        self,
        intent: str,
        message: str,
        context: dict[str, Any],
        credentials: StoreCredentials,
    ) -> ActionResult:
        if intent == "product_info":
            return await self._describe(message, context, credentials)
        return await self._browse(credentials)

    async def _browse(self, credentials: StoreCredentials) -> ActionResult:
        products = await self.commerce.list_products(credentials, limit=10)
        if not products:
            return ActionResult.reply(
                "No products are available right now. Please check back later.",
                suggestions=["Track Order", "Help"],
                remember=False,
            )

        cards: list[Card] = []
        bullets: list[str] = []
        for product in products[:MAX_DEALS]:
            variant = first_variant(product)
            subtitle = price_text(variant.get("price"), variant.get("compare_at_price"))
            title = str(product.get("title") or "Untitled product")
            bullets.append(f"• {title} - {subtitle}")
            cards.append(
                Card(
                    title=title,
                    subtitle=subtitle,
                    image=product_image(product),
                    buttons=self._card_buttons(product, variant, credentials),
                )
            )

        return ActionResult.reply(
            "Today's top deals\n\n" + "\n".join(bullets),
            suggestions=["Add to Cart", "Track Order", "Help"],
            cards=cards,
            data={"productCount": len(products)},
        )

    def _card_buttons(
        self,
        product: dict[str, Any],
        variant: dict[str, Any],
        credentials: StoreCredentials,
    ) -> list[Button]:
        buttons: list[Button] = []
        variant_id = variant.get("id")
        if variant_id:
            buttons.append(Button(label="Add to Cart", type="text", value=f"Add {variant_id} to cart"))
        if product.get("handle"):
            buttons.append(
                Button(
                    label="View Details",
                    type="url",
                    value=f"https://{credentials.shop_domain}/products/{product['handle']}",
                )
            )
        if variant_id:
            buttons.append(Button(label="Buy Now", type="text", value=f"Buy now {variant_id}"))
        return buttons

    async def _describe(
        self,
        message: str,
        context: dict[str, Any],
        credentials: StoreCredentials,
    ) -> ActionResult:
        query = _INFO_WORDS_RE.sub(" ", message.lower())
        query = re.sub(r"\s+", " ", query).strip(" ?.!")
        if not query:
            query = str(context.get("lastProductName") or "")
        if not query:
            return ActionResult.reply(
                "Which product would you like to know more about?",
                suggestions=["Browse Deals", "Help"],
                remember=False,
            )

        products = await self.commerce.search_products(credentials, query)
        match = self.matcher.best_match(query, products)
        if match is None:
            return ActionResult.reply(
                f"I couldn't find a product matching \"{query}\".",
                suggestions=["Browse Deals", "Help"],
                remember=False,
            )

        product = match.product
        variant = first_variant(product)
        title = str(product.get("title") or "This product")
        description = _TAG_RE.sub(" ", str(product.get("body_html") or ""))
        description = re.sub(r"\s+", " ", description).strip()
        if len(description) > DESCRIPTION_LIMIT:
            description = description[:DESCRIPTION_LIMIT].rsplit(" ", 1)[0] + "..."

        lines = [title, f"Price: {price_text(variant.get('price'), variant.get('compare_at_price'))}"]
        if product.get("vendor"):
            lines.append(f"Brand: {product['vendor']}")
        if description:
            lines.extend(["", description])

        return ActionResult.reply(
            "\n".join(lines),
            suggestions=["Add to Cart", "Browse Deals", "Help"],
            cards=[
                Card(
                    title=title,
                    subtitle=lines[1],
                    image=product_image(product),
                    buttons=self._card_buttons(product, variant, credentials),
                )
            ],
            data={
                "lastProductName": title,
                "lastVariantId": str(variant["id"]) if variant.get("id") else None,
            },
        )
