from __future__ import annotations

import re
from typing import Any

from shopbot.agents.base_agent import EMAIL_PATTERN, BaseAgent
from shopbot.infrastructure.commerce_client import CommerceAPI
from shopbot.infrastructure.logging import get_logger
from shopbot.models.tenant import StoreCredentials
from shopbot.orchestrator.product_matcher import LevenshteinProductMatcher, ProductMatcher
from shopbot.orchestrator.types import ActionResult, Button

logger = get_logger(__name__)

VARIANT_ID_PATTERN = re.compile(r"\b\d{8,}\b")
_CART_WORDS_RE = re.compile(
    r"\b(i|i'd|id|would|like|to|want|buy|add|this|that|it|my|the|a|an|cart|please|interested|in|one|some|into)\b"
)


def cart_query(message: str) -> str:
    query = _CART_WORDS_RE.sub(" ", EMAIL_PATTERN.sub(" ", message.lower()))
    return re.sub(r"\s+", " ", query).strip(" ?.!,")


def merge_line_items(existing: list[dict[str, Any]], variant_id: str, quantity: int = 1) -> list[dict[str, Any]]:
    """Folds one variant into a draft order's line items.

    A variant already present has its quantity incremented, otherwise it is
    appended. Custom (variant-less) lines are carried over unchanged.
    """
    merged: list[dict[str, Any]] = []
    found = False
    for item in existing:
        current = item.get("variant_id")
        if current is None:
            merged.append(
                {
                    "title": item.get("title"),
                    "price": item.get("price"),
                    "quantity": int(item.get("quantity") or 1),
                }
            )
            continue
        line = {"variant_id": _variant_ref(current), "quantity": int(item.get("quantity") or 1)}
        if str(current) == str(variant_id):
            line["quantity"] += quantity
            found = True
        merged.append(line)
    if not found:
        merged.append({"variant_id": _variant_ref(variant_id), "quantity": quantity})
    return merged


def _variant_ref(value: Any) -> Any:
    text = str(value)
    return int(text) if text.isdigit() else value


class CartAgent(BaseAgent):
    name = "cart"
    intents = frozenset({"add_cart", "buy_now"})

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
        if intent == "buy_now":
            return await self._buy_now(message, context, credentials)
        return await self._add_to_cart(message, context, credentials)

    async def _add_to_cart(
        self,
        message: str,
        context: dict[str, Any],
        credentials: StoreCredentials,
    ) -> ActionResult:
        email = self.resolve_email(context, message)
        if not email:
            return ActionResult.ask("email", "I need your email to add items to your cart.", input_type="email")

        variant_id, product_name = await self._resolve_variant(message, context, credentials)
        if not variant_id:
            return ActionResult.reply(
                "Which product would you like to add? Tell me its name, or pick one from our deals.",
                suggestions=["Browse Deals", "Help"],
                data={"email": email},
            )

        draft = await self._put_in_cart(email, variant_id, context, credentials)
        if not draft:
            return ActionResult.reply(
                "I couldn't add that item to your cart right now. Please try again.",
                suggestions=["Try Again", "Browse Deals"],
                data={"email": email},
            )

        item_count = sum(int(item.get("quantity") or 0) for item in draft.get("line_items") or [])
        label = product_name or "The item"
        text = f"{label} was added to your cart."
        if item_count:
            text += f"\nYour cart now holds {item_count} item{'s' if item_count != 1 else ''}."

        buttons: list[Button] = []
        if draft.get("invoice_url"):
            buttons.append(Button(label="Go to Checkout", type="url", value=str(draft["invoice_url"])))

        return ActionResult.reply(
            text,
            suggestions=["Buy Now", "Browse Deals", "Help"],
            buttons=buttons,
            data={
                "email": email,
                "cartId": str(draft.get("id")),
                "lastVariantId": str(variant_id),
                "lastProductName": product_name or context.get("lastProductName"),
            },
        )

    async def _resolve_variant(
        self,
        message: str,
        context: dict[str, Any],
        credentials: StoreCredentials,
    ) -> tuple[str | None, str | None]:
        token = VARIANT_ID_PATTERN.search(message)
        query = cart_query(VARIANT_ID_PATTERN.sub(" ", message))
        if token is None and not query and context.get("lastVariantId"):
            return str(context["lastVariantId"]), context.get("lastProductName")

        products = await self.commerce.search_products(credentials, query)
        if token is not None:
            variant_id = token.group(0)
            for product in products:
                for variant in product.get("variants") or []:
                    if str(variant.get("id")) == variant_id:
                        return variant_id, str(product.get("title") or "") or None
            return variant_id, None

        if not query:
            return None, None
        match = self.matcher.best_match(query, products)
        if match is None:
            logger.info("product_match_missed", shop=credentials.shop_domain, query=query)
            return None, None
        variants = match.product.get("variants") or []
        if not variants or not variants[0].get("id"):
            return None, None
        return str(variants[0]["id"]), str(match.product.get("title") or "") or None

    async def _existing_open_draft(
        self,
        context: dict[str, Any],
        credentials: StoreCredentials,
    ) -> dict[str, Any] | None:
        cart_id = context.get("cartId")
        if not cart_id:
            return None
        draft = await self.commerce.get_draft_order(credentials, str(cart_id))
        if not draft or draft.get("status", "open") != "open":
            return None
        return draft

    async def _put_in_cart(
        self,
        email: str,
        variant_id: str,
        context: dict[str, Any],
        credentials: StoreCredentials,
    ) -> dict[str, Any] | None:
        draft = await self._existing_open_draft(context, credentials)
        if draft is not None:
            line_items = merge_line_items(draft.get("line_items") or [], variant_id)
            return await self.commerce.update_draft_order(credentials, str(draft["id"]), line_items=line_items)
        return await self.commerce.create_draft_order(
            credentials,
            email=email,
            line_items=[{"variant_id": _variant_ref(variant_id), "quantity": 1}],
        )

    async def _buy_now(
        self,
        message: str,
        context: dict[str, Any],
        credentials: StoreCredentials,
    ) -> ActionResult:
        email = self.resolve_email(context, message, from_message=False)
        if not email:
            return ActionResult.ask("email", "What's your email to complete the purchase?", input_type="email")

        data: dict[str, Any] = {"email": email}
        if VARIANT_ID_PATTERN.search(message):
            # "Buy now <variant>" from a product card puts that item in the cart first.
            variant_id, product_name = await self._resolve_variant(message, context, credentials)
            draft = await self._put_in_cart(email, str(variant_id), context, credentials)
            if not draft:
                return ActionResult.reply(
                    "I couldn't prepare your checkout right now. Please try again.",
                    suggestions=["Try Again", "Browse Deals"],
                    data=data,
                )
            data.update(
                {
                    "cartId": str(draft.get("id")),
                    "lastVariantId": str(variant_id),
                    "lastProductName": product_name or context.get("lastProductName"),
                }
            )
        else:
            draft = await self._existing_open_draft(context, credentials)

        buttons: list[Button] = []
        if draft and draft.get("invoice_url"):
            buttons.append(Button(label="Complete Payment", type="url", value=str(draft["invoice_url"])))

        text = "Ready to checkout!\n\nPlease proceed to complete your purchase."
        if buttons:
            text += "\n\nClick the button below to go to our secure checkout."
        else:
            text += "\n\nAdd an item to your cart first and I'll prepare your checkout link."
        return ActionResult.reply(text, suggestions=["Browse Deals", "Help"], buttons=buttons, data=data)
