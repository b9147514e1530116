from __future__ import annotations

from datetime import datetime
from typing import Any, Callable

from shopbot.agents.base_agent import BaseAgent, format_money
from shopbot.core.utils import parse_iso, utc_now
from shopbot.infrastructure.commerce_client import CommerceAPI
from shopbot.infrastructure.logging import get_logger
from shopbot.models.tenant import StoreCredentials
from shopbot.orchestrator.types import ActionResult, Button

logger = get_logger(__name__)

RETURN_WINDOW_DAYS = 30
MAX_LISTED_ITEMS = 3
RETURN_REASONS = ["Damaged", "Wrong Item", "Not As Described", "Cancel"]

FULFILLMENT_LABELS = {
    "fulfilled": "Delivered",
    "partial": "Partially Shipped",
}
PAYMENT_LABELS = {
    "paid": "Paid",
    "pending": "Pending",
    "authorized": "Pending",
    "refunded": "Refunded",
    "partially_refunded": "Refunded",
}


def fulfillment_label(status: Any) -> str:
    return FULFILLMENT_LABELS.get(str(status or "").lower(), "Processing")


def payment_label(status: Any) -> str:
    raw = str(status or "").lower()
    if raw in PAYMENT_LABELS:
        return PAYMENT_LABELS[raw]
    if not raw:
        return "Unknown"
    return raw.replace("_", " ").title()


def describe_age(days: int) -> str:
    if days <= 0:
        return "today"
    if days == 1:
        return "yesterday"
    return f"{days} days ago"


class OrderAgent(BaseAgent):
    name = "order"
    intents = frozenset({"track_order", "return_order"})

    def __init__(self, commerce: CommerceAPI, clock: Callable[[], datetime] = utc_now) -> None:
        super().__init__(commerce)
        self.clock = clock

    async def execute(
        self,
        intent: str,
        message: str,
        context: dict[str, Any],
        credentials: StoreCredentials,
    ) -> ActionResult:
        if intent == "return_order":
            return self._start_return(message, context)
        return await self._track_order(message, context, credentials)

    async def _track_order(
        self,
        message: str,
        context: dict[str, Any],
        credentials: StoreCredentials,
    ) -> ActionResult:
        email = self.resolve_email(context, message)
        if not email:
            return ActionResult.ask("email", "What's your email to find your order?", input_type="email")

        orders = await self.commerce.list_orders_by_email(credentials, email, limit=5)
        if not orders:
            logger.info("orders_not_found", shop=credentials.shop_domain, email=email)
            return ActionResult.reply(
                f"No orders found for {email}. Please check your email address.",
                suggestions=["Browse Deals", "Help"],
                data={"email": email},
            )

        order = self._latest(orders)
        created = parse_iso(order.get("created_at"))
        age_days = (self.clock().date() - created.date()).days if created else None
        status = fulfillment_label(order.get("fulfillment_status"))
        order_name = str(order.get("name") or f"#{order.get('order_number', order.get('id'))}")

        lines = [f"Order {order_name}"]
        if created is not None and age_days is not None:
            lines.append(f"Placed: {describe_age(age_days)} ({created.date().isoformat()})")
        lines.append(f"Status: {status}")
        lines.append(f"Payment: {payment_label(order.get('financial_status'))}")
        lines.append(f"Total: {format_money(order.get('total_price'), order.get('currency'))}")

        items = order.get("line_items") or []
        if items:
            lines.append("")
            lines.append("Items:")
            for item in items[:MAX_LISTED_ITEMS]:
                lines.append(f"• {item.get('quantity', 1)}x {item.get('name') or item.get('title')}")
            if len(items) > MAX_LISTED_ITEMS:
                lines.append(f"...and {len(items) - MAX_LISTED_ITEMS} more")

        buttons: list[Button] = []
        fulfillments = order.get("fulfillments") or []
        tracking = fulfillments[0] if fulfillments and isinstance(fulfillments[0], dict) else {}
        if tracking.get("tracking_number"):
            carrier = tracking.get("tracking_company")
            suffix = f" ({carrier})" if carrier else ""
            lines.append("")
            lines.append(f"Tracking: {tracking['tracking_number']}{suffix}")
        if tracking.get("tracking_url"):
            buttons.append(Button(label="Track Shipment", type="url", value=str(tracking["tracking_url"])))
        elif order.get("order_status_url"):
            buttons.append(Button(label="View Order", type="url", value=str(order["order_status_url"])))

        suggestions = ["Browse Deals", "Help"]
        if status == "Delivered" and age_days is not None and age_days <= RETURN_WINDOW_DAYS:
            suggestions.insert(0, "Return Order")

        return ActionResult.reply(
            "\n".join(lines),
            suggestions=suggestions,
            buttons=buttons,
            data={
                "email": email,
                "orderId": str(order.get("id")) if order.get("id") is not None else None,
                "orderName": order_name,
                "fulfillmentStatus": order.get("fulfillment_status"),
                "orderDate": order.get("created_at"),
            },
        )

    def _start_return(self, message: str, context: dict[str, Any]) -> ActionResult:
        email = self.resolve_email(context, message)
        if not email:
            return ActionResult.ask("email", "What's your email for the return?", input_type="email")

        order_name = context.get("orderName")
        subject = f"order {order_name}" if order_name else "your order"
        text = (
            f"Return process\n\n"
            f"We'll help you return {subject}.\n\n"
            "1. Describe the issue\n"
            "2. We verify your order\n"
            "3. We send a return label\n"
            "4. We process your refund\n\n"
            "What's the issue with your order?"
        )
        return ActionResult.reply(text, suggestions=list(RETURN_REASONS), data={"email": email})

    def _latest(self, orders: list[dict[str, Any]]) -> dict[str, Any]:
        def sort_key(order: dict[str, Any]) -> float:
            created = parse_iso(order.get("created_at"))
            return created.timestamp() if created else 0.0

        return max(orders, key=sort_key)
