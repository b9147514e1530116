from __future__ import annotations

from shopbot.agents.base_agent import format_money
from shopbot.infrastructure.commerce_client import CommerceAPI
from shopbot.infrastructure.logging import get_logger
from shopbot.models.tenant import Tenant
from shopbot.orchestrator.types import ActionResult, Button

logger = get_logger(__name__)


class ReturnService:
    """Non-interactive return request: validates the order and quotes a refund."""

    def __init__(self, commerce: CommerceAPI) -> None:
        self.commerce = commerce

    async def request_return(
        self,
        tenant: Tenant,
        *,
        order_id: str | None,
        order_number: str | None = None,
    ) -> ActionResult:
        if not order_id:
            return ActionResult.reply("Order information missing. Please try again.", remember=False)

        credentials = tenant.credentials
        order = await self.commerce.get_order(credentials, order_id)
        if not order:
            return ActionResult.reply("Order not found. Please check the order number.", remember=False)
        if order.get("cancelled_at"):
            return ActionResult.reply("This order was cancelled and cannot be returned.", remember=False)
        if order.get("financial_status") != "paid":
            return ActionResult.reply("This order hasn't been paid yet and cannot be returned.", remember=False)

        refund = await self.commerce.calculate_refund(credentials, order_id, order.get("line_items") or [])
        if refund is None:
            logger.warning("refund_calculation_unavailable", tenant_id=tenant.tenant_id, order_id=order_id)
            return ActionResult.reply(
                "Couldn't process your return request. Please contact support.",
                remember=False,
            )

        amount = 0.0
        for item in refund.get("refund_line_items") or []:
            try:
                amount += float(item.get("subtotal") or 0)
            except (TypeError, ValueError):
                continue

        label = order_number or order.get("name") or order_id
        text = (
            f"Return request for order {label}\n\n"
            f"We'll process a refund of {format_money(amount, order.get('currency') or tenant.currency)}.\n\n"
            "Refunds typically take 5-7 business days to process.\n"
            "You'll receive a confirmation email shortly."
        )
        buttons = []
        if order.get("token"):
            buttons.append(
                Button(
                    label="Track Return Status",
                    type="url",
                    value=f"https://{tenant.shop_domain}/account/orders/{order['token']}",
                )
            )
        logger.info("return_quoted", tenant_id=tenant.tenant_id, order_id=order_id, amount=amount)
        return ActionResult.reply(text, buttons=buttons, remember=False)
