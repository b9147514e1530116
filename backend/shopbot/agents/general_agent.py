from __future__ import annotations

from typing import Any

from shopbot.agents.base_agent import BaseAgent
from shopbot.models.tenant import StoreCredentials
from shopbot.orchestrator.types import ActionResult

MENU_SUGGESTIONS = ["Browse Deals", "Track Order", "Add to Cart", "Help"]

CAPABILITIES = (
    "Here's what I can do for you:\n"
    "• Browse deals\n"
    "• Track orders\n"
    "• Add items to your cart\n"
    "• Buy now\n"
    "• Return items"
)

# Follow-up prompt keyed by the visitor's most recent action.
FOLLOW_UPS: dict[str, tuple[str, list[str]]] = {
    "track_order": ("Want another update on your order?", ["Track Order", "Return Order", "Browse Deals"]),
    "browse_deals": ("Ready to look at today's deals again?", ["Browse Deals", "Add to Cart", "Help"]),
    "add_cart": ("Your cart is waiting. Ready to check out?", ["Buy Now", "Browse Deals", "Help"]),
    "buy_now": ("Need help finishing your checkout?", ["Buy Now", "Track Order", "Help"]),
    "return_order": ("Need more help with your return?", ["Return Order", "Track Order", "Help"]),
    "product_info": ("Want to add that product to your cart?", ["Add to Cart", "Browse Deals", "Help"]),
}


class GeneralAgent(BaseAgent):
    name = "general"
    intents = frozenset({"greeting", "general_query"})

    async def execute(
        self,
        intent: str,
        message: str,
        context: dict[str, Any],
        credentials: StoreCredentials,
    ) -> ActionResult:
        if intent == "greeting":
            return self._greet(context)
        return ActionResult.reply(
            f"How can I help you today?\n\n{CAPABILITIES}",
            suggestions=list(MENU_SUGGESTIONS),
            remember=False,
        )

    def _greet(self, context: dict[str, Any]) -> ActionResult:
        email = context.get("email")
        actions = context.get("previousActions") or []
        if not email and not actions:
            return ActionResult.reply(
                f"Hi! Welcome to our store.\n\n{CAPABILITIES}",
                suggestions=list(MENU_SUGGESTIONS),
                remember=False,
            )

        last_intent = actions[-1].get("intent") if actions and isinstance(actions[-1], dict) else None
        follow_up, suggestions = FOLLOW_UPS.get(
            str(last_intent),
            ("What can I help you with today?", list(MENU_SUGGESTIONS)),
        )
        if last_intent == "track_order" and context.get("orderName"):
            follow_up = f"Want another update on order {context['orderName']}?"
        greeting = f"Welcome back, {email}!" if email else "Welcome back!"
        return ActionResult.reply(f"{greeting} {follow_up}", suggestions=list(suggestions), remember=False)
