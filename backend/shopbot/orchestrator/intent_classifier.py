from __future__ import annotations

import re

from shopbot.orchestrator.types import IntentResult

FALLBACK_INTENT = "general_query"
FALLBACK_CONFIDENCE = 0.5

# Evaluated top to bottom and the first hit wins. Several patterns overlap
# ("track my return" hits both track_order and return_order), so reordering
# this table changes classification.
INTENT_RULES: tuple[tuple[str, re.Pattern[str], float], ...] = (
    (
        "greeting",
        re.compile(r"\b(hi|hello|hey|greetings|good (morning|afternoon|evening))\b|remember me"),
        0.95,
    ),
    (
        "track_order",
        re.compile(r"track|status|where|delivery|order|shipping"),
        0.95,
    ),
    (
        "browse_deals",
        re.compile(r"deal|product|browse|show|what.*sell|what.*have|catalog|collection"),
        0.9,
    ),
    (
        "add_cart",
        re.compile(r"add.*cart|add to cart|add this|want to buy|interested"),
        0.9,
    ),
    (
        "buy_now",
        re.compile(r"buy now|checkout|payment|purchase|price|cost|how much"),
        0.85,
    ),
    (
        "return_order",
        re.compile(r"return|refund|money back|cancel|issue|wrong|damaged|not good"),
        0.9,
    ),
    (
        "product_info",
        re.compile(r"tell|about|info|details|describe|specifications|spec"),
        0.8,
    ),
)

INTENT_NAMES = tuple(name for name, _, _ in INTENT_RULES) + (FALLBACK_INTENT,)


class IntentClassifier:
    """Ordered keyword classifier for storefront chat intents."""

    def __init__(self, rules: tuple[tuple[str, re.Pattern[str], float], ...] = INTENT_RULES) -> None:
        self.rules = rules

    def classify(self, message: str) -> IntentResult:
        text = (message or "").strip().lower()
        if not text:
            return IntentResult(name=FALLBACK_INTENT, confidence=FALLBACK_CONFIDENCE)
        for name, pattern, confidence in self.rules:
            if pattern.search(text):
                return IntentResult(name=name, confidence=confidence)
        return IntentResult(name=FALLBACK_INTENT, confidence=FALLBACK_CONFIDENCE)
