from __future__ import annotations

import pytest

from shopbot.orchestrator.intent_classifier import INTENT_NAMES, IntentClassifier


@pytest.mark.parametrize(
    ("message", "intent", "confidence"),
    [
        ("hi", "greeting", 0.95),
        ("Do you remember me?", "greeting", 0.95),
        ("Track my order", "track_order", 0.95),
        ("show me deals", "browse_deals", 0.9),
        ("add to cart please", "add_cart", 0.9),
        ("checkout", "buy_now", 0.85),
        ("I need a refund", "return_order", 0.9),
        ("tell me more about it", "product_info", 0.8),
    ],
)
def test_classifier_maps_keywords_to_intents(message: str, intent: str, confidence: float) -> None:
    result = IntentClassifier().classify(message)
    assert result.name == intent
    assert result.confidence == confidence


def test_overlapping_patterns_resolve_to_first_declared_intent() -> None:
    classifier = IntentClassifier()

    # track_order is declared before return_order.
    assert classifier.classify("track my return").name == "track_order"
    # browse_deals ("product") is declared before add_cart ("want to buy").
    assert classifier.classify("I want to buy this product").name == "browse_deals"
    # greeting wins over everything else.
    assert classifier.classify("hello, where is my order?").name == "greeting"


def test_unmatched_and_empty_messages_fall_back_to_general_query() -> None:
    classifier = IntentClassifier()
    for message in ("lorem ipsum", "", "   "):
        result = classifier.classify(message)
        assert result.name == "general_query"
        assert result.confidence == 0.5


def test_intent_names_keep_declaration_order() -> None:
    assert INTENT_NAMES == (
        "greeting",
        "track_order",
        "browse_deals",
        "add_cart",
        "buy_now",
        "return_order",
        "product_info",
        "general_query",
    )
