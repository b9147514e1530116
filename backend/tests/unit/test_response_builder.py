from __future__ import annotations

from shopbot.orchestrator.response_builder import GENERIC_ERROR_REPLY, ResponseBuilder
from shopbot.orchestrator.types import ActionResult, Button, Card


def test_missing_result_degrades_to_generic_reply() -> None:
    assert ResponseBuilder().build(None) == {"action": "reply", "replies": [GENERIC_ERROR_REPLY]}


def test_needs_info_becomes_context_prompt_with_email_validation() -> None:
    payload = ResponseBuilder().build(
        ActionResult.ask("email", "What's your email to find your order?", input_type="email")
    )
    assert payload == {
        "action": "context",
        "context_id": "email",
        "questions": [
            {
                "name": "email",
                "replies": ["What's your email to find your order?"],
                "input": {"type": "email", "validate": {"format": "email"}},
            }
        ],
    }


def test_reply_passes_affordances_through_unchanged() -> None:
    result = ActionResult.reply(
        "Today's top deals",
        suggestions=["Add to Cart"],
        buttons=[Button(label="Go to Checkout", type="url", value="https://shop/checkout")],
        cards=[Card(title="Tee", subtitle="$80.00 (Save 20%)", image=None)],
    )
    payload = ResponseBuilder().build(result)

    assert payload["action"] == "reply"
    assert payload["replies"] == ["Today's top deals"]
    assert payload["suggestions"] == ["Add to Cart"]
    assert payload["buttons"] == [{"label": "Go to Checkout", "type": "url", "value": "https://shop/checkout"}]
    assert payload["cards"] == [{"title": "Tee", "subtitle": "$80.00 (Save 20%)", "image": None, "buttons": []}]


def test_plain_reply_omits_empty_affordances() -> None:
    payload = ResponseBuilder().build(ActionResult.reply("Hello"))
    assert payload == {"action": "reply", "replies": ["Hello"]}
