from __future__ import annotations

from typing import Any

from shopbot.orchestrator.types import ActionResult

GENERIC_ERROR_REPLY = "Sorry, something went wrong. Please try again."


class ResponseBuilder:
    """Renders an ``ActionResult`` into the chat platform's JSON envelope."""

    def build(self, result: ActionResult | None) -> dict[str, Any]:
        if result is None:
            return self.reply(GENERIC_ERROR_REPLY)
        if result.needs_info:
            return self.prompt(
                field=result.field_needed or "input",
                question=result.question,
                input_type=result.input_type,
            )

        payload = self.reply(result.message)
        if result.suggestions:
            payload["suggestions"] = list(result.suggestions)
        if result.buttons:
            payload["buttons"] = [button.to_wire() for button in result.buttons]
        if result.cards:
            payload["cards"] = [card.to_wire() for card in result.cards]
        return payload

    def reply(self, text: str, suggestions: list[str] | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"action": "reply", "replies": [text]}
        if suggestions:
            payload["suggestions"] = list(suggestions)
        return payload

    def prompt(self, *, field: str, question: str, input_type: str | None = None) -> dict[str, Any]:
        entry: dict[str, Any] = {"name": field, "replies": [question]}
        if input_type:
            entry["input"] = {"type": input_type}
            if input_type == "email":
                entry["input"]["validate"] = {"format": "email"}
        return {"action": "context", "context_id": field, "questions": [entry]}
