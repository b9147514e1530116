from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class IntentResult:
    name: str
    confidence: float


@dataclass
class Button:
    label: str
    type: str
    value: str

    def to_wire(self) -> dict[str, str]:
        return asdict(self)


@dataclass
class Card:
    title: str
    subtitle: str = ""
    image: str | None = None
    buttons: list[Button] = field(default_factory=list)

    def to_wire(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "subtitle": self.subtitle,
            "image": self.image,
            "buttons": [button.to_wire() for button in self.buttons],
        }


@dataclass
class ActionResult:
    """Outcome of one executed intent.

    Either a prompt for a missing field (``needs_info``) or a reply carrying a
    message plus optional chips, buttons and cards. ``remember`` says whether
    ``data`` should be merged into the conversation context.
    """

    needs_info: bool = False
    field_needed: str | None = None
    question: str = ""
    input_type: str = "text"
    message: str = ""
    suggestions: list[str] = field(default_factory=list)
    buttons: list[Button] = field(default_factory=list)
    cards: list[Card] = field(default_factory=list)
    remember: bool = True
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ask(
        cls,
        field_needed: str,
        question: str,
        *,
        input_type: str = "text",
    ) -> "ActionResult":
        return cls(
            needs_info=True,
            field_needed=field_needed,
            question=question,
            input_type=input_type,
            remember=False,
        )

    @classmethod
    def reply(
        cls,
        message: str,
        *,
        suggestions: list[str] | None = None,
        buttons: list[Button] | None = None,
        cards: list[Card] | None = None,
        remember: bool = True,
        data: dict[str, Any] | None = None,
    ) -> "ActionResult":
        return cls(
            message=message,
            suggestions=list(suggestions or []),
            buttons=list(buttons or []),
            cards=list(cards or []),
            remember=remember,
            data=dict(data or {}),
        )
