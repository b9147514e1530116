from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any

from shopbot.infrastructure.commerce_client import CommerceAPI
from shopbot.models.tenant import StoreCredentials
from shopbot.orchestrator.types import ActionResult

EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")


def extract_email(text: str) -> str | None:
    match = EMAIL_PATTERN.search(text or "")
    return match.group(0).lower() if match else None


def format_money(amount: Any, currency: str | None = "USD") -> str:
    raw = str(amount or "0").split()[0]
    try:
        value = float(raw)
    except ValueError:
        return f"{amount}"
    label = f"${value:,.2f}"
    return f"{label} {currency}" if currency else label


class BaseAgent(ABC):
    name: str
    intents: frozenset[str] = frozenset()

    def __init__(self, commerce: CommerceAPI) -> None:
        self.commerce = commerce

    @abstractmethod
    async def execute(
        self,
        intent: str,
        message: str,
        context: dict[str, Any],
        credentials: StoreCredentials,
    ) -> ActionResult:
        raise NotImplementedError

    def resolve_email(self, context: dict[str, Any], message: str, *, from_message: bool = True) -> str | None:
        """Returns the visitor email from context, else from the message text.

        An email found in the message is written into ``context`` so the
        caller can carry it into conversation memory.
        """
        email = context.get("email")
        if email:
            return str(email)
        if not from_message:
            return None
        email = extract_email(message)
        if email:
            context["email"] = email
        return email
