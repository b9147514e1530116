from __future__ import annotations

from copy import deepcopy
from typing import Any

from shopbot.core.utils import iso_now

DEFAULT_MAX_MESSAGES = 50
MAX_PREVIOUS_ACTIONS = 20


def default_context() -> dict[str, Any]:
    return {
        "email": None,
        "orderId": None,
        "orderName": None,
        "fulfillmentStatus": None,
        "orderDate": None,
        "cartId": None,
        "lastProductName": None,
        "lastVariantId": None,
        "previousActions": [],
    }


class ConversationMemory:
    """One visitor's running dialogue with one tenant's bot.

    History is append-only and trimmed to the most recent ``max_messages``
    entries. Context fields accumulate across turns; a known email is never
    cleared by a later null.
    """

    def __init__(
        self,
        tenant_id: str,
        user_id: str,
        *,
        messages: list[dict[str, Any]] | None = None,
        context: dict[str, Any] | None = None,
        max_messages: int = DEFAULT_MAX_MESSAGES,
    ) -> None:
        self.tenant_id = tenant_id
        self.user_id = user_id
        self.max_messages = max(1, int(max_messages))
        self.messages: list[dict[str, Any]] = list(messages or [])[-self.max_messages :]
        self.context: dict[str, Any] = default_context()
        if context:
            self.context.update(deepcopy(context))
        if not isinstance(self.context.get("previousActions"), list):
            self.context["previousActions"] = []

    @property
    def key(self) -> str:
        return f"{self.tenant_id}:{self.user_id}"

    def add_message(self, role: str, content: str, metadata: dict[str, Any] | None = None) -> None:
        entry: dict[str, Any] = {"role": role, "content": content, "timestamp": iso_now()}
        if metadata:
            entry.update(metadata)
        self.messages.append(entry)
        if len(self.messages) > self.max_messages:
            self.messages = self.messages[-self.max_messages :]

    def merge_context(self, patch: dict[str, Any]) -> None:
        for key, value in patch.items():
            self.set_context_field(key, value)

    def set_context_field(self, key: str, value: Any) -> None:
        if key == "email" and value is None and self.context.get("email"):
            return
        self.context[key] = deepcopy(value)

    def recall(self, key: str) -> Any:
        return self.context.get(key)

    def get_context(self) -> dict[str, Any]:
        return deepcopy(self.context)

    def record_action(self, intent: str) -> None:
        actions = self.context.setdefault("previousActions", [])
        actions.append({"intent": intent, "timestamp": iso_now()})
        self.context["previousActions"] = actions[-MAX_PREVIOUS_ACTIONS:]

    @property
    def last_activity(self) -> str | None:
        if not self.messages:
            return None
        return str(self.messages[-1].get("timestamp"))

    def to_record(self) -> dict[str, Any]:
        return {
            "tenantId": self.tenant_id,
            "userId": self.user_id,
            "messages": deepcopy(self.messages),
            "context": deepcopy(self.context),
            "messageCount": len(self.messages),
            "updatedAt": iso_now(),
        }

    @classmethod
    def from_record(
        cls,
        record: dict[str, Any],
        *,
        max_messages: int = DEFAULT_MAX_MESSAGES,
    ) -> "ConversationMemory":
        messages = record.get("messages")
        context = record.get("context")
        return cls(
            tenant_id=str(record["tenantId"]),
            user_id=str(record["userId"]),
            messages=messages if isinstance(messages, list) else [],
            context=context if isinstance(context, dict) else {},
            max_messages=max_messages,
        )
