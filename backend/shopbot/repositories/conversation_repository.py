from __future__ import annotations

from shopbot.infrastructure.logging import get_logger
from shopbot.models.conversation import DEFAULT_MAX_MESSAGES, ConversationMemory
from shopbot.store.in_memory import Store

logger = get_logger(__name__)


class ConversationRepository:
    """Loads and saves conversation records.

    Storage failures never propagate: a failed load yields a fresh memory and a
    failed save is logged and reported as ``False``.
    """

    def __init__(self, *, store: Store, max_messages: int = DEFAULT_MAX_MESSAGES) -> None:
        self.store = store
        self.max_messages = max_messages

    def _key(self, tenant_id: str, user_id: str) -> str:
        return f"conversation:{tenant_id}:{user_id}"

    def load(self, tenant_id: str, user_id: str) -> ConversationMemory:
        try:
            record = self.store.get(self._key(tenant_id, user_id))
        except Exception:
            logger.exception("conversation_load_failed", tenant_id=tenant_id, user_id=user_id)
            record = None
        if not record:
            return ConversationMemory(tenant_id, user_id, max_messages=self.max_messages)
        try:
            memory = ConversationMemory.from_record(record, max_messages=self.max_messages)
        except (KeyError, TypeError, ValueError):
            logger.warning("conversation_record_invalid", tenant_id=tenant_id, user_id=user_id)
            return ConversationMemory(tenant_id, user_id, max_messages=self.max_messages)
        logger.debug(
            "conversation_loaded",
            tenant_id=tenant_id,
            user_id=user_id,
            message_count=len(memory.messages),
        )
        return memory

    def save(self, memory: ConversationMemory) -> bool:
        try:
            self.store.set(self._key(memory.tenant_id, memory.user_id), memory.to_record())
        except Exception:
            logger.exception(
                "conversation_save_failed",
                tenant_id=memory.tenant_id,
                user_id=memory.user_id,
            )
            return False
        return True

    def delete(self, tenant_id: str, user_id: str) -> None:
        self.store.delete(self._key(tenant_id, user_id))

    def list_user_ids(self, tenant_id: str) -> list[str]:
        prefix = f"conversation:{tenant_id}:"
        return [key[len(prefix):] for key in self.store.keys(prefix)]
