from __future__ import annotations

import asyncio
from collections import OrderedDict
from threading import RLock
from typing import Any

from shopbot.infrastructure.logging import get_logger
from shopbot.models.conversation import ConversationMemory
from shopbot.repositories.conversation_repository import ConversationRepository

logger = get_logger(__name__)

DEFAULT_MAX_SESSIONS = 10000


class MemoryService:
    """Live conversation memories keyed ``tenant:user`` over the repository.

    Memories are loaded from the Store on first use and then served from the
    in-process map, which holds at most ``max_sessions`` entries and drops the
    least recently used one first. An evicted memory is reloaded from the Store
    on the visitor's next turn. Two concurrent turns for the same visitor share
    one object.
    """

    def __init__(self, repository: ConversationRepository, max_sessions: int = DEFAULT_MAX_SESSIONS) -> None:
        self.repository = repository
        self.max_sessions = max(1, int(max_sessions))
        self.lock = RLock()
        self.sessions: OrderedDict[str, ConversationMemory] = OrderedDict()

    async def get_or_load(self, tenant_id: str, user_id: str) -> ConversationMemory:
        key = f"{tenant_id}:{user_id}"
        with self.lock:
            memory = self.sessions.get(key)
            if memory is not None:
                self.sessions.move_to_end(key)
                return memory

        loaded = await asyncio.to_thread(self.repository.load, tenant_id, user_id)
        with self.lock:
            memory = self.sessions.setdefault(key, loaded)
            self.sessions.move_to_end(key)
            while len(self.sessions) > self.max_sessions:
                evicted, _ = self.sessions.popitem(last=False)
                logger.debug("conversation_evicted", key=evicted)
            return memory

    def transient(self, tenant_id: str, user_id: str) -> ConversationMemory:
        """A memory for a visitor who can't be recognised again; never cached."""
        return ConversationMemory(tenant_id, user_id, max_messages=self.repository.max_messages)

    async def persist(self, memory: ConversationMemory) -> bool:
        # Snapshot on the event loop; the worker thread never sees a memory
        # that the next turn is still mutating.
        snapshot = ConversationMemory.from_record(memory.to_record(), max_messages=memory.max_messages)
        return await asyncio.to_thread(self.repository.save, snapshot)

    def active_count(self) -> int:
        with self.lock:
            return len(self.sessions)

    def sessions_for(self, tenant_id: str) -> list[dict[str, Any]]:
        prefix = f"{tenant_id}:"
        with self.lock:
            memories = [memory for key, memory in self.sessions.items() if key.startswith(prefix)]
        return [
            {
                "userId": memory.user_id,
                "messageCount": len(memory.messages),
                "lastActivity": memory.last_activity,
                "email": memory.recall("email"),
            }
            for memory in memories
        ]

    def forget(self, tenant_id: str, user_id: str) -> None:
        with self.lock:
            self.sessions.pop(f"{tenant_id}:{user_id}", None)
        self.repository.delete(tenant_id, user_id)
