from __future__ import annotations

import asyncio
from typing import Any

from shopbot.agents.base_agent import extract_email
from shopbot.core.utils import generate_id
from shopbot.infrastructure.logging import get_logger
from shopbot.models.conversation import ConversationMemory
from shopbot.orchestrator.action_executor import ActionExecutor
from shopbot.orchestrator.intent_classifier import IntentClassifier
from shopbot.orchestrator.payload_resolver import Visitor, resolve_inbound
from shopbot.orchestrator.response_builder import ResponseBuilder
from shopbot.services.memory_service import MemoryService
from shopbot.services.tenant_registry import TenantRegistry

logger = get_logger(__name__)

TENANT_NOT_FOUND_REPLY = "Sorry, bot configuration not found. Please reconnect your store."
UNPARSEABLE_REPLY = (
    "Sorry, I couldn't understand your message. "
    "Try asking me to browse deals, track an order, or for help."
)
UNPARSEABLE_SUGGESTIONS = ["Browse Deals", "Track Order", "Help"]
WEBHOOK_ERROR_REPLY = "An error occurred. Please try again or contact support."


def derive_user_id(visitor: Visitor) -> str:
    if visitor.email:
        return visitor.email.strip().lower()
    if visitor.platform_id:
        return visitor.platform_id
    if visitor.name:
        return visitor.name
    return generate_id("anon")


def is_anonymous(visitor: Visitor) -> bool:
    return not (visitor.email or visitor.platform_id or visitor.name)


def reply_text(response: dict[str, Any]) -> str:
    replies = response.get("replies")
    if isinstance(replies, list) and replies:
        return str(replies[0])
    questions = response.get("questions")
    if isinstance(questions, list) and questions:
        prompts = questions[0].get("replies") or [""]
        return str(prompts[0])
    return ""


class WebhookDispatcher:
    def __init__(
        self,
        *,
        tenant_registry: TenantRegistry,
        memory_service: MemoryService,
        classifier: IntentClassifier,
        executor: ActionExecutor,
        builder: ResponseBuilder,
    ) -> None:
        self.tenant_registry = tenant_registry
        self.memory_service = memory_service
        self.classifier = classifier
        self.executor = executor
        self.builder = builder
        self._pending: set[asyncio.Task[None]] = set()
        self._tails: dict[str, asyncio.Task[None]] = {}

    async def handle(self, tenant_id: str, payload: Any) -> dict[str, Any]:
        """Runs one chat turn and always returns a well-formed envelope."""
        try:
            return await self._handle(tenant_id, payload)
        except Exception:
            logger.exception("webhook_turn_failed", tenant_id=tenant_id)
            return self.builder.reply(WEBHOOK_ERROR_REPLY)

    async def _handle(self, tenant_id: str, payload: Any) -> dict[str, Any]:
        tenant = await asyncio.to_thread(self.tenant_registry.get, tenant_id)
        if tenant is None or not tenant.is_active:
            logger.warning("webhook_tenant_missing", tenant_id=tenant_id)
            return self.builder.reply(TENANT_NOT_FOUND_REPLY)

        inbound = resolve_inbound(payload)
        if inbound is None:
            logger.info("webhook_payload_unparseable", tenant_id=tenant_id)
            return self.builder.reply(UNPARSEABLE_REPLY, suggestions=UNPARSEABLE_SUGGESTIONS)

        user_id = derive_user_id(inbound.visitor)
        anonymous = is_anonymous(inbound.visitor)
        if anonymous:
            memory = self.memory_service.transient(tenant_id, user_id)
        else:
            memory = await self.memory_service.get_or_load(tenant_id, user_id)
        if not memory.recall("email"):
            email = inbound.visitor.email or extract_email(inbound.text)
            if email:
                memory.set_context_field("email", email.strip().lower())

        intent = self.classifier.classify(inbound.text)
        logger.info(
            "intent_classified",
            tenant_id=tenant_id,
            user_id=user_id,
            shape=inbound.shape.value,
            intent=intent.name,
            confidence=intent.confidence,
        )
        memory.add_message("user", inbound.text, {"intent": intent.name})

        context = memory.get_context()
        result = await self.executor.execute(intent.name, inbound.text, context, tenant.credentials)
        response = self.builder.build(result)

        memory.add_message("bot", reply_text(response), {"intent": intent.name})
        extracted_email = context.get("email")
        if extracted_email and extracted_email != memory.recall("email"):
            memory.set_context_field("email", extracted_email)
        if result.remember:
            memory.merge_context(result.data)
            memory.record_action(intent.name)

        if not anonymous:
            self._schedule_persist(memory)
        return response

    def _schedule_persist(self, memory: ConversationMemory) -> None:
        # Writes for one visitor run in order, so an older snapshot never lands last.
        key = memory.key
        previous = self._tails.get(key)
        if previous is not None and previous.done():
            previous = None
        task = asyncio.create_task(self._persist(memory, previous))
        self._tails[key] = task
        self._pending.add(task)
        task.add_done_callback(lambda done: self._settle(key, done))

    def _settle(self, key: str, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if self._tails.get(key) is task:
            del self._tails[key]

    async def _persist(self, memory: ConversationMemory, previous: asyncio.Task[None] | None = None) -> None:
        if previous is not None:
            await asyncio.wait([previous])
        try:
            saved = await self.memory_service.persist(memory)
        except Exception:
            logger.exception("conversation_persist_failed", tenant_id=memory.tenant_id, user_id=memory.user_id)
            return
        if not saved:
            logger.warning("conversation_not_persisted", tenant_id=memory.tenant_id, user_id=memory.user_id)

    async def flush(self) -> None:
        """Waits for outstanding best-effort writes."""
        while self._pending:
            await asyncio.gather(*list(self._pending))
