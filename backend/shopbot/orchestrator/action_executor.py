from __future__ import annotations

from typing import Any

from shopbot.agents.base_agent import BaseAgent
from shopbot.infrastructure.logging import get_logger
from shopbot.models.tenant import StoreCredentials
from shopbot.orchestrator.types import ActionResult

logger = get_logger(__name__)


class ActionExecutor:
    """Routes an intent to the agent that owns it and runs it.

    ``context`` is a snapshot of the conversation context. Agents may write
    an email they extracted from the message into it; the dispatcher folds
    that back into memory after the turn.
    """

    def __init__(self, agents: list[BaseAgent], fallback: BaseAgent) -> None:
        self.fallback = fallback
        self.routes: dict[str, BaseAgent] = {}
        for agent in [*agents, fallback]:
            for intent in agent.intents:
                self.routes.setdefault(intent, agent)

    def route(self, intent: str) -> BaseAgent:
        return self.routes.get(intent, self.fallback)

    async def execute(
        self,
        intent: str,
        message: str,
        context: dict[str, Any],
        credentials: StoreCredentials,
    ) -> ActionResult:
        agent = self.route(intent)
        result = await agent.execute(intent, message, context, credentials)
        logger.info(
            "action_executed",
            shop=credentials.shop_domain,
            intent=intent,
            agent=agent.name,
            needs_info=result.needs_info,
            remember=result.remember,
        )
        return result
