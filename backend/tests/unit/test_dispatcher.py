from __future__ import annotations

import asyncio
import time
from typing import Any

from shopbot.container import Container
from shopbot.models.tenant import Tenant
from shopbot.orchestrator.dispatcher import (
    TENANT_NOT_FOUND_REPLY,
    UNPARSEABLE_SUGGESTIONS,
    WEBHOOK_ERROR_REPLY,
    derive_user_id,
    is_anonymous,
)
from shopbot.orchestrator.payload_resolver import Visitor
from shopbot.repositories.conversation_repository import ConversationRepository
from shopbot.services.memory_service import MemoryService
from shopbot.store.in_memory import InMemoryStore


def _turn(container: Container, tenant_id: str, payload: Any) -> dict[str, Any]:
    async def scenario() -> dict[str, Any]:
        response = await container.dispatcher.handle(tenant_id, payload)
        await container.dispatcher.flush()
        return response

    return asyncio.run(scenario())


def test_unknown_tenant_gets_reconnect_reply(container: Container) -> None:
    response = _turn(container, "biz_missing", {"message": "hi"})
    assert response == {"action": "reply", "replies": [TENANT_NOT_FOUND_REPLY]}


def test_disabled_tenant_is_treated_as_missing(container: Container, tenant: Tenant) -> None:
    tenant.status = "disabled"
    container.tenant_repository.save(tenant)

    response = _turn(container, tenant.tenant_id, {"message": "hi"})
    assert response["replies"] == [TENANT_NOT_FOUND_REPLY]


def test_unparseable_payload_gets_usage_hints(container: Container, tenant: Tenant) -> None:
    response = _turn(container, tenant.tenant_id, {"visitor": {"id": "v1"}})

    assert "couldn't understand" in response["replies"][0]
    assert response["suggestions"] == UNPARSEABLE_SUGGESTIONS
    assert container.memory_service.active_count() == 0


def test_extracted_email_carries_into_next_turn(container: Container, tenant: Tenant, fake_commerce: Any) -> None:
    payload = {"message": "where is my order? jane.doe@example.com", "visitor": {"id": "visitor-1"}}
    _turn(container, tenant.tenant_id, payload)

    second = _turn(container, tenant.tenant_id, {"message": "track my order", "visitor": {"id": "visitor-1"}})

    assert second["action"] == "reply"
    assert [call for call in fake_commerce.calls if call[0] == "list_orders_by_email"] == [
        ("list_orders_by_email", "jane.doe@example.com"),
        ("list_orders_by_email", "jane.doe@example.com"),
    ]
    memory = container.memory_service.sessions[f"{tenant.tenant_id}:visitor-1"]
    assert memory.recall("email") == "jane.doe@example.com"
    assert [action["intent"] for action in memory.recall("previousActions")] == ["track_order", "track_order"]


def test_turn_is_recorded_and_persisted(container: Container, tenant: Tenant) -> None:
    _turn(container, tenant.tenant_id, {"message": "hi", "visitor": {"email": "Jane@Example.com"}})

    memory = container.memory_service.sessions[f"{tenant.tenant_id}:jane@example.com"]
    assert [(message["role"], message["intent"]) for message in memory.messages] == [
        ("user", "greeting"),
        ("bot", "greeting"),
    ]
    # The visitor email is remembered even though greetings persist nothing.
    assert memory.recall("email") == "jane@example.com"
    assert memory.recall("previousActions") == []

    stored = container.conversation_repository.load(tenant.tenant_id, "jane@example.com")
    assert len(stored.messages) == 2
    assert stored.recall("email") == "jane@example.com"


def test_persistence_failures_do_not_break_the_reply(container: Container, tenant: Tenant) -> None:
    class _BrokenStore:
        status = "broken"

        def get(self, key: str) -> None:
            raise RuntimeError("store down")

        def set(self, key: str, value: dict[str, Any]) -> None:
            raise RuntimeError("store down")

    container.conversation_repository.store = _BrokenStore()  # type: ignore[assignment]

    response = _turn(container, tenant.tenant_id, {"message": "show me deals", "visitor": {"id": "v1"}})

    assert response["action"] == "reply"
    assert container.memory_service.active_count() == 1


def test_unexpected_errors_become_apology(container: Container, tenant: Tenant) -> None:
    class _ExplodingExecutor:
        async def execute(self, *args: Any) -> None:
            raise RuntimeError("boom")

    container.dispatcher.executor = _ExplodingExecutor()  # type: ignore[assignment]

    response = _turn(container, tenant.tenant_id, {"message": "show me deals"})
    assert response == {"action": "reply", "replies": [WEBHOOK_ERROR_REPLY]}


def test_user_id_derivation_priority() -> None:
    assert derive_user_id(Visitor(email="Jane@Example.com", platform_id="v1", name="Jane")) == "jane@example.com"
    assert derive_user_id(Visitor(platform_id="v1", name="Jane")) == "v1"
    assert derive_user_id(Visitor(name="Jane")) == "Jane"
    assert derive_user_id(Visitor()).startswith("anon_")


class _SlowFirstWriteStore(InMemoryStore):
    def __init__(self) -> None:
        super().__init__()
        self.writes = 0

    def set(self, key: str, value: dict[str, Any]) -> None:
        self.writes += 1
        if self.writes == 1:
            time.sleep(0.3)
        super().set(key, value)


def _yielding_catalog(fake_commerce: Any, monkeypatch: Any) -> None:
    product = {
        "id": 1,
        "title": "Classic Tee",
        "handle": "classic-tee",
        "variants": [{"id": 40000001, "price": "20.00", "compare_at_price": "25.00"}],
        "images": [],
    }

    async def list_products(credentials: Any, *, limit: int = 10) -> list[dict[str, Any]]:
        await asyncio.sleep(0.01)
        return [dict(product)]

    monkeypatch.setattr(fake_commerce, "list_products", list_products)


def test_turn_with_visitor_email_saves_the_finished_turn(
    container: Container, tenant: Tenant, fake_commerce: Any, monkeypatch: Any
) -> None:
    _yielding_catalog(fake_commerce, monkeypatch)
    store = _SlowFirstWriteStore()
    container.conversation_repository.store = store  # type: ignore[assignment]

    _turn(container, tenant.tenant_id, {"message": "show me deals", "visitor": {"email": "a@b.com"}})

    stored = container.conversation_repository.load(tenant.tenant_id, "a@b.com")
    assert [message["role"] for message in stored.messages] == ["user", "bot"]
    assert stored.recall("productCount") == 1
    assert stored.recall("email") == "a@b.com"
    assert [action["intent"] for action in stored.recall("previousActions")] == ["browse_deals"]
    assert store.writes == 1


def test_overlapping_turns_for_one_visitor_save_in_order(
    container: Container, tenant: Tenant, fake_commerce: Any, monkeypatch: Any
) -> None:
    _yielding_catalog(fake_commerce, monkeypatch)
    container.conversation_repository.store = _SlowFirstWriteStore()  # type: ignore[assignment]
    payload = {"message": "show me deals", "visitor": {"id": "v1"}}

    async def scenario() -> None:
        await asyncio.gather(
            container.dispatcher.handle(tenant.tenant_id, payload),
            container.dispatcher.handle(tenant.tenant_id, payload),
        )
        await container.dispatcher.flush()

    asyncio.run(scenario())

    stored = container.conversation_repository.load(tenant.tenant_id, "v1")
    assert len(stored.messages) == 4
    assert len(stored.recall("previousActions")) == 2


def test_anonymous_visitors_are_not_kept(container: Container, tenant: Tenant) -> None:
    for _ in range(25):
        response = _turn(container, tenant.tenant_id, {"message": "hi"})
        assert response["action"] == "reply"

    assert container.memory_service.active_count() == 0
    assert container.conversation_repository.list_user_ids(tenant.tenant_id) == []


def test_anonymity_needs_every_identifier_missing() -> None:
    assert is_anonymous(Visitor())
    assert not is_anonymous(Visitor(email="jane@x.com"))
    assert not is_anonymous(Visitor(platform_id="v1"))
    assert not is_anonymous(Visitor(name="Jane"))


def test_memory_service_evicts_least_recently_used() -> None:
    repository = ConversationRepository(store=InMemoryStore())
    service = MemoryService(repository, max_sessions=2)

    async def scenario() -> None:
        first = await service.get_or_load("biz", "a")
        first.add_message("user", "hello")
        repository.save(first)
        await service.get_or_load("biz", "b")
        await service.get_or_load("biz", "a")
        await service.get_or_load("biz", "c")
        assert list(service.sessions) == ["biz:a", "biz:c"]

        await service.get_or_load("biz", "d")
        assert list(service.sessions) == ["biz:c", "biz:d"]
        reloaded = await service.get_or_load("biz", "a")
        assert [message["content"] for message in reloaded.messages] == ["hello"]

    asyncio.run(scenario())


def test_bare_email_answer_is_remembered(container: Container, tenant: Tenant, fake_commerce: Any) -> None:
    visitor = {"id": "visitor-2"}
    _turn(container, tenant.tenant_id, {"message": "Jane@X.com", "visitor": visitor})

    second = _turn(container, tenant.tenant_id, {"message": "track my order", "visitor": visitor})

    assert "questions" not in second
    assert [call for call in fake_commerce.calls if call[0] == "list_orders_by_email"] == [
        ("list_orders_by_email", "jane@x.com"),
    ]
    memory = container.memory_service.sessions[f"{tenant.tenant_id}:visitor-2"]
    assert memory.recall("email") == "jane@x.com"
