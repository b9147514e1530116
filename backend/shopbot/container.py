from __future__ import annotations

from shopbot.agents.cart_agent import CartAgent
from shopbot.agents.general_agent import GeneralAgent
from shopbot.agents.order_agent import OrderAgent
from shopbot.agents.product_agent import ProductAgent
from shopbot.core.config import Settings
from shopbot.infrastructure.commerce_client import CommerceAPI, ShopifyCommerceClient
from shopbot.infrastructure.identity_provider import IdentityProvider, ShopifyIdentityProvider
from shopbot.infrastructure.persistence_clients import MongoClientManager, RedisClientManager
from shopbot.orchestrator.action_executor import ActionExecutor
from shopbot.orchestrator.dispatcher import WebhookDispatcher
from shopbot.orchestrator.intent_classifier import IntentClassifier
from shopbot.orchestrator.product_matcher import LevenshteinProductMatcher
from shopbot.orchestrator.response_builder import ResponseBuilder
from shopbot.repositories.conversation_repository import ConversationRepository
from shopbot.repositories.tenant_repository import TenantRepository
from shopbot.services.memory_service import MemoryService
from shopbot.services.oauth_service import OAuthService
from shopbot.services.return_service import ReturnService
from shopbot.services.tenant_registry import TenantRegistry
from shopbot.store.document_store import DocumentStore
from shopbot.store.in_memory import InMemoryStore, Store


class Container:
    def __init__(
        self,
        settings: Settings | None = None,
        *,
        commerce_client: CommerceAPI | None = None,
        identity_provider: IdentityProvider | None = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.mongo_manager = MongoClientManager(
            uri=self.settings.mongodb_uri,
            enabled=self.settings.enable_external_services,
        )
        self.redis_manager = RedisClientManager(
            url=self.settings.redis_url,
            enabled=self.settings.enable_external_services,
        )
        self.store: Store
        if self.settings.enable_external_services:
            self.store = DocumentStore(
                mongo_manager=self.mongo_manager,
                redis_manager=self.redis_manager,
            )
        else:
            self.store = InMemoryStore()

        self.commerce_client = commerce_client or ShopifyCommerceClient(settings=self.settings)
        self.identity_provider = identity_provider or ShopifyIdentityProvider(settings=self.settings)

        self.tenant_repository = TenantRepository(store=self.store)
        self.conversation_repository = ConversationRepository(
            store=self.store,
            max_messages=self.settings.memory_max_messages,
        )
        self.tenant_registry = TenantRegistry(
            settings=self.settings,
            repository=self.tenant_repository,
        )
        self.memory_service = MemoryService(
            repository=self.conversation_repository,
            max_sessions=self.settings.memory_max_sessions,
        )
        self.oauth_service = OAuthService(
            settings=self.settings,
            identity_provider=self.identity_provider,
            commerce=self.commerce_client,
            tenant_registry=self.tenant_registry,
        )
        self.return_service = ReturnService(commerce=self.commerce_client)

        self.product_matcher = LevenshteinProductMatcher()
        self.order_agent = OrderAgent(self.commerce_client)
        self.product_agent = ProductAgent(self.commerce_client, matcher=self.product_matcher)
        self.cart_agent = CartAgent(self.commerce_client, matcher=self.product_matcher)
        self.general_agent = GeneralAgent(self.commerce_client)
        self.action_executor = ActionExecutor(
            agents=[self.order_agent, self.product_agent, self.cart_agent],
            fallback=self.general_agent,
        )
        self.intent_classifier = IntentClassifier()
        self.response_builder = ResponseBuilder()
        self.dispatcher = WebhookDispatcher(
            tenant_registry=self.tenant_registry,
            memory_service=self.memory_service,
            classifier=self.intent_classifier,
            executor=self.action_executor,
            builder=self.response_builder,
        )


container = Container()

settings = container.settings
mongo_manager = container.mongo_manager
redis_manager = container.redis_manager
store = container.store
commerce_client = container.commerce_client
identity_provider = container.identity_provider
tenant_registry = container.tenant_registry
memory_service = container.memory_service
oauth_service = container.oauth_service
return_service = container.return_service
dispatcher = container.dispatcher
