from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shopbot.api.deps import get_container
from shopbot.api.routes.auth_routes import router as auth_router
from shopbot.api.routes.debug_routes import router as debug_router
from shopbot.api.routes.tenant_routes import router as tenant_router
from shopbot.api.routes.webhook_routes import router as webhook_router
from shopbot.container import Container, dispatcher, mongo_manager, redis_manager, settings
from shopbot.infrastructure.logging import get_logger, setup_logging
from shopbot.middleware import apply_response_security_headers
from shopbot.models.schemas import HealthResponse

setup_logging(settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    mongo_manager.connect()
    redis_manager.connect()
    if not settings.oauth_configured:
        logger.warning("oauth_not_configured", detail="SHOPIFY_API_KEY and SHOPIFY_API_SECRET are required")
    logger.info("app_started", app_name=settings.app_name, api_prefix=settings.api_prefix)
    try:
        yield
    finally:
        await dispatcher.flush()
        mongo_manager.disconnect()
        redis_manager.disconnect()
        logger.info("app_stopped")


app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=False,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
app.middleware("http")(apply_response_security_headers)

app.include_router(webhook_router, prefix=settings.api_prefix)
app.include_router(auth_router, prefix=settings.api_prefix)
app.include_router(tenant_router, prefix=settings.api_prefix)
app.include_router(debug_router, prefix=settings.api_prefix)


@app.get("/health", response_model=HealthResponse)
def health(container: Container = Depends(get_container)) -> dict[str, object]:
    return {
        "status": "ok",
        "tenants": container.tenant_registry.count(),
        "activeSessions": container.memory_service.active_count(),
        "store": container.store.status,
        "services": {
            "mongo": {"status": container.mongo_manager.status, "error": container.mongo_manager.error},
            "redis": {"status": container.redis_manager.status, "error": container.redis_manager.error},
        },
    }
