from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from shopbot.api.deps import get_container
from shopbot.container import Container

router = APIRouter(prefix="/debug", tags=["debug"])


@router.get("/tenants")
def list_tenants(container: Container = Depends(get_container)) -> dict[str, Any]:
    tenants = [tenant.public_view() for tenant in container.tenant_registry.list_tenants()]
    return {"count": len(tenants), "tenants": tenants}


@router.get("/sessions/{tenant_id}")
def list_sessions(tenant_id: str, container: Container = Depends(get_container)) -> dict[str, Any]:
    sessions = container.memory_service.sessions_for(tenant_id)
    stored = container.conversation_repository.list_user_ids(tenant_id)
    return {
        "tenantId": tenant_id,
        "activeSessions": len(sessions),
        "sessions": sessions,
        "storedConversations": stored,
    }


@router.delete("/sessions/{tenant_id}/{user_id}")
def forget_session(tenant_id: str, user_id: str, container: Container = Depends(get_container)) -> dict[str, Any]:
    container.memory_service.forget(tenant_id, user_id)
    return {"tenantId": tenant_id, "userId": user_id, "deleted": True}
