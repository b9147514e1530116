from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from shopbot.api.deps import get_container
from shopbot.api.pages import bot_script
from shopbot.container import Container
from shopbot.core.errors import TenantNotFoundError
from shopbot.core.utils import iso_now
from shopbot.models.schemas import ReturnOrderRequest, TenantView

router = APIRouter(prefix="/tenants", tags=["tenants"])


@router.get("/{tenant_id}", response_model=TenantView)
def get_tenant(tenant_id: str, container: Container = Depends(get_container)) -> dict[str, Any]:
    try:
        tenant = container.tenant_registry.require(tenant_id)
    except TenantNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return tenant.public_view()


@router.get("/{tenant_id}/bot-script", response_class=PlainTextResponse)
def download_bot_script(tenant_id: str, container: Container = Depends(get_container)) -> PlainTextResponse:
    try:
        tenant = container.tenant_registry.require(tenant_id)
    except TenantNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return PlainTextResponse(
        bot_script(tenant, iso_now()),
        headers={"Content-Disposition": f"attachment; filename=\"zobot-{tenant.tenant_id}.deluge\""},
    )


@router.post("/{tenant_id}/returns")
async def request_return(
    tenant_id: str,
    payload: ReturnOrderRequest,
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    tenant = container.tenant_registry.get(tenant_id)
    if tenant is None or not tenant.is_active:
        raise HTTPException(status_code=404, detail=f"Tenant not found: {tenant_id}")
    result = await container.return_service.request_return(
        tenant,
        order_id=payload.orderId,
        order_number=payload.orderNumber,
    )
    return container.response_builder.build(result)
