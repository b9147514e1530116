from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, Request

from shopbot.api.deps import get_container
from shopbot.container import Container

router = APIRouter(tags=["webhook"])


async def _read_payload(request: Request) -> Any:
    body = await request.body()
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError:
        return None


@router.post("/tenants/{tenant_id}/messages")
async def receive_message(
    tenant_id: str,
    request: Request,
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    payload = await _read_payload(request)
    return await container.dispatcher.handle(tenant_id, payload)


@router.post("/zobot/{tenant_id}")
async def receive_message_legacy(
    tenant_id: str,
    request: Request,
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    payload = await _read_payload(request)
    return await container.dispatcher.handle(tenant_id, payload)
