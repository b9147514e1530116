from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse

from shopbot.api.deps import get_container
from shopbot.api.pages import connected_page, failure_page
from shopbot.container import Container
from shopbot.core.errors import ConfigurationError, IdentityProviderError, OAuthStateError
from shopbot.infrastructure.logging import get_logger
from shopbot.models.schemas import AuthStartResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/start", response_model=AuthStartResponse)
def start(shop: str | None = None, container: Container = Depends(get_container)) -> dict[str, str]:
    if not shop:
        raise HTTPException(status_code=400, detail="Missing shop parameter")
    try:
        return container.oauth_service.start(shop)
    except ConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/callback", response_class=HTMLResponse)
async def callback(
    code: str | None = None,
    shop: str | None = None,
    state: str | None = None,
    container: Container = Depends(get_container),
) -> HTMLResponse:
    if not code or not shop:
        raise HTTPException(status_code=400, detail="Missing code or shop parameter")
    try:
        tenant = await container.oauth_service.callback(code=code, shop=shop, state=state or "")
    except OAuthStateError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except ConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except IdentityProviderError as exc:
        logger.warning("oauth_callback_failed", shop=shop, error=str(exc))
        return HTMLResponse(failure_page(str(exc)), status_code=500)
    return HTMLResponse(connected_page(tenant, container.tenant_registry.bot_script_url(tenant.tenant_id)))


@router.get("/config-check")
def config_check(container: Container = Depends(get_container)) -> dict[str, object]:
    return container.oauth_service.config_report()
