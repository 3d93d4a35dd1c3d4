from __future__ import annotations
"""
Routes over the live HubSpot / Gong / language-model integration. Every
route except ``/health`` answers 503 until all three credentials are set.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from ..config import load_config, missing_integrations
from ..integrations import IntegrationError, IntegrationService, get_integration_service
from ..redis_store import log_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/integrations", tags=["integrations"])


class CopilotRequest(BaseModel):
    question: str = Field(..., min_length=1)
    user_id: str

class AnalyzeDealRequest(BaseModel):
    deal_id: str
    user_id: str

class AnalyzeCallRequest(BaseModel):
    call_id: str


def require_integrations(
    service: Optional[IntegrationService] = Depends(get_integration_service),
) -> IntegrationService:
    if service is None:
        raise HTTPException(status_code=503, detail={
            "message": "Integration services not available. Please configure API tokens.",
            "missing_services": missing_integrations(load_config()),
        })
    return service


def _run(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call into the service and map its failures onto HTTP statuses."""
    try:
        result = fn(*args, **kwargs)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except IntegrationError as e:
        logger.error("%s failed: %s", fn.__name__, e)
        raise HTTPException(status_code=502, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    # snake_case out, whatever the upstream wire casing
    return jsonable_encoder(result, by_alias=False)


@router.get("/health")
def health():
    cfg = load_config()
    missing = missing_integrations(cfg)
    return {
        "status": "not_configured" if missing else "ready",
        "services": {
            "hubspot": "HubSpot" not in missing,
            "gong": "Gong" not in missing,
            "openai": "OpenAI" not in missing,
        },
        "timestamp": datetime.now(timezone.utc),
    }


@router.get("/dashboard/{user_id}")
def dashboard(user_id: str, service: IntegrationService = Depends(require_integrations)):
    return _run(service.get_user_dashboard, user_id)


@router.get("/deals/{user_id}")
def user_deals(user_id: str, service: IntegrationService = Depends(require_integrations)):
    return _run(service.get_user_deals, user_id)


@router.get("/calls/{user_id}")
def user_calls(user_id: str, days: int = 30, service: IntegrationService = Depends(require_integrations)):
    return _run(service.get_user_calls, user_id, days=days)


@router.post("/analyze-deal")
def analyze_deal(req: AnalyzeDealRequest, service: IntegrationService = Depends(require_integrations)):
    return _run(service.analyze_deal, req.deal_id, req.user_id)


@router.post("/analyze-call")
def analyze_call(req: AnalyzeCallRequest, service: IntegrationService = Depends(require_integrations)):
    return _run(service.analyze_call, req.call_id)


@router.post("/copilot")
def copilot(req: CopilotRequest, service: IntegrationService = Depends(require_integrations)):
    log_event("integrations", "copilot_question", {"user_id": req.user_id, "question": req.question})
    return _run(service.ask_copilot, req.question, req.user_id)


@router.get("/silent-deals/{user_id}")
def silent_deals(user_id: str, service: IntegrationService = Depends(require_integrations)):
    return _run(service.get_silent_deals, user_id)


@router.get("/team-performance/{manager_id}")
def team_performance(manager_id: str, service: IntegrationService = Depends(require_integrations)):
    return _run(service.get_team_performance, manager_id)


@router.get("/test")
def test_connections(service: IntegrationService = Depends(require_integrations)):
    return _run(service.test_connections)


@router.get("/user/{user_id}")
def user_info(user_id: str, service: IntegrationService = Depends(require_integrations)):
    user = service.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/users/role/{role}")
def users_by_role(role: str, service: IntegrationService = Depends(require_integrations)):
    return service.get_users_by_role(role)
