from fastapi import APIRouter, Depends, Query

from tik_agent.auth import get_current_user_admin
from tik_agent.models.user import User
from tik_agent.schemas.system import HealthResponse, NotifyOwnerRequest, NotifyOwnerResponse
from tik_agent.services.notification import notify_owner

router = APIRouter(prefix="/api/trpc", tags=["system"])


@router.get("/system.health", response_model=HealthResponse)
def health(timestamp: int = Query(..., ge=0)):
    return HealthResponse(ok=True)


@router.post("/system.notifyOwner", response_model=NotifyOwnerResponse)
def notify(body: NotifyOwnerRequest, user: User = Depends(get_current_user_admin)):
    return NotifyOwnerResponse(success=notify_owner(body.title, body.content))
