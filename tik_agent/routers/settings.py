from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tik_agent.auth import get_current_user
from tik_agent.database import get_db
from tik_agent.models.user import User
from tik_agent.repositories.settings_repository import SettingsRepository
from tik_agent.schemas.settings import SettingsResponse, SettingsUpdate

router = APIRouter(prefix="/api/trpc", tags=["settings"])


@router.get("/settings.get", response_model=SettingsResponse | None)
def get_settings_row(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Null until the user saves settings for the first time."""
    return SettingsRepository(db).get(user.id)


@router.post("/settings.update", response_model=SettingsResponse)
def update_settings(
    body: SettingsUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    fields = body.model_dump(exclude_unset=True, mode="json")
    return SettingsRepository(db).upsert(user.id, **fields)
