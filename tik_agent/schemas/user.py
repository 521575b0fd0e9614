from datetime import datetime
from pydantic import BaseModel
from tik_agent.schemas.base import RpcModel


class UserResponse(RpcModel):
    id: int | None = None
    open_id: str | None = None
    name: str | None = None
    email: str | None = None
    login_method: str | None = None
    role: str | None = None
    last_signed_in: datetime | None = None


class SessionPayload(BaseModel):
    """Claims carried by the session JWT (cookie or Bearer)."""
    open_id: str
    app_id: str
    name: str


class OAuthUserInfo(BaseModel):
    open_id: str
    name: str | None = None
    email: str | None = None
    login_method: str | None = None


class AuthMeResponse(BaseModel):
    user: UserResponse | None


class MobileSessionResponse(BaseModel):
    app_session_id: str
    user: UserResponse


class SessionExchangeResponse(BaseModel):
    success: bool = True
    user: UserResponse
