"""
OAuth callback, session cookie exchange and current-user endpoints.
Plain HTTP routes answer with {"error": ...} bodies; the RPC pair lives under /api/trpc.
"""
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from tik_agent.auth import (
    AuthError,
    authenticate_request,
    clear_session_cookie,
    create_session_token,
    get_optional_user,
    security,
    set_session_cookie,
)
from tik_agent.config import get_settings
from tik_agent.database import get_db
from tik_agent.models.user import User
from tik_agent.repositories.user_repository import UserRepository
from tik_agent.schemas.base import SuccessResponse
from tik_agent.schemas.user import (
    AuthMeResponse,
    MobileSessionResponse,
    OAuthUserInfo,
    SessionExchangeResponse,
    UserResponse,
)
from tik_agent.services.oauth_client import OAuthClient, get_oauth_client

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])
settings = get_settings()


def _user_out(user: User) -> UserResponse:
    return UserResponse.model_validate(user)


def _dump(model) -> dict:
    return model.model_dump(by_alias=True, mode="json")


def _sync_user(db: Session, info: OAuthUserInfo) -> User:
    return UserRepository(db).upsert(
        info.open_id,
        owner_open_id=settings.owner_open_id,
        last_signed_in=datetime.utcnow(),
        name=info.name,
        email=info.email,
        login_method=info.login_method,
    )


async def _login_with_code(code: str, state: str, db: Session, oauth: OAuthClient) -> tuple[str, User]:
    access_token = await oauth.exchange_code_for_token(code, state)
    info = await oauth.get_user_info(access_token)
    user = _sync_user(db, info)
    return create_session_token(info.open_id, info.name or ""), user


@router.get("/api/oauth/callback")
async def oauth_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    db: Session = Depends(get_db),
    oauth: OAuthClient = Depends(get_oauth_client),
):
    """Web login: exchange the code, set the session cookie, redirect to the frontend."""
    if not code or not state:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "code and state are required"})
    try:
        token, _ = await _login_with_code(code, state, db, oauth)
    except Exception:
        logger.exception("[OAuth] Callback failed")
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": "OAuth callback failed"})
    response = RedirectResponse(url=settings.frontend_url, status_code=status.HTTP_302_FOUND)
    set_session_cookie(response, request, token)
    return response


@router.get("/api/oauth/mobile")
async def oauth_mobile(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    db: Session = Depends(get_db),
    oauth: OAuthClient = Depends(get_oauth_client),
):
    """Mobile login: same exchange, token returned in the body as well as the cookie."""
    if not code or not state:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "code and state are required"})
    try:
        token, user = await _login_with_code(code, state, db, oauth)
    except Exception:
        logger.exception("[OAuth] Mobile exchange failed")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": "OAuth mobile exchange failed"}
        )
    response = JSONResponse(content=_dump(MobileSessionResponse(app_session_id=token, user=_user_out(user))))
    set_session_cookie(response, request, token)
    return response


@router.post("/api/auth/logout")
def logout(request: Request):
    response = JSONResponse(content={"success": True})
    clear_session_cookie(response, request)
    return response


@router.get("/api/auth/me")
def me(user: User | None = Depends(get_optional_user)):
    if user is None:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED, content={"error": "Not authenticated", "user": None}
        )
    return JSONResponse(content=_dump(AuthMeResponse(user=_user_out(user))))


@router.post("/api/auth/session")
async def exchange_session(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
    oauth: OAuthClient = Depends(get_oauth_client),
):
    """Bearer token -> session cookie, for clients that logged in outside the browser."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Bearer token required"})
    try:
        user = await authenticate_request(request, db, oauth, credentials)
    except AuthError as e:
        logger.warning("[Auth] Session exchange rejected: %s", e)
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"error": "Invalid token"})
    response = JSONResponse(content=_dump(SessionExchangeResponse(user=_user_out(user))))
    set_session_cookie(response, request, credentials.credentials)
    return response


# ---------- RPC ----------


@router.get("/api/trpc/auth.me", response_model=UserResponse | None)
def rpc_me(user: User | None = Depends(get_optional_user)):
    """Current user, or null when not signed in."""
    return _user_out(user) if user else None


@router.post("/api/trpc/auth.logout", response_model=SuccessResponse)
def rpc_logout(request: Request):
    response = JSONResponse(content=_dump(SuccessResponse()))
    clear_session_cookie(response, request)
    return response
