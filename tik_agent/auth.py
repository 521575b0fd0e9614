import ipaddress
import logging
from datetime import datetime, timedelta

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from tik_agent.config import get_settings
from tik_agent.database import get_db
from tik_agent.models.user import User, UserRole
from tik_agent.repositories.user_repository import UserRepository
from tik_agent.schemas.user import SessionPayload
from tik_agent.services.oauth_client import OAuthClient, get_oauth_client

logger = logging.getLogger(__name__)

settings = get_settings()
security = HTTPBearer(auto_error=False)

COOKIE_NAME = "app_session_id"
LOCAL_HOSTS = {"localhost", "127.0.0.1", "::1"}

# Fixed client-facing messages
UNAUTHED_ERR_MSG = "Please login (10001)"
NOT_ADMIN_ERR_MSG = "You do not have required permission (10002)"


class AuthError(Exception):
    """Request carries no valid session or the session user cannot be resolved."""


def session_max_age() -> timedelta:
    return timedelta(days=settings.session_expire_days)


def create_session_token(open_id: str, name: str = "", expires_in: timedelta | None = None) -> str:
    expire = datetime.utcnow() + (expires_in or session_max_age())
    payload = {
        "openId": open_id,
        "appId": settings.app_id,
        "name": name,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.algorithm)


def verify_session(token: str | None) -> SessionPayload | None:
    if not token:
        logger.warning("[Auth] Missing session cookie")
        return None
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.algorithm])
    except JWTError as e:
        logger.warning("[Auth] Session verification failed: %s", e)
        return None
    open_id, app_id, name = payload.get("openId"), payload.get("appId"), payload.get("name")
    if not all(isinstance(v, str) and v for v in (open_id, app_id, name)):
        logger.warning("[Auth] Session payload missing required fields")
        return None
    return SessionPayload(open_id=open_id, app_id=app_id, name=name)


def get_session_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    """Bearer header wins over the session cookie."""
    if credentials and credentials.scheme.lower() == "bearer" and credentials.credentials:
        return credentials.credentials.strip()
    return request.cookies.get(COOKIE_NAME)


# ---------- Cookie options ----------


def _is_ip_address(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
        return True
    except ValueError:
        return False


def _parent_domain(hostname: str) -> str | None:
    if hostname in LOCAL_HOSTS or _is_ip_address(hostname):
        return None
    parts = hostname.split(".")
    if len(parts) < 3:
        return None
    return "." + ".".join(parts[-2:])


def _is_secure_request(request: Request) -> bool:
    if request.url.scheme == "https":
        return True
    forwarded = request.headers.get("x-forwarded-proto", "")
    return any(p.strip().lower() == "https" for p in forwarded.split(","))


def session_cookie_options(request: Request) -> dict:
    return {
        "domain": _parent_domain(request.url.hostname or ""),
        "httponly": True,
        "path": "/",
        "samesite": "none",
        "secure": _is_secure_request(request),
    }


def set_session_cookie(response: Response, request: Request, token: str) -> None:
    response.set_cookie(
        COOKIE_NAME,
        token,
        max_age=int(session_max_age().total_seconds()),
        **session_cookie_options(request),
    )


def clear_session_cookie(response: Response, request: Request) -> None:
    response.delete_cookie(COOKIE_NAME, **session_cookie_options(request))


# ---------- Request authentication ----------


async def authenticate_request(
    request: Request,
    db: Session,
    oauth: OAuthClient,
    credentials: HTTPAuthorizationCredentials | None = None,
) -> User:
    """
    Resolve the session to a local user. Unknown open ids are synced from the OAuth
    server once. Every successful call bumps last_signed_in.
    """
    token = get_session_token(request, credentials)
    session = verify_session(token)
    if not session:
        raise AuthError("Invalid session cookie")

    users = UserRepository(db)
    signed_in_at = datetime.utcnow()
    user = users.get_by_open_id(session.open_id)
    if user is None:
        try:
            info = await oauth.get_user_info_with_jwt(token or "")
            user = users.upsert(
                info.open_id,
                owner_open_id=settings.owner_open_id,
                last_signed_in=signed_in_at,
                name=info.name,
                email=info.email,
                login_method=info.login_method,
            )
        except Exception as e:
            logger.error("[Auth] Failed to sync user from OAuth: %s", e)
            raise AuthError("Failed to sync user info") from e
    else:
        user = users.upsert(user.open_id, owner_open_id=settings.owner_open_id, last_signed_in=signed_in_at)
    return user


async def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
    oauth: OAuthClient = Depends(get_oauth_client),
) -> User | None:
    try:
        return await authenticate_request(request, db, oauth, credentials)
    except AuthError:
        return None


def get_current_user(user: User | None = Depends(get_optional_user)) -> User:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=UNAUTHED_ERR_MSG,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_current_user_admin(user: User | None = Depends(get_optional_user)) -> User:
    """User must be logged in and have the admin role."""
    if user is None or user.role != UserRole.ADMIN.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=NOT_ADMIN_ERR_MSG)
    return user
