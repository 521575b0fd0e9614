"""
Client for the OAuth server: code exchange and user info lookups.
The server speaks JSON over POST with camelCase keys.
"""
import base64
import logging

import httpx

from tik_agent.config import get_settings
from tik_agent.schemas.user import OAuthUserInfo

logger = logging.getLogger(__name__)

EXCHANGE_TOKEN_PATH = "/webdev.v1.WebDevAuthPublicService/ExchangeToken"
GET_USER_INFO_PATH = "/webdev.v1.WebDevAuthPublicService/GetUserInfo"
GET_USER_INFO_WITH_JWT_PATH = "/webdev.v1.WebDevAuthPublicService/GetUserInfoWithJwt"

PLATFORM_LOGIN_METHODS = [
    ("REGISTERED_PLATFORM_EMAIL", "email"),
    ("REGISTERED_PLATFORM_GOOGLE", "google"),
    ("REGISTERED_PLATFORM_APPLE", "apple"),
    ("REGISTERED_PLATFORM_MICROSOFT", "microsoft"),
    ("REGISTERED_PLATFORM_AZURE", "microsoft"),
    ("REGISTERED_PLATFORM_GITHUB", "github"),
]


def derive_login_method(platforms: list | None, fallback: str | None) -> str | None:
    if fallback:
        return fallback
    if not isinstance(platforms, list) or not platforms:
        return None
    names = [p for p in platforms if isinstance(p, str)]
    for platform, method in PLATFORM_LOGIN_METHODS:
        if platform in names:
            return method
    return names[0].lower() if names else None


def decode_state(state: str) -> str:
    """State carries the base64-encoded redirect URI."""
    padded = state + "=" * (-len(state) % 4)
    return base64.b64decode(padded).decode()


def _to_user_info(data: dict) -> OAuthUserInfo:
    open_id = data.get("openId")
    if not open_id:
        raise ValueError("openId missing from user info")
    return OAuthUserInfo(
        open_id=open_id,
        name=data.get("name") or None,
        email=data.get("email"),
        login_method=derive_login_method(data.get("platforms"), data.get("loginMethod") or data.get("platform")),
    )


class OAuthClient:
    def __init__(self, base_url: str, app_id: str, timeout: float = 30.0,
                 transport: httpx.AsyncBaseTransport | None = None):
        if not base_url:
            logger.error("[OAuth] oauth_server_url is not configured")
        self.base_url = base_url.rstrip("/")
        self.app_id = app_id
        self.timeout = timeout
        self._transport = transport

    async def _post(self, path: str, payload: dict) -> dict:
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport) as client:
            res = await client.post(path, json=payload)
        res.raise_for_status()
        return res.json()

    async def exchange_code_for_token(self, code: str, state: str) -> str:
        """Returns the OAuth access token."""
        data = await self._post(EXCHANGE_TOKEN_PATH, {
            "clientId": self.app_id,
            "grantType": "authorization_code",
            "code": code,
            "redirectUri": decode_state(state),
        })
        access_token = data.get("accessToken")
        if not access_token:
            raise ValueError("No access token in response")
        return access_token

    async def get_user_info(self, access_token: str) -> OAuthUserInfo:
        return _to_user_info(await self._post(GET_USER_INFO_PATH, {"accessToken": access_token}))

    async def get_user_info_with_jwt(self, jwt_token: str) -> OAuthUserInfo:
        return _to_user_info(await self._post(GET_USER_INFO_WITH_JWT_PATH, {
            "jwtToken": jwt_token,
            "projectId": self.app_id,
        }))


def get_oauth_client() -> OAuthClient:
    settings = get_settings()
    return OAuthClient(settings.oauth_server_url, settings.app_id, timeout=settings.oauth_timeout_seconds)
