import asyncio
import base64
import json

import httpx
import pytest

from tik_agent.services.oauth_client import OAuthClient, decode_state, derive_login_method


@pytest.mark.parametrize(
    "platforms, fallback, expected",
    [
        (None, "apple", "apple"),
        (["REGISTERED_PLATFORM_GOOGLE"], None, "google"),
        (["REGISTERED_PLATFORM_AZURE"], None, "microsoft"),
        (["REGISTERED_PLATFORM_GITHUB", "REGISTERED_PLATFORM_EMAIL"], None, "email"),
        (["SOMETHING_ELSE"], None, "something_else"),
        ([], None, None),
    ],
)
def test_derive_login_method(platforms, fallback, expected):
    assert derive_login_method(platforms, fallback) == expected


def test_decode_state_handles_missing_padding():
    encoded = base64.b64encode(b"https://app.example.com/cb").decode().rstrip("=")
    assert decode_state(encoded) == "https://app.example.com/cb"


def test_code_exchange_and_user_info():
    requests = []

    def handler(request):
        payload = json.loads(request.content)
        requests.append((request.url.path, payload))
        if request.url.path.endswith("/ExchangeToken"):
            return httpx.Response(200, json={"accessToken": "at-1"})
        return httpx.Response(200, json={
            "openId": "open-1",
            "name": "Ada",
            "email": "ada@example.com",
            "platforms": ["REGISTERED_PLATFORM_GITHUB"],
        })

    oauth = OAuthClient("https://oauth.example.com/", "app-1", transport=httpx.MockTransport(handler))
    state = base64.b64encode(b"https://app.example.com/cb").decode()

    async def login():
        token = await oauth.exchange_code_for_token("code-1", state)
        return await oauth.get_user_info(token)

    info = asyncio.run(login())
    assert info.open_id == "open-1"
    assert info.login_method == "github"
    assert requests[0] == ("/webdev.v1.WebDevAuthPublicService/ExchangeToken", {
        "clientId": "app-1",
        "grantType": "authorization_code",
        "code": "code-1",
        "redirectUri": "https://app.example.com/cb",
    })
    assert requests[1] == ("/webdev.v1.WebDevAuthPublicService/GetUserInfo", {"accessToken": "at-1"})


def test_user_info_with_jwt_sends_project_id():
    seen = {}

    def handler(request):
        seen.update(json.loads(request.content))
        return httpx.Response(200, json={"openId": "open-2", "loginMethod": "email"})

    oauth = OAuthClient("https://oauth.example.com", "app-1", transport=httpx.MockTransport(handler))
    info = asyncio.run(oauth.get_user_info_with_jwt("jwt-1"))
    assert seen == {"jwtToken": "jwt-1", "projectId": "app-1"}
    assert info.login_method == "email"


def test_server_errors_propagate():
    oauth = OAuthClient(
        "https://oauth.example.com", "app-1", transport=httpx.MockTransport(lambda r: httpx.Response(500)),
    )
    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(oauth.get_user_info("at-1"))
