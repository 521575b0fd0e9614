"""Push a notification to the project owner through the forge notification service."""
import logging

import httpx
from fastapi import HTTPException, status

from tik_agent.config import get_settings

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 1200
CONTENT_MAX_LENGTH = 20000
SEND_NOTIFICATION_PATH = "webdevtoken.v1.WebDevService/SendNotification"


def validate_payload(title: str, content: str) -> tuple[str, str]:
    title = (title or "").strip()
    content = (content or "").strip()
    if not title:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Notification title is required.")
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Notification content is required.")
    if len(title) > TITLE_MAX_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Notification title must be at most {TITLE_MAX_LENGTH} characters.",
        )
    if len(content) > CONTENT_MAX_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Notification content must be at most {CONTENT_MAX_LENGTH} characters.",
        )
    return title, content


def build_endpoint_url(base_url: str) -> str:
    return f"{base_url.rstrip('/')}/{SEND_NOTIFICATION_PATH}"


def notify_owner(title: str, content: str, client: httpx.Client | None = None) -> bool:
    """True when the service accepted the notification; False on delivery failure."""
    title, content = validate_payload(title, content)
    settings = get_settings()
    if not settings.forge_api_url:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Notification service URL is not configured.",
        )
    if not settings.forge_api_key:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Notification service API key is not configured.",
        )

    own_client = client is None
    if own_client:
        client = httpx.Client(timeout=30.0)
    try:
        response = client.post(
            build_endpoint_url(settings.forge_api_url),
            json={"title": title, "content": content},
            headers={
                "accept": "application/json",
                "authorization": f"Bearer {settings.forge_api_key}",
                "connect-protocol-version": "1",
            },
        )
    except httpx.HTTPError as e:
        logger.warning("[Notification] Error calling notification service: %s", e)
        return False
    finally:
        if own_client:
            client.close()

    if not response.is_success:
        logger.warning(
            "[Notification] Failed to notify owner (%s)%s",
            response.status_code,
            f": {response.text}" if response.text else "",
        )
        return False
    return True
