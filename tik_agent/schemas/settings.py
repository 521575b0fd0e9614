from datetime import datetime
from tik_agent.models.user_settings import PostPrivacy, VideoQuality
from tik_agent.schemas.base import RpcModel


class SettingsResponse(RpcModel):
    user_id: int
    hf_token: str | None = None
    tiktok_client_id: str | None = None
    tiktok_client_secret: str | None = None
    tiktok_access_token: str | None = None
    tiktok_refresh_token: str | None = None
    tiktok_token_expiry: datetime | None = None
    video_length: int | None = None
    video_quality: str | None = None
    default_privacy: str | None = None
    enable_comments: bool | None = None
    enable_duets: bool | None = None
    enable_stitch: bool | None = None
    updated_at: datetime | None = None


class SettingsUpdate(RpcModel):
    """All fields optional; only the ones sent are written."""
    hf_token: str | None = None
    tiktok_client_id: str | None = None
    tiktok_client_secret: str | None = None
    video_length: int | None = None
    video_quality: VideoQuality | None = None
    default_privacy: PostPrivacy | None = None
    enable_comments: bool | None = None
    enable_duets: bool | None = None
    enable_stitch: bool | None = None
