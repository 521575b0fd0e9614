from tik_agent.models.user import User, UserRole
from tik_agent.models.video import Video, VideoStatus
from tik_agent.models.user_settings import UserSettings, VideoQuality, PostPrivacy
from tik_agent.models.video_queue import QueueItem, QueueStatus

__all__ = [
    "User", "UserRole", "Video", "VideoStatus", "UserSettings", "VideoQuality", "PostPrivacy",
    "QueueItem", "QueueStatus",
]
