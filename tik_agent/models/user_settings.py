"""Per-user preferences: API tokens, video defaults, TikTok posting flags. One row per user."""
import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from tik_agent.database import Base


class VideoQuality(str, enum.Enum):
    FAST = "fast"
    BALANCED = "balanced"
    HIGH = "high"


class PostPrivacy(str, enum.Enum):
    PUBLIC_TO_EVERYONE = "PUBLIC_TO_EVERYONE"
    MUTUAL_FOLLOW_FRIENDS = "MUTUAL_FOLLOW_FRIENDS"
    SELF_ONLY = "SELF_ONLY"


class UserSettings(Base):
    __tablename__ = "user_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    hf_token = Column(Text, nullable=True)
    tiktok_client_id = Column(Text, nullable=True)
    tiktok_client_secret = Column(Text, nullable=True)
    tiktok_access_token = Column(Text, nullable=True)
    tiktok_refresh_token = Column(Text, nullable=True)
    tiktok_token_expiry = Column(DateTime, nullable=True)
    video_length = Column(Integer, nullable=True, default=8)  # seconds
    video_quality = Column(String(16), nullable=True, default=VideoQuality.BALANCED.value)
    default_privacy = Column(String(32), nullable=True, default=PostPrivacy.PUBLIC_TO_EVERYONE.value)
    enable_comments = Column(Boolean, nullable=True, default=True)
    enable_duets = Column(Boolean, nullable=True, default=True)
    enable_stitch = Column(Boolean, nullable=True, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
