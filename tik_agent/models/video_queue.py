"""Deferred generation request drained by the background queue driver."""
import enum
from datetime import datetime
from sqlalchemy import Boolean, Column, Integer, Text, String, DateTime, ForeignKey
from tik_agent.database import Base


class QueueStatus(str, enum.Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class QueueItem(Base):
    __tablename__ = "video_queue"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    video_id = Column(Integer, nullable=False, index=True)
    product_url = Column(Text, nullable=False)
    status = Column(String(16), nullable=False, default=QueueStatus.QUEUED.value, index=True)
    priority = Column(Integer, nullable=False, default=0)
    # Allows re-rendering a completed video
    regenerate = Column(Boolean, nullable=False, default=False)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
