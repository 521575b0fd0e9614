from datetime import datetime
from pydantic import Field
from tik_agent.schemas.base import RpcModel


class QueueItemResponse(RpcModel):
    id: int
    user_id: int
    video_id: int
    product_url: str
    status: str
    priority: int
    regenerate: bool = False
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime


class QueueAddRequest(RpcModel):
    video_id: int
    product_url: str = Field(..., min_length=1)
    priority: int | None = None
    regenerate: bool = False


class QueueAddResponse(RpcModel):
    id: int


class QueueDeleteRequest(RpcModel):
    id: int


class QueueStatsResponse(RpcModel):
    total: int = 0
    queued: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0
