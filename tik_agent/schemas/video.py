from datetime import datetime
from pydantic import Field
from tik_agent.schemas.base import RpcModel
from tik_agent.schemas.product import ProductOut, ProductUrl


class VideoResponse(RpcModel):
    id: int
    user_id: int
    product_url: str
    product_name: str | None = None
    product_image: str | None = None
    product_price: str | None = None
    product_description: str | None = None
    video_url: str | None = None
    thumbnail_url: str | None = None
    caption: str | None = None
    hashtags: str | None = None
    status: str
    tiktok_post_id: str | None = None
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime


class VideoIdRequest(RpcModel):
    video_id: int


class GenerateScriptResponse(RpcModel):
    script: str


class GenerateRequest(RpcModel):
    video_id: int
    script: str = Field(..., min_length=1)
    regenerate: bool = False


class GenerateResponse(RpcModel):
    video_url: str
    thumbnail_url: str | None = None


class CaptionResponse(RpcModel):
    caption: str
    hashtags: list[str] = []


class GenerateFromUrlRequest(RpcModel):
    url: ProductUrl


class GenerateFromUrlResponse(RpcModel):
    video_url: str
    script: str
    product: ProductOut


class DeleteVideoRequest(RpcModel):
    id: int


class UpdateDetailsRequest(RpcModel):
    id: int
    product_name: str = Field(..., min_length=1)
    product_price: str
    product_description: str
