from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    ok: bool = True


class NotifyOwnerRequest(BaseModel):
    title: str = Field(..., min_length=1, description="title is required")
    content: str = Field(..., min_length=1, description="content is required")


class NotifyOwnerResponse(BaseModel):
    success: bool
