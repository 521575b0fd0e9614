from tik_agent.schemas.base import RpcModel


class VideoMetricsOut(RpcModel):
    video_id: int
    views: int = 0
    likes: int = 0
    comments: int = 0
    shares: int = 0
    engagement: float = 0.0
    tiktok_post_id: str | None = None


class TrendingMetricsResponse(RpcModel):
    top_performers: list[VideoMetricsOut]
    average_engagement: float
    total_views: int
    total_likes: int
    total_views_display: str
    total_likes_display: str
