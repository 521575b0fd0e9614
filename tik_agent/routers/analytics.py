from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tik_agent.auth import get_current_user
from tik_agent.database import get_db
from tik_agent.models.user import User
from tik_agent.models.video import VideoStatus
from tik_agent.repositories.settings_repository import SettingsRepository
from tik_agent.repositories.video_repository import VideoRepository
from tik_agent.schemas.analytics import TrendingMetricsResponse, VideoMetricsOut
from tik_agent.services.analytics import collect_video_metrics, format_metric, get_trending_metrics

router = APIRouter(prefix="/api/trpc", tags=["analytics"])


@router.get("/analytics.metrics", response_model=TrendingMetricsResponse)
def metrics(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Trending summary over the caller's posted videos."""
    posted = [v for v in VideoRepository(db).list_for_user(user.id) if v.status == VideoStatus.POSTED.value]
    user_settings = SettingsRepository(db).get(user.id)
    access_token = user_settings.tiktok_access_token if user_settings else None
    trending = get_trending_metrics(collect_video_metrics(posted, access_token))
    return TrendingMetricsResponse(
        top_performers=[VideoMetricsOut.model_validate(m) for m in trending.top_performers],
        average_engagement=trending.average_engagement,
        total_views=trending.total_views,
        total_likes=trending.total_likes,
        total_views_display=format_metric(trending.total_views),
        total_likes_display=format_metric(trending.total_likes),
    )
