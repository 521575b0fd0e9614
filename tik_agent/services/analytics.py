"""
Video performance analytics: engagement rate, trending summary, display formatting,
and per-video metrics from the TikTok video query API.
"""
import logging
from dataclasses import dataclass

import httpx

from tik_agent.config import get_settings
from tik_agent.models.video import Video

logger = logging.getLogger(__name__)

TOP_PERFORMERS_LIMIT = 5
METRIC_FIELDS = "id,view_count,like_count,comment_count,share_count"


@dataclass
class VideoMetrics:
    video_id: int
    views: int = 0
    likes: int = 0
    comments: int = 0
    shares: int = 0
    engagement: float = 0.0
    tiktok_post_id: str | None = None


@dataclass
class TrendingMetrics:
    top_performers: list[VideoMetrics]
    average_engagement: float
    total_views: int
    total_likes: int


def calculate_engagement(likes: int, comments: int, shares: int, views: int) -> float:
    """(likes + comments + shares) / views * 100; 0 when there are no views."""
    if views == 0:
        return 0
    return (likes + comments + shares) / views * 100


def get_trending_metrics(videos: list[VideoMetrics]) -> TrendingMetrics:
    """Top performers by views (stable for ties), totals and mean engagement. Empty input -> zeros."""
    top_performers = sorted(videos, key=lambda v: v.views or 0, reverse=True)[:TOP_PERFORMERS_LIMIT]
    total_views = sum(v.views or 0 for v in videos)
    total_likes = sum(v.likes or 0 for v in videos)
    average_engagement = sum(v.engagement or 0 for v in videos) / len(videos) if videos else 0
    return TrendingMetrics(
        top_performers=top_performers,
        average_engagement=average_engagement,
        total_views=total_views,
        total_likes=total_likes,
    )


def format_metric(value: int | float) -> str:
    if value < 1_000:
        return str(int(value))
    thousands = f"{value / 1_000:.1f}"
    # 999_950 rounds up to "1000.0"
    if float(thousands) < 1_000:
        return f"{thousands}K"
    return f"{value / 1_000_000:.1f}M"


def fetch_video_metrics(
    tiktok_post_id: str,
    access_token: str,
    video_id: int = 0,
    client: httpx.Client | None = None,
) -> VideoMetrics | None:
    """Query TikTok for one posted video. Returns None on any failure."""
    if not tiktok_post_id or not access_token:
        return None
    settings = get_settings()
    own_client = client is None
    if own_client:
        client = httpx.Client(timeout=10.0)
    try:
        response = client.post(
            f"{settings.tiktok_api_base.rstrip('/')}/video/query/",
            params={"fields": METRIC_FIELDS},
            json={"filters": {"video_ids": [tiktok_post_id]}},
            headers={"Authorization": f"Bearer {access_token}"},
        )
        response.raise_for_status()
        items = (response.json().get("data") or {}).get("videos") or []
        if not items:
            return None
        item = items[0]
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("Failed to fetch video metrics for %s: %s", tiktok_post_id, e)
        return None
    finally:
        if own_client:
            client.close()

    views = int(item.get("view_count") or 0)
    likes = int(item.get("like_count") or 0)
    comments = int(item.get("comment_count") or 0)
    shares = int(item.get("share_count") or 0)
    return VideoMetrics(
        video_id=video_id,
        views=views,
        likes=likes,
        comments=comments,
        shares=shares,
        engagement=calculate_engagement(likes, comments, shares, views),
        tiktok_post_id=tiktok_post_id,
    )


def collect_video_metrics(videos: list[Video], access_token: str | None) -> list[VideoMetrics]:
    """Live metrics for posted videos when a TikTok token is available; zeros otherwise."""
    metrics = []
    for video in videos:
        fetched = None
        if video.tiktok_post_id and access_token:
            fetched = fetch_video_metrics(video.tiktok_post_id, access_token, video_id=video.id)
        metrics.append(fetched or VideoMetrics(video_id=video.id, tiktok_post_id=video.tiktok_post_id))
    return metrics
