"""
Background queue driver: every tick each worker claims at most one queued item and runs
script -> video -> thumbnail -> caption against its Video record.

Per-item errors are persisted on the item (status failed + error_message) and never
stop the loop. Video generation prefers the user's Hugging Face token and falls back
to the placeholder asset, so only the LLM/thumbnail stages can fail an item.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from sqlalchemy.orm import Session

from tik_agent.config import get_settings
from tik_agent.models.user_settings import UserSettings
from tik_agent.models.video import VideoStatus
from tik_agent.repositories.queue_repository import QueueRepository
from tik_agent.repositories.settings_repository import SettingsRepository
from tik_agent.repositories.video_repository import VideoRepository
from tik_agent.services.script_generator import extract_hashtags, generate_caption, generate_script
from tik_agent.services.thumbnail_service import generate_thumbnail
from tik_agent.services.video_pipeline import transition
from tik_agent.services.video_renderer import (
    HuggingFaceVideoGenerator,
    PlaceholderVideoGenerator,
    RenderRequest,
)

logger = logging.getLogger(__name__)

DEFAULT_VIDEO_LENGTH = 8
DEFAULT_VIDEO_QUALITY = "balanced"


@dataclass(frozen=True)
class ProcessingContext:
    user_id: int
    queue_item_id: int
    video_id: int
    product_url: str
    regenerate: bool = False


def generate_queue_video(request: RenderRequest, user_settings: UserSettings | None) -> str:
    """HF with the user's token when set; placeholder when absent or when HF fails."""
    settings = get_settings()
    placeholder = PlaceholderVideoGenerator(settings.placeholder_video_url)
    token = user_settings.hf_token if user_settings else None
    if not token:
        return placeholder.render(request)
    generator = HuggingFaceVideoGenerator(
        token, settings.hf_video_model, settings.hf_api_base, timeout=settings.render_timeout_seconds,
    )
    try:
        return generator.render(request)
    except Exception as e:
        logger.warning("[Queue] Hugging Face generation failed, using placeholder: %s", e)
        return placeholder.render(request)


def process_queue_item(db: Session, context: ProcessingContext) -> None:
    videos = VideoRepository(db)
    video = videos.get(context.video_id)
    if video is None:
        raise ValueError(f"Video {context.video_id} not found")

    user_settings = SettingsRepository(db).get(context.user_id)
    video = transition(videos, video, VideoStatus.PROCESSING, regenerate=context.regenerate, error_message=None)
    name = video.product_name or "Product"

    logger.info("[Queue] Generating script for video %s", video.id)
    script = generate_script(name, video.product_price, video.product_description)

    logger.info("[Queue] Generating video for video %s", video.id)
    video_url = generate_queue_video(
        RenderRequest(
            script=script,
            image=video.product_image,
            product_name=name,
            duration=(user_settings.video_length if user_settings else None) or DEFAULT_VIDEO_LENGTH,
            quality=(user_settings.video_quality if user_settings else None) or DEFAULT_VIDEO_QUALITY,
        ),
        user_settings,
    )

    logger.info("[Queue] Generating thumbnail for video %s", video.id)
    thumbnail_url = generate_thumbnail(name)

    logger.info("[Queue] Generating caption for video %s", video.id)
    caption = generate_caption(name, video.product_description)

    transition(
        videos,
        video,
        VideoStatus.COMPLETED,
        video_url=video_url,
        thumbnail_url=thumbnail_url,
        caption=caption,
        hashtags=" ".join(extract_hashtags(caption)) or None,
    )


def _mark_video_failed(db: Session, video_id: int, message: str) -> None:
    videos = VideoRepository(db)
    video = videos.get(video_id)
    if video is not None and video.status == VideoStatus.PROCESSING.value:
        transition(videos, video, VideoStatus.FAILED, error_message=message)


def process_queue_batch(session_factory: Callable[[], Session]) -> int | None:
    """One tick: claim and fully resolve at most one item. Returns its id, or None if idle."""
    db = session_factory()
    try:
        queue = QueueRepository(db)
        item = queue.claim_next()
        if item is None:
            logger.debug("[Queue Processor] No items in queue")
            return None

        context = ProcessingContext(
            user_id=item.user_id,
            queue_item_id=item.id,
            video_id=item.video_id,
            product_url=item.product_url,
            regenerate=bool(item.regenerate),
        )
        try:
            process_queue_item(db, context)
        except Exception as e:
            logger.exception("[Queue Processor] Failed to process video %s", context.video_id)
            db.rollback()
            queue.mark_failed(context.queue_item_id, str(e))
            _mark_video_failed(db, context.video_id, str(e))
        else:
            queue.mark_completed(context.queue_item_id)
            logger.info("[Queue Processor] Completed video %s", context.video_id)
        return context.queue_item_id
    finally:
        db.close()


async def queue_driver(
    session_factory: Callable[[], Session],
    *,
    interval: float,
    workers: int = 1,
):
    """Run until cancelled. Each tick runs `workers` claims in parallel threads."""
    logger.info("[Queue Processor] Starting background processor (interval: %ss, workers: %s)", interval, workers)
    while True:
        try:
            await asyncio.gather(
                *(asyncio.to_thread(process_queue_batch, session_factory) for _ in range(max(1, workers)))
            )
        except Exception:
            logger.exception("[Queue Processor] Batch processing error")
        await asyncio.sleep(interval)
