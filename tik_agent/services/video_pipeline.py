"""
Interactive generation flow over a Video record, driven step by step by the client:
generateScript (not persisted) -> generate (render) -> generateCaption.

Status only moves forward:
    pending -> processing -> completed | failed, completed -> posted.
A failed video may be retried (failed -> processing). Re-rendering a completed video
needs an explicit regenerate flag. Posted is terminal.
"""
import logging
from dataclasses import dataclass

from tik_agent.models.video import Video, VideoStatus
from tik_agent.repositories.video_repository import VideoRepository
from tik_agent.services.product_extractor import ExtractedProduct, ExtractionSource, scrape_product
from tik_agent.services.script_generator import (
    extract_hashtags,
    generate_caption,
    generate_script,
    parse_script,
)
from tik_agent.services.video_renderer import RenderError, RenderRequest, VideoRenderer, get_renderer

logger = logging.getLogger(__name__)

TRANSITIONS: dict[VideoStatus, set[VideoStatus]] = {
    VideoStatus.PENDING: {VideoStatus.PROCESSING},
    VideoStatus.PROCESSING: {VideoStatus.COMPLETED, VideoStatus.FAILED},
    VideoStatus.COMPLETED: {VideoStatus.POSTED},
    VideoStatus.FAILED: {VideoStatus.PROCESSING},
    VideoStatus.POSTED: set(),
}

# Reachable only with regenerate=True
REGENERATE_FROM = {VideoStatus.COMPLETED}


class InvalidTransitionError(Exception):
    """Requested status change would move a video backwards."""


def can_transition(current: VideoStatus | str, new: VideoStatus | str, *, regenerate: bool = False) -> bool:
    current, new = VideoStatus(current), VideoStatus(new)
    if current == new:
        return True
    if new in TRANSITIONS[current]:
        return True
    return regenerate and current in REGENERATE_FROM and new == VideoStatus.PROCESSING


def transition(
    repo: VideoRepository,
    video: Video,
    new_status: VideoStatus,
    *,
    regenerate: bool = False,
    **fields,
) -> Video:
    if not can_transition(video.status, new_status, regenerate=regenerate):
        raise InvalidTransitionError(f"Video {video.id} cannot go from {video.status} to {new_status.value}")
    return repo.update(video, status=new_status.value, **fields)


@dataclass(frozen=True)
class GeneratedVideo:
    video_url: str
    script: str
    product: ExtractedProduct


def generate_ugc_video_from_url(
    url: str,
    script: str | None = None,
    *,
    product: ExtractedProduct | None = None,
    renderer: VideoRenderer | None = None,
) -> GeneratedVideo:
    """
    Scrape (unless product is given) -> script (unless given) -> render.
    A product without images is a hard failure before anything is rendered.
    """
    product = product or scrape_product(url)
    if not product.images:
        raise RenderError("No product images found")

    script = script or generate_script(product.name, product.price, product.description)
    parsed = parse_script(script)
    renderer = renderer or get_renderer()
    video_url = renderer.render(
        RenderRequest(
            image=product.images[0],
            hook=parsed.hook,
            cta=parsed.cta,
            script=parsed.subtitles,
            product_name=product.name,
        )
    )
    return GeneratedVideo(video_url=video_url, script=script, product=product)


def script_for_video(video: Video) -> str:
    return generate_script(video.product_name or "Product", video.product_price, video.product_description)


def _stored_product(video: Video) -> ExtractedProduct | None:
    if not video.product_image:
        return None
    return ExtractedProduct(
        name=video.product_name or "Product",
        price=video.product_price or "N/A",
        description=video.product_description or "",
        images=[video.product_image],
        source=ExtractionSource.HTML,
    )


def render_video(
    repo: VideoRepository,
    video: Video,
    script: str,
    *,
    regenerate: bool = False,
    renderer: VideoRenderer | None = None,
) -> Video:
    """
    processing -> completed (video_url, thumbnail_url set) or failed (error_message set, error re-raised).
    """
    status = VideoStatus(video.status)
    if status == VideoStatus.POSTED:
        raise InvalidTransitionError(f"Video {video.id} is already posted and cannot be re-rendered")
    if status in REGENERATE_FROM and not regenerate:
        raise InvalidTransitionError(
            f"Video {video.id} is already {status.value}; pass regenerate=true to overwrite it"
        )
    video = transition(repo, video, VideoStatus.PROCESSING, regenerate=regenerate, error_message=None)

    try:
        result = generate_ugc_video_from_url(
            video.product_url, script, product=_stored_product(video), renderer=renderer,
        )
    except Exception as e:
        logger.warning("Render failed for video %s: %s", video.id, e)
        transition(repo, video, VideoStatus.FAILED, error_message=str(e))
        raise

    return transition(
        repo,
        video,
        VideoStatus.COMPLETED,
        video_url=result.video_url,
        thumbnail_url=result.product.images[0],
        product_image=video.product_image or result.product.images[0],
    )


def caption_video(repo: VideoRepository, video: Video) -> tuple[str, list[str]]:
    """Generate and persist caption + hashtags. Status is left untouched."""
    caption = generate_caption(video.product_name or "Product", video.product_description)
    hashtags = extract_hashtags(caption)
    repo.update(video, caption=caption, hashtags=" ".join(hashtags) or None)
    return caption, hashtags
