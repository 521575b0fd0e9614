"""Interactive generation steps, each a separate call driven by the client."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from tik_agent.auth import get_current_user
from tik_agent.database import get_db
from tik_agent.models.user import User
from tik_agent.models.video import Video
from tik_agent.repositories.video_repository import VideoRepository
from tik_agent.schemas.product import ProductOut
from tik_agent.schemas.video import (
    CaptionResponse,
    GenerateFromUrlRequest,
    GenerateFromUrlResponse,
    GenerateRequest,
    GenerateResponse,
    GenerateScriptResponse,
    VideoIdRequest,
)
from tik_agent.services.video_pipeline import (
    InvalidTransitionError,
    caption_video,
    generate_ugc_video_from_url,
    render_video,
    script_for_video,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/trpc", tags=["video"])


def _owned_video(repo: VideoRepository, video_id: int, user: User) -> Video:
    video = repo.get_for_user(video_id, user.id)
    if not video:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")
    return video


@router.post("/video.generateScript", response_model=GenerateScriptResponse)
def generate_script(
    body: VideoIdRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Script is returned to the client only; nothing is persisted."""
    video = _owned_video(VideoRepository(db), body.video_id, user)
    try:
        script = script_for_video(video)
    except Exception as e:
        logger.exception("Script generation failed for video %s", video.id)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Script generation failed: {e}")
    return GenerateScriptResponse(script=script)


@router.post("/video.generate", response_model=GenerateResponse)
def generate(
    body: GenerateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    repo = VideoRepository(db)
    video = _owned_video(repo, body.video_id, user)
    try:
        video = render_video(repo, video, body.script, regenerate=body.regenerate)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except Exception as e:
        logger.exception("Video generation failed for video %s", body.video_id)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Video generation failed: {e}")
    return GenerateResponse(video_url=video.video_url, thumbnail_url=video.thumbnail_url)


@router.post("/video.generateCaption", response_model=CaptionResponse)
def generate_caption(
    body: VideoIdRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    repo = VideoRepository(db)
    video = _owned_video(repo, body.video_id, user)
    try:
        caption, hashtags = caption_video(repo, video)
    except Exception as e:
        logger.exception("Caption generation failed for video %s", video.id)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Caption generation failed: {e}")
    return CaptionResponse(caption=caption, hashtags=hashtags)


@router.post("/video.generateFromUrl", response_model=GenerateFromUrlResponse)
def generate_from_url(
    body: GenerateFromUrlRequest,
    user: User = Depends(get_current_user),
):
    """One-shot scrape, script and render. No Video row is written."""
    url = body.url
    try:
        result = generate_ugc_video_from_url(url)
    except Exception as e:
        logger.exception("One-shot generation failed for %s", url)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Video generation failed: {e}")
    return GenerateFromUrlResponse(
        video_url=result.video_url,
        script=result.script,
        product=ProductOut(**result.product.to_dict()),
    )
