from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from tik_agent.auth import get_current_user
from tik_agent.database import get_db
from tik_agent.models.user import User
from tik_agent.repositories.video_repository import VideoRepository
from tik_agent.schemas.base import SuccessResponse
from tik_agent.schemas.video import DeleteVideoRequest, UpdateDetailsRequest, VideoResponse

router = APIRouter(prefix="/api/trpc", tags=["videos"])


@router.get("/videos.list", response_model=list[VideoResponse])
def list_videos(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return VideoRepository(db).list_for_user(user.id)


@router.get("/videos.get", response_model=VideoResponse)
def get_video(
    id: int = Query(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    video = VideoRepository(db).get_for_user(id, user.id)
    if not video:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")
    return video


@router.post("/videos.delete", response_model=SuccessResponse)
def delete_video(
    body: DeleteVideoRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    repo = VideoRepository(db)
    video = repo.get_for_user(body.id, user.id)
    if not video:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")
    repo.delete(video)
    return SuccessResponse()


@router.post("/videos.updateDetails", response_model=SuccessResponse)
def update_details(
    body: UpdateDetailsRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Manual edit of the product fields; status is left as it is."""
    repo = VideoRepository(db)
    video = repo.get_for_user(body.id, user.id)
    if not video:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")
    repo.update(
        video,
        product_name=body.product_name,
        product_price=body.product_price,
        product_description=body.product_description,
    )
    return SuccessResponse()
