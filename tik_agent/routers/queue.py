from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from tik_agent.auth import get_current_user
from tik_agent.database import get_db
from tik_agent.models.user import User
from tik_agent.models.video import VideoStatus
from tik_agent.models.video_queue import QueueStatus
from tik_agent.repositories.queue_repository import QueueRepository
from tik_agent.repositories.video_repository import VideoRepository
from tik_agent.schemas.base import SuccessResponse
from tik_agent.schemas.queue import (
    QueueAddRequest,
    QueueAddResponse,
    QueueDeleteRequest,
    QueueItemResponse,
    QueueStatsResponse,
)

router = APIRouter(prefix="/api/trpc", tags=["queue"])


@router.get("/queue.list", response_model=list[QueueItemResponse])
def list_queue(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return QueueRepository(db).list_for_user(user.id)


@router.post("/queue.add", response_model=QueueAddResponse)
def add_to_queue(
    body: QueueAddRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Completed videos need regenerate=true; posted videos are never re-queued."""
    video = VideoRepository(db).get_for_user(body.video_id, user.id)
    if not video:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")
    if video.status == VideoStatus.POSTED.value:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Video is already posted")
    if video.status == VideoStatus.COMPLETED.value and not body.regenerate:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Video is already completed; pass regenerate=true to overwrite it",
        )
    item = QueueRepository(db).create(
        user.id, body.video_id, body.product_url, body.priority or 0, regenerate=body.regenerate,
    )
    return QueueAddResponse(id=item.id)


@router.post("/queue.delete", response_model=SuccessResponse)
def delete_from_queue(
    body: QueueDeleteRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Only items still waiting can be removed."""
    repo = QueueRepository(db)
    item = repo.get_for_user(body.id, user.id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Queue item not found")
    if item.status != QueueStatus.QUEUED.value:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Queue item is {item.status}; only queued items can be deleted",
        )
    repo.delete(item)
    return SuccessResponse()


@router.get("/queue.stats", response_model=QueueStatsResponse)
def queue_stats(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return QueueStatsResponse(**QueueRepository(db).stats(user.id))
