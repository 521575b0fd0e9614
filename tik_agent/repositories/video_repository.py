"""
Video record store. One instance per DB session; callers inject the session
(request-scoped via get_db, or from the queue driver's session factory).
"""
from sqlalchemy.orm import Session

from tik_agent.models.video import Video, VideoStatus


class VideoRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        user_id: int,
        product_url: str,
        *,
        product_name: str | None = None,
        product_price: str | None = None,
        product_description: str | None = None,
        product_image: str | None = None,
    ) -> Video:
        video = Video(
            user_id=user_id,
            product_url=product_url,
            product_name=product_name,
            product_price=product_price,
            product_description=product_description,
            product_image=product_image,
            status=VideoStatus.PENDING.value,
        )
        self.db.add(video)
        self.db.commit()
        self.db.refresh(video)
        return video

    def get(self, video_id: int) -> Video | None:
        return self.db.query(Video).filter(Video.id == video_id).first()

    def get_for_user(self, video_id: int, user_id: int) -> Video | None:
        """Ownership-checked lookup: None when missing or owned by someone else."""
        return self.db.query(Video).filter(Video.id == video_id, Video.user_id == user_id).first()

    def list_for_user(self, user_id: int) -> list[Video]:
        return self.db.query(Video).filter(Video.user_id == user_id).order_by(Video.created_at, Video.id).all()

    def update(self, video: Video, **fields) -> Video:
        for key, value in fields.items():
            setattr(video, key, value)
        self.db.commit()
        self.db.refresh(video)
        return video

    def delete(self, video: Video) -> None:
        self.db.delete(video)
        self.db.commit()
