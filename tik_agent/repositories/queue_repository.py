"""
Queue store for batch generation requests.
Claiming is a conditional UPDATE (status must still be 'queued'), so two drivers
polling the same table can never both take one row.
"""
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from tik_agent.models.video_queue import QueueItem, QueueStatus

# How many candidates one claim attempt looks at before giving up for this tick
CLAIM_CANDIDATES = 5


class QueueRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self, user_id: int, video_id: int, product_url: str, priority: int = 0, regenerate: bool = False,
    ) -> QueueItem:
        item = QueueItem(
            user_id=user_id,
            video_id=video_id,
            product_url=product_url,
            priority=priority,
            regenerate=regenerate,
            status=QueueStatus.QUEUED.value,
        )
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item

    def list_for_user(self, user_id: int) -> list[QueueItem]:
        return (
            self.db.query(QueueItem)
            .filter(QueueItem.user_id == user_id)
            .order_by(QueueItem.priority.desc(), QueueItem.id)
            .all()
        )

    def get_for_user(self, item_id: int, user_id: int) -> QueueItem | None:
        return self.db.query(QueueItem).filter(QueueItem.id == item_id, QueueItem.user_id == user_id).first()

    def delete(self, item: QueueItem) -> None:
        self.db.delete(item)
        self.db.commit()

    def claim_next(self) -> QueueItem | None:
        """
        Take the highest-priority queued item (oldest first on ties) and mark it processing.
        Returns None when nothing is queued or every candidate was claimed by another worker.
        """
        candidate_ids = [
            row[0]
            for row in self.db.query(QueueItem.id)
            .filter(QueueItem.status == QueueStatus.QUEUED.value)
            .order_by(QueueItem.priority.desc(), QueueItem.id)
            .limit(CLAIM_CANDIDATES)
            .all()
        ]
        for item_id in candidate_ids:
            changed = (
                self.db.query(QueueItem)
                .filter(QueueItem.id == item_id, QueueItem.status == QueueStatus.QUEUED.value)
                .update(
                    {QueueItem.status: QueueStatus.PROCESSING.value, QueueItem.updated_at: datetime.utcnow()},
                    synchronize_session=False,
                )
            )
            self.db.commit()
            if changed == 1:
                return self.db.get(QueueItem, item_id)
        return None

    def mark_completed(self, item_id: int) -> None:
        self._set_status(item_id, QueueStatus.COMPLETED, error_message=None)

    def mark_failed(self, item_id: int, error_message: str) -> None:
        self._set_status(item_id, QueueStatus.FAILED, error_message=error_message)

    def _set_status(self, item_id: int, status: QueueStatus, error_message: str | None) -> None:
        self.db.query(QueueItem).filter(QueueItem.id == item_id).update(
            {
                QueueItem.status: status.value,
                QueueItem.error_message: error_message,
                QueueItem.updated_at: datetime.utcnow(),
            },
            synchronize_session=False,
        )
        self.db.commit()

    def stats(self, user_id: int) -> dict[str, int]:
        """Counts per status for one user; total is always the sum of the four buckets."""
        rows = (
            self.db.query(QueueItem.status, func.count(QueueItem.id))
            .filter(QueueItem.user_id == user_id)
            .group_by(QueueItem.status)
            .all()
        )
        counts = {s.value: 0 for s in QueueStatus}
        for status, count in rows:
            if status in counts:
                counts[status] = count
        return {"total": sum(counts.values()), **counts}
