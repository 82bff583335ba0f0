import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional, Set, Tuple

from sqlalchemy import select, update, func, and_, or_

from database.models import Notification, NotificationChannelType
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class NotificationRepository(BaseRepository):
    # --- Fan-out ---

    def existing_dedup_keys(self, dedup_keys: Iterable[str]) -> Set[str]:
        keys = list(dedup_keys)
        if not keys:
            return set()
        stmt = select(Notification.dedup_key).where(Notification.dedup_key.in_(keys))
        return set(self.db.execute(stmt).scalars().all())

    def add_all(self, notifications: List[Notification]) -> None:
        if not notifications:
            return
        self.db.add_all(notifications)
        self.db.flush()

    # --- Delivery ---

    def get_pending_email(self, limit: int = 50) -> List[Notification]:
        """
        Undelivered EMAIL rows. Rows with fewer attempts come first so a
        permanently failing row cannot starve newer ones.
        """
        stmt = select(Notification).where(
            Notification.channel == NotificationChannelType.EMAIL,
            Notification.sent_at.is_(None)
        ).order_by(
            Notification.attempt_count,
            Notification.created_at,
            Notification.id
        ).limit(limit)
        return self.db.execute(stmt).scalars().all()

    def count_pending_email(self) -> int:
        stmt = select(func.count()).select_from(Notification).where(
            Notification.channel == NotificationChannelType.EMAIL,
            Notification.sent_at.is_(None)
        )
        return self.db.execute(stmt).scalar_one()

    def mark_sent(self, notification: Notification, sent_at: datetime) -> None:
        notification.attempt_count = (notification.attempt_count or 0) + 1
        notification.sent_at = sent_at
        notification.last_error = None

    def mark_failed(self, notification: Notification, error: str) -> None:
        notification.attempt_count = (notification.attempt_count or 0) + 1
        notification.last_error = (error or "unknown error")[:1000]

    # --- In-app reads ---

    def list_for_user(
        self,
        user_id: Any,
        unread_only: bool = False,
        limit: int = 20,
        cursor: Optional[Any] = None
    ) -> Tuple[List[Notification], Optional[Any]]:
        """
        Newest first, `limit` per page. `cursor` is the id returned as
        next_cursor by the previous page; that row opens the next page.
        """
        limit = max(1, min(limit, 100))
        stmt = select(Notification).where(Notification.user_id == user_id)

        if unread_only:
            stmt = stmt.where(Notification.read.is_(False))

        if cursor is not None:
            anchor = self.db.get(Notification, cursor)
            if anchor is None or anchor.user_id != user_id:
                return [], None
            stmt = stmt.where(or_(
                Notification.created_at < anchor.created_at,
                and_(Notification.created_at == anchor.created_at, Notification.id <= anchor.id)
            ))

        stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit + 1)
        rows = list(self.db.execute(stmt).scalars().all())

        next_cursor = None
        if len(rows) > limit:
            next_cursor = rows.pop().id
        return rows, next_cursor

    def count_unread(self, user_id: Any) -> int:
        stmt = select(func.count()).select_from(Notification).where(
            Notification.user_id == user_id,
            Notification.read.is_(False)
        )
        return self.db.execute(stmt).scalar_one()

    def mark_read(self, user_id: Any, notification_id: Any) -> bool:
        """Returns False when the notification does not exist or belongs to someone else."""
        notification = self.db.get(Notification, notification_id)
        if notification is None or notification.user_id != user_id:
            return False
        notification.read = True
        return True

    def mark_all_read(self, user_id: Any) -> int:
        stmt = update(Notification).where(
            Notification.user_id == user_id,
            Notification.read.is_(False)
        ).values(read=True)
        result = self.db.execute(stmt)
        return result.rowcount or 0
