import logging
from typing import Any, Dict, Optional
from datetime import datetime

from sqlalchemy import select, delete, func, case
from sqlalchemy.exc import IntegrityError

from database.models import Notification, NotificationPreferences
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class NotificationRepository(BaseRepository):
    def find_recent(
        self,
        user_id: Any,
        notification_type: str,
        related_id: Optional[str],
        since: datetime
    ) -> Optional[Notification]:
        """Most recent notification for (user, type, related id) created after ``since``."""
        stmt = (
            select(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.type == notification_type,
                Notification.related_id == related_id,
                Notification.created_at > since
            )
            .order_by(Notification.created_at.desc())
            .limit(1)
        )
        return self.db.execute(stmt).scalars().first()

    def get_preferences(self, user_id: Any) -> Optional[NotificationPreferences]:
        stmt = select(NotificationPreferences).where(NotificationPreferences.user_id == user_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def insert_unique(self, notification: Notification) -> Optional[Notification]:
        """
        Insert inside a savepoint.

        Returns None when the row collides with an existing ``dedup_key``;
        the surrounding transaction is left intact.
        """
        try:
            with self.db.begin_nested():
                self.db.add(notification)
                self.db.flush()
        except IntegrityError:
            logger.info(f"Notification dedup key collision: {notification.dedup_key}")
            return None
        return notification

    def delete_read_older_than(self, cutoff: datetime) -> int:
        stmt = (
            delete(Notification)
            .where(Notification.created_at < cutoff, Notification.is_read.is_(True))
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount or 0

    def get_stats(self, user_id: Any, recent_since: datetime) -> Dict[str, int]:
        def count_type(notification_type: str):
            return func.count(case((Notification.type == notification_type, 1)))

        stmt = select(
            func.count(Notification.id).label('total_notifications'),
            func.count(case((Notification.is_read.is_(False), 1))).label('unread_notifications'),
            count_type('service_request').label('service_request_notifications'),
            count_type('booking').label('booking_notifications'),
            count_type('payment').label('payment_notifications'),
            count_type('review').label('review_notifications'),
            count_type('chat').label('chat_notifications'),
            count_type('system').label('system_notifications'),
            func.count(case((Notification.created_at > recent_since, 1))).label('recent_notifications'),
        ).where(Notification.user_id == user_id)

        row = self.db.execute(stmt).one()
        return {key: int(value or 0) for key, value in row._mapping.items()}
