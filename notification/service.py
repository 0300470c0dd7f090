#!/usr/bin/env python3
"""
Notification Service - in-app notification log with deduplication.

Every persisted notification goes through create_notification():
1. Rolling-window dedup (NotificationTrackerService)
2. User preference gate (missing preferences row = no restriction)
3. Idempotency claim + unique dedup key, so concurrent callers for the
   same event insert at most one row

Suppression is a normal outcome and returns None; it is never raised.

Usage:
    from notification.service import NotificationService

    with marketplace_uow(ctx.session_factory) as repo:
        service = ctx.notification_service_for(repo)
        service.create_notification(
            user_id=7,
            title="New service request",
            message="Leaking pipe - EMERGENCY",
            notification_type="service_request",
            related_id="42"
        )
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, List

from database.repository import MarketplaceRepository
from database.models import Notification, NotificationPreferences
from core.config_loader import NotificationConfig
from core.utils import ensure_utc
from notification.tracker import (
    NotificationTrackerService, NotificationEvent, WindowDeduplicationStrategy
)
from notification.message_builder import NotificationMessageBuilder

logger = logging.getLogger(__name__)


def _preferences_block(preferences: Optional[NotificationPreferences], notification_type: str) -> Optional[str]:
    """Reason the user's preferences reject this notification, or None."""
    if preferences is None:
        return None

    type_preference = getattr(preferences, f"{notification_type}_notifications", None)
    if type_preference is False:
        return f"{notification_type} notifications disabled"

    if preferences.email_notifications is False and preferences.push_notifications is False:
        return "email and push notifications disabled"

    return None


class NotificationService:
    """
    Creates, deduplicates and maintains in-app notifications.

    Works inside the caller's unit of work; it flushes but never commits.
    """

    def __init__(
        self,
        repo: MarketplaceRepository,
        config: Optional[NotificationConfig] = None,
        redis_client=None
    ):
        """
        Args:
            repo: Repository for database operations
            config: Notification settings (dedup window, cleanup age, ...)
            redis_client: Optional Redis client for the idempotency cache
        """
        self.repo = repo
        self.config = config or NotificationConfig()

        cache_client = redis_client if self.config.use_idempotency_cache else None
        self.tracker = NotificationTrackerService(
            repo,
            strategy=WindowDeduplicationStrategy(self.config.dedup_window_minutes),
            redis_client=cache_client
        )

    def create_notification(
        self,
        user_id: Any,
        title: str,
        message: str,
        notification_type: str,
        related_id: Optional[Any] = None,
        data: Optional[Dict[str, Any]] = None,
        now: Optional[datetime] = None
    ) -> Optional[Notification]:
        """
        Create a notification unless it is a duplicate or the user opted out.

        Runs inside its own savepoint: a database error here rolls back this
        call only and leaves the caller's transaction usable.

        Returns:
            The new Notification, or None when suppressed
        """
        with self.repo.db.begin_nested():
            return self._create_notification(
                user_id, title, message, notification_type, related_id, data, now
            )

    def _create_notification(
        self,
        user_id: Any,
        title: str,
        message: str,
        notification_type: str,
        related_id: Optional[Any],
        data: Optional[Dict[str, Any]],
        now: Optional[datetime]
    ) -> Optional[Notification]:
        now = ensure_utc(now) or datetime.now(timezone.utc)
        related = str(related_id) if related_id is not None else None
        event = NotificationEvent(user_id=user_id, notification_type=notification_type, related_id=related)

        if self.tracker.is_duplicate(event, now):
            return None

        preferences = self.repo.notifications.get_preferences(user_id)
        blocked = _preferences_block(preferences, notification_type)
        if blocked:
            logger.info(f"Notification for user {user_id} skipped: {blocked}")
            return None

        if not self.tracker.acquire(event):
            return None

        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=notification_type,
            related_id=related,
            data=data or {},
            is_read=False,
            created_at=now,
            dedup_key=self.tracker.generate_dedup_key(event, now),
        )

        try:
            created = self.repo.notifications.insert_unique(notification)
        except Exception:
            self.tracker.release(event)
            raise

        if created is not None:
            logger.info(f"Notification created for user {user_id}: {notification_type} ({title})")
        return created

    def create_bulk_notifications(self, notifications: List[Dict[str, Any]]) -> List[Notification]:
        """
        Create several notifications, continuing past individual failures.

        Each item carries the create_notification() keyword arguments
        (``type`` is accepted for ``notification_type``).
        """
        created = []
        for item in notifications:
            try:
                result = self.create_notification(
                    user_id=item['user_id'],
                    title=item['title'],
                    message=item['message'],
                    notification_type=item.get('notification_type') or item['type'],
                    related_id=item.get('related_id'),
                    data=item.get('data'),
                )
            except Exception as e:
                logger.error(f"Error creating notification for user {item.get('user_id')}: {e}")
                continue
            if result is not None:
                created.append(result)

        logger.info(f"Bulk notifications: {len(created)}/{len(notifications)} created")
        return created

    def create_event_notification(
        self,
        event_type: str,
        user_id: Any,
        related_id: Optional[Any] = None,
        **context
    ) -> Optional[Notification]:
        """Create a notification from one of the marketplace event templates."""
        template = NotificationMessageBuilder.build_event_notification(event_type, **context)
        if template is None:
            logger.error(f"Unknown notification event type: {event_type}")
            return None

        return self.create_notification(
            user_id=user_id,
            title=template.title,
            message=template.message,
            notification_type=template.type,
            related_id=related_id,
        )

    def cleanup_old_notifications(self, days_old: Optional[int] = None, now: Optional[datetime] = None) -> int:
        """Delete read notifications older than ``days_old`` days. Returns rows deleted."""
        days_old = days_old if days_old is not None else self.config.cleanup_days_old
        now = ensure_utc(now) or datetime.now(timezone.utc)

        deleted = self.repo.notifications.delete_read_older_than(now - timedelta(days=days_old))
        logger.info(f"Cleaned up {deleted} old notifications (older than {days_old} days)")
        return deleted

    def get_notification_stats(self, user_id: Any, now: Optional[datetime] = None) -> Dict[str, int]:
        now = ensure_utc(now) or datetime.now(timezone.utc)
        since = now - timedelta(days=self.config.recent_stats_days)
        return self.repo.notifications.get_stats(user_id, since)
