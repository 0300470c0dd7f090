#!/usr/bin/env python3
"""
Notification Tracker - Deduplication Service

Suppresses repeat notifications for the same (user, type, related entity)
inside a rolling window (5 minutes by default). Three layers, cheapest
first:

1. Idempotency cache: Redis ``SET NX EX`` on the event key. Fails open
   when Redis is unavailable, so an outage delivers rather than drops.
   A claim belongs to the session that took it: if that session's
   transaction ends without a commit, the claim is released so a retry
   is not suppressed by a row that never landed.
2. Window lookup: most recent matching notification in the database.
3. Dedup key: ``uq_notification_dedup`` on (user, type, related id,
   window bucket) catches concurrent inserts that got past 1 and 2.

Usage:
    from notification.tracker import (
        NotificationTrackerService, NotificationEvent, WindowDeduplicationStrategy
    )

    tracker = NotificationTrackerService(repo, WindowDeduplicationStrategy(window_minutes=5))
    event = NotificationEvent(user_id=7, notification_type="service_request", related_id="42")

    if not tracker.is_duplicate(event) and tracker.acquire(event):
        notification.dedup_key = tracker.generate_dedup_key(event)
        ...
"""

import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Any
from dataclasses import dataclass
from abc import ABC, abstractmethod

from sqlalchemy import event as sa_event
from sqlalchemy.orm import Session

from database.repository import MarketplaceRepository
from database.models import Notification
from core.utils import ensure_utc

logger = logging.getLogger(__name__)

# session.info key: (cache, key) claims not yet backed by a committed row
PENDING_CLAIMS_KEY = "notification_pending_claims"


@sa_event.listens_for(Session, "after_commit")
def _keep_committed_claims(session):
    # Savepoint releases also fire after_commit; only the outer commit counts
    if session.in_nested_transaction():
        return
    session.info.pop(PENDING_CLAIMS_KEY, None)


@sa_event.listens_for(Session, "after_transaction_end")
def _release_uncommitted_claims(session, transaction):
    if transaction.parent is not None:
        return
    for cache, key in session.info.pop(PENDING_CLAIMS_KEY, []):
        logger.info(f"Releasing idempotency key {key}: transaction ended without commit")
        cache.release(key)


@dataclass
class NotificationEvent:
    """Represents a notification event for tracking."""
    user_id: Any
    notification_type: str
    related_id: Optional[str] = None

    @property
    def is_trackable(self) -> bool:
        """Events without a related entity are never deduplicated."""
        return self.related_id is not None


class DeduplicationStrategy(ABC):
    """
    Abstract strategy for deduplication logic.
    """

    @abstractmethod
    def should_allow_notification(
        self,
        existing_notification: Optional[Notification],
        new_event: NotificationEvent
    ) -> bool:
        """
        Determine if notification should be allowed.

        Args:
            existing_notification: Most recent matching notification inside the window (if any)
            new_event: New notification event
        """
        pass

    @abstractmethod
    def get_window(self) -> timedelta:
        """Rolling window inside which repeats are suppressed."""
        pass


class WindowDeduplicationStrategy(DeduplicationStrategy):
    """Allow at most one notification per event inside the window."""

    def __init__(self, window_minutes: int = 5):
        self.window_minutes = window_minutes

    def should_allow_notification(
        self,
        existing_notification: Optional[Notification],
        new_event: NotificationEvent
    ) -> bool:
        return existing_notification is None

    def get_window(self) -> timedelta:
        return timedelta(minutes=self.window_minutes)


class IdempotencyCache:
    """
    Short-lived Redis claim per event key.

    ``acquire`` returns False only when another caller already holds the
    key; any Redis error counts as acquired.
    """

    KEY_PREFIX = "notification:idempotency:"

    def __init__(self, redis_client=None, ttl_seconds: int = 300):
        self.redis_client = redis_client
        self.ttl_seconds = ttl_seconds

    def acquire(self, key: str) -> bool:
        if self.redis_client is None:
            return True
        try:
            claimed = self.redis_client.set(
                f"{self.KEY_PREFIX}{key}", "1", nx=True, ex=self.ttl_seconds
            )
            return bool(claimed)
        except Exception as e:
            logger.warning(f"Idempotency cache unavailable, continuing without it: {e}")
            return True

    def release(self, key: str) -> None:
        if self.redis_client is None:
            return
        try:
            self.redis_client.delete(f"{self.KEY_PREFIX}{key}")
        except Exception as e:
            logger.warning(f"Could not release idempotency key {key}: {e}")


class NotificationTrackerService:
    """
    Service for tracking and deduplicating notifications.
    """

    def __init__(
        self,
        repo: MarketplaceRepository,
        strategy: Optional[DeduplicationStrategy] = None,
        redis_client=None
    ):
        """
        Initialize tracker.

        Args:
            repo: Repository for database operations
            strategy: Deduplication strategy (defaults to a 5 minute window)
            redis_client: Optional Redis client for the idempotency cache
        """
        self.repo = repo
        self.strategy = strategy or WindowDeduplicationStrategy()
        window_seconds = int(self.strategy.get_window().total_seconds())
        self.cache = IdempotencyCache(redis_client, ttl_seconds=max(1, window_seconds))

    def generate_event_hash(self, event: NotificationEvent) -> str:
        """Stable hash of (user, type, related id)."""
        key = f"{event.user_id}:{event.notification_type}:{event.related_id}"
        return hashlib.sha256(key.encode('utf-8')).hexdigest()[:32]

    def generate_dedup_key(self, event: NotificationEvent, now: Optional[datetime] = None) -> Optional[str]:
        """
        Event hash plus the window bucket the event falls into.

        None for events without a related entity.
        """
        if not event.is_trackable:
            return None
        now = ensure_utc(now) or datetime.now(timezone.utc)
        window_seconds = max(1, int(self.strategy.get_window().total_seconds()))
        bucket = int(now.timestamp()) // window_seconds
        return f"{self.generate_event_hash(event)}:{bucket}"

    def is_duplicate(self, event: NotificationEvent, now: Optional[datetime] = None) -> bool:
        """True when a matching notification already exists inside the window."""
        if not event.is_trackable:
            return False

        now = ensure_utc(now) or datetime.now(timezone.utc)
        since = now - self.strategy.get_window()
        existing = self.repo.notifications.find_recent(
            event.user_id, event.notification_type, event.related_id, since
        )

        if self.strategy.should_allow_notification(existing, event):
            return False

        logger.info(
            f"Duplicate notification suppressed for user {event.user_id} "
            f"({event.notification_type}, related {event.related_id})"
        )
        return True

    def acquire(self, event: NotificationEvent) -> bool:
        """Claim the event in the idempotency cache. False means someone else holds it."""
        if not event.is_trackable:
            return True
        key = self.generate_event_hash(event)
        acquired = self.cache.acquire(key)
        if not acquired:
            logger.info(
                f"Notification for user {event.user_id} ({event.notification_type}, "
                f"related {event.related_id}) already in flight"
            )
        elif self.cache.redis_client is not None:
            self.repo.db.info.setdefault(PENDING_CLAIMS_KEY, []).append((self.cache, key))
        return acquired

    def release(self, event: NotificationEvent) -> None:
        """Drop the claim after a failed insert so a retry is not suppressed."""
        if not event.is_trackable:
            return
        key = self.generate_event_hash(event)
        pending = self.repo.db.info.get(PENDING_CLAIMS_KEY)
        if pending:
            pending[:] = [claim for claim in pending if claim[1] != key]
        self.cache.release(key)
