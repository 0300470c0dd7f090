#!/usr/bin/env python3
"""
Tests for NotificationService: deduplication, preference gates,
event templates, cleanup and stats.

Run with: python -m pytest tests/unit/notification/test_service.py -v
"""

import unittest
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError

from core.config_loader import NotificationConfig
from database.models import Notification, NotificationPreferences
from database.repository import MarketplaceRepository
from notification.service import NotificationService
from notification.tracker import NotificationEvent
from tests import NOW, create_test_engine, create_test_session_factory


@pytest.mark.db
class TestNotificationService(unittest.TestCase):

    def setUp(self):
        self.engine = create_test_engine()
        self.session = create_test_session_factory(self.engine)()
        self.repo = MarketplaceRepository(self.session)
        self.service = NotificationService(self.repo, NotificationConfig())

    def tearDown(self):
        self.session.close()
        self.engine.dispose()

    def notify(self, service=None, user_id=7, notification_type="service_request", related_id=42, now=NOW):
        service = service or self.service
        return service.create_notification(
            user_id=user_id,
            title="New service request",
            message="Leaking pipe - EMERGENCY",
            notification_type=notification_type,
            related_id=related_id,
            now=now,
        )

    def count(self, **filters) -> int:
        return self.session.query(Notification).filter_by(**filters).count()

    def test_creates_notification(self):
        notification = self.notify()

        self.assertIsNotNone(notification)
        self.assertEqual(notification.related_id, "42")
        self.assertFalse(notification.is_read)
        self.assertIsNotNone(notification.dedup_key)
        self.assertEqual(self.count(user_id=7), 1)

    def test_repeat_inside_window_is_suppressed(self):
        self.assertIsNotNone(self.notify())
        self.assertIsNone(self.notify(now=NOW + timedelta(minutes=3)))
        self.assertEqual(self.count(user_id=7), 1)

    def test_repeat_after_window_is_created(self):
        self.notify()
        self.assertIsNotNone(self.notify(now=NOW + timedelta(minutes=6)))
        self.assertEqual(self.count(user_id=7), 2)

    def test_different_related_entity_is_not_a_duplicate(self):
        self.notify(related_id=42)
        self.notify(related_id=43)
        self.assertEqual(self.count(user_id=7), 2)

    def test_notifications_without_related_entity_are_not_deduplicated(self):
        self.notify(notification_type="system", related_id=None)
        self.notify(notification_type="system", related_id=None)
        self.assertEqual(self.count(user_id=7, type="system"), 2)

    def test_dedup_key_collision_returns_none(self):
        """A concurrent insert that got past the window check loses on the unique key."""
        event = NotificationEvent(7, "service_request", "42")
        self.session.add(Notification(
            user_id=7, title="t", message="m", type="service_request", related_id="42",
            # Older than the window, so only the key catches it
            created_at=NOW - timedelta(minutes=10),
            dedup_key=self.service.tracker.generate_dedup_key(event, NOW),
        ))
        self.session.flush()

        self.assertIsNone(self.notify())
        self.assertEqual(self.count(user_id=7), 1)

        # The session is still usable after the savepoint rollback
        self.assertIsNotNone(self.notify(related_id=43))
        self.session.commit()
        self.assertEqual(self.count(user_id=7), 2)

    def test_type_preference_disabled(self):
        self.session.add(NotificationPreferences(user_id=7, service_request_notifications=False))
        self.session.flush()

        self.assertIsNone(self.notify())
        self.assertIsNotNone(self.notify(notification_type="booking"))

    def test_all_delivery_disabled(self):
        self.session.add(NotificationPreferences(user_id=7, email_notifications=False, push_notifications=False))
        self.session.flush()

        self.assertIsNone(self.notify(notification_type="booking"))
        self.assertEqual(self.count(user_id=7), 0)

    def test_unset_type_preference_allows(self):
        self.session.add(NotificationPreferences(user_id=7))
        self.session.flush()

        self.assertIsNotNone(self.notify())

    def test_idempotency_key_held_elsewhere(self):
        redis_client = MagicMock()
        redis_client.set.return_value = None
        service = NotificationService(self.repo, NotificationConfig(), redis_client)

        self.assertIsNone(self.notify(service))
        self.assertEqual(self.count(user_id=7), 0)

    def test_idempotency_cache_failure_still_delivers(self):
        redis_client = MagicMock()
        redis_client.set.side_effect = ConnectionError("redis down")
        service = NotificationService(self.repo, NotificationConfig(), redis_client)

        self.assertIsNotNone(self.notify(service))

    def test_idempotency_cache_can_be_disabled(self):
        redis_client = MagicMock()
        service = NotificationService(self.repo, NotificationConfig(use_idempotency_cache=False), redis_client)

        self.assertIsNotNone(self.notify(service))
        redis_client.set.assert_not_called()

    def test_failed_insert_releases_idempotency_key(self):
        redis_client = MagicMock()
        redis_client.set.return_value = True
        service = NotificationService(self.repo, NotificationConfig(), redis_client)

        with patch.object(self.repo.notifications, 'insert_unique', side_effect=RuntimeError("db down")):
            with self.assertRaises(RuntimeError):
                self.notify(service)

        redis_client.delete.assert_called_once()
        self.assertTrue(redis_client.delete.call_args[0][0].startswith("notification:idempotency:"))

    def test_bulk_continues_past_failures(self):
        created = self.service.create_bulk_notifications([
            {'user_id': 1, 'title': "a", 'message': "m", 'type': "booking", 'related_id': 1},
            {'user_id': 2, 'message': "missing title", 'type': "booking"},
            {'user_id': 3, 'title': "c", 'message': "m", 'notification_type': "payment", 'related_id': 9},
            {'user_id': 1, 'title': "a", 'message': "m", 'type': "booking", 'related_id': 1},
        ])

        self.assertEqual(sorted(n.user_id for n in created), [1, 3])

    def test_event_notification(self):
        notification = self.service.create_event_notification(
            'review_received', user_id=7, related_id=5, service_title="Plumbing", rating=5
        )

        self.assertEqual(notification.type, "review")
        self.assertEqual(notification.title, "New review received")
        self.assertEqual(notification.related_id, "5")

    def test_unknown_event_notification(self):
        self.assertIsNone(self.service.create_event_notification('party_started', user_id=7))

    def test_cleanup_deletes_only_old_read_notifications(self):
        old = NOW - timedelta(days=45)
        self.session.add_all([
            Notification(user_id=7, title="t", message="m", type="system", is_read=True, created_at=old),
            Notification(user_id=7, title="t", message="m", type="system", is_read=False, created_at=old),
            Notification(user_id=7, title="t", message="m", type="system", is_read=True,
                         created_at=NOW - timedelta(days=2)),
        ])
        self.session.flush()

        self.assertEqual(self.service.cleanup_old_notifications(now=NOW), 1)
        self.assertEqual(self.count(user_id=7), 2)

    def test_stats(self):
        self.session.add_all([
            Notification(user_id=7, title="t", message="m", type="booking", is_read=True, created_at=NOW),
            Notification(user_id=7, title="t", message="m", type="booking", created_at=NOW - timedelta(days=20)),
            Notification(user_id=7, title="t", message="m", type="chat", created_at=NOW - timedelta(days=1)),
            Notification(user_id=8, title="t", message="m", type="chat", created_at=NOW),
        ])
        self.session.flush()

        stats = self.service.get_notification_stats(7, now=NOW)

        self.assertEqual(stats['total_notifications'], 3)
        self.assertEqual(stats['unread_notifications'], 2)
        self.assertEqual(stats['booking_notifications'], 2)
        self.assertEqual(stats['chat_notifications'], 1)
        self.assertEqual(stats['payment_notifications'], 0)
        self.assertEqual(stats['recent_notifications'], 2)

    def test_stats_for_user_without_notifications(self):
        stats = self.service.get_notification_stats(99, now=NOW)
        self.assertEqual(stats['total_notifications'], 0)
        self.assertEqual(stats['unread_notifications'], 0)


class FakeRedis:
    """In-memory stand-in for the SET NX EX / DELETE calls of the idempotency cache."""

    def __init__(self):
        self.store = {}

    def set(self, key, value, nx=False, ex=None):
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0


@pytest.mark.db
class TestIdempotencyClaimLifetime(unittest.TestCase):
    """A claim must not outlive a transaction that never committed its row."""

    def setUp(self):
        self.engine = create_test_engine()
        self.session_factory = create_test_session_factory(self.engine)
        self.redis_client = FakeRedis()

    def tearDown(self):
        self.engine.dispose()

    def notify(self, session, user_id=7):
        service = NotificationService(MarketplaceRepository(session), NotificationConfig(), self.redis_client)
        return service.create_notification(
            user_id=user_id,
            title="New service request",
            message="Leaking pipe - EMERGENCY",
            notification_type="service_request",
            related_id=42,
            now=NOW,
        )

    def test_rollback_releases_claim_and_retry_persists(self):
        session = self.session_factory()
        self.assertIsNotNone(self.notify(session))
        self.assertEqual(len(self.redis_client.store), 1)

        session.rollback()
        session.close()
        self.assertEqual(self.redis_client.store, {})

        with self.session_factory() as session:
            self.assertIsNotNone(self.notify(session))
            session.commit()
            self.assertEqual(session.query(Notification).filter_by(user_id=7).count(), 1)

    def test_close_without_commit_releases_claim(self):
        session = self.session_factory()
        self.notify(session)
        session.close()

        self.assertEqual(self.redis_client.store, {})

    def test_commit_keeps_claim(self):
        with self.session_factory() as session:
            self.assertIsNotNone(self.notify(session))
            session.commit()

        self.assertEqual(len(self.redis_client.store), 1)

        with self.session_factory() as session:
            self.assertIsNone(self.notify(session))
            session.rollback()

        # The suppressed call never claimed, so rolling it back keeps the original claim
        self.assertEqual(len(self.redis_client.store), 1)

    def test_rollback_after_commit_only_releases_new_claims(self):
        with self.session_factory() as session:
            self.notify(session, user_id=7)
            session.commit()

            self.notify(session, user_id=8)
            session.rollback()

        self.assertEqual(len(self.redis_client.store), 1)


@pytest.mark.db
class TestNotificationSavepoint(unittest.TestCase):
    """One failed create_notification must not poison the caller's transaction."""

    def setUp(self):
        self.engine = create_test_engine()
        self.session = create_test_session_factory(self.engine)()
        self.repo = MarketplaceRepository(self.session)
        self.service = NotificationService(self.repo, NotificationConfig())

    def tearDown(self):
        self.session.close()
        self.engine.dispose()

    def notify(self, user_id):
        return self.service.create_notification(
            user_id=user_id,
            title="New service request",
            message="Leaking pipe - EMERGENCY",
            notification_type="service_request",
            related_id=42,
            now=NOW,
        )

    def persisted_users(self):
        return sorted(n.user_id for n in self.session.query(Notification))

    def test_failure_after_insert_rolls_back_that_row_only(self):
        real_insert = self.repo.notifications.insert_unique

        def insert_then_fail(notification):
            real_insert(notification)
            raise RuntimeError("connection lost")

        self.assertIsNotNone(self.notify(7))
        with patch.object(self.repo.notifications, 'insert_unique', side_effect=insert_then_fail):
            with self.assertRaises(RuntimeError):
                self.notify(8)
        self.assertIsNotNone(self.notify(9))

        self.session.commit()
        self.assertEqual(self.persisted_users(), [7, 9])

    def test_sql_error_leaves_transaction_usable(self):
        def broken_preferences(user_id):
            return self.session.execute(text("SELECT * FROM missing_table")).first()

        self.assertIsNotNone(self.notify(7))
        with patch.object(self.repo.notifications, 'get_preferences', side_effect=broken_preferences):
            with self.assertRaises(DBAPIError):
                self.notify(8)
        self.assertIsNotNone(self.notify(9))

        self.session.commit()
        self.assertEqual(self.persisted_users(), [7, 9])


if __name__ == '__main__':
    unittest.main()
