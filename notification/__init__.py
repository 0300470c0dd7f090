"""
Notification Module

Deduplicated in-app notifications plus real-time, email and SMS delivery
for new service requests.

Usage:
    from notification import NotificationService, NotificationDispatcher

    service = NotificationService(repo, config.notifications, redis_client)
    dispatcher = NotificationDispatcher(service, build_channels(config.notifications, redis_client))
    dispatcher.dispatch(candidates, service_request)
"""

from notification.channels import (
    NotificationChannel,
    RealtimeChannel,
    EmailChannel,
    SmsChannel,
    NotificationChannelFactory,
)

from notification.tracker import (
    NotificationTrackerService,
    NotificationEvent,
    DeduplicationStrategy,
    WindowDeduplicationStrategy,
    IdempotencyCache,
)

from notification.service import NotificationService

from notification.dispatcher import (
    NotificationDispatcher,
    DispatchReport,
    build_channels,
)

__all__ = [
    # Channels
    'NotificationChannel',
    'RealtimeChannel',
    'EmailChannel',
    'SmsChannel',
    'NotificationChannelFactory',
    # Tracker
    'NotificationTrackerService',
    'NotificationEvent',
    'DeduplicationStrategy',
    'WindowDeduplicationStrategy',
    'IdempotencyCache',
    # Service
    'NotificationService',
    # Dispatcher
    'NotificationDispatcher',
    'DispatchReport',
    'build_channels',
]
