import uuid

from sqlalchemy import Column, Integer, Text, TIMESTAMP, Boolean, JSON, Uuid, UniqueConstraint, Index

from .base import Base, utcnow


class Notification(Base):
    """
    In-app notification log.

    At most one row per (user, type, related entity) is expected within the
    deduplication window. ``dedup_key`` carries the user/type/related id and
    the window bucket, so concurrent inserts for the same event collide on
    the unique constraint instead of both landing.
    """
    __tablename__ = 'notifications'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Integer, nullable=False, index=True)

    title = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(Text, nullable=False)  # service_request, booking, payment, review, chat, system
    related_id = Column(Text, nullable=True)
    data = Column(JSON, default=dict)

    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    dedup_key = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint('dedup_key', name='uq_notification_dedup'),
        # Index for the recent-duplicate lookup
        Index('idx_notification_recent', 'user_id', 'type', 'related_id', 'created_at'),
    )


class NotificationPreferences(Base):
    """
    Per-user notification preferences.

    A missing row means "no restriction". Type-specific columns follow the
    ``<type>_notifications`` naming and are nullable: NULL means the user
    never expressed a preference for that type.
    """
    __tablename__ = 'notification_preferences'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, unique=True)

    email_notifications = Column(Boolean, nullable=True, default=True)
    push_notifications = Column(Boolean, nullable=True, default=True)
    sms_notifications = Column(Boolean, nullable=True, default=False)

    service_request_notifications = Column(Boolean, nullable=True)
    booking_notifications = Column(Boolean, nullable=True)
    payment_notifications = Column(Boolean, nullable=True)
    review_notifications = Column(Boolean, nullable=True)
    chat_notifications = Column(Boolean, nullable=True)
    system_notifications = Column(Boolean, nullable=True)

    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
