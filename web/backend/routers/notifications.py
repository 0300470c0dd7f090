#!/usr/bin/env python3
"""
Notification endpoints - create, inspect and clean up in-app notifications.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from core.app_context import AppContext
from database.repository import MarketplaceRepository
from notification.message_builder import EVENT_TEMPLATES
from notification.service import NotificationService
from ..dependencies import get_repo, get_app_context
from ..models.requests import NotificationCreate, EventNotificationCreate
from ..models.responses import (
    NotificationResponse,
    NotificationStatsResponse,
    CleanupResponse,
)

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


def get_notification_service(
    repo: MarketplaceRepository = Depends(get_repo),
    ctx: AppContext = Depends(get_app_context)
) -> NotificationService:
    """Dependency to get notification service."""
    return ctx.notification_service_for(repo)


def _to_response(notification) -> NotificationResponse:
    if notification is None:
        return NotificationResponse(created=False)
    return NotificationResponse(created=True, notification_id=str(notification.id))


@router.post("", response_model=NotificationResponse)
def create_notification(
    request: NotificationCreate,
    notification_service: NotificationService = Depends(get_notification_service)
):
    """
    Create an in-app notification.

    Duplicates inside the dedup window and opted-out users return
    ``created: false``.
    """
    notification = notification_service.create_notification(
        user_id=request.user_id,
        title=request.title,
        message=request.message,
        notification_type=request.type,
        related_id=request.related_id
    )
    return _to_response(notification)


@router.post("/events", response_model=NotificationResponse)
def create_event_notification(
    request: EventNotificationCreate,
    notification_service: NotificationService = Depends(get_notification_service)
):
    """
    Create a notification from an event template (booking, payment, review, chat, system).
    """
    if request.event_type not in EVENT_TEMPLATES:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown event type '{request.event_type}'. "
                   f"Valid options: {', '.join(sorted(EVENT_TEMPLATES))}"
        )

    try:
        notification = notification_service.create_event_notification(
            request.event_type,
            request.user_id,
            related_id=request.related_id,
            **request.context
        )
    except TypeError as e:
        raise HTTPException(status_code=400, detail=f"Missing template values: {e}")

    return _to_response(notification)


@router.get("/{user_id}/stats", response_model=NotificationStatsResponse)
def get_notification_stats(
    user_id: int,
    notification_service: NotificationService = Depends(get_notification_service)
):
    """
    Per-type, unread and recent notification counts for a user.
    """
    return NotificationStatsResponse(
        user_id=user_id,
        stats=notification_service.get_notification_stats(user_id)
    )


@router.post("/cleanup", response_model=CleanupResponse)
def cleanup_notifications(
    days_old: Optional[int] = Query(None, ge=1),
    notification_service: NotificationService = Depends(get_notification_service)
):
    """
    Delete read notifications older than ``days_old`` days (config default when omitted).
    """
    return CleanupResponse(deleted=notification_service.cleanup_old_notifications(days_old))
