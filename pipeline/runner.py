"""Service request intake and broadcast.

This module holds the end-to-end flow used by both main.py and the web
application: store the request, match professionals, dispatch
notifications.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, Tuple
from dataclasses import dataclass

from core.app_context import AppContext
from core.exceptions import InvalidUrgencyError
from core.utils import ensure_utc
from database.models import Urgency, ServiceRequest
from database.uow import marketplace_uow
from notification.dispatcher import DispatchReport

logger = logging.getLogger(__name__)

EXPIRY_HOURS = {
    Urgency.EMERGENCY.value: 1,
    Urgency.HIGH.value: 4,
    Urgency.MEDIUM.value: 24,
    Urgency.LOW.value: 48,
}


@dataclass
class ServiceRequestResult:
    """Outcome of creating (and broadcasting) a service request."""
    request_id: int
    notified_count: int
    expires_at: datetime
    broadcast: bool
    report: Optional[DispatchReport] = None


def calculate_expires_at(urgency: str, created_at: datetime) -> datetime:
    """Advisory expiry: emergency +1h, high +4h, medium +24h, low +48h."""
    hours = EXPIRY_HOURS.get(urgency)
    if hours is None:
        raise InvalidUrgencyError(
            f"Invalid urgency {urgency!r}; expected one of {', '.join(EXPIRY_HOURS)}"
        )
    return ensure_utc(created_at) + timedelta(hours=hours)


def notify_request(
    ctx: AppContext,
    service_request: ServiceRequest,
    repo,
    now: Optional[datetime] = None
) -> DispatchReport:
    """Match professionals for a stored request and dispatch notifications."""
    finder = ctx.match_finder_for(repo)
    candidates = finder.find_candidates(
        service_request.category_id,
        service_request.location_lat,
        service_request.location_lng,
        service_request.urgency,
        now=now
    )
    logger.info(f"Found {len(candidates)} available professionals for request {service_request.id}")

    return ctx.dispatcher_for(repo).dispatch_with_report(candidates, service_request)


def dispatch_existing_request(
    ctx: AppContext,
    request_id: Any,
    session_factory=None,
    now: Optional[datetime] = None
) -> DispatchReport:
    """Re-run matching and dispatch for a request already in the database.

    Raises:
        ServiceRequestNotFoundError: when the request does not exist
    """
    with marketplace_uow(session_factory or ctx.session_factory) as repo:
        service_request = repo.requests.get_by_id(request_id)
        return notify_request(ctx, service_request, repo, now)


def create_service_request_with_notifications(
    ctx: AppContext,
    request_data: Dict[str, Any],
    session_factory=None,
    now: Optional[datetime] = None
) -> Tuple[int, int]:
    """Create a service request and notify matching professionals.

    Returns:
        (request_id, notified_count). Direct requests (``provider_id`` set)
        are not broadcast and report one notified professional.
    """
    result = submit_service_request(ctx, request_data, session_factory, now)
    return result.request_id, result.notified_count


def submit_service_request(
    ctx: AppContext,
    request_data: Dict[str, Any],
    session_factory=None,
    now: Optional[datetime] = None
) -> ServiceRequestResult:
    """Same as create_service_request_with_notifications, with the full result."""
    now = ensure_utc(now) or datetime.now(timezone.utc)
    urgency = request_data.get('urgency') or Urgency.MEDIUM.value
    created_at = ensure_utc(request_data.get('created_at')) or now
    expires_at = calculate_expires_at(urgency, created_at)

    data = dict(request_data, urgency=urgency, created_at=created_at)

    # Commit the request before broadcasting so recipients can load it
    with marketplace_uow(session_factory or ctx.session_factory) as repo:
        service_request = repo.requests.create(data, expires_at)
        request_id = service_request.id

    logger.info(f"Service request {request_id} created ({urgency}, expires {expires_at.isoformat()})")

    if data.get('provider_id'):
        logger.info(f"Request {request_id} is direct to professional {data['provider_id']}; no broadcast")
        return ServiceRequestResult(
            request_id=request_id, notified_count=1, expires_at=expires_at, broadcast=False
        )

    report = dispatch_existing_request(ctx, request_id, session_factory, now)
    return ServiceRequestResult(
        request_id=request_id,
        notified_count=report.processed,
        expires_at=expires_at,
        broadcast=True,
        report=report
    )


def accept_service_request(
    request_id: Any,
    professional_id: Any,
    session_factory,
    now: Optional[datetime] = None
) -> bool:
    """First accept wins. Returns False when the request is no longer open.

    Raises:
        ServiceRequestNotFoundError: when the request does not exist
    """
    now = ensure_utc(now) or datetime.now(timezone.utc)
    with marketplace_uow(session_factory) as repo:
        repo.requests.get_by_id(request_id)
        return repo.requests.accept(request_id, professional_id, now)
