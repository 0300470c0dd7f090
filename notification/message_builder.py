from typing import Optional, Dict, Any, Callable, Tuple
from pydantic import BaseModel, ConfigDict, Field

from database.models import ServiceRequest, NotificationType


class ServiceRequestPayload(BaseModel):
    """Real-time event payload for a new service request."""
    model_config = ConfigDict(populate_by_name=True)

    request_id: Any = Field(alias="requestId")
    title: str
    description: Optional[str] = None
    urgency: str
    location: Optional[str] = None
    budget: Optional[str] = None
    expires_at: Optional[str] = Field(default=None, alias="expiresAt")

    def to_event(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class NotificationTemplate(BaseModel):
    title: str
    message: str
    type: str


def _truncate(text: str, limit: int = 50) -> str:
    return text[:limit] + ('...' if len(text) > limit else '')


# event name -> builder(**context) -> (title, message, type)
EVENT_TEMPLATES: Dict[str, Callable[..., Tuple[str, str, str]]] = {
    'booking_created': lambda service_title, scheduled_date, scheduled_time, **_: (
        "New booking received",
        f"You have a new booking for {service_title} on {scheduled_date} at {scheduled_time}",
        NotificationType.BOOKING.value,
    ),
    'booking_confirmed': lambda service_title, scheduled_date, scheduled_time, **_: (
        "Booking confirmed",
        f"Your booking for {service_title} is confirmed for {scheduled_date} at {scheduled_time}",
        NotificationType.BOOKING.value,
    ),
    'booking_cancelled': lambda service_title, scheduled_date, **_: (
        "Booking cancelled",
        f"The booking for {service_title} on {scheduled_date} has been cancelled",
        NotificationType.BOOKING.value,
    ),
    'booking_completed': lambda service_title, **_: (
        "Service completed",
        f"The service {service_title} has been completed. You can now leave a review!",
        NotificationType.BOOKING.value,
    ),
    'payment_approved': lambda service_title, **_: (
        "Payment approved",
        f"Your payment for {service_title} was approved",
        NotificationType.PAYMENT.value,
    ),
    'payment_rejected': lambda service_title, **_: (
        "Payment rejected",
        f"Your payment for {service_title} was rejected. Try another payment method",
        NotificationType.PAYMENT.value,
    ),
    'payment_received': lambda service_title, **_: (
        "Payment received",
        f"You received a payment for {service_title}",
        NotificationType.PAYMENT.value,
    ),
    'payment_refunded': lambda service_title, **_: (
        "Payment refunded",
        f"Your payment for {service_title} has been refunded",
        NotificationType.PAYMENT.value,
    ),
    'review_received': lambda service_title, rating, **_: (
        "New review received",
        f"You received a {rating}-star review for {service_title}",
        NotificationType.REVIEW.value,
    ),
    'message_received': lambda sender_name, content, **_: (
        "New message",
        f"{sender_name} sent you a message: {_truncate(content)}",
        NotificationType.CHAT.value,
    ),
    'account_verified': lambda **_: (
        "Account verified",
        "Your account has been verified. You can now offer your services!",
        NotificationType.SYSTEM.value,
    ),
    'account_suspended': lambda **_: (
        "Account suspended",
        "Your account has been suspended. Contact support for more information.",
        NotificationType.SYSTEM.value,
    ),
    'service_approved': lambda service_title, **_: (
        "Service approved",
        f'Your service "{service_title}" was approved and is now visible to clients',
        NotificationType.SYSTEM.value,
    ),
    'service_rejected': lambda service_title, **_: (
        "Service rejected",
        f'Your service "{service_title}" was rejected. Review the comments and submit it again',
        NotificationType.SYSTEM.value,
    ),
}


class NotificationMessageBuilder:
    @staticmethod
    def format_budget(budget_min: Optional[float], budget_max: Optional[float], currency: str = "ARS") -> Optional[str]:
        """Budget range as "<min> - <max> <currency>"."""
        if budget_min is None and budget_max is None:
            return None

        def fmt(value: Optional[float]) -> str:
            if value is None:
                return "?"
            return f"{value:,.0f}" if float(value).is_integer() else f"{value:,.2f}"

        if budget_min is not None and budget_max is not None:
            return f"{fmt(budget_min)} - {fmt(budget_max)} {currency}"
        if budget_min is not None:
            return f"{fmt(budget_min)}+ {currency}"
        return f"Up to {fmt(budget_max)} {currency}"

    @staticmethod
    def build_request_payload(request: ServiceRequest, currency: str = "ARS") -> ServiceRequestPayload:
        expires_at = request.expires_at.isoformat() if request.expires_at else None
        return ServiceRequestPayload(
            request_id=request.id,
            title=request.title,
            description=request.description,
            urgency=request.urgency,
            location=request.location_address,
            budget=NotificationMessageBuilder.format_budget(request.budget_min, request.budget_max, currency),
            expires_at=expires_at,
        )

    @staticmethod
    def build_request_notification(request: ServiceRequest) -> NotificationTemplate:
        """In-app notification for a new broadcast request."""
        return NotificationTemplate(
            title="New service request",
            message=f"{request.title} - {(request.urgency or '').upper()}",
            type=NotificationType.SERVICE_REQUEST.value,
        )

    @staticmethod
    def build_request_data(request: ServiceRequest) -> Dict[str, Any]:
        return {
            'request_id': request.id,
            'category_id': request.category_id,
            'urgency': request.urgency,
            'location': request.location_address,
        }

    @staticmethod
    def build_email_body(payload: ServiceRequestPayload) -> str:
        lines = [
            f"New service request: {payload.title}",
            f"Urgency: {payload.urgency}",
        ]
        if payload.location:
            lines.append(f"Location: {payload.location}")
        if payload.budget:
            lines.append(f"Budget: {payload.budget}")
        if payload.expires_at:
            lines.append(f"Expires at: {payload.expires_at}")
        if payload.description:
            lines.extend(["", payload.description])
        return "\n".join(lines)

    @staticmethod
    def build_sms_text(payload: ServiceRequestPayload) -> str:
        parts = [f"URGENT: {payload.title}"]
        if payload.location:
            parts.append(payload.location)
        if payload.budget:
            parts.append(payload.budget)
        return " | ".join(parts)

    @staticmethod
    def build_event_notification(event_type: str, **context) -> Optional[NotificationTemplate]:
        """
        Render a notification template for a marketplace event.

        Returns None for unknown event types. Missing context keys raise
        TypeError.
        """
        template = EVENT_TEMPLATES.get(event_type)
        if template is None:
            return None
        title, message, notification_type = template(**context)
        return NotificationTemplate(title=title, message=message, type=notification_type)
