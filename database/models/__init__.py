from .base import Base, utcnow
from .enums import SubscriptionTier, VerificationStatus, Urgency, RequestStatus, NotificationType
from .professional import (
    Professional,
    ProfessionalWorkCategory,
    ProfessionalWorkLocation,
    ProfessionalNotificationSettings,
)
from .service_request import ServiceRequest
from .notification import Notification, NotificationPreferences

__all__ = [
    'Base',
    'utcnow',
    'SubscriptionTier',
    'VerificationStatus',
    'Urgency',
    'RequestStatus',
    'NotificationType',
    'Professional',
    'ProfessionalWorkCategory',
    'ProfessionalWorkLocation',
    'ProfessionalNotificationSettings',
    'ServiceRequest',
    'Notification',
    'NotificationPreferences',
]
