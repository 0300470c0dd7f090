"""
Marketplace enumerations.

Stored as plain text columns so the values stay readable in the database;
the enums give the Python side a single source of truth.
"""

from enum import Enum


class SubscriptionTier(str, Enum):
    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    IN_REVIEW = "in_review"
    VERIFIED = "verified"
    REJECTED = "rejected"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EMERGENCY = "emergency"


class RequestStatus(str, Enum):
    OPEN = "open"
    ACCEPTED = "accepted"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class NotificationType(str, Enum):
    SERVICE_REQUEST = "service_request"
    BOOKING = "booking"
    PAYMENT = "payment"
    REVIEW = "review"
    CHAT = "chat"
    SYSTEM = "system"
