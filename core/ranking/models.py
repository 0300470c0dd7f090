#!/usr/bin/env python3
"""
Ranking Models - Data structures for ranking inputs and results.
"""

from typing import Optional, Dict, Any
from dataclasses import dataclass, field
from datetime import datetime

from core.utils import ensure_utc


@dataclass
class RankingInputs:
    """
    Snapshot of everything the ranking score depends on.

    Built from a Professional row so the scoring itself never touches the
    database and is deterministic for a given snapshot.
    """
    professional_id: Any
    subscription_tier: str = "free"
    subscription_expires_at: Optional[datetime] = None
    verification_status: str = "pending"
    identity_verification_score: float = 0.0
    profile_completion_percent: float = 0.0
    years_experience: float = 0.0
    completed_bookings_count: int = 0
    cancelled_bookings_count: int = 0
    total_bookings_count: int = 0
    last_booking_activity_at: Optional[datetime] = None
    average_rating: float = 0.0
    total_reviews: int = 0
    positive_reviews_count: int = 0

    @classmethod
    def from_professional(cls, professional) -> "RankingInputs":
        return cls(
            professional_id=professional.id,
            subscription_tier=professional.subscription_tier or "free",
            subscription_expires_at=ensure_utc(professional.subscription_expires_at),
            verification_status=professional.verification_status or "pending",
            identity_verification_score=float(professional.identity_verification_score or 0),
            profile_completion_percent=float(professional.profile_completion_percent or 0),
            years_experience=float(professional.years_experience or 0),
            completed_bookings_count=professional.completed_bookings_count or 0,
            cancelled_bookings_count=professional.cancelled_bookings_count or 0,
            total_bookings_count=professional.total_bookings_count or 0,
            last_booking_activity_at=ensure_utc(professional.last_booking_activity_at),
            average_rating=float(professional.average_rating or 0.0),
            total_reviews=professional.total_reviews or 0,
            positive_reviews_count=professional.positive_reviews_count or 0,
        )


@dataclass
class RankingBreakdown:
    """Complete ranking result with per-component scores (each 0-100)."""
    professional_id: Any
    score: int = 0

    review_score: float = 0.0
    subscription_score: float = 0.0
    verification_score: float = 0.0
    booking_score: float = 0.0
    profile_score: float = 0.0
    experience_score: float = 0.0

    weighted_sum: float = 0.0
    bonus_multiplier: float = 1.0
    bonus_details: Dict[str, float] = field(default_factory=dict)

    def components(self) -> Dict[str, float]:
        return {
            'reviews': self.review_score,
            'subscription': self.subscription_score,
            'verification': self.verification_score,
            'bookings': self.booking_score,
            'profile': self.profile_score,
            'experience': self.experience_score,
        }
