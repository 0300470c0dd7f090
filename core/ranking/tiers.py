"""
Ranking tiers, improvement suggestions and the listing trust score.

These are presentation helpers layered over the persisted ranking score;
none of them write anything.
"""

from typing import List, Optional, Dict, Any
from dataclasses import dataclass

from database.models import SubscriptionTier, VerificationStatus


@dataclass(frozen=True)
class RankingTier:
    name: str
    min_score: int
    color: str


ELITE = RankingTier(name="Elite", min_score=80, color="#FFD700")
EXPERT = RankingTier(name="Expert", min_score=60, color="#C0C0C0")
PROFESSIONAL = RankingTier(name="Professional", min_score=40, color="#CD7F32")
BEGINNER = RankingTier(name="Beginner", min_score=0, color="#87CEEB")

# Highest first
TIERS = (ELITE, EXPERT, PROFESSIONAL, BEGINNER)


def get_ranking_tier(score: float) -> RankingTier:
    for tier in TIERS:
        if score >= tier.min_score:
            return tier
    return BEGINNER


def get_improvement_suggestions(score: float) -> List[str]:
    if score < PROFESSIONAL.min_score:
        return [
            "Complete your professional profile to 100%",
            "Verify your identity with documents",
            "Consider upgrading to a premium plan",
        ]
    if score < EXPERT.min_score:
        return [
            "Improve service quality to earn better reviews",
            "Complete more jobs successfully",
            "Keep excellent communication with clients",
        ]
    return [
        "Keep your service quality consistent",
        "Aim for more 5-star reviews",
        "Expand your service portfolio",
    ]


def get_next_tier_requirements(score: float) -> Optional[Dict[str, Any]]:
    """
    Next tier above ``score`` and the points still missing.

    Returns None when the score is already in the top tier.
    """
    if score >= ELITE.min_score:
        return None

    next_tier = next(
        tier for tier in reversed(TIERS) if tier.min_score > score
    )
    return {
        'next_tier': next_tier.name,
        'points_needed': next_tier.min_score - score,
        'suggestions': get_improvement_suggestions(score),
    }


def calculate_trust_score(
    verification_status: Optional[str],
    subscription_tier: Optional[str],
    average_rating: float,
    total_reviews: int,
    completed_bookings: int
) -> int:
    """
    Coarse 0-100 trust badge shown next to listings.

    verified +30; premium +25 / basic +15; with reviews
    min(25, avg*5) + min(10, count); min(10, completed bookings).
    """
    trust = 0.0

    if verification_status == VerificationStatus.VERIFIED.value:
        trust += 30

    if subscription_tier == SubscriptionTier.PREMIUM.value:
        trust += 25
    elif subscription_tier == SubscriptionTier.BASIC.value:
        trust += 15

    if total_reviews and total_reviews > 0:
        trust += min(25.0, (average_rating or 0) * 5)
        trust += min(10, total_reviews)

    if completed_bookings and completed_bookings > 0:
        trust += min(10, completed_bookings)

    return min(100, int(round(trust)))
