#!/usr/bin/env python3
"""
Ranking Components - Per-factor scores for the persisted ranking score.

Each component returns a value on a 0-100 scale:
- Reviews: average rating, review volume and share of positive reviews
- Subscription: tier, with a penalty for expired subscriptions
- Verification: identity verification score (clamped pass-through)
- Bookings: completed bookings, penalised for high cancellation rates
- Profile: profile completion percentage
- Experience: years of experience

compute_ranking_score() combines them with the configured weights and the
bonus multiplier. Everything here is pure: same inputs, same score.
"""

from typing import Optional, Dict, Tuple
from datetime import datetime, timedelta, timezone
import logging
import math

from core.config_loader import RankingConfig
from core.utils import clamp, ensure_utc
from core.ranking.models import RankingInputs, RankingBreakdown

logger = logging.getLogger(__name__)


def calculate_review_score(average_rating: float, total_reviews: int, positive_reviews: int) -> float:
    """
    Review component.

    Formula: min(100, (avg/5)*100 + min(20, log10(n+1)*10) + (positive/n)*10),
    0 when there are no reviews.
    """
    if total_reviews <= 0:
        return 0.0

    base = (average_rating / 5.0) * 100.0
    count_bonus = min(20.0, math.log10(total_reviews + 1) * 10.0)
    positive_bonus = (positive_reviews / total_reviews) * 10.0

    return min(100.0, base + count_bonus + positive_bonus)


def calculate_subscription_score(
    tier: str,
    expires_at: Optional[datetime],
    now: datetime,
    config: RankingConfig
) -> float:
    """Tier score, minus the expiry penalty (floored) when the subscription lapsed."""
    score = config.subscription_scores.get(tier, 0.0)

    expires_at = ensure_utc(expires_at)
    if expires_at is not None and expires_at < now:
        score = max(config.subscription_floor, score - config.expired_subscription_penalty)

    return score


def calculate_verification_score(identity_verification_score: float) -> float:
    return clamp(float(identity_verification_score or 0))


def calculate_booking_score(
    completed: int,
    cancelled: int,
    total: int,
    config: RankingConfig
) -> float:
    """
    Booking component.

    Points per completed booking (capped at 100); when more than the threshold
    share of all bookings was cancelled, scaled by (1 - cancellation_rate).
    """
    score = min(100.0, completed * config.points_per_completed_booking)

    if total > 0:
        cancellation_rate = cancelled / total
        if cancellation_rate > config.cancellation_rate_threshold:
            score *= (1 - cancellation_rate)

    return score


def calculate_profile_score(profile_completion_percent: float) -> float:
    return clamp(float(profile_completion_percent or 0))


def calculate_experience_score(years_experience: float, config: RankingConfig) -> float:
    return min(100.0, max(0.0, years_experience) * config.points_per_year_experience)


def calculate_bonus_multiplier(
    inputs: RankingInputs,
    now: datetime,
    config: RankingConfig
) -> Tuple[float, Dict[str, float]]:
    """
    Multiplicative bonus applied to the weighted sum.

    Returns: (multiplier, bonus_details)
    """
    multiplier = 1.0
    details = {}

    if inputs.verification_status == 'verified':
        multiplier += config.verified_bonus
        details['verified'] = config.verified_bonus

    if inputs.subscription_tier == 'premium':
        multiplier += config.premium_bonus
        details['premium'] = config.premium_bonus

    last_activity = ensure_utc(inputs.last_booking_activity_at)
    if last_activity is not None and last_activity > now - timedelta(days=config.recent_activity_days):
        multiplier += config.recent_activity_bonus
        details['recent_activity'] = config.recent_activity_bonus

    return multiplier, details


def compute_ranking_score(
    inputs: RankingInputs,
    config: Optional[RankingConfig] = None,
    now: Optional[datetime] = None
) -> RankingBreakdown:
    """
    Compute the 0-100 ranking score for one professional.

    Weighted sum of the six components, times the bonus multiplier, clamped
    to [0, 100] and rounded to the nearest integer.
    """
    config = config or RankingConfig()
    now = ensure_utc(now) or datetime.now(timezone.utc)
    weights = config.weights

    review = calculate_review_score(inputs.average_rating, inputs.total_reviews, inputs.positive_reviews_count)
    subscription = calculate_subscription_score(
        inputs.subscription_tier, inputs.subscription_expires_at, now, config
    )
    verification = calculate_verification_score(inputs.identity_verification_score)
    booking = calculate_booking_score(
        inputs.completed_bookings_count,
        inputs.cancelled_bookings_count,
        inputs.total_bookings_count,
        config
    )
    profile = calculate_profile_score(inputs.profile_completion_percent)
    experience = calculate_experience_score(inputs.years_experience, config)

    weighted_sum = (
        weights.reviews * review
        + weights.subscription * subscription
        + weights.verification * verification
        + weights.bookings * booking
        + weights.profile * profile
        + weights.experience * experience
    )

    multiplier, bonus_details = calculate_bonus_multiplier(inputs, now, config)
    final = clamp(weighted_sum * multiplier)
    # Round half up, not banker's rounding
    score = int(math.floor(final + 0.5))

    logger.debug(
        f"Professional {inputs.professional_id}: weighted={weighted_sum:.2f}, "
        f"multiplier={multiplier:.2f}, score={score}"
    )

    return RankingBreakdown(
        professional_id=inputs.professional_id,
        score=score,
        review_score=review,
        subscription_score=subscription,
        verification_score=verification,
        booking_score=booking,
        profile_score=profile,
        experience_score=experience,
        weighted_sum=weighted_sum,
        bonus_multiplier=multiplier,
        bonus_details=bonus_details,
    )
