"""
Request-time priority score used to order notification candidates.

Separate from the persisted ranking score: rating (40), subscription (30),
review volume (20) and request urgency (10).
"""

from typing import Optional

from core.config_loader import MatchingConfig


def calculate_priority_score(
    average_rating: float,
    total_reviews: int,
    subscription_tier: str,
    urgency: str,
    config: Optional[MatchingConfig] = None
) -> float:
    config = config or MatchingConfig()
    total_reviews = total_reviews or 0

    rating = 0.0
    if total_reviews > 0:
        rating = ((average_rating or 0.0) / 5.0) * config.rating_weight

    subscription = config.subscription_priority.get(subscription_tier, 0.0)

    volume = min(total_reviews / config.volume_reviews_for_max, 1.0) * config.volume_weight

    urgency_points = config.urgency_priority.get(urgency, config.default_urgency_priority)

    return rating + subscription + volume + urgency_points
