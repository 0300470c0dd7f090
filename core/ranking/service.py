#!/usr/bin/env python3
"""
Ranking Service - persisted 0-100 ranking score for professionals.

Loads a professional, computes the score with the pure functions in
core.ranking.components and writes it back to ``verification_score``
(bumping ``ranking_score_version``). The bulk sweep scores every active
professional in its own unit of work, in parallel, since no professional's
score depends on another's.
"""

from typing import List, Optional, Dict, Any
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
import logging

from sqlalchemy.exc import SQLAlchemyError

from database.repository import MarketplaceRepository
from database.uow import marketplace_uow
from database.models import SubscriptionTier, VerificationStatus
from core.config_loader import RankingConfig
from core.exceptions import ProfessionalNotFoundError
from core.utils import ensure_utc
from core.ranking.models import RankingInputs, RankingBreakdown
from core.ranking.components import compute_ranking_score
from core.ranking.tiers import get_ranking_tier, get_next_tier_requirements, calculate_trust_score

logger = logging.getLogger(__name__)


class RankingService:
    """
    Computes and persists professional ranking scores.

    The service never commits; the surrounding unit of work does.
    """

    def __init__(self, repo: MarketplaceRepository, config: Optional[RankingConfig] = None):
        self.repo = repo
        self.config = config or RankingConfig()

    def recompute(self, professional_id: Any, now: Optional[datetime] = None) -> RankingBreakdown:
        """
        Recompute and persist the score, raising when the professional is missing.
        """
        now = ensure_utc(now) or datetime.now(timezone.utc)
        professional = self.repo.professionals.get_by_id(professional_id)

        breakdown = compute_ranking_score(
            RankingInputs.from_professional(professional), self.config, now
        )
        self.repo.professionals.save_ranking_score(professional, breakdown.score, now)

        logger.info(
            f"Ranking updated for professional {professional_id}: "
            f"{breakdown.score} (v{professional.ranking_score_version})"
        )
        return breakdown

    def score(self, professional_id: Any, now: Optional[datetime] = None) -> int:
        """
        Recompute and persist the ranking score for one professional.

        Returns 0 (and logs) when the professional cannot be read; callers
        may simply retry later.
        """
        try:
            return self.recompute(professional_id, now).score
        except ProfessionalNotFoundError as e:
            logger.warning(f"Cannot rank: {e}")
            return 0
        except SQLAlchemyError as e:
            logger.error(f"Error calculating ranking for professional {professional_id}: {e}")
            return 0

    def get_ranking_factors(self, professional_id: Any, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
        """
        Breakdown of the factors behind the current score, with recommendations.

        Returns None when the professional does not exist.
        """
        now = ensure_utc(now) or datetime.now(timezone.utc)
        try:
            professional = self.repo.professionals.get_by_id(professional_id)
        except ProfessionalNotFoundError as e:
            logger.warning(f"Cannot load ranking factors: {e}")
            return None

        inputs = RankingInputs.from_professional(professional)
        breakdown = compute_ranking_score(inputs, self.config, now)

        completion_rate = 0.0
        if inputs.total_bookings_count > 0:
            completion_rate = round(inputs.completed_bookings_count / inputs.total_bookings_count * 100, 1)

        expires_at = inputs.subscription_expires_at
        factors: Dict[str, Any] = {
            'current_score': professional.verification_score or 0,
            'computed_score': breakdown.score,
            'components': breakdown.components(),
            'bonus_multiplier': breakdown.bonus_multiplier,
            'reviews': {
                'average_rating': inputs.average_rating,
                'total_reviews': inputs.total_reviews,
                'impact': 'high',
            },
            'subscription': {
                'type': inputs.subscription_tier,
                'is_active': expires_at is None or expires_at > now,
                'impact': 'high',
            },
            'verification': {
                'status': inputs.verification_status,
                'is_verified': inputs.verification_status == VerificationStatus.VERIFIED.value,
                'impact': 'medium',
            },
            'bookings': {
                'completed': inputs.completed_bookings_count,
                'total': inputs.total_bookings_count,
                'completion_rate': completion_rate,
                'impact': 'medium',
            },
            'profile': {
                'completion_percentage': inputs.profile_completion_percent,
                'impact': 'low',
            },
            'experience': {
                'years': inputs.years_experience,
                'impact': 'low',
            },
        }

        recommendations = []
        if inputs.average_rating < 4.5:
            recommendations.append("Improve service quality to earn better reviews")
        if inputs.subscription_tier == SubscriptionTier.FREE.value:
            recommendations.append("Consider upgrading to a premium plan for more visibility")
        if inputs.verification_status != VerificationStatus.VERIFIED.value:
            recommendations.append("Complete identity verification to build trust")
        if inputs.profile_completion_percent < 90:
            recommendations.append("Complete your professional profile to 100%")

        factors['recommendations'] = recommendations
        return factors

    def get_ranking_position(self, professional_id: Any, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
        """
        Rescore a professional and report their position among active professionals.
        """
        try:
            breakdown = self.recompute(professional_id, now)
        except ProfessionalNotFoundError as e:
            logger.warning(f"Cannot compute ranking position: {e}")
            return None

        position = self.repo.professionals.count_ranked_above(breakdown.score) + 1
        total = self.repo.professionals.count_active()
        percentile = round((1 - (position - 1) / total) * 100) if total else 0

        tier = get_ranking_tier(breakdown.score)
        return {
            'current_score': breakdown.score,
            'overall_position': position,
            'total_professionals': total,
            'percentile': percentile,
            'tier': tier.name,
            'next_tier_requirements': get_next_tier_requirements(breakdown.score),
        }

    def get_top_professionals(
        self,
        limit: int = 20,
        category_id: Optional[Any] = None,
        locality: Optional[str] = None,
        subscription_only: bool = False
    ) -> List[Dict[str, Any]]:
        """Top ranked professionals decorated with position, tier and trust score."""
        professionals = self.repo.professionals.get_top_professionals(limit, category_id, locality)

        if subscription_only:
            paid = (SubscriptionTier.PREMIUM.value, SubscriptionTier.BASIC.value)
            professionals = [p for p in professionals if p.subscription_tier in paid]

        results = []
        for index, professional in enumerate(professionals):
            average_rating = professional.average_rating or 0.0
            total_reviews = professional.total_reviews or 0
            results.append({
                'professional_id': professional.id,
                'name': professional.display_name,
                'ranking_score': professional.verification_score or 0,
                'ranking_position': index + 1,
                'tier': get_ranking_tier(professional.verification_score or 0).name,
                'subscription_tier': professional.subscription_tier,
                'average_rating': average_rating,
                'total_reviews': total_reviews,
                'is_top_rated': index < 5,
                'is_rising_star': total_reviews < 10 and average_rating >= 4.5,
                'trust_score': calculate_trust_score(
                    professional.verification_status,
                    professional.subscription_tier,
                    average_rating,
                    total_reviews,
                    professional.completed_bookings_count or 0
                ),
            })
        return results


def _rescore_one(session_factory, config: RankingConfig, professional_id: Any, now: datetime) -> int:
    with marketplace_uow(session_factory) as repo:
        return RankingService(repo, config).recompute(professional_id, now).score


def recalculate_all_rankings(
    session_factory,
    config: Optional[RankingConfig] = None,
    now: Optional[datetime] = None
) -> int:
    """
    Rescore every active professional.

    Each professional gets its own session and transaction, so one failure
    rolls back only that professional. Returns the number of professionals
    scored successfully.
    """
    config = config or RankingConfig()
    now = ensure_utc(now) or datetime.now(timezone.utc)

    with marketplace_uow(session_factory) as repo:
        professional_ids = repo.professionals.get_active_ids()

    if not professional_ids:
        logger.info("No active professionals to rank")
        return 0

    logger.info(f"Recalculating rankings for {len(professional_ids)} professionals")

    completed = 0
    with ThreadPoolExecutor(max_workers=max(1, config.max_workers)) as executor:
        futures = {
            executor.submit(_rescore_one, session_factory, config, professional_id, now): professional_id
            for professional_id in professional_ids
        }
        for future in as_completed(futures):
            professional_id = futures[future]
            try:
                future.result()
                completed += 1
            except Exception as e:
                logger.error(f"Failed to rank professional {professional_id}: {e}")

    logger.info(f"Rankings recalculated: {completed}/{len(professional_ids)} professionals")
    return completed
