import logging
from typing import List, Optional, Any
from datetime import datetime

from sqlalchemy import select, func, case
from sqlalchemy.exc import NoResultFound
from sqlalchemy.orm import selectinload

from database.models import (
    Professional, ProfessionalWorkCategory, ProfessionalWorkLocation,
    SubscriptionTier, VerificationStatus
)
from database.repositories.base import BaseRepository
from core.exceptions import ProfessionalNotFoundError

logger = logging.getLogger(__name__)

BROADCAST_TIERS = (SubscriptionTier.BASIC.value, SubscriptionTier.PREMIUM.value)


class ProfessionalRepository(BaseRepository):
    def get_by_id(self, professional_id: Any) -> Professional:
        stmt = select(Professional).where(Professional.id == professional_id)
        try:
            return self.db.execute(stmt).scalar_one()
        except NoResultFound:
            raise ProfessionalNotFoundError(professional_id)

    def get_active_ids(self) -> List[int]:
        stmt = select(Professional.id).where(Professional.is_active.is_(True)).order_by(Professional.id)
        return list(self.db.execute(stmt).scalars().all())

    def find_eligible_for_category(self, category_id: Any) -> List[Professional]:
        """
        Professionals who may receive broadcast requests for a category.

        Eligible means: paid tier (basic/premium), verified, an active work
        category entry for ``category_id`` and at least one active work
        location. Rows come back ordered by id.
        """
        has_active_location = (
            select(ProfessionalWorkLocation.id)
            .where(
                ProfessionalWorkLocation.professional_id == Professional.id,
                ProfessionalWorkLocation.is_active.is_(True)
            )
            .exists()
        )
        has_active_category = (
            select(ProfessionalWorkCategory.id)
            .where(
                ProfessionalWorkCategory.professional_id == Professional.id,
                ProfessionalWorkCategory.category_id == category_id,
                ProfessionalWorkCategory.is_active.is_(True)
            )
            .exists()
        )
        stmt = (
            select(Professional)
            .where(
                Professional.is_active.is_(True),
                Professional.subscription_tier.in_(BROADCAST_TIERS),
                Professional.verification_status == VerificationStatus.VERIFIED.value,
                has_active_category,
                has_active_location
            )
            .options(
                selectinload(Professional.work_locations),
                selectinload(Professional.notification_settings)
            )
            .order_by(Professional.id)
        )
        return list(self.db.execute(stmt).scalars().all())

    def save_ranking_score(self, professional: Professional, score: int, scored_at: datetime) -> Professional:
        """Persist a freshly computed ranking score and bump its version."""
        professional.verification_score = score
        professional.ranking_score_version = (professional.ranking_score_version or 0) + 1
        professional.ranking_scored_at = scored_at
        self.db.flush()
        return professional

    def get_top_professionals(
        self,
        limit: int = 10,
        category_id: Optional[Any] = None,
        locality: Optional[str] = None
    ) -> List[Professional]:
        """
        Active professionals ordered by ranking score.

        Ties fall back to premium first, then basic, then average rating and
        review count.
        """
        stmt = select(Professional).where(Professional.is_active.is_(True))

        if category_id is not None:
            stmt = stmt.where(
                select(ProfessionalWorkCategory.id)
                .where(
                    ProfessionalWorkCategory.professional_id == Professional.id,
                    ProfessionalWorkCategory.category_id == category_id,
                    ProfessionalWorkCategory.is_active.is_(True)
                )
                .exists()
            )

        if locality:
            stmt = stmt.where(
                select(ProfessionalWorkLocation.id)
                .where(
                    ProfessionalWorkLocation.professional_id == Professional.id,
                    ProfessionalWorkLocation.locality.ilike(f"%{locality}%")
                )
                .exists()
            )

        stmt = stmt.order_by(
            Professional.verification_score.desc(),
            case((Professional.subscription_tier == SubscriptionTier.PREMIUM.value, 0), else_=1),
            case((Professional.subscription_tier == SubscriptionTier.BASIC.value, 0), else_=1),
            Professional.average_rating.desc(),
            Professional.total_reviews.desc(),
            Professional.id
        ).limit(limit)

        return list(self.db.execute(stmt).scalars().all())

    def count_active(self) -> int:
        stmt = select(func.count(Professional.id)).where(Professional.is_active.is_(True))
        return self.db.execute(stmt).scalar_one()

    def count_ranked_above(self, score: int) -> int:
        stmt = select(func.count(Professional.id)).where(
            Professional.is_active.is_(True),
            Professional.verification_score > score
        )
        return self.db.execute(stmt).scalar_one()
