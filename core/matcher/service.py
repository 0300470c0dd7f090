#!/usr/bin/env python3
"""
Match Finder - picks the professionals to notify for a new service request.

1. Eligibility (SQL): paid tier, verified, active category entry, at least
   one active work location
2. Radius: nearest geocoded work location vs the professional's
   notification radius (skipped, and logged, when nothing is geocoded)
3. Quiet hours: suppressed inside the window unless the request is an emergency
4. Delivery preferences: at least one channel must carry the request
5. Priority score, descending; ties by professional id
"""
from typing import List, Any, Optional
from datetime import datetime, timezone
from zoneinfo import ZoneInfo
import logging

from database.repository import MarketplaceRepository
from database.models import Professional
from core.config_loader import MatchingConfig
from core.utils import ensure_utc
from core.matcher.models import (
    MatchCandidate, MatchResult, DeliverySettings, EligibilityTrace, DistanceOutcome
)
from core.matcher.filters import check_distance, quiet_hours_block, accepts_delivery
from core.matcher.priority import calculate_priority_score

logger = logging.getLogger(__name__)


class MatchFinder:
    """
    Finds and orders notification candidates for a service request.

    Read-only: nothing is written while matching, and no lock is taken on
    the request.
    """

    def __init__(self, repo: MarketplaceRepository, config: Optional[MatchingConfig] = None):
        self.repo = repo
        self.config = config or MatchingConfig()
        self.tz = ZoneInfo(self.config.timezone)

    def find_candidates(
        self,
        category_id: Any,
        requester_lat: Optional[float],
        requester_lon: Optional[float],
        urgency: str,
        now: Optional[datetime] = None
    ) -> List[MatchCandidate]:
        """Ordered list of professionals to notify."""
        return self.evaluate(category_id, requester_lat, requester_lon, urgency, now).candidates

    def evaluate(
        self,
        category_id: Any,
        requester_lat: Optional[float],
        requester_lon: Optional[float],
        urgency: str,
        now: Optional[datetime] = None
    ) -> MatchResult:
        """
        Run the full match and keep the excluded candidates with their trace.
        """
        now = ensure_utc(now) or datetime.now(timezone.utc)
        local_now = now.astimezone(self.tz).time()

        professionals = self.repo.professionals.find_eligible_for_category(category_id)
        logger.info(
            f"Matching category {category_id} ({urgency}): "
            f"{len(professionals)} eligible professionals"
        )

        result = MatchResult()
        for professional in professionals:
            try:
                candidate = self._evaluate_professional(
                    professional, requester_lat, requester_lon, urgency, local_now
                )
            except Exception as e:
                logger.error(f"Skipping professional {professional.id}: {e}")
                candidate = MatchCandidate(professional_id=professional.id)
                candidate.trace.exclude(f"unreadable: {e}")

            if candidate.trace.included:
                result.candidates.append(candidate)
            else:
                result.excluded.append(candidate)

        result.candidates.sort(key=lambda c: (-c.priority_score, c.professional_id))

        logger.info(
            f"Matched {len(result.candidates)} candidates, excluded {len(result.excluded)}"
        )
        return result

    def _evaluate_professional(
        self,
        professional: Professional,
        requester_lat: Optional[float],
        requester_lon: Optional[float],
        urgency: str,
        local_now
    ) -> MatchCandidate:
        settings = DeliverySettings.from_row(professional.notification_settings)
        trace = EligibilityTrace()
        trace.note("eligible: paid tier, verified, active category and location")

        radius = settings.notification_radius_km or self.config.default_notification_radius_km
        outcome, distance = check_distance(
            professional.work_locations, requester_lat, requester_lon, radius
        )
        if outcome == DistanceOutcome.OUTSIDE_RADIUS:
            trace.exclude(f"outside radius: {distance:.1f} km > {radius:.1f} km")
        elif outcome == DistanceOutcome.UNKNOWN:
            logger.info(
                f"Professional {professional.id} has no geocoded work location; "
                f"radius check skipped"
            )
            trace.note("distance unknown: radius check skipped")
        elif outcome == DistanceOutcome.WITHIN_RADIUS:
            trace.note(f"within radius: {distance:.1f} km <= {radius:.1f} km")

        if quiet_hours_block(settings, urgency, local_now):
            trace.exclude(
                f"quiet hours {settings.quiet_hours_start}-{settings.quiet_hours_end}"
            )

        if not accepts_delivery(settings, urgency):
            trace.exclude("no delivery channel enabled")

        priority = calculate_priority_score(
            professional.average_rating or 0.0,
            professional.total_reviews or 0,
            professional.subscription_tier,
            urgency,
            self.config
        )

        return MatchCandidate(
            professional_id=professional.id,
            priority_score=priority,
            distance_km=distance,
            distance_outcome=outcome,
            settings=settings,
            trace=trace,
            display_name=professional.display_name,
            email=professional.email,
            phone=professional.phone,
        )
