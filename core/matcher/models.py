#!/usr/bin/env python3
"""
Matcher Models - Data structures for request-time matching.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Any, Optional

from database.models import ProfessionalNotificationSettings


class DistanceOutcome(str, Enum):
    """How the radius check resolved for one candidate."""
    WITHIN_RADIUS = "within_radius"
    OUTSIDE_RADIUS = "outside_radius"
    # Professional has no geocoded active location; the check was skipped
    UNKNOWN = "distance_unknown"
    # Request carries no coordinates
    NOT_APPLICABLE = "not_applicable"


@dataclass
class DeliverySettings:
    """
    Snapshot of a professional's delivery settings.

    A professional without a settings row gets the column defaults:
    push and email on, SMS off, no quiet hours, default radius.
    """
    push_new_requests: bool = True
    email_new_requests: bool = True
    sms_urgent_requests: bool = False
    quiet_hours_start: Optional[str] = None
    quiet_hours_end: Optional[str] = None
    notification_radius_km: Optional[float] = None

    @classmethod
    def from_row(cls, row: Optional[ProfessionalNotificationSettings]) -> "DeliverySettings":
        if row is None:
            return cls()
        return cls(
            push_new_requests=row.push_new_requests if row.push_new_requests is not None else True,
            email_new_requests=row.email_new_requests if row.email_new_requests is not None else True,
            sms_urgent_requests=bool(row.sms_urgent_requests),
            quiet_hours_start=row.quiet_hours_start,
            quiet_hours_end=row.quiet_hours_end,
            notification_radius_km=row.notification_radius_km,
        )


@dataclass
class EligibilityTrace:
    """Why a candidate was included or excluded."""
    included: bool = True
    reasons: List[str] = field(default_factory=list)

    def exclude(self, reason: str) -> None:
        self.included = False
        self.reasons.append(reason)

    def note(self, reason: str) -> None:
        self.reasons.append(reason)


@dataclass
class MatchCandidate:
    """A professional considered for one service request. Never persisted."""
    professional_id: Any
    priority_score: float = 0.0
    distance_km: Optional[float] = None
    distance_outcome: DistanceOutcome = DistanceOutcome.NOT_APPLICABLE
    settings: DeliverySettings = field(default_factory=DeliverySettings)
    trace: EligibilityTrace = field(default_factory=EligibilityTrace)

    display_name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None


@dataclass
class MatchResult:
    """Outcome of one match run: ordered candidates plus the excluded ones."""
    candidates: List[MatchCandidate] = field(default_factory=list)
    excluded: List[MatchCandidate] = field(default_factory=list)

    @property
    def total_considered(self) -> int:
        return len(self.candidates) + len(self.excluded)
