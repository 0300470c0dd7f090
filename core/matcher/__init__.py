"""Matcher Module - request-time candidate selection and ordering."""
from core.matcher.models import (
    MatchCandidate, MatchResult, DeliverySettings, EligibilityTrace, DistanceOutcome
)
from core.matcher.filters import is_within_quiet_hours, parse_clock
from core.matcher.priority import calculate_priority_score
from core.matcher.service import MatchFinder

__all__ = [
    'MatchFinder',
    'MatchCandidate', 'MatchResult', 'DeliverySettings', 'EligibilityTrace', 'DistanceOutcome',
    'is_within_quiet_hours', 'parse_clock', 'calculate_priority_score',
]
