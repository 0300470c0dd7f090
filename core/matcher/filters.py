"""
Candidate filters: radius, quiet hours and delivery preferences.

All functions are pure; MatchFinder feeds them the professional, the
request and the current local time.
"""

from typing import Optional, Tuple, Iterable
from datetime import time
import logging

from database.models import Urgency, ProfessionalWorkLocation
from core.geo import distance_km
from core.matcher.models import DeliverySettings, DistanceOutcome

logger = logging.getLogger(__name__)


def parse_clock(value: Optional[str]) -> Optional[time]:
    """Parse an ``HH:MM`` (or ``HH:MM:SS``) string, None when empty or malformed."""
    if not value:
        return None
    try:
        parts = [int(p) for p in value.strip().split(":")]
        if len(parts) == 2:
            return time(parts[0], parts[1])
        if len(parts) == 3:
            return time(parts[0], parts[1], parts[2])
    except ValueError:
        pass
    logger.warning(f"Ignoring malformed quiet hours value: {value!r}")
    return None


def is_within_quiet_hours(start: time, end: time, now: time) -> bool:
    """
    True when ``now`` falls inside the quiet window.

    ``start > end`` means the window spans midnight (e.g. 22:00-08:00).
    Both bounds are inclusive and compared to the minute, so 08:00:30 is
    still inside a window ending at 08:00.
    """
    start, end, now = (t.replace(second=0, microsecond=0) for t in (start, end, now))
    if start > end:
        return now >= start or now <= end
    return start <= now <= end


def quiet_hours_block(settings: DeliverySettings, urgency: str, local_now: time) -> bool:
    """True when quiet hours suppress this request. Emergencies always pass."""
    start = parse_clock(settings.quiet_hours_start)
    end = parse_clock(settings.quiet_hours_end)
    if start is None or end is None:
        return False
    if not is_within_quiet_hours(start, end, local_now):
        return False
    return urgency != Urgency.EMERGENCY.value


def accepts_delivery(settings: DeliverySettings, urgency: str) -> bool:
    """At least one channel would carry this request."""
    if settings.push_new_requests or settings.email_new_requests:
        return True
    return urgency == Urgency.EMERGENCY.value and settings.sms_urgent_requests


def nearest_location_distance(
    locations: Iterable[ProfessionalWorkLocation],
    lat: float,
    lon: float
) -> Optional[float]:
    """Distance to the closest active, geocoded work location, or None."""
    distances = [
        distance_km(lat, lon, location.latitude, location.longitude)
        for location in locations
        if location.is_active and location.has_coordinates
    ]
    return min(distances) if distances else None


def check_distance(
    locations: Iterable[ProfessionalWorkLocation],
    requester_lat: Optional[float],
    requester_lon: Optional[float],
    radius_km: float
) -> Tuple[DistanceOutcome, Optional[float]]:
    """
    Resolve the radius check for one professional.

    Returns (outcome, distance_km). Distance is None unless both sides have
    coordinates.
    """
    if requester_lat is None or requester_lon is None:
        return DistanceOutcome.NOT_APPLICABLE, None

    distance = nearest_location_distance(locations, requester_lat, requester_lon)
    if distance is None:
        return DistanceOutcome.UNKNOWN, None

    if distance > radius_km:
        return DistanceOutcome.OUTSIDE_RADIUS, distance
    return DistanceOutcome.WITHIN_RADIUS, distance
