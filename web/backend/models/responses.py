#!/usr/bin/env python3
"""
Response models for API endpoints.
"""

from pydantic import BaseModel, ConfigDict
from typing import List, Optional, Dict, Any


class ScoreResponse(BaseModel):
    """Result of recomputing one professional's ranking score."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {"success": True, "professional_id": 12, "score": 87, "tier": "Elite"}
        }
    )

    success: bool = True
    professional_id: int
    score: int
    tier: str


class RescoreAllResponse(BaseModel):
    success: bool = True
    completed: int


class RankingInfoResponse(BaseModel):
    success: bool = True
    current_score: int
    overall_position: int
    total_professionals: int
    percentile: int
    tier: str
    next_tier_requirements: Optional[Dict[str, Any]] = None
    factors: Optional[Dict[str, Any]] = None


class TopProfessional(BaseModel):
    professional_id: int
    name: str
    ranking_score: int
    ranking_position: int
    tier: str
    subscription_tier: str
    average_rating: float
    total_reviews: int
    is_top_rated: bool
    is_rising_star: bool
    trust_score: int


class TopProfessionalsResponse(BaseModel):
    success: bool = True
    professionals: List[TopProfessional]


class ServiceRequestResponse(BaseModel):
    """Result of creating a service request."""
    success: bool = True
    request_id: int
    notified_count: int
    broadcast: bool
    expires_at: str


class DispatchResponse(BaseModel):
    success: bool = True
    request_id: int
    processed: int
    persisted: int
    suppressed: int
    skipped: int


class AcceptResponse(BaseModel):
    success: bool = True
    request_id: int
    accepted_by: int


class NotificationResponse(BaseModel):
    """Result of a notification create call; ``created`` is False when deduplicated or opted out."""
    success: bool = True
    created: bool
    notification_id: Optional[str] = None


class NotificationStatsResponse(BaseModel):
    success: bool = True
    user_id: int
    stats: Dict[str, int]


class CleanupResponse(BaseModel):
    success: bool = True
    deleted: int
