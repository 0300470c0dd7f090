#!/usr/bin/env python3
"""
Request models for API endpoints.
"""

from pydantic import BaseModel, Field
from typing import Optional, Literal

UrgencyLiteral = Literal["low", "medium", "high", "emergency"]


class ServiceRequestCreate(BaseModel):
    """A new service request from an Explorer."""
    client_id: int
    provider_id: Optional[int] = Field(None, description="Set for direct requests; omit to broadcast")
    category_id: int
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    location_address: Optional[str] = None
    location_lat: Optional[float] = Field(None, ge=-90, le=90)
    location_lng: Optional[float] = Field(None, ge=-180, le=180)
    budget_min: Optional[float] = Field(None, ge=0)
    budget_max: Optional[float] = Field(None, ge=0)
    urgency: UrgencyLiteral = "medium"


class AcceptRequest(BaseModel):
    """A professional claiming an open request."""
    professional_id: int


class NotificationCreate(BaseModel):
    """Create a single in-app notification."""
    user_id: int
    title: str
    message: str
    type: str = Field(..., description="service_request, booking, payment, review, chat, system")
    related_id: Optional[str] = None


class EventNotificationCreate(BaseModel):
    """Create a notification from an event template."""
    event_type: str = Field(..., description="e.g. booking_created, payment_approved, review_received")
    user_id: int
    related_id: Optional[str] = None
    context: dict = Field(default_factory=dict, description="Template values, e.g. service_title")
