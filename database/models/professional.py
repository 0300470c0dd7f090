from sqlalchemy import Column, Integer, Text, TIMESTAMP, ForeignKey, Boolean, Float, Index
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class Professional(Base):
    """
    Service professional (AS) account as seen by the matching core.

    Review and booking columns are aggregate counters maintained by the
    booking/review workflows. The matching core only reads them; the
    ranking service is the sole writer of ``verification_score``.
    """
    __tablename__ = 'professionals'

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(Text)
    last_name = Column(Text)
    email = Column(Text)
    phone = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)

    # Subscription
    subscription_tier = Column(Text, nullable=False, default='free')  # free|basic|premium
    subscription_expires_at = Column(TIMESTAMP(timezone=True), nullable=True)

    # Verification
    verification_status = Column(Text, nullable=False, default='pending')  # pending|in_review|verified|rejected
    identity_verification_score = Column(Integer, nullable=False, default=0)  # from the verification pipeline

    # Ranking output
    verification_score = Column(Integer, nullable=False, default=0)
    ranking_score_version = Column(Integer, nullable=False, default=0)
    ranking_scored_at = Column(TIMESTAMP(timezone=True), nullable=True)

    # Profile
    profile_completion_percent = Column(Integer, nullable=False, default=0)
    years_experience = Column(Integer, nullable=False, default=0)

    # Booking aggregates
    completed_bookings_count = Column(Integer, nullable=False, default=0)
    cancelled_bookings_count = Column(Integer, nullable=False, default=0)
    total_bookings_count = Column(Integer, nullable=False, default=0)
    last_booking_activity_at = Column(TIMESTAMP(timezone=True), nullable=True)

    # Review aggregates
    average_rating = Column(Float, nullable=False, default=0.0)
    total_reviews = Column(Integer, nullable=False, default=0)
    positive_reviews_count = Column(Integer, nullable=False, default=0)  # rating >= 4

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    # Relationships
    work_categories = relationship(
        "ProfessionalWorkCategory", back_populates="professional", cascade="all, delete-orphan"
    )
    work_locations = relationship(
        "ProfessionalWorkLocation", back_populates="professional", cascade="all, delete-orphan"
    )
    notification_settings = relationship(
        "ProfessionalNotificationSettings",
        back_populates="professional",
        uselist=False,
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index('idx_professionals_ranking', 'verification_score'),
        Index('idx_professionals_eligibility', 'subscription_tier', 'verification_status'),
    )

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or f"professional-{self.id}"


class ProfessionalWorkCategory(Base):
    __tablename__ = 'professional_work_categories'

    id = Column(Integer, primary_key=True, autoincrement=True)
    professional_id = Column(Integer, ForeignKey('professionals.id', ondelete='CASCADE'), nullable=False)
    category_id = Column(Integer, nullable=False)
    subcategory = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)

    professional = relationship("Professional", back_populates="work_categories")

    __table_args__ = (
        Index('idx_work_categories_lookup', 'category_id', 'is_active'),
    )


class ProfessionalWorkLocation(Base):
    """
    A locality where the professional works.

    Coordinates are optional: many records only carry a locality name,
    in which case the distance filter cannot be applied.
    """
    __tablename__ = 'professional_work_locations'

    id = Column(Integer, primary_key=True, autoincrement=True)
    professional_id = Column(Integer, ForeignKey('professionals.id', ondelete='CASCADE'), nullable=False)
    locality = Column(Text, nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    travel_radius_km = Column(Float, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    professional = relationship("Professional", back_populates="work_locations")

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class ProfessionalNotificationSettings(Base):
    """Per-professional delivery settings for new service requests."""
    __tablename__ = 'professional_notification_settings'

    id = Column(Integer, primary_key=True, autoincrement=True)
    professional_id = Column(
        Integer, ForeignKey('professionals.id', ondelete='CASCADE'), nullable=False, unique=True
    )
    push_new_requests = Column(Boolean, nullable=False, default=True)
    email_new_requests = Column(Boolean, nullable=False, default=True)
    sms_urgent_requests = Column(Boolean, nullable=False, default=False)

    # "HH:MM" strings in the marketplace timezone
    quiet_hours_start = Column(Text, nullable=True)
    quiet_hours_end = Column(Text, nullable=True)

    notification_radius_km = Column(Float, nullable=True)

    professional = relationship("Professional", back_populates="notification_settings")
