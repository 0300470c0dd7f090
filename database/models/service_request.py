from sqlalchemy import Column, Integer, Text, TIMESTAMP, Float, Index

from .base import Base, utcnow


class ServiceRequest(Base):
    """
    A service request posted by an Explorer.

    Broadcast requests leave ``provider_id`` empty and are matched against
    eligible professionals; direct requests name a single professional.
    ``expires_at`` is advisory and is not enforced by the matching core.
    """
    __tablename__ = 'service_requests'

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(Integer, nullable=False)
    provider_id = Column(Integer, nullable=True)
    category_id = Column(Integer, nullable=False)

    title = Column(Text, nullable=False)
    description = Column(Text)

    location_address = Column(Text)
    location_lat = Column(Float, nullable=True)
    location_lng = Column(Float, nullable=True)

    budget_min = Column(Float, nullable=True)
    budget_max = Column(Float, nullable=True)

    urgency = Column(Text, nullable=False, default='medium')  # low|medium|high|emergency
    status = Column(Text, nullable=False, default='open')  # open|accepted|cancelled|expired
    accepted_by = Column(Integer, nullable=True)
    accepted_at = Column(TIMESTAMP(timezone=True), nullable=True)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    expires_at = Column(TIMESTAMP(timezone=True), nullable=False)

    __table_args__ = (
        Index('idx_service_requests_status', 'status', 'created_at'),
        Index('idx_service_requests_category', 'category_id'),
    )
