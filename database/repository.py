from sqlalchemy.orm import Session

from database.repositories import (
    ProfessionalRepository,
    ServiceRequestRepository,
    NotificationRepository,
)


class MarketplaceRepository:
    """Facade bundling the per-aggregate repositories over one Session."""

    def __init__(self, db: Session):
        self.db = db
        self.professionals = ProfessionalRepository(db)
        self.requests = ServiceRequestRepository(db)
        self.notifications = NotificationRepository(db)
