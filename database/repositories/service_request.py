import logging
from typing import Any, Dict
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import NoResultFound

from database.models import ServiceRequest, RequestStatus
from database.repositories.base import BaseRepository
from core.exceptions import ServiceRequestNotFoundError

logger = logging.getLogger(__name__)


class ServiceRequestRepository(BaseRepository):
    def get_by_id(self, request_id: Any) -> ServiceRequest:
        stmt = select(ServiceRequest).where(ServiceRequest.id == request_id)
        try:
            return self.db.execute(stmt).scalar_one()
        except NoResultFound:
            raise ServiceRequestNotFoundError(request_id)

    def create(self, request_data: Dict[str, Any], expires_at: datetime) -> ServiceRequest:
        service_request = ServiceRequest(
            client_id=request_data['client_id'],
            provider_id=request_data.get('provider_id'),
            category_id=request_data['category_id'],
            title=request_data['title'],
            description=request_data.get('description'),
            location_address=request_data.get('location_address'),
            location_lat=request_data.get('location_lat'),
            location_lng=request_data.get('location_lng'),
            budget_min=request_data.get('budget_min'),
            budget_max=request_data.get('budget_max'),
            urgency=request_data['urgency'],
            status=RequestStatus.OPEN.value,
            expires_at=expires_at
        )
        if request_data.get('created_at'):
            service_request.created_at = request_data['created_at']
        self.db.add(service_request)
        self.db.flush()  # Generate ID
        return service_request

    def accept(self, request_id: Any, professional_id: Any, accepted_at: datetime) -> bool:
        """
        First-accept-wins: atomically move an open request to accepted.

        Returns True only for the caller whose UPDATE flipped the status;
        everyone else sees zero affected rows.
        """
        stmt = (
            update(ServiceRequest)
            .where(
                ServiceRequest.id == request_id,
                ServiceRequest.status == RequestStatus.OPEN.value
            )
            .values(
                status=RequestStatus.ACCEPTED.value,
                accepted_by=professional_id,
                accepted_at=accepted_at
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        won = result.rowcount == 1
        if won:
            logger.info(f"Request {request_id} accepted by professional {professional_id}")
        else:
            logger.info(f"Professional {professional_id} lost the race for request {request_id}")
        return won
