from database.repositories.base import BaseRepository
from database.repositories.professional import ProfessionalRepository
from database.repositories.service_request import ServiceRequestRepository
from database.repositories.notification import NotificationRepository

__all__ = [
    'BaseRepository',
    'ProfessionalRepository',
    'ServiceRequestRepository',
    'NotificationRepository',
]
