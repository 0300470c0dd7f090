"""Pipeline execution modules for the marketplace core."""

from .runner import (
    create_service_request_with_notifications,
    submit_service_request,
    dispatch_existing_request,
    accept_service_request,
    calculate_expires_at,
    ServiceRequestResult,
)

__all__ = [
    'create_service_request_with_notifications',
    'submit_service_request',
    'dispatch_existing_request',
    'accept_service_request',
    'calculate_expires_at',
    'ServiceRequestResult',
]
