#!/usr/bin/env python3
"""
Service request endpoints - intake, broadcast and first-accept-wins claiming.
"""

from fastapi import APIRouter, Depends

from core.app_context import AppContext
from core.exceptions import RequestAlreadyTakenError
from pipeline.runner import (
    submit_service_request,
    dispatch_existing_request,
    accept_service_request,
)
from ..dependencies import get_app_context, get_session_factory
from ..models.requests import ServiceRequestCreate, AcceptRequest
from ..models.responses import ServiceRequestResponse, DispatchResponse, AcceptResponse

router = APIRouter(prefix="/api/requests", tags=["requests"])


@router.post("", response_model=ServiceRequestResponse)
def create_service_request(
    request: ServiceRequestCreate,
    session_factory=Depends(get_session_factory),
    ctx: AppContext = Depends(get_app_context)
):
    """
    Store a service request and, for broadcast requests, notify matching professionals.
    """
    result = submit_service_request(ctx, request.model_dump(), session_factory)
    return ServiceRequestResponse(
        request_id=result.request_id,
        notified_count=result.notified_count,
        broadcast=result.broadcast,
        expires_at=result.expires_at.isoformat()
    )


@router.post("/{request_id}/dispatch", response_model=DispatchResponse)
def dispatch_request(
    request_id: int,
    session_factory=Depends(get_session_factory),
    ctx: AppContext = Depends(get_app_context)
):
    """
    Re-run matching and notification for an existing request.

    Professionals already notified inside the dedup window are not
    notified again in-app.
    """
    report = dispatch_existing_request(ctx, request_id, session_factory)
    return DispatchResponse(
        request_id=request_id,
        processed=report.processed,
        persisted=report.persisted,
        suppressed=report.suppressed,
        skipped=report.skipped
    )


@router.post("/{request_id}/accept", response_model=AcceptResponse)
def accept_request(
    request_id: int,
    body: AcceptRequest,
    session_factory=Depends(get_session_factory)
):
    """
    Claim an open request. Only the first professional to accept wins.
    """
    won = accept_service_request(request_id, body.professional_id, session_factory)
    if not won:
        raise RequestAlreadyTakenError(f"Service request {request_id} is no longer open")

    return AcceptResponse(request_id=request_id, accepted_by=body.professional_id)
