#!/usr/bin/env python3
"""
Error handlers for the internal RPC application.

Domain errors from core.exceptions are mapped onto HTTP status codes with
a consistent JSON body.
"""

import logging
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse

from core.exceptions import (
    MarketplaceError,
    ProfessionalNotFoundError,
    ServiceRequestNotFoundError,
    InvalidUrgencyError,
    RequestAlreadyTakenError,
)

logger = logging.getLogger(__name__)


def _status_for(exc: MarketplaceError) -> int:
    if isinstance(exc, (ProfessionalNotFoundError, ServiceRequestNotFoundError)):
        return 404
    if isinstance(exc, InvalidUrgencyError):
        return 400
    if isinstance(exc, RequestAlreadyTakenError):
        return 409
    return 500


async def marketplace_exception_handler(
    request: Request,
    exc: MarketplaceError
) -> JSONResponse:
    """
    Handle domain exceptions.

    Args:
        request: The FastAPI request.
        exc: The domain exception.

    Returns:
        JSONResponse with error details.
    """
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error(f"Service error in {request.url.path}: {exc}", exc_info=True)
    else:
        logger.info(f"{exc.__class__.__name__} in {request.url.path}: {exc}")

    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": str(exc),
            "type": exc.__class__.__name__
        }
    )


async def http_exception_handler(
    request: Request,
    exc: HTTPException
) -> JSONResponse:
    """
    Handle FastAPI HTTP exceptions with consistent format.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.detail,
            "type": "HTTPException"
        }
    )


async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions.
    """
    logger.exception(f"Unexpected error in {request.url.path}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "type": "InternalError"
        }
    )
