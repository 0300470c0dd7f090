#!/usr/bin/env python3
"""
Marketplace core - internal RPC application (FastAPI).

Exposes ranking, matching/dispatch and notification operations to the
surrounding application.

Usage:
    python -m web.backend.app

Then open:
    - http://localhost:8080/docs - API Documentation (Swagger UI)
"""

import logging

from fastapi import FastAPI, HTTPException

from core.exceptions import MarketplaceError
from .config import get_config
from .exceptions import (
    marketplace_exception_handler,
    http_exception_handler,
    general_exception_handler
)
from .routers import (
    ranking_router,
    requests_router,
    notifications_router
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Marketplace Core API",
        description="Ranking, matching and notification operations",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # Register exception handlers
    app.add_exception_handler(MarketplaceError, marketplace_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # Include routers
    app.include_router(ranking_router)
    app.include_router(requests_router)
    app.include_router(notifications_router)

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "marketplace-core"}

    return app


app = create_app()


def main():
    """Run the web server."""
    import uvicorn

    config = get_config()
    logger.info(f"Starting Marketplace Core API on {config.web.host}:{config.web.port}")
    logger.info(f"API Docs: http://{config.web.host}:{config.web.port}/docs")

    uvicorn.run(
        "web.backend.app:app",
        host=config.web.host,
        port=config.web.port,
        reload=False,
        log_level="info"
    )


if __name__ == "__main__":
    main()
