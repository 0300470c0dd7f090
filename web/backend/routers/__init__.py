"""API route handlers."""

from .ranking import router as ranking_router
from .requests import router as requests_router
from .notifications import router as notifications_router
