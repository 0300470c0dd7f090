#!/usr/bin/env python3
"""
FastAPI dependencies for dependency injection.
"""

from functools import lru_cache
from typing import Generator

from fastapi import Depends

from core.app_context import AppContext
from database.repository import MarketplaceRepository
from database.uow import marketplace_uow
from .config import get_config


@lru_cache()
def _build_app_context() -> AppContext:
    return AppContext.build(get_config())


def get_app_context() -> AppContext:
    """Process-wide wiring: config, session factory, Redis client, delivery channels."""
    return _build_app_context()


def get_session_factory(ctx: AppContext = Depends(get_app_context)):
    """Session factory used by every unit of work, built from database.url."""
    return ctx.session_factory


def get_repo(session_factory=Depends(get_session_factory)) -> Generator[MarketplaceRepository, None, None]:
    """
    FastAPI dependency that yields a repository inside a unit of work.

    Commits when the endpoint returns normally, rolls back on error.
    """
    with marketplace_uow(session_factory) as repo:
        yield repo
