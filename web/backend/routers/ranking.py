#!/usr/bin/env python3
"""
Ranking endpoints - recompute and inspect professional ranking scores.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.app_context import AppContext
from core.exceptions import ProfessionalNotFoundError
from core.ranking import recalculate_all_rankings, get_ranking_tier
from database.repository import MarketplaceRepository
from ..dependencies import get_repo, get_app_context, get_session_factory
from ..models.responses import (
    ScoreResponse,
    RescoreAllResponse,
    RankingInfoResponse,
    TopProfessionalsResponse,
)

router = APIRouter(prefix="/api/ranking", tags=["ranking"])


@router.get("/top", response_model=TopProfessionalsResponse)
def get_top_professionals(
    limit: int = Query(20, ge=1, le=100),
    category_id: Optional[int] = None,
    locality: Optional[str] = None,
    subscription_only: bool = False,
    repo: MarketplaceRepository = Depends(get_repo),
    ctx: AppContext = Depends(get_app_context)
):
    """
    Top ranked active professionals, optionally by category and locality.
    """
    professionals = ctx.ranking_service_for(repo).get_top_professionals(
        limit=limit,
        category_id=category_id,
        locality=locality,
        subscription_only=subscription_only
    )
    return TopProfessionalsResponse(professionals=professionals)


@router.post("/rescore-all", response_model=RescoreAllResponse)
def rescore_all(
    session_factory=Depends(get_session_factory),
    ctx: AppContext = Depends(get_app_context)
):
    """
    Recompute the score of every active professional.
    """
    completed = recalculate_all_rankings(session_factory, ctx.config.ranking)
    return RescoreAllResponse(completed=completed)


@router.post("/{professional_id}/rescore", response_model=ScoreResponse)
def rescore_professional(
    professional_id: int,
    repo: MarketplaceRepository = Depends(get_repo),
    ctx: AppContext = Depends(get_app_context)
):
    """
    Recompute and persist one professional's score.

    A professional that cannot be read scores 0.
    """
    score = ctx.ranking_service_for(repo).score(professional_id)
    return ScoreResponse(
        professional_id=professional_id,
        score=score,
        tier=get_ranking_tier(score).name
    )


@router.get("/{professional_id}", response_model=RankingInfoResponse)
def get_ranking_info(
    professional_id: int,
    repo: MarketplaceRepository = Depends(get_repo),
    ctx: AppContext = Depends(get_app_context)
):
    """
    Current score, position among active professionals, tier and factors.
    """
    service = ctx.ranking_service_for(repo)
    position = service.get_ranking_position(professional_id)
    if position is None:
        raise ProfessionalNotFoundError(professional_id)

    return RankingInfoResponse(
        **position,
        factors=service.get_ranking_factors(professional_id)
    )
