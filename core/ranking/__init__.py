"""
Ranking module - persisted professional ranking score.
"""

from core.ranking.models import RankingInputs, RankingBreakdown
from core.ranking.components import compute_ranking_score
from core.ranking.tiers import (
    RankingTier,
    get_ranking_tier,
    get_next_tier_requirements,
    get_improvement_suggestions,
    calculate_trust_score,
)
from core.ranking.service import RankingService, recalculate_all_rankings

__all__ = [
    'RankingInputs',
    'RankingBreakdown',
    'compute_ranking_score',
    'RankingTier',
    'get_ranking_tier',
    'get_next_tier_requirements',
    'get_improvement_suggestions',
    'calculate_trust_score',
    'RankingService',
    'recalculate_all_rankings',
]
