#!/usr/bin/env python3
"""
Tests for RankingService and the bulk recalculation sweep.

Run with: python -m pytest tests/unit/core/ranking/test_service.py -v
"""

import unittest
from datetime import timedelta

import pytest

from core.config_loader import RankingConfig
from core.ranking import RankingService, recalculate_all_rankings
from core.exceptions import ProfessionalNotFoundError
from database.models import Professional
from database.repository import MarketplaceRepository
from tests import NOW, create_test_engine, create_test_session_factory, add_professional


@pytest.mark.db
class TestRankingService(unittest.TestCase):

    def setUp(self):
        self.engine = create_test_engine()
        self.session_factory = create_test_session_factory(self.engine)
        self.session = self.session_factory()
        self.service = RankingService(MarketplaceRepository(self.session), RankingConfig())

    def tearDown(self):
        self.session.close()
        self.engine.dispose()

    def test_score_persists_and_bumps_version(self):
        """Basic verified professional: 60 * 0.2 = 12, times 1.10 -> 13."""
        professional = add_professional(self.session)

        self.assertEqual(self.service.score(professional.id, NOW), 13)
        self.assertEqual(professional.verification_score, 13)
        self.assertEqual(professional.ranking_score_version, 1)

        self.service.score(professional.id, NOW)
        self.assertEqual(professional.ranking_score_version, 2)
        self.assertEqual(professional.verification_score, 13)

    def test_score_is_idempotent(self):
        professional = add_professional(
            self.session,
            subscription_tier="premium",
            average_rating=4.8,
            total_reviews=25,
            positive_reviews_count=24,
            identity_verification_score=90,
            profile_completion_percent=100,
            years_experience=6,
            completed_bookings_count=40,
            cancelled_bookings_count=2,
            total_bookings_count=42,
            last_booking_activity_at=NOW - timedelta(days=2),
        )
        first = self.service.score(professional.id, NOW)
        second = self.service.score(professional.id, NOW)
        self.assertEqual(first, 100)
        self.assertEqual(first, second)

    def test_missing_professional_scores_zero(self):
        self.assertEqual(self.service.score(424242, NOW), 0)

    def test_recompute_raises_for_missing_professional(self):
        with self.assertRaises(ProfessionalNotFoundError):
            self.service.recompute(424242, NOW)

    def test_ranking_factors(self):
        professional = add_professional(
            self.session,
            subscription_tier="free",
            verification_status="pending",
            profile_completion_percent=50,
            completed_bookings_count=3,
            total_bookings_count=4,
        )
        factors = self.service.get_ranking_factors(professional.id, NOW)

        self.assertEqual(factors['computed_score'], 10)
        self.assertEqual(factors['bookings']['completion_rate'], 75.0)
        self.assertFalse(factors['verification']['is_verified'])
        self.assertTrue(factors['subscription']['is_active'])
        self.assertEqual(len(factors['recommendations']), 4)

    def test_ranking_factors_missing(self):
        self.assertIsNone(self.service.get_ranking_factors(424242, NOW))

    def test_ranking_position(self):
        add_professional(self.session, verification_score=90)
        add_professional(self.session, verification_score=70)
        add_professional(self.session, verification_score=95, is_active=False)
        target = add_professional(self.session)

        position = self.service.get_ranking_position(target.id, NOW)

        self.assertEqual(position['current_score'], 13)
        self.assertEqual(position['overall_position'], 3)
        self.assertEqual(position['total_professionals'], 3)
        self.assertEqual(position['percentile'], 33)
        self.assertEqual(position['tier'], "Beginner")
        self.assertEqual(position['next_tier_requirements']['points_needed'], 27)

    def test_ranking_position_missing(self):
        self.assertIsNone(self.service.get_ranking_position(424242, NOW))

    def test_top_professionals(self):
        low = add_professional(self.session, first_name="Low", verification_score=40)
        high = add_professional(
            self.session, first_name="High", verification_score=85,
            average_rating=4.9, total_reviews=3
        )
        add_professional(self.session, first_name="Free", verification_score=99, subscription_tier="free")
        add_professional(self.session, first_name="Other", category_id=2, verification_score=95)

        top = self.service.get_top_professionals(limit=10, category_id=1, subscription_only=True)

        self.assertEqual([p['professional_id'] for p in top], [high.id, low.id])
        self.assertEqual(top[0]['name'], "High Pro")
        self.assertEqual(top[0]['ranking_position'], 1)
        self.assertEqual(top[0]['tier'], "Elite")
        self.assertTrue(top[0]['is_rising_star'])
        self.assertFalse(top[1]['is_rising_star'])


@pytest.mark.db
class TestRecalculateAllRankings(unittest.TestCase):

    def setUp(self):
        self.engine = create_test_engine()
        self.session_factory = create_test_session_factory(self.engine)

    def tearDown(self):
        self.engine.dispose()

    def test_rescores_every_active_professional(self):
        with self.session_factory() as session:
            basic = add_professional(session)
            premium = add_professional(session, subscription_tier="premium")
            inactive = add_professional(session, is_active=False)
            session.commit()
            ids = (basic.id, premium.id, inactive.id)

        count = recalculate_all_rankings(self.session_factory, RankingConfig(max_workers=1), NOW)
        self.assertEqual(count, 2)

        with self.session_factory() as session:
            scores = {p.id: (p.verification_score, p.ranking_score_version)
                      for p in session.query(Professional).all()}

        self.assertEqual(scores[ids[0]], (13, 1))
        # premium: 100 * 0.2 = 20, times 1.15 -> 23
        self.assertEqual(scores[ids[1]], (23, 1))
        self.assertEqual(scores[ids[2]], (0, 0))

    def test_no_professionals(self):
        self.assertEqual(recalculate_all_rankings(self.session_factory, RankingConfig(max_workers=1), NOW), 0)


if __name__ == '__main__':
    unittest.main()
