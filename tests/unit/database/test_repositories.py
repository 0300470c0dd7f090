#!/usr/bin/env python3
"""
Repository tests against the test database.

Run with: python -m pytest tests/unit/database/test_repositories.py -v
"""

import unittest

import pytest

from core.exceptions import ProfessionalNotFoundError, ServiceRequestNotFoundError
from database.models import ProfessionalWorkCategory, ProfessionalWorkLocation
from database.repository import MarketplaceRepository
from tests import NOW, create_test_engine, create_test_session_factory, add_professional


@pytest.mark.db
class TestProfessionalRepository(unittest.TestCase):

    def setUp(self):
        self.engine = create_test_engine()
        self.session = create_test_session_factory(self.engine)()
        self.repo = MarketplaceRepository(self.session)

    def tearDown(self):
        self.session.close()
        self.engine.dispose()

    def test_get_by_id_missing(self):
        with self.assertRaises(ProfessionalNotFoundError):
            self.repo.professionals.get_by_id(12345)

    def test_eligible_requires_active_category_and_location(self):
        inactive_category = add_professional(self.session, category_id=None)
        inactive_category.work_categories.append(ProfessionalWorkCategory(category_id=1, is_active=False))

        inactive_location = add_professional(self.session, location={})
        inactive_location.work_locations.append(ProfessionalWorkLocation(locality="Palermo", is_active=False))

        premium = add_professional(self.session, subscription_tier="premium")
        basic = add_professional(self.session)
        self.session.flush()

        eligible = self.repo.professionals.find_eligible_for_category(1)

        self.assertEqual([p.id for p in eligible], [premium.id, basic.id])

    def test_eligible_excludes_unpaid_and_unverified(self):
        add_professional(self.session, subscription_tier="free")
        for status in ("pending", "in_review", "rejected"):
            add_professional(self.session, verification_status=status)

        self.assertEqual(self.repo.professionals.find_eligible_for_category(1), [])

    def test_active_ids(self):
        active = add_professional(self.session)
        add_professional(self.session, is_active=False)

        self.assertEqual(self.repo.professionals.get_active_ids(), [active.id])

    def test_save_ranking_score(self):
        professional = add_professional(self.session)

        self.repo.professionals.save_ranking_score(professional, 77, NOW)

        self.assertEqual(professional.verification_score, 77)
        self.assertEqual(professional.ranking_score_version, 1)
        self.assertEqual(self.repo.professionals.count_ranked_above(76), 1)
        self.assertEqual(self.repo.professionals.count_ranked_above(77), 0)

    def test_top_professionals_tie_break(self):
        basic = add_professional(self.session, verification_score=70)
        premium = add_professional(self.session, verification_score=70, subscription_tier="premium")
        best = add_professional(self.session, verification_score=90, location={"locality": "Belgrano"})

        top = self.repo.professionals.get_top_professionals(limit=10)
        self.assertEqual([p.id for p in top], [best.id, premium.id, basic.id])

        in_palermo = self.repo.professionals.get_top_professionals(limit=10, locality="palermo")
        self.assertEqual([p.id for p in in_palermo], [premium.id, basic.id])

        self.assertEqual(len(self.repo.professionals.get_top_professionals(limit=1)), 1)


@pytest.mark.db
class TestServiceRequestRepository(unittest.TestCase):

    def setUp(self):
        self.engine = create_test_engine()
        self.session = create_test_session_factory(self.engine)()
        self.repo = MarketplaceRepository(self.session)

    def tearDown(self):
        self.session.close()
        self.engine.dispose()

    def create(self, **overrides):
        data = {'client_id': 1, 'category_id': 1, 'title': "Paint a room", 'urgency': "low"}
        data.update(overrides)
        return self.repo.requests.create(data, NOW)

    def test_create_assigns_id_and_status(self):
        service_request = self.create(created_at=NOW)

        self.assertIsNotNone(service_request.id)
        self.assertEqual(service_request.status, "open")
        self.assertEqual(self.repo.requests.get_by_id(service_request.id).title, "Paint a room")

    def test_get_by_id_missing(self):
        with self.assertRaises(ServiceRequestNotFoundError):
            self.repo.requests.get_by_id(999)

    def test_accept_only_once(self):
        service_request = self.create()

        self.assertTrue(self.repo.requests.accept(service_request.id, 5, NOW))
        self.assertFalse(self.repo.requests.accept(service_request.id, 6, NOW))

        self.session.expire_all()
        stored = self.repo.requests.get_by_id(service_request.id)
        self.assertEqual(stored.accepted_by, 5)
        self.assertEqual(stored.status, "accepted")


if __name__ == '__main__':
    unittest.main()
