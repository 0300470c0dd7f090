import unittest
from unittest.mock import MagicMock

from sqlalchemy import create_engine, inspect
from sqlalchemy.exc import OperationalError
from tenacity import wait_none

from database.init_db import init_db


class TestInitDb(unittest.TestCase):

    def test_creates_tables(self):
        engine = create_engine("sqlite://")

        init_db(bind=engine)

        tables = set(inspect(engine).get_table_names())
        self.assertTrue({
            'professionals',
            'professional_work_categories',
            'professional_work_locations',
            'professional_notification_settings',
            'service_requests',
            'notifications',
            'notification_preferences',
        }.issubset(tables))
        engine.dispose()

    def test_retries_then_reraises(self):
        bind = MagicMock()
        bind.connect.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))

        with self.assertRaises(OperationalError):
            init_db.retry_with(wait=wait_none())(bind=bind)

        self.assertEqual(bind.connect.call_count, 5)


if __name__ == '__main__':
    unittest.main()
