import os
import tempfile
import unittest
from unittest.mock import patch

from pydantic import ValidationError

from core.config_loader import load_config

CONFIG_YAML = """
database:
  url: "postgresql://user:password@db:5432/marketplace"

ranking:
  max_workers: 2
  weights:
    reviews: 0.5

matching:
  default_notification_radius_km: 15

notifications:
  dedup_window_minutes: 10
  sms_gateway:
    url: "https://sms.example.com/send"
"""


class TestLoadConfig(unittest.TestCase):

    def setUp(self):
        handle, self.path = tempfile.mkstemp(suffix=".yaml")
        with os.fdopen(handle, "w") as f:
            f.write(CONFIG_YAML)

    def tearDown(self):
        os.remove(self.path)

    def load_without_env(self, **env):
        with patch.dict(os.environ, env):
            for var in ("DATABASE_URL", "REDIS_URL", "SMS_GATEWAY_API_KEY"):
                if var not in env:
                    os.environ.pop(var, None)
            return load_config(self.path)

    def test_values_and_defaults(self):
        config = self.load_without_env()

        self.assertEqual(config.database.url, "postgresql://user:password@db:5432/marketplace")
        self.assertEqual(config.ranking.max_workers, 2)
        self.assertEqual(config.ranking.weights.reviews, 0.5)
        self.assertEqual(config.ranking.weights.subscription, 0.20)
        self.assertEqual(config.matching.default_notification_radius_km, 15)
        self.assertEqual(config.matching.timezone, "America/Argentina/Buenos_Aires")
        self.assertEqual(config.notifications.dedup_window_minutes, 10)
        self.assertIsNone(config.redis.url)
        self.assertEqual(config.web.port, 8080)

    def test_env_overrides(self):
        config = self.load_without_env(
            DATABASE_URL="sqlite://",
            REDIS_URL="redis://cache:6379/1",
            SMS_GATEWAY_API_KEY="secret",
        )

        self.assertEqual(config.database.url, "sqlite://")
        self.assertEqual(config.redis.url, "redis://cache:6379/1")
        self.assertEqual(config.notifications.sms_gateway.api_key, "secret")
        self.assertEqual(config.notifications.sms_gateway.url, "https://sms.example.com/send")

    def test_sms_key_override_with_empty_sections(self):
        for body in ("notifications:\n  sms_gateway: null\n", "notifications: null\n"):
            with self.subTest(body=body):
                with open(self.path, "w") as f:
                    f.write("database:\n  url: sqlite://\n" + body)

                config = self.load_without_env(SMS_GATEWAY_API_KEY="secret")

                self.assertEqual(config.notifications.sms_gateway.api_key, "secret")
                self.assertEqual(config.notifications.sms_gateway.sender, "Fixia")

    def test_database_url_required(self):
        with open(self.path, "w") as f:
            f.write("ranking:\n  max_workers: 1\n")

        with self.assertRaises(ValidationError):
            self.load_without_env()


if __name__ == '__main__':
    unittest.main()
