import os
import unittest
from pathlib import Path
from unittest import mock

from noon_minutes.config import DEFAULT_START_URL, PERSIST_THRESHOLD, Settings


class TestSettings(unittest.TestCase):
    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            settings = Settings.from_env()
        self.assertEqual(settings.start_url, DEFAULT_START_URL)
        self.assertEqual(settings.persist_threshold, PERSIST_THRESHOLD)
        self.assertEqual(settings.persist_threshold, 5)
        self.assertEqual(settings.max_retries, 3)
        self.assertTrue(settings.render_fallback)
        self.assertEqual(settings.snapshot_path.name, "noon_products.json")

    def test_environment_overrides(self):
        env = {
            "NOON_MAX_PAGES": "7",
            "NOON_PERSIST_THRESHOLD": "1",
            "NOON_BACKOFF_MS": "250",
            "NOON_PAGE_DELAY": "0",
            "NOON_RENDER_FALLBACK": "off",
            "NOON_SNAPSHOT_PATH": "/tmp/snap.json",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = Settings.from_env()
        self.assertEqual(settings.max_pages, 7)
        self.assertEqual(settings.persist_threshold, 1)
        self.assertEqual(settings.base_backoff_ms, 250)
        self.assertEqual(settings.page_delay, 0.0)
        self.assertFalse(settings.render_fallback)
        self.assertEqual(settings.snapshot_path, Path("/tmp/snap.json"))

    def test_invalid_numbers_name_the_variable(self):
        with mock.patch.dict(os.environ, {"NOON_MAX_PAGES": "many"}, clear=True):
            with self.assertRaisesRegex(ValueError, "NOON_MAX_PAGES"):
                Settings.from_env()
        with mock.patch.dict(os.environ, {"NOON_PERSIST_THRESHOLD": "0"}, clear=True):
            with self.assertRaisesRegex(ValueError, "NOON_PERSIST_THRESHOLD"):
                Settings.from_env()
