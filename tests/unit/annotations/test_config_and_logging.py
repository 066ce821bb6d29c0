"""
Unit tests for settings and logging setup.

@testCovers annotations_app/config.py
@testCovers annotations_app/lib/logging_utils.py
"""

import logging
import unittest

from annotations_app.config import Settings
from annotations_app.lib.access_levels import AccessLevel, access_from_name, is_privileged, Role
from annotations_app.lib.logging_utils import CategoryFilter, setup_logging, setup_logging_from_settings


class TestSettings(unittest.TestCase):

    def test_derived_paths(self):
        settings = Settings(DATA_ROOT='/tmp/annotations-data', _env_file=None)
        self.assertEqual(str(settings.db_path), '/tmp/annotations-data/db/annotations.db')

    def test_log_categories_split(self):
        settings = Settings(LOG_CATEGORIES='annotations_app.lib.access_control, annotations_app.lib.attribution',
                            _env_file=None)
        self.assertEqual(settings.log_categories, [
            'annotations_app.lib.access_control',
            'annotations_app.lib.attribution',
        ])
        self.assertEqual(Settings(_env_file=None).log_categories, [])

    def test_roots_strip_trailing_slash(self):
        settings = Settings(SERVER_ROOT='notes.example.com/', ASSET_ROOT='https://cdn.example.com/',
                            _env_file=None)
        self.assertEqual(settings.server_root, 'notes.example.com')
        self.assertEqual(settings.asset_root, 'https://cdn.example.com')


class TestLogging(unittest.TestCase):

    def tearDown(self):
        logging.getLogger().handlers.clear()

    def test_category_filter(self):
        """Test that only records of listed categories pass."""
        category_filter = CategoryFilter(['annotations_app.lib.access_control'])
        allowed = logging.LogRecord('annotations_app.lib.access_control', logging.DEBUG, '', 0, 'x', None, None)
        denied = logging.LogRecord('annotations_app.lib.attribution', logging.DEBUG, '', 0, 'x', None, None)
        self.assertTrue(category_filter.filter(allowed))
        self.assertFalse(category_filter.filter(denied))
        self.assertTrue(CategoryFilter([]).filter(denied))

    def test_setup_logging_installs_filtered_handler(self):
        setup_logging('debug', ['annotations_app'])
        root = logging.getLogger()
        self.assertEqual(root.level, logging.DEBUG)
        self.assertEqual(len(root.handlers), 1)
        self.assertIsInstance(root.handlers[0].filters[0], CategoryFilter)

    def test_setup_logging_from_settings(self):
        """Test that LOG_LEVEL and LOG_CATEGORIES drive the root logger."""
        settings = Settings(LOG_LEVEL='WARNING', LOG_CATEGORIES='', _env_file=None)
        setup_logging_from_settings(settings)
        root = logging.getLogger()
        self.assertEqual(root.level, logging.WARNING)
        self.assertEqual(len(root.handlers), 1)
        self.assertEqual(root.handlers[0].filters, [])


class TestAccessLevels(unittest.TestCase):

    def test_wire_names_round_trip(self):
        for level in AccessLevel:
            self.assertIs(access_from_name(level.wire_name), level)
        with self.assertRaises(ValueError):
            access_from_name('secret')

    def test_privileged_roles(self):
        self.assertTrue(is_privileged(Role.ADMINISTRATOR))
        self.assertTrue(is_privileged(int(Role.FREELANCER)))
        self.assertFalse(is_privileged(Role.REVIEWER))
        self.assertFalse(is_privileged(None))
        self.assertFalse(is_privileged(42))


if __name__ == '__main__':
    unittest.main()
