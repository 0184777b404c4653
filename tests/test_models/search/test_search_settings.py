import unittest
from unittest.mock import patch
import os
import sys

project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..', '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from modules.configuration.config import SearchSettings


class TestSearchSettings(unittest.TestCase):

    def test_defaults(self):
        settings = SearchSettings()
        self.assertEqual(settings.max_search_length, 100)
        self.assertEqual(settings.max_tokens, 5)
        self.assertEqual(settings.fuzzy_threshold, 0.3)
        self.assertEqual(settings.suggestion_threshold, 0.2)
        self.assertEqual(settings.fuzzy_timeout_ms, 2000)
        self.assertEqual(settings.suggestion_timeout_ms, 1500)
        self.assertEqual(settings.quick_search_limit, 6)
        self.assertEqual(settings.suggestion_results_threshold, 3)
        self.assertEqual(settings.synonym_exclusions, frozenset({"or"}))

    def test_from_env(self):
        env = {
            "SEARCH_FUZZY_THRESHOLD": "0.45",
            "SEARCH_QUICK_LIMIT": "8",
            "SEARCH_SYNONYM_EXCLUSIONS": "Or, fin ,",
        }
        with patch.dict(os.environ, env):
            settings = SearchSettings.from_env()
        self.assertEqual(settings.fuzzy_threshold, 0.45)
        self.assertEqual(settings.quick_search_limit, 8)
        self.assertEqual(settings.synonym_exclusions, frozenset({"or", "fin"}))
        self.assertEqual(settings.max_tokens, 5)

    def test_frozen(self):
        with self.assertRaises(Exception):
            SearchSettings().max_tokens = 10


if __name__ == '__main__':
    unittest.main()
