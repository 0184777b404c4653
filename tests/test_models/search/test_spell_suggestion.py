import unittest
from unittest.mock import patch, MagicMock
import os
import sys

project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..', '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from modules.boutiquedb.boutiquedb_models import ProductStatus
from modules.configuration.config import SearchSettings
from modules.configuration.log_config import info_id, set_request_id
from modules.search.spell_suggestion import (
    CLOSEST_TERM_SQL, CLOSEST_TERM_SQL_WITH_STATUS, Suggestion, WordCorrection,
    find_closest_term, fold, get_spell_suggestion,
)

TEST_SUITE_ID = set_request_id("spell-suggestion-test")
info_id(f"Starting spell suggestion test suite with request ID: {TEST_SUITE_ID}", TEST_SUITE_ID)

VOCABULARY = {
    "bage": WordCorrection("bage", "bague", 0.8, "product"),
    "argant": WordCorrection("argant", "argent", 0.5, "material"),
    "bague": WordCorrection("bague", "bague", 1.0, "product"),
    "dore": WordCorrection("dore", "doré", 0.9, "color"),
    "colier": WordCorrection("colier", "collier", 0.6, "collection"),
}


def _lookup(word, **kwargs):
    return VOCABULARY.get(word.lower())


class TestGetSpellSuggestion(unittest.TestCase):

    def setUp(self):
        patcher = patch('modules.search.spell_suggestion.find_closest_term', side_effect=_lookup)
        self.find = patcher.start()
        self.addCleanup(patcher.stop)

    def test_corrects_every_word_and_reports_best(self):
        suggestion = get_spell_suggestion("bage argant")
        self.assertEqual(suggestion, Suggestion(term="bague argent", similarity=0.8, source="product"))

    def test_best_correction_wins_regardless_of_position(self):
        suggestion = get_spell_suggestion("argant colier")
        self.assertEqual(suggestion.term, "argent collier")
        self.assertEqual(suggestion.similarity, 0.6)
        self.assertEqual(suggestion.source, "collection")

    def test_unknown_words_are_kept(self):
        suggestion = get_spell_suggestion("bage zzzz")
        self.assertEqual(suggestion.term, "bague zzzz")

    def test_short_words_are_kept_and_not_looked_up(self):
        suggestion = get_spell_suggestion("a bage")
        self.assertEqual(suggestion.term, "a bague")
        looked_up = [c.args[0] for c in self.find.call_args_list]
        self.assertEqual(looked_up, ["bage"])

    def test_only_short_words(self):
        self.assertIsNone(get_spell_suggestion("a b"))
        self.find.assert_not_called()

    def test_blank_and_overlong(self):
        self.assertIsNone(get_spell_suggestion(""))
        self.assertIsNone(get_spell_suggestion("   "))
        self.assertIsNone(get_spell_suggestion("x" * 101))
        self.find.assert_not_called()

    def test_correct_query_gives_no_suggestion(self):
        self.assertIsNone(get_spell_suggestion("bague"))

    def test_accent_only_difference_is_not_a_correction(self):
        self.assertIsNone(get_spell_suggestion("dore"))
        self.assertIsNone(get_spell_suggestion("BAGUE"))

    def test_status_is_forwarded(self):
        get_spell_suggestion("bage", status=ProductStatus.PUBLIC)
        self.assertEqual(self.find.call_args.kwargs["status"], ProductStatus.PUBLIC)

    def test_min_correction_length_setting(self):
        settings = SearchSettings(min_correction_length=5)
        self.assertIsNone(get_spell_suggestion("bage", settings=settings))
        self.find.assert_not_called()

    def test_store_error_fails_soft(self):
        self.find.side_effect = RuntimeError("canceling statement due to statement timeout")
        self.assertIsNone(get_spell_suggestion("bage argant"))

    def test_to_dict(self):
        self.assertEqual(
            Suggestion("bague", 0.8, "product").to_dict(),
            {"term": "bague", "similarity": 0.8, "source": "product"},
        )


class TestFindClosestTerm(unittest.TestCase):

    def setUp(self):
        self.session = MagicMock()
        self.db_config = MagicMock()
        self.db_config.new_session.return_value = self.session

    def _set_row(self, row):
        self.session.execute.return_value.mappings.return_value.first.return_value = row

    def test_returns_best_vocabulary_term(self):
        self._set_row({"term": "bague", "similarity": 0.8, "source": "product"})
        correction = find_closest_term("Bage", db_config=self.db_config)
        self.assertEqual(correction, WordCorrection("Bage", "bague", 0.8, "product"))

    def test_uses_suggestion_threshold_and_timeout(self):
        self._set_row(None)
        find_closest_term("bage", db_config=self.db_config)
        params = [c.args[1] for c in self.session.execute.call_args_list]
        self.assertEqual(params[0], {"threshold": "0.2"})
        self.assertEqual(params[1], {"timeout": "1500ms"})
        self.assertEqual(params[2]["word"], "bage")
        self.assertEqual(params[2]["min_length"], 2)
        self.session.rollback.assert_called_once()
        self.session.close.assert_called_once()

    def test_no_candidate(self):
        self._set_row(None)
        self.assertIsNone(find_closest_term("zzzz", db_config=self.db_config))

    def test_status_selects_filtered_query(self):
        self._set_row(None)
        find_closest_term("bage", status=ProductStatus.PUBLIC, db_config=self.db_config)
        sql, params = self.session.execute.call_args.args
        self.assertIs(sql, CLOSEST_TERM_SQL_WITH_STATUS)
        self.assertEqual(params["status"], "PUBLIC")

    def test_vocabulary_sources(self):
        sql = str(CLOSEST_TERM_SQL)
        self.assertIn("regexp_split_to_table(lower(p.title)", sql)
        for source in ("'product'", "'collection'", "'color'", "'material'"):
            self.assertIn(source, sql)
        self.assertNotIn(":status", sql)


class TestFold(unittest.TestCase):

    def test_strips_case_and_accents(self):
        self.assertEqual(fold("Doré"), "dore")
        self.assertEqual(fold("CHAÎNE"), "chaine")
        self.assertEqual(fold("bague"), "bague")


if __name__ == '__main__':
    unittest.main()
