import unittest
from unittest.mock import patch, MagicMock
import os
import sys
import threading

project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..', '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from modules.boutiquedb.boutiquedb_models import ProductStatus
from modules.configuration.config import SearchSettings
from modules.configuration.log_config import get_request_id, set_request_id, clear_request_id
from modules.search.fuzzy_search import SearchResultSet
from modules.search.quick_search import QuickSearchResult, order_by_ids, quick_search_products
from modules.search.spell_suggestion import Suggestion


def _record(pid):
    return {"id": pid, "slug": f"slug-{pid}", "title": f"Produit {pid}"}


class TestQuickSearchProducts(unittest.TestCase):

    def setUp(self):
        fuzzy_patcher = patch('modules.search.quick_search.fuzzy_search_product_ids')
        spell_patcher = patch('modules.search.quick_search.get_spell_suggestion')
        self.fuzzy = fuzzy_patcher.start()
        self.spell = spell_patcher.start()
        self.addCleanup(fuzzy_patcher.stop)
        self.addCleanup(spell_patcher.stop)

        self.spell.return_value = Suggestion(term="collier", similarity=0.7, source="product")
        self.repository = MagicMock()
        # Store returns records in its own order
        self.repository.get_by_ids.side_effect = lambda ids: [_record(pid) for pid in sorted(ids)]

    def _matched(self, *ids, total=None):
        self.fuzzy.return_value = SearchResultSet(ids=list(ids), total_count=total or len(ids))

    def test_many_matches_skip_the_suggestion(self):
        self._matched("p3", "p1", "p2", total=17)
        result = quick_search_products("collier", repository=self.repository)
        self.assertEqual([p["id"] for p in result.products], ["p3", "p1", "p2"])
        self.assertIsNone(result.suggestion)
        self.assertEqual(result.total_count, 17)
        self.spell.assert_not_called()

    def test_few_matches_fetch_and_suggest(self):
        self._matched("p2", "p1")
        result = quick_search_products("colier", repository=self.repository)
        self.assertEqual([p["id"] for p in result.products], ["p2", "p1"])
        self.assertEqual(result.suggestion, "collier")
        self.assertEqual(result.total_count, 2)
        self.repository.get_by_ids.assert_called_once_with(["p2", "p1"])
        self.spell.assert_called_once()

    def test_no_match_suggests_without_fetching(self):
        self._matched()
        result = quick_search_products("colier", repository=self.repository)
        self.assertEqual(result, QuickSearchResult(products=[], suggestion="collier", total_count=0))
        self.repository.get_by_ids.assert_not_called()

    def test_no_match_and_no_suggestion(self):
        self._matched()
        self.spell.return_value = None
        self.assertEqual(quick_search_products("zzzz", repository=self.repository), QuickSearchResult.empty())

    def test_short_query_returns_empty_without_searching(self):
        for query in ("", " ", "a", " b ", None):
            self.assertEqual(quick_search_products(query, repository=self.repository), QuickSearchResult.empty())
        self.fuzzy.assert_not_called()
        self.spell.assert_not_called()

    def test_two_characters_are_enough(self):
        self._matched("p1", "p2", "p3")
        quick_search_products(" or ", repository=self.repository)
        self.assertEqual(self.fuzzy.call_args.args, ("or",))

    def test_matcher_arguments(self):
        self._matched("p1", "p2", "p3")
        quick_search_products("collier", repository=self.repository)
        kwargs = self.fuzzy.call_args.kwargs
        self.assertEqual(kwargs["limit"], 6)
        self.assertEqual(kwargs["status"], ProductStatus.PUBLIC)

    def test_suggestion_threshold_setting(self):
        self._matched("p1", "p2", "p3")
        settings = SearchSettings(suggestion_results_threshold=5)
        result = quick_search_products("collier", settings=settings, repository=self.repository)
        self.assertEqual(result.suggestion, "collier")

    def test_suggestion_gets_the_status(self):
        self._matched("p1")
        quick_search_products("colier", repository=self.repository)
        self.assertEqual(self.spell.call_args.kwargs["status"], ProductStatus.PUBLIC)

    def test_missing_records_are_skipped(self):
        self._matched("p1", "gone", "p2")
        self.repository.get_by_ids.side_effect = lambda ids: [_record("p2"), _record("p1")]
        result = quick_search_products("collier", repository=self.repository)
        self.assertEqual([p["id"] for p in result.products], ["p1", "p2"])

    def test_fetch_error_keeps_suggestion_and_total(self):
        self._matched("p1", total=4)
        self.repository.get_by_ids.side_effect = RuntimeError("connection reset")
        result = quick_search_products("colier", repository=self.repository)
        self.assertEqual(result, QuickSearchResult(products=[], suggestion="collier", total_count=4))

    def test_matcher_error_fails_soft(self):
        self.fuzzy.side_effect = RuntimeError("connection refused")
        self.assertEqual(quick_search_products("collier", repository=self.repository), QuickSearchResult.empty())

    def test_fetch_and_suggestion_run_concurrently(self):
        self._matched("p1")
        # Each side waits for the other; run one after the other, the first wait times out
        barrier = threading.Barrier(2, timeout=5)

        def fetch(ids):
            barrier.wait()
            return [_record("p1")]

        def suggest(term, **kwargs):
            barrier.wait()
            return Suggestion(term="collier", similarity=0.7, source="product")

        self.repository.get_by_ids.side_effect = fetch
        self.spell.side_effect = suggest
        result = quick_search_products("colier", repository=self.repository)
        self.assertFalse(barrier.broken)
        self.assertEqual([p["id"] for p in result.products], ["p1"])
        self.assertEqual(result.suggestion, "collier")

    def test_workers_share_the_request_id(self):
        self._matched("p1")
        seen = {}

        def fetch(ids):
            seen["fetch"] = get_request_id()
            return [_record("p1")]

        def suggest(term, **kwargs):
            seen["suggest"] = get_request_id()
            return None

        self.repository.get_by_ids.side_effect = fetch
        self.spell.side_effect = suggest
        rid = set_request_id("quick-rid")
        try:
            quick_search_products("collier", repository=self.repository)
        finally:
            clear_request_id()
        self.assertEqual(seen, {"fetch": rid, "suggest": rid})

    def test_to_dict(self):
        result = QuickSearchResult(products=[_record("p1")], suggestion=None, total_count=1)
        self.assertEqual(result.to_dict(), {"products": [_record("p1")], "suggestion": None, "total_count": 1})


class TestOrderByIds(unittest.TestCase):

    def test_reorders_and_skips(self):
        records = [_record("b"), _record("a")]
        self.assertEqual([r["id"] for r in order_by_ids(records, ["a", "x", "b"])], ["a", "b"])
        self.assertEqual(order_by_ids([], ["a"]), [])


if __name__ == '__main__':
    unittest.main()
