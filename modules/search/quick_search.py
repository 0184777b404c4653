# modules/search/quick_search.py
"""
Inline search for the storefront search dialog.

Fuzzy-matches a handful of products, then fetches their records and, when few
products matched, a spelling suggestion. The fetch and the suggestion are
independent and run concurrently.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from modules.boutiquedb.boutiquedb_models import ProductStatus
from modules.configuration.config import SEARCH_SETTINGS, SearchSettings
from modules.configuration.log_config import (
    info_id, warning_id, get_request_id, propagate_request_id, with_request_id,
)
from .fuzzy_search import fuzzy_search_product_ids
from .product_repository import ProductRepository
from .spell_suggestion import get_spell_suggestion
from .utils import fail_soft


@dataclass(frozen=True)
class QuickSearchResult:
    products: List[Dict[str, Any]] = field(default_factory=list)
    suggestion: Optional[str] = None
    total_count: int = 0

    @classmethod
    def empty(cls) -> "QuickSearchResult":
        return cls(products=[], suggestion=None, total_count=0)

    def to_dict(self):
        return {
            "products": list(self.products),
            "suggestion": self.suggestion,
            "total_count": self.total_count,
        }


def order_by_ids(records: Sequence[Dict[str, Any]], ids: Sequence[str]) -> List[Dict[str, Any]]:
    """Put fetched records back in ``ids`` order; ids with no record are skipped."""
    by_id = {record["id"]: record for record in records}
    return [by_id[pid] for pid in ids if pid in by_id]


@fail_soft(QuickSearchResult.empty)
@with_request_id
def quick_search_products(query: Optional[str], settings: Optional[SearchSettings] = None,
                          repository: Optional[ProductRepository] = None,
                          status=ProductStatus.PUBLIC, db_config=None) -> QuickSearchResult:
    settings = settings or SEARCH_SETTINGS
    rid = get_request_id()

    term = (query or "").strip()
    if len(term) < settings.min_quick_search_length:
        return QuickSearchResult.empty()

    result = fuzzy_search_product_ids(term, limit=settings.quick_search_limit, status=status,
                                      settings=settings, db_config=db_config)
    wants_suggestion = len(result.ids) < settings.suggestion_results_threshold

    products: List[Dict[str, Any]] = []
    suggestion = None
    if result.ids:
        repository = repository or ProductRepository(db_config=db_config)
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="quick-search") as executor:
            fetch = executor.submit(propagate_request_id(repository.get_by_ids, rid), result.ids)
            spell = None
            if wants_suggestion:
                spell = executor.submit(propagate_request_id(get_spell_suggestion, rid),
                                        term, status=status, settings=settings, db_config=db_config)
            suggestion = spell.result() if spell is not None else None
            try:
                products = order_by_ids(fetch.result(), result.ids)
            except Exception as e:
                # The suggestion and total still stand without the records
                warning_id(f"Record fetch failed for '{term}': {type(e).__name__}: {e}", rid)
                products = []
    elif wants_suggestion:
        suggestion = get_spell_suggestion(term, status=status, settings=settings, db_config=db_config)

    info_id(f"Quick search '{term}': {len(products)} product(s), total={result.total_count}, "
            f"suggestion={suggestion.term if suggestion else None}", rid)
    return QuickSearchResult(
        products=products,
        suggestion=suggestion.term if suggestion else None,
        total_count=result.total_count,
    )
