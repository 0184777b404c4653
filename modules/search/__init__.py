# modules/search/__init__.py
"""
Product search for the storefront.

- tokenize / SynonymTable: query words and interchangeable jewellery terms
- fuzzy_search_product_ids: trigram matching, ranked product ids
- get_spell_suggestion: "did you mean" corrections
- build_search_conditions / build_product_where_clause: listing predicates
- quick_search_products: inline search dialog entry point
"""

from .tokenizer import tokenize, normalize_query
from .synonyms import SynonymTable, SYNONYMS, synonyms_of, expand_tokens
from .fuzzy_search import SearchResultSet, fuzzy_search_product_ids
from .spell_suggestion import Suggestion, get_spell_suggestion
from .query_builder import (
    ProductFilters,
    ProductListParams,
    SearchConditions,
    build_exact_search_conditions,
    build_product_filter_conditions,
    build_product_where_clause,
    build_search_conditions,
    build_search_predicate,
)
from .product_repository import ProductRepository
from .quick_search import QuickSearchResult, quick_search_products


__all__ = [
    'tokenize',
    'normalize_query',
    'SynonymTable',
    'SYNONYMS',
    'synonyms_of',
    'expand_tokens',
    'SearchResultSet',
    'fuzzy_search_product_ids',
    'Suggestion',
    'get_spell_suggestion',
    'ProductFilters',
    'ProductListParams',
    'SearchConditions',
    'build_exact_search_conditions',
    'build_product_filter_conditions',
    'build_product_where_clause',
    'build_search_conditions',
    'build_search_predicate',
    'ProductRepository',
    'QuickSearchResult',
    'quick_search_products',
]
