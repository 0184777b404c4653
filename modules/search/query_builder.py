# modules/search/query_builder.py
"""
Composable SQLAlchemy predicates for the product listing.

Text search either relies on fuzzy matching (queries long enough for trigram
similarity to be precise) or on exact case-insensitive substring matching.
Structural filters are built independently; every filter contributes zero or
one clause and all clauses are AND-ed by the caller.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from numbers import Real
from typing import Any, Callable, List, Optional, Sequence, Union

from sqlalchemy import and_, false, or_
from sqlalchemy.sql.elements import ColumnElement

from modules.boutiquedb.boutiquedb_models import (
    Collection, Color, Material, Product, ProductCollection, ProductReviewStats, ProductSku, ProductType,
)
from modules.configuration.config import SEARCH_SETTINGS, SearchSettings
from modules.configuration.log_config import debug_id, get_request_id
from .fuzzy_search import fuzzy_search_product_ids
from .synonyms import SYNONYMS, SynonymTable
from .tokenizer import normalize_query, tokenize
from .utils import escape_like

OneOrMany = Union[str, Sequence[str], None]

STOCK_IN = "in_stock"
STOCK_OUT = "out_of_stock"
MAX_RATING = 5


@dataclass
class SearchConditions:
    """
    ``fuzzy_ids`` is None when fuzzy matching was not attempted (blank or short
    query), a possibly empty list of ranked ids otherwise.
    """

    fuzzy_ids: Optional[List[str]] = None
    exact_conditions: List[ColumnElement] = field(default_factory=list)

    @property
    def attempted(self) -> bool:
        return self.fuzzy_ids is not None or bool(self.exact_conditions)


@dataclass
class ProductFilters:
    status: OneOrMany = None
    type: OneOrMany = None
    color: OneOrMany = None
    material: OneOrMany = None
    collection_id: OneOrMany = None
    collection_slug: OneOrMany = None
    slugs: Optional[Sequence[str]] = None
    price_min: Optional[int] = None
    price_max: Optional[int] = None
    on_sale: Optional[bool] = None
    stock_status: Optional[str] = None
    rating_min: Optional[float] = None
    created_after: Optional[datetime] = None
    created_before: Optional[datetime] = None
    updated_after: Optional[datetime] = None
    updated_before: Optional[datetime] = None


@dataclass
class ProductListParams:
    search: Optional[str] = None
    status: Any = None
    filters: ProductFilters = field(default_factory=ProductFilters)
    include_deleted: bool = False
    sort: str = "relevance"
    limit: int = 24
    offset: int = 0


# ---------------- Text search ----------------

def _pattern(word: str) -> str:
    return f"%{escape_like(word)}%"


def _text_field_clauses(word: str) -> List[ColumnElement]:
    pattern = _pattern(word)
    return [
        Product.title.ilike(pattern, escape="\\"),
        Product.description.ilike(pattern, escape="\\"),
    ]


def _related_field_clauses(word: str) -> List[ColumnElement]:
    """Fields fuzzy matching does not cover with full weight: SKU codes, attributes, collections."""
    pattern = _pattern(word)
    return [
        Product.skus.any(and_(
            ProductSku.is_active.is_(True),
            or_(
                ProductSku.sku.ilike(pattern, escape="\\"),
                ProductSku.color.has(or_(
                    Color.name.ilike(pattern, escape="\\"),
                    Color.hex.ilike(pattern, escape="\\"),
                )),
                ProductSku.material.has(Material.name.ilike(pattern, escape="\\")),
            ),
        )),
        Product.collections.any(ProductCollection.collection.has(or_(
            Collection.name.ilike(pattern, escape="\\"),
            Collection.slug.ilike(pattern, escape="\\"),
        ))),
    ]


def _token_conditions(tokens: Sequence[str], include_text_fields: bool,
                      synonyms: Optional[SynonymTable]) -> List[ColumnElement]:
    conditions = []
    expanded = synonyms.expand_tokens(tokens) if synonyms is not None else [[token] for token in tokens]
    for words in expanded:
        clauses: List[ColumnElement] = []
        for word in words:
            if include_text_fields:
                clauses.extend(_text_field_clauses(word))
            clauses.extend(_related_field_clauses(word))
        conditions.append(or_(*clauses))
    return conditions


def build_exact_search_conditions(query: Optional[str], settings: Optional[SearchSettings] = None,
                                  synonyms: Optional[SynonymTable] = SYNONYMS) -> SearchConditions:
    """One AND-ed condition per word, each matching the word (or a synonym) in any searchable field."""
    settings = settings or SEARCH_SETTINGS
    tokens = tokenize(query, settings)
    return SearchConditions(
        fuzzy_ids=None,
        exact_conditions=_token_conditions(tokens, include_text_fields=True, synonyms=synonyms),
    )


def build_search_conditions(query: Optional[str], status=None, settings: Optional[SearchSettings] = None,
                            synonyms: Optional[SynonymTable] = SYNONYMS,
                            fuzzy_search: Callable = None, db_config=None) -> SearchConditions:
    """
    Decide between fuzzy and exact text search for ``query``.

    Short queries skip fuzzy matching and match title/description exactly.
    Longer ones use the fuzzy ids; their exact conditions leave out title and
    description, which fuzzy matching already scores. When fuzzy matching finds
    nothing (or failed soft), title and description are matched exactly again.
    """
    settings = settings or SEARCH_SETTINGS
    term = normalize_query(query, settings)
    if not term:
        return SearchConditions()

    if len(term) < settings.min_fuzzy_length:
        debug_id(f"Query '{term}' below fuzzy minimum, using exact search", get_request_id())
        return build_exact_search_conditions(term, settings, synonyms)

    fuzzy_search = fuzzy_search or fuzzy_search_product_ids
    result = fuzzy_search(term, status=status, settings=settings, db_config=db_config)
    tokens = tokenize(term, settings)
    fuzzy_ids = list(result.ids)
    if not fuzzy_ids:
        debug_id(f"No fuzzy match for '{term}', falling back to exact title/description search", get_request_id())
    return SearchConditions(
        fuzzy_ids=fuzzy_ids,
        exact_conditions=_token_conditions(tokens, include_text_fields=not fuzzy_ids, synonyms=synonyms),
    )


def build_search_predicate(search: Optional[SearchConditions]) -> Optional[ColumnElement]:
    """
    Merge fuzzy ids and exact conditions into one clause.

    An exact hit can surface a product the fuzzy scorer ranked below its cutoff,
    so the two are OR-ed when fuzzy found something.
    """
    if search is None or not search.attempted:
        return None
    exact = and_(*search.exact_conditions) if search.exact_conditions else None
    if search.fuzzy_ids:
        id_match = Product.id.in_(search.fuzzy_ids)
        return or_(id_match, exact) if exact is not None else id_match
    if exact is not None:
        return exact
    return false()


# ---------------- Structural filters ----------------

def _as_list(value) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        return [getattr(value, "value", value)]
    return [getattr(v, "value", v) for v in value]


def _eq_or_in(column, values: List[Any]) -> Optional[ColumnElement]:
    if len(values) == 1:
        return column == values[0]
    if len(values) > 1:
        return column.in_(values)
    return None


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _active_sku(*criteria) -> ColumnElement:
    return Product.skus.any(and_(ProductSku.is_active.is_(True), *criteria))


def build_product_filter_conditions(filters: Optional[ProductFilters]) -> List[ColumnElement]:
    conditions: List[ColumnElement] = []
    if not filters:
        return conditions

    def add(clause):
        if clause is not None:
            conditions.append(clause)

    add(_eq_or_in(Product.status, _as_list(filters.status)))

    types = _as_list(filters.type)
    if types:
        add(Product.type.has(_eq_or_in(ProductType.slug, types)))

    colors = _as_list(filters.color)
    if colors:
        add(_active_sku(ProductSku.color.has(_eq_or_in(Color.slug, colors))))

    materials = _as_list(filters.material)
    if materials:
        add(_active_sku(ProductSku.material.has(_eq_or_in(Material.slug, materials))))

    collection_ids = _as_list(filters.collection_id)
    if collection_ids:
        add(Product.collections.any(_eq_or_in(ProductCollection.collection_id, collection_ids)))

    collection_slugs = _as_list(filters.collection_slug)
    if collection_slugs:
        add(Product.collections.any(ProductCollection.collection.has(_eq_or_in(Collection.slug, collection_slugs))))

    slugs = _as_list(filters.slugs)
    if slugs:
        add(Product.slug.in_(slugs))

    price_min = filters.price_min if _is_number(filters.price_min) and filters.price_min >= 0 else None
    price_max = filters.price_max if _is_number(filters.price_max) and filters.price_max >= 0 else None
    if price_min is not None and price_max is not None:
        add(_active_sku(ProductSku.price_incl_tax >= price_min, ProductSku.price_incl_tax <= price_max))
    elif price_min is not None:
        add(_active_sku(ProductSku.price_incl_tax >= price_min))
    elif price_max is not None:
        add(_active_sku(ProductSku.price_incl_tax <= price_max))

    if filters.on_sale is True:
        add(_active_sku(ProductSku.compare_at_price.isnot(None)))

    if filters.stock_status == STOCK_IN:
        add(_active_sku(ProductSku.inventory > 0))
    elif filters.stock_status == STOCK_OUT:
        add(~_active_sku(ProductSku.inventory > 0))

    if _is_number(filters.rating_min) and 0 <= filters.rating_min <= MAX_RATING:
        add(Product.review_stats.has(ProductReviewStats.average_rating >= filters.rating_min))

    if isinstance(filters.created_after, datetime):
        add(Product.created_at >= filters.created_after)
    if isinstance(filters.created_before, datetime):
        add(Product.created_at <= filters.created_before)
    if isinstance(filters.updated_after, datetime):
        add(Product.updated_at >= filters.updated_after)
    if isinstance(filters.updated_before, datetime):
        add(Product.updated_at <= filters.updated_before)

    return conditions


def build_product_where_clause(params: ProductListParams,
                               search: Optional[SearchConditions] = None) -> List[ColumnElement]:
    """All clauses of a listing query, to be AND-ed (``query.filter(*clauses)``)."""
    conditions: List[ColumnElement] = []

    if not params.include_deleted:
        conditions.append(Product.deleted_at.is_(None))

    if params.status is not None:
        conditions.append(Product.status == getattr(params.status, "value", params.status))

    predicate = build_search_predicate(search)
    if predicate is not None:
        conditions.append(predicate)

    conditions.extend(build_product_filter_conditions(params.filters))
    return conditions
