# modules/search/fuzzy_search.py
"""
Typo-tolerant product matching on top of pg_trgm.

One call opens one short transaction, applies the similarity threshold and the
statement timeout locally, and runs a single ranking query. Every token of the
query must clear the threshold against at least one searchable field; the
composite score then ranks the survivors.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import text

from modules.configuration.config import SEARCH_SETTINGS, SearchSettings
from modules.configuration.log_config import (
    debug_id, info_id, get_request_id, with_request_id, log_timed_operation,
)
from .tokenizer import tokenize
from .trigram import trigram_session
from .utils import fail_soft

# (column of product_text, weight in the composite score)
FIELD_WEIGHTS: Tuple[Tuple[str, float], ...] = (
    ("title", 3.0),
    ("skus", 1.0),
    ("colors", 1.5),
    ("materials", 1.5),
    ("collections", 1.2),
    ("description", 0.5),
)

_FUZZY_SQL_TEMPLATE = """
WITH product_text AS (
    SELECT
        p.id,
        unaccent(lower(p.title)) AS title,
        unaccent(lower(coalesce(p.description, ''))) AS description,
        unaccent(lower(coalesce(string_agg(DISTINCT s.sku, ' '), ''))) AS skus,
        unaccent(lower(coalesce(string_agg(DISTINCT col.name, ' '), ''))) AS colors,
        unaccent(lower(coalesce(string_agg(DISTINCT m.name, ' '), ''))) AS materials,
        unaccent(lower(coalesce(string_agg(DISTINCT c.name, ' '), ''))) AS collections
    FROM product p
    LEFT JOIN product_sku s ON s.product_id = p.id AND s.is_active = true
    LEFT JOIN color col ON col.id = s.color_id
    LEFT JOIN material m ON m.id = s.material_id
    LEFT JOIN product_collection pc ON pc.product_id = p.id
    LEFT JOIN collection c ON c.id = pc.collection_id
    WHERE p.deleted_at IS NULL{status_condition}
    GROUP BY p.id
),
scored AS (
    SELECT pt.id, ({score}) AS score
    FROM product_text pt
    WHERE {token_gate}
)
SELECT id AS product_id, score, COUNT(*) OVER () AS total_count
FROM scored
ORDER BY score DESC, id
LIMIT :limit
"""


@dataclass(frozen=True)
class SearchResultSet:
    """Product ids by descending relevance plus the total number of matches."""

    ids: List[str] = field(default_factory=list)
    total_count: int = 0

    @classmethod
    def empty(cls) -> "SearchResultSet":
        return cls(ids=[], total_count=0)

    def to_dict(self):
        return {"ids": list(self.ids), "total_count": self.total_count}


def _token_clause(param: str) -> str:
    # A token passes when it is word-similar to at least one field
    checks = " OR ".join(f"unaccent(:{param}) <% pt.{column}" for column, _ in FIELD_WEIGHTS)
    return f"({checks})"


def build_fuzzy_sql(token_count: int, with_status: bool):
    """Render the ranking query for ``token_count`` tokens (bound as :w0, :w1, ...)."""
    if token_count < 1:
        raise ValueError("At least one token is required")
    score = " + ".join(
        f"word_similarity(unaccent(:query), pt.{column}) * {weight}"
        for column, weight in FIELD_WEIGHTS
    )
    token_gate = "\n      AND ".join(_token_clause(f"w{i}") for i in range(token_count))
    status_condition = "\n      AND p.status = :status" if with_status else ""
    return text(_FUZZY_SQL_TEMPLATE.format(
        status_condition=status_condition, score=score, token_gate=token_gate,
    ))


def build_fuzzy_params(tokens: Sequence[str], limit: int, status=None) -> dict:
    params = {"query": " ".join(tokens).lower(), "limit": limit}
    for i, token in enumerate(tokens):
        params[f"w{i}"] = token.lower()
    if status is not None:
        params["status"] = getattr(status, "value", status)
    return params


@fail_soft(SearchResultSet.empty)
@with_request_id
def fuzzy_search_product_ids(
    query: Optional[str],
    threshold: Optional[float] = None,
    limit: Optional[int] = None,
    status=None,
    settings: Optional[SearchSettings] = None,
    db_config=None,
) -> SearchResultSet:
    """
    Return ids of products matching ``query`` approximately, best first.

    ``status`` is forwarded to the store as-is to restrict candidates (for the
    storefront: ``ProductStatus.PUBLIC``). Empty or over-long queries return an
    empty result without touching the database; store errors and timeouts do too.
    """
    settings = settings or SEARCH_SETTINGS
    rid = get_request_id()

    tokens = tokenize(query, settings)
    if not tokens:
        return SearchResultSet.empty()

    threshold = settings.fuzzy_threshold if threshold is None else threshold
    limit = settings.fuzzy_limit if limit is None else limit

    sql = build_fuzzy_sql(len(tokens), with_status=status is not None)
    params = build_fuzzy_params(tokens, limit, status)
    debug_id(f"Fuzzy search tokens={tokens} threshold={threshold} limit={limit}", rid)

    with log_timed_operation("fuzzy_search_product_ids", rid):
        with trigram_session(threshold, settings.fuzzy_timeout_ms, db_config=db_config, request_id=rid) as session:
            rows = session.execute(sql, params).mappings().all()

    if not rows:
        info_id(f"Fuzzy search '{query}' found no products", rid)
        return SearchResultSet.empty()

    ids = [row["product_id"] for row in rows]
    total_count = int(rows[0]["total_count"])
    info_id(f"Fuzzy search '{query}' matched {total_count} products (returning {len(ids)})", rid)
    return SearchResultSet(ids=ids, total_count=total_count)
