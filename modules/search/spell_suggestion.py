# modules/search/spell_suggestion.py
"""
"Did you mean" corrections for product searches.

Each word long enough to be worth correcting is looked up against the shop's
vocabulary (words of product titles, collection, color and material names)
with a looser similarity bar than matching uses. A suggestion is only returned
when at least one word actually changes.
"""
from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import text

from modules.configuration.config import SEARCH_SETTINGS, SearchSettings
from modules.configuration.log_config import debug_id, info_id, get_request_id, with_request_id
from .tokenizer import tokenize
from .trigram import trigram_session
from .utils import fail_soft

SOURCES = ("product", "collection", "color", "material")

_CLOSEST_TERM_SQL = r"""
WITH vocabulary AS (
    SELECT DISTINCT word AS term, 'product' AS source
    FROM product p, regexp_split_to_table(lower(p.title), '\s+') AS word
    WHERE p.deleted_at IS NULL{status_condition}
    UNION
    SELECT lower(c.name), 'collection' FROM collection c WHERE c.status = :collection_status
    UNION
    SELECT lower(col.name), 'color' FROM color col WHERE col.is_active = true
    UNION
    SELECT lower(m.name), 'material' FROM material m WHERE m.is_active = true
)
SELECT term, similarity(unaccent(term), unaccent(:word)) AS similarity, source
FROM vocabulary
WHERE unaccent(term) % unaccent(:word)
  AND char_length(term) >= :min_length
ORDER BY similarity DESC, term
LIMIT 1
"""

CLOSEST_TERM_SQL = text(_CLOSEST_TERM_SQL.format(status_condition=""))
CLOSEST_TERM_SQL_WITH_STATUS = text(_CLOSEST_TERM_SQL.format(status_condition="\n      AND p.status = :status"))


@dataclass(frozen=True)
class Suggestion:
    term: str
    similarity: float
    source: str

    def to_dict(self):
        return {"term": self.term, "similarity": self.similarity, "source": self.source}


@dataclass(frozen=True)
class WordCorrection:
    word: str
    term: str
    similarity: float
    source: str


def fold(word: str) -> str:
    """Lowercase and strip accents, so "Doré" and "dore" compare equal."""
    normalized = unicodedata.normalize('NFD', word.lower())
    return ''.join(c for c in normalized if unicodedata.category(c) != 'Mn')


def find_closest_term(word: str, status=None, settings: SearchSettings = SEARCH_SETTINGS,
                      db_config=None, request_id: Optional[str] = None) -> Optional[WordCorrection]:
    """Closest vocabulary term for one word, in its own short transaction."""
    params = {
        "word": word.lower(),
        "min_length": settings.min_correction_length,
        "collection_status": "PUBLIC",
    }
    sql = CLOSEST_TERM_SQL
    if status is not None:
        params["status"] = getattr(status, "value", status)
        sql = CLOSEST_TERM_SQL_WITH_STATUS

    with trigram_session(settings.suggestion_threshold, settings.suggestion_timeout_ms,
                         db_config=db_config, request_id=request_id) as session:
        row = session.execute(sql, params).mappings().first()

    if row is None or row["term"] is None:
        return None
    return WordCorrection(word=word, term=row["term"], similarity=float(row["similarity"]), source=row["source"])


@fail_soft(lambda: None)
@with_request_id
def get_spell_suggestion(query: Optional[str], status=None, settings: Optional[SearchSettings] = None,
                         db_config=None) -> Optional[Suggestion]:
    """
    Suggest a corrected phrase for ``query`` or return None.

    Words shorter than ``min_correction_length`` are kept unchanged. When
    several words are corrected, the reported similarity and source are those
    of the strongest correction.
    """
    settings = settings or SEARCH_SETTINGS
    rid = get_request_id()

    tokens = tokenize(query, settings)
    if not any(len(t) >= settings.min_correction_length for t in tokens):
        return None

    phrase: List[str] = []
    best: Optional[WordCorrection] = None
    for token in tokens:
        if len(token) < settings.min_correction_length:
            phrase.append(token)
            continue
        correction = find_closest_term(token, status=status, settings=settings, db_config=db_config, request_id=rid)
        if correction is None or fold(correction.term) == fold(token):
            phrase.append(token)
            continue
        debug_id(f"Correction '{token}' -> '{correction.term}' ({correction.similarity:.2f}, {correction.source})", rid)
        phrase.append(correction.term)
        if best is None or correction.similarity > best.similarity:
            best = correction

    if best is None:
        return None

    suggestion = Suggestion(term=" ".join(phrase), similarity=best.similarity, source=best.source)
    info_id(f"Spell suggestion for '{query}': '{suggestion.term}'", rid)
    return suggestion
