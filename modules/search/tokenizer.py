# modules/search/tokenizer.py
from __future__ import annotations

from typing import Iterable, List, Optional

from modules.configuration.config import SEARCH_SETTINGS, SearchSettings


def dedup_preserve_order(items: Iterable[str]) -> List[str]:
    """
    Remove duplicates while preserving original order.
    Lowercases for comparison but returns the first-seen original strings.
    """
    seen = set()
    out: List[str] = []
    for s in items:
        key = s.lower()
        if s and key not in seen:
            seen.add(key)
            out.append(s)
    return out


def normalize_query(query: Optional[str], settings: SearchSettings = SEARCH_SETTINGS) -> str:
    """
    Trim a raw query. Returns "" when nothing is left or when the query is
    longer than the configured maximum (over-length queries are rejected, not truncated).
    """
    term = (query or "").strip()
    if len(term) > settings.max_search_length:
        return ""
    return term


def tokenize(query: Optional[str], settings: SearchSettings = SEARCH_SETTINGS) -> List[str]:
    """
    Split a search query into unique words.

    Splits on any run of whitespace and keeps punctuation, hyphens and accented
    letters inside a word. Duplicates are dropped case-insensitively (first
    occurrence wins) and the result is capped at ``settings.max_tokens``.
    """
    term = normalize_query(query, settings)
    if not term:
        return []
    return dedup_preserve_order(term.split())[:settings.max_tokens]
