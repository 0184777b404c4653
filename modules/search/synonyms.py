# modules/search/synonyms.py
from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from modules.configuration.config import SEARCH_SETTINGS
from modules.configuration.log_config import debug_id, get_request_id

# Interchangeable jewellery terms. Single words only: lookups happen after tokenization.
DEFAULT_SYNONYM_GROUPS: Sequence[Sequence[str]] = (
    # Product categories
    ("collier", "pendentif", "chaîne", "sautoir", "ras-de-cou"),
    ("pendentif", "médaille", "breloque"),
    ("bague", "anneau", "alliance", "chevalière", "solitaire"),
    ("boucles", "créoles", "puces", "pendants"),
    ("bracelet", "jonc", "manchette", "gourmette"),
    ("broche", "épingle"),
    ("cheville", "chaînette"),
    # Materials
    ("argent", "silver", "argenté"),
    ("or", "doré", "gold", "vermeil"),
    ("laiton", "bronze"),
    ("perle", "perles", "nacre"),
    ("pierre", "pierres", "gemme", "cristal"),
    ("résine", "époxy"),
    # Styles
    ("minimaliste", "épuré", "sobre", "fin"),
    ("bohème", "boho", "ethnique"),
    ("vintage", "rétro", "ancien"),
    ("personnalisé", "gravé", "prénom"),
)


class SynonymTable:
    """
    Read-only bidirectional synonym lookup.

    Every term of a group maps to every other term of that group. A term that
    appears in several groups gets the union of the other members. Terms in
    ``exclusions`` (function words such as "or") are dropped from every group
    before the map is built.
    """

    def __init__(self, groups: Iterable[Iterable[str]], exclusions: Iterable[str] = ()):
        excluded = {e.strip().lower() for e in exclusions}
        merged: Dict[str, List[str]] = {}
        for group in groups:
            members: List[str] = []
            for raw in group:
                term = raw.strip().lower()
                if term and term not in excluded and term not in members:
                    members.append(term)
            for term in members:
                related = merged.setdefault(term, [])
                for other in members:
                    if other != term and other not in related:
                        related.append(other)
        self._map: Mapping[str, tuple] = MappingProxyType(
            {term: tuple(others) for term, others in merged.items() if others}
        )

    def synonyms_of(self, term: Optional[str]) -> List[str]:
        if not term:
            return []
        return list(self._map.get(term.strip().lower(), ()))

    def expand_tokens(self, tokens: Iterable[str]) -> List[List[str]]:
        """Pair each token with its synonyms: [[token, syn1, syn2], ...]."""
        expanded = [[token] + self.synonyms_of(token) for token in tokens]
        debug_id(f"Synonym expansion: {expanded}", get_request_id())
        return expanded

    def __contains__(self, term):
        return isinstance(term, str) and term.strip().lower() in self._map

    def __len__(self):
        return len(self._map)


# Built once at import; never mutated afterwards.
SYNONYMS = SynonymTable(DEFAULT_SYNONYM_GROUPS, exclusions=SEARCH_SETTINGS.synonym_exclusions)


def synonyms_of(term: Optional[str]) -> List[str]:
    return SYNONYMS.synonyms_of(term)


def expand_tokens(tokens: Iterable[str]) -> List[List[str]]:
    return SYNONYMS.expand_tokens(tokens)
