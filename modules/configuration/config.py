"""Project configuration file"""
# modules/configuration/config.py

import os
import sys
from dataclasses import dataclass
from typing import FrozenSet

from dotenv import load_dotenv

# Determine the root directory based on whether the code is frozen (e.g., PyInstaller .exe)
if getattr(sys, 'frozen', False):  # Check if running as an executable
    BASE_DIR = os.path.dirname(sys.executable)  # Use the directory of the executable
else:
    BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))

load_dotenv()

# Database connection
POSTGRES_USER = os.getenv("POSTGRES_USER", "postgres")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
POSTGRES_HOST = os.getenv("POSTGRES_HOST", "localhost")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")
POSTGRES_DB = os.getenv("POSTGRES_DB", "boutique")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+psycopg2://{POSTGRES_USER}:{POSTGRES_PASSWORD}"
    f"@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}"
)
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))


def _env_int(name, default):
    return int(os.getenv(name, str(default)))


def _env_float(name, default):
    return float(os.getenv(name, str(default)))


def _env_words(name, default):
    raw = os.getenv(name, default)
    return frozenset(w.strip().lower() for w in raw.split(",") if w.strip())


@dataclass(frozen=True)
class SearchSettings:
    """Tunable limits for product search. Thresholds are pg_trgm similarities (0-1)."""

    max_search_length: int = 100
    max_tokens: int = 5
    # Below this many characters trigram similarity is too imprecise
    min_fuzzy_length: int = 3
    min_quick_search_length: int = 2
    min_correction_length: int = 2
    fuzzy_threshold: float = 0.3
    suggestion_threshold: float = 0.2
    fuzzy_timeout_ms: int = 2000
    suggestion_timeout_ms: int = 1500
    fuzzy_limit: int = 100
    quick_search_limit: int = 6
    suggestion_results_threshold: int = 3
    synonym_exclusions: FrozenSet[str] = frozenset({"or"})

    @classmethod
    def from_env(cls):
        return cls(
            max_search_length=_env_int("SEARCH_MAX_LENGTH", 100),
            max_tokens=_env_int("SEARCH_MAX_TOKENS", 5),
            min_fuzzy_length=_env_int("SEARCH_MIN_FUZZY_LENGTH", 3),
            min_quick_search_length=_env_int("SEARCH_MIN_QUICK_LENGTH", 2),
            min_correction_length=_env_int("SEARCH_MIN_CORRECTION_LENGTH", 2),
            fuzzy_threshold=_env_float("SEARCH_FUZZY_THRESHOLD", 0.3),
            suggestion_threshold=_env_float("SEARCH_SUGGESTION_THRESHOLD", 0.2),
            fuzzy_timeout_ms=_env_int("SEARCH_FUZZY_TIMEOUT_MS", 2000),
            suggestion_timeout_ms=_env_int("SEARCH_SUGGESTION_TIMEOUT_MS", 1500),
            fuzzy_limit=_env_int("SEARCH_FUZZY_LIMIT", 100),
            quick_search_limit=_env_int("SEARCH_QUICK_LIMIT", 6),
            suggestion_results_threshold=_env_int("SEARCH_SUGGESTION_RESULTS_THRESHOLD", 3),
            synonym_exclusions=_env_words("SEARCH_SYNONYM_EXCLUSIONS", "or"),
        )


SEARCH_SETTINGS = SearchSettings.from_env()
