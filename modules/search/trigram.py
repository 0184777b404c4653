# modules/search/trigram.py
"""
Transaction-scoped pg_trgm tuning.

``set_config(name, value, true)`` behaves like ``SET LOCAL``: the value lives
until the current transaction ends, so pooled connections never carry a
threshold or timeout into another request.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from modules.configuration.config_env import DatabaseConfig, get_db_config
from modules.configuration.log_config import debug_id, get_request_id

_SET_THRESHOLD_SQL = text(
    "SELECT set_config('pg_trgm.similarity_threshold', :threshold, true), "
    "set_config('pg_trgm.word_similarity_threshold', :threshold, true)"
)
_SET_TIMEOUT_SQL = text("SELECT set_config('statement_timeout', :timeout, true)")


def set_trigram_threshold(session: Session, threshold: float) -> None:
    """Set the acceptance bar of the ``%`` and ``<%`` operators for this transaction."""
    if not 0 <= threshold <= 1:
        raise ValueError(f"Trigram threshold must be within [0, 1], got {threshold}")
    session.execute(_SET_THRESHOLD_SQL, {"threshold": str(threshold)})


def set_statement_timeout(session: Session, timeout_ms: int) -> None:
    """Cancel any statement of this transaction running longer than ``timeout_ms``."""
    if timeout_ms <= 0:
        raise ValueError(f"Statement timeout must be positive, got {timeout_ms}")
    session.execute(_SET_TIMEOUT_SQL, {"timeout": f"{int(timeout_ms)}ms"})


@contextmanager
def trigram_session(
    threshold: float,
    timeout_ms: int,
    db_config: Optional[DatabaseConfig] = None,
    request_id: Optional[str] = None,
) -> Iterator[Session]:
    """
    Open a short read-only transaction on a dedicated session with the
    similarity threshold and statement timeout applied. The transaction is
    always rolled back and the session closed on exit, which discards both
    settings.
    """
    rid = request_id or get_request_id()
    # Dedicated session, never the thread-local one
    session = (db_config or get_db_config()).new_session()
    try:
        set_trigram_threshold(session, threshold)
        set_statement_timeout(session, timeout_ms)
        debug_id(f"Trigram session opened (threshold={threshold}, timeout={timeout_ms}ms)", rid)
        yield session
    finally:
        session.rollback()
        session.close()
