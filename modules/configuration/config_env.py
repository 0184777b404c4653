"""
config_env.py
Database configuration for the boutique search service.
- Main DB: PostgreSQL (from .env / Docker), with pg_trgm and unaccent
- Provides a context manager, the .get_main_session() callable and
  .new_session() for self-contained units of work
- Engine is created lazily so importing the search package never connects
"""

import threading
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, scoped_session

from modules.configuration.config import DATABASE_URL, DB_POOL_SIZE, DB_MAX_OVERFLOW
from modules.configuration.log_config import logger


class DatabaseConfig:
    def __init__(self, database_url=DATABASE_URL, pool_size=DB_POOL_SIZE, max_overflow=DB_MAX_OVERFLOW):
        self.engine = create_engine(
            database_url,
            echo=False,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
        )

        self.SessionMaker = sessionmaker(bind=self.engine)
        # scoped_session gives each thread its own session
        self.MainSessionMaker = scoped_session(self.SessionMaker)

        logger.info(
            f"DatabaseConfig initialized (pool_size={pool_size}, max_overflow={max_overflow})"
        )

    @contextmanager
    def main_session(self):
        session = self.MainSessionMaker()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_main_session(self):
        """Callable session factory for repositories that manage their own lifecycle."""
        return self.MainSessionMaker()

    def new_session(self):
        """A fresh session outside the thread-local registry; the caller must close it."""
        return self.SessionMaker()

    def ensure_extensions(self):
        """Create the trigram and unaccent extensions the search queries rely on."""
        try:
            with self.engine.begin() as conn:
                conn.execute(text("CREATE EXTENSION IF NOT EXISTS pg_trgm"))
                conn.execute(text("CREATE EXTENSION IF NOT EXISTS unaccent"))
            logger.info("Postgres search extensions ensured (pg_trgm, unaccent).")
        except Exception as e:
            logger.warning(f"Could not init Postgres extensions: {e}")

    def dispose(self):
        self.MainSessionMaker.remove()
        self.engine.dispose()


_db_config = None
_db_config_lock = threading.Lock()


def get_db_config():
    """Return the process-wide DatabaseConfig, creating it on first use."""
    global _db_config
    if _db_config is None:
        with _db_config_lock:
            if _db_config is None:
                _db_config = DatabaseConfig()
    return _db_config
