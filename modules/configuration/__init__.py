"""
Configuration package initializer.

This file exposes the key configuration objects so they can be imported
directly from `modules.configuration`.
"""

# Import database base class
from .base import Base

# Import project-wide configuration variables
from .config import (
    BASE_DIR,
    DATABASE_URL,
    SEARCH_SETTINGS,
    SearchSettings,
)

# Import database session configuration
from .config_env import DatabaseConfig, get_db_config

__all__ = [
    "Base",
    "BASE_DIR",
    "DATABASE_URL",
    "SEARCH_SETTINGS",
    "SearchSettings",
    "DatabaseConfig",
    "get_db_config",
]
