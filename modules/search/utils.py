# modules/search/utils.py
"""
Utility functions for the search module.
"""
from __future__ import annotations

import functools
import re
from typing import Callable, TypeVar

from modules.configuration.log_config import get_request_id, warning_id

T = TypeVar("T")


def fail_soft(fallback: Callable[[], T]):
    """
    Decorator for public search entry points: any exception raised inside the
    wrapped call (store error, statement timeout, bug) is logged and replaced
    by ``fallback()``. Search degrades to "no results"; it never raises.
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                warning_id(
                    f"{func.__name__} failed, returning empty result: {type(e).__name__}: {e}",
                    get_request_id(),
                )
                return fallback()
        return wrapper
    return decorator


_LIKE_SPECIAL = re.compile(r"([\\%_])")


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input only ever matches literally (escape char: backslash)."""
    return _LIKE_SPECIAL.sub(r"\\\1", term)
