"""Database utilities for TeamForge."""

from .session import (
    dispose_engine,
    get_engine,
    get_session_factory,
    init_schema,
    session_scope,
)

__all__ = [
    "dispose_engine",
    "get_engine",
    "get_session_factory",
    "init_schema",
    "session_scope",
]
