"""Database utilities for the Ladderwork progress store."""

from .base import Base
from .session import (
    dispose_engine,
    get_engine,
    get_session_dependency,
    get_session_factory,
    init_schema,
    session_scope,
)

__all__ = [
    "Base",
    "dispose_engine",
    "get_engine",
    "get_session_dependency",
    "get_session_factory",
    "init_schema",
    "session_scope",
]
