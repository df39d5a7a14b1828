"""Database package for ClassVault."""

from classvault.db.base import Base
from classvault.db.session import async_session_maker, engine, get_db

__all__ = [
    "Base",
    "async_session_maker",
    "engine",
    "get_db",
]
