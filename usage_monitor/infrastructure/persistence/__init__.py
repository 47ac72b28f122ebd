"""Persistencia del monitor (SQLite vía SQLAlchemy)."""

from .schema import initialize_schema
from .sqlite_store import UsageStore

__all__ = ["UsageStore", "initialize_schema"]
