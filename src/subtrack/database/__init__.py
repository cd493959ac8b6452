"""Database layer for subtrack application."""

from subtrack.database.base import Database
from subtrack.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
