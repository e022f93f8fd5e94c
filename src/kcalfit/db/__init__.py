"""SQLite persistence for the weight and measurement logs."""

from kcalfit.db.connection import DatabaseConnection, get_db, set_db

__all__ = ["DatabaseConnection", "get_db", "set_db"]
