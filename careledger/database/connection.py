"""Database connection manager for SQLite."""

import sqlite3
from datetime import datetime, timezone

from careledger.config import get_settings

from .schema import SCHEMA


def get_connection() -> sqlite3.Connection:
    """Get a database connection with row factory enabled."""
    settings = get_settings()
    conn = sqlite3.connect(settings.db_path, timeout=settings.db_timeout)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_database() -> None:
    """Initialize the database with schema."""
    conn = get_connection()
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """Normalize a datetime to a sortable UTC ISO-8601 string."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")
