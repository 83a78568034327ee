"""Database connection management."""
import sqlite3
import os
from contextlib import contextmanager
from typing import Iterator
from ..config import DB_PATH


def get_connection() -> sqlite3.Connection:
    """Create and return a database connection."""
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_cursor() -> Iterator[sqlite3.Cursor]:
    """Context manager for database operations."""
    conn = get_connection()
    try:
        cursor = conn.cursor()
        yield cursor
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def ensure_db_exists() -> None:
    """Ensure database directory and table exist."""
    directory = os.path.dirname(DB_PATH)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with get_cursor() as cur:
        cur.execute("""
            CREATE TABLE IF NOT EXISTS permission_usage (
                id INTEGER PRIMARY KEY,
                package_name TEXT NOT NULL,
                app_label TEXT DEFAULT '',
                group_name TEXT NOT NULL,
                group_label TEXT DEFAULT '',
                access_time INTEGER NOT NULL,
                access_count INTEGER NOT NULL DEFAULT 1,
                user_sensitive INTEGER NOT NULL DEFAULT 1,
                kind TEXT NOT NULL DEFAULT 'last'
            )
        """)
        # Window queries filter on access time
        cur.execute("""
            CREATE INDEX IF NOT EXISTS idx_permission_usage_time
            ON permission_usage(access_time)
        """)
        cur.execute("""
            CREATE INDEX IF NOT EXISTS idx_permission_usage_package
            ON permission_usage(package_name)
        """)
