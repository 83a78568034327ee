"""Database layer."""
from .connection import get_connection, get_cursor, ensure_db_exists
from .usage_repository import UsageRepository

__all__ = ['get_connection', 'get_cursor', 'ensure_db_exists', 'UsageRepository']
