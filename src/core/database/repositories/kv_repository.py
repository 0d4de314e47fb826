"""
Key-value repository used for persisted client state
"""

import logging
from datetime import datetime

from ..connection import DatabaseConnection

logger = logging.getLogger(__name__)


class KeyValueRepository:
    """String key-value storage on top of SQLite"""

    def __init__(self, db_connection: DatabaseConnection):
        self.db_connection = db_connection

    def get(self, key: str) -> str | None:
        """Get the stored value for key, None if missing"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
            row = cursor.fetchone()
            return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        """Insert or replace the value for key"""
        with self.db_connection.get_connection() as conn:
            conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value, datetime.now().isoformat()),
            )
            conn.commit()

    def remove(self, key: str) -> bool:
        """
        Delete key

        Returns:
            True if a value was removed
        """
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()
            removed = cursor.rowcount > 0

        if removed:
            logger.debug(f"Removed key {key}")
        return removed

