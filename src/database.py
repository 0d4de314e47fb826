"""
Database operations for the Vocabulary Flashcard Trainer
"""

from .config import get_database_path
from .core.database.connection import DatabaseConnection
from .core.database.repositories.kv_repository import KeyValueRepository


def init_db(db_path=None) -> KeyValueRepository:
    """Initialize database and return a key-value store on it"""
    connection = DatabaseConnection(db_path or get_database_path())
    connection.init_database()
    return KeyValueRepository(connection)


# Clean exports
__all__ = ['DatabaseConnection', 'KeyValueRepository', 'get_database_path', 'init_db']
