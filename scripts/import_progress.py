#!/usr/bin/env python3
"""
Import a flashcard progress JSON export into the database
"""

import os
import sys
from pathlib import Path

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.core.database.connection import DatabaseConnection  # noqa: E402
from src.core.database.repositories.kv_repository import KeyValueRepository  # noqa: E402
from src.core.errors import ProgressImportError  # noqa: E402
from src.core.progress.progress_store import PROGRESS_KEY, ProgressStore  # noqa: E402


def import_progress(json_path: str, db_path: str, telegram_id: int) -> bool:
    """Replace the stored progress of one user with the exported document"""
    try:
        print(f"📖 Loading progress from {json_path}")
        payload = Path(json_path).read_bytes()

        print(f"🔗 Connecting to database {db_path}")
        connection = DatabaseConnection(db_path)
        connection.init_database()
        store = KeyValueRepository(connection)

        progress = ProgressStore(store, key=f"{PROGRESS_KEY}:{telegram_id}")
        count = progress.import_data(payload)

        print(f"✅ Imported {count} word statuses for user {telegram_id}")
        return True

    except ProgressImportError as e:
        print(f"❌ Not a valid progress export: {e}")
        return False
    except Exception as e:
        print(f"❌ Import failed: {e}")
        return False


def main():
    """Main import function"""
    if len(sys.argv) != 4:
        print("Usage: python import_progress.py <database_path> <telegram_id> <input_json_path>")
        print("Example: python import_progress.py data/flashcards.db 123456789 backup.json")
        sys.exit(1)

    db_path, telegram_id, json_path = sys.argv[1], sys.argv[2], sys.argv[3]

    if not Path(json_path).exists():
        print(f"❌ JSON file not found: {json_path}")
        sys.exit(1)

    if not telegram_id.isdigit():
        print(f"❌ Invalid telegram id: {telegram_id}")
        sys.exit(1)

    if import_progress(json_path, db_path, int(telegram_id)):
        print("🎉 Import completed successfully!")
        sys.exit(0)
    else:
        print("💥 Import failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
