#!/usr/bin/env python3
"""
Export a user's flashcard progress from the database to JSON
"""

import os
import sys
from pathlib import Path

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.core.database.connection import DatabaseConnection  # noqa: E402
from src.core.database.repositories.kv_repository import KeyValueRepository  # noqa: E402
from src.core.progress.progress_store import PROGRESS_KEY, ProgressStore  # noqa: E402


def export_progress(db_path: str, telegram_id: int, output_path: str) -> bool:
    """Write the progress document of one user to a JSON file"""
    try:
        print(f"📖 Exporting progress of user {telegram_id} from {db_path}")

        connection = DatabaseConnection(db_path)
        connection.init_database()
        store = KeyValueRepository(connection)
        progress = ProgressStore(store, key=f"{PROGRESS_KEY}:{telegram_id}")

        statistics = progress.counts()
        total = sum(statistics.values())
        print(f"  📝 Found {total} word statuses")

        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(progress.export_json(total), encoding="utf-8")

        print(f"✅ Successfully exported progress to {output_path}")
        print("📊 Export summary:")
        for status, count in statistics.items():
            print(f"   • {status}: {count}")
        return True

    except Exception as e:
        print(f"❌ Export failed: {e}")
        return False


def main():
    """Main export function"""
    if len(sys.argv) != 4:
        print("Usage: python export_progress.py <database_path> <telegram_id> <output_json_path>")
        print("Example: python export_progress.py data/flashcards.db 123456789 backup.json")
        sys.exit(1)

    db_path, telegram_id, output_path = sys.argv[1], sys.argv[2], sys.argv[3]

    if not Path(db_path).exists():
        print(f"❌ Database file not found: {db_path}")
        sys.exit(1)

    if not telegram_id.isdigit():
        print(f"❌ Invalid telegram id: {telegram_id}")
        sys.exit(1)

    if export_progress(db_path, int(telegram_id), output_path):
        print("🎉 Export completed successfully!")
        sys.exit(0)
    else:
        print("💥 Export failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
