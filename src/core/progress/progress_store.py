"""
Progress store: per-word study status persisted in a key-value store
"""

import json
import logging
import math
from collections.abc import Iterable
from datetime import date, datetime
from typing import Any, Protocol

from ..errors import ProgressImportError
from ..models import CardStatus, ProgressStats, make_card_id

logger = logging.getLogger(__name__)

PROGRESS_KEY = "flashcardProgress"


class KeyValueStore(Protocol):
    """Persistence used by the progress store"""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> Any: ...


def completion_percent(done: int, total: int) -> int:
    """Percentage rounded half up, 0 for an empty total"""
    if total <= 0:
        return 0
    return math.floor(100 * done / total + 0.5)


class ProgressStore:
    """Maps words to their study status; every change is saved at once"""

    def __init__(self, storage: KeyValueStore, key: str = PROGRESS_KEY):
        self.storage = storage
        self.key = key
        self._statuses: dict[str, CardStatus] = {}
        self._load()

    @property
    def statuses(self) -> dict[str, CardStatus]:
        return dict(self._statuses)

    def status_of(self, word: str) -> CardStatus | None:
        return self._statuses.get(make_card_id(word))

    def mark(self, word: str, status: CardStatus | str) -> CardStatus:
        """Set the status of a word and persist"""
        status = CardStatus(status)
        card_id = make_card_id(word)
        if not card_id:
            raise ValueError("Cannot mark an empty word")

        self._statuses[card_id] = status
        self._save()
        logger.debug(f"Marked '{card_id}' as {status.value}")
        return status

    def stats(self, words: Iterable[str]) -> ProgressStats:
        """Counts and completion over the given session words"""
        word_list = [make_card_id(word) for word in words]
        stats = ProgressStats(total=len(word_list))

        for card_id in word_list:
            status = self._statuses.get(card_id)
            if status is CardStatus.KNOWN:
                stats.known += 1
            elif status is CardStatus.UNKNOWN:
                stats.unknown += 1
            elif status is CardStatus.REVIEW:
                stats.review += 1

        stats.completion = completion_percent(stats.known + stats.review, stats.total)
        return stats

    def counts(self) -> dict[str, int]:
        """Status counts over every stored word"""
        counts = {status.value: 0 for status in CardStatus}
        for status in self._statuses.values():
            counts[status.value] += 1
        return counts

    def export(self, total_cards: int = 0) -> dict[str, Any]:
        """Full progress document for download"""
        return {
            "cardStatuses": {word: status.value for word, status in self._statuses.items()},
            "timestamp": datetime.now().isoformat(),
            "totalCards": total_cards,
            "statistics": self.counts(),
        }

    def export_json(self, total_cards: int = 0) -> str:
        return json.dumps(self.export(total_cards), indent=2, ensure_ascii=False)

    @staticmethod
    def export_filename(on: date | None = None) -> str:
        on = on or date.today()
        return f"flashcard-progress-{on.isoformat()}.json"

    def import_data(self, payload: str | bytes | dict[str, Any]) -> int:
        """
        Replace progress with an exported document

        Returns:
            Number of imported word statuses

        Raises:
            ProgressImportError: if the document is not a valid export
        """
        if isinstance(payload, (str, bytes)):
            try:
                payload = json.loads(payload)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise ProgressImportError(f"Invalid JSON: {e}") from e

        if not isinstance(payload, dict) or not isinstance(payload.get("cardStatuses"), dict):
            raise ProgressImportError("Document has no cardStatuses mapping")

        imported: dict[str, CardStatus] = {}
        for word, value in payload["cardStatuses"].items():
            card_id = make_card_id(str(word))
            if not card_id:
                continue
            try:
                imported[card_id] = CardStatus(value)
            except ValueError:
                raise ProgressImportError(f"Unknown status '{value}' for '{word}'") from None

        self._statuses = imported
        self._save()
        logger.info(f"Imported progress for {len(imported)} words")
        return len(imported)

    def clear(self):
        """Erase all progress"""
        self._statuses = {}
        self.storage.remove(self.key)
        logger.info(f"Cleared progress under {self.key}")

    def _load(self):
        saved = self.storage.get(self.key)
        if not saved:
            return

        try:
            data = json.loads(saved)
            raw = data.get("cardStatuses") or {}
            self._statuses = {
                make_card_id(word): CardStatus(value)
                for word, value in raw.items()
                if value in {status.value for status in CardStatus}
            }
        except (json.JSONDecodeError, AttributeError, TypeError) as e:
            logger.error(f"Error loading progress: {e}")
            self._statuses = {}

    def _save(self):
        data = {
            "cardStatuses": {word: status.value for word, status in self._statuses.items()},
            "timestamp": datetime.now().isoformat(),
        }
        self.storage.set(self.key, json.dumps(data, ensure_ascii=False))
