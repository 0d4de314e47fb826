"""
Domain models for the Vocabulary Flashcard Trainer
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import NewType

CardId = NewType("CardId", str)

ARTICLE_PATTERN = re.compile(r"^(der|die|das)\s+", re.IGNORECASE)


def make_card_id(word: str) -> CardId:
    """Normalize a word into its identity key (case and article are kept)"""
    return CardId((word or "").strip())


class CardStatus(Enum):
    """Study status of a word"""
    KNOWN = "known"
    UNKNOWN = "unknown"
    REVIEW = "review"


class StudyMode(Enum):
    """Ways of building a study session"""
    PAGE = "page"
    ALL = "all"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Card:
    """A single vocabulary flashcard"""

    word: str
    pronunciation: str = ""
    translation_primary: str = ""
    translation_secondary: str = ""
    example_sentence: str = ""

    @property
    def card_id(self) -> CardId:
        return make_card_id(self.word)

    @property
    def display_word(self) -> str:
        """Word without a leading der/die/das"""
        stripped = ARTICLE_PATTERN.sub("", self.word).strip()
        return stripped or self.word


@dataclass
class ProgressStats:
    """Aggregate progress for a set of words"""

    total: int = 0
    known: int = 0
    unknown: int = 0
    review: int = 0
    completion: int = 0


@dataclass
class TranslationResult:
    """Outcome of a word translation lookup"""

    word: str
    translation: str | None
    fallback_url: str
    source: str = ""

    @property
    def ok(self) -> bool:
        return bool(self.translation)
