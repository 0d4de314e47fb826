"""
Shared fakes for the flashcard trainer tests
"""

import asyncio

import pytest

HEADER = "German Word,Bangla Pronunciation,Bangla Meaning,English Meaning,German sentence"


def make_csv(words: list[str]) -> str:
    """Word list page text with one row per word"""
    rows = [HEADER]
    for word in words:
        rows.append(f'{word},p-{word},b-{word},e-{word},"Satz mit {word}, bitte."')
    return "\n".join(rows) + "\n"


class FakePageSource:
    """In-memory page source; optionally blocks every fetch on a gate"""

    def __init__(self, pages: dict[int, list[str]] | None = None, word_pages: dict[int, str] | None = None):
        self.pages = {index: make_csv(words) for index, words in (pages or {}).items()}
        self.word_pages = word_pages or {}
        self.gate: asyncio.Event | None = None
        self.fetched: list[int] = []
        self.failing: set[int] = set()

    async def fetch_page(self, index: int) -> str | None:
        self.fetched.append(index)
        if self.gate is not None:
            await self.gate.wait()
        if index in self.failing:
            raise RuntimeError(f"page {index} is broken")
        return self.pages.get(index)

    async def fetch_word_page(self, index: int) -> str | None:
        return self.word_pages.get(index)


class MemoryStore:
    """Dict-backed key-value store"""

    def __init__(self):
        self.data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> bool:
        return self.data.pop(key, None) is not None


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def page_source():
    """Five pages of four words each"""
    return FakePageSource(
        {
            page: [f"Wort{page}x{n}" for n in range(1, 5)]
            for page in range(1, 6)
        }
    )
