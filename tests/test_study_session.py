"""
Tests for study sessions and their three modes
"""

import random

import pytest
from conftest import FakePageSource

from src.core.errors import CardsExhausted
from src.core.models import CardStatus, StudyMode
from src.core.progress.progress_store import ProgressStore
from src.core.session.study_session import StudySession


class TestStudySessionModes:
    """Test mode selection"""

    @pytest.fixture
    def progress(self, memory_store):
        return ProgressStore(memory_store)

    @pytest.fixture
    def session(self, page_source, progress):
        return StudySession(page_source, progress, total_pages=5, rng=random.Random(8))

    @pytest.mark.asyncio
    async def test_page_mode(self, session):
        card = await session.select_mode(StudyMode.PAGE, {"page": 2})

        assert card.word.startswith("Wort2x")
        assert session.total_cards == 4
        assert session.page_store.page_indices == [2]
        assert session.total_shown == 1
        assert session.mode is StudyMode.PAGE

    @pytest.mark.asyncio
    async def test_page_mode_accepts_string_mode(self, session):
        card = await session.select_mode("page", {"page": "3"})
        assert card.word.startswith("Wort3x")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page", [0, 6, -1])
    async def test_page_mode_out_of_range(self, session, page):
        with pytest.raises(ValueError):
            await session.select_mode(StudyMode.PAGE, {"page": page})

    @pytest.mark.asyncio
    async def test_page_mode_without_cards(self, progress):
        session = StudySession(FakePageSource({1: ["Hund"]}), progress, total_pages=3)

        with pytest.raises(CardsExhausted, match="No cards found on page 3"):
            await session.select_mode(StudyMode.PAGE, {"page": 3})

    @pytest.mark.asyncio
    async def test_all_mode_loads_initial_pages(self, session):
        card = await session.select_mode(StudyMode.ALL)

        assert card is not None
        assert {1, 2} <= session.page_store.loaded_pages
        assert session.total_cards >= 8

        await session.controller.wait_for_prefetch()
        assert session.total_cards == 16

    @pytest.mark.asyncio
    async def test_all_mode_reaches_later_pages(self, progress):
        source = FakePageSource({4: ["Hund"], 5: ["Katze"]})
        session = StudySession(source, progress, total_pages=5, initial_pages=2)

        card = await session.select_mode(StudyMode.ALL)

        assert card.word in ("Hund", "Katze")

    @pytest.mark.asyncio
    async def test_all_mode_without_cards(self, progress):
        session = StudySession(FakePageSource(), progress, total_pages=3)

        with pytest.raises(CardsExhausted):
            await session.select_mode(StudyMode.ALL)

    @pytest.mark.asyncio
    async def test_custom_mode_filters_cards(self, progress):
        source = FakePageSource(
            {1: ["der Hund", "die Katze"], 2: ["das Haus", "laufen"], 3: ["der Hundefreund"]}
        )
        session = StudySession(source, progress, total_pages=3, rng=random.Random(1))

        await session.select_mode(StudyMode.CUSTOM, {"words": ["katze", "Haus"]})

        assert sorted(card.word for card in session.pool.all_cards) == ["das Haus", "die Katze"]
        assert session.page_store.all_pages_loaded()

    @pytest.mark.asyncio
    async def test_custom_mode_requires_words(self, session):
        with pytest.raises(ValueError):
            await session.select_mode(StudyMode.CUSTOM, {"words": ["  ", ""]})

    @pytest.mark.asyncio
    async def test_custom_mode_without_matches(self, session):
        with pytest.raises(CardsExhausted, match="No matching words found"):
            await session.select_mode(StudyMode.CUSTOM, {"words": ["Zebra"]})

    @pytest.mark.asyncio
    async def test_new_mode_replaces_pool(self, session):
        await session.select_mode(StudyMode.PAGE, {"page": 1})
        await session.next()

        await session.select_mode(StudyMode.PAGE, {"page": 4})

        assert all(card.word.startswith("Wort4x") for card in session.pool.all_cards)
        assert session.total_shown == 1


class TestStudySessionActions:
    """Test navigation, flipping, marking and listeners"""

    @pytest.fixture
    def progress(self, memory_store):
        return ProgressStore(memory_store)

    @pytest.mark.asyncio
    async def test_next_and_previous(self, page_source, progress):
        session = StudySession(page_source, progress, total_pages=5, rng=random.Random(2))
        first = await session.select_mode(StudyMode.PAGE, {"page": 1})
        second = await session.next()

        assert second != first
        assert session.previous() == first
        assert await session.next() == second

    @pytest.mark.asyncio
    async def test_flip_resets_on_navigation(self, page_source, progress):
        session = StudySession(page_source, progress, total_pages=5)
        await session.select_mode(StudyMode.PAGE, {"page": 1})

        assert session.flip() is True
        assert session.is_flipped
        assert session.flip() is False

        session.flip()
        await session.next()
        assert not session.is_flipped

    @pytest.mark.asyncio
    async def test_mark_persists_status(self, page_source, progress, memory_store):
        session = StudySession(page_source, progress, total_pages=5)
        card = await session.select_mode(StudyMode.PAGE, {"page": 1})

        marked = session.mark(CardStatus.KNOWN)

        assert marked == card
        assert progress.status_of(card.word) is CardStatus.KNOWN
        assert ProgressStore(memory_store).status_of(card.word) is CardStatus.KNOWN

    @pytest.mark.asyncio
    async def test_stats_over_session_cards(self, page_source, progress):
        progress.mark("Wort9x9", CardStatus.KNOWN)
        session = StudySession(page_source, progress, total_pages=5)
        await session.select_mode(StudyMode.PAGE, {"page": 1})

        session.mark("known")
        await session.next()
        session.mark("review")

        stats = session.stats()
        assert stats.total == 4
        assert stats.known == 1
        assert stats.review == 1
        assert stats.completion == 50

    @pytest.mark.asyncio
    async def test_listeners(self, page_source, progress):
        cards = []
        stats = []
        session = StudySession(
            page_source,
            progress,
            total_pages=5,
            on_card_changed=cards.append,
            on_stats_changed=stats.append,
        )

        first = await session.select_mode(StudyMode.PAGE, {"page": 1})
        assert cards == [first]

        session.mark(CardStatus.UNKNOWN)
        assert stats[-1].unknown == 1

    @pytest.mark.asyncio
    async def test_listener_errors_are_contained(self, page_source, progress):
        def broken(card):
            raise RuntimeError("listener failed")

        session = StudySession(page_source, progress, total_pages=5, on_card_changed=broken)

        card = await session.select_mode(StudyMode.PAGE, {"page": 1})
        assert card is not None

    @pytest.mark.asyncio
    async def test_history_and_duration(self, page_source, progress):
        session = StudySession(page_source, progress, total_pages=5)
        assert not session.can_go_back
        assert session.duration == 0.0

        await session.select_mode(StudyMode.PAGE, {"page": 1})
        assert not session.can_go_back

        await session.next()
        assert session.can_go_back
        assert session.duration >= 0.0

    @pytest.mark.asyncio
    async def test_actions_require_mode(self, page_source, progress):
        session = StudySession(page_source, progress, total_pages=5)

        assert not session.is_active
        assert session.mark(CardStatus.KNOWN) is None
        assert not session.flip()
        with pytest.raises(RuntimeError):
            await session.next()

    @pytest.mark.asyncio
    async def test_close_waits_for_prefetch(self, page_source, progress):
        session = StudySession(page_source, progress, total_pages=5)
        await session.select_mode(StudyMode.ALL)

        await session.close()

        assert not session.controller.is_prefetching
