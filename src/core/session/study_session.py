"""
Study session: one mode, one pool, one selection controller
"""

import logging
import random
from collections.abc import Callable, Iterable

from ...text_parser import matches_custom_words
from ...utils import Timer
from ..errors import CardsExhausted
from ..models import Card, CardStatus, ProgressStats, StudyMode
from ..pages.page_source import PageSource
from ..pages.page_store import PageStore
from ..pool.card_pool import CardPool
from ..progress.progress_store import ProgressStore
from .selection_controller import SelectionController

logger = logging.getLogger(__name__)

CardListener = Callable[[Card | None], None]
StatsListener = Callable[[ProgressStats], None]


class StudySession:
    """Owns all state of a study session; a new mode starts a fresh pool"""

    def __init__(
        self,
        source: PageSource,
        progress: ProgressStore,
        total_pages: int = 25,
        recent_capacity: int = 6,
        recycle_low_water_mark: int = 10,
        prefetch_threshold: int = 20,
        prefetch_batch_size: int = 2,
        initial_pages: int = 2,
        rng: random.Random | None = None,
        on_card_changed: CardListener | None = None,
        on_stats_changed: StatsListener | None = None,
    ):
        self.source = source
        self.progress = progress
        self.total_pages = total_pages
        self.recent_capacity = recent_capacity
        self.recycle_low_water_mark = recycle_low_water_mark
        self.prefetch_threshold = prefetch_threshold
        self.prefetch_batch_size = prefetch_batch_size
        self.initial_pages = initial_pages
        self._rng = rng
        self._card_listeners: list[CardListener] = []
        self._stats_listeners: list[StatsListener] = []
        if on_card_changed:
            self._card_listeners.append(on_card_changed)
        if on_stats_changed:
            self._stats_listeners.append(on_stats_changed)

        self.mode: StudyMode | None = None
        self.page_store: PageStore | None = None
        self.pool: CardPool | None = None
        self.controller: SelectionController | None = None
        self.is_flipped = False
        self.timer = Timer()

    @property
    def current(self) -> Card | None:
        return self.pool.current if self.pool else None

    @property
    def total_shown(self) -> int:
        return self.pool.total_shown if self.pool else 0

    @property
    def total_cards(self) -> int:
        return self.pool.total_cards if self.pool else 0

    @property
    def is_active(self) -> bool:
        return self.controller is not None

    @property
    def can_go_back(self) -> bool:
        return self.pool.can_go_back() if self.pool else False

    @property
    def duration(self) -> float:
        """Seconds since the current mode was selected"""
        return self.timer.elapsed() or 0.0

    async def select_mode(self, mode: StudyMode | str, params: dict | None = None) -> Card:
        """
        Start studying in the given mode and show the first card

        Args:
            mode: page, all or custom
            params: {"page": n} for page mode, {"words": [...]} for custom mode

        Raises:
            CardsExhausted: if the mode yields no cards
            ValueError: on missing or invalid parameters
        """
        mode = StudyMode(mode)
        params = params or {}

        if self.controller:
            await self.controller.shutdown()

        if mode is StudyMode.PAGE:
            page = int(params.get("page", 0))
            if not 1 <= page <= self.total_pages:
                raise ValueError(f"Page must be between 1 and {self.total_pages}")
            self._build(page_indices=[page])
            cards = await self.page_store.load_all_pages()
            empty_message = f"No cards found on page {page}"
        elif mode is StudyMode.ALL:
            self._build()
            cards = await self.page_store.load_next_unloaded_pages(self.initial_pages)
            empty_message = "No cards found"
        else:
            words = [w.strip() for w in params.get("words", []) if w and w.strip()]
            if not words:
                raise ValueError("Please enter some words")
            self._build()
            cards = await self.page_store.load_all_pages()
            cards = [card for card in cards if matches_custom_words(card, words)]
            empty_message = "No matching words found"

        self.mode = mode
        self.pool.reset(cards)
        self.is_flipped = False
        self.timer.start()
        logger.info(f"Started {mode.value} session with {len(cards)} cards")

        if not cards and (mode is not StudyMode.ALL or self.page_store.all_pages_loaded()):
            self._emit_card(None)
            raise CardsExhausted(empty_message)

        self._emit_stats()
        card = await self.next()
        if card is None:
            raise CardsExhausted(empty_message)
        return card

    async def next(self) -> Card | None:
        """Advance to a new card; None if the request was dropped"""
        self._require_active()
        try:
            card = await self.controller.next()
        except CardsExhausted:
            self._emit_card(None)
            raise

        if card is not None:
            self.is_flipped = False
            self._emit_card(card)
        return card

    def previous(self) -> Card | None:
        """Go back one card; None if there is no earlier card"""
        self._require_active()
        card = self.controller.previous()
        if card is not None:
            self.is_flipped = False
            self._emit_card(card)
        return card

    def flip(self) -> bool:
        """Toggle the visible side of the current card"""
        if self.current is None:
            return False
        self.is_flipped = not self.is_flipped
        return self.is_flipped

    def mark(self, status: CardStatus | str) -> Card | None:
        """Record a status for the current card and return it"""
        card = self.current
        if card is None:
            return None
        self.progress.mark(card.word, status)
        self._emit_stats()
        return card

    def stats(self) -> ProgressStats:
        """Progress over the cards loaded in this session"""
        words: Iterable[str] = [card.word for card in self.pool.all_cards] if self.pool else []
        return self.progress.stats(words)

    async def close(self):
        """Finish pending background work"""
        self.timer.stop()
        if self.controller:
            await self.controller.shutdown()

    def _build(self, page_indices: list[int] | None = None):
        self.page_store = PageStore(
            self.source, total_pages=self.total_pages, page_indices=page_indices
        )
        self.pool = CardPool(
            capacity=self.recent_capacity,
            low_water_mark=self.recycle_low_water_mark,
            all_pages_loaded=self.page_store.all_pages_loaded,
            rng=self._rng,
        )
        self.controller = SelectionController(
            self.page_store,
            self.pool,
            prefetch_threshold=self.prefetch_threshold,
            prefetch_batch_size=self.prefetch_batch_size,
            on_cards_ingested=lambda added: self._emit_stats(),
        )

    def _require_active(self):
        if not self.is_active:
            raise RuntimeError("No study mode selected")

    def _emit_card(self, card: Card | None):
        for listener in self._card_listeners:
            try:
                listener(card)
            except Exception as e:
                logger.error(f"Card listener failed: {e}")

    def _emit_stats(self):
        if not self._stats_listeners:
            return
        stats = self.stats()
        for listener in self._stats_listeners:
            try:
                listener(stats)
            except Exception as e:
                logger.error(f"Stats listener failed: {e}")
