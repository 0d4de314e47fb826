"""
Selection controller: decides which card comes next
"""

import asyncio
import logging
from collections.abc import Callable
from enum import Enum

from ..errors import CardsExhausted, NoHistory, PoolEmpty
from ..models import Card
from ..pages.page_store import PageStore
from ..pool.card_pool import CardPool

logger = logging.getLogger(__name__)


class SelectionState(Enum):
    """Steps of a single card selection"""
    IDLE = "idle"
    DRAWING = "drawing"
    PREFETCHING = "prefetching"
    RECYCLING = "recycling"
    EXHAUSTED = "exhausted"


class SelectionController:
    """Coordinates page loading and card drawing for one session"""

    def __init__(
        self,
        page_store: PageStore,
        pool: CardPool,
        prefetch_threshold: int = 20,
        prefetch_batch_size: int = 2,
        on_cards_ingested: Callable[[int], None] | None = None,
    ):
        self.page_store = page_store
        self.pool = pool
        self.prefetch_threshold = prefetch_threshold
        self.prefetch_batch_size = prefetch_batch_size
        self._on_cards_ingested = on_cards_ingested

        self.state = SelectionState.IDLE
        self._is_selecting = False
        self._prefetch_task: asyncio.Task | None = None

    @property
    def is_selecting(self) -> bool:
        return self._is_selecting

    @property
    def is_prefetching(self) -> bool:
        return self._prefetch_task is not None and not self._prefetch_task.done()

    async def next(self) -> Card | None:
        """
        Select the next card

        Returns:
            The new current card, or None when the call was dropped because
            another selection is running or an unexpected error left nothing
            to show

        Raises:
            CardsExhausted: if neither loading nor recycling yields a card
        """
        if self._is_selecting:
            logger.debug("Selection already in progress, dropping request")
            return None

        self._is_selecting = True
        try:
            self.maybe_prefetch()
            return await self._select()
        except CardsExhausted:
            raise
        except Exception as e:
            logger.error(f"Error selecting next card: {e}")
            return self._fallback_draw()
        finally:
            self._is_selecting = False
            if self.state is not SelectionState.EXHAUSTED:
                self.state = SelectionState.IDLE

    def previous(self) -> Card | None:
        """Go back to the previous card, None if there is none"""
        if self._is_selecting:
            logger.debug("Selection in progress, ignoring back navigation")
            return None

        try:
            card = self.pool.go_back()
        except NoHistory:
            logger.debug("No earlier card to go back to")
            return None

        self.state = SelectionState.IDLE
        return card

    def maybe_prefetch(self) -> bool:
        """
        Start a background page load when the pool is running low

        Returns:
            True if a prefetch task was started
        """
        if self.is_prefetching or self.page_store.is_loading:
            return False
        if self.pool.available_count >= self.prefetch_threshold:
            return False
        if not self.page_store.has_unloaded_pages:
            return False

        self._start_prefetch()
        return True

    async def wait_for_prefetch(self) -> int:
        """Wait for an in-flight prefetch, returns the number of cards it added"""
        if not self.is_prefetching:
            return 0
        return await asyncio.shield(self._prefetch_task)

    async def shutdown(self):
        """Let a pending prefetch finish before the session is dropped"""
        if self.is_prefetching:
            await self.wait_for_prefetch()

    async def _select(self) -> Card:
        self.state = SelectionState.DRAWING
        can_prefetch = True
        can_recycle = True

        while True:
            if self.state is SelectionState.DRAWING:
                try:
                    return self.pool.draw_next()
                except PoolEmpty:
                    if can_prefetch and (self.is_prefetching or self.page_store.has_unloaded_pages):
                        self.state = SelectionState.PREFETCHING
                    elif can_recycle:
                        self.state = SelectionState.RECYCLING
                    else:
                        self.state = SelectionState.EXHAUSTED

            elif self.state is SelectionState.PREFETCHING:
                can_prefetch = False
                await self._prefetch_until_cards()
                self.state = SelectionState.DRAWING

            elif self.state is SelectionState.RECYCLING:
                can_recycle = False
                if not self.pool.recycle():
                    logger.debug("Nothing to recycle")
                self.state = SelectionState.DRAWING

            else:
                logger.warning(
                    f"No cards available: {self.pool.total_cards} cards loaded, "
                    f"{len(self.page_store.loaded_pages)}/{self.page_store.total_pages} pages"
                )
                raise CardsExhausted("No cards available")

    async def _prefetch_until_cards(self):
        """Load batches until the pool has a card or no page is left"""
        if self.is_prefetching:
            await self.wait_for_prefetch()

        while not self.pool.available_count and self.page_store.has_unloaded_pages:
            self._start_prefetch()
            await self.wait_for_prefetch()

    def _start_prefetch(self) -> asyncio.Task:
        self._prefetch_task = asyncio.create_task(self._prefetch())
        return self._prefetch_task

    async def _prefetch(self) -> int:
        try:
            cards = await self.page_store.load_next_unloaded_pages(self.prefetch_batch_size)
        except Exception as e:
            logger.error(f"Error prefetching pages: {e}")
            return 0

        added = self.pool.ingest(cards)
        if added and self._on_cards_ingested:
            self._on_cards_ingested(added)
        return added

    def _fallback_draw(self) -> Card | None:
        if not self.pool.available_count:
            return None
        try:
            return self.pool.draw_direct()
        except Exception as e:
            logger.error(f"Fallback draw failed: {e}")
            return None
