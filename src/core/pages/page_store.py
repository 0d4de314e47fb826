"""
Page store: loads and tracks word list pages
"""

import asyncio
import logging
from collections.abc import Iterable

from ...csv_parser import parse_cards
from ..errors import FetchFailure
from ..models import Card
from .page_source import PageSource

logger = logging.getLogger(__name__)


class PageStore:
    """Fetches word list pages by index and remembers which were loaded"""

    def __init__(
        self,
        source: PageSource,
        total_pages: int = 25,
        page_indices: Iterable[int] | None = None,
    ):
        """
        Initialize the page store

        Args:
            source: Where page text comes from
            total_pages: Number of pages, used when page_indices is not given
            page_indices: Explicit set of pages this store covers
        """
        self.source = source
        if page_indices is None:
            page_indices = range(1, total_pages + 1)
        self._page_indices = sorted(set(page_indices))
        self._loaded_pages: set[int] = set()
        self._is_loading = False

    @property
    def page_indices(self) -> list[int]:
        return list(self._page_indices)

    @property
    def total_pages(self) -> int:
        return len(self._page_indices)

    @property
    def loaded_pages(self) -> set[int]:
        return set(self._loaded_pages)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def has_unloaded_pages(self) -> bool:
        return not self.all_pages_loaded()

    def all_pages_loaded(self) -> bool:
        return len(self._loaded_pages) == len(self._page_indices)

    def unloaded_pages(self, count: int | None = None) -> list[int]:
        """Unloaded page indices in ascending order"""
        pages = [index for index in self._page_indices if index not in self._loaded_pages]
        return pages if count is None else pages[:count]

    async def load_page(self, index: int) -> list[Card]:
        """
        Load a single page

        The page is marked as loaded whatever the outcome, so a missing or
        broken page is never requested again in this session.

        Returns:
            Cards parsed from the page, empty on any failure
        """
        try:
            text = await self.source.fetch_page(index)
            if text is None:
                logger.warning(f"Page {index} not found")
                return []

            cards = parse_cards(text)
            logger.info(f"Loaded {len(cards)} cards from page {index}")
            return cards
        except FetchFailure as e:
            logger.warning(f"Error loading page {index}: {e}")
            return []
        except Exception as e:
            logger.error(f"Unexpected error loading page {index}: {e}")
            return []
        finally:
            self._loaded_pages.add(index)

    async def load_next_unloaded_pages(self, count: int) -> list[Card]:
        """
        Load up to `count` pages that have not been loaded yet

        Pages are fetched concurrently; cards come back in ascending page
        order. Returns an empty list without touching state when nothing is
        left or another batch is still in flight.
        """
        if self._is_loading:
            logger.debug("Page batch already in flight, skipping")
            return []

        pages = self.unloaded_pages(count)
        if not pages:
            return []

        self._is_loading = True
        try:
            logger.debug(f"Loading pages {pages}")
            results = await asyncio.gather(*(self.load_page(index) for index in pages))
        finally:
            self._is_loading = False

        cards = [card for page_cards in results for card in page_cards]
        logger.info(
            f"Loaded {len(cards)} cards from pages {pages} "
            f"({len(self._loaded_pages)}/{self.total_pages} pages loaded)"
        )
        return cards

    async def load_all_pages(self) -> list[Card]:
        """Load every remaining page in one batch"""
        return await self.load_next_unloaded_pages(self.total_pages)
