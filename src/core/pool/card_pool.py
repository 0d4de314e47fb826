"""
Card pool: random selection with a short no-repeat window
"""

import logging
import random
from collections.abc import Callable, Iterable

from ..errors import NoHistory, PoolEmpty
from ..models import Card, CardId

logger = logging.getLogger(__name__)


class CardPool:
    """
    Working set of cards for one study session

    Cards move between three places:
    - available: eligible for the next random draw
    - recently_shown: the last `capacity` drawn cards, newest last
    - neither: drawn and evicted from the history while pages were still
      loading; such cards only come back through a full recycle

    `current` is always the newest entry of recently_shown.
    """

    def __init__(
        self,
        capacity: int = 6,
        low_water_mark: int = 10,
        all_pages_loaded: Callable[[], bool] | None = None,
        rng: random.Random | None = None,
    ):
        self.capacity = capacity
        self.low_water_mark = low_water_mark
        self._all_pages_loaded = all_pages_loaded or (lambda: True)
        self._rng = rng or random.Random()

        self._all_cards: list[Card] = []
        self._card_ids: set[CardId] = set()
        self._available: list[Card] = []
        self._recent: list[Card] = []
        self._forward: list[Card] = []
        self.current: Card | None = None
        self.total_shown = 0

    @property
    def all_cards(self) -> list[Card]:
        return list(self._all_cards)

    @property
    def available(self) -> list[Card]:
        return list(self._available)

    @property
    def recently_shown(self) -> list[Card]:
        return list(self._recent)

    @property
    def available_count(self) -> int:
        return len(self._available)

    @property
    def total_cards(self) -> int:
        return len(self._all_cards)

    def can_go_back(self) -> bool:
        return len(self._recent) > 1

    def reset(self, cards: Iterable[Card]):
        """Replace the whole pool with a fresh, shuffled card set"""
        self._card_ids = set()
        self._recent = []
        self._forward = []
        self.current = None
        self.total_shown = 0

        self._all_cards = self._unique(cards)
        self._available = list(self._all_cards)
        self._rng.shuffle(self._available)
        logger.debug(f"Pool reset with {len(self._all_cards)} cards")

    def ingest(self, new_cards: Iterable[Card]) -> int:
        """
        Add newly loaded cards without touching counters or history

        Returns:
            Number of cards actually added
        """
        added = self._unique(new_cards)
        if not added:
            return 0

        self._all_cards.extend(added)
        self._available.extend(added)
        self._rng.shuffle(self._available)
        logger.debug(
            f"Ingested {len(added)} cards "
            f"({len(self._available)} available, {len(self._all_cards)} total)"
        )
        return len(added)

    def draw_next(self) -> Card:
        """
        Draw the next card

        A card left behind by go_back() is drawn again first; otherwise the
        card is picked uniformly at random from the available set.

        Raises:
            PoolEmpty: if no card is available
        """
        card = self._take_forward()
        if card is None:
            if not self._available:
                raise PoolEmpty("No cards available")
            card = self._available.pop(self._rng.randrange(len(self._available)))

        self._show(card, allow_recycle=True)
        return card

    def draw_direct(self) -> Card:
        """Plain random draw without forward history or eviction recycling"""
        if not self._available:
            raise PoolEmpty("No cards available")
        card = self._available.pop(self._rng.randrange(len(self._available)))
        self._show(card, allow_recycle=False)
        return card

    def recycle(self) -> bool:
        """
        Refill the available set once the page supply is used up

        Cards outside the recency window come back first. When the whole
        session fits in the window, the history except the current card is
        returned instead.

        Returns:
            True if any card became available
        """
        excluded = {card.card_id for card in self._recent}
        excluded.update(card.card_id for card in self._available)
        candidates = [card for card in self._all_cards if card.card_id not in excluded]

        if candidates:
            self._available.extend(candidates)
            logger.info(f"Recycled {len(candidates)} cards outside the recent window")
        elif len(self._recent) > 1:
            returned = self._recent[:-1]
            self._recent = self._recent[-1:]
            self._available.extend(returned)
            logger.info(f"Recycled {len(returned)} recently shown cards")
        elif self._recent:
            # Single-card session: the only card has to repeat
            self._available.extend(self._recent)
            self._recent = []
            logger.info("Recycled the only card in the session")
        else:
            return False

        self._rng.shuffle(self._available)
        return True

    def go_back(self) -> Card:
        """
        Step back to the previously shown card

        Raises:
            NoHistory: if there is no earlier card in the history
        """
        if not self.can_go_back():
            raise NoHistory("No previous card")

        leaving = self._recent.pop()
        if self._find_available(leaving.card_id) is None:
            self._available.append(leaving)
        self._forward.append(leaving)

        self.current = self._recent[-1]
        self.total_shown = max(0, self.total_shown - 1)

        index = self._find_available(self.current.card_id)
        if index is not None:
            self._available.pop(index)

        return self.current

    def _show(self, card: Card, allow_recycle: bool):
        self._recent.append(card)
        self.current = card
        self.total_shown += 1

        if len(self._recent) <= self.capacity:
            return

        evicted = self._recent.pop(0)
        if (
            allow_recycle
            and len(self._available) < self.low_water_mark
            and self._all_pages_loaded()
            and self._find_available(evicted.card_id) is None
        ):
            self._available.append(evicted)
            logger.debug(f"Returned evicted card '{evicted.word}' to the pool")

    def _take_forward(self) -> Card | None:
        while self._forward:
            card = self._forward.pop()
            index = self._find_available(card.card_id)
            if index is not None:
                return self._available.pop(index)
        return None

    def _find_available(self, card_id: CardId) -> int | None:
        for index, card in enumerate(self._available):
            if card.card_id == card_id:
                return index
        return None

    def _unique(self, cards: Iterable[Card]) -> list[Card]:
        unique = []
        for card in cards:
            card_id = card.card_id
            if not card_id:
                continue
            if card_id in self._card_ids:
                logger.debug(f"Skipping duplicate card '{card.word}'")
                continue
            self._card_ids.add(card_id)
            unique.append(card)
        return unique
