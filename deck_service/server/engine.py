# deck_service/server/engine.py

import random
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Union

from deck_service.common.cards import Card, DrawnCard, generate_cards, parse_cards
from deck_service.common.errors import invalid_argument, empty_deck
from deck_service.common.logging_utils import get_logger
from deck_service.common.protocol import parse_int
from deck_service.server.serializer import RequestSerializer
from deck_service.server.store import DeckStore

log = get_logger("server.engine")

Count = Union[int, str]


@dataclass(frozen=True)
class DeckView:
    deck_id: str
    cards: List[Card]
    remaining: int


@dataclass(frozen=True)
class DrawResult:
    deck_id: str
    cards: List[Card]
    drawn: List[DrawnCard]
    remaining: int


def _local_now() -> datetime:
    return datetime.now().astimezone()


def parse_count(raw: Count, minimum: int, message: str = "Invalid number of cards") -> int:
    """Accept an int or a decimal path segment; reject anything below `minimum`."""
    if isinstance(raw, bool):
        raise invalid_argument(message)
    if isinstance(raw, str):
        parsed = parse_int(raw)
        if parsed is None:
            raise invalid_argument(message)
        raw = parsed
    if not isinstance(raw, int) or raw < minimum:
        raise invalid_argument(message)
    return raw


class DeckEngine:
    """
    Deck operations on top of a DeckStore.

    draw and shuffle are queued on the serializer's worker; create, add and
    the show operations run under the serializer's lock in the caller thread.
    The *_unlocked methods assume the caller already holds that lock.
    """

    def __init__(
        self,
        store: DeckStore,
        serializer: RequestSerializer,
        clock: Optional[Callable[[], datetime]] = None,
        rng_factory: Callable[[], random.Random] = random.Random,
    ) -> None:
        self.store = store
        self.serializer = serializer
        self.clock = clock or _local_now
        self.rng_factory = rng_factory

    # -------------------------
    # Public operations
    # -------------------------
    def create_deck(self, packs: int = 1, jokers: bool = False) -> DeckView:
        cards = generate_cards(packs, jokers)
        return self.serializer.locked(self._create_unlocked, cards)

    def draw(self, deck_id: str, count: Count) -> DrawResult:
        n = parse_count(count, minimum=1)
        return self.serializer.call(self._draw_unlocked, deck_id, n)

    def shuffle(self, deck_id: str) -> DeckView:
        return self.serializer.call(self._shuffle_unlocked, deck_id)

    def add_cards(self, deck_id: str, raw_cards: Optional[str]) -> DeckView:
        return self.serializer.locked(self._add_unlocked, deck_id, parse_cards(raw_cards))

    def show_drawn(self, deck_id: str, count: Count) -> List[DrawnCard]:
        return self.serializer.locked(self._show_drawn_unlocked, deck_id, count)

    def show_upcoming(self, deck_id: str, count: Count) -> List[Card]:
        return self.serializer.locked(self._show_upcoming_unlocked, deck_id, count)

    # -------------------------
    # Critical sections
    # -------------------------
    def _create_unlocked(self, cards: List[Card]) -> DeckView:
        deck_id = str(uuid.uuid4())
        self.store.create(deck_id, cards)
        log.info(f"Created deck {deck_id} with {len(cards)} cards")
        return DeckView(deck_id=deck_id, cards=cards, remaining=len(cards))

    def _draw_unlocked(self, deck_id: str, count: int) -> DrawResult:
        rec = self.store.get(deck_id)
        upcoming = rec.upcoming
        if not upcoming:
            raise empty_deck()

        count = min(count, len(upcoming))
        taken, upcoming = upcoming[:count], upcoming[count:]

        stamp = self.clock().isoformat(timespec="seconds")
        drawn_now = [DrawnCard(code=c.code, time=stamp) for c in taken]
        self.store.update_drawn_and_upcoming(deck_id, rec.drawn + drawn_now, upcoming)

        log.debug(f"Deck {deck_id}: drew {count}, {len(upcoming)} remaining")
        return DrawResult(deck_id=deck_id, cards=taken, drawn=drawn_now, remaining=len(upcoming))

    def _shuffle_unlocked(self, deck_id: str) -> DeckView:
        upcoming = list(self.store.get(deck_id).upcoming)
        self.rng_factory().shuffle(upcoming)
        self.store.update_upcoming(deck_id, upcoming)

        log.debug(f"Deck {deck_id}: shuffled {len(upcoming)} cards")
        return DeckView(deck_id=deck_id, cards=upcoming, remaining=len(upcoming))

    def _add_unlocked(self, deck_id: str, new_cards: List[Card]) -> DeckView:
        rec = self.store.get(deck_id)
        upcoming = rec.upcoming + new_cards
        self.store.update_upcoming(deck_id, upcoming)

        log.debug(f"Deck {deck_id}: added {len(new_cards)} cards, {len(upcoming)} remaining")
        return DeckView(deck_id=deck_id, cards=rec.full + upcoming, remaining=len(upcoming))

    def _show_drawn_unlocked(self, deck_id: str, count: Count) -> List[DrawnCard]:
        drawn = self.store.get(deck_id).drawn
        n = _pile_count(count, len(drawn))
        return drawn[len(drawn) - n:] if n else drawn

    def _show_upcoming_unlocked(self, deck_id: str, count: Count) -> List[Card]:
        upcoming = self.store.get(deck_id).upcoming
        n = _pile_count(count, len(upcoming))
        return upcoming[:n] if n else upcoming


def _pile_count(raw: Count, pile_len: int) -> int:
    n = parse_count(raw, minimum=0, message="Invalid count")
    if n > pile_len:
        raise invalid_argument("Invalid count")
    return n
