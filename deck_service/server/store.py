# deck_service/server/store.py

import json
import sqlite3
import threading
from dataclasses import dataclass
from typing import List, Sequence

from deck_service.common.cards import Card, DrawnCard
from deck_service.common.errors import DeckError, ErrorKind, not_found, store_failure
from deck_service.common.logging_utils import get_logger

log = get_logger("server.store")

_SCHEMA = """CREATE TABLE IF NOT EXISTS decks (
    id TEXT PRIMARY KEY,
    cards TEXT NOT NULL,     -- full card set as generated
    drawn TEXT NOT NULL,     -- drawn pile, oldest first
    upcoming TEXT NOT NULL   -- next card first
)"""


@dataclass(frozen=True)
class DeckRecord:
    deck_id: str
    full: List[Card]
    drawn: List[DrawnCard]
    upcoming: List[Card]


def _dump(items: Sequence[object]) -> str:
    return json.dumps([i.to_dict() for i in items])  # type: ignore[attr-defined]


class DeckStore:
    """
    SQLite-backed deck persistence, one row per deck.
    Every write is a single transaction, so a reader never sees drawn updated
    without upcoming (or the reverse).
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._lock = threading.RLock()
        try:
            self._conn = sqlite3.connect(path, check_same_thread=False)
            with self._conn:
                self._conn.execute(_SCHEMA)
        except sqlite3.Error as e:
            raise store_failure(f"Error opening deck store: {e}") from e
        log.info(f"Deck store ready at {path}")

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "DeckStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def create(self, deck_id: str, full: Sequence[Card]) -> None:
        cards_json = _dump(full)
        with self._lock:
            try:
                with self._conn:
                    self._conn.execute(
                        "INSERT INTO decks (id, cards, drawn, upcoming) VALUES (?, ?, ?, ?)",
                        (deck_id, cards_json, "[]", cards_json),
                    )
            except sqlite3.IntegrityError as e:
                raise DeckError(ErrorKind.DUPLICATE_KEY, "Deck already exists") from e
            except sqlite3.Error as e:
                raise store_failure("Error creating deck") from e

    def get(self, deck_id: str) -> DeckRecord:
        with self._lock:
            try:
                row = self._conn.execute(
                    "SELECT cards, drawn, upcoming FROM decks WHERE id = ?", (deck_id,)
                ).fetchone()
            except sqlite3.Error as e:
                raise store_failure("Error reading deck") from e
        if row is None:
            raise not_found()

        cards_json, drawn_json, upcoming_json = row
        try:
            return DeckRecord(
                deck_id=deck_id,
                full=[Card.from_dict(c) for c in json.loads(cards_json)],
                drawn=[DrawnCard.from_dict(d) for d in json.loads(drawn_json)],
                upcoming=[Card.from_dict(c) for c in json.loads(upcoming_json)],
            )
        except (ValueError, KeyError, TypeError) as e:
            log.error(f"Corrupt record for deck {deck_id}: {e}")
            raise store_failure("Error parsing deck") from e

    def update_upcoming(self, deck_id: str, upcoming: Sequence[Card]) -> None:
        self._update(deck_id, "UPDATE decks SET upcoming = ? WHERE id = ?",
                     (_dump(upcoming), deck_id))

    def update_drawn_and_upcoming(self, deck_id: str, drawn: Sequence[DrawnCard],
                                  upcoming: Sequence[Card]) -> None:
        self._update(deck_id, "UPDATE decks SET drawn = ?, upcoming = ? WHERE id = ?",
                     (_dump(drawn), _dump(upcoming), deck_id))

    def _update(self, deck_id: str, sql: str, args: tuple) -> None:
        with self._lock:
            try:
                with self._conn:
                    cur = self._conn.execute(sql, args)
            except sqlite3.Error as e:
                raise store_failure("Error updating deck") from e
        if cur.rowcount == 0:
            raise not_found()
