# deck_service/common/cards.py

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from .constants import (
    SUITS, RANKS, JOKER, JOKERS_PER_PACK,
    MIN_PACKS, MAX_PACKS,
    IMAGE_PREFIX, IMAGE_EXT,
)
from .errors import invalid_argument


@dataclass(frozen=True)
class Card:
    code: str         # "as", "10h", "joker"
    rank: str = ""
    suit: str = ""    # empty for jokers and raw additions
    image: str = ""

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Card":
        return cls(
            code=raw["code"],
            rank=raw.get("rank", ""),
            suit=raw.get("suit", ""),
            image=raw.get("image", ""),
        )


@dataclass(frozen=True)
class DrawnCard:
    code: str
    time: str  # RFC3339

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "DrawnCard":
        return cls(code=raw["code"], time=raw["time"])


def image_for(code: str) -> str:
    return f"{IMAGE_PREFIX}{code}{IMAGE_EXT}"


def make_card(rank: str, suit: str) -> Card:
    code = rank + suit
    return Card(code=code, rank=rank, suit=suit, image=image_for(code))


def make_joker() -> Card:
    return Card(code=JOKER, rank=JOKER, suit="", image=image_for(JOKER))


def generate_cards(packs: int, jokers: bool = False) -> List[Card]:
    """
    Build `packs` standard packs in a fixed order: suits h, d, c, s and,
    within each suit, ranks 2..10, j, q, k, a. With jokers, every pack is
    followed by two joker cards.
    """
    if isinstance(packs, bool) or not isinstance(packs, int):
        raise invalid_argument("Invalid number of packs")
    if not MIN_PACKS <= packs <= MAX_PACKS:
        raise invalid_argument(f"Number of packs must be {MIN_PACKS}..{MAX_PACKS}")

    cards: List[Card] = []
    for _ in range(packs):
        cards.extend(make_card(rank, suit) for suit in SUITS for rank in RANKS)
        if jokers:
            cards.extend(make_joker() for _ in range(JOKERS_PER_PACK))
    return cards


def parse_cards(raw: Optional[str]) -> List[Card]:
    """
    Turn "as,10h,joker" into code-only cards. Blank entries are skipped and
    codes are not checked against the rank/suit vocabulary.
    """
    if not raw:
        return []
    return [Card(code=part.strip()) for part in raw.split(",") if part.strip()]
