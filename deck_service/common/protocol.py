# deck_service/common/protocol.py

import json
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union
from urllib.parse import urlsplit, parse_qs

from .cards import Card, DrawnCard
from .constants import (
    STATUS_BAD_REQUEST, STATUS_METHOD_NOT_ALLOWED,
    SHOW_DRAWN, SHOW_UPCOMING,
)
from .logging_utils import get_logger

_log = get_logger("protocol")

# -------------------------
# Errors
# -------------------------
class ProtocolError(ValueError):
    """Raised when a request path or method does not match any route."""

    def __init__(self, msg: str, status: int = STATUS_BAD_REQUEST) -> None:
        super().__init__(msg)
        self.status = status


def _require(condition: bool, msg: str, status: int = STATUS_BAD_REQUEST) -> None:
    if not condition:
        _log.warning(f"ProtocolError: {msg}")
        raise ProtocolError(msg, status)


# -------------------------
# Routes
# -------------------------
@dataclass(frozen=True)
class NewDeckRoute:
    packs: Optional[str] = None     # raw path segment, parsed by the handler
    jokers: bool = False


@dataclass(frozen=True)
class DeckRoute:
    action: str                     # "draw" / "shuffle" / "add" / "show"
    deck_id: str
    params: Tuple[str, ...] = ()
    query: Dict[str, List[str]] = field(default_factory=dict)

    def query_value(self, key: str) -> Optional[str]:
        values = self.query.get(key)
        return values[0] if values else None


Route = Union[NewDeckRoute, DeckRoute]

_DECIMAL = re.compile(r"[+-]?[0-9]+")


def parse_int(raw: str) -> Optional[int]:
    """Plain decimal path segment to int, None otherwise (no spaces or underscores)."""
    if not _DECIMAL.fullmatch(raw):
        return None
    return int(raw)


def _segments(path: str) -> List[str]:
    return path.strip("/").split("/")


# -------------------------
# /deck/new/{packs}/{jokers}    GET|POST
# /deck/{id}/draw/{count}       GET
# /deck/{id}/shuffle            GET
# /deck/{id}/add?cards=a,b      POST
# /deck/{id}/show/{0|1}/{count} GET
# -------------------------
def parse_route(method: str, raw_path: str) -> Route:
    url = urlsplit(raw_path)
    parts = _segments(url.path)

    _require(len(parts) >= 2 and parts[0] == "deck" and parts[1] != "",
             "Invalid deck ID", STATUS_BAD_REQUEST)

    if parts[1] == "new":
        _require(method in ("GET", "POST"), "Method not allowed", STATUS_METHOD_NOT_ALLOWED)
        packs = parts[2] if len(parts) > 2 and parts[2] != "" else None
        jokers = len(parts) > 3 and parts[3] == "true"
        return NewDeckRoute(packs=packs, jokers=jokers)

    deck_id = parts[1]
    action = parts[2] if len(parts) > 2 else ""
    params = tuple(parts[3:])

    if method == "POST":
        _require(action == "add", "Method not allowed", STATUS_METHOD_NOT_ALLOWED)
        return DeckRoute("add", deck_id, query=parse_qs(url.query, keep_blank_values=True))

    _require(method == "GET", "Method not allowed", STATUS_METHOD_NOT_ALLOWED)

    if action == "draw":
        _require(len(params) >= 1 and params[0] != "", "Draw action requires parameters")
        return DeckRoute("draw", deck_id, params[:1])
    if action == "shuffle":
        return DeckRoute("shuffle", deck_id)
    if action == "show":
        _require(len(params) >= 2, "Show action requires parameters")
        _require(params[0] in (SHOW_DRAWN, SHOW_UPCOMING), "Invalid show type")
        return DeckRoute("show", deck_id, params[:2])

    raise ProtocolError("Method not allowed", STATUS_METHOD_NOT_ALLOWED)


# -------------------------
# JSON payloads
# -------------------------
def build_deck_payload(deck_id: str, cards: Sequence[Card], remaining: int,
                       drawn: Optional[Sequence[DrawnCard]] = None) -> bytes:
    body = {
        "deck_id": deck_id,
        "cards": [c.to_dict() for c in cards],
        "remaining": remaining,
    }
    if drawn is not None:
        body["drawn"] = [d.to_dict() for d in drawn]
    return _dump(body)


def build_pile_payload(pile: Sequence[object]) -> bytes:
    return _dump([c.to_dict() for c in pile])  # type: ignore[attr-defined]


def _dump(body: object) -> bytes:
    return (json.dumps(body) + "\n").encode("utf-8")
