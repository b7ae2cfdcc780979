# deck_service/server/session.py

from http import HTTPStatus
from http.server import BaseHTTPRequestHandler
from typing import Optional

from deck_service.common.constants import (
    DEFAULT_PACKS, MAX_PACKS, MIN_PACKS,
    SHOW_DRAWN,
    STATUS_BAD_REQUEST, STATUS_METHOD_NOT_ALLOWED, STATUS_TOO_MANY_PACKS, STATUS_INTERNAL_ERROR,
    CONTENT_JSON, CONTENT_TEXT,
)
from deck_service.common.errors import DeckError
from deck_service.common.logging_utils import get_logger, log_request
from deck_service.common.protocol import (
    parse_route,
    parse_int,
    build_deck_payload,
    build_pile_payload,
    NewDeckRoute,
    DeckRoute,
    ProtocolError,
)
from deck_service.server.engine import DeckEngine

log = get_logger("server.session")


def _pack_count(raw: Optional[str]) -> int:
    # Unparseable pack counts fall back to the default
    packs = parse_int(raw) if raw is not None else None
    return DEFAULT_PACKS if packs is None else packs


class DeckRequestHandler(BaseHTTPRequestHandler):
    """
    One instance per HTTP request. The engine is attached to the server
    object (see server/main.py: build_server).
    """

    server_version = "DeckService/1.0"

    @property
    def engine(self) -> DeckEngine:
        return self.server.engine  # type: ignore[attr-defined]

    def do_GET(self) -> None:
        self._dispatch()

    def do_POST(self) -> None:
        self._dispatch()

    def do_PUT(self) -> None:
        self._dispatch()

    def do_DELETE(self) -> None:
        self._dispatch()

    def do_PATCH(self) -> None:
        self._dispatch()

    def do_HEAD(self) -> None:
        self._dispatch()

    def do_OPTIONS(self) -> None:
        self._dispatch()

    def send_error(self, code: int, message: Optional[str] = None, explain: Optional[str] = None) -> None:
        # Verbs without a do_* method land here as 501
        if code == HTTPStatus.NOT_IMPLEMENTED:
            self.close_connection = True
            self._send_error(STATUS_METHOD_NOT_ALLOWED, "Method not allowed")
            return
        super().send_error(code, message, explain)

    def log_message(self, format: str, *args) -> None:
        log.debug(f"{self.address_string()} {format % args}")

    # -------------------------
    # Dispatch
    # -------------------------
    def _dispatch(self) -> None:
        try:
            route = parse_route(self.command, self.path)
            if isinstance(route, NewDeckRoute):
                self._new_deck(route)
            else:
                self._deck_action(route)
        except ProtocolError as e:
            self._send_error(e.status, str(e))
        except DeckError as e:
            log.warning(f"{self.command} {self.path}: {e.kind.name} {e.message}")
            self._send_error(e.kind.http_status, e.message)
        except Exception:
            log.exception(f"Unhandled error for {self.command} {self.path}")
            self._send_error(STATUS_INTERNAL_ERROR, "Internal server error")

    def _new_deck(self, route: NewDeckRoute) -> None:
        packs = _pack_count(route.packs)
        if packs > MAX_PACKS:
            self._send_error(STATUS_TOO_MANY_PACKS, "Too many decks")
            return
        if packs < MIN_PACKS:
            self._send_error(STATUS_BAD_REQUEST, "Invalid number of packs")
            return

        deck = self.engine.create_deck(packs, route.jokers)
        self._send_json(build_deck_payload(deck.deck_id, deck.cards, deck.remaining),
                        note=f"new deck packs={packs} jokers={route.jokers}")

    def _deck_action(self, route: DeckRoute) -> None:
        engine = self.engine

        if route.action == "draw":
            res = engine.draw(route.deck_id, route.params[0])
            body = build_deck_payload(res.deck_id, res.cards, res.remaining, drawn=res.drawn)
        elif route.action == "shuffle":
            deck = engine.shuffle(route.deck_id)
            body = build_deck_payload(deck.deck_id, deck.cards, deck.remaining)
        elif route.action == "add":
            deck = engine.add_cards(route.deck_id, route.query_value("cards"))
            body = build_deck_payload(deck.deck_id, deck.cards, deck.remaining)
        else:
            show_type, count = route.params
            if show_type == SHOW_DRAWN:
                body = build_pile_payload(engine.show_drawn(route.deck_id, count))
            else:
                body = build_pile_payload(engine.show_upcoming(route.deck_id, count))

        self._send_json(body, note=route.action)

    # -------------------------
    # Responses
    # -------------------------
    def _send_json(self, body: bytes, note: str = "") -> None:
        self._send(200, CONTENT_JSON, body, note)

    def _send_error(self, status: int, message: str) -> None:
        self._send(status, CONTENT_TEXT, (message + "\n").encode("utf-8"), note=message)

    def _send(self, status: int, content_type: str, body: bytes, note: str) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)
        log_request(log, self.command, self.path, self.client_address, status, body, note=note)
