# deck_service/common/errors.py

from enum import Enum

from .constants import HTTP_STATUS


class ErrorKind(Enum):
    INVALID_ARGUMENT = "invalid_argument"
    NOT_FOUND = "not_found"
    EMPTY_DECK = "empty_deck"
    DUPLICATE_KEY = "duplicate_key"
    STORE_FAILURE = "store_failure"

    @property
    def http_status(self) -> int:
        return HTTP_STATUS[self.value]


class DeckError(Exception):
    """Raised by the store and the engine. Callers tell failures apart by `kind`."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"DeckError({self.kind.name}, {self.message!r})"


def invalid_argument(message: str) -> DeckError:
    return DeckError(ErrorKind.INVALID_ARGUMENT, message)


def not_found() -> DeckError:
    return DeckError(ErrorKind.NOT_FOUND, "Deck not found")


def empty_deck() -> DeckError:
    return DeckError(ErrorKind.EMPTY_DECK, "Deck empty")


def store_failure(message: str) -> DeckError:
    return DeckError(ErrorKind.STORE_FAILURE, message)
