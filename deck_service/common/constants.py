# deck_service/common/constants.py

# Deck composition (order matters: generated decks are order-stable)
SUITS = ["h", "d", "c", "s"]
RANKS = ["2", "3", "4", "5", "6", "7", "8", "9", "10", "j", "q", "k", "a"]
JOKER = "joker"
JOKERS_PER_PACK = 2

MIN_PACKS = 1
MAX_PACKS = 10
DEFAULT_PACKS = 1

IMAGE_PREFIX = "/static/"
IMAGE_EXT = ".svg"

# HTTP defaults
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_DB_PATH = "./deck.db"

# Show pile selectors: /deck/{id}/show/{0|1}/{count}
SHOW_DRAWN = "0"
SHOW_UPCOMING = "1"

# Error kind -> HTTP status
HTTP_STATUS = {
    "invalid_argument": 400,
    "not_found": 404,
    "empty_deck": 400,
    "duplicate_key": 409,
    "store_failure": 500,
}

STATUS_TOO_MANY_PACKS = 500
STATUS_BAD_REQUEST = 400
STATUS_METHOD_NOT_ALLOWED = 405
STATUS_INTERNAL_ERROR = 500

CONTENT_JSON = "application/json"
CONTENT_TEXT = "text/plain; charset=utf-8"
