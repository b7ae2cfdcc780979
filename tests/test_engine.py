import random
import threading
from collections import Counter
from datetime import datetime, timezone

import pytest

from deck_service.common.cards import Card
from deck_service.common.errors import DeckError, ErrorKind
from deck_service.server.engine import DeckEngine, parse_count
from deck_service.server.serializer import RequestSerializer
from deck_service.server.store import DeckStore

FIXED_NOW = datetime(2026, 10, 19, 12, 30, 0, tzinfo=timezone.utc)


def codes(cards):
    return [c.code for c in cards]


@pytest.fixture
def engine():
    store = DeckStore(":memory:")
    ser = RequestSerializer()
    ser.start()
    yield DeckEngine(store, ser, clock=lambda: FIXED_NOW)
    ser.stop()
    store.close()


def _kind(excinfo) -> ErrorKind:
    return excinfo.value.kind


def _accounting(engine, deck_id):
    rec = engine.store.get(deck_id)
    return len(rec.drawn) + len(rec.upcoming)


def test_create_deck(engine):
    deck = engine.create_deck(1, False)
    assert len(deck.cards) == 52
    assert deck.remaining == 52
    rec = engine.store.get(deck.deck_id)
    assert rec.upcoming == deck.cards
    assert rec.drawn == []

def test_create_ids_are_unique(engine):
    ids = {engine.create_deck().deck_id for _ in range(20)}
    assert len(ids) == 20

def test_create_rejects_too_many_packs(engine):
    with pytest.raises(DeckError) as e:
        engine.create_deck(11)
    assert _kind(e) is ErrorKind.INVALID_ARGUMENT

def test_draw_from_front(engine):
    deck = engine.create_deck()
    res = engine.draw(deck.deck_id, 3)
    assert codes(res.cards) == ["2h", "3h", "4h"]
    assert res.remaining == 49
    assert [d.time for d in res.drawn] == ["2026-10-19T12:30:00+00:00"] * 3
    rec = engine.store.get(deck.deck_id)
    assert codes(rec.drawn) == ["2h", "3h", "4h"]
    assert rec.upcoming[0].code == "5h"

def test_draw_accepts_path_segment(engine):
    deck = engine.create_deck()
    assert engine.draw(deck.deck_id, "2").remaining == 50

@pytest.mark.parametrize("count", [0, -1, "0", "abc", "", "1.5", True, None])
def test_draw_invalid_count(engine, count):
    deck = engine.create_deck()
    with pytest.raises(DeckError) as e:
        engine.draw(deck.deck_id, count)
    assert _kind(e) is ErrorKind.INVALID_ARGUMENT
    assert engine.store.get(deck.deck_id).drawn == []

def test_draw_unknown_deck(engine):
    with pytest.raises(DeckError) as e:
        engine.draw("missing", 1)
    assert _kind(e) is ErrorKind.NOT_FOUND

def test_overdraw_returns_remaining(engine):
    deck = engine.create_deck()
    engine.draw(deck.deck_id, 50)
    res = engine.draw(deck.deck_id, 10)
    assert codes(res.cards) == ["ks", "as"]
    assert res.remaining == 0
    assert engine.store.get(deck.deck_id).upcoming == []

def test_draw_empty_deck(engine):
    deck = engine.create_deck()
    engine.draw(deck.deck_id, 52)
    with pytest.raises(DeckError) as e:
        engine.draw(deck.deck_id, 1)
    assert _kind(e) is ErrorKind.EMPTY_DECK
    assert str(e.value) == "Deck empty"

def test_shuffle_preserves_multiset(engine):
    deck = engine.create_deck(2, True)
    engine.draw(deck.deck_id, 7)
    before = engine.store.get(deck.deck_id)
    view = engine.shuffle(deck.deck_id)
    after = engine.store.get(deck.deck_id)
    assert view.remaining == len(before.upcoming) == 101
    assert Counter(codes(view.cards)) == Counter(codes(before.upcoming))
    assert after.upcoming == view.cards
    assert after.drawn == before.drawn

def test_shuffle_changes_order(engine):
    deck = engine.create_deck()
    orders = {tuple(codes(engine.shuffle(deck.deck_id).cards)) for _ in range(30)}
    assert len(orders) > 1

def test_shuffle_is_roughly_uniform():
    # first position of a 3-card deck over many shuffles
    store = DeckStore(":memory:")
    with RequestSerializer() as ser:
        eng = DeckEngine(store, ser)
        deck = eng.create_deck()
        eng.draw(deck.deck_id, 49)
        firsts = Counter(eng.shuffle(deck.deck_id).cards[0].code for _ in range(3000))
    store.close()
    assert set(firsts) == {"qs", "ks", "as"}
    for n in firsts.values():
        assert 800 < n < 1200

def test_shuffle_uses_fresh_rng_each_call(engine):
    made = []

    def factory():
        rng = random.Random(len(made))
        made.append(rng)
        return rng

    engine.rng_factory = factory
    deck = engine.create_deck()
    engine.shuffle(deck.deck_id)
    engine.shuffle(deck.deck_id)
    assert len(made) == 2

def test_shuffle_unknown_deck(engine):
    with pytest.raises(DeckError) as e:
        engine.shuffle("missing")
    assert _kind(e) is ErrorKind.NOT_FOUND

def test_add_cards(engine):
    deck = engine.create_deck()
    engine.draw(deck.deck_id, 2)
    view = engine.add_cards(deck.deck_id, "zz,as,,joker")
    assert view.remaining == 53
    assert len(view.cards) == 52 + 53
    assert codes(view.cards[-3:]) == ["zz", "as", "joker"]
    assert view.cards[-1] == Card("joker")
    upcoming = engine.store.get(deck.deck_id).upcoming
    assert codes(upcoming[-3:]) == ["zz", "as", "joker"]

def test_add_nothing(engine):
    deck = engine.create_deck()
    assert engine.add_cards(deck.deck_id, None).remaining == 52

def test_add_unknown_deck(engine):
    with pytest.raises(DeckError) as e:
        engine.add_cards("missing", "as")
    assert _kind(e) is ErrorKind.NOT_FOUND

def test_show_drawn(engine):
    deck = engine.create_deck()
    engine.draw(deck.deck_id, 3)
    engine.draw(deck.deck_id, 2)
    assert codes(engine.show_drawn(deck.deck_id, 0)) == ["2h", "3h", "4h", "5h", "6h"]
    assert codes(engine.show_drawn(deck.deck_id, "2")) == ["5h", "6h"]
    assert codes(engine.show_drawn(deck.deck_id, 5)) == ["2h", "3h", "4h", "5h", "6h"]

def test_show_upcoming(engine):
    deck = engine.create_deck()
    engine.draw(deck.deck_id, 1)
    assert codes(engine.show_upcoming(deck.deck_id, 2)) == ["3h", "4h"]
    assert len(engine.show_upcoming(deck.deck_id, "0")) == 51

@pytest.mark.parametrize("count", [-1, 6, "x"])
def test_show_invalid_count(engine, count):
    deck = engine.create_deck()
    engine.draw(deck.deck_id, 5)
    with pytest.raises(DeckError) as e:
        engine.show_drawn(deck.deck_id, count)
    assert _kind(e) is ErrorKind.INVALID_ARGUMENT
    assert str(e.value) == "Invalid count"

def test_show_empty_pile(engine):
    deck = engine.create_deck()
    assert engine.show_drawn(deck.deck_id, 0) == []
    with pytest.raises(DeckError):
        engine.show_drawn(deck.deck_id, 1)

def test_show_unknown_deck(engine):
    with pytest.raises(DeckError) as e:
        engine.show_upcoming("missing", 0)
    assert _kind(e) is ErrorKind.NOT_FOUND

def test_accounting_invariant(engine):
    deck = engine.create_deck(1, True)
    total = 54
    rng = random.Random(7)
    for _ in range(40):
        op = rng.choice(["draw", "add", "shuffle"])
        if op == "draw":
            try:
                engine.draw(deck.deck_id, rng.randint(1, 6))
            except DeckError as e:
                assert e.kind is ErrorKind.EMPTY_DECK
        elif op == "add":
            n = rng.randint(0, 3)
            engine.add_cards(deck.deck_id, ",".join(["xx"] * n))
            total += n
        else:
            engine.shuffle(deck.deck_id)
        assert _accounting(engine, deck.deck_id) == total

def test_concurrent_draws_take_each_card_once(engine):
    deck = engine.create_deck(2)
    n = 104
    got = []
    got_lock = threading.Lock()

    def worker():
        res = engine.draw(deck.deck_id, 1)
        with got_lock:
            got.extend(res.cards)

    threads = [threading.Thread(target=worker) for _ in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    rec = engine.store.get(deck.deck_id)
    assert rec.upcoming == []
    assert len(rec.drawn) == n
    assert Counter(codes(got)) == Counter(codes(rec.full))

def test_end_to_end(engine):
    deck = engine.create_deck(1, False)
    assert (len(deck.cards), deck.remaining) == (52, 52)

    res = engine.draw(deck.deck_id, 5)
    assert res.remaining == 47
    assert len(res.cards) == 5
    assert all(d.time for d in res.drawn)

    before = engine.show_upcoming(deck.deck_id, 0)
    view = engine.shuffle(deck.deck_id)
    assert view.remaining == 47
    assert Counter(codes(view.cards)) == Counter(codes(before))

    assert len(engine.show_drawn(deck.deck_id, 0)) == 5
    assert engine.show_upcoming(deck.deck_id, 0) == view.cards

def test_parse_count():
    assert parse_count("12", minimum=1) == 12
    assert parse_count(0, minimum=0) == 0
    with pytest.raises(DeckError):
        parse_count("-3", minimum=0)

@pytest.mark.parametrize("raw", ["1_0", " 5", "5 ", "٣", "0x5"])
def test_parse_count_rejects_non_decimal(raw):
    with pytest.raises(DeckError) as e:
        parse_count(raw, minimum=1)
    assert _kind(e) is ErrorKind.INVALID_ARGUMENT
