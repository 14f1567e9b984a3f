import random

from config import DEFAULT_SYMBOLS
from memory_match.services.game.deck import new_game
from memory_match.services.game.state import (
    GameState,
    Mode,
    Visibility,
    cards_view,
    classify,
    flip,
    is_complete,
    resolve,
    tick,
)

SYMBOLS = DEFAULT_SYMBOLS.split(',')


def fresh(seed=11):
    return new_game(SYMBOLS, random.Random(seed))


def partner_of(state, card_id):
    symbol = state.find(card_id).symbol
    return next(c.id for c in state.cards if c.symbol == symbol and c.id != card_id)


def test_first_flip_sets_start_time_only():
    state = fresh()
    after = flip(state, 3, now=100.0)
    assert [c.id for c in after.flipped_cards] == [3]
    assert after.start_time == 100.0
    assert after.moves == 0
    assert after.is_processing is False


def test_start_time_kept_on_later_flips():
    state = flip(fresh(), 0, now=100.0)
    state = flip(state, 1, now=105.0)
    assert state.start_time == 100.0


def test_second_flip_counts_move_and_locks():
    state = flip(fresh(), 0, now=1.0)
    state = flip(state, 1, now=2.0)
    assert len(state.flipped_cards) == 2
    assert state.moves == 1
    assert state.is_processing is True


def test_third_flip_while_processing_is_identity():
    state = flip(flip(fresh(), 0, now=1.0), 1, now=2.0)
    assert flip(state, 2, now=3.0) is state


def test_ignored_flips_return_same_object():
    state = flip(fresh(), 0, now=1.0)
    assert flip(state, 0, now=2.0) is state      # already face up
    assert flip(state, 99, now=2.0) is state     # unknown id
    assert flip(state, 'x', now=2.0) is state    # not an id at all
    assert flip(state, True, now=2.0) is state   # bool is not a card id
    assert flip(state, True, now=2.0) is state   # bool is not a card id

    # matched card
    pair = flip(state, partner_of(state, 0), now=2.0)
    matched = resolve(pair, now=3.0)
    assert flip(matched, 0, now=4.0) is matched


def test_resolve_matching_pair():
    state = fresh()
    a = 0
    b = partner_of(state, a)
    state = resolve(flip(flip(state, a, now=1.0), b, now=2.0), now=3.0)
    assert state.find(a).matched and state.find(b).matched
    assert state.flipped_cards == ()
    assert state.is_processing is False
    assert state.matches == 1
    assert state.moves == 1


def test_resolve_non_matching_pair_marks_revealed():
    state = fresh()
    # ids 0 and 1 carry the first two (different) symbols
    assert state.find(0).symbol != state.find(1).symbol
    state = resolve(flip(flip(state, 0, now=1.0), 1, now=2.0), now=3.0)
    assert state.moves == 1
    assert state.matches == 0
    assert state.find(0).revealed and state.find(1).revealed
    assert not state.find(0).matched and not state.find(1).matched
    assert state.flipped_cards == ()
    assert state.is_processing is False

    # Cards stay flippable
    assert [c.id for c in flip(state, 0, now=4.0).flipped_cards] == [0]


def test_resolve_without_pair_is_noop():
    state = fresh()
    assert resolve(state, now=1.0) is state
    one = flip(state, 0, now=1.0)
    assert resolve(one, now=2.0) is one


def test_completion_after_eight_matches_freezes_time():
    state = fresh()
    now = 10.0
    done_ids = set()
    for card in state.cards:
        if card.id in done_ids:
            continue
        other = partner_of(state, card.id)
        done_ids.update({card.id, other})
        assert not is_complete(state)
        state = flip(state, card.id, now=now)
        state = flip(state, other, now=now + 0.5)
        now += 10.2
        state = resolve(state, now=now)
    assert state.matches == 8
    assert is_complete(state)
    assert all(c.matched for c in state.cards)
    # first flip at 10.0, last resolve at 10.0 + 8 * 10.2 = 91.6
    assert state.elapsed_time == 81


def test_is_complete_iff_all_matched():
    state = fresh()
    assert not is_complete(state)
    assert is_complete(GameState(cards=(), matches=0))


def test_tick_updates_display_time():
    state = flip(fresh(), 0, now=100.0)
    assert tick(state, now=103.7).elapsed_time == 3
    assert tick(fresh(), now=5.0).elapsed_time == 0


def test_classify_normal_and_hard():
    state = fresh()
    state = resolve(flip(flip(state, 0, now=1.0), 1, now=2.0), now=3.0)
    # card 0 has been seen; card 2 has not
    state = flip(flip(state, 0, now=4.0), 2, now=5.0)

    assert classify(state, state.find(0), hard=False) is Visibility.FLIPPED
    assert classify(state, state.find(0), hard=True) is Visibility.SELECTED
    assert classify(state, state.find(2), hard=True) is Visibility.FLIPPED
    assert classify(state, state.find(1), hard=True) is Visibility.HIDDEN


def test_cards_view_hides_unseen_symbols():
    state = resolve(flip(flip(fresh(), 0, now=1.0), 1, now=2.0), now=3.0)
    state = flip(state, 0, now=4.0)
    view = {c['id']: c for c in cards_view(state, hard=True)}
    assert view[0] == {'id': 0, 'state': 'selected', 'symbol': None}
    assert view[5]['state'] == 'hidden' and view[5]['symbol'] is None

    view = {c['id']: c for c in cards_view(state, hard=False)}
    assert view[0]['state'] == 'flipped'
    assert view[0]['symbol'] == state.find(0).symbol


def test_mode_parse_accepts_legacy_names():
    assert Mode.parse('normal') is Mode.NORMAL
    assert Mode.parse('HARD') is Mode.HARD
    assert Mode.parse('light') is Mode.NORMAL
    assert Mode.parse('dark') is Mode.HARD
    assert Mode.parse(Mode.HARD) is Mode.HARD
