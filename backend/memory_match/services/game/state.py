"""Card-pair state machine.

Every transition is pure: it takes a ``GameState`` and returns a new one
(or the very same object when the intent is ignored). Timing lives in the
session controller; here ``now`` is just an argument.

Per game: idle -> one flipped -> two flipped (processing) -> idle | complete
"""
import math
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple


class Mode(str, Enum):
    NORMAL = 'normal'
    HARD = 'hard'

    @classmethod
    def parse(cls, value) -> 'Mode':
        """Accept 'normal'/'hard' plus the legacy 'light'/'dark' names."""
        if isinstance(value, Mode):
            return value
        text = str(value or '').strip().lower()
        text = {'light': 'normal', 'dark': 'hard'}.get(text, text)
        return cls(text)


class Visibility(str, Enum):
    MATCHED = 'matched'
    FLIPPED = 'flipped'    # face up, symbol shown
    SELECTED = 'selected'  # face up in hard mode, already seen once: symbol withheld
    HIDDEN = 'hidden'


@dataclass(frozen=True)
class Card:
    id: int
    symbol: str
    matched: bool = False
    revealed: bool = False


@dataclass(frozen=True)
class GameState:
    cards: Tuple[Card, ...]
    flipped_cards: Tuple[Card, ...] = ()
    moves: int = 0
    matches: int = 0
    is_processing: bool = False
    start_time: Optional[float] = None
    elapsed_time: int = 0

    @property
    def total_pairs(self) -> int:
        return len(self.cards) // 2

    def find(self, card_id) -> Optional[Card]:
        if isinstance(card_id, bool):
            return None
        for card in self.cards:
            if card.id == card_id:
                return card
        return None

    def is_flipped(self, card_id) -> bool:
        return any(c.id == card_id for c in self.flipped_cards)


def _now(now: Optional[float]) -> float:
    return time.time() if now is None else now


def flip(state: GameState, card_id, now: Optional[float] = None) -> GameState:
    if state.is_processing:
        return state
    card = state.find(card_id)
    if card is None or card.matched or state.is_flipped(card_id):
        return state

    flipped = state.flipped_cards + (card,)
    pair_complete = len(flipped) == 2
    return replace(
        state,
        flipped_cards=flipped,
        moves=state.moves + 1 if pair_complete else state.moves,
        is_processing=pair_complete,
        start_time=state.start_time if state.start_time is not None else _now(now),
    )


def resolve(state: GameState, now: Optional[float] = None) -> GameState:
    if len(state.flipped_cards) != 2:
        return state

    first, second = state.flipped_cards
    pair_ids = (first.id, second.id)
    is_match = first.symbol == second.symbol

    cards = []
    for card in state.cards:
        if card.id in pair_ids:
            if is_match:
                card = replace(card, matched=True)
            elif not card.revealed:
                card = replace(card, revealed=True)
        cards.append(card)

    matches = state.matches + 1 if is_match else state.matches
    elapsed = state.elapsed_time
    if matches == state.total_pairs and state.start_time is not None:
        elapsed = max(0, math.floor(_now(now) - state.start_time))

    return replace(
        state,
        cards=tuple(cards),
        flipped_cards=(),
        matches=matches,
        is_processing=False,
        elapsed_time=elapsed,
    )


def is_complete(state: GameState) -> bool:
    return state.matches == state.total_pairs


def tick(state: GameState, now: Optional[float] = None) -> GameState:
    """Refresh the display-only elapsed time; frozen once the game is complete."""
    if state.start_time is None or is_complete(state):
        return state
    elapsed = max(0, math.floor(_now(now) - state.start_time))
    if elapsed == state.elapsed_time:
        return state
    return replace(state, elapsed_time=elapsed)


def classify(state: GameState, card: Card, hard: bool) -> Visibility:
    if card.matched:
        return Visibility.MATCHED
    if state.is_flipped(card.id):
        if not hard or not card.revealed:
            return Visibility.FLIPPED
        return Visibility.SELECTED
    return Visibility.HIDDEN


def cards_view(state: GameState, hard: bool) -> list:
    """Per-card render payload; symbols only go out for visible faces."""
    view = []
    for card in state.cards:
        visibility = classify(state, card, hard)
        shown = visibility in (Visibility.MATCHED, Visibility.FLIPPED)
        view.append({
            'id': card.id,
            'state': visibility.value,
            'symbol': card.symbol if shown else None,
        })
    return view
