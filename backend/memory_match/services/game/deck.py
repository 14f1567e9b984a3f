import random
from typing import Optional, Sequence, Tuple

from .state import Card, GameState


def new_deck(symbols: Sequence[str], rng: Optional[random.Random] = None) -> Tuple[Card, ...]:
    """Build a shuffled deck holding every symbol exactly twice.

    Ids are assigned in ``symbols + symbols`` order before shuffling, so
    ``0..2N-1`` are always present. The shuffle is a uniform Fisher-Yates
    permutation (``random.Random.shuffle``); the old sort-by-random-comparator
    deck was biased toward the original order.
    """
    rng = rng or random.Random()
    doubled = list(symbols) + list(symbols)
    cards = [Card(id=index, symbol=symbol) for index, symbol in enumerate(doubled)]
    rng.shuffle(cards)
    return tuple(cards)


def new_game(symbols: Sequence[str], rng: Optional[random.Random] = None) -> GameState:
    return GameState(cards=new_deck(symbols, rng))
