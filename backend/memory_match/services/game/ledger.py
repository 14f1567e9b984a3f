from dataclasses import dataclass
from typing import Optional, Tuple

LEDGER_SIZE = 10


@dataclass(frozen=True)
class Score:
    moves: int
    time: int
    timestamp: float

    @property
    def rank_key(self) -> Tuple[int, int]:
        return (self.moves, self.time)

    def to_dict(self):
        return {'moves': self.moves, 'time': self.time, 'timestamp': self.timestamp}


Ledger = Tuple[Score, ...]


def best_of(ledger: Ledger) -> Optional[Score]:
    return ledger[0] if ledger else None


def record_score(ledger: Ledger, score: Score, size: int = LEDGER_SIZE) -> Tuple[Ledger, bool]:
    """Insert ``score`` and keep the top ``size`` entries.

    The new-best decision is taken against the ledger *before* insertion:
    fewer moves wins, then lower time; an equal score is not a new best.
    ``sorted`` is stable, so a newcomer ranks after existing equal entries.
    """
    best = best_of(ledger)
    is_new_best = best is None or score.rank_key < best.rank_key
    ranked = sorted(ledger + (score,), key=lambda s: s.rank_key)
    return tuple(ranked[:size]), is_new_best


def ledger_to_list(ledger: Ledger, highlight: Optional[Score] = None) -> list:
    return [
        {
            'rank': index + 1,
            'moves': s.moves,
            'time': s.time,
            'timestamp': s.timestamp,
            'highlighted': highlight is not None and s == highlight,
        }
        for index, s in enumerate(ledger)
    ]
