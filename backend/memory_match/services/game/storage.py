"""Key-value persistence for sessions.

The controller only needs ``get(key) -> str | None`` and ``set(key, str)``.
Values are JSON apart from the bare mode name. Anything unreadable on load is replaced by a fresh default
and logged; a bad entry never takes the session down.
"""
import json
import logging
import time
from collections import Counter
from typing import Callable, Dict, Optional, Tuple

from .ledger import LEDGER_SIZE, Ledger, Score
from .state import Card, GameState, Mode

logger = logging.getLogger(__name__)


class MemoryKeyValueStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class SqlKeyValueStore:
    """``StoredValue`` rows; each call opens its own app context so timer threads can use it."""

    def __init__(self, app):
        self.app = app

    def get(self, key: str) -> Optional[str]:
        from memory_match import db
        from memory_match.models import StoredValue
        with self.app.app_context():
            row = db.session.get(StoredValue, key)
            return row.value if row else None

    def set(self, key: str, value: str) -> None:
        from memory_match import db
        from memory_match.models import StoredValue
        with self.app.app_context():
            try:
                row = db.session.get(StoredValue, key)
                if row is None:
                    row = StoredValue(key=key)
                row.value = value
                row.updated_at = time.time()
                db.session.add(row)
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise


# ---- keys ----

def mode_key(code: str) -> str:
    return f"session:{code}:mode"


def state_key(code: str, mode: Mode) -> str:
    return f"session:{code}:state:{mode.value}"


def ledger_key(code: str, mode: Mode) -> str:
    return f"session:{code}:highscores:{mode.value}"


# ---- codecs ----

def state_to_json(state: GameState) -> str:
    return json.dumps({
        'cards': [
            {'id': c.id, 'symbol': c.symbol, 'matched': c.matched, 'revealed': c.revealed}
            for c in state.cards
        ],
        'flipped_cards': [c.id for c in state.flipped_cards],
        'moves': state.moves,
        'matches': state.matches,
        'is_processing': state.is_processing,
        'start_time': state.start_time,
        'elapsed_time': state.elapsed_time,
    }, ensure_ascii=False)


def state_from_json(raw: str) -> GameState:
    """Decode a stored state, raising ValueError when it breaks an invariant."""
    data = json.loads(raw)
    cards = tuple(
        Card(
            id=int(c['id']),
            symbol=str(c['symbol']),
            matched=bool(c.get('matched', False)),
            revealed=bool(c.get('revealed', False)),
        )
        for c in data['cards']
    )
    by_id = {c.id: c for c in cards}
    if len(by_id) != len(cards) or len(cards) % 2:
        raise ValueError('card ids must be unique and paired')
    if any(n != 2 for n in Counter(c.symbol for c in cards).values()):
        raise ValueError('every symbol must appear exactly twice')

    # Legacy saves kept full card copies instead of ids
    flipped_ids = [f['id'] if isinstance(f, dict) else f for f in data.get('flipped_cards', [])]
    flipped = tuple(by_id[int(i)] for i in flipped_ids)
    if len(flipped) > 2 or any(c.matched for c in flipped):
        raise ValueError('invalid flipped cards')

    start_time = data.get('start_time')
    state = GameState(
        cards=cards,
        flipped_cards=flipped,
        moves=int(data.get('moves', 0)),
        matches=int(data.get('matches', 0)),
        is_processing=bool(data.get('is_processing', False)),
        start_time=float(start_time) if start_time is not None else None,
        elapsed_time=int(data.get('elapsed_time', 0)),
    )
    if state.moves < 0 or not 0 <= state.matches <= state.total_pairs:
        raise ValueError('counters out of range')
    if state.matches != sum(1 for c in cards if c.matched) // 2:
        raise ValueError('match count disagrees with cards')
    # A pair that is still waiting for resolution is the only processing state
    if state.is_processing != (len(flipped) == 2):
        raise ValueError('processing flag disagrees with flipped cards')
    return state


def ledger_to_json(ledger: Ledger) -> str:
    return json.dumps([s.to_dict() for s in ledger])


def ledger_from_json(raw: str, size: int = LEDGER_SIZE) -> Ledger:
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError('highscores must be a list')
    scores = [
        Score(moves=int(s['moves']), time=int(s['time']), timestamp=float(s.get('timestamp') or 0))
        for s in data
    ]
    return tuple(sorted(scores, key=lambda s: s.rank_key)[:size])


def load_value(store, key: str, decode: Callable, default: Callable):
    """Decode ``store[key]``; a missing or corrupt entry yields ``default()``.

    Returns ``(value, recovered)``; ``recovered`` is True when the default
    had to replace something that was actually stored.
    """
    try:
        raw = store.get(key)
    except Exception as exc:
        logger.warning(f"[store-read-failed] key={key} error={exc}")
        return default(), True
    if raw is None:
        return default(), False
    try:
        return decode(raw), False
    except (ValueError, KeyError, TypeError, AttributeError) as exc:
        logger.warning(f"[store-corrupt] key={key} error={exc!r}; using fresh default")
        return default(), True


def save_value(store, key: str, raw: str) -> bool:
    try:
        store.set(key, raw)
        return True
    except Exception as exc:
        logger.warning(f"[store-write-failed] key={key} error={exc}")
        return False


def load_mode(store, code: str) -> Tuple[Mode, bool]:
    return load_value(store, mode_key(code), Mode.parse, lambda: Mode.NORMAL)
