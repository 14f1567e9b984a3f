"""Session controller.

A ``GameSession`` owns one player's two boards (normal and hard), their
highscore ledgers and the current mode. Intents come in through
``apply_intent`` (or the named methods); snapshots go out through the
renderer. Everything that touches session state, timer callbacks included,
runs under ``self._lock``.

Deferred work (pair resolution, the elapsed-time ticker) is bound to the
mode and generation it was scheduled for. Replacing a board bumps the
generation, so a callback left over from an abandoned game does nothing.
"""
import json
import logging
import random
import threading
from typing import Callable, Dict, Optional, Sequence

from .deck import new_game
from .ledger import LEDGER_SIZE, Ledger, Score, ledger_to_list, record_score
from .renderers import NullRenderer
from .scheduler import TimerHandle
from .share import ShareOutcome, deliver_share, share_text
from .state import GameState, Mode, cards_view, flip, is_complete, resolve, tick
from .storage import (
    ledger_from_json,
    ledger_key,
    ledger_to_json,
    load_mode,
    load_value,
    mode_key,
    save_value,
    state_from_json,
    state_key,
    state_to_json,
)

logger = logging.getLogger(__name__)

DEFAULT_SYMBOLS = ('🎮', '🎯', '🎨', '🎪', '🎭', '🎬', '🎸', '🎺')
TITLES = {Mode.NORMAL: 'Memory Game', Mode.HARD: 'Hard Mode'}


def last_score_key(code: str, mode: Mode) -> str:
    return f"session:{code}:last_score:{mode.value}"


def _score_from_json(raw: str) -> Optional[Score]:
    data = json.loads(raw)
    if data is None:
        return None
    return Score(moves=int(data['moves']), time=int(data['time']), timestamp=float(data['timestamp']))


class GameSession:
    def __init__(
        self,
        code: str,
        store,
        scheduler,
        renderer=None,
        symbols: Sequence[str] = DEFAULT_SYMBOLS,
        resolve_delay: float = 0.6,
        tick_interval: float = 1.0,
        ledger_size: int = LEDGER_SIZE,
        clock: Optional[Callable[[], float]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.code = code
        self.store = store
        self.scheduler = scheduler
        self.renderer = renderer or NullRenderer()
        self.symbols = tuple(symbols)
        self.resolve_delay = resolve_delay
        self.tick_interval = tick_interval
        self.ledger_size = ledger_size
        self.clock = clock or scheduler.now
        self.rng = rng or random.Random()

        self.mode = Mode.NORMAL
        self.states: Dict[Mode, GameState] = {m: self._fresh_state() for m in Mode}
        self.ledgers: Dict[Mode, Ledger] = {m: () for m in Mode}
        self.last_scores: Dict[Mode, Optional[Score]] = {m: None for m in Mode}
        self._generation: Dict[Mode, int] = {m: 0 for m in Mode}
        self._pending: Optional[TimerHandle] = None
        self._ticker: Optional[TimerHandle] = None
        self._lock = threading.RLock()

    # ---- accessors ----

    @property
    def state(self) -> GameState:
        return self.states[self.mode]

    @property
    def ledger(self) -> Ledger:
        return self.ledgers[self.mode]

    @property
    def ticker_running(self) -> bool:
        return self._ticker is not None

    @property
    def resolve_pending(self) -> bool:
        return self._pending is not None

    def generation(self, mode=None) -> int:
        return self._generation[Mode.parse(mode) if mode is not None else self.mode]

    # ---- persistence ----

    def _fresh_state(self) -> GameState:
        return new_game(self.symbols, self.rng)

    def load(self) -> None:
        """Restore both boards, ledgers and the mode; bad entries become fresh defaults."""
        with self._lock:
            self.mode, recovered = load_mode(self.store, self.code)
            if recovered:
                self._save_mode()
            for m in Mode:
                self.states[m], recovered = load_value(
                    self.store, state_key(self.code, m), state_from_json, self._fresh_state)
                if recovered:
                    self._save_state(m)
                self.ledgers[m], recovered = load_value(
                    self.store, ledger_key(self.code, m),
                    lambda raw: ledger_from_json(raw, self.ledger_size), tuple)
                if recovered:
                    self._save_ledger(m)
                self.last_scores[m], _ = load_value(
                    self.store, last_score_key(self.code, m), _score_from_json, lambda: None)
            self._resume_pending()

    def save_all(self) -> None:
        with self._lock:
            self._save_mode()
            for m in Mode:
                self._save_state(m)
                self._save_ledger(m)

    def _save_mode(self) -> None:
        save_value(self.store, mode_key(self.code), self.mode.value)

    def _save_state(self, mode: Mode) -> None:
        save_value(self.store, state_key(self.code, mode), state_to_json(self.states[mode]))

    def _save_ledger(self, mode: Mode) -> None:
        save_value(self.store, ledger_key(self.code, mode), ledger_to_json(self.ledgers[mode]))

    def _set_state(self, mode: Mode, state: GameState) -> None:
        self.states[mode] = state
        self._save_state(mode)

    def _replace_state(self, mode: Mode) -> None:
        self._generation[mode] += 1
        self._set_state(mode, self._fresh_state())

    # ---- intents ----

    def apply_intent(self, intent: dict):
        """Single inbound entry point for a presentation adapter."""
        kind = (intent or {}).get('type')
        if kind == 'flip_card':
            return self.flip_card(intent.get('card_id'))
        if kind in ('start_new_game', 'switch_mode'):
            raw_mode = intent.get('mode')
            try:
                mode = Mode.parse(raw_mode) if raw_mode is not None else None
            except ValueError:
                logger.info(f"[intent-ignored] session={self.code} type={kind} mode={raw_mode!r}")
                return self.snapshot()
            if kind == 'start_new_game':
                return self.start_new_game(mode)
            if mode is None:
                return self.snapshot()
            return self.switch_mode(mode)
        if kind == 'request_share':
            return self.request_share(intent.get('primary'), intent.get('fallback'))
        logger.info(f"[intent-ignored] session={self.code} type={kind!r}")
        return None

    def flip_card(self, card_id) -> dict:
        with self._lock:
            before = self.state
            after = flip(before, card_id, now=self.clock())
            if after is before:
                return self.snapshot()
            self._set_state(self.mode, after)
            if len(after.flipped_cards) == 1 and self._ticker is None:
                self._start_ticker()
            if len(after.flipped_cards) == 2:
                self._schedule_resolve()
            snap = self.snapshot()
            self._render('state_update', snap)
            return snap

    def start_new_game(self, mode=None) -> dict:
        with self._lock:
            self._cancel_pending()
            self._stop_ticker()
            if mode is not None:
                target = Mode.parse(mode)
                if target != self.mode:
                    self.mode = target
                    self._save_mode()
            self._replace_state(self.mode)
            logger.info(f"[new-game] session={self.code} mode={self.mode.value} generation={self._generation[self.mode]}")
            snap = self.snapshot()
            self._render('state_update', snap)
            return snap

    def switch_mode(self, mode) -> dict:
        target = Mode.parse(mode)
        with self._lock:
            if target != self.mode:
                self._stop_ticker()
                self._cancel_pending()
                self.mode = target
                self._save_mode()
                self._resume_pending()
                logger.info(f"[mode-switch] session={self.code} mode={target.value}")
            snap = self.snapshot()
            self._render('state_update', snap)
            return snap

    def request_share(self, primary=None, fallback=None) -> Optional[ShareOutcome]:
        with self._lock:
            score = self.last_scores[self.mode]
            mode = self.mode
        if score is None:
            return None
        return deliver_share(share_text(score.moves, score.time, mode), primary, fallback)

    def close(self) -> None:
        with self._lock:
            self._cancel_pending()
            self._stop_ticker()

    # ---- deferred resolution ----

    def _schedule_resolve(self) -> None:
        mode = self.mode
        generation = self._generation[mode]
        self._cancel_pending()
        self._pending = self.scheduler.call_later(
            self.resolve_delay,
            lambda: self._on_resolve(mode, generation),
            label=f"resolve:{self.code}:{mode.value}",
        )
        logger.info(f"[resolve-set] session={self.code} mode={mode.value} delay={self.resolve_delay}s")

    def _resume_pending(self) -> None:
        if self.state.is_processing and self._pending is None:
            self._schedule_resolve()

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _on_resolve(self, mode: Mode, generation: int) -> None:
        with self._lock:
            if mode != self.mode or generation != self._generation[mode]:
                logger.info(f"[resolve-abort] session={self.code} mode={mode.value} stale generation={generation}")
                return
            self._pending = None
            before = self.states[mode]
            after = resolve(before, now=self.clock())
            if after is before:
                return
            self._set_state(mode, after)
            if is_complete(after):
                self._complete(mode, after)
                return
            self._render('state_update', self.snapshot())

    def _complete(self, mode: Mode, finished: GameState) -> None:
        self._stop_ticker()
        score = Score(moves=finished.moves, time=finished.elapsed_time, timestamp=self.clock())
        self.ledgers[mode], is_new_best = record_score(self.ledgers[mode], score, self.ledger_size)
        self._save_ledger(mode)
        self.last_scores[mode] = score
        save_value(self.store, last_score_key(self.code, mode), json.dumps(score.to_dict()))
        # Board under the result overlay is already a fresh one
        self._replace_state(mode)
        logger.info(
            f"[complete] session={self.code} mode={mode.value} moves={score.moves} time={score.time}s new_best={is_new_best}"
        )
        self._render('game_complete', {
            'session_code': self.code,
            'mode': mode.value,
            'score': score.to_dict(),
            'is_new_best': is_new_best,
            'highscores': ledger_to_list(self.ledgers[mode], highlight=score),
        })
        self._render('state_update', self.snapshot())

    # ---- elapsed-time ticker ----

    def _start_ticker(self) -> None:
        mode = self.mode
        generation = self._generation[mode]
        self._ticker = self.scheduler.call_later(
            self.tick_interval,
            lambda: self._on_tick(mode, generation),
            label=f"tick:{self.code}:{mode.value}",
        )

    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
            logger.info(f"[ticker-stop] session={self.code} mode={self.mode.value}")

    def _on_tick(self, mode: Mode, generation: int) -> None:
        with self._lock:
            if self._ticker is None or mode != self.mode or generation != self._generation[mode]:
                return
            before = self.states[mode]
            after = tick(before, now=self.clock())
            if after is not before:
                self._set_state(mode, after)
                self._render('state_update', self.snapshot())
            self._start_ticker()

    # ---- outbound ----

    def snapshot(self) -> dict:
        with self._lock:
            state = self.state
            return {
                'session_code': self.code,
                'mode': self.mode.value,
                'title': TITLES[self.mode],
                'cards': cards_view(state, hard=self.mode is Mode.HARD),
                'moves': state.moves,
                'matches': state.matches,
                'total_pairs': state.total_pairs,
                'is_processing': state.is_processing,
                'elapsed_time': state.elapsed_time,
                'is_complete': is_complete(state),
                'resolve_delay_ms': int(self.resolve_delay * 1000),
                'highscores': ledger_to_list(self.ledger, highlight=self.last_scores[self.mode]),
            }

    def _render(self, event: str, payload: dict) -> None:
        try:
            self.renderer.render(event, payload)
        except Exception as exc:
            logger.warning(f"[render-failed] session={self.code} event={event} error={exc}")
