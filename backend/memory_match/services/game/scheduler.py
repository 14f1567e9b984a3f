"""One-shot, cancellable timers.

``SocketIOScheduler`` runs each timer as a Socket.IO background task that
sleeps and then checks whether it was cancelled. ``ManualScheduler`` keeps
a virtual clock and only fires when ``advance`` is called, which keeps tests
deterministic.
"""
import heapq
import itertools
import logging
import threading
import time
from typing import Callable, List, Tuple

logger = logging.getLogger(__name__)


class TimerHandle:
    def __init__(self, delay: float, label: str = ''):
        self.delay = delay
        self.label = label
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()


class SocketIOScheduler:
    def __init__(self, socketio):
        self.socketio = socketio

    def now(self) -> float:
        return time.time()

    def call_later(self, delay: float, callback: Callable[[], None], label: str = '') -> TimerHandle:
        handle = TimerHandle(delay, label)

        def _runner():
            self.socketio.sleep(delay)
            if handle.cancelled:
                return
            try:
                callback()
            except Exception:
                logger.exception(f"[timer-error] {label}")

        self.socketio.start_background_task(_runner)
        return handle


class ManualScheduler:
    def __init__(self, start: float = 0.0):
        self._now = float(start)
        self._queue: List[Tuple[float, int, TimerHandle, Callable[[], None]]] = []
        self._seq = itertools.count()
        self._lock = threading.RLock()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None], label: str = '') -> TimerHandle:
        handle = TimerHandle(delay, label)
        with self._lock:
            heapq.heappush(self._queue, (self._now + max(0.0, delay), next(self._seq), handle, callback))
        return handle

    @property
    def pending(self) -> int:
        with self._lock:
            return sum(1 for _, _, h, _ in self._queue if not h.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing every timer that comes due on the way."""
        deadline = self._now + seconds
        fired = 0
        while True:
            with self._lock:
                if not self._queue or self._queue[0][0] > deadline:
                    break
                due, _, handle, callback = heapq.heappop(self._queue)
                self._now = max(self._now, due)
            if handle.cancelled:
                continue
            callback()
            fired += 1
        self._now = deadline
        return fired
