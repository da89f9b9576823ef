"""
Single ticking time source. One timer, however many subscribers; each tick broadcasts
one immutable TimeSnapshot so every consumer sees the same second.
"""
import itertools
import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from masjid_display.core.models import TimeSnapshot

TickCallback = Callable[[TimeSnapshot], None]


class SharedClock:
    def __init__(
        self,
        interval: float = 1.0,
        now_func: Callable[[], datetime] = datetime.now,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        self.interval = interval
        self._now = now_func
        self._timer_factory = timer_factory
        self.logger = logging.getLogger(self.__class__.__name__)
        self._lock = threading.RLock()
        self._subscribers: Dict[int, TickCallback] = {}
        self._tokens = itertools.count()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._running = False
        self._current = TimeSnapshot.at(self._now())

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: TickCallback) -> Callable[[], None]:
        """Register callback; it gets the current snapshot right away, then every tick. Returns unsubscribe."""
        with self._lock:
            token = next(self._tokens)
            self._subscribers[token] = callback
            if not self._running:
                self._current = TimeSnapshot.at(self._now())
                self._start_timer()
            current = self._current
        self._invoke(token, callback, current)

        def unsubscribe() -> None:
            with self._lock:
                if self._subscribers.pop(token, None) is None:
                    return
                if not self._subscribers:
                    self._stop_timer()

        return unsubscribe

    def get_current_time(self) -> TimeSnapshot:
        """Last broadcast snapshot. No recomputation."""
        return self._current

    def tick(self) -> TimeSnapshot:
        """Take a fresh snapshot and broadcast it to every subscriber."""
        with self._lock:
            self._current = TimeSnapshot.at(self._now())
            current = self._current
            subscribers = list(self._subscribers.items())
        for token, callback in subscribers:
            self._invoke(token, callback, current)
        return current

    def _invoke(self, token: int, callback: TickCallback, snapshot: TimeSnapshot) -> None:
        # Unsubscribed earlier in this tick
        if token not in self._subscribers:
            return
        try:
            callback(snapshot)
        except Exception as e:
            self.logger.exception(f"Error in time subscriber callback: {e}")

    def _start_timer(self) -> None:
        self._running = True
        self._generation += 1
        self._schedule_next(self._generation)
        self.logger.debug("Clock timer started")

    def _stop_timer(self) -> None:
        self._running = False
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.logger.debug("Clock timer stopped")

    def _schedule_next(self, generation: int) -> None:
        # Aim at the next second boundary so displayed seconds don't drift
        now = self._now()
        delay = self.interval - (now.microsecond / 1_000_000) % self.interval
        timer = self._timer_factory(delay, self._on_timer, args=(generation,))
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _on_timer(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or not self._running:
                return
            # Timer waits on the monotonic clock; firing just short of the wall-clock
            # boundary would broadcast the same second twice
            early = TimeSnapshot.at(self._now()) == self._current
        try:
            if early:
                self.logger.debug("Timer fired before the second changed, rescheduling")
            else:
                self.tick()
        finally:
            with self._lock:
                if generation == self._generation and self._running:
                    self._schedule_next(generation)


class ManualClock(SharedClock):
    """Clock that only moves when told to. Used by tests and the dev tools."""

    def __init__(self, start: datetime):
        self._fake_now = start.replace(microsecond=0)
        super().__init__(now_func=lambda: self._fake_now)

    def _start_timer(self) -> None:
        self._running = True

    def _stop_timer(self) -> None:
        self._running = False

    def set_time(self, moment: datetime) -> TimeSnapshot:
        self._fake_now = moment.replace(microsecond=0)
        return self.tick()

    def advance(self, seconds: int = 1) -> TimeSnapshot:
        self._fake_now = self._fake_now + timedelta(seconds=seconds)
        return self.tick()
