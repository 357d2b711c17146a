"""Change coalescing for bursty events such as cursor movement."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Hashable, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]


def thread_timer_scheduler(delay: float, fn: Callable[[], None]) -> TimerHandle:
    timer = threading.Timer(delay, fn)
    timer.daemon = True
    timer.start()
    return timer


class Debouncer:
    """Deliver only the latest call after *delay* seconds of quiet.

    Each :meth:`schedule` cancels the pending delivery and re-arms the timer,
    so a burst of calls produces one callback carrying the last arguments.
    """

    def __init__(
        self,
        callback: Callable[..., Any],
        delay: float,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        self.callback = callback
        self.delay = delay
        self._scheduler = scheduler or thread_timer_scheduler
        self._lock = threading.Lock()
        self._timer: Optional[TimerHandle] = None
        self._args: Tuple[Any, ...] = ()
        self._generation = 0

    def __call__(self, *args: Any) -> None:
        self.schedule(*args)

    def schedule(self, *args: Any) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            generation = self._generation
            self._args = args
            self._timer = self._scheduler(self.delay, lambda: self._fire(generation))

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._args = ()

    def flush(self) -> None:
        """Deliver the pending call right away, if there is one."""
        with self._lock:
            if self._timer is None:
                return
            self._timer.cancel()
        self._fire(self._generation)

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def _fire(self, generation: int) -> None:
        with self._lock:
            # A timer that lost the race with a newer schedule() is stale.
            if generation != self._generation or self._timer is None:
                return
            args = self._args
            self._timer = None
            self._args = ()
        try:
            self.callback(*args)
        except Exception:
            logger.exception("Debounced callback failed")


class IdentityGuard:
    """Remember the last delivered identity and reject repeats."""

    def __init__(self) -> None:
        self.last: Optional[Hashable] = None

    def offer(self, identity: Optional[Hashable]) -> bool:
        """Record *identity*; True when it differs from the previous one."""
        if identity == self.last:
            return False
        self.last = identity
        return True

    def reset(self) -> None:
        self.last = None
