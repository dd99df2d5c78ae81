"""
BigPdfAssembler - Timer Utilities

This module provides named, cancellable one-shot timers.
Centralizes timer management so pending callbacks can be torn down together.
"""

import threading
from collections.abc import Callable
from typing import Protocol


class CancellableTimer(Protocol):
    """Minimal timer interface (satisfied by threading.Timer)."""

    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], CancellableTimer]


def thread_timer(interval_s: float, callback: Callable[[], None]) -> threading.Timer:
    """Create a daemon threading.Timer for the given callback."""
    timer = threading.Timer(interval_s, callback)
    timer.daemon = True
    return timer


class TimerManager:
    """Centralized manager for one-shot timers.

    This class tracks all timers it created and ensures they are properly
    cancelled when no longer needed. The timer factory is injectable so
    tests can drive time by hand.
    """

    def __init__(self, timer_factory: TimerFactory | None = None) -> None:
        """Initialize the timer manager.

        Args:
            timer_factory: Callable building a timer from (seconds, callback).
                Defaults to daemon threading.Timer instances.
        """
        self._timer_factory = timer_factory or thread_timer
        self._timers: dict[str, CancellableTimer] = {}
        self._lock = threading.Lock()

    def add_timeout(
        self,
        name: str,
        interval_ms: int,
        callback: Callable[[], None],
        *,
        replace: bool = True,
    ) -> CancellableTimer:
        """Add a one-shot timeout.

        Args:
            name: Unique identifier for this timer
            interval_ms: Delay in milliseconds
            callback: Function to call when the timer fires
            replace: If True, cancel an existing timer with the same name

        Returns:
            The started timer
        """
        if replace:
            self.remove_timer(name)

        def _fire() -> None:
            with self._lock:
                # A cancelled or replaced timer must not run its callback
                if self._timers.get(name) is not timer:
                    return
                del self._timers[name]
            callback()

        timer = self._timer_factory(max(interval_ms, 0) / 1000.0, _fire)
        with self._lock:
            self._timers[name] = timer
        timer.start()
        return timer

    def remove_timer(self, name: str) -> bool:
        """Cancel a specific timer by name.

        Returns:
            True if a pending timer was cancelled, False otherwise
        """
        with self._lock:
            timer = self._timers.pop(name, None)

        if timer is None:
            return False
        timer.cancel()
        return True

    def remove_all(self) -> int:
        """Cancel all tracked timers.

        Returns:
            Number of timers cancelled
        """
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()

        for timer in timers:
            timer.cancel()
        return len(timers)

    def has_timer(self, name: str) -> bool:
        """Check if a timer is pending."""
        with self._lock:
            return name in self._timers

    def get_timer_count(self) -> int:
        """Get the number of pending timers."""
        with self._lock:
            return len(self._timers)
