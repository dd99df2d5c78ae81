"""
BigPdfAssembler - Delivery Queue

Hands finished artifacts to a delivery target one at a time, keeping a
fixed minimum gap between successive deliveries.

An artifact enqueued while the queue is idle and the gap has elapsed is
delivered immediately. Later ones wait on a single pending timer, so the
k-th delivery of a burst never happens before k * delay after the first.
Cancelling drops every artifact that has not been delivered yet. A failed
timed delivery drops the rest of its batch and is kept until taken; the
queue itself stays open.
"""

import logging
import math
import threading
import time
from collections import deque
from collections.abc import Callable
from typing import Generic, TypeVar

from bigpdfassembler.constants import DEFAULT_DELIVERY_DELAY_MS
from bigpdfassembler.utils.timer import TimerFactory, TimerManager

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TIMER_NAME = "next-delivery"


class DeliveryQueue(Generic[T]):
    """Cancellable, rate-limited FIFO of items awaiting delivery."""

    def __init__(
        self,
        deliver: Callable[[T], None],
        *,
        delay_ms: int = DEFAULT_DELIVERY_DELAY_MS,
        clock: Callable[[], float] = time.monotonic,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        """Initialize the queue.

        Args:
            deliver: Callback receiving each item, in enqueue order
            delay_ms: Minimum gap between two deliveries, in milliseconds
            clock: Monotonic clock in seconds (injectable for tests)
            timer_factory: Timer factory forwarded to TimerManager
        """
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        self._deliver = deliver
        self._delay_s = delay_ms / 1000.0
        self._clock = clock
        self._timers = TimerManager(timer_factory)
        self._pending: deque[T] = deque()
        self._next_slot: float | None = None
        self._cancelled = False
        self._lock = threading.RLock()
        self._idle = threading.Event()
        self._idle.set()
        self._delivered = 0
        self._error: Exception | None = None

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    @property
    def delivered_count(self) -> int:
        with self._lock:
            return self._delivered

    @property
    def error(self) -> Exception | None:
        """Exception raised by a timer-driven delivery, if any."""
        return self._error

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def enqueue(self, item: T) -> None:
        """Queue an item; it is delivered now if its slot has come."""
        with self._lock:
            if self._cancelled:
                raise RuntimeError("delivery queue has been cancelled")
            self._pending.append(item)
            self._idle.clear()
            self._pump()

    def cancel(self) -> int:
        """Drop every undelivered item and stop the pending timer for good.

        Returns:
            Number of items that will never be delivered
        """
        with self._lock:
            self._cancelled = True
            dropped = self._drop_pending()
        if dropped:
            logger.info("Delivery cancelled, %d item(s) dropped", dropped)
        return dropped

    def take_error(self) -> Exception | None:
        """Return the failed-delivery error, if any, and forget it."""
        with self._lock:
            error, self._error = self._error, None
        return error

    def restart_schedule(self) -> bool:
        """Let the next item go out immediately if nothing is in flight.

        Returns:
            True if the schedule was restarted
        """
        with self._lock:
            if self._pending or self._timers.has_timer(_TIMER_NAME):
                return False
            self._next_slot = None
            return True

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        """Block until every queued item was delivered or dropped.

        Returns:
            True if the queue drained, False on timeout
        """
        return self._idle.wait(timeout)

    def _drop_pending(self) -> int:
        # Caller holds the lock
        self._timers.remove_all()
        dropped = len(self._pending)
        self._pending.clear()
        self._idle.set()
        return dropped

    def _pump(self) -> None:
        # Caller holds the lock
        try:
            while self._pending and not self._cancelled:
                if self._timers.has_timer(_TIMER_NAME):
                    return

                now = self._clock()
                if self._next_slot is not None and now < self._next_slot:
                    # Ignore float noise before rounding up; an early
                    # wake-up just re-arms the timer.
                    wait_ms = max(1, math.ceil((self._next_slot - now) * 1000 - 1e-6))
                    self._timers.add_timeout(_TIMER_NAME, wait_ms, self._on_timer)
                    return

                item = self._pending.popleft()
                self._next_slot = now + self._delay_s
                self._deliver(item)
                self._delivered += 1
        finally:
            if not self._pending:
                self._idle.set()

    def _on_timer(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            try:
                self._pump()
            except Exception as e:
                # Runs on the timer thread: keep the error for the waiting
                # caller and drop the rest of this batch. The queue stays open.
                logger.error("Delivery failed: %s", e)
                self._error = e
                dropped = self._drop_pending()
                if dropped:
                    logger.info("%d queued item(s) dropped after the failure", dropped)
