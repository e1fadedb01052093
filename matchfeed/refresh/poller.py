"""
Fixed-interval polling for the live resource class.

Each tick schedules the next one, so a restart always begins from zero
elapsed time. A tick that fires after stop() or after a restart belongs to
an old generation and does nothing.
"""
import threading
import logging
from typing import Callable, Optional

from config.settings import settings

logger = logging.getLogger("refresh.poller")


class LiveDataPoller:
    """
    Calls on_tick every interval seconds between start() and stop().

    start() while running replaces the timer chain instead of stacking a
    second one; stop() while idle is a no-op.
    """

    def __init__(
        self,
        interval_seconds: Optional[float] = None,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None
            else settings.live_poll_interval_seconds
        )
        self._timer_factory = timer_factory
        self._timer: Optional[threading.Timer] = None
        self._on_tick: Optional[Callable[[], None]] = None
        self._generation = 0
        self._running = False
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def start(self, on_tick: Callable[[], None]) -> None:
        """Begin ticking, replacing any existing schedule."""
        with self._lock:
            self._cancel_locked()
            self._on_tick = on_tick
            self._running = True
            self._generation += 1
            self._schedule_locked(self._generation)
        logger.info(f"Live polling started (every {self.interval_seconds}s)")

    def stop(self) -> None:
        """Cancel the pending tick and all future ticks."""
        with self._lock:
            if not self._running:
                return
            self._cancel_locked()
            self._running = False
            self._on_tick = None
            self._generation += 1
        logger.info("Live polling stopped")

    def _cancel_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule_locked(self, generation: int) -> None:
        timer = self._timer_factory(self.interval_seconds, self._tick, args=(generation,))
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _tick(self, generation: int) -> None:
        with self._lock:
            if not self._running or generation != self._generation:
                return
            on_tick = self._on_tick

        try:
            on_tick()
        except Exception as e:
            logger.warning(f"Live poll tick failed: {e}")

        with self._lock:
            if self._running and generation == self._generation:
                self._schedule_locked(generation)
