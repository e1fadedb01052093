"""
Single-flight fetches per resource key.

A selection change and a poller tick can ask for the same resource at the
same moment. The first caller runs the fetch; everyone arriving while it is
in flight blocks on it and receives the same outcome.
"""
import threading
import logging
from typing import Any, Callable, Dict, Optional, Tuple

from .core import ResourceKey

logger = logging.getLogger("cache.coalescer")


class _Flight:
    """One in-progress fetch and the callers waiting on it."""

    def __init__(self):
        self.done = threading.Event()
        self.outcome: Any = None
        self.error: Optional[Exception] = None
        self.waiters = 0


class RequestCoalescer:
    """
    Runs at most one fetch per resource key at a time.

    run() returns (outcome, is_initiator). Only the initiator's fetch_fn
    executes, so side effects placed inside fetch_fn (cache writes, counters)
    happen once per upstream call no matter how many callers joined.
    """

    def __init__(self, timeout: Optional[float] = None):
        """
        Args:
            timeout: Max seconds a waiter blocks, None to wait for the initiator
        """
        self._flights: Dict[ResourceKey, _Flight] = {}
        self._lock = threading.Lock()
        self._timeout = timeout

    def run(
        self,
        key: ResourceKey,
        fetch_fn: Callable[[], Any],
    ) -> Tuple[Any, bool]:
        """
        Run fetch_fn for key, or join the fetch already running for it.

        Raises:
            TimeoutError: If a waiter gives up on the in-flight fetch
            Exception: Whatever fetch_fn raised, re-raised in every caller
        """
        with self._lock:
            flight = self._flights.get(key)
            is_initiator = flight is None
            if is_initiator:
                flight = _Flight()
                self._flights[key] = flight
            else:
                flight.waiters += 1
                logger.debug(f"Joining in-flight fetch for {key} (waiters: {flight.waiters})")

        if is_initiator:
            try:
                flight.outcome = fetch_fn()
            except Exception as e:
                flight.error = e
            finally:
                with self._lock:
                    del self._flights[key]
                flight.done.set()
        elif not flight.done.wait(timeout=self._timeout):
            raise TimeoutError(f"Fetch for {key} still running after {self._timeout}s")

        if flight.error is not None:
            raise flight.error
        return flight.outcome, is_initiator

    def in_flight(self, key: ResourceKey) -> bool:
        with self._lock:
            return key in self._flights

    def waiters(self, key: ResourceKey) -> int:
        """Callers currently blocked on key's fetch (initiator excluded)."""
        with self._lock:
            flight = self._flights.get(key)
            return flight.waiters if flight else 0

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "active_requests": len(self._flights),
                "active_keys": [key.cache_key for key in self._flights],
            }
