"""
Online/offline signal as an injected event source.

Advisory only: connectivity never gates, cancels or retries fetches. A
resolve attempted while offline fails through the normal network error path.
"""
import threading
import logging
from typing import Callable, List, Protocol

logger = logging.getLogger("connectivity")

ConnectivityCallback = Callable[[bool], None]


class ConnectivitySource(Protocol):
    """Anything that can report online/offline transitions."""

    @property
    def is_online(self) -> bool:
        ...

    def subscribe(self, callback: ConnectivityCallback) -> Callable[[], None]:
        """Register callback; returns a function that unsubscribes it."""
        ...


class ConnectivityMonitor:
    """In-process ConnectivitySource driven by set_online()."""

    def __init__(self, online: bool = True):
        self._online = online
        self._subscribers: List[ConnectivityCallback] = []
        self._lock = threading.Lock()

    @property
    def is_online(self) -> bool:
        return self._online

    def subscribe(self, callback: ConnectivityCallback) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def set_online(self, online: bool) -> None:
        """Publish a connectivity change to every subscriber."""
        with self._lock:
            if online == self._online:
                return
            self._online = online
            subscribers = list(self._subscribers)

        logger.info(f"Connectivity changed: {'online' if online else 'offline'}")
        for callback in subscribers:
            try:
                callback(online)
            except Exception as e:
                logger.warning(f"Connectivity subscriber failed: {e}")

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)
