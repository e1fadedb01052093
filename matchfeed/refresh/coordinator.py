"""
Refresh orchestration: use the cache if valid, else fetch, else fall back
to whatever was cached before.
"""
import threading
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Union

from matchfeed.cache import (
    CacheEntry,
    RefreshStatus,
    RequestCoalescer,
    ResourceKey,
    TimestampedCache,
    get_max_stale,
    get_ttl_for_class,
)
from matchfeed.cache.core import utcnow
from matchfeed.errors import Err, ErrorInfo, FailureReason, FetchResult
from matchfeed.models import CompetitionInfo, MatchRecord, ResourcePayload

logger = logging.getLogger("refresh.coordinator")


@dataclass
class RefreshState:
    """Per-key refresh state. Created on first resolve, updated in place."""
    status: RefreshStatus = RefreshStatus.IDLE
    loading: bool = False
    last_error: Optional[ErrorInfo] = None
    is_stale: bool = False
    payload: ResourcePayload = field(default_factory=ResourcePayload)
    source_timestamp: Optional[datetime] = None


@dataclass
class ResourceView:
    """What the rendering layer sees for one resource."""
    data: List[MatchRecord]
    loading: bool
    error: Optional[str]
    is_stale: bool = False
    degraded: bool = False
    last_updated: Optional[datetime] = None
    competition: Optional[CompetitionInfo] = None
    competitions: Dict[str, CompetitionInfo] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": [match.to_dict() for match in self.data],
            "loading": self.loading,
            "error": self.error,
            "isStale": self.is_stale,
            "degraded": self.degraded,
            "lastUpdated": self.last_updated.isoformat() if self.last_updated else None,
            "competition": self.competition.to_dict() if self.competition else None,
        }


class RefreshCoordinator:
    """
    Owns the cache and the per-key refresh state.

    resolve() never raises: fetch failures fall back to the last cached
    entry for the same key regardless of its age, or to an empty payload.
    A failure for one key never touches another key's entry or state.
    """

    def __init__(
        self,
        fetch: Callable[[ResourceKey], FetchResult],
        cache: Optional[TimestampedCache] = None,
        clock: Callable[[], datetime] = utcnow,
        ttl: Optional[timedelta] = None,
        max_stale: Optional[timedelta] = None,
        coalescer: Optional[RequestCoalescer] = None,
    ):
        """
        Args:
            fetch: Performs one upstream request, e.g. ResourceFetcher.fetch
            cache: Shared cache, a fresh one if omitted
            clock: Returns the current timezone-aware time
            ttl: Override the per-class TTL for every key
            max_stale: Oldest entry still used as a fallback, None for no limit
            coalescer: Single-flight guard for concurrent fetches of a key
        """
        self._fetch = fetch
        self.cache = cache if cache is not None else TimestampedCache()
        self._clock = clock
        self._ttl = ttl
        self._max_stale = max_stale if max_stale is not None else get_max_stale()
        self._coalescer = coalescer or RequestCoalescer()
        self._states: Dict[str, RefreshState] = {}
        self._lock = threading.RLock()
        self._stats = {
            "hits": 0,
            "fetches": 0,
            "fallbacks": 0,
            "empty": 0,
            "coalesced": 0,
        }

    def ttl_for(self, key: ResourceKey) -> timedelta:
        return self._ttl if self._ttl is not None else get_ttl_for_class(key.resource_class)

    def _state(self, key: ResourceKey) -> RefreshState:
        with self._lock:
            state = self._states.get(key.cache_key)
            if state is None:
                state = RefreshState()
                self._states[key.cache_key] = state
            return state

    def resolve(self, key: ResourceKey, force_refresh: bool = False) -> ResourcePayload:
        """
        Return the current payload for key, fetching only when needed.

        Args:
            key: Resource to resolve
            force_refresh: Skip the cache-hit check (explicit user refresh)

        Returns:
            Fresh, cached, stale-fallback or empty payload
        """
        state = self._state(key)

        if not force_refresh:
            entry = self.cache.get(key)
            if self.cache.is_valid(entry, self._clock(), self.ttl_for(key)):
                logger.debug(f"CACHE HIT: {key}")
                with self._lock:
                    # An in-flight forced fetch for key still owns `loading`
                    self._apply_entry(state, entry)
                    if not state.loading:
                        state.status = RefreshStatus.FRESH
                    state.last_error = None
                    state.is_stale = False
                    self._stats["hits"] += 1
                return entry.payload

        logger.info(f"{'FORCE REFRESH' if force_refresh else 'CACHE MISS'}: {key}")
        with self._lock:
            state.status = RefreshStatus.LOADING
            state.loading = True
            state.last_error = None

        outcome = self._fetch_coalesced(key)

        with self._lock:
            state.loading = False
            if isinstance(outcome, CacheEntry):
                self._apply_entry(state, outcome)
                state.status = RefreshStatus.FRESH
                state.is_stale = False
                return outcome.payload

            return self._fall_back(key, state, outcome)

    def _fetch_and_store(self, key: ResourceKey) -> Union[CacheEntry, Err]:
        """Run by the single-flight initiator only: one upstream call, one write."""
        result = self._fetch(key)
        with self._lock:
            self._stats["fetches"] += 1
            if not result.ok:
                return result
            entry = CacheEntry(
                payload=result.payload,
                fetched_at=self._clock(),
                source_timestamp=result.source_timestamp,
            )
            self.cache.put(key, entry)
            return entry

    def _fetch_coalesced(self, key: ResourceKey) -> Union[CacheEntry, Err]:
        """New cache entry on success, the failure otherwise. Never raises."""
        try:
            outcome, initiated = self._coalescer.run(key, lambda: self._fetch_and_store(key))
        except Exception as e:
            logger.exception(f"Unexpected error fetching {key}")
            return Err(reason=FailureReason.NETWORK, message=str(e) or type(e).__name__)
        if not initiated:
            logger.debug(f"Shared in-flight fetch for {key}")
            with self._lock:
                self._stats["coalesced"] += 1
        return outcome

    def _fall_back(self, key: ResourceKey, state: RefreshState, err: Err) -> ResourcePayload:
        """Serve any previous entry for key, ignoring TTL. Caller holds the lock."""
        entry = self.cache.get(key)
        if entry is not None and self._max_stale is not None:
            if entry.age_seconds(self._clock()) >= self._max_stale.total_seconds():
                logger.info(f"Cached {key} is older than the stale limit, not using it")
                entry = None

        if entry is not None:
            logger.warning(
                f"Serving stale {key} [age={entry.age_seconds(self._clock()):.0f}s]: {err.message}"
            )
            self._apply_entry(state, entry)
            state.status = RefreshStatus.STALE_FALLBACK
            state.is_stale = True
            state.last_error = ErrorInfo.from_err(err, degraded=True)
            self._stats["fallbacks"] += 1
            return entry.payload

        state.payload = ResourcePayload()
        state.source_timestamp = None
        state.status = RefreshStatus.EMPTY
        state.is_stale = False
        state.last_error = ErrorInfo.from_err(err, degraded=False)
        self._stats["empty"] += 1
        return state.payload

    @staticmethod
    def _apply_entry(state: RefreshState, entry: CacheEntry) -> None:
        state.payload = entry.payload
        state.source_timestamp = entry.source_timestamp

    def state(self, key: ResourceKey) -> RefreshState:
        """Snapshot of the refresh state for key."""
        with self._lock:
            current = self._state(key)
            return RefreshState(
                status=current.status,
                loading=current.loading,
                last_error=current.last_error,
                is_stale=current.is_stale,
                payload=current.payload,
                source_timestamp=current.source_timestamp,
            )

    def view(self, key: ResourceKey) -> ResourceView:
        """Outbound view of key for the rendering layer."""
        state = self.state(key)
        error = state.last_error
        return ResourceView(
            data=list(state.payload.matches),
            loading=state.loading,
            error=error.display_message if error else None,
            is_stale=state.is_stale,
            degraded=bool(error and error.degraded),
            last_updated=state.source_timestamp,
            competition=state.payload.competition,
            competitions=dict(state.payload.competitions),
        )

    def clear_display(self, key: ResourceKey) -> None:
        """
        Drop the displayed payload for key.

        The cache entry is kept, so a later resolve within TTL is still a hit.
        """
        with self._lock:
            state = self._state(key)
            state.payload = ResourcePayload()
            state.source_timestamp = None
            state.last_error = None
            state.is_stale = False
            if not state.loading:
                state.status = RefreshStatus.IDLE

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "entries": len(self.cache),
                **self._stats,
                "coalescer": self._coalescer.get_stats(),
            }
