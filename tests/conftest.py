"""
Shared test doubles: a controllable clock, a scripted fetcher, and timers
that only fire when told to.
"""
import time
import pytest
from datetime import datetime, timedelta, timezone

from matchfeed.cache import ResourceKey
from matchfeed.errors import Err, FailureReason, Ok
from matchfeed.models import CompetitionInfo, MatchRecord, ResourcePayload


class FakeClock:
    """Clock that only moves when advanced."""

    def __init__(self, start=None):
        self.now = start or datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class FakeFetcher:
    """
    Returns queued results per cache key, defaulting to a successful payload.

    Every call is recorded in `calls` as the cache key string.
    """

    def __init__(self):
        self.calls = []
        self._queued = {}
        self._default = {}

    def queue(self, key: ResourceKey, *results):
        self._queued.setdefault(key.cache_key, []).extend(results)

    def always(self, key: ResourceKey, result):
        self._default[key.cache_key] = result

    def count(self, key: ResourceKey) -> int:
        return self.calls.count(key.cache_key)

    def __call__(self, key: ResourceKey):
        self.calls.append(key.cache_key)
        queued = self._queued.get(key.cache_key)
        if queued:
            return queued.pop(0)
        if key.cache_key in self._default:
            return self._default[key.cache_key]
        return ok_matches(f"{key.cache_key}-1")


class FakeTimer:
    """Stand-in for threading.Timer that fires only via fire()."""

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.daemon = False
        self.started = False
        self.cancelled = False
        self.fired = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.fired = True
        self.function(*self.args, **self.kwargs)


class FakeTimerFactory:
    """Collects every timer the poller creates."""

    def __init__(self):
        self.timers = []

    def __call__(self, interval, function, args=None, kwargs=None):
        timer = FakeTimer(interval, function, args=args, kwargs=kwargs)
        self.timers.append(timer)
        return timer

    @property
    def pending(self):
        return [t for t in self.timers if t.started and not t.cancelled and not t.fired]

    def fire_pending(self):
        """Fire the single live timer, as if interval seconds had elapsed."""
        pending = self.pending
        assert len(pending) == 1, f"expected one pending timer, got {len(pending)}"
        pending[0].fire()


def make_match(match_id: str, status: str = "SCHEDULED") -> MatchRecord:
    return MatchRecord(
        id=match_id,
        home_team="Arsenal",
        away_team="Chelsea",
        date_time=datetime(2025, 3, 1, 15, 0, tzinfo=timezone.utc),
        status=status,
    )


def ok_matches(*match_ids, timestamp=None) -> Ok:
    return Ok(
        payload=ResourcePayload(matches=[make_match(m) for m in match_ids]),
        source_timestamp=timestamp,
    )


def ok_catalog(*competition_ids) -> Ok:
    return Ok(payload=ResourcePayload(competitions={
        c: CompetitionInfo(id=c, name=c.replace("-", " ").title()) for c in competition_ids
    }))


def network_err(message="network unavailable: connection refused") -> Err:
    return Err(reason=FailureReason.NETWORK, message=message)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def timers():
    return FakeTimerFactory()


def wait_for_waiters(coalescer, key, count=1):
    """Block until `count` callers have joined the in-flight fetch for key."""
    for _ in range(500):
        if coalescer.waiters(key) >= count:
            return
        time.sleep(0.01)
    raise AssertionError(f"nobody joined the fetch for {key}")
