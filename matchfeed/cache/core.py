"""
Core cache data structures.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from enum import Enum


class ResourceClass(Enum):
    """Fixed categories of fetchable data."""
    CATALOG = "catalog"     # Competition catalog
    FIXTURES = "fixtures"   # Upcoming matches for one competition
    TODAY = "today"         # Matches played today, all competitions
    LIVE = "live"           # Matches in play, polled while selected


class RefreshStatus(Enum):
    """Refresh state of a single resource key."""
    IDLE = "idle"                      # Never resolved
    LOADING = "loading"                # Fetch in flight
    FRESH = "fresh"                    # Cache hit or successful fetch
    STALE_FALLBACK = "stale_fallback"  # Fetch failed, serving old entry
    EMPTY = "empty"                    # Fetch failed, nothing cached


@dataclass(frozen=True)
class ResourceKey:
    """
    Identifies one fetchable resource.

    Only fixtures carry a competition; the other classes are singletons.
    """
    resource_class: ResourceClass
    competition: Optional[str] = None

    def __post_init__(self):
        if self.resource_class == ResourceClass.FIXTURES:
            if not self.competition:
                raise ValueError("fixtures key requires a competition id")
        elif self.competition is not None:
            raise ValueError(
                f"{self.resource_class.value} key does not take a competition"
            )

    @property
    def cache_key(self) -> str:
        """Opaque string used to index the cache."""
        if self.competition:
            return f"{self.resource_class.value}:{self.competition}"
        return self.resource_class.value

    def __str__(self) -> str:
        return self.cache_key


CATALOG_KEY = ResourceKey(ResourceClass.CATALOG)
TODAY_KEY = ResourceKey(ResourceClass.TODAY)
LIVE_KEY = ResourceKey(ResourceClass.LIVE)


def fixtures_key(competition: str) -> ResourceKey:
    """Key for one competition's fixture list."""
    return ResourceKey(ResourceClass.FIXTURES, competition)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CacheEntry:
    """
    A successfully fetched payload.

    fetched_at is the client-observed arrival time and drives TTL checks;
    source_timestamp is the server-reported generation time shown to users.
    """
    payload: Any
    fetched_at: datetime = field(default_factory=utcnow)
    source_timestamp: Optional[datetime] = None

    def age_seconds(self, now: Optional[datetime] = None) -> float:
        """Seconds since data was fetched."""
        now = now or utcnow()
        return (now - self.fetched_at).total_seconds()
