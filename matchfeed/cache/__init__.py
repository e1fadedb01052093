"""
In-memory resource cache with per-class TTL and request coalescing.
"""
from .core import (
    CacheEntry,
    RefreshStatus,
    ResourceClass,
    ResourceKey,
    CATALOG_KEY,
    TODAY_KEY,
    LIVE_KEY,
    fixtures_key,
)
from .ttl_policies import TTL_CONFIG, get_ttl_for_class, get_max_stale
from .coalescer import RequestCoalescer
from .store import TimestampedCache

__all__ = [
    # Core types
    "CacheEntry",
    "RefreshStatus",
    "ResourceClass",
    "ResourceKey",
    "CATALOG_KEY",
    "TODAY_KEY",
    "LIVE_KEY",
    "fixtures_key",
    # TTL policies
    "TTL_CONFIG",
    "get_ttl_for_class",
    "get_max_stale",
    # Coalescing
    "RequestCoalescer",
    # Store
    "TimestampedCache",
]
