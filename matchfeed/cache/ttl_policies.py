"""
TTL configuration per resource class.
"""
from datetime import timedelta
from typing import Dict, Optional

from config.settings import settings

from .core import ResourceClass


# Every class follows the upstream's refresh cadence. Kept per class so a
# class can diverge without touching the coordinator.
TTL_CONFIG: Dict[ResourceClass, Optional[int]] = {
    ResourceClass.CATALOG: None,    # None -> settings.cache_ttl_seconds
    ResourceClass.FIXTURES: None,
    ResourceClass.TODAY: None,
    ResourceClass.LIVE: None,
}


def get_ttl_for_class(resource_class: ResourceClass) -> timedelta:
    """
    Get the cache-hit TTL for a resource class.

    Args:
        resource_class: The resource class being resolved

    Returns:
        TTL as a timedelta
    """
    seconds = TTL_CONFIG.get(resource_class)
    if seconds is None:
        seconds = settings.cache_ttl_seconds
    return timedelta(seconds=seconds)


def get_max_stale() -> Optional[timedelta]:
    """
    Maximum age of an entry that may still be served after a failed fetch.

    Returns None when any previously cached entry is acceptable.
    """
    if settings.max_stale_seconds is None:
        return None
    return timedelta(seconds=settings.max_stale_seconds)
