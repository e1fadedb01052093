"""
Refresh coordination and live polling.
"""
from .coordinator import RefreshCoordinator, RefreshState, ResourceView
from .poller import LiveDataPoller

__all__ = [
    "RefreshCoordinator",
    "RefreshState",
    "ResourceView",
    "LiveDataPoller",
]
