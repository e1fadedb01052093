"""
Matchfeed - local JSON surface for the rendering layer.
Serves the active view from the in-memory refresh coordinator.
"""
import threading
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException

from matchfeed.api_client import ResourceFetcher
from matchfeed.cache import LIVE_KEY, ResourceClass
from matchfeed.connectivity import ConnectivityMonitor
from matchfeed.refresh import LiveDataPoller, RefreshCoordinator
from matchfeed.selection import SELECTABLE_CLASSES, SelectionState
from matchfeed.view_models import matches_to_view_models

# Version tracking
APP_VERSION = "v0.1.0"
APP_NAME = "Matchfeed"

# Process-wide selection (one user, one view)
_selection: Optional[SelectionState] = None
_connectivity: Optional[ConnectivityMonitor] = None
_singleton_lock = threading.Lock()


def get_connectivity() -> ConnectivityMonitor:
    """Get or create the global connectivity monitor."""
    global _connectivity
    if _connectivity is None:
        with _singleton_lock:
            if _connectivity is None:
                _connectivity = ConnectivityMonitor()
    return _connectivity


def get_selection() -> SelectionState:
    """Get or create the global selection state."""
    global _selection
    if _selection is None:
        connectivity = get_connectivity()
        with _singleton_lock:
            if _selection is None:
                fetcher = ResourceFetcher()
                _selection = SelectionState(
                    coordinator=RefreshCoordinator(fetch=fetcher.fetch),
                    poller=LiveDataPoller(),
                    connectivity=connectivity,
                )
    return _selection


def shutdown_selection() -> None:
    """Stop live polling; the next get_selection() starts over."""
    global _selection
    with _singleton_lock:
        selection, _selection = _selection, None
    if selection is not None:
        selection.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    shutdown_selection()


app = FastAPI(
    title=APP_NAME,
    description="Cached fixtures, today's and live matches",
    version=APP_VERSION,
    lifespan=lifespan,
)


def _live_count(selection: SelectionState) -> int:
    """Matches in the last live payload, for the Live tab badge."""
    entry = selection.coordinator.cache.get(LIVE_KEY)
    return len(entry.payload.matches) if entry else 0


def _view_response(selection: SelectionState, now: Optional[datetime] = None) -> dict:
    view = selection.current_view()
    # Day and kickoff labels are shown in the host's local time
    now = now or datetime.now().astimezone()
    response = view.to_dict()
    response.update({
        "activeClass": selection.active_class.value,
        "activeCompetition": selection.active_competition,
        "isOnline": selection.is_online,
        "matchCount": len(view.data),
        "liveCount": _live_count(selection),
        "cards": [card.to_dict() for card in matches_to_view_models(view.data, now=now)],
    })
    return response


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/version")
def version_info():
    """Version information endpoint."""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "full": f"{APP_NAME} {APP_VERSION}",
    }


@app.get("/competitions")
def competitions(selection: SelectionState = Depends(get_selection)):
    """Competition catalog, fetched at most once per TTL."""
    selection.load_catalog()
    view = selection.catalog_view()
    return {
        "competitions": {
            competition_id: info.to_dict()
            for competition_id, info in view.competitions.items()
        },
        "loading": view.loading,
        "error": view.error,
        "isStale": view.is_stale,
    }


@app.get("/view")
def current_view(selection: SelectionState = Depends(get_selection)):
    """
    Active view for the rendering layer.

    Resolves the active key first; inside the TTL this is a cache hit.
    """
    selection.coordinator.resolve(selection.active_key())
    return _view_response(selection)


@app.post("/selection/competition/{competition_id}")
def select_competition(competition_id: str, selection: SelectionState = Depends(get_selection)):
    selection.set_competition(competition_id)
    return _view_response(selection)


@app.post("/selection/class/{resource_class}")
def select_class(resource_class: str, selection: SelectionState = Depends(get_selection)):
    allowed = [c.value for c in SELECTABLE_CLASSES]
    if resource_class not in allowed:
        raise HTTPException(
            status_code=422,
            detail=f"Unknown class '{resource_class}', expected one of {allowed}",
        )
    selection.set_active_class(ResourceClass(resource_class))
    return _view_response(selection)


@app.post("/refresh")
def refresh(selection: SelectionState = Depends(get_selection)):
    """Explicit refresh of the active view, bypassing the cache."""
    selection.refresh()
    return _view_response(selection)


@app.post("/connectivity/{state}")
def set_connectivity(state: str, connectivity: ConnectivityMonitor = Depends(get_connectivity)):
    """Report an online/offline transition from the host environment."""
    if state not in ("online", "offline"):
        raise HTTPException(status_code=422, detail="state must be 'online' or 'offline'")
    connectivity.set_online(state == "online")
    return {"isOnline": connectivity.is_online}


@app.get("/cache/stats")
def cache_stats(selection: SelectionState = Depends(get_selection)):
    """Get cache statistics."""
    return selection.coordinator.get_stats()
