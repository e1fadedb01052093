"""
Active selection: which competition and which resource class are shown.

Selection changes drive the coordinator; entering the live class starts the
poller and leaving it (or closing) stops it.
"""
import threading
import logging
from typing import Optional, Union

from matchfeed.cache import (
    CATALOG_KEY,
    LIVE_KEY,
    TODAY_KEY,
    ResourceClass,
    ResourceKey,
    fixtures_key,
)
from matchfeed.connectivity import ConnectivitySource
from matchfeed.models import ResourcePayload
from matchfeed.refresh import LiveDataPoller, RefreshCoordinator, ResourceView
from config.settings import settings

logger = logging.getLogger("selection")

SELECTABLE_CLASSES = (ResourceClass.FIXTURES, ResourceClass.TODAY, ResourceClass.LIVE)


class SelectionState:
    """
    Tracks the active competition and resource class.

    Usage:
        selection = SelectionState(coordinator, LiveDataPoller())
        selection.start()
        selection.set_competition("la-liga")
        selection.set_active_class("live")
        ...
        selection.close()
    """

    def __init__(
        self,
        coordinator: RefreshCoordinator,
        poller: Optional[LiveDataPoller] = None,
        connectivity: Optional[ConnectivitySource] = None,
        competition: Optional[str] = None,
        active_class: ResourceClass = ResourceClass.FIXTURES,
    ):
        if active_class not in SELECTABLE_CLASSES:
            raise ValueError(f"{active_class.value} cannot be selected")
        self.coordinator = coordinator
        self.poller = poller or LiveDataPoller()
        self.active_competition = competition or settings.default_competition
        self.active_class = active_class
        self._connectivity = connectivity
        self._is_online = connectivity.is_online if connectivity else True
        self._unsubscribe = connectivity.subscribe(self._on_connectivity) if connectivity else None
        self._lock = threading.RLock()
        self._closed = False

        if self.active_class == ResourceClass.LIVE:
            self._start_polling()

    @property
    def is_online(self) -> bool:
        return self._is_online

    def _on_connectivity(self, online: bool) -> None:
        self._is_online = online

    def active_key(self) -> ResourceKey:
        """Resource key of whatever is currently shown."""
        if self.active_class == ResourceClass.TODAY:
            return TODAY_KEY
        if self.active_class == ResourceClass.LIVE:
            return LIVE_KEY
        return fixtures_key(self.active_competition)

    def load_catalog(self) -> ResourcePayload:
        return self.coordinator.resolve(CATALOG_KEY)

    def start(self) -> ResourcePayload:
        """
        Load the competition catalog once, then the active view.

        Fixtures are only requested once the catalog has competitions,
        matching the upstream's expectation that league ids come from it.
        """
        catalog = self.load_catalog()
        if self.active_class == ResourceClass.FIXTURES and not catalog.competitions:
            logger.warning("Competition catalog is empty, skipping fixtures load")
            return ResourcePayload()
        return self.coordinator.resolve(self.active_key())

    def set_competition(self, competition_id: str) -> Optional[ResourcePayload]:
        """
        Select a competition.

        While fixtures are shown, the previous competition's matches are
        cleared from display (its cache entry is kept) and the new
        competition is resolved.
        """
        if not competition_id:
            raise ValueError("competition_id is required")

        with self._lock:
            previous = self.active_competition
            self.active_competition = competition_id
            showing_fixtures = self.active_class == ResourceClass.FIXTURES

        if not showing_fixtures:
            return None

        if previous != competition_id:
            self.coordinator.clear_display(fixtures_key(previous))
        logger.info(f"Competition changed: {previous} -> {competition_id}")
        return self.coordinator.resolve(fixtures_key(competition_id))

    def set_active_class(self, resource_class: Union[ResourceClass, str]) -> ResourcePayload:
        """Switch the shown resource class and resolve it (TTL permitting)."""
        resource_class = ResourceClass(resource_class)
        if resource_class not in SELECTABLE_CLASSES:
            raise ValueError(f"{resource_class.value} cannot be selected")

        with self._lock:
            previous = self.active_class
            self.active_class = resource_class

            if previous == ResourceClass.LIVE and resource_class != ResourceClass.LIVE:
                self.poller.stop()
            elif resource_class == ResourceClass.LIVE and previous != ResourceClass.LIVE:
                if self._closed:
                    logger.warning("Selection is closed, live polling not started")
                else:
                    self._start_polling()

        logger.info(f"Active class changed: {previous.value} -> {resource_class.value}")
        return self.coordinator.resolve(self.active_key())

    def refresh(self) -> ResourcePayload:
        """User-triggered refresh of the active view, bypassing the cache."""
        return self.coordinator.resolve(self.active_key(), force_refresh=True)

    def current_view(self) -> ResourceView:
        return self.coordinator.view(self.active_key())

    def catalog_view(self) -> ResourceView:
        return self.coordinator.view(CATALOG_KEY)

    def _start_polling(self) -> None:
        self.poller.start(self._poll_live)

    def _poll_live(self) -> None:
        self.coordinator.resolve(LIVE_KEY)

    def close(self) -> None:
        """Stop polling and detach from connectivity. Safe to call twice."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self.poller.stop()
            if self._unsubscribe is not None:
                self._unsubscribe()
                self._unsubscribe = None
        logger.info("Selection closed")
