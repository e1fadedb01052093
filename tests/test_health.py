"""
Tests for the JSON surface. The selection dependency is replaced with one
backed by a scripted fetcher, so no network access is needed.
"""
import threading
import time
import pytest
from datetime import datetime, timedelta, timezone
from fastapi.testclient import TestClient

from conftest import FakeClock, FakeFetcher, FakeTimerFactory, network_err, ok_catalog, ok_matches
from matchfeed import main
from matchfeed.cache import CATALOG_KEY, LIVE_KEY, TODAY_KEY, fixtures_key
from matchfeed.connectivity import ConnectivityMonitor
from matchfeed.main import app, get_connectivity, get_selection
from matchfeed.refresh import LiveDataPoller, RefreshCoordinator
from matchfeed.selection import SelectionState
from matchfeed.view_models import format_time_label


@pytest.fixture
def fake_fetcher():
    fetcher = FakeFetcher()
    fetcher.queue(CATALOG_KEY, ok_catalog("premier-league", "la-liga"))
    return fetcher


@pytest.fixture
def client(fake_fetcher):
    monitor = ConnectivityMonitor()
    selection = SelectionState(
        RefreshCoordinator(fetch=fake_fetcher, clock=FakeClock()),
        poller=LiveDataPoller(interval_seconds=30, timer_factory=FakeTimerFactory()),
        connectivity=monitor,
        competition="premier-league",
    )
    app.dependency_overrides[get_selection] = lambda: selection
    app.dependency_overrides[get_connectivity] = lambda: monitor
    yield TestClient(app)
    app.dependency_overrides.clear()
    selection.close()


def test_health_endpoint_returns_ok_status(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_version_endpoint(client):
    assert client.get("/version").json()["name"] == "Matchfeed"


def test_competitions_loaded_once(client, fake_fetcher):
    first = client.get("/competitions").json()
    client.get("/competitions")

    assert set(first["competitions"]) == {"premier-league", "la-liga"}
    assert first["competitions"]["la-liga"]["name"] == "La Liga"
    assert fake_fetcher.count(CATALOG_KEY) == 1


def test_view_returns_active_fixtures(client, fake_fetcher):
    data = client.get("/view").json()

    assert data["activeClass"] == "fixtures"
    assert data["activeCompetition"] == "premier-league"
    assert data["loading"] is False
    assert data["error"] is None
    assert len(data["data"]) == 1
    assert len(data["cards"]) == 1
    assert data["isOnline"] is True


def test_select_competition_and_class(client, fake_fetcher):
    client.post("/selection/competition/la-liga")
    data = client.post("/selection/class/today").json()

    assert data["activeClass"] == "today"
    assert fake_fetcher.count(fixtures_key("la-liga")) == 1
    assert fake_fetcher.count(TODAY_KEY) == 1


def test_unknown_class_is_422(client):
    assert client.post("/selection/class/catalog").status_code == 422


def test_refresh_bypasses_cache(client, fake_fetcher):
    client.get("/view")
    client.post("/refresh")

    assert fake_fetcher.count(fixtures_key("premier-league")) == 2


def test_degraded_view_after_failed_refresh(client, fake_fetcher):
    client.get("/view")
    fake_fetcher.queue(fixtures_key("premier-league"), network_err())

    data = client.post("/refresh").json()

    assert data["isStale"] is True
    assert data["degraded"] is True
    assert data["error"].startswith("Using cached data")
    assert len(data["data"]) == 1


def test_empty_view_after_failure_without_cache(client, fake_fetcher):
    fake_fetcher.queue(TODAY_KEY, network_err("network unavailable: timed out"))

    data = client.post("/selection/class/today").json()

    assert data["data"] == []
    assert data["degraded"] is False
    assert data["error"] == "network unavailable: timed out"


def test_connectivity_endpoint(client):
    assert client.post("/connectivity/offline").json() == {"isOnline": False}
    assert client.get("/view").json()["isOnline"] is False
    assert client.post("/connectivity/sideways").status_code == 422


def test_cache_stats(client):
    client.get("/view")
    stats = client.get("/cache/stats").json()
    assert stats["entries"] == 1
    assert stats["fetches"] == 1


def test_live_count_tracks_cached_live_matches(client, fake_fetcher):
    fake_fetcher.queue(LIVE_KEY, ok_matches("l1", "l2"))

    assert client.get("/view").json()["liveCount"] == 0
    client.post("/selection/class/live")
    data = client.post("/selection/class/today").json()

    assert data["activeClass"] == "today"
    assert data["liveCount"] == 2
    assert data["matchCount"] == 1


def test_cards_use_local_time_by_default(client):
    data = client.get("/view").json()

    kickoff = datetime(2025, 3, 1, 15, 0, tzinfo=timezone.utc)
    local_tz = datetime.now().astimezone().tzinfo
    assert data["cards"][0]["time"] == format_time_label(kickoff.astimezone(local_tz))


def test_view_response_labels_in_given_timezone(client):
    client.get("/view")
    selection = app.dependency_overrides[get_selection]()
    new_york = timezone(timedelta(hours=-5))

    response = main._view_response(selection, now=datetime(2025, 3, 1, 23, 30, tzinfo=new_york))

    assert response["cards"][0]["time"] == "10:00 AM"
    assert response["cards"][0]["date"] == "Today"


# =============================================================================
# Process-wide singletons
# =============================================================================

class SlowFetcher:
    def __init__(self):
        time.sleep(0.05)

    def fetch(self, key):
        raise AssertionError("no fetch expected")


def test_concurrent_get_selection_builds_one_instance(monkeypatch):
    monkeypatch.setattr(main, "ResourceFetcher", SlowFetcher)
    main.shutdown_selection()
    seen = []
    barrier = threading.Barrier(4)

    def worker():
        barrier.wait(5)
        seen.append(get_selection())

    threads = [threading.Thread(target=worker) for _ in range(4)]
    try:
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(5)

        assert len(seen) == 4
        assert all(selection is seen[0] for selection in seen)
        assert seen[0].coordinator.get_stats()["fetches"] == 0
    finally:
        main.shutdown_selection()


def test_shutdown_closes_and_resets_selection(monkeypatch):
    monkeypatch.setattr(main, "ResourceFetcher", SlowFetcher)
    main.shutdown_selection()
    first = get_selection()

    main.shutdown_selection()

    assert first._closed
    assert get_selection() is not first
    main.shutdown_selection()
