"""
Tests for the HTTP surface. Most tests skip the lifespan and wire the store and
scheduler onto app.state by hand; the last one runs the real startup and shutdown.
"""

import threading
import time

import pytest
from fastapi.testclient import TestClient

from levelboard.core.cache import ScoreRecord, SnapshotStore
from levelboard.core.scheduler import RefreshScheduler
from levelboard.main import app


@pytest.fixture
def client():
    store = SnapshotStore()
    app.state.store = store
    app.state.scheduler = RefreshScheduler(store, lambda: [], 1200)
    return TestClient(app)


def test_known_id(client):
    client.app.state.store.replace({123456789012345678: 255})
    r = client.get("/levels/123456789012345678")
    assert r.status_code == 200
    assert r.json() == {
        "id":          "123456789012345678",
        "xp":          255,
        "level":       2,
        "percentage":  0.0,
        "progress_xp": 0,
        "needed_xp":   220,
    }


def test_unknown_id_is_404(client):
    client.app.state.store.replace({1: 500})
    r = client.get("/levels/3")
    assert r.status_code == 404
    assert "ID not known" in r.json()["detail"]


@pytest.mark.parametrize("raw", ["abc", "-1", "1.5", str(2**64)])
def test_unparseable_id_is_400(client, raw):
    r = client.get(f"/levels/{raw}")
    assert r.status_code == 400
    assert r.json()["detail"] == "Unable to parse ID"


def test_lookup_follows_replace(client):
    store = client.app.state.store
    store.replace({1: 500})
    assert client.get("/levels/1").json()["xp"] == 500
    store.replace({1: 700, 2: 10})
    assert client.get("/levels/1").json()["xp"] == 700
    assert client.get("/levels/2").json()["xp"] == 10


def test_health_warming_up(client):
    body = client.get("/health").json()
    assert body["status"] == "warming_up"
    assert body["snapshot"]["size"] == 0
    assert body["last_refresh"] is None
    assert body["scheduler"]["cycles"] == 0


def test_health_after_refresh(client):
    client.app.state.store.replace({1: 500})
    body = client.get("/health").json()
    assert body["status"] == "healthy"
    assert body["snapshot"]["size"] == 1
    assert body["last_refresh"] is not None


def test_root(client):
    body = client.get("/").json()
    assert body["status"] == "online"
    assert body["endpoints"]["level"] == "/levels/{user_id}"


def test_lifespan_refreshes_then_stops(monkeypatch):
    """Startup serves from an empty store until the first cycle installs; shutdown stops the loop."""
    gate = threading.Event()
    closed = []

    def fake_fetch():
        gate.wait(timeout=5)
        return [ScoreRecord(1, 500)]

    async def fake_close_all():
        closed.append(True)

    monkeypatch.setattr("levelboard.main.fetch_levels", fake_fetch)
    monkeypatch.setattr("levelboard.main.close_all", fake_close_all)

    try:
        with TestClient(app) as c:
            scheduler = c.app.state.scheduler
            assert c.get("/levels/1").status_code == 404
            assert c.get("/health").json()["status"] == "warming_up"

            gate.set()
            deadline = time.monotonic() + 5
            while c.get("/levels/1").status_code != 200 and time.monotonic() < deadline:
                time.sleep(0.01)

            assert c.get("/levels/1").json()["xp"] == 500
            assert scheduler.status()["running"] is True
            assert scheduler.cycles == 1
    finally:
        gate.set()

    assert scheduler.status()["running"] is False
    assert closed == [True]
