import asyncio

import pytest
from fastapi.testclient import TestClient

from fakes import DownCatalog, FakeCatalog, FakeGeocoder, USER, make_report, north_of
from safezone.api.app import app
from safezone.config.settings import get_settings
from safezone.discovery.orchestrator import DiscoveryStack


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def _use_stack(client, catalog, geocoder):
    client.app.state.discovery = DiscoveryStack(
        settings=get_settings(), catalog=catalog, geocoder=geocoder, geocode_slots=asyncio.Semaphore(4)
    )


def test_lifespan_builds_one_stack_and_closes_its_client():
    with TestClient(app) as test_client:
        stack = test_client.app.state.discovery
        assert isinstance(stack, DiscoveryStack)
        assert not stack.client.is_closed
        test_client.get("/api/health")
        assert test_client.app.state.discovery is stack
    assert stack.client.is_closed


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_settings_are_redacted(client, monkeypatch):
    monkeypatch.setenv("SAFEZONE_CATALOG_API_KEY", "secret")
    get_settings.cache_clear()
    try:
        payload = client.get("/api/settings").json()
    finally:
        get_settings.cache_clear()
    assert "api_key" not in payload["catalog"]
    assert payload["catalog"]["api_key_configured"] is True
    assert "secret" not in str(payload)


def test_discovery_returns_markers_near_user(client):
    reports = [make_report("R1", "Calle El Conde 1"), make_report("R2", "Carretera Duarte km 15")]
    geocoder = FakeGeocoder(
        {"Calle El Conde 1": north_of(USER, 2.0), "Carretera Duarte km 15": north_of(USER, 15.0)}
    )
    _use_stack(client, FakeCatalog(reports), geocoder)

    resp = client.post(
        "/api/discovery",
        json={"user_location": {"latitude": USER.latitude, "longitude": USER.longitude}, "max_distance_km": 10},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert [m["report_id"] for m in body["markers"]] == ["R1"]
    assert [d["kind"] for d in body["diagnostics"]["entries"]] == ["FILTERED_OUT"]
    assert body["map_view"]["zoom"] == 12


def test_discovery_catalog_down_is_503(client):
    _use_stack(client, DownCatalog(), FakeGeocoder())
    resp = client.post("/api/discovery", json={})
    assert resp.status_code == 503
    assert resp.json()["detail"].startswith("catalog unavailable")


def test_discovery_rejects_invalid_radius(client):
    _use_stack(client, FakeCatalog([]), FakeGeocoder())
    resp = client.post("/api/discovery", json={"max_distance_km": -1})
    assert resp.status_code == 400


def test_discovery_rejects_disallowed_override(client):
    _use_stack(client, FakeCatalog([]), FakeGeocoder())
    resp = client.post("/api/discovery", json={"settings_overrides": {"catalog": {"base_url": "http://evil"}}})
    assert resp.status_code == 400
    assert "disallowed key" in resp.json()["detail"]


def test_cors_defaults_to_localhost(monkeypatch):
    from safezone.api.app import LOCALHOST_ORIGIN_REGEX, _cors_options

    monkeypatch.delenv("SAFEZONE_CORS_ORIGINS", raising=False)
    monkeypatch.delenv("SAFEZONE_CORS_ALLOW_LOCAL", raising=False)
    assert _cors_options() == {"allow_origin_regex": LOCALHOST_ORIGIN_REGEX}

    monkeypatch.setenv("SAFEZONE_CORS_ORIGINS", "https://map.example.org, https://admin.example.org")
    assert _cors_options() == {"allow_origins": ["https://map.example.org", "https://admin.example.org"]}

    monkeypatch.delenv("SAFEZONE_CORS_ORIGINS")
    monkeypatch.setenv("SAFEZONE_CORS_ALLOW_LOCAL", "0")
    assert _cors_options() is None
