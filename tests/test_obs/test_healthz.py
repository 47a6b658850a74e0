# tests/test_obs/test_healthz.py
from fastapi.testclient import TestClient

from moovie.core.config import settings
from moovie.core.redis_client import redis_wrapper
from moovie.main import create_app


def _mk_client(monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_TEST_BYPASS", "1")
    return TestClient(create_app())


def test_healthz_is_ok(monkeypatch):
    with _mk_client(monkeypatch) as client:
        r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"ok": True}
    assert r.headers.get("x-request-id")
    assert "server" not in r.headers


def test_readyz_skips_unused_backends(monkeypatch):
    with _mk_client(monkeypatch) as client:
        r = client.get("/readyz")
    assert r.status_code == 200
    assert r.json() == {"ready": True, "checks": {"db": None, "redis": None}}


def test_readyz_reports_redis_outage(monkeypatch):
    monkeypatch.setattr(settings, "ADS_FREQUENCY_BACKEND", "redis")

    async def _down():
        return False

    monkeypatch.setattr(redis_wrapper, "is_connected", _down)
    client = _mk_client(monkeypatch)
    r = client.get("/readyz")
    assert r.status_code == 503
    assert r.json()["checks"]["redis"] is False


def test_request_id_is_echoed(monkeypatch):
    rid = "3f2b8c1e-4d5a-4b6c-8d7e-9f0a1b2c3d4e"
    client = _mk_client(monkeypatch)
    r = client.get("/healthz", headers={"X-Request-ID": rid})
    assert r.headers.get("x-request-id") == rid


def test_api_routes_are_mounted(monkeypatch):
    client = _mk_client(monkeypatch)
    r = client.get(f"{settings.API_V1_STR}/admin/ads/settings")
    assert r.status_code == 200
    assert r.json()["masterEnabled"] is True

    r = client.post(f"{settings.API_V1_STR}/admin/ads/networks", json={"name": "x"})
    assert r.status_code == 403
    assert r.json()["success"] is False
