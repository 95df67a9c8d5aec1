from fastapi.testclient import TestClient

from app.main import app
from app.utils import redis_cache


class DummyRedis:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


def test_close_redis_client(monkeypatch):
    dummy = DummyRedis()
    monkeypatch.setattr(redis_cache, "_redis_client", dummy)
    redis_cache.close_redis_client()
    assert dummy.closed
    assert redis_cache._redis_client is None


def test_shutdown_event_closes_client(monkeypatch):
    dummy = DummyRedis()
    monkeypatch.setattr(redis_cache, "_redis_client", dummy)

    with TestClient(app):
        pass

    assert dummy.closed
    assert redis_cache._redis_client is None


def test_healthz_reports_ok():
    resp = TestClient(app).get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert resp.headers["cache-control"] == "no-store"


def test_openapi_lists_booking_routes():
    from main import app as documented_app

    spec = TestClient(documented_app).get("/openapi.json")
    assert spec.status_code == 200
    assert spec.json()["info"]["title"] == "Vendor Bookings API"
    paths = spec.json()["paths"]
    assert "/api/v1/booking-requests/{request_id}/transitions" in paths
    assert "/api/v1/vendors/{vendor_id}/calendar" in paths
    assert "/api/v1/auth/login" in paths
