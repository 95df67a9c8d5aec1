import fakeredis

from app.utils import redis_cache


def test_cache_calendar_round_trip(monkeypatch):
    fake = fakeredis.FakeStrictRedis()
    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: fake)

    data = {"month": "2025-03", "days": [{"date": "2025-03-01", "status": "available"}]}
    redis_cache.cache_calendar(data, vendor_id=1, year=2025, month=3, expire=10)
    assert redis_cache.get_cached_calendar(1, 2025, 3) == data
    assert redis_cache.get_cached_calendar(1, 2025, 4) is None
    assert redis_cache.get_cached_calendar(2, 2025, 3) is None


def test_invalidate_calendar_cache_is_vendor_scoped(monkeypatch):
    fake = fakeredis.FakeStrictRedis()
    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: fake)

    redis_cache.cache_calendar({"month": "2025-03"}, 1, 2025, 3)
    redis_cache.cache_calendar({"month": "2025-04"}, 1, 2025, 4)
    redis_cache.cache_calendar({"month": "2025-03"}, 2, 2025, 3)
    redis_cache.invalidate_calendar_cache(1)
    assert redis_cache.get_cached_calendar(1, 2025, 3) is None
    assert redis_cache.get_cached_calendar(1, 2025, 4) is None
    assert redis_cache.get_cached_calendar(2, 2025, 3) == {"month": "2025-03"}


def test_corrupted_entry_is_a_miss(monkeypatch):
    fake = fakeredis.FakeStrictRedis()
    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: fake)
    fake.set("calendar:1:2025-03", b"{not json")
    assert redis_cache.get_cached_calendar(1, 2025, 3) is None


def test_remove_and_restore_cached_queue_item(monkeypatch):
    fake = fakeredis.FakeStrictRedis()
    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: fake)

    queues = {"requests": [{"id": 1}, {"id": 2}, {"id": 3}], "booked": []}
    redis_cache.cache_request_queues(queues, "vendor", 7)

    removed = redis_cache.remove_from_cached_queue("vendor", 7, 2)
    assert removed == {"queue": "requests", "index": 1, "item": {"id": 2}}
    assert redis_cache.get_cached_request_queues("vendor", 7)["requests"] == [{"id": 1}, {"id": 3}]

    redis_cache.restore_to_cached_queue("vendor", 7, removed)
    assert redis_cache.get_cached_request_queues("vendor", 7)["requests"] == [
        {"id": 1},
        {"id": 2},
        {"id": 3},
    ]
    # Restoring twice does not duplicate the item
    redis_cache.restore_to_cached_queue("vendor", 7, removed)
    assert len(redis_cache.get_cached_request_queues("vendor", 7)["requests"]) == 3


def test_remove_from_uncached_queue_returns_none(monkeypatch):
    fake = fakeredis.FakeStrictRedis()
    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: fake)
    assert redis_cache.remove_from_cached_queue("viewer", 1, 5) is None
    redis_cache.restore_to_cached_queue("viewer", 1, None)
    assert redis_cache.get_cached_request_queues("viewer", 1) is None


def test_revoked_tokens(monkeypatch):
    fake = fakeredis.FakeStrictRedis()
    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: fake)
    assert redis_cache.is_token_revoked("abc") is False
    redis_cache.revoke_token("abc", 60)
    assert redis_cache.is_token_revoked("abc") is True
    assert redis_cache.is_token_revoked(None) is False


def test_disabled_redis_uses_null_client(monkeypatch):
    monkeypatch.setattr(redis_cache.settings, "REDIS_URL", "disabled")
    monkeypatch.setattr(redis_cache, "_redis_client", None)
    client = redis_cache.get_redis_client()
    assert isinstance(client, redis_cache._NullRedis)
    redis_cache.cache_calendar({"month": "2025-03"}, 1, 2025, 3)
    assert redis_cache.get_cached_calendar(1, 2025, 3) is None


def test_cache_module_annotations_are_postponed():
    # Keeps `dict | None` style hints importable on Python 3.9
    assert redis_cache.get_cached_calendar.__annotations__["return"] == "dict | None"
