from __future__ import annotations

import logging
import random
import os
from typing import Any, Optional

import redis

from app.core.config import settings
from .json_utils import dumps, loads

logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None


class _NullRedis:
    """No-op Redis client used when Redis is disabled or unavailable.

    Methods mirror the minimal surface used in this codebase so callers can
    proceed without needing try/except around get_redis_client().
    """

    def get(self, key: str):
        return None

    def setex(self, key: str, expire: int, value: str):
        return None

    def exists(self, key: str):
        return 0

    def scan_iter(self, pattern: str):
        return iter(())

    def delete(self, key: str):
        return 0

    def close(self):
        return None


def get_redis_client() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        url = (settings.REDIS_URL or "").strip()
        # Allow disabling via empty/none/disabled/false
        if not url or url.lower() in {"none", "disabled", "false", "0"}:
            _redis_client = _NullRedis()  # type: ignore[assignment]
            return _redis_client
        # Conservative socket timeouts so a slow Redis does not stall requests
        _redis_client = redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=float(os.getenv("REDIS_CONNECT_TIMEOUT", "0.5")),
            socket_timeout=float(os.getenv("REDIS_SOCKET_TIMEOUT", "0.5")),
        )
    return _redis_client


CALENDAR_KEY_PREFIX = "calendar"
REQUEST_QUEUE_KEY_PREFIX = "request_queues"
REVOKED_TOKEN_KEY_PREFIX = "revoked_token"


def _apply_jitter(expire: int) -> int:
    """Spread expiries by ±10% so cached months do not all refresh together."""
    spread = max(1, int(expire * 0.1))
    return max(1, expire + random.randint(-spread, spread))


def _get_json(key: str) -> Any:
    client = get_redis_client()
    try:
        data = client.get(key)
    except redis.exceptions.RedisError as exc:
        logger.warning("Redis unavailable: %s", exc)
        return None
    if not data:
        return None
    try:
        return loads(data)
    except Exception as exc:
        # A corrupted entry is treated as a miss
        logger.warning("Could not decode cache entry %s: %s", key, exc)
        return None


def _set_json(key: str, data: Any, expire: int) -> None:
    client = get_redis_client()
    try:
        client.setex(key, _apply_jitter(expire), dumps(data))
    except redis.exceptions.RedisError as exc:
        logger.warning("Could not cache %s: %s", key, exc)


def _delete_pattern(pattern: str) -> None:
    client = get_redis_client()
    try:
        for key in client.scan_iter(pattern):
            client.delete(key)
    except redis.exceptions.RedisError as exc:
        logger.warning("Could not clear cache pattern %s: %s", pattern, exc)


# ─── MONTH CALENDARS ─────────────────────────────────────────────────────────
def _calendar_key(vendor_id: int, year: int, month: int) -> str:
    return f"{CALENDAR_KEY_PREFIX}:{vendor_id}:{year:04d}-{month:02d}"


def get_cached_calendar(vendor_id: int, year: int, month: int) -> dict | None:
    return _get_json(_calendar_key(vendor_id, year, month))


def cache_calendar(
    data: dict,
    vendor_id: int,
    year: int,
    month: int,
    expire: Optional[int] = None,
) -> None:
    _set_json(
        _calendar_key(vendor_id, year, month),
        data,
        expire or settings.CALENDAR_CACHE_TTL,
    )


def invalidate_calendar_cache(vendor_id: int) -> None:
    _delete_pattern(f"{CALENDAR_KEY_PREFIX}:{vendor_id}:*")


# ─── REQUEST QUEUES ──────────────────────────────────────────────────────────
def _queue_key(role: str, owner_id: int) -> str:
    return f"{REQUEST_QUEUE_KEY_PREFIX}:{role}:{owner_id}"


def get_cached_request_queues(role: str, owner_id: int) -> dict | None:
    """Return ``{queue_name: [request, ...]}`` for a vendor or viewer."""
    return _get_json(_queue_key(role, owner_id))


def cache_request_queues(data: dict, role: str, owner_id: int) -> None:
    _set_json(_queue_key(role, owner_id), data, settings.REQUEST_QUEUE_CACHE_TTL)


def invalidate_request_queues(role: str, owner_id: int) -> None:
    client = get_redis_client()
    try:
        client.delete(_queue_key(role, owner_id))
    except redis.exceptions.RedisError as exc:
        logger.warning("Could not clear request queues: %s", exc)


def remove_from_cached_queue(role: str, owner_id: int, request_id: int) -> Optional[dict]:
    """Drop one request from whichever cached queue holds it.

    Returns a record describing the removal (queue name, position and item)
    for :func:`restore_to_cached_queue`, or None when nothing was cached.
    """
    queues = get_cached_request_queues(role, owner_id)
    if not queues:
        return None
    for name, items in queues.items():
        for index, item in enumerate(items):
            if item.get("id") == request_id:
                del items[index]
                cache_request_queues(queues, role, owner_id)
                return {"queue": name, "index": index, "item": item}
    return None


def restore_to_cached_queue(role: str, owner_id: int, removed: Optional[dict]) -> None:
    if not removed:
        return
    queues = get_cached_request_queues(role, owner_id)
    if queues is None:
        # Entry expired meanwhile; the next list call rebuilds it from the DB.
        return
    items = queues.setdefault(removed["queue"], [])
    if any(i.get("id") == removed["item"].get("id") for i in items):
        return
    items.insert(min(removed["index"], len(items)), removed["item"])
    cache_request_queues(queues, role, owner_id)


# ─── SIGNED-OUT TOKENS ───────────────────────────────────────────────────────
def revoke_token(jti: str, expire: int) -> None:
    client = get_redis_client()
    try:
        client.setex(f"{REVOKED_TOKEN_KEY_PREFIX}:{jti}", max(1, int(expire)), "1")
    except redis.exceptions.RedisError as exc:
        logger.warning("Could not record revoked token: %s", exc)


def is_token_revoked(jti: Optional[str]) -> bool:
    if not jti:
        return False
    client = get_redis_client()
    try:
        return bool(client.exists(f"{REVOKED_TOKEN_KEY_PREFIX}:{jti}"))
    except redis.exceptions.RedisError as exc:
        logger.warning("Could not check revoked token: %s", exc)
        return False


def close_redis_client() -> None:
    """Close the global Redis client if it exists."""
    global _redis_client
    if _redis_client is not None:
        try:
            _redis_client.close()
        except redis.exceptions.RedisError as exc:  # pragma: no cover - best effort
            logger.warning("Error closing Redis client: %s", exc)
        finally:
            _redis_client = None
