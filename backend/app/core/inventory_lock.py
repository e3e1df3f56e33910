"""
Per-inventory Redis mutex.

Room bookings for the same room type are serialized while the overlap
count is re-checked and the booking row is written. When Redis is not
reachable the lock reports itself as acquired and the database row lock
taken by the booking flow remains the guard.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
import threading
import time
from typing import Iterator, Optional

from redis import Redis

from app.core.config import settings
from app.monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

_SYNC_REDIS: Optional[Redis] = None
_SYNC_REDIS_LOCK = threading.Lock()


def _lock_key(resource: str) -> str:
    return f"{settings.inventory_lock_namespace}:lock:inventory:{resource}"


def _get_sync_redis() -> Optional[Redis]:
    global _SYNC_REDIS
    if _SYNC_REDIS is not None:
        return _SYNC_REDIS
    with _SYNC_REDIS_LOCK:
        if _SYNC_REDIS is not None:
            return _SYNC_REDIS
        try:
            client = Redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=1,
            )
            client.ping()
        except Exception as exc:
            logger.warning("inventory_lock_redis_unavailable: %s", exc)
            return None
        _SYNC_REDIS = client
        return _SYNC_REDIS


def acquire_inventory_lock(resource: str, ttl_s: Optional[int] = None) -> bool:
    client = _get_sync_redis()
    if client is None:
        prometheus_metrics.record_inventory_lock("acquire", "redis_unavailable")
        return True
    ttl = ttl_s or settings.inventory_lock_ttl_seconds
    try:
        acquired = bool(client.set(_lock_key(resource), str(time.time()), nx=True, ex=ttl))
    except Exception as exc:
        prometheus_metrics.record_inventory_lock("acquire", "error")
        logger.warning(
            "inventory_lock_acquire_failed",
            extra={
                "resource": resource,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )
        return True
    prometheus_metrics.record_inventory_lock("acquire", "success" if acquired else "blocked")
    return acquired


def release_inventory_lock(resource: str) -> None:
    client = _get_sync_redis()
    if client is None:
        prometheus_metrics.record_inventory_lock("release", "redis_unavailable")
        return
    try:
        deleted = client.delete(_lock_key(resource))
        prometheus_metrics.record_inventory_lock("release", "success" if deleted else "not_found")
    except Exception as exc:
        prometheus_metrics.record_inventory_lock("release", "error")
        logger.warning(
            "inventory_lock_release_failed",
            extra={
                "resource": resource,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )


@contextmanager
def inventory_lock(resource: str, ttl_s: Optional[int] = None) -> Iterator[bool]:
    """Hold the mutex for ``resource``; yields False when another writer holds it."""
    acquired = acquire_inventory_lock(resource, ttl_s=ttl_s)
    try:
        yield acquired
    finally:
        if acquired:
            release_inventory_lock(resource)
