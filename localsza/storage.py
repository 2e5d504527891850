"""Durable key-value storage backing the cart and favorites stores.

Two backends implement the same tiny contract: :class:`RedisStorage` for
deployments with a Redis instance and :class:`MemoryStorage` for local
development, tests, and as the fallback when Redis is unreachable. Both report
write failures through their return value instead of raising so the stores can
keep their in-memory state authoritative.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Protocol

from redis import Redis
from redis.exceptions import RedisError

from localsza.errors import ErrorType
from localsza.settings import AppSettings, get_settings

logger = logging.getLogger(__name__)

CART_KEY = "cart"
FAVORITES_KEY = "favorites"

_redis_client: Redis | None = None
_client_lock = threading.Lock()
_redis_disabled_until: float = 0.0


class DurableStorage(Protocol):
    """Key-string/value-string persistence local to one user or session."""

    def get(self, key: str) -> str | None:
        """Return the stored value or ``None`` when absent or unreadable."""

    def set(self, key: str, value: str) -> bool:
        """Store ``value`` and report whether the write succeeded."""


def storage_key(name: str, *, prefix: str = "", namespace: str | None = None) -> str:
    """Compose a storage key from the configured prefix and an optional namespace."""

    parts = [part for part in (prefix.strip(":"), namespace, name) if part]
    return ":".join(parts)


class MemoryStorage:
    """In-process storage with an optional byte quota.

    The quota mirrors the browser's storage limit: a write that would push the
    total encoded size over ``quota_bytes`` is rejected and the previous value
    is kept.
    """

    def __init__(self, initial: dict[str, str] | None = None, *, quota_bytes: int | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._quota_bytes = quota_bytes

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> bool:
        if self._quota_bytes is not None:
            current = sum(
                len(stored.encode("utf-8"))
                for existing_key, stored in self._data.items()
                if existing_key != key
            )
            if current + len(value.encode("utf-8")) > self._quota_bytes:
                logger.debug(f"Memory storage quota exceeded writing key {key}")
                return False
        self._data[key] = value
        return True

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


def _is_redis_error(exc: BaseException) -> bool:
    """Return ``True`` when ``exc`` originates from the Redis client."""

    if isinstance(exc, RedisError):
        return True

    error_type = type(exc)
    return error_type.__module__.startswith("redis")


class RedisStorage:
    """Durable storage backed by a synchronous Redis client.

    Redis failures degrade to "absent" on reads and to a failed write on
    writes. Anything else is a programming error and propagates.
    """

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    def get(self, key: str) -> str | None:
        try:
            payload = self._redis.get(key)
        except Exception as exc:  # type: ignore[broad-except]
            if _is_redis_error(exc):
                logger.debug(f"Redis get failed for key {key}: {exc}")
                return None
            raise
        if payload is None:
            return None
        if isinstance(payload, bytes):
            return payload.decode("utf-8", errors="replace")
        return str(payload)

    def set(self, key: str, value: str) -> bool:
        try:
            self._redis.set(key, value)
        except Exception as exc:  # type: ignore[broad-except]
            if _is_redis_error(exc):
                logger.warning(
                    f"{ErrorType.STORAGE_WRITE_FAILURE.value}: Redis set failed for key {key}: {exc}"
                )
                return False
            raise
        return True

    def delete(self, key: str) -> None:
        try:
            self._redis.delete(key)
        except Exception as exc:  # type: ignore[broad-except]
            if _is_redis_error(exc):
                logger.debug(f"Redis delete failed for key {key}: {exc}")
                return
            raise


def get_redis(settings: AppSettings | None = None) -> Redis | None:
    """Return the shared Redis client, or ``None`` while Redis is unavailable.

    A failed connection disables further attempts until the configured
    back-off window has elapsed.
    """

    global _redis_client, _redis_disabled_until
    resolved = settings or get_settings()

    with _client_lock:
        if _redis_client is not None:
            return _redis_client

        now = time.monotonic()
        if now < _redis_disabled_until:
            logger.debug("Redis connection disabled after previous failure; skipping attempt.")
            return None

        try:
            client = Redis.from_url(resolved.redis_url, decode_responses=True, encoding="utf-8")
            client.ping()
        except Exception as exc:  # type: ignore[broad-except]
            if _is_redis_error(exc):
                logger.warning(
                    f"Redis connection failed: {exc}. Falling back to in-memory storage "
                    f"for {resolved.redis_retry_backoff_seconds:.0f}s."
                )
                _redis_disabled_until = now + resolved.redis_retry_backoff_seconds
                return None
            raise

        _redis_client = client
        _redis_disabled_until = 0.0
        logger.info("Redis connection established successfully")
        return _redis_client


def close_redis() -> None:
    """Close the shared Redis connection and reset the back-off window."""

    global _redis_client, _redis_disabled_until
    with _client_lock:
        if _redis_client is not None:
            _redis_client.close()
            _redis_client = None
        _redis_disabled_until = 0.0


def get_storage(settings: AppSettings | None = None) -> RedisStorage | MemoryStorage:
    """Return the durable storage backend selected by ``settings``."""

    resolved = settings or get_settings()
    if resolved.use_memory_storage:
        return MemoryStorage(quota_bytes=resolved.storage_quota_bytes)

    redis = get_redis(resolved)
    if redis is None:
        return MemoryStorage(quota_bytes=resolved.storage_quota_bytes)
    return RedisStorage(redis)


__all__ = [
    "CART_KEY",
    "DurableStorage",
    "FAVORITES_KEY",
    "MemoryStorage",
    "RedisStorage",
    "close_redis",
    "get_redis",
    "get_storage",
    "storage_key",
]
