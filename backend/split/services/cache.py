"""Key-value cache used for short-lived dashboard aggregates.

One instance is built at application startup (see ``create_cache``) and
handed to request handlers through a dependency.
"""

import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any

import redis

logger = logging.getLogger(__name__)


class KeyValueCache(ABC):

    @abstractmethod
    def get(self, key: str) -> Any | None:
        ...

    @abstractmethod
    def set(self, key: str, value: Any, ttl: int) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    def close(self) -> None:
        pass


class MemoryCache(KeyValueCache):
    """In-process TTL map. Expired keys are dropped on read."""

    def __init__(self, clock=time.monotonic):
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: int) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + ttl, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


class RedisCache(KeyValueCache):
    """JSON values in Redis with SETEX expiry.

    Read errors behave as a miss and write errors are logged: the cache only
    ever fronts data that can be recomputed from the database.
    """

    def __init__(self, url: str, prefix: str = "split:"):
        self.prefix = prefix
        self.client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=5,
            socket_connect_timeout=5,
        )

    def get(self, key: str) -> Any | None:
        try:
            raw = self.client.get(self.prefix + key)
        except redis.RedisError as e:
            logger.error(f"Redis GET failed for key '{key}': {e}")
            return None
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any, ttl: int) -> None:
        try:
            self.client.setex(self.prefix + key, ttl, json.dumps(value, default=str))
        except redis.RedisError as e:
            logger.error(f"Redis SET failed for key '{key}': {e}")

    def delete(self, key: str) -> None:
        try:
            self.client.delete(self.prefix + key)
        except redis.RedisError as e:
            logger.error(f"Redis DELETE failed for key '{key}': {e}")

    def close(self) -> None:
        self.client.close()


def create_cache(cache_url: str) -> KeyValueCache:
    if cache_url:
        logger.info("Using Redis cache")
        return RedisCache(cache_url)
    logger.info("Using in-memory cache")
    return MemoryCache()
