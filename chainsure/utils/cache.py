"""
Cache Utility
-------------
Redis-backed TTL cache with an in-process fallback. Used for ledger policy
reads, which change rarely and are fetched on every claim and listing.
"""

import json
import threading
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

import redis

from chainsure.utils.logger import logger


def safe_json_dumps(data: Any) -> str:
    """JSON with datetimes as ISO strings."""
    def default(o):
        if isinstance(o, datetime):
            return o.isoformat()
        return str(o)
    return json.dumps(data, default=default)


class RedisCache:
    """Uses Redis when `url` is given and reachable, otherwise a local dict with expiry."""

    def __init__(self, url: Optional[str] = None):
        self.url = url
        self._local: Dict[str, Tuple[Any, datetime]] = {}
        self._lock = threading.Lock()
        self.client = self._connect() if url else None

    def _connect(self):
        try:
            client = redis.from_url(self.url, decode_responses=True, socket_timeout=3)
            client.ping()
            logger.info(f"✅ Connected to Redis at {self.url}")
            return client
        except redis.RedisError as e:
            logger.warning(f"⚠️ Redis unavailable ({e}). Using local in-memory cache instead.")
            return None

    @property
    def use_redis(self) -> bool:
        return self.client is not None

    def get(self, key: str) -> Optional[Any]:
        if self.use_redis:
            try:
                value = self.client.get(key)
                return json.loads(value) if value else None
            except redis.RedisError as e:
                logger.debug(f"Cache get failed for {key}: {e}")
                return None

        with self._lock:
            entry = self._local.get(key)
            if not entry:
                return None
            value, expire_time = entry
            if datetime.now() < expire_time:
                logger.debug(f"⚡ Cache hit (Local): {key}")
                return value
            del self._local[key]
            logger.debug(f"🕒 Cache expired (Local): {key}")
        return None

    def set(self, key: str, value: Any, expire: int = 3600) -> None:
        if expire <= 0:
            return
        if self.use_redis:
            try:
                self.client.setex(key, expire, safe_json_dumps(value))
                logger.debug(f"💾 Cache set (Redis): {key} ({expire}s)")
            except redis.RedisError as e:
                logger.warning(f"Cache set error for {key}: {e}")
            return
        with self._lock:
            self._local[key] = (value, datetime.now() + timedelta(seconds=expire))
        logger.debug(f"💾 Cache set (Local): {key} ({expire}s)")

    def delete(self, key: str) -> None:
        if self.use_redis:
            try:
                self.client.delete(key)
            except redis.RedisError as e:
                logger.warning(f"Cache delete error for {key}: {e}")
            return
        with self._lock:
            self._local.pop(key, None)

    def clear(self, prefix: str = "") -> None:
        if self.use_redis:
            try:
                for key in self.client.scan_iter(match=f"{prefix}*", count=100):
                    self.client.delete(key)
            except redis.RedisError as e:
                logger.error(f"Cache clear error for {prefix}: {e}")
            return
        with self._lock:
            for k in [k for k in self._local if k.startswith(prefix)]:
                del self._local[k]
        logger.info(f"🧹 Cleared cache for prefix '{prefix}'")


__all__ = ["RedisCache", "safe_json_dumps"]
