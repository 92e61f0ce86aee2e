"""
Read-through cache used by the home feed.

Values are stored as JSON strings with an optional TTL. When REDIS_URL is
not configured the application runs with NullCache, which never stores
anything, so every read is a miss and the feed is always recomputed.
Redis failures are logged and treated as misses; the cache is never
required for a correct response.
"""
import json
import logging
from typing import Any, Optional

import redis

from nexusnoir.core.config import settings

logger = logging.getLogger(__name__)


class RedisCache:
    """JSON cache backed by a Redis client"""

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisCache":
        return cls(redis.from_url(redis_url, decode_responses=True))

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    def get(self, key: str) -> Optional[Any]:
        try:
            data = self.client.get(key)
        except redis.RedisError as e:
            logger.error(f"Redis GET error for {key}: {e}")
            return None
        return json.loads(data) if data else None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        try:
            serialized = json.dumps(value)
            if ttl:
                self.client.setex(key, ttl, serialized)
            else:
                self.client.set(key, serialized)
            return True
        except redis.RedisError as e:
            logger.error(f"Redis SET error for {key}: {e}")
            return False

    def delete(self, key: str) -> None:
        try:
            self.client.delete(key)
        except redis.RedisError as e:
            logger.error(f"Redis DEL error for {key}: {e}")

    def invalidate_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern, returns the number removed"""
        try:
            keys = list(self.client.scan_iter(match=pattern))
            if keys:
                self.client.delete(*keys)
            logger.debug(f"Invalidated {len(keys)} cache keys matching {pattern}")
            return len(keys)
        except redis.RedisError as e:
            logger.error(f"Redis pattern delete error for {pattern}: {e}")
            return 0


class NullCache:
    """Cache stand-in for environments without a caching backend"""

    def ping(self) -> bool:
        return False

    def get(self, key: str) -> Optional[Any]:
        return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        return False

    def delete(self, key: str) -> None:
        return None

    def invalidate_pattern(self, pattern: str) -> int:
        return 0


# Global instance for app-wide usage
cache = RedisCache.from_url(settings.REDIS_URL) if settings.REDIS_URL else NullCache()


def get_cache():
    """Dependency returning the configured cache"""
    return cache
