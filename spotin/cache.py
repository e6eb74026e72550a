"""
Redis caching utilities for frequently read, rarely written data
(the bar menu with availability, finance reports)
"""
import json
import logging
from typing import Any, Optional

from .rate_limiter import get_redis_client

logger = logging.getLogger(__name__)

MENU_KEY = "menu:available"
FINANCE_PREFIX = "finance"


class Cache:
    """Redis cache wrapper with automatic serialization"""

    def _get_client(self):
        return get_redis_client()

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        client = self._get_client()
        if not client:
            return None

        try:
            value = client.get(key)
            if value:
                logger.debug(f"✅ Cache HIT: {key}")
                return json.loads(value)
            logger.debug(f"❌ Cache MISS: {key}")
            return None
        except Exception as e:
            logger.error(f"❌ Cache get error for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Set value in cache with TTL (default 5 minutes)"""
        client = self._get_client()
        if not client:
            return False

        try:
            client.setex(key, ttl, json.dumps(value, default=str))
            logger.debug(f"✅ Cache SET: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"❌ Cache set error for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        """Delete value from cache"""
        client = self._get_client()
        if not client:
            return False

        try:
            client.delete(key)
            logger.debug(f"✅ Cache DELETE: {key}")
            return True
        except Exception as e:
            logger.error(f"❌ Cache delete error for {key}: {e}")
            return False

    def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern (e.g., 'finance:*')"""
        client = self._get_client()
        if not client:
            return 0

        try:
            keys = client.keys(pattern)
            if keys:
                deleted = client.delete(*keys)
                logger.debug(f"✅ Cache DELETE pattern: {pattern} ({deleted} keys)")
                return deleted
            return 0
        except Exception as e:
            logger.error(f"❌ Cache delete pattern error for {pattern}: {e}")
            return 0


# Global cache instance
cache = Cache()


def invalidate_menu_cache() -> bool:
    """Stock levels or recipes changed, availability must be recomputed"""
    return cache.delete(MENU_KEY)


def invalidate_finance_cache() -> int:
    """A receipt, bill or payroll payment changed the books"""
    return cache.delete_pattern(f"{FINANCE_PREFIX}:*")


def build_finance_key(report: str, *parts) -> str:
    suffix = ":".join(str(p) for p in parts)
    return f"{FINANCE_PREFIX}:{report}:{suffix}" if suffix else f"{FINANCE_PREFIX}:{report}"
