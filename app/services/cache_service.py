"""
Redis cache for storefront reads.

Only catalog listings are cached; carts and orders are always read from the
database so prices and stock in checkout are never stale. Every operation
degrades to a miss (or a no-op) when Redis is unreachable.

Keys: {CACHE_KEY_PREFIX}:{module}:{key}
Values: JSON documents (catalog payloads are already JSON-ready).
"""

import json
import logging
from typing import Any, Callable, Optional

import redis
from redis.exceptions import RedisError
from flask import Flask, current_app

logger = logging.getLogger(__name__)

INVALIDATE_BATCH = 100


class CacheService:
    """Cache-aside helper over a Redis client. client=None means disabled."""

    def __init__(self, client: Optional[redis.Redis] = None, prefix: str = 'm2shop', default_ttl: int = 60):
        self.client = client
        self.prefix = prefix
        self.default_ttl = default_ttl

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def key(self, module: str, key: str) -> str:
        return f"{self.prefix}:{module}:{key}"

    def get(self, module: str, key: str) -> Optional[Any]:
        if not self.enabled:
            return None
        try:
            raw = self.client.get(self.key(module, key))
        except RedisError as e:
            logger.warning(f"[CACHE] GET {module}:{key} failed: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"[CACHE] Dropping unreadable entry {module}:{key}")
            return None

    def set(self, module: str, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        if not self.enabled:
            return False
        try:
            self.client.setex(self.key(module, key), ttl or self.default_ttl, json.dumps(value))
            return True
        except (RedisError, TypeError) as e:
            logger.warning(f"[CACHE] SET {module}:{key} failed: {e}")
            return False

    def memoize(self, module: str, key: str, loader_fn: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        """Return the cached value or load it and store it for ttl seconds."""
        cached = self.get(module, key)
        if cached is not None:
            logger.debug(f"[CACHE] HIT {module}:{key}")
            return cached
        value = loader_fn()
        self.set(module, key, value, ttl)
        return value

    def invalidate_module(self, module: str) -> int:
        """Delete every key of a module. Returns how many keys were removed."""
        if not self.enabled:
            return 0
        pattern = self.key(module, '*')
        deleted = 0
        try:
            batch = []
            for cache_key in self.client.scan_iter(match=pattern, count=INVALIDATE_BATCH):
                batch.append(cache_key)
                if len(batch) >= INVALIDATE_BATCH:
                    deleted += self.client.delete(*batch)
                    batch = []
            if batch:
                deleted += self.client.delete(*batch)
        except RedisError as e:
            logger.warning(f"[CACHE] Invalidate {pattern} failed: {e}")
            return deleted
        if deleted:
            logger.info(f"[CACHE] INVALIDATE {pattern} ({deleted} keys)")
        return deleted


def connect(app: Flask) -> Optional[redis.Redis]:
    """Redis client from REDIS_URL, or None when disabled or unreachable."""
    if not app.config.get('CACHE_ENABLED', True):
        logger.info("[CACHE] Cache is disabled via config")
        return None

    redis_url = app.config.get('REDIS_URL', 'redis://redis:6379/0')
    try:
        client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=3,
            socket_timeout=3,
            retry_on_timeout=True,
            health_check_interval=30
        )
        client.ping()
    except RedisError as e:
        logger.warning(f"[CACHE] Redis unavailable ({e}), catalog served uncached")
        return None
    logger.info(f"[CACHE] Redis connected: {redis_url}")
    return client


def init_cache(app: Flask, client: Optional[redis.Redis] = None) -> CacheService:
    """Attach a CacheService to app.extensions['cache']."""
    cache = CacheService(
        client if client is not None else connect(app),
        prefix=app.config.get('CACHE_KEY_PREFIX', 'm2shop'),
        default_ttl=app.config.get('CACHE_DEFAULT_TTL', 60),
    )
    app.extensions['cache'] = cache
    return cache


def get_cache() -> CacheService:
    cache = current_app.extensions.get('cache')
    if cache is None:
        raise RuntimeError("Cache not initialized.")
    return cache
