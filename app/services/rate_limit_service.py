"""
Rate limiting with a sliding window counter.

Counters live in a RateLimitStore owned by the Flask app
(app.extensions['rate_limiter']), never in module globals:

- MemoryRateLimitStore: per-process, for development and tests
- RedisRateLimitStore: sorted sets in Redis, shared between workers

Usage:
    @auth_bp.route('/login', methods=['POST'])
    @rate_limit('login', 'RATE_LIMIT_LOGIN')
    def login(): ...
"""

import logging
import threading
import time
import uuid
from collections import deque
from functools import wraps
from typing import Callable, Deque, Dict, Optional, Tuple

import redis
from redis.exceptions import RedisError
from flask import Flask, current_app, g, request

from app.exceptions import RateLimitError

logger = logging.getLogger(__name__)


class RateLimitStore:
    """Interface: record one hit and report the count inside the window."""

    def hit(self, key: str, window_seconds: int, now: float) -> Tuple[int, float]:
        """
        Register a hit for key.

        Returns:
            (hits inside the window including this one, timestamp of the
            oldest hit still inside the window)
        """
        raise NotImplementedError

    def reset(self, key: str) -> None:
        raise NotImplementedError


class MemoryRateLimitStore(RateLimitStore):
    """
    In-process sliding window. One instance per application.

    Keys whose newest hit has left its window are swept at most once every
    sweep_interval seconds, so addresses that stop calling do not pile up.
    """

    def __init__(self, sweep_interval: int = 60):
        self._hits: Dict[str, Deque[float]] = {}
        self._windows: Dict[str, int] = {}
        self._lock = threading.Lock()
        self.sweep_interval = sweep_interval
        self._last_sweep: Optional[float] = None

    def hit(self, key: str, window_seconds: int, now: float) -> Tuple[int, float]:
        with self._lock:
            if self._last_sweep is None or now - self._last_sweep >= self.sweep_interval:
                self._sweep(now)
            hits = self._hits.setdefault(key, deque())
            self._windows[key] = window_seconds
            while hits and hits[0] <= now - window_seconds:
                hits.popleft()
            hits.append(now)
            return len(hits), hits[0]

    def reset(self, key: str) -> None:
        with self._lock:
            self._hits.pop(key, None)
            self._windows.pop(key, None)

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def _sweep(self, now: float) -> None:
        expired = [
            key for key, hits in self._hits.items()
            if not hits or hits[-1] <= now - self._windows.get(key, 0)
        ]
        for key in expired:
            del self._hits[key]
            self._windows.pop(key, None)
        self._last_sweep = now
        if expired:
            logger.debug(f"[RATE] Swept {len(expired)} expired keys")


class RedisRateLimitStore(RateLimitStore):
    """Sliding window on a Redis sorted set (score = timestamp)."""

    def __init__(self, client: redis.Redis, prefix: str = 'm2shop'):
        self.client = client
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:ratelimit:{key}"

    def hit(self, key: str, window_seconds: int, now: float) -> Tuple[int, float]:
        redis_key = self._key(key)
        pipeline = self.client.pipeline()
        pipeline.zremrangebyscore(redis_key, 0, now - window_seconds)
        pipeline.zadd(redis_key, {f"{now}:{uuid.uuid4().hex}": now})
        pipeline.zcard(redis_key)
        pipeline.zrange(redis_key, 0, 0, withscores=True)
        pipeline.expire(redis_key, window_seconds)
        _, _, count, oldest, _ = pipeline.execute()
        oldest_ts = oldest[0][1] if oldest else now
        return int(count), float(oldest_ts)

    def reset(self, key: str) -> None:
        self.client.delete(self._key(key))


class RateLimiter:
    """Checks callers against a store."""

    def __init__(self, store: RateLimitStore, enabled: bool = True, clock: Callable[[], float] = time.time):
        self.store = store
        self.enabled = enabled
        self.clock = clock

    def check(self, scope: str, identifier: str, max_count: int, window_seconds: int) -> int:
        """
        Count a hit and raise RateLimitError once max_count is exceeded.

        Returns:
            Remaining hits inside the current window.
        """
        if not self.enabled:
            return max_count

        now = self.clock()
        key = f"{scope}:{identifier}"
        count, oldest = self.store.hit(key, window_seconds, now)
        if count > max_count:
            retry_after = max(1, int(oldest + window_seconds - now) + 1)
            logger.warning(f"[RATE] {key} exceeded {max_count}/{window_seconds}s, retry in {retry_after}s")
            raise RateLimitError(retry_after)
        return max_count - count

    def reset(self, scope: str, identifier: str) -> None:
        self.store.reset(f"{scope}:{identifier}")


def build_store(app: Flask) -> RateLimitStore:
    """Pick the store configured in RATE_LIMIT_STORAGE."""
    storage = app.config.get('RATE_LIMIT_STORAGE', 'memory')
    if storage == 'redis':
        try:
            client = redis.from_url(app.config['REDIS_URL'], socket_connect_timeout=3, socket_timeout=3)
            client.ping()
            logger.info("[RATE] Using Redis rate limit store")
            return RedisRateLimitStore(client, app.config.get('CACHE_KEY_PREFIX', 'm2shop'))
        except RedisError as e:
            logger.warning(f"[RATE] Redis unavailable ({e}), falling back to memory store")
    return MemoryRateLimitStore()


def init_rate_limiter(app: Flask, store: Optional[RateLimitStore] = None) -> RateLimiter:
    limiter = RateLimiter(
        store or build_store(app),
        enabled=app.config.get('RATE_LIMIT_ENABLED', True),
    )
    app.extensions['rate_limiter'] = limiter
    return limiter


def get_rate_limiter() -> RateLimiter:
    limiter = current_app.extensions.get('rate_limiter')
    if limiter is None:
        raise RuntimeError("Rate limiter not initialized.")
    return limiter


def client_identifier() -> str:
    """Remote address, or the user id when logged in."""
    user = g.get('user')
    if user is not None:
        return f"user:{user.id}"
    return request.remote_addr or 'unknown'


def rate_limit(scope: str, limit_config_key: str):
    """
    Decorator: limit a view to app.config[limit_config_key] calls per
    RATE_LIMIT_WINDOW_SECONDS for each caller.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            config = current_app.config
            get_rate_limiter().check(
                scope,
                client_identifier(),
                config.get(limit_config_key, 5),
                config.get('RATE_LIMIT_WINDOW_SECONDS', 900),
            )
            return f(*args, **kwargs)
        return decorated_function
    return decorator
