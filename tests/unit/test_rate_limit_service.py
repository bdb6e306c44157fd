"""
Unit tests for the sliding window rate limiter.
"""
from unittest.mock import MagicMock

import pytest

from app.exceptions import RateLimitError
from app.services.rate_limit_service import (
    MemoryRateLimitStore, RateLimiter, RedisRateLimitStore, get_rate_limiter
)


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return RateLimiter(MemoryRateLimitStore(), clock=clock)


class TestRateLimiter:

    def test_allows_up_to_max(self, limiter):
        assert limiter.check('login', '1.2.3.4', 3, 60) == 2
        assert limiter.check('login', '1.2.3.4', 3, 60) == 1
        assert limiter.check('login', '1.2.3.4', 3, 60) == 0

    def test_rejects_over_max_with_retry_after(self, limiter, clock):
        for _ in range(3):
            limiter.check('login', '1.2.3.4', 3, 60)
            clock.now += 10

        with pytest.raises(RateLimitError) as exc:
            limiter.check('login', '1.2.3.4', 3, 60)

        # Oldest hit at 1000, window ends at 1060, now 1030
        assert exc.value.status_code == 429
        assert exc.value.retry_after == 31
        assert exc.value.to_dict()['retryAfter'] == 31

    def test_window_slides(self, limiter, clock):
        for _ in range(3):
            limiter.check('login', 'ip', 3, 60)

        clock.now += 61
        assert limiter.check('login', 'ip', 3, 60) == 2

    def test_scopes_and_identifiers_are_independent(self, limiter):
        for _ in range(3):
            limiter.check('login', 'a', 3, 60)

        assert limiter.check('login', 'b', 3, 60) == 2
        assert limiter.check('checkout', 'a', 3, 60) == 2

    def test_reset(self, limiter):
        for _ in range(3):
            limiter.check('login', 'a', 3, 60)
        limiter.reset('login', 'a')

        assert limiter.check('login', 'a', 3, 60) == 2

    def test_disabled_never_raises(self, clock):
        limiter = RateLimiter(MemoryRateLimitStore(), enabled=False, clock=clock)
        for _ in range(10):
            limiter.check('login', 'a', 1, 60)

    def test_idle_addresses_are_swept(self, clock):
        store = MemoryRateLimitStore()
        limiter = RateLimiter(store, clock=clock)
        for n in range(5000):
            limiter.check('login', f'10.0.{n // 256}.{n % 256}', 5, 900)

        clock.now += 10000
        limiter.check('login', '192.168.0.1', 5, 900)

        assert store.tracked_keys() == 1

    def test_sweep_keeps_addresses_inside_their_window(self, clock):
        store = MemoryRateLimitStore(sweep_interval=60)
        limiter = RateLimiter(store, clock=clock)
        limiter.check('login', 'old', 5, 60)
        clock.now += 30
        limiter.check('login', 'recent', 5, 900)

        clock.now += 61
        limiter.check('login', 'new', 5, 60)

        assert store.tracked_keys() == 2
        assert limiter.check('login', 'recent', 5, 900) == 3


class TestRedisStore:

    def test_hit_uses_sorted_set_pipeline(self):
        client = MagicMock()
        pipeline = client.pipeline.return_value
        pipeline.execute.return_value = [0, 1, 2, [('x', 990.0)], True]

        store = RedisRateLimitStore(client, prefix='test')
        count, oldest = store.hit('login:ip', 60, 1000.0)

        assert (count, oldest) == (2, 990.0)
        pipeline.zremrangebyscore.assert_called_once_with('test:ratelimit:login:ip', 0, 940.0)
        pipeline.expire.assert_called_once_with('test:ratelimit:login:ip', 60)

    def test_reset_deletes_key(self):
        client = MagicMock()
        RedisRateLimitStore(client, prefix='test').reset('login:ip')
        client.delete.assert_called_once_with('test:ratelimit:login:ip')


class TestAppWiring:

    def test_app_owns_its_limiter(self, app):
        limiter = get_rate_limiter()

        assert app.extensions['rate_limiter'] is limiter
        assert isinstance(limiter.store, MemoryRateLimitStore)
