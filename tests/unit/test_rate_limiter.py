# tests/unit/test_rate_limiter.py
# Fixed window counters and client identification

import pytest
from starlette.requests import Request


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def make_request(headers: dict) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/auth",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    }
    return Request(scope)


class TestFixedWindowCounter:
    """In-memory fixed window limiter."""

    @pytest.mark.asyncio
    async def test_allows_up_to_limit_then_rejects(self):
        from dit.middleware.rate_limiter import FixedWindowCounter

        limiter = FixedWindowCounter(window_size=60, clock=FakeClock())

        for i in range(60):
            assert await limiter.allow("auth:1.2.3.4", 60), f"Request {i + 1} should be allowed"

        assert not await limiter.allow("auth:1.2.3.4", 60), "61st request should be rejected"

    @pytest.mark.asyncio
    async def test_window_resets_after_elapsed(self):
        from dit.middleware.rate_limiter import FixedWindowCounter

        clock = FakeClock()
        limiter = FixedWindowCounter(window_size=60, clock=clock)
        for _ in range(3):
            await limiter.allow("k", 3)
        assert not await limiter.allow("k", 3)

        clock.now += 61
        assert await limiter.allow("k", 3)

    @pytest.mark.asyncio
    async def test_window_not_reset_at_exact_boundary(self):
        from dit.middleware.rate_limiter import FixedWindowCounter

        clock = FakeClock()
        limiter = FixedWindowCounter(window_size=60, clock=clock)
        await limiter.allow("k", 1)

        clock.now += 60
        assert not await limiter.allow("k", 1)

    @pytest.mark.asyncio
    async def test_different_keys_have_separate_limits(self):
        from dit.middleware.rate_limiter import FixedWindowCounter

        limiter = FixedWindowCounter(window_size=60, clock=FakeClock())
        for _ in range(5):
            await limiter.allow("client1", 5)

        assert not await limiter.allow("client1", 5)
        assert await limiter.allow("client2", 5), "Different client should have separate limit"

    @pytest.mark.asyncio
    async def test_cleanup_removes_old_entries(self):
        from dit.middleware.rate_limiter import FixedWindowCounter

        clock = FakeClock()
        limiter = FixedWindowCounter(window_size=60, shards=4, clock=clock)
        await limiter.allow("old_client", 10)
        clock.now += 120
        await limiter.allow("fresh_client", 10)

        removed = limiter.cleanup_old_entries()

        assert removed == 1
        assert len(limiter) == 1


class FakeRedis:
    def __init__(self):
        self.values = {}
        self.expiries = {}

    async def incr(self, key):
        self.values[key] = self.values.get(key, 0) + 1
        return self.values[key]

    async def expire(self, key, seconds):
        self.expiries[key] = seconds


class TestRedisWindowCounter:

    @pytest.mark.asyncio
    async def test_sets_expiry_on_first_hit_only(self):
        from dit.middleware.rate_limiter import RedisWindowCounter

        redis = FakeRedis()
        limiter = RedisWindowCounter(redis, window_size=60)

        assert await limiter.allow("qr:ip", 2)
        assert await limiter.allow("qr:ip", 2)
        assert not await limiter.allow("qr:ip", 2)

        assert redis.expiries == {"rl:qr:ip": 60}
        assert redis.values["rl:qr:ip"] == 3


class TestClientKey:

    def test_first_forwarded_entry_wins(self):
        from dit.middleware.rate_limiter import client_key

        request = make_request({"X-Forwarded-For": "9.9.9.9, 10.0.0.1", "X-Real-IP": "8.8.8.8"})
        assert client_key(request) == "9.9.9.9"

    def test_falls_back_to_real_ip(self):
        from dit.middleware.rate_limiter import client_key

        assert client_key(make_request({"X-Real-IP": " 8.8.8.8 "})) == "8.8.8.8"

    def test_unidentified_clients_share_bucket(self):
        from dit.middleware.rate_limiter import UNKNOWN_CLIENT, client_key

        assert client_key(make_request({})) == UNKNOWN_CLIENT


class TestDefaultRules:

    def test_every_mutating_endpoint_is_limited(self):
        from dit.config import Settings
        from dit.middleware.rate_limiter import default_rules

        rules = default_rules(Settings(DB_URL="sqlite://"))

        assert rules[("POST", "/api/auth")] == ("auth", 60)
        assert rules[("POST", "/api/qr")] == ("qr", 120)
        assert rules[("POST", "/api/likes/toggle")] == ("likes", 240)
        assert rules[("POST", "/api/comments")] == ("comments", 120)
        assert ("GET", "/api/posts") not in rules
