"""Tests for the rate limiting interceptor.

This module tests the pyrate_limiter backed rate limiter with a manual
clock, so no test actually waits.

Key behaviors tested:
- Up to the limit, requests are admitted without delay
- The next request waits until the oldest admission leaves the window
- Admissions older than the window are forgotten
- Concurrent requests on one instance are admitted one at a time
- Stats tracking for rate limit performance
"""

import asyncio

import pytest

from httpchain.common.cache_interceptor import CacheInterceptor
from httpchain.common.rate_limit_interceptor import RateLimitInterceptor
from httpchain.data_types import Proceed, RequestConfiguration
from httpchain.driver.async_client import AsyncNetworkClient
from tests.httpchain.utils import (
    FakeClock,
    FakeSleep,
    FakeTransport,
    make_response,
)

URL = "https://example.com/api/data"


def make_limiter(
    max_requests_per_minute: int,
) -> tuple[RateLimitInterceptor, FakeClock, FakeSleep]:
    clock = FakeClock()
    sleep = FakeSleep(clock)
    limiter = RateLimitInterceptor(
        max_requests_per_minute=max_requests_per_minute,
        clock=clock,
        sleep=sleep,
    )
    return limiter, clock, sleep


class TestRateLimitInterceptor:
    """Tests for basic rate limit interceptor functionality."""

    @pytest.mark.asyncio
    async def test_requests_under_limit_do_not_wait(self) -> None:
        """RateLimitInterceptor shall admit up to the limit without delay."""
        limiter, _, sleep = make_limiter(3)

        for _ in range(3):
            outcome = await limiter.intercept_request(
                RequestConfiguration(url=URL)
            )
            assert isinstance(outcome, Proceed)

        assert sleep.calls == []

    @pytest.mark.asyncio
    async def test_request_over_limit_waits_for_oldest(self) -> None:
        """The request after the limit shall wait 60 - (now - oldest) seconds."""
        limiter, clock, sleep = make_limiter(3)
        for _ in range(3):
            await limiter.intercept_request(RequestConfiguration(url=URL))

        clock.advance(10)
        await limiter.intercept_request(RequestConfiguration(url=URL))

        assert sleep.calls[0] == pytest.approx(50.0, abs=0.01)
        assert sum(sleep.calls) == pytest.approx(50.0, abs=0.01)
        assert limiter.get_stats()["window_size"] <= 3

    @pytest.mark.asyncio
    async def test_early_wakeup_waits_again(self) -> None:
        """A sleep that returns early shall not admit before the window frees."""
        clock = FakeClock()
        sleep = FakeSleep(clock, shortfall=0.01)
        limiter = RateLimitInterceptor(
            max_requests_per_minute=2, clock=clock, sleep=sleep
        )
        admitted: list[float] = []
        for _ in range(3):
            await limiter.intercept_request(RequestConfiguration(url=URL))
            admitted.append(clock())

        assert len(sleep.calls) > 1
        assert admitted[2] - admitted[0] >= 60.0 - 0.001

    @pytest.mark.asyncio
    async def test_old_admissions_leave_the_window(self) -> None:
        """Admissions older than 60 seconds shall not count toward the limit."""
        limiter, clock, sleep = make_limiter(2)
        await limiter.intercept_request(RequestConfiguration(url=URL))
        await limiter.intercept_request(RequestConfiguration(url=URL))

        clock.advance(61)
        await limiter.intercept_request(RequestConfiguration(url=URL))

        assert sleep.calls == []
        assert limiter.get_stats()["window_size"] == 1

    @pytest.mark.asyncio
    async def test_response_passes_through(self) -> None:
        limiter, _, _ = make_limiter(1)

        outcome = await limiter.intercept_response(make_response(), b"body")

        assert outcome == Proceed(b"body")

    def test_default_limit_is_sixty(self) -> None:
        assert RateLimitInterceptor().max_requests_per_minute == 60

    @pytest.mark.parametrize("limit", [0, -5])
    def test_rejects_limit_below_one(self, limit: int) -> None:
        """RateLimitInterceptor shall reject a limit below one."""
        with pytest.raises(ValueError):
            RateLimitInterceptor(max_requests_per_minute=limit)


class TestRateLimitConcurrency:
    """Tests for concurrent use of one limiter."""

    @pytest.mark.asyncio
    async def test_concurrent_requests_never_exceed_limit(self) -> None:
        """Concurrent requests shall not be admitted past the limit."""
        limiter, clock, sleep = make_limiter(3)
        admitted: list[float] = []

        async def admit() -> None:
            await limiter.intercept_request(RequestConfiguration(url=URL))
            admitted.append(clock())

        await asyncio.gather(*(admit() for _ in range(5)))

        assert len(admitted) == 5
        assert sleep.calls[0] == pytest.approx(60.0, abs=0.01)
        assert sum(sleep.calls) == pytest.approx(60.0, abs=0.01)
        # Within any 60 second span at most three admissions happened.
        for start in admitted:
            in_window = [t for t in admitted if start <= t < start + 59.999]
            assert len(in_window) <= 3


class TestRateLimitStats:
    """Tests for rate limit statistics tracking."""

    @pytest.mark.asyncio
    async def test_stats_tracking(self) -> None:
        """RateLimitInterceptor shall track total requests and wait time."""
        limiter, clock, _ = make_limiter(2)
        await limiter.intercept_request(RequestConfiguration(url=URL))
        await limiter.intercept_request(RequestConfiguration(url=URL))
        clock.advance(20)
        await limiter.intercept_request(RequestConfiguration(url=URL))

        stats = limiter.get_stats()

        assert stats["total_requests"] == 3
        assert stats["total_wait_time"] == pytest.approx(40.0, abs=0.01)
        assert stats["average_wait_time"] == pytest.approx(40.0 / 3, abs=0.01)
        assert stats["max_requests_per_minute"] == 2

    def test_stats_before_any_request(self) -> None:
        limiter, _, _ = make_limiter(5)

        assert limiter.get_stats() == {
            "total_requests": 0,
            "total_wait_time": 0.0,
            "average_wait_time": 0.0,
            "window_size": 0,
            "max_requests_per_minute": 5,
        }


class TestRateLimitWithClient:
    """Integration with cache and the execution engine."""

    @pytest.mark.asyncio
    async def test_cache_hits_do_not_consume_rate_limit(self) -> None:
        """With cache before the rate limiter, cached GETs shall not be counted."""
        limiter, _, sleep = make_limiter(1)
        transport = FakeTransport(make_response())
        client = AsyncNetworkClient(transport, sleep=FakeSleep())
        await client.with_interceptor(CacheInterceptor(clock=FakeClock()))
        await client.with_interceptor(limiter)

        for _ in range(3):
            await client.request(RequestConfiguration(url=URL))

        assert transport.call_count == 1
        assert limiter.total_requests == 1
        assert sleep.calls == []
