"""Rate limiting interceptor for controlling request rates.

This interceptor uses pyrate_limiter to keep a sliding one-minute log of
admissions and suspends the caller whenever the window is full, until the
oldest admission leaves the window.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from pyrate_limiter import Duration, Rate, RateItem
from pyrate_limiter.buckets import InMemoryBucket

from httpchain.data_types import (
    Proceed,
    RequestConfiguration,
    RequestOutcome,
    ResponseOutcome,
    TransportResponse,
)

logger = logging.getLogger(__name__)

MIN_WAIT_MS = 1


class RateLimitInterceptor:
    """Interceptor that enforces a per-minute request limit.

    This interceptor delays requests so that no more than
    max_requests_per_minute are admitted in any 60 second window. It never
    fails a request, it only waits.

    Admissions are stamped from the injected clock and put into an
    in-memory pyrate_limiter bucket. When the bucket refuses an item, the
    bucket's own waiting() estimate decides how long to sleep before the
    next try. Trying, waiting and recording happen under one lock, so
    concurrent requests on the same instance are admitted one at a time.

    Example:
        # Limit to 10 requests per minute
        rate_limiter = RateLimitInterceptor(max_requests_per_minute=10)

        client = AsyncNetworkClient(transport)
        await client.with_interceptor(cache)  # cache before rate limiter
        await client.with_interceptor(rate_limiter)
    """

    def __init__(
        self,
        max_requests_per_minute: int = 60,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the rate limit interceptor.

        Args:
            max_requests_per_minute: Admissions allowed per 60 second window.
            clock: Returns the current time in seconds.
            sleep: Coroutine used to wait for window capacity.

        Raises:
            ValueError: If max_requests_per_minute is less than 1.
        """
        if max_requests_per_minute < 1:
            raise ValueError(
                "max_requests_per_minute must be at least 1, "
                f"got {max_requests_per_minute}"
            )

        self.max_requests_per_minute = max_requests_per_minute
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._bucket = InMemoryBucket(
            [Rate(max_requests_per_minute, Duration.MINUTE)]
        )

        # Track stats
        self.total_requests = 0
        self.total_wait_time = 0.0

    async def intercept_request(
        self, request: RequestConfiguration
    ) -> RequestOutcome:
        """Delay the request if needed to stay within the limit.

        Args:
            request: The request to potentially delay.

        Returns:
            Proceed with the unchanged request, after any necessary delay.
        """
        async with self._lock:
            await self._enforce_rate_limit()
        return Proceed(request)

    async def intercept_response(
        self, response: TransportResponse, data: bytes | None
    ) -> ResponseOutcome:
        return Proceed(data)

    async def _enforce_rate_limit(self) -> None:
        while True:
            now_ms = self._now_ms()
            self._bucket.leak(now_ms)
            item = RateItem("httpchain", now_ms)
            if self._bucket.put(item):
                break

            wait_time = max(self._bucket.waiting(item), MIN_WAIT_MS) / 1000
            logger.info(
                f"Rate limit of {self.max_requests_per_minute}/min "
                f"reached, waiting {wait_time:.3f}s"
            )
            await self._sleep(wait_time)
            self.total_wait_time += wait_time

        self.total_requests += 1

    def _now_ms(self) -> int:
        return round(self._clock() * 1000)

    def get_stats(self) -> dict[str, int | float]:
        """Get statistics about rate limiting.

        Returns:
            Dictionary with stats about requests, wait time, and the number
            of admissions currently in the window.
        """
        self._bucket.leak(self._now_ms())
        avg_wait = (
            self.total_wait_time / self.total_requests
            if self.total_requests > 0
            else 0.0
        )
        return {
            "total_requests": self.total_requests,
            "total_wait_time": self.total_wait_time,
            "average_wait_time": avg_wait,
            "window_size": self._bucket.count(),
            "max_requests_per_minute": self.max_requests_per_minute,
        }
