"""Time-windowed response cache interceptor.

Successful response bodies are stored by URL. Later GET requests for the
same URL are answered from the cache, without calling the transport, for as
long as the cache policy allows. Expired entries are only removed when a
lookup finds them; there is no background eviction.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from httpchain.data_types import (
    CachePolicy,
    HttpMethod,
    Proceed,
    RequestConfiguration,
    RequestOutcome,
    ResponseOutcome,
    ShortCircuit,
    TransportResponse,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedResponse:
    """A stored response body.

    Attributes:
        data: Raw body bytes.
        timestamp: Clock reading when the body was stored.
        url: The URL the body was stored under.
    """

    data: bytes
    timestamp: float
    url: str


class CacheInterceptor:
    """Interceptor that serves GET requests from an in-memory cache.

    The request hook looks up GET requests and short-circuits with the
    stored body on a live hit. The response hook stores the body of every
    200 response that has one, whatever the method.

    A max-age of zero (CachePolicy.no_cache() or cache_for_minutes(0))
    never serves a hit, even right after storing.

    Example:
        cache = CacheInterceptor(cache_policy=CachePolicy.cache_for_minutes(5))

        client = AsyncNetworkClient(transport)
        await client.with_interceptor(cache)  # cache before rate limiter
        await client.with_interceptor(rate_limiter)
    """

    def __init__(
        self,
        cache_policy: CachePolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache interceptor.

        Args:
            cache_policy: How long entries stay live. Defaults to five
                minutes.
            clock: Returns the current time in seconds.
        """
        self.cache_policy = cache_policy or CachePolicy.cache_for_minutes(5)
        self._clock = clock
        self._cache: dict[str, CachedResponse] = {}
        self._lock = asyncio.Lock()

        # Track stats
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._cache)

    async def clear(self) -> None:
        """Drop every stored entry."""
        async with self._lock:
            self._cache.clear()

    async def intercept_request(
        self, request: RequestConfiguration
    ) -> RequestOutcome:
        """Serve GET requests from the cache when a live entry exists."""
        if request.method is not HttpMethod.GET:
            return Proceed(request)

        cached = await self._lookup(request.url)
        if cached is None:
            self.misses += 1
            return Proceed(request)

        self.hits += 1
        logger.debug(f"Cache hit for {request.url}")
        return ShortCircuit(cached.data)

    async def intercept_response(
        self, response: TransportResponse, data: bytes | None
    ) -> ResponseOutcome:
        """Store the body of a 200 response and pass it on unchanged."""
        if response.status_code == 200 and data is not None:
            async with self._lock:
                self._cache[response.url] = CachedResponse(
                    data=data, timestamp=self._clock(), url=response.url
                )
        return Proceed(data)

    async def _lookup(self, url: str) -> CachedResponse | None:
        """Return the live entry for url, evicting it if it has expired."""
        async with self._lock:
            cached = self._cache.get(url)
            if cached is None:
                return None

            max_age = self.cache_policy.max_age
            age = self._clock() - cached.timestamp
            if max_age > 0 and age <= max_age:
                return cached

            del self._cache[url]
            logger.debug(
                f"Evicted expired cache entry for {url}",
                extra={"age": age, "max_age": max_age},
            )
            return None
