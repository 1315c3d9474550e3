"""Ordered interceptor chain and its traversal algorithm."""

import asyncio
import logging
from collections.abc import Iterable

from httpchain.common.interceptors import Interceptor
from httpchain.data_types import (
    Proceed,
    RequestConfiguration,
    RequestOutcome,
    ResponseOutcome,
    TransportResponse,
)

logger = logging.getLogger(__name__)


class InterceptorChain:
    """Ordered, append-only list of interceptors.

    Requests are folded through each interceptor's request hook in the
    order the interceptors were added. Response bodies are folded through
    the response hooks in that same order; the response path is not
    reversed. Any hook may end its fold early by returning something other
    than Proceed, and that outcome is handed back to the caller unchanged.

    The list is guarded by an asyncio.Lock. A traversal copies the list
    under the lock and then runs without holding it, so a slow hook (for
    example a rate limiter wait) never blocks other requests from using
    the chain, and an add() is either fully visible to a traversal or not
    at all.

    Example:
        chain = InterceptorChain()
        await chain.add(CacheInterceptor())
        await chain.add(RateLimitInterceptor(max_requests_per_minute=30))
    """

    def __init__(self, interceptors: Iterable[Interceptor] = ()) -> None:
        self._interceptors: list[Interceptor] = list(interceptors)
        self._lock = asyncio.Lock()

    async def add(self, interceptor: Interceptor) -> None:
        """Append an interceptor; it applies to every later traversal."""
        async with self._lock:
            self._interceptors.append(interceptor)
        logger.debug(
            f"Added interceptor {type(interceptor).__name__}",
            extra={"chain_length": len(self._interceptors)},
        )

    async def snapshot(self) -> tuple[Interceptor, ...]:
        """Return the interceptors as of now, in add-order."""
        async with self._lock:
            return tuple(self._interceptors)

    def __len__(self) -> int:
        return len(self._interceptors)

    async def intercept_request(
        self, request: RequestConfiguration
    ) -> RequestOutcome:
        """Fold the request through every request hook.

        Args:
            request: The request as configured by the caller.

        Returns:
            Proceed with the final request, or the first terminal outcome
            a hook produced.
        """
        current = request
        for interceptor in await self.snapshot():
            match await interceptor.intercept_request(current):
                case Proceed(value):
                    current = value
                case outcome:
                    logger.debug(
                        f"{type(interceptor).__name__} short-circuited "
                        f"{request.method} {request.url}"
                    )
                    return outcome
        return Proceed(current)

    async def intercept_response(
        self, response: TransportResponse, data: bytes | None
    ) -> ResponseOutcome:
        """Fold the response body through every response hook.

        Args:
            response: Status, headers and URL of the transport response.
            data: The body as received from the transport.

        Returns:
            Proceed with the final body, or the first terminal outcome a
            hook produced.
        """
        current = data
        for interceptor in await self.snapshot():
            match await interceptor.intercept_response(response, current):
                case Proceed(value):
                    current = value
                case outcome:
                    logger.debug(
                        f"{type(interceptor).__name__} requested a retry "
                        f"after status {response.status_code} from "
                        f"{response.url}"
                    )
                    return outcome
        return Proceed(current)
