"""Interceptor protocol for request/response transformation.

Interceptors implement the middleware pattern, allowing transformation of
requests before they are sent and response bodies after they are received.

The protocol introduces:
- Two coroutine hooks, one per direction
- Request short-circuiting (intercept_request can return ShortCircuit)
- Retry signalling (intercept_response can return RetryRequested)
- Chain of responsibility pattern, driven by InterceptorChain
"""

from typing import Protocol

from httpchain.data_types import (
    RequestConfiguration,
    RequestOutcome,
    ResponseOutcome,
    TransportResponse,
)


class Interceptor(Protocol):
    """Protocol for interceptors.

    Interceptors can transform requests before sending and response bodies
    after receiving. They form a chain of responsibility, processing
    requests and responses in the order they were added to the chain.

    Key behaviors:
    - intercept_request() returns Proceed(request) to continue or
      ShortCircuit(payload) to answer without sending
    - intercept_response() returns Proceed(body) to continue or
      RetryRequested() to have the whole request attempted again
    - Short-circuiting skips the transport and remaining request hooks
    - Both hooks may run several times for one logical request (retries),
      so they must be idempotent
    - Interceptor order matters (cache before rate limiter)
    """

    async def intercept_request(
        self, request: RequestConfiguration
    ) -> RequestOutcome:
        """Transform the request before sending, or short-circuit.

        Args:
            request: The request produced by the previous interceptor.

        Returns:
            Proceed with the request to continue, or ShortCircuit to answer
            with a payload instead of calling the transport.

        Short-circuiting use cases:
        - Cache hit: answer with the cached body, skip HTTP
        - Test mocking: answer with a canned body, skip HTTP
        """
        ...

    async def intercept_response(
        self, response: TransportResponse, data: bytes | None
    ) -> ResponseOutcome:
        """Inspect or transform the response body after receiving.

        Args:
            response: Status, headers and URL of the transport response.
            data: The body produced by the previous interceptor.

        Returns:
            Proceed with the body to continue, or RetryRequested to stop the
            chain and have the engine attempt the request again.
        """
        ...
