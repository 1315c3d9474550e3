"""Asynchronous network client.

This module contains the execution engine: it runs each request through the
interceptor chain and the transport, validates the status, and wraps the
whole attempt in the retry loop.

One attempt of AsyncNetworkClient.request():
1. Fold the request through the chain's request hooks
2. On ShortCircuit, answer with the payload (status 200), skip the transport
3. Send through the transport
4. Fold the body through the chain's response hooks
5. On RetryRequested, fail the attempt so the retry loop runs it again
6. Validate the status code and build the NetworkResponse
"""

import asyncio
import logging
import shutil
from collections.abc import Awaitable, Callable, Mapping
from pathlib import Path
from typing import Any, TypeVar

from typing_extensions import assert_never

from httpchain.common.chain import InterceptorChain
from httpchain.common.codecs import BodyDecoder, BodyEncoder, JsonCodec
from httpchain.common.exceptions import DecodingError
from httpchain.common.interceptors import Interceptor
from httpchain.data_types import (
    DEFAULT_HEADERS,
    HttpMethod,
    NetworkResponse,
    Proceed,
    RequestConfiguration,
    RetryRequested,
    ShortCircuit,
    TransportResponse,
)
from httpchain.driver.retry import (
    RetryRequestedSignal,
    validate_response,
    with_retry,
)
from httpchain.driver.transport import Transport

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncNetworkClient:
    """Async HTTP client with an interceptor chain and retry policy.

    Example usage:
        async with HttpxTransport() as transport:
            client = AsyncNetworkClient(transport)
            await client.with_interceptor(AuthenticationInterceptor(store))
            await client.with_interceptor(LoggingInterceptor())

            config = RequestConfiguration(url="https://api.example.com/users/1")
            response = await client.request_decoded(config, User)
    """

    def __init__(
        self,
        transport: Transport,
        interceptor_chain: InterceptorChain | None = None,
        decoder: BodyDecoder | None = None,
        encoder: BodyEncoder | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the client.

        Args:
            transport: Sends requests over the network.
            interceptor_chain: Chain applied to every request. Defaults to
                an empty chain.
            decoder: Default decoder for request_decoded(). Defaults to
                JsonCodec.
            encoder: Encoder used by post()/put()/patch(). Defaults to
                JsonCodec.
            sleep: Coroutine used for retry backoff waits.
        """
        self.transport = transport
        self.interceptor_chain = interceptor_chain or InterceptorChain()
        self.decoder = decoder or JsonCodec()
        self.encoder = encoder or JsonCodec()
        self._sleep = sleep

    async def __aenter__(self) -> "AsyncNetworkClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        aclose = getattr(self.transport, "aclose", None)
        if aclose is not None:
            await aclose()

    async def with_interceptor(
        self, interceptor: Interceptor
    ) -> "AsyncNetworkClient":
        """Add an interceptor to the chain and return this client.

        Interceptors apply in the order they are added, for both requests
        and responses. Order matters - for example, cache should come
        before rate limiter.
        """
        await self.interceptor_chain.add(interceptor)
        return self

    # =========================================================================
    # Requests
    # =========================================================================

    async def request(
        self, config: RequestConfiguration
    ) -> NetworkResponse[bytes]:
        """Perform a request and return the raw body.

        Args:
            config: The request configuration.

        Returns:
            NetworkResponse whose data is the body bytes (None when empty).

        Raises:
            NetworkError: The classified failure of the last attempt, or
                the first non-retryable failure.
        """
        return await with_retry(
            config.retry_count,
            config.retry_delay,
            lambda: self._perform_request(config),
            sleep=self._sleep,
        )

    async def request_decoded(
        self,
        config: RequestConfiguration,
        target_type: type[T],
        decoder: BodyDecoder | None = None,
    ) -> NetworkResponse[T]:
        """Perform a request and decode the body into target_type.

        Decoding runs once, after the retry loop, so a decoding failure is
        never retried.

        Raises:
            DecodingError: If the body cannot be decoded.
            NetworkError: Any failure from request().
        """
        raw = await self.request(config)
        if raw.data is None:
            return NetworkResponse(
                data=None,
                status_code=raw.status_code,
                headers=raw.headers,
                url=raw.url,
            )

        try:
            decoded = (decoder or self.decoder).decode(raw.data, target_type)
        except DecodingError:
            raise
        except Exception as e:
            raise DecodingError(cause=e, url=config.url) from e

        return NetworkResponse(
            data=decoded,
            status_code=raw.status_code,
            headers=raw.headers,
            url=raw.url,
        )

    async def _perform_request(
        self, config: RequestConfiguration
    ) -> NetworkResponse[bytes]:
        """Run one full attempt: chain, transport, chain, validation."""
        match await self.interceptor_chain.intercept_request(config):
            case ShortCircuit(payload):
                return NetworkResponse(
                    data=payload, status_code=200, headers={}, url=config.url
                )
            case Proceed(value):
                request = value
            case _ as unreachable:
                assert_never(unreachable)

        response = await self.transport.send(request)

        match await self.interceptor_chain.intercept_response(
            response, response.content
        ):
            case Proceed(value):
                data = value
            case RetryRequested():
                raise RetryRequestedSignal(url=config.url)
            case _ as unreachable:
                assert_never(unreachable)

        validate_response(response.status_code, data, url=config.url)
        return _network_response(response, data)

    # =========================================================================
    # Files
    # =========================================================================

    async def download_file(
        self, config: RequestConfiguration, destination: Path
    ) -> NetworkResponse[Path]:
        """Download the response body to destination.

        Uses the same interceptor chain and retry policy as request(). The
        body is streamed to a temporary file by the transport and moved into
        place only after the response hooks and status validation pass.
        Response hooks see None as the body, since it lives on disk.

        Returns:
            NetworkResponse whose data is the destination path.
        """

        async def attempt() -> NetworkResponse[Path]:
            request = await self._prepare_transfer(config)
            temp_path, response = await self.transport.download(request)
            try:
                await self._finish_transfer(config, response, None)
                validate_response(response.status_code, url=config.url)
            except BaseException:
                temp_path.unlink(missing_ok=True)
                raise
            await asyncio.to_thread(shutil.move, temp_path, destination)
            return _network_response(response, Path(destination))

        return await with_retry(
            config.retry_count, config.retry_delay, attempt, sleep=self._sleep
        )

    async def upload_file(
        self, config: RequestConfiguration, file_path: Path
    ) -> NetworkResponse[bytes]:
        """Upload the contents of file_path.

        Uses the same interceptor chain and retry policy as request().

        Returns:
            NetworkResponse with the server's response body.
        """

        async def attempt() -> NetworkResponse[bytes]:
            request = await self._prepare_transfer(config)
            response = await self.transport.upload(request, file_path)
            data = await self._finish_transfer(
                config, response, response.content
            )
            validate_response(response.status_code, data, url=config.url)
            return _network_response(response, data)

        return await with_retry(
            config.retry_count, config.retry_delay, attempt, sleep=self._sleep
        )

    async def _prepare_transfer(
        self, config: RequestConfiguration
    ) -> RequestConfiguration:
        """Run the request hooks for a file transfer.

        A ShortCircuit carries a body, not a file, so it cannot answer a
        transfer. The original request is sent instead.
        """
        match await self.interceptor_chain.intercept_request(config):
            case ShortCircuit():
                logger.debug(
                    f"Ignoring short-circuit for file transfer {config.url}"
                )
                return config
            case Proceed(value):
                return value
            case _ as unreachable:
                assert_never(unreachable)

    async def _finish_transfer(
        self,
        config: RequestConfiguration,
        response: TransportResponse,
        data: bytes | None,
    ) -> bytes | None:
        match await self.interceptor_chain.intercept_response(response, data):
            case Proceed(value):
                return value
            case RetryRequested():
                raise RetryRequestedSignal(url=config.url)
            case _ as unreachable:
                assert_never(unreachable)

    # =========================================================================
    # Convenience methods
    # =========================================================================

    async def get(
        self,
        url: str,
        target_type: type[T],
        headers: Mapping[str, str] | None = None,
    ) -> NetworkResponse[T]:
        """GET url and decode the body into target_type."""
        return await self.request_decoded(
            _config(url, HttpMethod.GET, headers), target_type
        )

    async def post(
        self,
        url: str,
        body: Any,
        target_type: type[T],
        headers: Mapping[str, str] | None = None,
    ) -> NetworkResponse[T]:
        """POST body (encoded with the client's encoder) and decode the reply."""
        config = _config(url, HttpMethod.POST, headers).with_encodable_body(
            body, self.encoder
        )
        return await self.request_decoded(config, target_type)

    async def put(
        self,
        url: str,
        body: Any,
        target_type: type[T],
        headers: Mapping[str, str] | None = None,
    ) -> NetworkResponse[T]:
        """PUT body (encoded with the client's encoder) and decode the reply."""
        config = _config(url, HttpMethod.PUT, headers).with_encodable_body(
            body, self.encoder
        )
        return await self.request_decoded(config, target_type)

    async def patch(
        self,
        url: str,
        body: Any,
        target_type: type[T],
        headers: Mapping[str, str] | None = None,
    ) -> NetworkResponse[T]:
        """PATCH body (encoded with the client's encoder) and decode the reply."""
        config = _config(url, HttpMethod.PATCH, headers).with_encodable_body(
            body, self.encoder
        )
        return await self.request_decoded(config, target_type)

    async def delete(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> NetworkResponse[bytes]:
        """DELETE url and return the raw response body."""
        return await self.request(_config(url, HttpMethod.DELETE, headers))


def _config(
    url: str, method: HttpMethod, headers: Mapping[str, str] | None
) -> RequestConfiguration:
    return RequestConfiguration(
        url=url, method=method, headers={**DEFAULT_HEADERS, **(headers or {})}
    )


def _network_response(
    response: TransportResponse, data: T | None
) -> NetworkResponse[T]:
    return NetworkResponse(
        data=data,
        status_code=response.status_code,
        headers=response.headers,
        url=response.url,
    )
