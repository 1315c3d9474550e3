"""Transport capability and its httpx implementation.

The transport is the only component that talks to the network. Everything
about connections (pooling, TLS, proxies, HTTP/2) lives behind it.
"""

import asyncio
import logging
import tempfile
from collections.abc import AsyncIterator, Mapping
from pathlib import Path
from typing import Protocol

import httpx

from httpchain.common.exceptions import (
    InvalidURLError,
    NetworkError,
    NoConnectivityError,
    RequestTimeoutError,
    UnknownNetworkError,
)
from httpchain.data_types import RequestConfiguration, TransportResponse

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class Transport(Protocol):
    """Sends prepared requests and returns raw responses.

    Implementations raise NetworkError subclasses for transport-level
    failures and let asyncio.CancelledError propagate.
    """

    async def send(self, request: RequestConfiguration) -> TransportResponse:
        """Send request and return status, headers and body."""
        ...

    async def upload(
        self, request: RequestConfiguration, file_path: Path
    ) -> TransportResponse:
        """Send the contents of file_path as the request body."""
        ...

    async def download(
        self, request: RequestConfiguration
    ) -> tuple[Path, TransportResponse]:
        """Stream the response body into a temporary file.

        Returns:
            The temporary file path and the response (with content=None).
        """
        ...


def translate_httpx_error(
    error: httpx.HTTPError | httpx.InvalidURL, request: RequestConfiguration
) -> NetworkError:
    """Map an httpx failure onto the NetworkError taxonomy."""
    url = request.url
    match error:
        case httpx.TimeoutException():
            return RequestTimeoutError(url=url, timeout_seconds=request.timeout)
        case httpx.UnsupportedProtocol() | httpx.InvalidURL():
            return InvalidURLError(url=url, reason=str(error))
        case httpx.ConnectError():
            return NoConnectivityError(url=url)
        case _:
            return UnknownNetworkError(cause=error, url=url)


class HttpxTransport:
    """Transport backed by an httpx.AsyncClient.

    The client is reused across requests. Pass your own client to control
    connection limits, proxies or TLS; otherwise one is created and owned
    by this transport.

    The URL reported on each TransportResponse is the configured request
    URL, so it can be used as a stable cache key.

    Example:
        async with HttpxTransport() as transport:
            client = AsyncNetworkClient(transport)
            response = await client.request(RequestConfiguration(url=url))
    """

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _build(
        self,
        request: RequestConfiguration,
        content: bytes | AsyncIterator[bytes] | None = None,
        extra_headers: Mapping[str, str] | None = None,
    ) -> httpx.Request:
        return self._client.build_request(
            method=request.method.value,
            url=request.url,
            headers={**request.headers, **(extra_headers or {})},
            content=content if content is not None else request.body,
            timeout=request.timeout,
        )

    async def send(self, request: RequestConfiguration) -> TransportResponse:
        try:
            http_response = await self._client.send(self._build(request))
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise translate_httpx_error(e, request) from e

        return TransportResponse(
            status_code=http_response.status_code,
            headers=dict(http_response.headers),
            content=http_response.content or None,
            url=request.url,
        )

    async def upload(
        self, request: RequestConfiguration, file_path: Path
    ) -> TransportResponse:
        file_path = Path(file_path)
        size = file_path.stat().st_size
        try:
            http_response = await self._client.send(
                self._build(
                    request,
                    content=_read_chunks(file_path),
                    extra_headers={"Content-Length": str(size)},
                )
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise translate_httpx_error(e, request) from e

        return TransportResponse(
            status_code=http_response.status_code,
            headers=dict(http_response.headers),
            content=http_response.content or None,
            url=request.url,
        )

    async def download(
        self, request: RequestConfiguration
    ) -> tuple[Path, TransportResponse]:
        try:
            http_response = await self._client.send(
                self._build(request), stream=True
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise translate_httpx_error(e, request) from e

        temp_file = tempfile.NamedTemporaryFile(
            prefix="httpchain-", delete=False
        )
        temp_path = Path(temp_file.name)
        try:
            with temp_file:
                async for chunk in http_response.aiter_bytes(CHUNK_SIZE):
                    temp_file.write(chunk)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            temp_path.unlink(missing_ok=True)
            raise translate_httpx_error(e, request) from e
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise
        finally:
            await http_response.aclose()

        logger.debug(
            f"Downloaded {request.url} to {temp_path}",
            extra={"status_code": http_response.status_code},
        )
        return temp_path, TransportResponse(
            status_code=http_response.status_code,
            headers=dict(http_response.headers),
            content=None,
            url=request.url,
        )


async def _read_chunks(file_path: Path) -> AsyncIterator[bytes]:
    with open(file_path, "rb") as f:
        while chunk := await asyncio.to_thread(f.read, CHUNK_SIZE):
            yield chunk
