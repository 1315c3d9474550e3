"""Logging interceptor and log sink capability.

The logging interceptor writes one line per request and per response
without modifying either.
"""

import logging
from typing import Protocol

from httpchain.data_types import (
    Proceed,
    RequestConfiguration,
    RequestOutcome,
    ResponseOutcome,
    TransportResponse,
)


class LogSink(Protocol):
    """Destination for log lines."""

    def write(self, message: str) -> None: ...


class StdlibLogSink:
    """Log sink that forwards to a standard library logger."""

    def __init__(
        self,
        logger: logging.Logger | None = None,
        level: int = logging.DEBUG,
    ) -> None:
        self.logger = logger or logging.getLogger("httpchain")
        self.level = level

    def write(self, message: str) -> None:
        self.logger.log(self.level, message)


class LoggingInterceptor:
    """Interceptor that logs requests and responses.

    Nothing is transformed; every hook proceeds with its input.
    """

    def __init__(self, sink: LogSink | None = None, prefix: str = "") -> None:
        """Initialize the logging interceptor.

        Args:
            sink: Where log lines go. Defaults to StdlibLogSink.
            prefix: Optional prefix for log messages.
        """
        self.sink = sink or StdlibLogSink()
        self.prefix = prefix
        self.request_count = 0
        self.response_count = 0

    async def intercept_request(
        self, request: RequestConfiguration
    ) -> RequestOutcome:
        self.request_count += 1
        self.sink.write(
            f"{self.prefix}Request #{self.request_count}: "
            f"{request.method} {request.url}"
        )
        return Proceed(request)

    async def intercept_response(
        self, response: TransportResponse, data: bytes | None
    ) -> ResponseOutcome:
        self.response_count += 1
        size = len(data) if data is not None else 0
        self.sink.write(
            f"{self.prefix}Response #{self.response_count}: "
            f"{response.status_code} from {response.url} ({size} bytes)"
        )
        return Proceed(data)
