"""Exception taxonomy for request execution.

Every failure that reaches the caller is a NetworkError subclass. Raw status
codes and transport failures are classified into this closed set before the
retry engine decides whether to try again.

Hierarchy:
    NetworkError
    ├── InvalidURLError
    ├── NoDataError
    ├── EncodingError
    ├── DecodingError
    ├── HTTPError                 (any status not otherwise classified)
    ├── RequestTimeoutError       (408 or transport timeout)
    ├── NoConnectivityError
    ├── ServerUnavailableError    (5xx)
    ├── UnauthorizedError         (401)
    ├── ForbiddenError            (403)
    ├── NotFoundError             (404)
    ├── TooManyRequestsError      (429)
    ├── AuthenticationError       (credential refresh failed)
    ├── RequestCancelledError
    └── UnknownNetworkError
"""

from typing import Any


class NetworkError(Exception):
    """Base class for all request execution failures.

    Attributes:
        message: Human readable description.
        url: The URL of the failed request, when known.
        context: Additional context for debugging.
    """

    def __init__(
        self,
        message: str,
        url: str = "",
        context: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.url = url
        self.context = context or {}
        super().__init__(message)

    def _identity(self) -> tuple[Any, ...]:
        return (type(self),)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NetworkError):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())


class InvalidURLError(NetworkError):
    """The URL is malformed or uses an unsupported scheme."""

    def __init__(self, url: str = "", reason: str = "") -> None:
        message = f"Invalid URL: {url}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, url=url, context={"reason": reason})


class NoDataError(NetworkError):
    """No usable data was received."""

    def __init__(self, url: str = "") -> None:
        super().__init__("No data received", url=url)


class EncodingError(NetworkError):
    """A request body could not be encoded.

    Attributes:
        cause: The underlying encoder failure.
    """

    def __init__(self, cause: BaseException, url: str = "") -> None:
        self.cause = cause
        super().__init__(f"Encoding error: {cause}", url=url)

    def _identity(self) -> tuple[Any, ...]:
        return (type(self), repr(self.cause))


class DecodingError(NetworkError):
    """A response body could not be decoded into the requested type.

    Attributes:
        cause: The underlying decoder failure.
    """

    def __init__(self, cause: BaseException, url: str = "") -> None:
        self.cause = cause
        super().__init__(f"Decoding error: {cause}", url=url)

    def _identity(self) -> tuple[Any, ...]:
        return (type(self), repr(self.cause))


class HTTPError(NetworkError):
    """Response status outside 2xx that has no dedicated class.

    Attributes:
        status_code: The HTTP status code.
        data: The response body, if any.
    """

    def __init__(
        self, status_code: int, data: bytes | None = None, url: str = ""
    ) -> None:
        self.status_code = status_code
        self.data = data
        super().__init__(
            f"HTTP error with status code: {status_code}",
            url=url,
            context={"status_code": status_code},
        )

    def _identity(self) -> tuple[Any, ...]:
        return (type(self), self.status_code, self.data)


class RequestTimeoutError(NetworkError):
    """The request timed out (408 or transport-level timeout)."""

    def __init__(
        self, url: str = "", timeout_seconds: float | None = None
    ) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(
            "Request timeout",
            url=url,
            context={"timeout_seconds": timeout_seconds},
        )


class NoConnectivityError(NetworkError):
    """The transport could not reach the network."""

    def __init__(self, url: str = "") -> None:
        super().__init__("No internet connection", url=url)


class ServerUnavailableError(NetworkError):
    """The server answered with a 5xx status.

    Attributes:
        status_code: The exact 5xx status received.
    """

    def __init__(self, status_code: int = 503, url: str = "") -> None:
        self.status_code = status_code
        super().__init__(
            "Server unavailable",
            url=url,
            context={"status_code": status_code},
        )

    def _identity(self) -> tuple[Any, ...]:
        return (type(self), self.status_code)


class UnauthorizedError(NetworkError):
    """The server answered 401."""

    def __init__(self, url: str = "") -> None:
        super().__init__("Unauthorized access", url=url)


class ForbiddenError(NetworkError):
    """The server answered 403."""

    def __init__(self, url: str = "") -> None:
        super().__init__("Forbidden access", url=url)


class NotFoundError(NetworkError):
    """The server answered 404."""

    def __init__(self, url: str = "") -> None:
        super().__init__("Resource not found", url=url)


class TooManyRequestsError(NetworkError):
    """The server answered 429."""

    def __init__(self, url: str = "") -> None:
        super().__init__("Too many requests", url=url)


class AuthenticationError(NetworkError):
    """Refreshing credentials after a 401 failed.

    Attributes:
        cause: The token store failure.
    """

    def __init__(self, cause: BaseException, url: str = "") -> None:
        self.cause = cause
        super().__init__(f"Authentication failed: {cause}", url=url)


class RequestCancelledError(NetworkError):
    """The underlying transport call was cancelled."""

    def __init__(self, url: str = "") -> None:
        super().__init__("Request cancelled", url=url)


class UnknownNetworkError(NetworkError):
    """Any failure the transport could not classify.

    Attributes:
        cause: The opaque underlying error.
    """

    def __init__(self, cause: BaseException, url: str = "") -> None:
        self.cause = cause
        super().__init__(f"Unknown error: {cause}", url=url)

    def _identity(self) -> tuple[Any, ...]:
        return (type(self), repr(self.cause))
