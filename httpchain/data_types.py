"""Data types for the request-execution engine.

This module defines the core data types passed between the client, the
interceptor chain and the transport. These types are designed to be:

1. Immutable - Dataclasses with frozen=True; "modification" returns a copy
2. Exhaustive - Intercept outcomes form a closed union for match statements
3. Transport-agnostic - Nothing here depends on the HTTP library in use
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from httpchain.common.codecs import BodyEncoder

__version__ = "0.1.0"

T = TypeVar("T")


# =============================================================================
# Requests
# =============================================================================


class HttpMethod(Enum):
    """HTTP methods supported by the client."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"

    def __str__(self) -> str:
        return self.value


DEFAULT_HEADERS: dict[str, str] = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "User-Agent": f"httpchain/{__version__}",
}


def _normalize_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Collapse header names that differ only by case (last one wins)."""
    normalized: dict[str, str] = {}
    for name, value in headers.items():
        for existing in [k for k in normalized if k.lower() == name.lower()]:
            del normalized[existing]
        normalized[name] = value
    return normalized


@dataclass(frozen=True)
class RequestConfiguration:
    """Everything needed to issue one logical request.

    A configuration is built by the caller and handed to the client. It is
    never mutated afterwards: interceptors that need to change a header get
    a new configuration from with_header().

    Attributes:
        url: Target resource. Also the cache key for the cache interceptor.
        method: HTTP method. Defaults to GET.
        headers: Read-only header mapping with case-insensitive names.
            Defaults to JSON content negotiation plus a user agent.
        body: Optional request body bytes.
        timeout: Per-request timeout in seconds, enforced by the transport.
        retry_count: Number of retries after the first attempt.
        retry_delay: Base delay in seconds between retries.
    """

    url: str
    method: HttpMethod = HttpMethod.GET
    headers: Mapping[str, str] = field(
        default_factory=lambda: dict(DEFAULT_HEADERS), hash=False
    )
    body: bytes | None = None
    timeout: float = 30.0
    retry_count: int = 3
    retry_delay: float = 0.1

    def __post_init__(self) -> None:
        if self.retry_count < 0:
            raise ValueError(
                f"retry_count must be >= 0, got {self.retry_count}"
            )
        if self.retry_delay < 0:
            raise ValueError(
                f"retry_delay must be >= 0, got {self.retry_delay}"
            )
        if self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")
        # Since the dataclass is frozen, we need to use object.__setattr__
        object.__setattr__(
            self, "headers", MappingProxyType(_normalize_headers(self.headers))
        )

    def header(self, name: str) -> str | None:
        """Look up a header value by case-insensitive name."""
        for key, value in self.headers.items():
            if key.lower() == name.lower():
                return value
        return None

    def with_header(self, name: str, value: str) -> RequestConfiguration:
        """Return a copy with one header set, replacing any case variant."""
        return replace(self, headers={**self.headers, name: value})

    def with_body(self, body: bytes) -> RequestConfiguration:
        """Return a copy carrying the given body.

        Raises:
            ValueError: If this configuration already has a body.
        """
        if self.body is not None:
            raise ValueError("Request body has already been set")
        return replace(self, body=body)

    def with_encodable_body(
        self, value: Any, encoder: BodyEncoder | None = None
    ) -> RequestConfiguration:
        """Return a copy whose body is the encoded form of value.

        Args:
            value: Any value the encoder understands.
            encoder: Body encoder. Defaults to JsonCodec.

        Raises:
            EncodingError: If the value cannot be encoded.
            ValueError: If this configuration already has a body.
        """
        if encoder is None:
            from httpchain.common.codecs import JsonCodec

            encoder = JsonCodec()
        return self.with_body(encoder.encode(value))


# =============================================================================
# Responses
# =============================================================================


@dataclass(frozen=True)
class TransportResponse:
    """Raw result of one transport call.

    Attributes:
        status_code: HTTP status code.
        headers: Response headers.
        content: Response body, or None when the body was empty.
        url: URL of the request that produced the response.
    """

    status_code: int
    headers: Mapping[str, str]
    content: bytes | None
    url: str


@dataclass(frozen=True)
class NetworkResponse(Generic[T]):
    """Result handed back to the caller for one completed request.

    Attributes:
        data: Decoded payload (or raw bytes); None for empty bodies.
        status_code: HTTP status code.
        headers: Response headers.
        url: URL of the response.
    """

    data: T | None
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    url: str = ""


# =============================================================================
# Cache policy
# =============================================================================


@dataclass(frozen=True)
class CachePolicy:
    """How long the cache interceptor serves a stored body.

    Use the constructors rather than building instances directly:

        CachePolicy.no_cache()
        CachePolicy.cache_for_minutes(5)
        CachePolicy.cache_for_hours(1)
    """

    max_age: float

    def __post_init__(self) -> None:
        if self.max_age < 0:
            raise ValueError(f"max_age must be >= 0, got {self.max_age}")

    @classmethod
    def no_cache(cls) -> CachePolicy:
        return cls(max_age=0)

    @classmethod
    def cache_for_minutes(cls, minutes: int) -> CachePolicy:
        return cls(max_age=minutes * 60)

    @classmethod
    def cache_for_hours(cls, hours: int) -> CachePolicy:
        return cls(max_age=hours * 3600)


# =============================================================================
# Intercept outcomes
# =============================================================================


@dataclass(frozen=True)
class Proceed(Generic[T]):
    """Continue the chain with value (a request or a response body)."""

    value: T


@dataclass(frozen=True)
class ShortCircuit:
    """Stop the request chain and answer with payload instead of sending.

    Example:
        A cache hit returns ShortCircuit(cached_bytes).
    """

    payload: bytes


@dataclass(frozen=True)
class RetryRequested:
    """Stop the response chain and ask the engine to re-run the request."""


RequestOutcome = Proceed[RequestConfiguration] | ShortCircuit
ResponseOutcome = Proceed[bytes | None] | RetryRequested
