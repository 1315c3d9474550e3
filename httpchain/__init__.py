"""HTTP request execution with an interceptor pipeline and retry policy."""

from httpchain.common.auth_interceptor import (
    AuthenticationInterceptor,
    TokenStore,
)
from httpchain.common.cache_interceptor import CacheInterceptor
from httpchain.common.chain import InterceptorChain
from httpchain.common.codecs import (
    BodyDecoder,
    BodyEncoder,
    JsonCodec,
    StringDecoder,
)
from httpchain.common.exceptions import (
    AuthenticationError,
    DecodingError,
    EncodingError,
    ForbiddenError,
    HTTPError,
    InvalidURLError,
    NetworkError,
    NoConnectivityError,
    NoDataError,
    NotFoundError,
    RequestCancelledError,
    RequestTimeoutError,
    ServerUnavailableError,
    TooManyRequestsError,
    UnauthorizedError,
    UnknownNetworkError,
)
from httpchain.common.factory import (
    AuthenticationConfig,
    CacheConfig,
    InterceptorFactory,
    LoggingConfig,
    RateLimitConfig,
)
from httpchain.common.interceptors import Interceptor
from httpchain.common.logging_interceptor import (
    LoggingInterceptor,
    LogSink,
    StdlibLogSink,
)
from httpchain.common.rate_limit_interceptor import RateLimitInterceptor
from httpchain.data_types import (
    CachePolicy,
    HttpMethod,
    NetworkResponse,
    Proceed,
    RequestConfiguration,
    RetryRequested,
    ShortCircuit,
    TransportResponse,
    __version__,
)
from httpchain.driver.async_client import AsyncNetworkClient
from httpchain.driver.transport import HttpxTransport, Transport

__all__ = [
    "AsyncNetworkClient",
    "AuthenticationConfig",
    "AuthenticationError",
    "AuthenticationInterceptor",
    "BodyDecoder",
    "BodyEncoder",
    "CacheConfig",
    "CacheInterceptor",
    "CachePolicy",
    "DecodingError",
    "EncodingError",
    "ForbiddenError",
    "HTTPError",
    "HttpMethod",
    "HttpxTransport",
    "Interceptor",
    "InterceptorChain",
    "InterceptorFactory",
    "InvalidURLError",
    "JsonCodec",
    "LogSink",
    "LoggingConfig",
    "LoggingInterceptor",
    "NetworkError",
    "NetworkResponse",
    "NoConnectivityError",
    "NoDataError",
    "NotFoundError",
    "Proceed",
    "RateLimitConfig",
    "RateLimitInterceptor",
    "RequestCancelledError",
    "RequestConfiguration",
    "RequestTimeoutError",
    "RetryRequested",
    "ServerUnavailableError",
    "ShortCircuit",
    "StdlibLogSink",
    "StringDecoder",
    "TokenStore",
    "TooManyRequestsError",
    "Transport",
    "TransportResponse",
    "UnauthorizedError",
    "UnknownNetworkError",
    "__version__",
]
