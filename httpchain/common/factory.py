"""Build built-in interceptors from declarative configuration."""

from dataclasses import dataclass, field

from typing_extensions import assert_never

from httpchain.common.auth_interceptor import (
    AuthenticationInterceptor,
    TokenStore,
)
from httpchain.common.cache_interceptor import CacheInterceptor
from httpchain.common.interceptors import Interceptor
from httpchain.common.logging_interceptor import (
    LoggingInterceptor,
    LogSink,
    StdlibLogSink,
)
from httpchain.common.rate_limit_interceptor import RateLimitInterceptor
from httpchain.data_types import CachePolicy


@dataclass(frozen=True)
class AuthenticationConfig:
    token_store: TokenStore


@dataclass(frozen=True)
class LoggingConfig:
    sink: LogSink = field(default_factory=StdlibLogSink)


@dataclass(frozen=True)
class RateLimitConfig:
    max_requests_per_minute: int = 60


@dataclass(frozen=True)
class CacheConfig:
    cache_policy: CachePolicy = field(
        default_factory=lambda: CachePolicy.cache_for_minutes(5)
    )


InterceptorConfiguration = (
    AuthenticationConfig | LoggingConfig | RateLimitConfig | CacheConfig
)


class InterceptorFactory:
    """Creates interceptors from InterceptorConfiguration values.

    Example:
        interceptors = [
            InterceptorFactory.make(CacheConfig(CachePolicy.cache_for_hours(1))),
            InterceptorFactory.make(RateLimitConfig(max_requests_per_minute=30)),
        ]
        chain = InterceptorChain(interceptors)
    """

    @staticmethod
    def make(configuration: InterceptorConfiguration) -> Interceptor:
        match configuration:
            case AuthenticationConfig(token_store=token_store):
                return AuthenticationInterceptor(token_store=token_store)
            case LoggingConfig(sink=sink):
                return LoggingInterceptor(sink=sink)
            case RateLimitConfig(max_requests_per_minute=limit):
                return RateLimitInterceptor(max_requests_per_minute=limit)
            case CacheConfig(cache_policy=cache_policy):
                return CacheInterceptor(cache_policy=cache_policy)
            case _:
                assert_never(configuration)
