"""Status validation, failure classification and the retry loop.

The execution engine is the only place that decides whether a failure is
retried. Status codes are first mapped onto the NetworkError taxonomy by
validate_response(); should_not_retry() then decides whether another
attempt could help.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from httpchain.common.exceptions import (
    AuthenticationError,
    DecodingError,
    ForbiddenError,
    HTTPError,
    InvalidURLError,
    NotFoundError,
    RequestCancelledError,
    RequestTimeoutError,
    ServerUnavailableError,
    TooManyRequestsError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryRequestedSignal(Exception):
    """Raised inside one attempt when an interceptor asked for a retry.

    It never reaches the caller: the retry loop either runs another
    attempt or, when attempts are exhausted, replaces it with
    UnauthorizedError.
    """

    def __init__(self, url: str = "") -> None:
        self.url = url
        super().__init__(f"Retry requested for {url}")


def validate_response(
    status_code: int, data: bytes | None = None, url: str = ""
) -> None:
    """Raise the NetworkError that matches status_code, if any.

    Args:
        status_code: The HTTP status code.
        data: The response body, attached to generic HTTPErrors.
        url: The request URL, for error context.

    Raises:
        UnauthorizedError: 401.
        ForbiddenError: 403.
        NotFoundError: 404.
        RequestTimeoutError: 408.
        TooManyRequestsError: 429.
        ServerUnavailableError: Any status from 500 to 599.
        HTTPError: Any other status outside 200-299.
    """
    match status_code:
        case code if 200 <= code <= 299:
            return
        case 401:
            raise UnauthorizedError(url=url)
        case 403:
            raise ForbiddenError(url=url)
        case 404:
            raise NotFoundError(url=url)
        case 408:
            raise RequestTimeoutError(url=url)
        case 429:
            raise TooManyRequestsError(url=url)
        case code if 500 <= code <= 599:
            raise ServerUnavailableError(status_code=code, url=url)
        case code:
            raise HTTPError(status_code=code, data=data, url=url)


def should_not_retry(error: BaseException) -> bool:
    """Return True for failures that another attempt cannot fix.

    Non-retryable: decoding errors, 401, 403, 404, any other 4xx, malformed
    or unsupported URLs, failed credential refresh, and cancellation.
    408, 429, 5xx, connectivity and unknown errors are retried.
    """
    match error:
        case (
            DecodingError()
            | UnauthorizedError()
            | ForbiddenError()
            | NotFoundError()
            | InvalidURLError()
            | AuthenticationError()
            | RequestCancelledError()
            | asyncio.CancelledError()
        ):
            return True
        case HTTPError(status_code=code):
            return 400 <= code < 500
        case _:
            return False


async def with_retry(
    retry_count: int,
    delay: float,
    operation: Callable[[], Awaitable[T]],
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run operation up to retry_count + 1 times.

    Between attempts the loop sleeps delay * (attempt + 1) seconds, so the
    backoff grows linearly with the attempt index.

    Args:
        retry_count: Retries allowed after the first attempt.
        delay: Base delay in seconds.
        operation: Coroutine factory for one full attempt.
        sleep: Coroutine used for the backoff wait.

    Returns:
        The first successful result.

    Raises:
        The first non-retryable error, or the error of the last attempt.
    """
    for attempt in range(retry_count + 1):
        try:
            return await operation()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if isinstance(e, RetryRequestedSignal):
                if attempt == retry_count:
                    raise UnauthorizedError(url=e.url) from e
            elif should_not_retry(e) or attempt == retry_count:
                raise

            retry_delay = delay * (attempt + 1)
            logger.warning(
                f"Attempt {attempt + 1} of {retry_count + 1} failed "
                f"({type(e).__name__}), retrying in {retry_delay:.2f}s",
                extra={"attempt": attempt, "error": str(e)},
            )
            await sleep(retry_delay)

    raise AssertionError("unreachable: retry loop exited without result")
