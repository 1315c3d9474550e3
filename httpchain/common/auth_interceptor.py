"""Bearer-token authentication interceptor.

This interceptor attaches the current access token to every outgoing
request and reacts to 401 responses by refreshing credentials and asking
the engine to try the request again.
"""

import logging
from typing import Protocol

from httpchain.common.exceptions import AuthenticationError
from httpchain.data_types import (
    Proceed,
    RequestConfiguration,
    RequestOutcome,
    ResponseOutcome,
    RetryRequested,
    TransportResponse,
)

logger = logging.getLogger(__name__)


class TokenStore(Protocol):
    """Persistent source of credentials."""

    async def current_token(self) -> str | None:
        """Return a usable access token, or None when not signed in."""
        ...

    async def refresh(self) -> None:
        """Obtain fresh credentials. Raises on failure."""
        ...


class AuthenticationInterceptor:
    """Interceptor that injects bearer credentials and refreshes on 401.

    When the response chain sees a 401, this interceptor refreshes the
    token store once and returns RetryRequested, so the next attempt goes
    out with the new token. A refresh failure is terminal.

    Example:
        auth = AuthenticationInterceptor(token_store=my_store)
        client = await AsyncNetworkClient(transport).with_interceptor(auth)
    """

    def __init__(
        self, token_store: TokenStore, header_name: str = "Authorization"
    ) -> None:
        """Initialize the authentication interceptor.

        Args:
            token_store: Supplies and refreshes access tokens.
            header_name: Header that carries the bearer credential.
        """
        self.token_store = token_store
        self.header_name = header_name
        self.refresh_count = 0

    async def intercept_request(
        self, request: RequestConfiguration
    ) -> RequestOutcome:
        """Attach the bearer token if the store has one."""
        token = await self.token_store.current_token()
        if token is None:
            return Proceed(request)
        return Proceed(request.with_header(self.header_name, f"Bearer {token}"))

    async def intercept_response(
        self, response: TransportResponse, data: bytes | None
    ) -> ResponseOutcome:
        """Refresh credentials and request a retry on 401.

        Raises:
            AuthenticationError: If the token store fails to refresh.
        """
        if response.status_code != 401:
            return Proceed(data)

        logger.info(
            f"Received 401 from {response.url}, refreshing credentials",
            extra={"url": response.url},
        )
        try:
            await self.token_store.refresh()
        except Exception as e:
            raise AuthenticationError(cause=e, url=response.url) from e
        self.refresh_count += 1
        return RetryRequested()
