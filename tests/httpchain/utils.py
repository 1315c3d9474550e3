"""Test doubles for the transport, token store, clock and sleep."""

from pathlib import Path

from httpchain.data_types import (
    Proceed,
    RequestConfiguration,
    RequestOutcome,
    ResponseOutcome,
    TransportResponse,
)


def make_response(
    status_code: int = 200,
    content: bytes | None = b"{}",
    url: str = "https://example.com/api/data",
    headers: dict[str, str] | None = None,
) -> TransportResponse:
    return TransportResponse(
        status_code=status_code,
        headers=headers or {"content-type": "application/json"},
        content=content,
        url=url,
    )


class FakeTransport:
    """Transport that replays scripted outcomes and records every call.

    Each outcome is either a TransportResponse to return or an exception to
    raise. The last outcome repeats once the script runs out.
    """

    def __init__(
        self, *outcomes: TransportResponse | BaseException
    ) -> None:
        self.outcomes = list(outcomes) or [make_response()]
        self.requests: list[RequestConfiguration] = []
        self.uploads: list[Path] = []
        self.download_dir: Path | None = None

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def _next(self, request: RequestConfiguration) -> TransportResponse:
        self.requests.append(request)
        index = min(len(self.requests), len(self.outcomes)) - 1
        outcome = self.outcomes[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def send(self, request: RequestConfiguration) -> TransportResponse:
        return self._next(request)

    async def upload(
        self, request: RequestConfiguration, file_path: Path
    ) -> TransportResponse:
        self.uploads.append(file_path)
        return self._next(request)

    async def download(
        self, request: RequestConfiguration
    ) -> tuple[Path, TransportResponse]:
        response = self._next(request)
        assert self.download_dir is not None
        temp_path = self.download_dir / f"download-{self.call_count}.tmp"
        temp_path.write_bytes(response.content or b"")
        return temp_path, TransportResponse(
            status_code=response.status_code,
            headers=response.headers,
            content=None,
            url=response.url,
        )


class FakeTokenStore:
    """Token store whose refresh swaps in a new token, or fails."""

    def __init__(
        self,
        token: str | None = "mock-token",
        refreshed_token: str = "refreshed-token",
        refresh_error: Exception | None = None,
    ) -> None:
        self.token = token
        self.refreshed_token = refreshed_token
        self.refresh_error = refresh_error
        self.refresh_calls = 0

    async def current_token(self) -> str | None:
        return self.token

    async def refresh(self) -> None:
        self.refresh_calls += 1
        if self.refresh_error is not None:
            raise self.refresh_error
        self.token = self.refreshed_token


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSleep:
    """Records requested sleeps and advances an optional clock instead.

    With a shortfall, the clock advances by that fraction less than was
    requested, like a timer that fires early.
    """

    def __init__(
        self, clock: FakeClock | None = None, shortfall: float = 0.0
    ) -> None:
        self.clock = clock
        self.shortfall = shortfall
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        if self.clock is not None:
            self.clock.advance(seconds * (1 - self.shortfall))


class RecordingInterceptor:
    """Interceptor that appends its name to a shared log on every hook."""

    def __init__(self, name: str, log: list[str]) -> None:
        self.name = name
        self.log = log

    async def intercept_request(
        self, request: RequestConfiguration
    ) -> RequestOutcome:
        self.log.append(f"request:{self.name}")
        return Proceed(request)

    async def intercept_response(
        self, response: TransportResponse, data: bytes | None
    ) -> ResponseOutcome:
        self.log.append(f"response:{self.name}")
        return Proceed(data)


class ListSink:
    """Log sink that keeps messages in memory."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def write(self, message: str) -> None:
        self.messages.append(message)
