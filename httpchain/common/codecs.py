"""Body encoders and decoders.

Request bodies are produced by a BodyEncoder and response bodies are turned
back into typed values by a BodyDecoder. JsonCodec does both through
pydantic, so pydantic models, dataclasses, TypedDicts and plain builtins
all round-trip.
"""

from functools import lru_cache
from typing import Any, Protocol, TypeVar

from pydantic import TypeAdapter

from httpchain.common.exceptions import (
    DecodingError,
    EncodingError,
    NoDataError,
)

T = TypeVar("T")


class BodyEncoder(Protocol):
    """Turns a value into request body bytes."""

    def encode(self, value: Any) -> bytes: ...


class BodyDecoder(Protocol):
    """Turns response body bytes into a value of the requested type."""

    def decode(self, data: bytes, target_type: type[T]) -> T: ...


@lru_cache(maxsize=256)
def _adapter(target_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(target_type)


class JsonCodec:
    """JSON encoder/decoder backed by pydantic TypeAdapter.

    Example:
        codec = JsonCodec()
        body = codec.encode(User(name="Ada"))
        user = codec.decode(body, User)
    """

    def encode(self, value: Any) -> bytes:
        """Serialize value to JSON bytes.

        Raises:
            EncodingError: If the value is not JSON serializable.
        """
        try:
            return _adapter(type(value)).dump_json(value)
        except Exception as e:
            raise EncodingError(cause=e) from e

    def decode(self, data: bytes, target_type: type[T]) -> T:
        """Parse and validate JSON bytes as target_type.

        Raises:
            DecodingError: If the bytes are not valid JSON for target_type.
        """
        try:
            return _adapter(target_type).validate_json(data)
        except Exception as e:
            raise DecodingError(cause=e) from e


class StringDecoder:
    """Decoder that returns the body as UTF-8 text."""

    def decode(self, data: bytes, target_type: type[T]) -> T:
        """Decode data as UTF-8.

        Raises:
            NoDataError: If target_type is not str or the bytes are not
                valid UTF-8.
        """
        if target_type is not str:
            raise NoDataError()
        try:
            return data.decode("utf-8")  # type: ignore[return-value]
        except UnicodeDecodeError as e:
            raise NoDataError() from e
