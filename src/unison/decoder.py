"""
Unison Response Decoder
Maps a transport outcome to a Result.

    no response      -> RequestFailedError (status None)
    2xx, empty body  -> InvalidDataError
    2xx, bad JSON    -> DecodeError
    2xx, transform -> None -> ParseError
    non-2xx          -> UnsuccessfulResponseError with diagnostic payload
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

import orjson
from pydantic import TypeAdapter, ValidationError

from .errors import (
    DecodeError,
    InvalidDataError,
    ParseError,
    RequestFailedError,
    UnsuccessfulResponseError,
)
from .types import Result, TransportOutcome, TransportResponse

T = TypeVar("T")


@lru_cache(maxsize=256)
def _cached_adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


def _adapter(target: Any) -> TypeAdapter:
    try:
        return _cached_adapter(target)
    except TypeError:
        # unhashable type expression
        return TypeAdapter(target)


def _identity(value: Any) -> Any:
    return value


def diagnostic_payload(body: Optional[bytes]) -> Dict[str, Any]:
    """Best-effort JSON view of an error body."""
    payload: Dict[str, Any] = {"info": "failed"}
    if body:
        try:
            payload["response"] = orjson.loads(body)
        except orjson.JSONDecodeError as e:
            payload["response"] = f"Failed generate error response with message: {e}"
    return payload


@dataclass(frozen=True)
class JSONDecoder(Generic[T]):
    """
    Decode a JSON body into `target`, then run `transform` over the value.

    Instances are hashable; waiters holding equal decoders share one Result
    per fan-out.
    """
    target: Any = Any
    transform: Optional[Callable[[Any], Optional[T]]] = None

    def decode_response(self, response: TransportResponse) -> Result[T]:
        status = response.status
        if not response.is_success:
            return Result.failure(UnsuccessfulResponseError(status, diagnostic_payload(response.body)))

        if not response.body:
            return Result.failure(InvalidDataError(status))

        try:
            value = _adapter(self.target).validate_json(response.body)
        except ValidationError as e:
            return Result.failure(DecodeError(status, str(e)))

        try:
            transformed = (self.transform or _identity)(value)
        except (TypeError, ValueError, KeyError, AttributeError) as e:
            return Result.failure(ParseError(status, f"{type(e).__name__}: {e}"))
        if transformed is None:
            return Result.failure(ParseError(status))
        return Result.success(transformed)

    def __call__(self, outcome: TransportOutcome) -> Result[T]:
        if outcome.response is None:
            return Result.failure(RequestFailedError(None, outcome.error))
        return self.decode_response(outcome.response)


def decode(
    status: Optional[int],
    body: Optional[bytes],
    target: Any = Any,
    transform: Optional[Callable[[Any], Optional[T]]] = None,
    error: Optional[str] = None,
) -> Result[T]:
    """Functional entry point; `status=None` means no HTTP response."""
    decoder = JSONDecoder(target, transform)
    if status is None:
        return decoder(TransportOutcome(error=error))
    return decoder(TransportOutcome(response=TransportResponse(status=status, headers={}, body=body or b"")))
