"""
Unison Types
Value objects passed between the builder, dispatcher, transport and decoder.
"""

import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Generic, Optional, TypeVar, Union

from .errors import APIError

T = TypeVar("T")

_FALLBACK_MIMETYPE = "application/octet-stream"


class HTTPMethod(str, Enum):
    OPTIONS = "OPTIONS"
    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    TRACE = "TRACE"
    CONNECT = "CONNECT"

    @classmethod
    def coerce(cls, value: Union["HTTPMethod", str]) -> "HTTPMethod":
        if isinstance(value, cls):
            return value
        return cls(str(value).upper())


def guess_mimetype(filename: str) -> str:
    """Resolve a MIME type from a file name or path."""
    return mimetypes.guess_type(str(filename))[0] or _FALLBACK_MIMETYPE


@dataclass(frozen=True, slots=True)
class FileAttachment:
    """A file part of a multipart upload."""
    content: bytes
    mimetype: str
    name: str       # form field name
    filename: str

    @classmethod
    def from_path(
        cls,
        path: Union[str, Path],
        name: str,
        filename: Optional[str] = None,
        mimetype: Optional[str] = None,
    ) -> "FileAttachment":
        path = Path(path)
        filename = filename or path.name
        return cls(
            content=path.read_bytes(),
            mimetype=mimetype or guess_mimetype(path.name),
            name=name,
            filename=filename,
        )

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        name: str,
        filename: str,
        mimetype: Optional[str] = None,
    ) -> "FileAttachment":
        return cls(
            content=bytes(data),
            mimetype=mimetype or guess_mimetype(filename),
            name=name,
            filename=filename,
        )


@dataclass(frozen=True, slots=True)
class ResolvedRequest:
    """A transport-ready request."""
    method: HTTPMethod
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    timeout: float = 10.0


@dataclass(frozen=True, slots=True)
class TransportResponse:
    """What came back from one network exchange."""
    status: int
    headers: Dict[str, str]
    body: bytes
    url: str = ""
    elapsed_ms: float = 0.0
    bytes_sent: int = 0
    bytes_received: int = 0

    @property
    def is_success(self) -> bool:
        return 200 <= self.status < 300


@dataclass(frozen=True, slots=True)
class TransportOutcome:
    """Either a response or the message of a transport-level failure."""
    response: Optional[TransportResponse] = None
    error: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    """Decoded value or APIError. Shared, never mutated, across waiters."""
    value: Optional[T] = None
    error: Optional[APIError] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: APIError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        if self.error is not None:
            return {"ok": False, "status": self.error.status, "error": self.error.description}
        return {"ok": True, "value": self.value}
