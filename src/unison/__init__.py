"""
Unison
HTTP request layer with in-flight request coalescing, multipart uploads and
typed JSON decoding.
"""

from .builder import build_request, query_string, request_key
from .client import APIClient
from .config import ClientConfig
from .decoder import JSONDecoder, decode
from .dispatcher import CoalescingDispatcher, Waiter
from .errors import (
    APIError,
    DecodeError,
    EncodingError,
    InvalidDataError,
    ParseError,
    RequestFailedError,
    TransportError,
    UnsuccessfulResponseError,
)
from .multipart import encode_multipart, multipart_content_type
from .transport import CurlTransport, SessionPool, Transport
from .types import (
    FileAttachment,
    HTTPMethod,
    ResolvedRequest,
    Result,
    TransportOutcome,
    TransportResponse,
)

__all__ = [
    "APIClient",
    "APIError",
    "ClientConfig",
    "CoalescingDispatcher",
    "CurlTransport",
    "DecodeError",
    "EncodingError",
    "FileAttachment",
    "HTTPMethod",
    "InvalidDataError",
    "JSONDecoder",
    "ParseError",
    "RequestFailedError",
    "ResolvedRequest",
    "Result",
    "SessionPool",
    "Transport",
    "TransportError",
    "TransportOutcome",
    "TransportResponse",
    "UnsuccessfulResponseError",
    "Waiter",
    "build_request",
    "decode",
    "encode_multipart",
    "multipart_content_type",
    "query_string",
    "request_key",
]
