"""
Unison Errors
Every failure of a request attempt is one of the APIError subclasses below.
Errors travel through the result channel; they are only raised when a caller
asks for it via Result.unwrap().
"""

from typing import Any, Dict, Optional


class APIError(Exception):
    """Base class. `status` is the HTTP status when one was received."""

    default_message = "Unknown error"

    def __init__(self, status: Optional[int] = None, message: Optional[str] = None):
        self.status = status
        self.message = message
        super().__init__(self.description)

    @property
    def response_code(self) -> Optional[int]:
        return self.status

    @property
    def description(self) -> str:
        if self.message:
            return f"{self.default_message}\n{self.message}"
        return self.default_message

    @property
    def user_info(self) -> Dict[str, Any]:
        return {"user_info": self.description}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status!r}, message={self.message!r})"

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.status == other.status and self.message == other.message

    def __hash__(self) -> int:
        return hash((type(self), self.status, self.message))


class RequestFailedError(APIError):
    """No usable HTTP response (connection refused, DNS, TLS, timeout)."""
    default_message = "Request Failed"

    @property
    def description(self) -> str:
        return self.message or self.default_message


class InvalidDataError(APIError):
    """2xx status with an empty body."""
    default_message = "Invalid Data"


class DecodeError(APIError):
    """2xx status whose JSON body does not match the target type."""
    default_message = "JSON Conversion Failure"


class ParseError(APIError):
    """2xx status, body decoded, but the caller's transform returned None."""
    default_message = "JSON Parsing Failure"


class EncodingError(APIError):
    """The request could not be built (URL or multipart encoding)."""
    default_message = "Encoding Failure"


class UnsuccessfulResponseError(APIError):
    """Non-2xx status. `payload` holds the diagnostic body."""
    default_message = "Failed"

    def __init__(self, status: Optional[int] = None, payload: Optional[Dict[str, Any]] = None):
        self.payload = payload
        super().__init__(status, None)

    @property
    def user_info(self) -> Dict[str, Any]:
        return {"user_info": self.payload}

    def __repr__(self) -> str:
        return f"UnsuccessfulResponseError(status={self.status!r}, payload={self.payload!r})"

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.status == other.status and self.payload == other.payload

    __hash__ = APIError.__hash__


class TransportError(Exception):
    """Raised by a Transport when no HTTP response was obtained."""
