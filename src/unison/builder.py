"""
Unison Request Builder
Turns (url, method, params, headers, files) into a ResolvedRequest.

GET parameters are joined as `key=value&key=value` without escaping the
individual pairs and the whole URL is then percent-encoded once, so values
containing `&` or `=` are not protected. Other methods carry their parameters
as a multipart/form-data body. An empty (but not None) params mapping still
appends a bare `?` to GET URLs and still produces a multipart body otherwise.
"""

import hashlib
from typing import Any, Dict, Iterable, Mapping, Optional, Union
from urllib.parse import quote, urlsplit

from .config import ClientConfig, KEY_STRATEGY_REQUEST, KEY_STRATEGY_URL
from .errors import EncodingError
from .multipart import encode_multipart, multipart_content_type
from .types import FileAttachment, HTTPMethod, ResolvedRequest

# Characters left as-is by the percent-encoding pass (besides ASCII letters,
# digits and `_.-~`, which quote() never touches).
_QUERY_ALLOWED = "!$&'()*+,-./:;=?@_~"

_DEFAULT_CONFIG = ClientConfig()


def query_string(params: Mapping[str, Any]) -> str:
    return "&".join(f"{key}={value}" for key, value in params.items())


def percent_encode(raw: str) -> str:
    try:
        return quote(raw, safe=_QUERY_ALLOWED)
    except UnicodeError as e:
        raise EncodingError(message=f"Failed to encode url: {e}") from e


def _validate_url(url: str) -> str:
    try:
        parts = urlsplit(url)
    except ValueError as e:
        raise EncodingError(message=f"Failed to generate url: {e}") from e
    if parts.scheme.lower() not in ("http", "https") or not parts.hostname:
        raise EncodingError(message=f"Failed to generate url from {url!r}")
    return url


def resolve_url(raw_url: str, method: HTTPMethod, params: Optional[Mapping[str, Any]]) -> str:
    """Append GET params and percent-encode the result."""
    url = raw_url
    if method is HTTPMethod.GET and params is not None:
        url += "?" + query_string(params)
    return _validate_url(percent_encode(url))


def build_request(
    raw_url: str,
    method: Union[HTTPMethod, str] = HTTPMethod.GET,
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    files: Optional[Iterable[FileAttachment]] = None,
    timeout: Optional[float] = None,
    config: Optional[ClientConfig] = None,
) -> ResolvedRequest:
    """
    Build a transport-ready request.

    Passing `files` (even an empty list) marks the request as an upload: the
    body is always multipart and the upload timeout applies.

    Raises:
        EncodingError: the URL or the multipart body cannot be encoded.
    """
    config = config or _DEFAULT_CONFIG
    method = HTTPMethod.coerce(method)
    is_upload = files is not None

    url = resolve_url(raw_url, method, params)
    request_headers: Dict[str, str] = dict(headers or {})
    body = None

    if is_upload or (method is not HTTPMethod.GET and params is not None):
        body, boundary = encode_multipart(params or {}, files, encoding=config.encoding)
        request_headers["Content-Type"] = multipart_content_type(boundary, config.encoding)

    if timeout is None:
        timeout = config.upload_timeout if is_upload else config.request_timeout

    return ResolvedRequest(
        method=method,
        url=url,
        headers=request_headers,
        body=body,
        timeout=float(timeout),
    )


def request_key(request: ResolvedRequest, strategy: str = KEY_STRATEGY_URL) -> str:
    """Coalescing key for a resolved request."""
    if strategy == KEY_STRATEGY_URL:
        return request.url
    if strategy == KEY_STRATEGY_REQUEST:
        digest = hashlib.sha1(request.body or b"").hexdigest()[:16]
        return f"{request.method.value} {request.url} {digest}"
    raise ValueError(f"unknown key strategy {strategy!r}")
