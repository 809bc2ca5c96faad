"""
Unison Multipart Encoder
Serializes form fields and file attachments into a multipart/form-data body.

The whole body is built in memory. Parts are separated by CRLF and the body
is closed with `\\r\\n--<boundary>--\\r\\n`.
"""

import codecs
import secrets
from typing import Any, Iterable, Mapping, Optional, Tuple

from .errors import EncodingError
from .types import FileAttachment

_CRLF = b"\r\n"
_BOUNDARY_PREFIX = "-" * 24


def make_boundary() -> str:
    """128 random bits; collision with payload content is not a practical concern."""
    return _BOUNDARY_PREFIX + secrets.token_hex(16)


# Python codec name -> IANA charset name
_IANA_CHARSETS = {
    "utf-8": "utf-8",
    "ascii": "US-ASCII",
    "iso8859-1": "ISO-8859-1",
    "iso8859-2": "ISO-8859-2",
    "iso8859-15": "ISO-8859-15",
    "utf-16": "UTF-16",
    "utf-16-le": "UTF-16LE",
    "utf-16-be": "UTF-16BE",
    "utf-32": "UTF-32",
    "cp1252": "windows-1252",
    "shift_jis": "Shift_JIS",
    "euc_jp": "EUC-JP",
    "iso2022_jp": "ISO-2022-JP",
    "gb2312": "GB2312",
    "big5": "Big5",
    "koi8-r": "KOI8-R",
}


def charset_name(encoding: str) -> str:
    """IANA name of `encoding`, for the Content-Type charset parameter."""
    try:
        name = codecs.lookup(encoding).name
    except LookupError as e:
        raise EncodingError(message=f"unknown text encoding {encoding!r}") from e
    return _IANA_CHARSETS.get(name, name)


def multipart_content_type(boundary: str, encoding: str = "utf-8") -> str:
    return f"multipart/form-data; charset={charset_name(encoding)}; boundary={boundary}"


def _encode_text(text: str, encoding: str, what: str) -> bytes:
    try:
        return text.encode(encoding)
    except UnicodeError as e:
        raise EncodingError(message=f"{what} {text!r} is not representable in {encoding}") from e


def _field_value(value: Any, encoding: str) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return _encode_text(str(value), encoding, "field value")


def encode_multipart(
    fields: Optional[Mapping[str, Any]] = None,
    files: Optional[Iterable[FileAttachment]] = None,
    encoding: str = "utf-8",
    boundary: Optional[str] = None,
) -> Tuple[bytes, str]:
    """
    Encode fields and files as multipart/form-data.

    Returns:
        (body, boundary)

    Raises:
        EncodingError: a field name, field value or file field name cannot
            be represented in `encoding`.
    """
    charset_name(encoding)
    boundary = boundary or make_boundary()
    delimiter = f"--{boundary}".encode("ascii")
    parts = []

    for name, value in (fields or {}).items():
        name_bytes = _encode_text(str(name), encoding, "field name")
        parts.append(b"".join([
            delimiter, _CRLF,
            b'Content-Disposition: form-data; name="', name_bytes, b'"', _CRLF,
            _CRLF,
            _field_value(value, encoding),
        ]))

    for attachment in files or ():
        name_bytes = _encode_text(attachment.name, encoding, "file field name")
        filename_bytes = _encode_text(attachment.filename, encoding, "file name")
        mimetype_bytes = _encode_text(attachment.mimetype, encoding, "MIME type")
        parts.append(b"".join([
            delimiter, _CRLF,
            b'Content-Disposition: form-data; name="', name_bytes,
            b'"; filename="', filename_bytes, b'"', _CRLF,
            b"Content-Type: ", mimetype_bytes, _CRLF,
            _CRLF,
            attachment.content,
        ]))

    body = _CRLF.join(parts) + _CRLF + delimiter + b"--" + _CRLF
    return body, boundary
