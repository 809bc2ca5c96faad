from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from unison import (
    DecodeError,
    InvalidDataError,
    JSONDecoder,
    ParseError,
    RequestFailedError,
    TransportOutcome,
    TransportResponse,
    UnsuccessfulResponseError,
    decode,
)


class Item(BaseModel):
    id: int
    name: str
    tags: list[str] = []


def test_2xx_with_matching_json_decodes_into_target():
    result = decode(200, b'{"id": 7, "name": "widget"}', Item)
    assert result.ok
    assert result.value == Item(id=7, name="widget")


def test_any_2xx_status_counts_as_success():
    assert decode(201, b"[1, 2]", list[int]).value == [1, 2]
    assert decode(299, b'{"a": 1}').value == {"a": 1}


def test_transform_is_applied_to_decoded_value():
    result = decode(200, b'{"id": 7, "name": "widget"}', Item, transform=lambda item: item.name.upper())
    assert result.value == "WIDGET"


def test_transform_returning_none_is_parse_error():
    result = decode(200, b'{"id": 7, "name": "widget"}', Item, transform=lambda item: None)
    assert isinstance(result.error, ParseError)
    assert result.error.status == 200


def test_transform_raising_is_parse_error():
    result = decode(200, b'{"a": 1}', dict, transform=lambda data: data["missing"])
    assert isinstance(result.error, ParseError)
    assert "KeyError" in result.error.message


def test_structural_mismatch_is_decode_error():
    result = decode(200, b'{"id": "not-a-number", "name": "widget"}', Item)
    assert isinstance(result.error, DecodeError)
    assert result.error.status == 200
    assert "id" in result.error.message


def test_malformed_json_is_decode_error():
    result = decode(200, b"{not json", Item)
    assert isinstance(result.error, DecodeError)


def test_empty_2xx_body_is_invalid_data():
    result = decode(200, b"", Item)
    assert isinstance(result.error, InvalidDataError)
    assert result.error.status == 200
    assert decode(204, None).error == InvalidDataError(204)


def test_404_is_unsuccessful_response_with_payload():
    result = decode(404, b'{"detail": "missing"}', Item)
    error = result.error
    assert isinstance(error, UnsuccessfulResponseError)
    assert error.status == 404
    assert error.payload == {"info": "failed", "response": {"detail": "missing"}}
    assert error.user_info == {"user_info": error.payload}


def test_non_json_error_body_is_described_in_payload():
    result = decode(500, b"<html>Internal</html>")
    assert result.error.status == 500
    assert result.error.payload["response"].startswith("Failed generate error response with message")


def test_error_without_body_has_bare_payload():
    assert decode(503, b"").error.payload == {"info": "failed"}


def test_missing_response_is_request_failed_without_status():
    result = decode(None, None, Item, error="Connection refused")
    assert isinstance(result.error, RequestFailedError)
    assert result.error.status is None
    assert result.error.description == "Connection refused"


def test_equal_decoders_are_interchangeable():
    transform = str.upper
    assert JSONDecoder(str, transform) == JSONDecoder(str, transform)
    assert hash(JSONDecoder(Item)) == hash(JSONDecoder(Item))


def test_decoder_is_callable_on_outcomes():
    decoder = JSONDecoder(Optional[Item], transform=lambda item: item)
    ok = decoder(TransportOutcome(response=TransportResponse(status=200, headers={}, body=b'{"id": 1, "name": "a"}')))
    assert ok.value.id == 1
    failed = decoder(TransportOutcome(error="timed out"))
    assert failed.error == RequestFailedError(None, "timed out")
