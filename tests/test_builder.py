from __future__ import annotations

import pytest

from unison import ClientConfig, EncodingError, FileAttachment, HTTPMethod, build_request, request_key
from unison.builder import percent_encode, query_string


def test_get_params_become_query_string():
    request = build_request("https://api.test/items", "GET", {"a": "1", "b": "2"})
    assert request.url.endswith("?a=1&b=2")
    assert request.body is None
    assert request.method is HTTPMethod.GET


def test_query_string_uses_dict_order():
    assert query_string({"z": 1, "a": True}) == "z=1&a=True"


def test_whole_url_is_percent_encoded_once():
    request = build_request("https://api.test/search", "GET", {"q": "hello world", "tag": "50%"})
    assert request.url == "https://api.test/search?q=hello%20world&tag=50%25"


def test_ampersand_and_equals_in_values_are_not_escaped():
    request = build_request("https://api.test/s", "GET", {"q": "a&b=c"})
    assert request.url == "https://api.test/s?q=a&b=c"


def test_query_allowed_characters_are_kept():
    assert percent_encode("https://h/p?x=!$&'()*+,;=:@/~") == "https://h/p?x=!$&'()*+,;=:@/~"
    assert percent_encode("https://h/#frag") == "https://h/%23frag"


def test_non_get_params_are_sent_as_multipart():
    request = build_request("https://api.test/items", HTTPMethod.POST, {"name": "widget"})
    assert request.url == "https://api.test/items"
    content_type = request.headers["Content-Type"]
    assert content_type.startswith("multipart/form-data; charset=utf-8; boundary=")
    boundary = content_type.rsplit("boundary=", 1)[1]
    assert request.body.startswith(f"--{boundary}\r\n".encode())
    assert b'name="name"\r\n\r\nwidget' in request.body


def test_non_get_without_params_has_no_body():
    request = build_request("https://api.test/items/1", "delete")
    assert request.method is HTTPMethod.DELETE
    assert request.body is None
    assert "Content-Type" not in request.headers


def test_headers_are_applied_verbatim():
    request = build_request("https://api.test/", headers={"X-Token": "abc", "accept": "application/json"})
    assert request.headers == {"X-Token": "abc", "accept": "application/json"}


def test_plain_and_upload_timeouts_come_from_config():
    config = ClientConfig(request_timeout=3, upload_timeout=30)
    plain = build_request("https://api.test/", config=config)
    upload = build_request(
        "https://api.test/up",
        "POST",
        files=[FileAttachment.from_bytes(b"x", name="f", filename="f.txt")],
        config=config,
    )
    assert plain.timeout == 3.0
    assert upload.timeout == 30.0
    assert build_request("https://api.test/", timeout=1.5).timeout == 1.5


def test_default_timeouts():
    assert build_request("https://api.test/").timeout == 10.0
    assert build_request("https://api.test/", "POST", files=[]).timeout == 60.0


def test_upload_without_params_still_has_multipart_body():
    request = build_request("https://api.test/up", "POST", files=[])
    assert request.body is not None
    assert "multipart/form-data" in request.headers["Content-Type"]


@pytest.mark.parametrize("raw", ["not a url", "ftp://files.test/a", "https://", "/relative/path"])
def test_invalid_urls_raise_encoding_error(raw):
    with pytest.raises(EncodingError):
        build_request(raw)


def test_unencodable_url_raises_encoding_error():
    with pytest.raises(EncodingError):
        build_request("https://api.test/\ud800")


def test_multipart_failure_surfaces_as_encoding_error():
    config = ClientConfig(encoding="ascii")
    with pytest.raises(EncodingError):
        build_request("https://api.test/", "POST", {"name": "☃"}, config=config)


def test_url_key_ignores_method_and_body():
    get = build_request("https://api.test/items")
    post = build_request("https://api.test/items", "POST", {"a": "1"})
    assert request_key(get) == request_key(post) == "https://api.test/items"


def test_request_key_includes_method_and_body_hash():
    get = build_request("https://api.test/items")
    delete = build_request("https://api.test/items", "DELETE")
    assert request_key(get, "request") != request_key(delete, "request")
    assert request_key(get, "request").startswith("GET https://api.test/items ")


def test_empty_get_params_still_append_question_mark():
    assert build_request("https://api.test/items", "GET", {}).url == "https://api.test/items?"
    assert build_request("https://api.test/items", "GET").url == "https://api.test/items"


def test_empty_params_on_post_still_build_multipart_body():
    request = build_request("https://api.test/items", "POST", {})
    assert request.headers["Content-Type"].startswith("multipart/form-data")
    boundary = request.headers["Content-Type"].rsplit("boundary=", 1)[1]
    assert request.body == f"\r\n--{boundary}--\r\n".encode()
