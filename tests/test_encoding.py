import base64

import pytest

from webporto.encoding import EncodeResponseMiddleware, encode_response, should_encode


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/api/v1/articles", True),
        ("/api/v1/media/upload", False),
        ("/api/v1/ws/analytics", False),
        ("/health", False),
        ("/ws/analytics", False),
    ],
)
def test_should_encode(path, expected):
    assert should_encode(path) is expected


def test_encode_round_trip_and_headers():
    body = b'{"data": [1, 2, 3]}'
    response = encode_response("/api/v1/articles", 200, body, {"Content-Type": "application/json"})
    assert base64.b64decode(response.body) == body
    assert response.status == 200
    assert response.get_header("content-type") == "text/plain; charset=utf-8"
    assert response.get_header("Content-Length") == str(len(response.body))
    assert response.get_header("X-Encoded-Response") == "true"
    assert [k for k, _ in response.headers].count("Content-Type") == 1


def test_non_api_path_untouched():
    body = b"ok"
    response = encode_response("/health", 200, body, {"Content-Type": "application/json"})
    assert response.body == body
    assert response.get_header("Content-Type") == "application/json"


def test_no_content_and_empty_body_pass_through():
    no_content = encode_response("/api/v1/articles/1", 204, b"ignored")
    assert no_content.status == 204
    assert no_content.body == b""
    assert no_content.get_header("X-Encoded-Response") is None
    empty = encode_response("/api/v1/articles", 200, b"")
    assert empty.body == b""


def test_zero_status_defaults_to_ok():
    assert encode_response("/api/v1/x", 0, b"abc").status == 200


def _call(app, path):
    seen = {}

    def start_response(status, headers, exc_info=None):
        seen["status"] = status
        seen["headers"] = dict(headers)

    body = b"".join(EncodeResponseMiddleware(app)({"PATH_INFO": path}, start_response))
    return seen, body


def test_wsgi_middleware_encodes_iterable_body():
    payload = b'{"status": "ok"}'

    def app(environ, start_response):
        start_response("201 Created", [("Content-Type", "application/json")])
        return [payload[:5], payload[5:]]

    seen, body = _call(app, "/api/v1/tags")
    assert seen["status"] == "201 Created"
    assert base64.b64decode(body) == payload
    assert seen["headers"]["X-Encoded-Response"] == "true"


def test_wsgi_middleware_captures_write_calls():
    payload = b"written"

    def app(environ, start_response):
        write = start_response("200 OK", [])
        write(payload)
        return []

    seen, body = _call(app, "/api/v1/tags")
    assert base64.b64decode(body) == payload


def test_wsgi_middleware_skips_other_paths():
    payload = b"plain"

    def app(environ, start_response):
        start_response("200 OK", [])
        return [payload]

    seen, body = _call(app, "/uploads/file.png")
    assert body == payload
    assert "X-Encoded-Response" not in seen["headers"]