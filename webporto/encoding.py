"""Base64 encoding of API response bodies."""

from __future__ import annotations

import base64
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

API_PREFIX = "/api/v1"


@dataclass
class EncodedResponse:
    status: int
    body: bytes
    headers: list[tuple[str, str]] = field(default_factory=list)

    def get_header(self, name: str) -> str | None:
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None


def should_encode(path: str) -> bool:
    """Only API routes are encoded; uploads and websockets pass through."""
    return path.startswith(API_PREFIX) and not path.endswith("/upload") and "/ws" not in path


def _header_list(headers: Mapping[str, str] | Iterable[tuple[str, str]] | None) -> list[tuple[str, str]]:
    if headers is None:
        return []
    if isinstance(headers, Mapping):
        return list(headers.items())
    return list(headers)


def _set_header(headers: list[tuple[str, str]], name: str, value: str) -> None:
    lowered = name.lower()
    headers[:] = [(k, v) for k, v in headers if k.lower() != lowered]
    headers.append((name, value))


def encode_response(
    path: str,
    status: int,
    body: bytes,
    headers: Mapping[str, str] | Iterable[tuple[str, str]] | None = None,
) -> EncodedResponse:
    """Return the response as sent to the client for ``path``."""
    header_list = _header_list(headers)
    if not should_encode(path):
        return EncodedResponse(status, body, header_list)
    if status == 0:
        status = 200
    if status == 204 or not body:
        return EncodedResponse(status, b"", header_list)
    encoded = base64.b64encode(body)
    _set_header(header_list, "Content-Length", str(len(encoded)))
    _set_header(header_list, "Content-Type", "text/plain; charset=utf-8")
    _set_header(header_list, "X-Encoded-Response", "true")
    return EncodedResponse(status, encoded, header_list)


class EncodeResponseMiddleware:
    """WSGI middleware that base64-encodes API response bodies."""

    def __init__(self, app) -> None:
        self.app = app

    def __call__(self, environ, start_response):
        path = environ.get("PATH_INFO", "")
        if not should_encode(path):
            return self.app(environ, start_response)

        captured: dict = {}
        chunks: list[bytes] = []

        def capture(status, headers, exc_info=None):
            if exc_info is not None and captured:
                raise exc_info[1].with_traceback(exc_info[2])
            captured["status"] = status
            captured["headers"] = list(headers)
            return chunks.append

        result = self.app(environ, capture)
        try:
            for chunk in result:
                chunks.append(chunk)
        finally:
            close = getattr(result, "close", None)
            if close is not None:
                close()

        code, _, reason = captured.get("status", "200 OK").partition(" ")
        response = encode_response(path, int(code), b"".join(chunks), captured.get("headers", []))
        start_response(f"{response.status} {reason}".rstrip(), response.headers)
        return [response.body]