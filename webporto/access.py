"""Request access checks: API keys, bearer tokens, roles, websocket headers, access logs."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


class AccessDenied(Exception):
    """A request was refused; ``status`` and ``payload`` describe the reply."""

    def __init__(self, status: int, payload: dict[str, Any]) -> None:
        super().__init__(payload.get("error", "access denied"))
        self.status = status
        self.payload = payload


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    username: str
    role: str
    extra: dict[str, Any] = field(default_factory=dict)


def check_api_key(expected: str | None, provided: str | None) -> bool:
    """Accept when no key is configured or the provided key matches."""
    if not expected:
        return True
    if not provided:
        raise AccessDenied(401, {"error": "X-API-Key header required"})
    if provided != expected:
        raise AccessDenied(401, {"error": "Invalid API key"})
    return True


def authenticate(
    header: str | None,
    validate_token: Callable[[str], TokenClaims],
    path: str = "",
    method: str = "",
) -> TokenClaims:
    """Validate a ``Bearer`` Authorization header and return its claims."""
    if not header:
        raise AccessDenied(
            401,
            {"error": "Authorization header required", "path": path, "method": method},
        )
    prefix = header[:15] + "..." if len(header) > 15 else header
    if not header.startswith("Bearer "):
        raise AccessDenied(
            401,
            {
                "error": "Invalid Authorization format, must be 'Bearer <token>'",
                "header_format": prefix,
            },
        )
    token = header[len("Bearer "):]
    try:
        return validate_token(token)
    except Exception as exc:
        raise AccessDenied(
            401,
            {"error": f"Invalid token: {exc}", "path": path, "method": method},
        ) from exc


def require_role(role: str, user_role: str | None) -> bool:
    """Allow the given role, and admins always."""
    if user_role is None:
        raise AccessDenied(401, {"error": "Unauthorized"})
    if user_role != role and user_role != "admin":
        raise AccessDenied(403, {"error": "Insufficient permissions"})
    return True


def websocket_headers() -> dict[str, str]:
    """Headers that let browsers open websocket connections."""
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Headers": (
            "Origin, X-Requested-With, Content-Type, Accept, Authorization, "
            "Sec-WebSocket-Protocol, Sec-WebSocket-Version, Sec-WebSocket-Key, Upgrade, Connection"
        ),
        "Access-Control-Allow-Methods": "GET, OPTIONS",
    }


def is_preflight(method: str) -> bool:
    """OPTIONS requests are answered with 204 and no further handling."""
    return method == "OPTIONS"


def log_request(
    logger: logging.Logger,
    method: str,
    path: str,
    status: int,
    latency: float,
    ip: str,
) -> None:
    """Write one access-log line with the request's fields attached."""
    logger.info(
        "request completed",
        extra={"status": status, "method": method, "path": path, "latency": latency, "ip": ip},
    )