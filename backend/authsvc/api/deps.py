"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request

from authsvc.core.extensions import get_credential_service
from authsvc.services._shared.errors import IPMismatchError, MalformedTokenError
from authsvc.services._shared.policies.common import normalize_client_ip
from authsvc.services.credentials.dto import IssuedCredentials

F = TypeVar("F", bound=Callable[..., Any])

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def client_ip() -> str | None:
    """Return the caller address (``ProxyFix`` rewrites it behind a proxy)."""

    return request.remote_addr


def set_credential_cookies(response: Response, issued: IssuedCredentials) -> Response:
    """Attach the token pair as ``HttpOnly`` + ``SameSite=Strict`` cookies."""

    settings = get_credential_service().cfg
    secure = bool(current_app.config.get("COOKIE_SECURE", True))
    for name, value, ttl in (
        (ACCESS_COOKIE, issued.access_token, settings.access_ttl),
        (REFRESH_COOKIE, issued.refresh_token, settings.refresh_ttl),
    ):
        response.set_cookie(
            name,
            value,
            max_age=int(ttl.total_seconds()),
            path="/",
            secure=secure,
            httponly=True,
            samesite="Strict",
        )
    return response


def _presented_access_token() -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return request.cookies.get(ACCESS_COOKIE, "")


def require_access_token(func: F) -> F:
    """Ensure the request carries a valid access token pinned to the caller's IP.

    The token is read from the ``Authorization: Bearer`` header or the
    ``accessToken`` cookie; verified claims are exposed as ``g.access_claims``.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token = _presented_access_token()
        if not token:
            raise MalformedTokenError("missing access token")
        claims = get_credential_service().codec.verify_access_token(token)
        if claims.ip != normalize_client_ip(client_ip()):
            raise IPMismatchError("access token was issued for a different IP")
        g.access_claims = claims
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]
