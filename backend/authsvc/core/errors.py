"""RFC 7807 (``application/problem+json``) error responses for the API."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from authsvc.core.logger import ensure_request_id
from authsvc.services._shared.errors import ServiceError

log = logging.getLogger(__name__)

PROBLEM_MIMETYPE = "application/problem+json"

# Stable machine-readable codes per status; anything else is "error".
STATUS_CODES: dict[int, str] = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    415: "unsupported_media_type",
    422: "unprocessable_entity",
    500: "internal_server_error",
    503: "service_unavailable",
}


def problem_body(
    status: int, code: str, message: str, details: dict[str, Any] | None = None
) -> dict[str, Any]:
    """
    Build the problem document for the current request.

    :param status: HTTP status.
    :param code: Stable error code (``"unauthorized"``, ``"validation_error"``...).
    :param message: Client-safe summary; never a hash, token or driver message.
    :param details: Optional structured payload.
    """
    body: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path if request else None,
        "code": code,
        "request_id": ensure_request_id(),
    }
    if details:
        body["details"] = details
    return body


def _respond(
    status: int,
    code: str,
    message: str,
    *,
    details: dict[str, Any] | None = None,
    cause: BaseException | None = None,
) -> tuple[Response, int]:
    status = int(status)
    body = problem_body(status, code, message, details)
    if status >= 500:
        log.error(
            "request.failed code=%s status=%s",
            code,
            status,
            extra={"event": "request.failed", "reason": type(cause).__name__ if cause else code},
            exc_info=cause,
        )
    else:
        log.warning(
            "request.rejected code=%s status=%s",
            code,
            status,
            extra={"event": "request.rejected", "reason": type(cause).__name__ if cause else code},
        )
    resp = jsonify(body)
    resp.mimetype = PROBLEM_MIMETYPE
    return resp, status


class APIError(Exception):
    """
    Error with a ready HTTP mapping.

    :param message: Client-facing description.
    :param status_code: HTTP status, 400 by default.
    :param code: Machine-readable code; derived from the status when omitted.
    :param details: Optional structured payload for the problem body.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code or STATUS_CODES.get(self.status_code, "error")
        self.details = details or {}


class NotFound(APIError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, HTTPStatus.NOT_FOUND)


class Conflict(APIError):
    def __init__(self, message: str = "Conflict") -> None:
        super().__init__(message, HTTPStatus.CONFLICT)


class Unauthorized(APIError):
    """Rejected credentials or tokens."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, HTTPStatus.UNAUTHORIZED)


def init_app(app: Flask) -> None:
    """
    Register the problem+json handlers.

    Service errors go through ``BaseService.translate_exceptions``; 5xx
    responses carry a generic message and the cause is logged with its
    traceback. Anything unhandled becomes a 500 without internal details.
    """

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        return _respond(err.status_code, err.code, err.message, details=err.details or None)

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        from authsvc.services._shared.base import BaseService

        translated = BaseService.translate_exceptions(err)
        if not isinstance(translated, APIError):
            raise err
        return _respond(
            translated.status_code,
            translated.code,
            translated.message,
            details=translated.details or None,
            cause=err,
        )

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        code = STATUS_CODES.get(status, "error")
        if status == HTTPStatus.NOT_FOUND and request:
            message = f"Route '{request.path}' not found"
        else:
            message = (err.description or code.replace("_", " ").capitalize()).strip()
        return _respond(status, code, message)

    @app.errorhandler(MarshmallowValidationError)
    def handle_validation_error(err: MarshmallowValidationError):
        return _respond(
            HTTPStatus.UNPROCESSABLE_ENTITY,
            "validation_error",
            "Validation failed",
            details={"errors": err.normalized_messages()},
        )

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        return _respond(HTTPStatus.CONFLICT, "conflict", "Resource conflict", cause=err)

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        return _respond(
            HTTPStatus.SERVICE_UNAVAILABLE,
            "service_unavailable",
            "Service temporarily unavailable",
            cause=err,
        )

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        return _respond(
            HTTPStatus.INTERNAL_SERVER_ERROR, "internal_server_error", "Unexpected error", cause=err
        )
