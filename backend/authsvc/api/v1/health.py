"""Health check endpoint."""

from __future__ import annotations

import logging

from flask import Blueprint, current_app
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from authsvc.api.deps import json_response
from authsvc.core.extensions import db

bp = Blueprint("health", __name__)

log = logging.getLogger(__name__)


def _database_status() -> str:
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:  # pragma: no cover - depends on DB backend
        log.exception("healthcheck.db_error", extra={"event": "healthcheck.db_error"})
        return "fail"
    return "ok"


def _redis_status() -> str | None:
    client = current_app.extensions.get("redis_client")
    if client is None:
        return None
    try:
        client.ping()
    except RedisError:  # pragma: no cover - needs a live server
        log.exception("healthcheck.redis_error", extra={"event": "healthcheck.redis_error"})
        return "fail"
    return "ok"


@bp.get("/health")
def healthcheck():
    """Report database (and Redis, when configured) reachability.

    Always 200 so orchestrators can read the body; a failing dependency shows
    up as ``"fail"`` in its field and in ``status``.
    """

    checks = {"db": _database_status(), "redis": _redis_status()}
    failed = any(value == "fail" for value in checks.values())
    return json_response(
        {
            "status": "degraded" if failed else "ok",
            **checks,
            "credential_backend": current_app.config.get("CREDENTIAL_BACKEND", "sql"),
            "version": current_app.config.get("APP_VERSION", "dev"),
        }
    )
