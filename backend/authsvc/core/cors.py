"""CORS policy for the credential API."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS


def _allowed_origins(raw: str | None) -> list[str]:
    return [o.strip() for o in (raw or "").split(",") if o.strip()]


def init_app(app: Flask) -> None:
    """Allow browser clients listed in ``CORS_ORIGINS`` to call ``/api/*``.

    Credentials travel as cookies, so cross-origin requests carry them only
    for an explicit origin list. A blank or ``"*"`` value opens the API to any
    origin but without credentials, which leaves cookie-based refresh unusable
    from other sites.
    """
    origins = _allowed_origins(app.config.get("CORS_ORIGINS"))
    explicit = bool(origins) and origins != ["*"]

    CORS(
        app,
        resources={r"/api/*": {"origins": origins if explicit else "*"}},
        supports_credentials=explicit,
        allow_headers=["Authorization", "Content-Type", "X-Request-ID", "X-Correlation-ID"],
        expose_headers=["X-Request-ID"],
        methods=["GET", "POST", "OPTIONS"],
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
