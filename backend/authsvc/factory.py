"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

import logging

from flask import Flask

from authsvc import cli
from authsvc.api import init_app as init_api
from authsvc.core import cors, errors, extensions, proxy
from authsvc.core.config import BaseConfig, get_config
from authsvc.core.logger import configure_logging, init_app as init_logging

log = logging.getLogger(__name__)


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    :param config: Config class/object or import path; ``APP_ENV`` decides
        when omitted.
    :raises ConfigurationError: When the token signing key or another
        credential setting is missing or invalid. The application refuses to
        start rather than run with a broken signer.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)
    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # ProxyFix first: the pinned client address is read from the rewritten environ
    proxy.init_app(app)
    extensions.init_app(app)

    for init in (init_logging, cors.init_app, init_api, errors.init_app, cli.init_app):
        init(app)

    log.info(
        "app.created",
        extra={"event": "app.created", "reason": app.config.get("CREDENTIAL_BACKEND")},
    )
    return app
