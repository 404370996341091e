"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

import logging

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

from authsvc.core.config import ConfigurationError, engine_options

log = logging.getLogger(__name__)

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)
redis_client: redis.Redis | None = None

CREDENTIAL_SERVICE_KEY = "credential_service"
ACCOUNT_SERVICE_KEY = "account_service"


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, migrations, the optional Redis client and the credential engine.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances.

    Raises
    ------
    ConfigurationError
        When the signing key or any credential setting is invalid, or the
        Redis backend is selected without ``REDIS_URL``.
    """
    timeout = int(app.config.get("STORE_TIMEOUT_SECONDS", 3))
    app.config.setdefault(
        "SQLALCHEMY_ENGINE_OPTIONS",
        engine_options(app.config["SQLALCHEMY_DATABASE_URI"], timeout),
    )
    db.init_app(app)
    migrate.init_app(app, db)

    # Ensure models are imported so metadata is complete for create_all()
    from authsvc import models as _models  # noqa: F401

    global redis_client
    redis_url = app.config.get("REDIS_URL")
    if redis_url:
        redis_client = redis.Redis.from_url(
            redis_url,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
        try:
            redis_client.ping()
        except RedisError as exc:
            raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
        app.extensions["redis_client"] = redis_client
    else:
        redis_client = None
        app.extensions.pop("redis_client", None)

    _init_services(app)


def _init_services(app: Flask) -> None:
    """Build the credential and account services once per application."""
    from authsvc.infra.notify.logging_notifier import LoggingSecurityNotifier
    from authsvc.infra.sql.sqlalchemy_credential_store import SQLAlchemyCredentialStore
    from authsvc.services.accounts.service import AccountService
    from authsvc.services.credentials import CredentialService, CredentialSettings, PasswordHasher

    settings = CredentialSettings.from_mapping(app.config)
    sql_store = SQLAlchemyCredentialStore()

    backend = str(app.config.get("CREDENTIAL_BACKEND", "sql")).strip().lower()
    if backend == "redis":
        if redis_client is None:
            raise ConfigurationError("CREDENTIAL_BACKEND=redis requires REDIS_URL")
        from authsvc.infra.redis.redis_credential_store import RedisCredentialStore

        store = RedisCredentialStore(r=redis_client, accounts=sql_store)
    elif backend == "sql":
        store = sql_store
    else:
        raise ConfigurationError(f"Unknown CREDENTIAL_BACKEND {backend!r}")

    hasher = PasswordHasher(
        work_factor=settings.hash_work_factor,
        min_length=settings.min_password_length,
    )
    app.extensions[CREDENTIAL_SERVICE_KEY] = CredentialService(
        store=store,
        settings=settings,
        notifier=LoggingSecurityNotifier(),
        hasher=hasher,
    )
    app.extensions[ACCOUNT_SERVICE_KEY] = AccountService(hasher=hasher)
    log.info("credentials.configured", extra={"event": "credentials.configured", "reason": backend})


def get_credential_service():
    """Return the credential service bound to the current application."""
    return current_app.extensions[CREDENTIAL_SERVICE_KEY]


def get_account_service():
    """Return the account service bound to the current application."""
    return current_app.extensions[ACCOUNT_SERVICE_KEY]
