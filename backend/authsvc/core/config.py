"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# Load .env during development (no-op when the file is absent)
load_dotenv()


class ConfigurationError(RuntimeError):
    """Raised at startup when mandatory configuration is missing or invalid."""


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable.

    :raises ConfigurationError: When the variable is set but not an integer.
    """
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return int(val.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {val!r}") from exc


def engine_options(database_uri: str, timeout_seconds: int) -> dict[str, Any]:
    """Build SQLAlchemy engine options bounding every store round trip.

    SQLite (including the in-memory ``StaticPool`` used by tests) only accepts
    the driver busy timeout; pooled server databases also get a pool checkout
    timeout and a driver connect timeout.
    """
    if database_uri.startswith("sqlite"):
        return {"connect_args": {"timeout": timeout_seconds}}

    options: dict[str, Any] = {
        "pool_pre_ping": True,
        "pool_timeout": timeout_seconds,
    }
    if database_uri.startswith("postgresql"):
        options["connect_args"] = {
            "connect_timeout": timeout_seconds,
            "options": f"-c statement_timeout={timeout_seconds * 1000}",
        }
    return options


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret used for session signing.
    TOKEN_SECRET_KEY: str | None
        Symmetric key signing access tokens. No default: a missing key stops
        the application factory.
    ACCESS_TOKEN_TTL_SECONDS: int
        Access token lifetime (15 minutes).
    REFRESH_TOKEN_TTL_SECONDS: int
        Refresh credential lifetime (30 days).
    MIN_PASSWORD_LENGTH: int
        Shortest secret accepted by the password hasher.
    REFRESH_TOKEN_BYTES: int
        Random bytes drawn for each refresh token.
    HASH_WORK_FACTOR: int
        PBKDF2 iteration count for password and refresh-token hashes.
    STORE_TIMEOUT_SECONDS: int
        Upper bound for one credential store round trip.
    CREDENTIAL_BACKEND: str
        ``"sql"`` (accounts table) or ``"redis"`` (requires ``REDIS_URL``).
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    COOKIE_SECURE: bool
        Adds the ``Secure`` attribute to credential cookies.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.
    USE_PROXYFIX: bool
        Wrap the WSGI app in ``ProxyFix`` so pinned client addresses come
        from ``X-Forwarded-For``.
    PROXY_TRUSTED_HOPS: int
        Number of reverse proxies whose ``X-Forwarded-*`` headers are trusted.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    TOKEN_SECRET_KEY = os.getenv("TOKEN_SECRET_KEY")

    # Credential lifecycle
    ACCESS_TOKEN_TTL_SECONDS = env_int("ACCESS_TOKEN_TTL_SECONDS", 15 * 60)
    REFRESH_TOKEN_TTL_SECONDS = env_int("REFRESH_TOKEN_TTL_SECONDS", 30 * 24 * 60 * 60)
    MIN_PASSWORD_LENGTH = env_int("MIN_PASSWORD_LENGTH", 8)
    REFRESH_TOKEN_BYTES = env_int("REFRESH_TOKEN_BYTES", 32)
    HASH_WORK_FACTOR = env_int("HASH_WORK_FACTOR", 600_000)
    STORE_TIMEOUT_SECONDS = env_int("STORE_TIMEOUT_SECONDS", 3)
    CREDENTIAL_BACKEND = os.getenv("CREDENTIAL_BACKEND", "sql")
    COOKIE_SECURE = env_bool("COOKIE_SECURE", True)

    # DB / cache
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    REDIS_URL = os.getenv("REDIS_URL")

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    # Reverse proxy: trust one hop of X-Forwarded-* for the client address
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)
    PROXY_TRUSTED_HOPS = env_int("PROXY_TRUSTED_HOPS", 1)

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode and plain-HTTP cookies; the signing key must still be
    provided (``.env`` works).
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    COOKIE_SECURE = env_bool("COOKIE_SECURE", False)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Lowers the hash work factor so suites stay fast.
    """

    TESTING = True
    DEBUG = False
    TOKEN_SECRET_KEY = os.getenv("TOKEN_SECRET_KEY", "testing-signing-key-0123456789abcdef")
    HASH_WORK_FACTOR = 1_000
    COOKIE_SECURE = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments."""

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
