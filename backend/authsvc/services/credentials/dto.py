# authsvc/services/credentials/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from authsvc.core.config import ConfigurationError
from authsvc.services._shared.errors import MalformedTokenError, ServiceError

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: Account email (normalized by the store).
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    :param client_ip: Address the request came from.
    :type client_ip: str
    """

    email: str
    password: str = field(repr=False)
    client_ip: str


@dataclass(frozen=True, slots=True)
class ProvideIn:
    """
    Input DTO for unconditional issuance to an existing account.

    :param account_id: Target account.
    :type account_id: int
    :param client_ip: Address the tokens are pinned to.
    :type client_ip: str | None
    """

    account_id: int
    client_ip: str | None


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for refresh-token rotation.

    :param account_id: Account the refresh token belongs to.
    :type account_id: int
    :param refresh_token: Raw refresh token presented by the client.
    :type refresh_token: str
    :param client_ip: Address the request came from.
    :type client_ip: str
    """

    account_id: int
    refresh_token: str = field(repr=False)
    client_ip: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class IssuedCredentials:
    """
    A freshly issued token pair. Token values never appear in ``repr``.

    :param access_token: Compact signed access token.
    :param refresh_token: Raw refresh token, handed out exactly once.
    :param account_id: Account the pair belongs to.
    :param access_expires_at: Access token expiry (UTC).
    :param refresh_expires_at: Refresh credential expiry (UTC).
    """

    access_token: str = field(repr=False)
    refresh_token: str = field(repr=False)
    account_id: int
    access_expires_at: datetime
    refresh_expires_at: datetime


@dataclass(frozen=True, slots=True)
class AccessClaims:
    """
    Typed claim set of an access token.

    :param issued_at: ``iat`` as a UNIX timestamp.
    :param expires_at: ``exp`` as a UNIX timestamp.
    :param ip: Client address the token was issued for.
    """

    issued_at: int
    expires_at: int
    ip: str

    def to_payload(self) -> dict[str, Any]:
        return {"iat": self.issued_at, "exp": self.expires_at, "ip": self.ip}

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> AccessClaims:
        """
        Validate a decoded payload.

        :raises MalformedTokenError: When ``iat``/``exp`` are missing or not
            numeric, or ``ip`` is missing or not a string.
        """
        exp = payload.get("exp")
        iat = payload.get("iat")
        ip = payload.get("ip")
        for value in (exp, iat):
            # bool is an int subclass; reject it explicitly
            if isinstance(value, bool) or not isinstance(value, int | float):
                raise MalformedTokenError("token is missing numeric exp/iat claims")
        if not isinstance(ip, str) or not ip:
            raise MalformedTokenError("token is missing the ip claim")
        return cls(issued_at=int(iat), expires_at=int(exp), ip=ip)  # type: ignore[arg-type]


@dataclass(frozen=True, slots=True)
class RotationCheck:
    """
    Outcome of one refresh-token validation pass.

    Exactly one of ``valid`` or ``error`` is meaningful: a valid check carries
    the hash that was matched (the compare-and-swap anchor); a failed check
    carries the failure kind.
    """

    valid: bool
    error: ServiceError | None = None
    matched_hash: str | None = field(default=None, repr=False)

    @classmethod
    def ok(cls, matched_hash: str) -> RotationCheck:
        return cls(valid=True, matched_hash=matched_hash)

    @classmethod
    def rejected(cls, error: ServiceError) -> RotationCheck:
        return cls(valid=False, error=error)


# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class CredentialSettings:
    """
    Immutable configuration of the credential engine, built once at startup.

    :param secret_key: Symmetric signing key (hidden from ``repr``).
    :param access_ttl: Access token lifetime.
    :param refresh_ttl: Refresh credential lifetime.
    :param min_password_length: Shortest accepted secret.
    :param refresh_token_bytes: Random bytes per refresh token.
    :param hash_work_factor: PBKDF2 iteration count.
    """

    secret_key: str = field(repr=False)
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=30)
    min_password_length: int = 8
    refresh_token_bytes: int = 32
    hash_work_factor: int = 600_000

    def __post_init__(self) -> None:
        if not self.secret_key:
            raise ConfigurationError("TOKEN_SECRET_KEY must be set to sign access tokens")
        if self.access_ttl <= timedelta(0) or self.refresh_ttl <= timedelta(0):
            raise ConfigurationError("token TTLs must be positive")
        for name in ("min_password_length", "refresh_token_bytes", "hash_work_factor"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> CredentialSettings:
        """
        Build settings from a Flask-style config mapping.

        :raises ConfigurationError: When the signing key is absent or a value
            is out of range.
        """
        return cls(
            secret_key=str(config.get("TOKEN_SECRET_KEY") or ""),
            access_ttl=timedelta(seconds=int(config.get("ACCESS_TOKEN_TTL_SECONDS", 15 * 60))),
            refresh_ttl=timedelta(
                seconds=int(config.get("REFRESH_TOKEN_TTL_SECONDS", 30 * 24 * 60 * 60))
            ),
            min_password_length=int(config.get("MIN_PASSWORD_LENGTH", 8)),
            refresh_token_bytes=int(config.get("REFRESH_TOKEN_BYTES", 32)),
            hash_work_factor=int(config.get("HASH_WORK_FACTOR", 600_000)),
        )
