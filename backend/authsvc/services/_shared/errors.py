"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask, HTTP, Redis or SQLAlchemy directly. They serve as stable contracts
between stores, the credential engine, and application services.

The translation to HTTP responses (RFC 7807) is handled by
``authsvc/core/errors.py`` via ``BaseService.translate_exceptions()``.

Families
--------
- :class:`ValidationError`: malformed input (bad id, bad IP, short password).
- :class:`AuthenticationError`: unknown user or wrong password.
- :class:`TokenError`: any rejected access or refresh token.
- :class:`InfrastructureError`: store, RNG, signing or stored-hash failures.
"""

from __future__ import annotations

from dataclasses import dataclass


def violates(exc: Exception, constraint_name: str) -> bool:
    """
    Check whether an integrity error originates from a specific constraint.

    Parameters
    ----------
    exc : Exception
        The exception raised by the driver/ORM during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g., 'uq_accounts_email').

    Returns
    -------
    bool
        True if the error message mentions the constraint (PostgreSQL) or the
        constrained column (SQLite reports ``accounts.email``).
    """
    orig = getattr(exc, "orig", None)
    message = str(orig if orig is not None else exc).lower()
    if constraint_name.lower() in message:
        return True
    # uq_<table>_<column> -> "<table>.<column>" as reported by SQLite
    parts = constraint_name.lower().split("_", 2)
    if len(parts) == 3 and parts[0] == "uq":
        return f"{parts[1]}.{parts[2]}" in message
    return False


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from stores, the credential engine, or services.
    - The API layer translates them to APIError via BaseService.
    """

    message = "Service error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class ValidationError(ServiceError):
    """Malformed caller input."""

    message = "Invalid input"


class AuthenticationError(ServiceError):
    """Credentials could not be authenticated."""

    message = "Authentication failed"


class TokenError(ServiceError):
    """An access or refresh token was rejected."""

    message = "Invalid token"


class InfrastructureError(ServiceError):
    """A collaborator (store, RNG, signer) failed; details stay server-side."""

    message = "Internal error"


# --------------------------------------------------------------------------- #
# Validation
# --------------------------------------------------------------------------- #


class WeakSecretError(ValidationError):
    message = "password must be at least 8 characters long"

    def __init__(self, min_length: int = 8) -> None:
        super().__init__(f"password must be at least {min_length} characters long")
        self.min_length = min_length


class InvalidIPError(ValidationError):
    message = "invalid IP while working with tokens"


class InvalidIDError(ValidationError):
    message = "provided ID is invalid"


# --------------------------------------------------------------------------- #
# Authentication
# --------------------------------------------------------------------------- #


class UserNotExistError(AuthenticationError):
    message = "user does not exist"


class InvalidPasswordError(AuthenticationError):
    message = "invalid password"


# --------------------------------------------------------------------------- #
# Tokens
# --------------------------------------------------------------------------- #


class MalformedTokenError(TokenError):
    message = "malformed token"


class UnexpectedAlgorithmError(TokenError):
    message = "unexpected signing method"


class InvalidTokenError(TokenError):
    message = "token validation failed"


class IPMismatchError(TokenError):
    message = "refresh attempted from a different IP"


class CredentialNotFoundError(TokenError):
    message = "no refresh credential stored for this account"


class TokenExpiredError(TokenError):
    message = "your auth has expired, please, authenticate again"


class HashMismatchError(TokenError):
    message = "refresh token does not match the stored credential"


# --------------------------------------------------------------------------- #
# Infrastructure
# --------------------------------------------------------------------------- #


class SigningFailureError(InfrastructureError):
    message = "failed to sign the token"


class RandomnessFailureError(InfrastructureError):
    message = "secure random source unavailable"


class StoreUnavailableError(InfrastructureError):
    message = "credential store unavailable"


class MalformedHashError(InfrastructureError):
    message = "stored hash is malformed"


# --------------------------------------------------------------------------- #
# Account CRUD
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "Account").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "Account").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:  # pragma: no cover
        return f"Conflict on {self.entity}: {self.detail}"
