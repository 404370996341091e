"""Credential lifecycle engine: hashing, token codec, refresh validation, orchestration."""

from __future__ import annotations

from .codec import SIGNING_ALGORITHM, TokenCodec
from .dto import (
    AccessClaims,
    CredentialSettings,
    IssuedCredentials,
    LoginIn,
    ProvideIn,
    RefreshIn,
    RotationCheck,
)
from .hasher import PasswordHasher
from .service import CredentialService
from .validator import RefreshTokenValidator

__all__ = [
    "SIGNING_ALGORITHM",
    "TokenCodec",
    "PasswordHasher",
    "RefreshTokenValidator",
    "CredentialService",
    "CredentialSettings",
    "AccessClaims",
    "IssuedCredentials",
    "RotationCheck",
    "LoginIn",
    "ProvideIn",
    "RefreshIn",
]
