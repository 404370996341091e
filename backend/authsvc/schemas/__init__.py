"""Convenience exports for application schemas."""

from __future__ import annotations

from .account import AccountSchema, RegisterSchema
from .auth import IssuedCredentialsSchema, LoginSchema

__all__ = [
    "AccountSchema",
    "RegisterSchema",
    "IssuedCredentialsSchema",
    "LoginSchema",
]
