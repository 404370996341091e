"""Version 1 of the credential API."""

from __future__ import annotations

from flask import Blueprint

from .accounts import bp as accounts_bp
from .auth import bp as auth_bp
from .health import bp as health_bp

API_VERSION = "v1"

# (blueprint, prefix relative to /api/v1)
REGISTRY: list[tuple[Blueprint, str]] = [
    (health_bp, ""),
    (auth_bp, "auth"),
    (accounts_bp, "accounts"),
]
