# authsvc/services/accounts/dto.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for account registration.

    :param email: Login and contact address (normalized by the service).
    :type email: str
    :param password: Raw password; hashed before it reaches the store.
    :type password: str
    :param first_name: Optional first name.
    :type first_name: str | None
    :param last_name: Optional last name.
    :type last_name: str | None
    """

    email: str
    password: str = field(repr=False)
    first_name: str | None = None
    last_name: str | None = None


@dataclass(frozen=True, slots=True)
class AccountOut:
    """Public representation of an account. Never carries hashes."""

    id: int
    email: str
    first_name: str | None
    last_name: str | None
    active: bool
    created_at: datetime | None = None
