"""
AccountService
==============

Registration and lookup of login identities. Passwords are hashed with the
same :class:`PasswordHasher` the credential engine verifies against.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from authsvc.models.account import Account
from authsvc.services._shared.base import BaseService
from authsvc.services._shared.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    violates,
)
from authsvc.services._shared.policies.common import parse_account_id
from authsvc.services._shared.ports.clock import Clock
from authsvc.services.accounts.dto import AccountOut, RegisterIn
from authsvc.services.credentials.hasher import PasswordHasher

log = logging.getLogger(__name__)

EMAIL_CONSTRAINT = "uq_accounts_email"


class AccountService(BaseService):
    """Orchestrates account registration and lookup."""

    def __init__(
        self,
        *,
        hasher: PasswordHasher,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(clock=clock)
        self.hasher = hasher

    def register(self, dto: RegisterIn) -> AccountOut:
        """
        Create an account.

        :param dto: Registration input.
        :type dto: :class:`RegisterIn`
        :returns: The created account.
        :rtype: :class:`AccountOut`
        :raises ValidationError: If the email is malformed.
        :raises WeakSecretError: If the password is too short.
        :raises ConflictError: If the email is already registered.
        """
        email = _normalize_email(dto.email)
        password_hash = self.hasher.hash(dto.password)

        try:
            with self.rw_uow() as uow:
                if uow.accounts.exists_by_email(email):
                    raise ConflictError("Account", "email already in use")
                account = Account(
                    email=email,
                    password_hash=password_hash,
                    first_name=dto.first_name,
                    last_name=dto.last_name,
                )
                uow.accounts.add(account)
                out = self._to_out(account)
        except IntegrityError as exc:
            # Lost a race with a concurrent registration of the same email
            if violates(exc, EMAIL_CONSTRAINT):
                raise ConflictError("Account", "email already in use") from exc
            raise

        log.info("account.registered", extra={"event": "account.registered", "account_id": out.id})
        return out

    def get(self, account_id: int | str) -> AccountOut:
        """
        Return one account.

        :raises InvalidIDError: If the id is not a positive integer.
        :raises NotFoundError: If no account has this id.
        """
        key = parse_account_id(account_id)
        with self.rw_uow() as uow:
            account = uow.accounts.get(key)
            if account is None:
                raise NotFoundError("Account", key)
            return self._to_out(account)

    @staticmethod
    def _to_out(account: Account) -> AccountOut:
        return AccountOut(
            id=account.id,
            email=account.email,
            first_name=account.first_name,
            last_name=account.last_name,
            active=bool(account.active),
            created_at=account.created_at,
        )


def _normalize_email(raw: str) -> str:
    email = (raw or "").strip().lower()
    local, _, domain = email.partition("@")
    if not local or "." not in domain:
        raise ValidationError("invalid email")
    return email
