"""SQLAlchemy-backed credential store (accounts table)."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError

from authsvc.models.account import Account
from authsvc.services._shared.errors import StoreUnavailableError
from authsvc.services._shared.ports import AccountView, CredentialStore, StoredCredential
from authsvc.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)

T = TypeVar("T")


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back; values are always written as UTC.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _to_view(account: Account) -> AccountView:
    return AccountView(
        id=account.id,
        email=account.email,
        password_hash=account.password_hash,
        first_name=account.first_name,
        active=bool(account.active),
    )


class SQLAlchemyCredentialStore(CredentialStore):
    """
    Credential store over the ``accounts`` table.

    The refresh hash and its expiry are columns of the account row, so there
    is structurally one stored credential per account. Every call runs in its
    own :class:`SQLAlchemyUnitOfWork`; driver failures (including timeouts)
    surface as :class:`StoreUnavailableError` after a rollback.
    """

    def _run(self, op: str, fn: Callable[[SQLAlchemyUnitOfWork], T]) -> T:
        try:
            with SQLAlchemyUnitOfWork() as uow:
                return fn(uow)
        except SQLAlchemyError as exc:
            log.error(
                "store.sql_failed",
                extra={"event": "store.sql_failed", "reason": op},
                exc_info=True,
            )
            raise StoreUnavailableError() from exc

    # --------------------------- Accounts ----------------------------------

    def get_account_by_email(self, email: str) -> AccountView | None:
        def _lookup(uow: SQLAlchemyUnitOfWork) -> AccountView | None:
            account = uow.accounts.get_by_email(email)
            return _to_view(account) if account is not None else None

        return self._run("get_account_by_email", _lookup)

    def get_account_by_id(self, account_id: int) -> AccountView | None:
        def _lookup(uow: SQLAlchemyUnitOfWork) -> AccountView | None:
            account = uow.accounts.get(account_id)
            return _to_view(account) if account is not None else None

        return self._run("get_account_by_id", _lookup)

    # --------------------------- Credentials -------------------------------

    def get_stored_credential(self, account_id: int) -> StoredCredential | None:
        def _lookup(uow: SQLAlchemyUnitOfWork) -> StoredCredential | None:
            account = uow.accounts.get(account_id)
            if (
                account is None
                or account.refresh_token_hash is None
                or account.refresh_token_expires is None
            ):
                return None
            return StoredCredential(
                account_id=account.id,
                refresh_token_hash=account.refresh_token_hash,
                expires_at=_as_utc(account.refresh_token_expires),
            )

        return self._run("get_stored_credential", _lookup)

    def put_stored_credential(
        self, account_id: int, refresh_token_hash: str, expires_at: datetime
    ) -> None:
        updated = self._run(
            "put_stored_credential",
            lambda uow: uow.accounts.set_refresh_credential(
                account_id, refresh_token_hash, expires_at
            ),
        )
        if not updated:
            log.warning(
                "store.put_missing_account",
                extra={"event": "store.put_missing_account", "account_id": account_id},
            )

    def swap_stored_credential(
        self,
        account_id: int,
        *,
        expected_hash: str,
        refresh_token_hash: str,
        expires_at: datetime,
    ) -> bool:
        return self._run(
            "swap_stored_credential",
            lambda uow: uow.accounts.swap_refresh_credential(
                account_id,
                expected_hash=expected_hash,
                refresh_token_hash=refresh_token_hash,
                expires_at=expires_at,
            ),
        )
