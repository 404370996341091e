from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True, slots=True)
class AccountView:
    """
    Read-model of an account as seen by the credential engine.

    :ivar id: Account identifier.
    :ivar email: Login and contact address (normalized).
    :ivar password_hash: Self-describing password hash (hidden from ``repr``).
    :ivar first_name: Optional greeting name.
    :ivar active: Whether the account may authenticate.
    """

    id: int
    email: str
    password_hash: str = field(repr=False)
    first_name: str | None = None
    active: bool = True


@dataclass(frozen=True, slots=True)
class StoredCredential:
    """
    The single live refresh credential of an account.

    :ivar account_id: Owner account.
    :ivar refresh_token_hash: Hash of the raw refresh token (hidden from ``repr``).
    :ivar expires_at: Absolute expiration (UTC).
    """

    account_id: int
    refresh_token_hash: str = field(repr=False)
    expires_at: datetime


class AccountSource(Protocol):
    """Read access to accounts, owned by the user store."""

    def get_account_by_email(self, email: str) -> AccountView | None: ...

    def get_account_by_id(self, account_id: int) -> AccountView | None: ...


class CredentialStore(AccountSource, Protocol):
    """
    Persistence for one hashed refresh credential per account.

    Every method either returns normally or raises
    :class:`~authsvc.services._shared.errors.StoreUnavailableError`; missing
    rows are reported as ``None`` / ``False``, never as exceptions.
    """

    def get_stored_credential(self, account_id: int) -> StoredCredential | None:
        """Return the live credential of ``account_id`` (if any)."""

    def put_stored_credential(
        self, account_id: int, refresh_token_hash: str, expires_at: datetime
    ) -> None:
        """Unconditionally overwrite the credential of ``account_id``."""

    def swap_stored_credential(
        self,
        account_id: int,
        *,
        expected_hash: str,
        refresh_token_hash: str,
        expires_at: datetime,
    ) -> bool:
        """
        Atomically replace the credential only if it still holds ``expected_hash``.

        :returns: ``True`` when the swap happened, ``False`` when another
            writer got there first (or no credential exists).
        """


class InMemoryCredentialStore(CredentialStore):
    """
    In-memory credential store with atomic compare-and-swap.

    .. note::
       Uses a threading lock so concurrent rotations behave like the real stores.
    """

    def __init__(self) -> None:
        self._accounts: dict[int, AccountView] = {}
        self._credentials: dict[int, StoredCredential] = {}
        self._seq = 0
        self._lock = threading.Lock()

    # ------------------------- helpers -------------------------

    def add_account(
        self,
        *,
        email: str,
        password_hash: str,
        first_name: str | None = None,
        active: bool = True,
    ) -> AccountView:
        """Register an account and return its view (test seeding helper)."""
        with self._lock:
            self._seq += 1
            account = AccountView(
                id=self._seq,
                email=email.strip().lower(),
                password_hash=password_hash,
                first_name=first_name,
                active=active,
            )
            self._accounts[account.id] = account
            return account

    def deactivate(self, account_id: int) -> None:
        with self._lock:
            account = self._accounts[account_id]
            self._accounts[account_id] = replace(account, active=False)

    # -------------------------- API ----------------------------

    def get_account_by_email(self, email: str) -> AccountView | None:
        needle = email.strip().lower()
        with self._lock:
            return next((a for a in self._accounts.values() if a.email == needle), None)

    def get_account_by_id(self, account_id: int) -> AccountView | None:
        with self._lock:
            return self._accounts.get(account_id)

    def get_stored_credential(self, account_id: int) -> StoredCredential | None:
        with self._lock:
            return self._credentials.get(account_id)

    def put_stored_credential(
        self, account_id: int, refresh_token_hash: str, expires_at: datetime
    ) -> None:
        with self._lock:
            self._credentials[account_id] = StoredCredential(
                account_id=account_id,
                refresh_token_hash=refresh_token_hash,
                expires_at=expires_at,
            )

    def swap_stored_credential(
        self,
        account_id: int,
        *,
        expected_hash: str,
        refresh_token_hash: str,
        expires_at: datetime,
    ) -> bool:
        with self._lock:
            current = self._credentials.get(account_id)
            if current is None or current.refresh_token_hash != expected_hash:
                return False
            self._credentials[account_id] = StoredCredential(
                account_id=account_id,
                refresh_token_hash=refresh_token_hash,
                expires_at=expires_at,
            )
            return True
