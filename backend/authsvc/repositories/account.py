"""Account repository: lookups and refresh credential persistence."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import select, update

from authsvc.models.account import Account
from authsvc.repositories.base import BaseRepository


class AccountRepository(BaseRepository[Account]):
    """Persistence-only repository for :class:`Account`.

    Never hashes, signs or validates anything: callers hand over ready-made
    hashes and expiry instants.
    """

    model = Account

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_email(self, email: str) -> Account | None:
        """Fetch an account by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: Account instance or ``None`` when not found.
        :rtype: Account | None
        """
        stmt = select(Account).where(Account.email == email.lower().strip())
        result = self.session.execute(stmt).scalars().first()
        return cast(Account | None, result)

    def exists_by_email(self, email: str) -> bool:
        stmt = select(Account.id).where(Account.email == email.lower().strip())
        return bool(self.session.execute(stmt).first())

    # ------------------------- Refresh credential ---------------------------

    def set_refresh_credential(
        self, account_id: int, refresh_token_hash: str, expires_at: datetime
    ) -> bool:
        """Overwrite the refresh credential of an account.

        :returns: ``True`` when the account row exists and was updated.
        """
        stmt = (
            update(Account)
            .where(Account.id == account_id)
            .values(refresh_token_hash=refresh_token_hash, refresh_token_expires=expires_at)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def swap_refresh_credential(
        self,
        account_id: int,
        *,
        expected_hash: str,
        refresh_token_hash: str,
        expires_at: datetime,
    ) -> bool:
        """Replace the credential only while it still holds ``expected_hash``.

        A single guarded ``UPDATE``: the database serializes concurrent
        writers, so of two swaps against the same hash only one matches.

        :returns: ``True`` when exactly one row was updated.
        """
        stmt = (
            update(Account)
            .where(
                Account.id == account_id,
                Account.refresh_token_hash == expected_hash,
            )
            .values(refresh_token_hash=refresh_token_hash, refresh_token_expires=expires_at)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1
