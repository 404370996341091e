"""Refresh-token validation: parse, IP pinning, lookup, expiry, hash check."""

from __future__ import annotations

import logging

from authsvc.services._shared.errors import (
    CredentialNotFoundError,
    HashMismatchError,
    InfrastructureError,
    IPMismatchError,
    MalformedHashError,
    MalformedTokenError,
    ServiceError,
    TokenExpiredError,
)
from authsvc.services._shared.ports.clock import Clock
from authsvc.services._shared.ports.credential_store import CredentialStore
from authsvc.services._shared.ports.notifier import SecurityNotifier
from authsvc.services.credentials.codec import TokenCodec
from authsvc.services.credentials.dto import RotationCheck
from authsvc.services.credentials.hasher import PasswordHasher

log = logging.getLogger(__name__)

# Contact used for the warning when the account's address cannot be read.
UNKNOWN_CONTACT = "unknown-account@localhost"


class RefreshTokenValidator:
    """
    Decide whether a presented refresh token may be rotated.

    One pass, no partial commit, no exceptions across the boundary: every
    outcome is a :class:`RotationCheck`. The steps run in a fixed order:

    1. parse (exactly two ``|``-separated parts),
    2. IP pinning (mismatch also sends a best-effort security warning),
    3. credential lookup,
    4. expiry,
    5. hash comparison.
    """

    def __init__(
        self,
        *,
        store: CredentialStore,
        hasher: PasswordHasher,
        clock: Clock,
        notifier: SecurityNotifier,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.clock = clock
        self.notifier = notifier

    def validate(self, *, account_id: int, raw_token: str, client_ip: str) -> RotationCheck:
        """
        Run the validation pass.

        :param account_id: Account the token is presented for.
        :param raw_token: Raw refresh token from the client.
        :param client_ip: Address of the current request.
        :returns: ``RotationCheck.ok(hash)`` or ``RotationCheck.rejected(error)``.
        """
        # 1) Parse, before touching the store
        try:
            token_ip, _ = TokenCodec.split_refresh_token(raw_token)
        except MalformedTokenError as exc:
            return self._reject(account_id, exc)

        # 2) IP pinning, regardless of what the store holds
        if token_ip != client_ip:
            self._warn_ip_change(account_id=account_id, old_ip=token_ip, new_ip=client_ip)
            return RotationCheck.rejected(IPMismatchError())

        # 3) Lookup
        try:
            stored = self.store.get_stored_credential(account_id)
        except InfrastructureError as exc:
            log.error(
                "refresh.store_failed",
                extra={"event": "refresh.store_failed", "account_id": account_id},
            )
            return RotationCheck.rejected(exc)
        if stored is None:
            return self._reject(account_id, CredentialNotFoundError())

        # 4) Expiry
        if self.clock.now() > stored.expires_at:
            return self._reject(account_id, TokenExpiredError())

        # 5) Hash comparison; a corrupt stored hash counts as a mismatch
        try:
            matches = self.hasher.verify(raw_token, stored.refresh_token_hash)
        except MalformedHashError:
            matches = False
        if not matches:
            return self._reject(account_id, HashMismatchError())

        return RotationCheck.ok(stored.refresh_token_hash)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    @staticmethod
    def _reject(account_id: int, error: ServiceError) -> RotationCheck:
        log.info(
            "refresh.rejected",
            extra={
                "event": "refresh.rejected",
                "account_id": account_id,
                "reason": type(error).__name__,
            },
        )
        return RotationCheck.rejected(error)

    def _warn_ip_change(self, *, account_id: int, old_ip: str, new_ip: str) -> None:
        """Send the IP-change warning; failures here never change the rejection."""
        log.warning(
            "refresh.ip_mismatch",
            extra={"event": "refresh.ip_mismatch", "account_id": account_id},
        )

        contact = UNKNOWN_CONTACT
        try:
            account = self.store.get_account_by_id(account_id)
        except InfrastructureError:
            log.warning(
                "refresh.ip_mismatch.contact_lookup_failed",
                extra={"event": "refresh.ip_mismatch", "account_id": account_id},
            )
        else:
            if account is not None:
                contact = account.email

        try:
            self.notifier.notify_ip_change(
                contact=contact,
                account_id=account_id,
                old_ip=old_ip,
                new_ip=new_ip,
                at=self.clock.now(),
            )
        except Exception:
            log.exception(
                "refresh.ip_mismatch.notify_failed",
                extra={"event": "refresh.ip_mismatch", "account_id": account_id},
            )
