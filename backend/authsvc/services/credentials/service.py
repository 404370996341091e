# authsvc/services/credentials/service.py
from __future__ import annotations

import logging
from datetime import UTC, datetime

from authsvc.services._shared.base import BaseService
from authsvc.services._shared.errors import (
    HashMismatchError,
    InvalidPasswordError,
    MalformedHashError,
    UserNotExistError,
)
from authsvc.services._shared.policies.common import normalize_client_ip, parse_account_id
from authsvc.services._shared.ports.clock import Clock
from authsvc.services._shared.ports.credential_store import CredentialStore
from authsvc.services._shared.ports.notifier import SecurityNotifier
from authsvc.services.credentials.codec import TokenCodec
from authsvc.services.credentials.dto import (
    CredentialSettings,
    IssuedCredentials,
    LoginIn,
    ProvideIn,
    RefreshIn,
)
from authsvc.services.credentials.hasher import PasswordHasher
from authsvc.services.credentials.validator import RefreshTokenValidator

log = logging.getLogger(__name__)


class CredentialService(BaseService):
    """
    Credential lifecycle service (authenticate / provide / refresh).

    Issues signed access tokens and raw refresh tokens via :class:`TokenCodec`,
    keeps only the refresh token hash in the :class:`CredentialStore`, and
    rotates refresh tokens single-use through :class:`RefreshTokenValidator`.

    First issuance overwrites the stored credential unconditionally; rotation
    is a compare-and-swap against the hash the validator matched, so of two
    racing rotations with the same token exactly one succeeds.
    """

    def __init__(
        self,
        *,
        store: CredentialStore,
        settings: CredentialSettings,
        notifier: SecurityNotifier,
        clock: Clock | None = None,
        codec: TokenCodec | None = None,
        hasher: PasswordHasher | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param store: Account lookup and refresh credential persistence.
        :param settings: Immutable engine configuration.
        :param notifier: Receiver of IP-change warnings.
        :param clock: Time source shared by codec, validator and service.
        :param codec: Token codec (built from ``settings`` when omitted).
        :param hasher: Hasher (built from ``settings`` when omitted).
        """
        super().__init__(clock=clock)
        self.store = store
        self.cfg = settings
        self.hasher = hasher or PasswordHasher(
            work_factor=settings.hash_work_factor,
            min_length=settings.min_password_length,
        )
        self.codec = codec or TokenCodec(
            secret_key=settings.secret_key,
            access_ttl=settings.access_ttl,
            refresh_token_bytes=settings.refresh_token_bytes,
            clock=self.clock,
        )
        self.validator = RefreshTokenValidator(
            store=store,
            hasher=self.hasher,
            clock=self.clock,
            notifier=notifier,
        )

    # ------------------------------------------------------------------ #
    # Authenticate
    # ------------------------------------------------------------------ #

    def authenticate(self, dto: LoginIn) -> IssuedCredentials:
        """
        Verify email/password and issue a fresh token pair.

        :raises UserNotExistError: If no (active) account has this email.
        :raises InvalidPasswordError: If the password does not match.
        """
        client_ip = normalize_client_ip(dto.client_ip)

        account = self.store.get_account_by_email(dto.email)
        if account is None or not account.active:
            raise UserNotExistError("user with this email does not exist")

        try:
            valid = self.hasher.verify(dto.password, account.password_hash)
        except MalformedHashError:
            log.error(
                "auth.password_hash_malformed",
                extra={"event": "auth.password_hash_malformed", "account_id": account.id},
            )
            valid = False
        if not valid:
            log.info(
                "auth.invalid_password",
                extra={"event": "auth.invalid_password", "account_id": account.id},
            )
            raise InvalidPasswordError()

        issued = self._issue(account.id, client_ip)
        self.store.put_stored_credential(
            account.id, self._hash_refresh(issued), issued.refresh_expires_at
        )
        log.info("auth.login", extra={"event": "auth.login", "account_id": account.id})
        return issued

    # ------------------------------------------------------------------ #
    # Provide
    # ------------------------------------------------------------------ #

    def provide(self, dto: ProvideIn) -> IssuedCredentials:
        """
        Issue a pair for an existing account without a password check.

        :raises InvalidIDError: If the id is not a positive integer.
        :raises InvalidIPError: If the client IP cannot be determined.
        :raises UserNotExistError: If the account does not exist.
        """
        account_id = parse_account_id(dto.account_id)
        client_ip = normalize_client_ip(dto.client_ip)

        if self.store.get_account_by_id(account_id) is None:
            raise UserNotExistError()

        issued = self._issue(account_id, client_ip)
        self.store.put_stored_credential(
            account_id, self._hash_refresh(issued), issued.refresh_expires_at
        )
        log.info("auth.provide", extra={"event": "auth.provide", "account_id": account_id})
        return issued

    # ------------------------------------------------------------------ #
    # Refresh with single-use rotation
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> IssuedCredentials:
        """
        Exchange a valid refresh token for a brand-new pair.

        Validator failures are raised unchanged (``MalformedTokenError``,
        ``IPMismatchError``, ``CredentialNotFoundError``, ``TokenExpiredError``,
        ``HashMismatchError`` or a store failure). Losing a rotation race also
        raises ``HashMismatchError``.
        """
        account_id = parse_account_id(dto.account_id)
        client_ip = normalize_client_ip(dto.client_ip)

        check = self.validator.validate(
            account_id=account_id,
            raw_token=dto.refresh_token,
            client_ip=client_ip,
        )
        if not check.valid and check.error is not None:
            raise check.error

        issued = self._issue(account_id, client_ip)
        swapped = self.store.swap_stored_credential(
            account_id,
            expected_hash=check.matched_hash or "",
            refresh_token_hash=self._hash_refresh(issued),
            expires_at=issued.refresh_expires_at,
        )
        if not swapped:
            log.warning(
                "refresh.rotation_conflict",
                extra={"event": "refresh.rotation_conflict", "account_id": account_id},
            )
            raise HashMismatchError("refresh token was already rotated")

        log.info("refresh.rotated", extra={"event": "refresh.rotated", "account_id": account_id})
        return issued

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _issue(self, account_id: int, client_ip: str) -> IssuedCredentials:
        now: datetime = self.now_utc()
        access, claims = self.codec.issue_access(client_ip)
        refresh = self.codec.issue_refresh_token(client_ip)
        return IssuedCredentials(
            access_token=access,
            refresh_token=refresh,
            account_id=account_id,
            # Reported expiry is the signed one (whole seconds).
            access_expires_at=datetime.fromtimestamp(claims.expires_at, tz=UTC),
            refresh_expires_at=now + self.cfg.refresh_ttl,
        )

    def _hash_refresh(self, issued: IssuedCredentials) -> str:
        return self.hasher.hash_token(issued.refresh_token)
