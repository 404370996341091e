# comments in English; reST docstrings
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import redis  # type: ignore[import-untyped]

from authsvc.services._shared.errors import StoreUnavailableError
from authsvc.services._shared.ports import (
    AccountSource,
    AccountView,
    Clock,
    CredentialStore,
    StoredCredential,
    SystemClock,
)

log = logging.getLogger(__name__)

# Keys outlive the credential so an expired token is still reported as
# expired rather than as missing.
EXPIRED_GRACE = timedelta(days=1)


@dataclass(slots=True)
class RedisCredentialStore(CredentialStore):
    """
    Redis-backed credential store with atomic compare-and-swap.

    One hash per account under ``cred:<account_id>`` holding ``hash`` and
    ``expires_at``. Account lookups are delegated to ``accounts`` (the SQL
    store in production).

    :param r: A Redis client (already connected, with socket timeouts set).
    :param accounts: Source of account records.
    :param clock: Time source for key TTLs.
    """

    r: redis.Redis
    accounts: AccountSource
    clock: Clock = field(default_factory=SystemClock)

    # -------------------- helpers --------------------

    @staticmethod
    def _k(account_id: int) -> str:
        return f"cred:{account_id}"

    @staticmethod
    def _b(value: bytes | str | None) -> str | None:
        if value is None:
            return None
        return value.decode() if isinstance(value, bytes | bytearray) else str(value)

    @staticmethod
    def _fields(refresh_token_hash: str, expires_at: datetime) -> dict[str, str]:
        return {"hash": refresh_token_hash, "expires_at": expires_at.isoformat()}

    def _ttl(self, expires_at: datetime) -> int:
        remaining = expires_at + EXPIRED_GRACE - self.clock.now()
        return max(1, int(remaining.total_seconds()))

    @staticmethod
    def _unavailable(op: str, exc: Exception) -> StoreUnavailableError:
        log.error(
            "store.redis_failed",
            extra={"event": "store.redis_failed", "reason": op},
            exc_info=exc,
        )
        return StoreUnavailableError()

    # -------------------- accounts -------------------

    def get_account_by_email(self, email: str) -> AccountView | None:
        return self.accounts.get_account_by_email(email)

    def get_account_by_id(self, account_id: int) -> AccountView | None:
        return self.accounts.get_account_by_id(account_id)

    # -------------------- credentials ----------------

    def get_stored_credential(self, account_id: int) -> StoredCredential | None:
        try:
            h = self.r.hgetall(self._k(account_id))
        except redis.RedisError as exc:
            raise self._unavailable("get", exc) from exc
        if not h:
            return None

        token_hash = self._b(h.get(b"hash"))
        expires_at = self._b(h.get(b"expires_at"))
        if not token_hash or not expires_at:
            return None
        try:
            parsed = datetime.fromisoformat(expires_at)
        except ValueError as exc:
            raise self._unavailable("get", exc) from exc
        return StoredCredential(
            account_id=account_id,
            refresh_token_hash=token_hash,
            expires_at=parsed,
        )

    def put_stored_credential(
        self, account_id: int, refresh_token_hash: str, expires_at: datetime
    ) -> None:
        key = self._k(account_id)
        try:
            with self.r.pipeline(transaction=True) as p:
                p.hset(key, mapping=self._fields(refresh_token_hash, expires_at))
                p.expire(key, self._ttl(expires_at))
                p.execute()
        except redis.RedisError as exc:
            raise self._unavailable("put", exc) from exc

    def swap_stored_credential(
        self,
        account_id: int,
        *,
        expected_hash: str,
        refresh_token_hash: str,
        expires_at: datetime,
    ) -> bool:
        """
        Replace the credential only while it still holds ``expected_hash``.

        Uses WATCH/MULTI/EXEC optimistic locking: a concurrent write between
        the read and EXEC aborts the transaction, and the retry then sees the
        new hash and reports the lost race.
        """
        key = self._k(account_id)
        try:
            while True:
                try:
                    with self.r.pipeline() as p:
                        p.watch(key)
                        current = self._b(p.hget(key, "hash"))
                        if current is None or current != expected_hash:
                            p.unwatch()
                            return False

                        p.multi()
                        p.hset(key, mapping=self._fields(refresh_token_hash, expires_at))
                        p.expire(key, self._ttl(expires_at))
                        p.execute()
                    return True
                except redis.WatchError:
                    # Concurrent modification detected; re-read and compare again
                    continue
        except redis.RedisError as exc:
            raise self._unavailable("swap", exc) from exc
