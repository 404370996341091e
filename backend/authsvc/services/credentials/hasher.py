"""Adaptive, salted one-way hashing for passwords and refresh tokens."""

from __future__ import annotations

import logging

from werkzeug.security import check_password_hash, generate_password_hash

from authsvc.services._shared.errors import MalformedHashError, WeakSecretError

log = logging.getLogger(__name__)

HASH_ALGORITHM = "sha256"


class PasswordHasher:
    """
    PBKDF2 hasher built on Werkzeug's password helpers.

    Output looks like ``pbkdf2:sha256:<iterations>$<salt>$<hex digest>``, so
    algorithm, work factor and salt travel with the hash and verification
    needs no external state. Digest comparison is constant time
    (``hmac.compare_digest`` inside Werkzeug).
    """

    def __init__(self, *, work_factor: int = 600_000, min_length: int = 8) -> None:
        self.work_factor = int(work_factor)
        self.min_length = int(min_length)
        self.method = f"pbkdf2:{HASH_ALGORITHM}:{self.work_factor}"

    def hash(self, plaintext: str) -> str:
        """
        Hash a password with a fresh random salt.

        :param plaintext: Secret to hash.
        :returns: Self-describing hash string.
        :raises WeakSecretError: If ``plaintext`` is shorter than ``min_length``.
        """
        if not isinstance(plaintext, str) or len(plaintext) < self.min_length:
            raise WeakSecretError(self.min_length)
        return generate_password_hash(plaintext, method=self.method)

    def hash_token(self, token: str) -> str:
        """
        Hash a machine-generated token.

        Same format and work factor as :meth:`hash`, but ``min_length`` is a
        password rule and does not apply here.

        :raises WeakSecretError: If ``token`` is empty or not a string.
        """
        if not isinstance(token, str) or not token:
            raise WeakSecretError(self.min_length)
        return generate_password_hash(token, method=self.method)

    def verify(self, plaintext: str, hashed: str) -> bool:
        """
        Check ``plaintext`` against a stored hash.

        :returns: ``True`` on match, ``False`` on mismatch.
        :raises MalformedHashError: If ``hashed`` is not a parsable hash.
        """
        if not isinstance(hashed, str) or hashed.count("$") < 2:
            raise MalformedHashError()
        method = hashed.split("$", 1)[0]
        if not method.startswith("pbkdf2:") and not method.startswith("scrypt"):
            raise MalformedHashError()
        try:
            return bool(check_password_hash(hashed, plaintext))
        except (ValueError, TypeError) as exc:
            log.error(
                "hash.verify_failed",
                extra={"event": "hash.malformed", "reason": type(exc).__name__},
            )
            raise MalformedHashError() from exc

