"""Signing/verification of access tokens and generation of refresh tokens."""

from __future__ import annotations

import base64
import logging
import secrets
from collections.abc import Callable
from datetime import timedelta

import jwt

from authsvc.services._shared.errors import (
    InvalidTokenError,
    MalformedTokenError,
    RandomnessFailureError,
    SigningFailureError,
    UnexpectedAlgorithmError,
)
from authsvc.services._shared.policies.common import normalize_client_ip
from authsvc.services._shared.ports.clock import Clock, SystemClock
from authsvc.services.credentials.dto import AccessClaims

log = logging.getLogger(__name__)

# The only algorithm this codec signs with or accepts.
SIGNING_ALGORITHM = "HS256"

# rawValue = "<client ip>|<base64url random suffix>"
REFRESH_TOKEN_SEPARATOR = "|"
REFRESH_TOKEN_PARTS = 2

# Expiry and issued-at are checked against the injected clock, not PyJWT's wall clock.
_DECODE_OPTIONS = {
    "verify_signature": True,
    "verify_exp": False,
    "verify_iat": False,
    "verify_nbf": False,
}


class TokenCodec:
    """
    Issue and verify access tokens; mint raw refresh tokens.

    Both token types embed the client IP so a token replayed from another
    network can be rejected without server-side session state.
    """

    def __init__(
        self,
        *,
        secret_key: str | None,
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_token_bytes: int = 32,
        clock: Clock | None = None,
        random_bytes: Callable[[int], bytes] = secrets.token_bytes,
    ) -> None:
        """
        :param secret_key: Symmetric HMAC key.
        :param access_ttl: Access token lifetime.
        :param refresh_token_bytes: Length of the random refresh suffix, in bytes.
        :param clock: Time source for ``iat``/``exp`` and expiry checks.
        :param random_bytes: Cryptographically secure byte source.
        """
        self._key = secret_key
        self.access_ttl = access_ttl
        self.refresh_token_bytes = refresh_token_bytes
        self.clock: Clock = clock or SystemClock()
        self._random_bytes = random_bytes

    # ------------------------------------------------------------------ #
    # Access tokens
    # ------------------------------------------------------------------ #

    def issue_access_token(self, client_ip: str) -> str:
        """
        Sign ``{iat: now, exp: now + access_ttl, ip: client_ip}``.

        :raises InvalidIPError: If ``client_ip`` is not an IP address.
        :raises SigningFailureError: If the key is absent or signing fails.
        """
        token, _ = self.issue_access(client_ip)
        return token

    def issue_access(self, client_ip: str) -> tuple[str, AccessClaims]:
        """Like :meth:`issue_access_token`, also returning the signed claims."""
        ip = normalize_client_ip(client_ip)
        if not self._key:
            raise SigningFailureError("signing key is not configured")

        issued_at = int(self.clock.now().timestamp())
        claims = AccessClaims(
            issued_at=issued_at,
            expires_at=issued_at + int(self.access_ttl.total_seconds()),
            ip=ip,
        )
        try:
            token = jwt.encode(claims.to_payload(), self._key, algorithm=SIGNING_ALGORITHM)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            log.error("token.sign_failed", extra={"event": "token.sign_failed"}, exc_info=True)
            raise SigningFailureError() from exc
        return token, claims

    def verify_access_token(self, token: str) -> AccessClaims:
        """
        Verify signature, algorithm and expiry of an access token.

        :returns: The typed claim set.
        :raises UnexpectedAlgorithmError: If the header declares another algorithm.
        :raises MalformedTokenError: If the token or its required claims are malformed.
        :raises InvalidTokenError: If the signature is wrong or ``now > exp``.
        """
        token = (token or "").strip()
        if not token:
            raise MalformedTokenError("empty access token")

        try:
            header = jwt.get_unverified_header(token)
        except jwt.PyJWTError as exc:
            raise MalformedTokenError() from exc

        if header.get("alg") != SIGNING_ALGORITHM:
            log.warning(
                "token.unexpected_algorithm",
                extra={"event": "token.unexpected_algorithm", "reason": str(header.get("alg"))},
            )
            raise UnexpectedAlgorithmError(f"unexpected signing method: {header.get('alg')}")

        try:
            payload = jwt.decode(
                token,
                self._key or "",
                algorithms=[SIGNING_ALGORITHM],
                options=_DECODE_OPTIONS,
            )
        except jwt.InvalidSignatureError as exc:
            raise InvalidTokenError() from exc
        except jwt.DecodeError as exc:
            raise MalformedTokenError() from exc
        except jwt.PyJWTError as exc:
            raise InvalidTokenError() from exc

        claims = AccessClaims.from_payload(payload)
        if int(self.clock.now().timestamp()) > claims.expires_at:
            raise InvalidTokenError("access token has expired")
        return claims

    # ------------------------------------------------------------------ #
    # Refresh tokens
    # ------------------------------------------------------------------ #

    def issue_refresh_token(self, client_ip: str) -> str:
        """
        Mint ``"<ip>|" + base64url(random bytes)``.

        :raises InvalidIPError: If ``client_ip`` is not an IP address.
        :raises RandomnessFailureError: If the secure random source fails.
        """
        ip = normalize_client_ip(client_ip)
        try:
            raw = self._random_bytes(self.refresh_token_bytes)
        except (OSError, NotImplementedError) as exc:
            log.error("token.rng_failed", extra={"event": "token.rng_failed"}, exc_info=True)
            raise RandomnessFailureError() from exc
        if len(raw) != self.refresh_token_bytes:
            raise RandomnessFailureError("secure random source returned a short read")

        suffix = base64.urlsafe_b64encode(raw).decode("ascii")
        return f"{ip}{REFRESH_TOKEN_SEPARATOR}{suffix}"

    def issue_pair(self, client_ip: str) -> tuple[str, str]:
        """Return ``(access_token, refresh_token)`` for ``client_ip``."""
        return self.issue_access_token(client_ip), self.issue_refresh_token(client_ip)

    @staticmethod
    def split_refresh_token(raw: str) -> tuple[str, str]:
        """
        Split a raw refresh token into ``(embedded_ip, random_suffix)``.

        :raises MalformedTokenError: Unless the token has exactly two parts.
        """
        parts = (raw or "").split(REFRESH_TOKEN_SEPARATOR)
        if len(parts) != REFRESH_TOKEN_PARTS:
            raise MalformedTokenError("invalid refresh token")
        return parts[0], parts[1]
