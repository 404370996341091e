"""
Unit tests for TokenCodec: access token signing/verification and refresh
token minting.
"""

from __future__ import annotations

import base64
from datetime import timedelta

import jwt
import pytest

from authsvc.services._shared.errors import (
    InvalidIPError,
    InvalidTokenError,
    MalformedTokenError,
    RandomnessFailureError,
    SigningFailureError,
    UnexpectedAlgorithmError,
)
from authsvc.services.credentials import TokenCodec
from tests.conftest import SIGNING_KEY


class TestAccessTokens:
    def test_round_trip_returns_claims(self, codec, clock):
        token = codec.issue_access_token("1.2.3.4")
        claims = codec.verify_access_token(token)

        now = int(clock.now().timestamp())
        assert claims.ip == "1.2.3.4"
        assert claims.issued_at == now
        assert claims.expires_at == now + 15 * 60

    def test_payload_has_exactly_the_fixed_claims(self, codec):
        token = codec.issue_access_token("1.2.3.4")
        payload = jwt.decode(
            token, SIGNING_KEY, algorithms=["HS256"], options={"verify_exp": False}
        )
        assert set(payload) == {"iat", "exp", "ip"}
        assert jwt.get_unverified_header(token)["alg"] == "HS256"

    def test_token_is_valid_up_to_and_including_expiry(self, codec, clock):
        token = codec.issue_access_token("1.2.3.4")
        clock.advance(timedelta(minutes=15))
        assert codec.verify_access_token(token).ip == "1.2.3.4"

    def test_token_is_invalid_one_second_after_expiry(self, codec, clock):
        token = codec.issue_access_token("1.2.3.4")
        clock.advance(timedelta(minutes=15, seconds=1))
        with pytest.raises(InvalidTokenError):
            codec.verify_access_token(token)

    def test_ipv6_addresses_are_normalized(self, codec):
        token = codec.issue_access_token("2001:DB8:0:0:0:0:0:1")
        assert codec.verify_access_token(token).ip == "2001:db8::1"

    @pytest.mark.parametrize("bad_ip", ["", "   ", "not-an-ip", "999.1.1.1", None])
    def test_issue_rejects_invalid_ip(self, codec, bad_ip):
        with pytest.raises(InvalidIPError):
            codec.issue_access_token(bad_ip)

    def test_missing_key_is_a_signing_failure(self, clock):
        codec = TokenCodec(secret_key=None, clock=clock)
        with pytest.raises(SigningFailureError):
            codec.issue_access_token("1.2.3.4")

    def test_wrong_key_is_rejected(self, codec, clock):
        other = TokenCodec(secret_key="another-signing-key-0123456789abcdef", clock=clock)
        token = other.issue_access_token("1.2.3.4")
        with pytest.raises(InvalidTokenError):
            codec.verify_access_token(token)

    def test_tampered_payload_is_rejected(self, codec):
        header, payload, signature = codec.issue_access_token("1.2.3.4").split(".")
        forged = base64.urlsafe_b64encode(b'{"iat":1,"exp":9999999999,"ip":"6.6.6.6"}')
        token = ".".join([header, forged.decode().rstrip("="), signature])
        with pytest.raises(InvalidTokenError):
            codec.verify_access_token(token)


class TestAlgorithmConfusion:
    def test_hs512_with_the_same_key_is_rejected(self, codec, clock):
        now = int(clock.now().timestamp())
        token = jwt.encode(
            {"iat": now, "exp": now + 60, "ip": "1.2.3.4"}, SIGNING_KEY, algorithm="HS512"
        )
        with pytest.raises(UnexpectedAlgorithmError):
            codec.verify_access_token(token)

    def test_unsigned_token_is_rejected(self, codec, clock):
        now = int(clock.now().timestamp())
        token = jwt.encode({"iat": now, "exp": now + 60, "ip": "1.2.3.4"}, None, algorithm="none")
        with pytest.raises(UnexpectedAlgorithmError):
            codec.verify_access_token(token)


class TestMalformedAccessTokens:
    @pytest.mark.parametrize("token", ["", "   ", "abc", "a.b", "not.a.jwt"])
    def test_garbage_is_malformed(self, codec, token):
        with pytest.raises(MalformedTokenError):
            codec.verify_access_token(token)

    @pytest.mark.parametrize(
        "payload",
        [
            {"iat": 1_704_067_200, "ip": "1.2.3.4"},
            {"exp": 1_704_068_100, "ip": "1.2.3.4"},
            {"iat": 1_704_067_200, "exp": "later", "ip": "1.2.3.4"},
            {"iat": 1_704_067_200, "exp": 1_704_068_100},
            {"iat": 1_704_067_200, "exp": 1_704_068_100, "ip": ""},
        ],
    )
    def test_missing_or_mistyped_claims_are_malformed(self, codec, payload):
        token = jwt.encode(payload, SIGNING_KEY, algorithm="HS256")
        with pytest.raises(MalformedTokenError):
            codec.verify_access_token(token)


class TestRefreshTokens:
    def test_format_is_ip_pipe_base64url(self, codec):
        raw = codec.issue_refresh_token("1.2.3.4")
        ip, suffix = raw.split("|")
        assert ip == "1.2.3.4"
        assert len(base64.urlsafe_b64decode(suffix)) == 32

    def test_tokens_are_unique(self, codec):
        tokens = {codec.issue_refresh_token("1.2.3.4") for _ in range(50)}
        assert len(tokens) == 50

    def test_split_round_trips(self, codec):
        raw = codec.issue_refresh_token("10.0.0.1")
        ip, suffix = TokenCodec.split_refresh_token(raw)
        assert ip == "10.0.0.1"
        assert raw == f"{ip}|{suffix}"

    @pytest.mark.parametrize("raw", ["", "no-separator", "a|b|c", "||"])
    def test_split_rejects_wrong_part_count(self, raw):
        with pytest.raises(MalformedTokenError):
            TokenCodec.split_refresh_token(raw)

    def test_rng_failure_is_reported(self, clock):
        def broken(_: int) -> bytes:
            raise OSError("entropy pool unavailable")

        codec = TokenCodec(secret_key=SIGNING_KEY, clock=clock, random_bytes=broken)
        with pytest.raises(RandomnessFailureError):
            codec.issue_refresh_token("1.2.3.4")

    def test_short_read_is_reported(self, clock):
        codec = TokenCodec(secret_key=SIGNING_KEY, clock=clock, random_bytes=lambda n: b"\x00")
        with pytest.raises(RandomnessFailureError):
            codec.issue_refresh_token("1.2.3.4")

    def test_pair_embeds_the_same_ip(self, codec):
        access, refresh = codec.issue_pair("1.2.3.4")
        assert codec.verify_access_token(access).ip == "1.2.3.4"
        assert refresh.startswith("1.2.3.4|")
