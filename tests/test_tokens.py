"""Unit tests for auth/tokens.py -- JWT issuance and verification.

Covers:
- issued tokens carry sub/email/username/iss/aud/iat/exp and verify cleanly
- expires_at returned by issue() equals the exp claim
- expiry boundary: valid one second before exp, expired AT exp and after
- tampered signature, foreign secret, wrong issuer/audience -> InvalidTokenError
- tokens missing required claims are rejected
"""

from __future__ import annotations

import base64
import json
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.models import User
from auth.tokens import InvalidTokenError, TokenExpiredError, TokenIssuer, TokenVerifier


@pytest.fixture
def user() -> User:
    return User(email="u@x.com", username="u", password_hash="unused")


def _tamper_signature(token: str) -> str:
    """Flip the FIRST character of the signature segment.

    The last base64url character of a 32-byte HMAC only carries padding bits
    in part, so changing it may decode to the same bytes. The first never does.
    """
    header, payload, signature = token.split(".")
    first = "A" if signature[0] != "A" else "B"
    return ".".join([header, payload, first + signature[1:]])


class TestIssue:
    def test_claims(self, token_settings, clock, user) -> None:
        token, _ = TokenIssuer(token_settings, clock=clock).issue(user)
        claims = jwt.get_unverified_claims(token)
        assert claims["sub"] == user.id
        assert claims["email"] == "u@x.com"
        assert claims["username"] == "u"
        assert claims["iss"] == token_settings.issuer
        assert claims["aud"] == token_settings.audience
        assert claims["iat"] == int(clock.now.timestamp())

    def test_expires_at_matches_exp_claim(self, token_settings, clock, user) -> None:
        token, expires_at = TokenIssuer(token_settings, clock=clock).issue(user)
        claims = jwt.get_unverified_claims(token)
        assert expires_at == clock.now + timedelta(minutes=token_settings.lifetime_minutes)
        assert claims["exp"] == int(expires_at.timestamp())

    def test_sub_second_clock_is_truncated(self, token_settings, user) -> None:
        now = datetime(2026, 1, 15, 12, 0, 0, 987654, tzinfo=timezone.utc)
        token, expires_at = TokenIssuer(token_settings, clock=lambda: now).issue(user)
        assert expires_at.microsecond == 0
        assert jwt.get_unverified_claims(token)["exp"] == int(expires_at.timestamp())

    def test_uses_hs256(self, token_settings, clock, user) -> None:
        token, _ = TokenIssuer(token_settings, clock=clock).issue(user)
        assert jwt.get_unverified_header(token)["alg"] == "HS256"


class TestVerifyTimeWindow:
    def test_fresh_token_verifies(self, token_settings, clock, user) -> None:
        token, _ = TokenIssuer(token_settings, clock=clock).issue(user)
        claims = TokenVerifier(token_settings, clock=clock).verify(token)
        assert claims["sub"] == user.id

    def test_one_second_before_expiry_is_valid(self, token_settings, clock, user) -> None:
        token, _ = TokenIssuer(token_settings, clock=clock).issue(user)
        clock.advance(minutes=token_settings.lifetime_minutes, seconds=-1)
        assert TokenVerifier(token_settings, clock=clock).verify(token)["sub"] == user.id

    def test_exactly_at_expiry_is_expired(self, token_settings, clock, user) -> None:
        """Zero clock skew: exp == now counts as expired."""
        token, _ = TokenIssuer(token_settings, clock=clock).issue(user)
        clock.advance(minutes=token_settings.lifetime_minutes)
        with pytest.raises(TokenExpiredError):
            TokenVerifier(token_settings, clock=clock).verify(token)

    def test_after_expiry_is_expired(self, token_settings, clock, user) -> None:
        token, _ = TokenIssuer(token_settings, clock=clock).issue(user)
        clock.advance(days=2)
        with pytest.raises(TokenExpiredError):
            TokenVerifier(token_settings, clock=clock).verify(token)


class TestVerifyRejectsForgery:
    def test_tampered_signature(self, token_settings, clock, user) -> None:
        token, _ = TokenIssuer(token_settings, clock=clock).issue(user)
        with pytest.raises(InvalidTokenError):
            TokenVerifier(token_settings, clock=clock).verify(_tamper_signature(token))

    def test_foreign_secret(self, token_settings, clock, user) -> None:
        other = replace(token_settings, secret_key="another-secret-key-of-at-least-32-chars!")
        token, _ = TokenIssuer(other, clock=clock).issue(user)
        with pytest.raises(InvalidTokenError):
            TokenVerifier(token_settings, clock=clock).verify(token)

    def test_wrong_issuer(self, token_settings, clock, user) -> None:
        token, _ = TokenIssuer(replace(token_settings, issuer="someone-else"), clock=clock).issue(user)
        with pytest.raises(InvalidTokenError):
            TokenVerifier(token_settings, clock=clock).verify(token)

    def test_wrong_audience(self, token_settings, clock, user) -> None:
        token, _ = TokenIssuer(replace(token_settings, audience="other-api"), clock=clock).issue(user)
        with pytest.raises(InvalidTokenError):
            TokenVerifier(token_settings, clock=clock).verify(token)

    def test_garbage(self, token_settings, clock) -> None:
        with pytest.raises(InvalidTokenError):
            TokenVerifier(token_settings, clock=clock).verify("garbage")

    def test_unsigned_token(self, token_settings, clock, user) -> None:
        """alg=none must never be accepted."""
        token, _ = TokenIssuer(token_settings, clock=clock).issue(user)
        _header, payload, _sig = token.split(".")
        none_header = base64.urlsafe_b64encode(json.dumps({"alg": "none", "typ": "JWT"}).encode()).rstrip(b"=").decode()
        with pytest.raises(InvalidTokenError):
            TokenVerifier(token_settings, clock=clock).verify(f"{none_header}.{payload}.")

    def test_expired_forgery_reports_invalid_not_expired(self, token_settings, clock, user) -> None:
        """Signature is checked before expiry -- a forged token never reveals 'expired'."""
        token, _ = TokenIssuer(token_settings, clock=clock).issue(user)
        clock.advance(days=1)
        with pytest.raises(InvalidTokenError):
            TokenVerifier(token_settings, clock=clock).verify(_tamper_signature(token))


class TestVerifyRequiresClaims:
    def _encode(self, token_settings, claims: dict) -> str:
        return jwt.encode(claims, token_settings.secret_key, algorithm="HS256")

    def _base_claims(self, token_settings, clock) -> dict:
        now = int(clock.now.timestamp())
        return {
            "sub": "user-1",
            "iss": token_settings.issuer,
            "aud": token_settings.audience,
            "iat": now,
            "exp": now + 600,
        }

    @pytest.mark.parametrize("missing", ["sub", "iss", "aud", "exp", "iat"])
    def test_missing_claim(self, token_settings, clock, missing) -> None:
        claims = self._base_claims(token_settings, clock)
        del claims[missing]
        with pytest.raises(InvalidTokenError):
            TokenVerifier(token_settings, clock=clock).verify(self._encode(token_settings, claims))

    def test_empty_subject(self, token_settings, clock) -> None:
        claims = self._base_claims(token_settings, clock)
        claims["sub"] = ""
        with pytest.raises(InvalidTokenError):
            TokenVerifier(token_settings, clock=clock).verify(self._encode(token_settings, claims))

    def test_non_numeric_exp(self, token_settings, clock) -> None:
        claims = self._base_claims(token_settings, clock)
        claims["exp"] = "tomorrow"
        with pytest.raises(InvalidTokenError):
            TokenVerifier(token_settings, clock=clock).verify(self._encode(token_settings, claims))


class TestDefaultClock:
    """Verifier built without a clock argument uses the wall clock."""

    def test_token_from_the_past_is_expired_not_invalid(self, token_settings, user) -> None:
        issued_at = datetime.now(timezone.utc) - timedelta(hours=2)
        token, _ = TokenIssuer(token_settings, clock=lambda: issued_at).issue(user)
        with pytest.raises(TokenExpiredError):
            TokenVerifier(token_settings).verify(token)

    def test_fresh_token_verifies(self, token_settings, user) -> None:
        token, _ = TokenIssuer(token_settings).issue(user)
        assert TokenVerifier(token_settings).verify(token)["sub"] == user.id

    def test_fixed_clock_ahead_of_wall_clock_is_honoured(self, token_settings, user) -> None:
        """A token already past exp in wall time is valid for a verifier whose clock says otherwise."""
        issued_at = datetime.now(timezone.utc) - timedelta(days=3)
        token, _ = TokenIssuer(token_settings, clock=lambda: issued_at).issue(user)
        verifier = TokenVerifier(token_settings, clock=lambda: issued_at + timedelta(minutes=1))
        assert verifier.verify(token)["sub"] == user.id
