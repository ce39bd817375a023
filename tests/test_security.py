"""Tests for password hashing and the identity token service."""

from __future__ import annotations

from datetime import timedelta

import jwt
import pytest

from factorlens.core.results import ErrorKind, Failure, Ok
from factorlens.core.security import (
    JWT_ALGORITHM,
    TokenService,
    hash_password,
    verify_password,
)


class TestPasswordHashing:
    def test_hash_verifies(self):
        hashed = hash_password("correct horse")
        assert hashed != "correct horse"
        assert verify_password("correct horse", hashed) is True

    def test_wrong_password_rejected(self):
        hashed = hash_password("correct horse")
        assert verify_password("battery staple", hashed) is False

    def test_garbage_hash_rejected(self):
        """A value that is not a bcrypt hash never verifies."""
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestTokenIssue:
    def test_subject_round_trips(self, tokens: TokenService):
        token = tokens.issue("alice@example.com")
        assert tokens.extract_subject(token) == Ok("alice@example.com")

    def test_token_has_three_segments(self, tokens: TokenService):
        assert tokens.issue("alice@example.com").count(".") == 2

    def test_expiry_follows_ttl(self, tokens: TokenService, clock):
        token = tokens.issue("alice@example.com")
        claims = jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False},
            algorithms=[JWT_ALGORITHM],
        )
        assert claims["iat"] == int(clock.now.timestamp())
        assert claims["exp"] - claims["iat"] == int(tokens.ttl.total_seconds())

    def test_extra_claims_cannot_override_subject(self, tokens: TokenService):
        token = tokens.issue("alice@example.com", {"sub": "mallory@example.com", "role": "USER"})
        claims = jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False},
            algorithms=[JWT_ALGORITHM],
        )
        assert claims["sub"] == "alice@example.com"
        assert claims["role"] == "USER"


class TestTokenValidation:
    def test_valid_for_own_subject(self, tokens: TokenService):
        token = tokens.issue("alice@example.com")
        assert tokens.is_valid(token, "alice@example.com") is True

    def test_invalid_for_other_subject(self, tokens: TokenService):
        token = tokens.issue("alice@example.com")
        assert tokens.is_valid(token, "bob@example.com") is False

    def test_expired_token_is_invalid(self, tokens: TokenService, clock):
        token = tokens.issue("alice@example.com")
        clock.advance(tokens.ttl + timedelta(seconds=1))
        assert tokens.is_valid(token, "alice@example.com") is False

    def test_expired_token_still_yields_subject(self, tokens: TokenService, clock):
        """Expiry is enforced by is_valid, not by subject extraction."""
        token = tokens.issue("alice@example.com")
        clock.advance(tokens.ttl + timedelta(minutes=5))
        assert tokens.extract_subject(token) == Ok("alice@example.com")

    def test_valid_just_before_expiry(self, tokens: TokenService, clock):
        token = tokens.issue("alice@example.com")
        clock.advance(tokens.ttl - timedelta(seconds=1))
        assert tokens.is_valid(token, "alice@example.com") is True

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c", "eyJhbGciOi.x"])
    def test_malformed_token_rejected(self, tokens: TokenService, token: str):
        result = tokens.extract_subject(token)
        assert isinstance(result, Failure)
        assert result.kind is ErrorKind.UNAUTHENTICATED
        assert tokens.is_valid(token, "alice@example.com") is False

    def test_tampered_signature_rejected(self, tokens: TokenService):
        token = tokens.issue("alice@example.com")
        header, payload, signature = token.split(".")
        flipped = ("A" if signature[0] != "A" else "B") + signature[1:]
        result = tokens.extract_subject(f"{header}.{payload}.{flipped}")
        assert isinstance(result, Failure)

    def test_foreign_secret_rejected(self, tokens: TokenService, clock):
        other = TokenService(
            "another-secret-key-that-is-also-32-bytes-long", ttl=tokens.ttl, clock=clock
        )
        token = other.issue("alice@example.com")
        assert isinstance(tokens.extract_subject(token), Failure)
        assert tokens.is_valid(token, "alice@example.com") is False

    def test_token_without_subject_rejected(self, tokens: TokenService, clock):
        token = jwt.encode(
            {"exp": int(clock.now.timestamp()) + 60},
            "test-secret-key-that-is-at-least-32-bytes-long",
            algorithm=JWT_ALGORITHM,
        )
        assert isinstance(tokens.extract_subject(token), Failure)
