"""
Unit tests for token and password helpers (core/security.py)
"""
from datetime import UTC, datetime, timedelta
import inspect

import pytest

from translation_service.core.config import settings
from translation_service.core.security import (
    create_access_token,
    decode_token,
    get_password_hash,
    verify_password,
)


class TestAccessTokens:
    """Test access token creation and decoding."""

    def test_expiry_follows_settings(self):
        before = datetime.now(UTC)
        token, jti, expires_at = create_access_token("user-1")
        lifetime = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

        assert before + lifetime <= expires_at <= datetime.now(UTC) + lifetime
        payload = decode_token(token)
        assert payload["exp"] == int(expires_at.timestamp())
        assert payload["jti"] == jti

    def test_claims(self):
        token, jti, _ = create_access_token("user-1")
        payload = decode_token(token)

        assert payload["sub"] == "user-1"
        assert payload["type"] == "access"

    def test_each_token_gets_its_own_jti(self):
        assert create_access_token("u")[1] != create_access_token("u")[1]

    def test_lifetime_cannot_be_overridden_by_callers(self):
        assert list(inspect.signature(create_access_token).parameters) == ["subject"]
        with pytest.raises(TypeError):
            create_access_token("user-1", timedelta(days=365))


class TestPasswords:
    def test_hash_round_trip(self):
        hashed = get_password_hash("correct-horse-battery")

        assert hashed != "correct-horse-battery"
        assert verify_password("correct-horse-battery", hashed)
        assert not verify_password("wrong-password", hashed)
