"""
Tests for password hashing and tokens
"""
import pytest
from datetime import datetime, timedelta, timezone

import jwt

from bridge.core.config import settings
from bridge.core.security import (
    TokenError,
    TokenExpiredError,
    create_access_token,
    create_state_token,
    decode_access_token,
    hash_password,
    verify_password,
    verify_state_token,
)


def test_hash_and_verify_password():
    hashed = hash_password("secret1")
    assert hashed != "secret1"
    assert hashed.startswith("$2")
    assert verify_password("secret1", hashed)
    assert not verify_password("wrongpass", hashed)


def test_verify_against_garbage_hash():
    assert verify_password("secret1", "not-a-hash") is False


def test_access_token_claims():
    token = create_access_token(7, "admin")
    payload = decode_access_token(token)

    assert payload["sub"] == "7"
    assert payload["role"] == "admin"
    assert payload["typ"] == "access"
    assert payload["exp"] - payload["iat"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60


def test_tokens_issued_together_differ():
    issued_at = datetime.now(timezone.utc)
    assert create_access_token(1, issued_at=issued_at) != create_access_token(1, issued_at=issued_at)


def test_expired_token():
    """Valid right after issuance, expired after the validity window"""
    issued_at = datetime.now(timezone.utc) - timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES + 1)
    token = create_access_token(1, issued_at=issued_at)
    with pytest.raises(TokenExpiredError):
        decode_access_token(token)


def test_tampered_token():
    token = create_access_token(1)
    with pytest.raises(TokenError):
        decode_access_token(token[:-2] + ("aa" if not token.endswith("aa") else "bb"))


def test_token_signed_with_other_key():
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": "1", "typ": "access", "iat": int(now.timestamp()), "exp": int((now + timedelta(hours=1)).timestamp())},
        "another-secret-key-that-is-also-long-enough",
        algorithm="HS256",
    )
    with pytest.raises(TokenError):
        decode_access_token(token)


def test_state_token_is_not_an_access_token():
    state = create_state_token()
    assert verify_state_token(state)
    with pytest.raises(TokenError):
        decode_access_token(state)


def test_access_token_is_not_a_state_token():
    assert not verify_state_token(create_access_token(1))
    assert not verify_state_token("garbage")


def test_expired_state_token():
    issued_at = datetime.now(timezone.utc) - timedelta(minutes=settings.OAUTH_STATE_EXPIRE_MINUTES + 1)
    assert not verify_state_token(create_state_token(issued_at=issued_at))
