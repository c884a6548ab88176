from datetime import datetime, timedelta, timezone

import jwt
import pytest

from src.api.tokens import TOKEN_LIFETIME, InvalidTokenError, TokenCodec

SECRET = "unit-secret-0123456789abcdef0123456789abcdef"


@pytest.fixture
def codec():
    return TokenCodec(SECRET)


def test_issue_then_verify_returns_user_id(codec):
    token = codec.issue("user-1")
    assert codec.verify(token) == "user-1"
    # Verification is pure: same answer every time within the window.
    assert codec.verify(token) == "user-1"


def test_claims_carry_seven_day_expiry(codec):
    now = datetime(2030, 1, 1, tzinfo=timezone.utc)
    token = codec.issue("user-1", now=now)
    claims = jwt.decode(token, SECRET, algorithms=["HS256"], options={"verify_exp": False, "verify_iat": False})
    assert claims["sub"] == "user-1"
    assert claims["exp"] - claims["iat"] == int(TOKEN_LIFETIME.total_seconds())
    assert TOKEN_LIFETIME == timedelta(days=7)


def test_expired_token_is_rejected_even_with_valid_signature(codec):
    issued = datetime.now(timezone.utc) - TOKEN_LIFETIME - timedelta(seconds=5)
    token = codec.issue("user-1", now=issued)
    with pytest.raises(InvalidTokenError, match="expired"):
        codec.verify(token)


def test_token_signed_with_other_secret_is_rejected(codec):
    forged = TokenCodec("other-secret-0123456789abcdef0123456789ab").issue("user-1")
    with pytest.raises(InvalidTokenError):
        codec.verify(forged)


def test_tampered_payload_is_rejected(codec):
    header, payload, signature = codec.issue("user-1").split(".")
    other_payload = TokenCodec(SECRET).issue("user-2").split(".")[1]
    with pytest.raises(InvalidTokenError):
        codec.verify(".".join([header, other_payload, signature]))


@pytest.mark.parametrize("token", ["", "abc", "a.b.c", "....."])
def test_malformed_tokens_are_rejected(codec, token):
    with pytest.raises(InvalidTokenError):
        codec.verify(token)


def test_token_without_subject_is_rejected(codec):
    now = datetime.now(timezone.utc)
    token = jwt.encode({"iat": now, "exp": now + timedelta(hours=1)}, SECRET, algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        codec.verify(token)


def test_token_with_empty_subject_is_rejected(codec):
    now = datetime.now(timezone.utc)
    token = jwt.encode({"sub": "", "iat": now, "exp": now + timedelta(hours=1)}, SECRET, algorithm="HS256")
    with pytest.raises(InvalidTokenError, match="subject"):
        codec.verify(token)


def test_unsigned_token_is_rejected(codec):
    now = datetime.now(timezone.utc)
    token = jwt.encode({"sub": "user-1", "iat": now, "exp": now + timedelta(hours=1)}, None, algorithm="none")
    with pytest.raises(InvalidTokenError):
        codec.verify(token)


def test_empty_secret_is_refused():
    with pytest.raises(ValueError):
        TokenCodec("")
