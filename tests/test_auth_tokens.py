from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from app.core.config import JWT_ALGORITHM, JWT_SECRET_KEY
from app.models.user import Role
from app.services.auth import InvalidTokenError, create_access_token, decode_access_token
from app.services.passwords import hash_password, verify_password


def test_token_round_trip_yields_fixed_shape_claims():
    token = create_access_token("user-123", email="a@x.com", role=Role.EMPLOYEE)

    claims = decode_access_token(token)

    assert claims.user_id == "user-123"
    assert claims.email == "a@x.com"
    assert claims.role is Role.EMPLOYEE
    assert claims.exp > claims.iat


def test_expired_token_is_rejected():
    token = create_access_token("user-123", email="a@x.com", role="ADMIN", expires_minutes=-1)

    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


def test_token_signed_with_another_secret_is_rejected():
    token = jwt.encode(
        {"sub": "user-123", "email": "a@x.com", "role": "ADMIN", "exp": 4102444800},
        "not-the-server-secret",
        algorithm=JWT_ALGORITHM,
    )

    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


def test_token_with_unknown_role_is_rejected():
    exp = int((datetime.now(timezone.utc) + timedelta(minutes=5)).timestamp())
    token = jwt.encode(
        {"sub": "user-123", "email": "a@x.com", "role": "SUPERUSER", "exp": exp},
        JWT_SECRET_KEY,
        algorithm=JWT_ALGORITHM,
    )

    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


def test_sub_claim_is_accepted_when_user_id_is_missing():
    exp = int((datetime.now(timezone.utc) + timedelta(minutes=5)).timestamp())
    token = jwt.encode(
        {"sub": "user-9", "email": "b@x.com", "role": "EMPLOYEE", "exp": exp},
        JWT_SECRET_KEY,
        algorithm=JWT_ALGORITHM,
    )

    assert decode_access_token(token).user_id == "user-9"


def test_garbage_token_is_rejected():
    with pytest.raises(InvalidTokenError):
        decode_access_token("not-a-jwt")


def test_password_hash_verifies_only_the_original_password():
    hashed = hash_password("SecurePass123")

    assert hashed != "SecurePass123"
    assert verify_password("SecurePass123", hashed) is True
    assert verify_password("WrongPass123", hashed) is False


def test_password_longer_than_bcrypt_limit_still_hashes():
    long_password = "x" * 100
    hashed = hash_password(long_password)

    assert verify_password(long_password, hashed) is True


def test_verify_password_rejects_malformed_hash():
    assert verify_password("SecurePass123", "") is False
    assert verify_password("SecurePass123", "not-a-bcrypt-hash") is False
