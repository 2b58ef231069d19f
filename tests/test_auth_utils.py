"""
Unit tests for password hashing and JWT helpers.
"""

import uuid
from datetime import timedelta

from app.utils.auth import (
    create_access_token,
    create_user_token,
    decode_access_token,
    extract_user_id_from_token,
    get_password_hash,
    verify_password,
)


def test_password_hash_verifies():
    hashed = get_password_hash("secret123")

    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("secret124", hashed)


def test_password_hash_is_salted():
    assert get_password_hash("secret123") != get_password_hash("secret123")


def test_user_token_carries_user_id():
    user_id = uuid.uuid4()

    token = create_user_token(user_id)

    assert extract_user_id_from_token(token) == str(user_id)
    assert "exp" in decode_access_token(token)


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "someone"}, expires_delta=timedelta(seconds=-5))

    assert decode_access_token(token) is None
    assert extract_user_id_from_token(token) is None


def test_tampered_token_is_rejected():
    token = create_user_token(uuid.uuid4())
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])

    assert decode_access_token(tampered) is None
