# tests/test_core/test_security.py

from datetime import timedelta
from uuid import uuid4

import pytest
from jose import jwt

from app.core.config import settings
from app.core.exceptions import AuthFailed
from app.core.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    get_user_id_from_payload,
    verify_password,
)


def test_password_hash_roundtrip():
    hashed = get_password_hash("s3cret!")
    assert hashed != "s3cret!"
    assert verify_password("s3cret!", hashed)
    assert not verify_password("wrong", hashed)


def test_verify_password_tolerates_garbage_hash():
    assert verify_password("x", "not-a-bcrypt-hash") is False


def test_access_token_carries_user_id():
    user_id = uuid4()
    claims = decode_access_token(create_access_token(user_id))
    assert claims["sub"] == str(user_id)
    assert get_user_id_from_payload(claims) == user_id


def test_expired_token_rejected():
    token = create_access_token(uuid4(), expires_delta=timedelta(seconds=-5))
    with pytest.raises(AuthFailed) as exc:
        decode_access_token(token)
    assert exc.value.status_code == 401
    assert exc.value.code == "token_invalid"


def test_foreign_signature_rejected():
    token = jwt.encode({"sub": str(uuid4())}, "another-secret", algorithm=settings.JWT_ALGORITHM)
    with pytest.raises(AuthFailed):
        decode_access_token(token)


def test_non_access_token_type_rejected():
    token = jwt.encode(
        {"sub": str(uuid4()), "token_type": "refresh"},
        settings.JWT_SECRET_KEY.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(AuthFailed):
        decode_access_token(token)


@pytest.mark.parametrize("payload", [{}, {"sub": "not-a-uuid"}])
def test_malformed_subject_rejected(payload):
    with pytest.raises(AuthFailed):
        get_user_id_from_payload(payload)
