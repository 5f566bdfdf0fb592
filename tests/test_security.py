from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from jose import jwt

from app.core.config import settings
from app.core.security import (
    create_access_token, create_refresh_token, decode_refresh_token,
    get_password_hash, verify_access_token, verify_password
)
from app.models.user import User, UserRoleEnum


def make_user():
    return User(id="user-1", email="someone@example.com", role=UserRoleEnum.client)


def test_password_hash_roundtrip():
    hashed = get_password_hash("Secret123")
    assert hashed != "Secret123"
    assert verify_password("Secret123", hashed)
    assert not verify_password("secret123", hashed)


def test_access_token_carries_identity():
    token = create_access_token(make_user())
    data = verify_access_token(token)
    assert data.user_id == "user-1"
    assert data.email == "someone@example.com"
    assert data.role == "client"


def test_access_token_expires_after_configured_minutes():
    token = create_access_token(make_user())
    payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    lifetime = payload["exp"] - datetime.now(timezone.utc).timestamp()
    assert 0 < lifetime <= settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60


def test_expired_access_token_is_rejected():
    payload = {
        "user_id": "user-1", "role": "client", "type": "access",
        "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
    }
    token = jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    with pytest.raises(HTTPException) as exc_info:
        verify_access_token(token)
    assert exc_info.value.status_code == 401
    assert "expired" in exc_info.value.detail


def test_refresh_token_is_not_an_access_token():
    refresh_token, _ = create_refresh_token("user-1")
    with pytest.raises(HTTPException) as exc_info:
        verify_access_token(refresh_token)
    assert exc_info.value.status_code == 401


def test_refresh_token_decodes_with_refresh_secret():
    refresh_token, expires_at = create_refresh_token("user-1")
    assert decode_refresh_token(refresh_token) == "user-1"
    # 存入資料庫的到期時間為不含時區的 UTC
    assert expires_at.tzinfo is None
    assert expires_at > datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS - 1)


def test_refresh_tokens_are_unique():
    first, _ = create_refresh_token("user-1")
    second, _ = create_refresh_token("user-1")
    assert first != second


def test_access_token_is_not_a_refresh_token():
    assert decode_refresh_token(create_access_token(make_user())) is None
    assert decode_refresh_token("not-a-jwt") is None
