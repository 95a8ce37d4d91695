from datetime import datetime, timedelta, timezone

import jwt
import pytest
from pydantic import ValidationError

from conftest import make_token
from storefront.config import settings
from storefront.security import UserClaims, decode_access_token


def test_decode_access_token():
    claims = decode_access_token(make_token(7))

    assert claims.user_id == 7
    assert claims.email == "user7@example.com"
    assert claims.is_admin is False


def test_admin_can_access_any_user():
    admin = decode_access_token(make_token(1, role="admin"))
    customer = UserClaims(sub=7)

    assert admin.can_access_user(7) is True
    assert customer.can_access_user(7) is True
    assert customer.can_access_user(8) is False


def test_decode_rejects_wrong_secret():
    token = make_token(7, secret="another-secret-that-is-also-long-enough")

    with pytest.raises(jwt.InvalidSignatureError):
        decode_access_token(token)


def test_decode_rejects_expired_token():
    with pytest.raises(jwt.ExpiredSignatureError):
        decode_access_token(make_token(7, expires_in=-60))


def test_decode_requires_user_id():
    token = jwt.encode(
        {"role": "customer", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM
    )

    with pytest.raises(ValidationError):
        decode_access_token(token)
