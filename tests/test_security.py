import pytest
from datetime import timedelta
from jose import jwt

from marketplace.core.config import settings
from marketplace.core.exceptions import InvalidTokenError, ExpiredTokenError
from marketplace.core.security import (
    SessionIssuer, get_password_hash, verify_password,
    hash_password_async, verify_password_async,
)
from marketplace.models.users import UserRole


def test_password_hashing():
    """Test bcrypt hashing and verification"""
    password_hash = get_password_hash("secret123")
    assert password_hash != "secret123"
    assert password_hash.startswith("$2")
    assert verify_password("secret123", password_hash)
    assert not verify_password("secret124", password_hash)


def test_password_hash_is_salted():
    assert get_password_hash("secret123") != get_password_hash("secret123")


def test_verify_password_malformed_hash():
    assert verify_password("secret123", "not-a-bcrypt-hash") is False


@pytest.mark.asyncio
async def test_async_hashing_round_trip():
    password_hash = await hash_password_async("secret123")
    assert await verify_password_async("secret123", password_hash)
    assert not await verify_password_async("other", password_hash)


def test_issue_and_verify():
    issuer = SessionIssuer(settings.SECRET_KEY)
    token = issuer.issue({"user_id": "abc", "email": "a@example.com", "role": UserRole.ADMIN}, timedelta(hours=1))

    claims = issuer.verify(token)
    assert claims.user_id == "abc"
    assert claims.email == "a@example.com"
    assert claims.role == UserRole.ADMIN
    assert claims.expires_at > claims.issued_at


def test_verify_rejects_other_secret():
    token = SessionIssuer("first-secret-key").issue(
        {"user_id": "abc", "email": "a@example.com", "role": "user"}, timedelta(hours=1)
    )
    with pytest.raises(InvalidTokenError) as excinfo:
        SessionIssuer("second-secret-key").verify(token)
    assert not isinstance(excinfo.value, ExpiredTokenError)


def test_verify_rejects_expired_token():
    issuer = SessionIssuer(settings.SECRET_KEY)
    token = issuer.issue({"user_id": "abc", "email": "a@example.com", "role": "user"}, timedelta(seconds=-10))
    with pytest.raises(ExpiredTokenError):
        issuer.verify(token)


def test_verify_rejects_garbage():
    with pytest.raises(InvalidTokenError):
        SessionIssuer(settings.SECRET_KEY).verify("not.a.token")


def test_verify_requires_user_id():
    token = jwt.encode({"email": "a@example.com", "role": "user"}, settings.SECRET_KEY, algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        SessionIssuer(settings.SECRET_KEY).verify(token)


def test_verify_rejects_unknown_role():
    token = jwt.encode({"user_id": "abc", "role": "superuser"}, settings.SECRET_KEY, algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        SessionIssuer(settings.SECRET_KEY).verify(token)


def test_issuer_requires_secret():
    with pytest.raises(ValueError):
        SessionIssuer("")
