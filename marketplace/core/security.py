"""
Password hashing and session tokens.

Passwords are hashed with bcrypt directly (no passlib wrapper). Hashing and
checking are CPU-bound, so the async helpers push them onto worker threads
behind a capacity limiter; request handlers never run bcrypt on the event loop.

Session tokens are HS256 JWTs (python-jose) carrying ``user_id``, ``email``,
``role``, ``iat`` and ``exp``. The server keeps no session state: a token is
valid until its ``exp`` whatever happens to the account afterwards.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import anyio
import bcrypt
from fastapi import Request
from jose import jwt, JWTError, ExpiredSignatureError

from marketplace.core.config import settings
from marketplace.core.exceptions import InvalidTokenError, ExpiredTokenError
from marketplace.models.users import UserRole

ALGORITHM = "HS256"

# bcrypt only reads the first 72 bytes; bcrypt 5 rejects longer secrets
BCRYPT_MAX_BYTES = 72

_hash_limiter: Optional[anyio.CapacityLimiter] = None


def get_password_hash(password: str, rounds: Optional[int] = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def _limiter() -> anyio.CapacityLimiter:
    global _hash_limiter
    if _hash_limiter is None:
        _hash_limiter = anyio.CapacityLimiter(settings.HASH_WORKERS)
    return _hash_limiter


async def hash_password_async(password: str) -> str:
    return await anyio.to_thread.run_sync(get_password_hash, password, limiter=_limiter())


async def verify_password_async(password: str, password_hash: str) -> bool:
    return await anyio.to_thread.run_sync(verify_password, password, password_hash, limiter=_limiter())


@dataclass(frozen=True)
class SessionClaims:
    user_id: str
    email: str
    role: UserRole
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class SessionIssuer:
    """Signs and verifies session tokens with a symmetric secret."""

    def __init__(self, secret_key: str, algorithm: str = ALGORITHM):
        if not secret_key:
            raise ValueError("secret_key is required")
        self._secret_key = secret_key
        self._algorithm = algorithm

    def issue(self, claims: Dict[str, Any], ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        role = claims["role"]
        payload = {
            "user_id": claims["user_id"],
            "email": claims.get("email", ""),
            "role": role.value if isinstance(role, UserRole) else role,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> SessionClaims:
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except ExpiredSignatureError:
            raise ExpiredTokenError("Token expirado.")
        except JWTError:
            raise InvalidTokenError("Token inválido.")

        user_id = payload.get("user_id")
        if not user_id:
            raise InvalidTokenError("Token inválido: Falta 'user_id' en el payload.")

        try:
            role = UserRole(payload.get("role", UserRole.USER.value))
        except ValueError:
            raise InvalidTokenError("Token inválido: rol desconocido.")

        return SessionClaims(
            user_id=str(user_id),
            email=payload.get("email") or "",
            role=role,
            issued_at=_from_timestamp(payload.get("iat")),
            expires_at=_from_timestamp(payload.get("exp")),
        )


def _from_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def get_session_issuer(request: Request) -> SessionIssuer:
    return request.app.state.session_issuer
