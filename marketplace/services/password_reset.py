"""
Password-reset tokens: issued on request, redeemed once by the reset form.
"""
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.exceptions import InvalidTokenError, ExpiredTokenError
from marketplace.models.base import Base, utcnow, as_utc
from marketplace.models.users import PasswordResetToken

# 20 random bytes -> 160 bits, hex encoded
TOKEN_BYTES = 20


def generate_reset_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


class PasswordResetLedger:
    """Single-use, time-limited reset tokens stored in ``password_resets``.

    The ledger only stages changes on the session; callers own the commit so a
    token can be consumed in the same transaction as the password update.
    """

    def __init__(self, db: AsyncSession, ttl: timedelta):
        self.db = db
        self.ttl = ttl

    async def issue(self, user_sid: str, now: Optional[datetime] = None) -> PasswordResetToken:
        now = now or utcnow()
        record = PasswordResetToken(
            sid=Base.generate_sid(),
            user_sid=user_sid,
            token=generate_reset_token(),
            expires_at=now + self.ttl,
            created_at=now,
        )
        self.db.add(record)
        await self.db.flush()
        return record

    async def get(self, token: str) -> Optional[PasswordResetToken]:
        result = await self.db.execute(
            select(PasswordResetToken).where(PasswordResetToken.token == token)
        )
        return result.scalar_one_or_none()

    async def redeem(self, token: str, now: Optional[datetime] = None) -> PasswordResetToken:
        """Return the live record for ``token`` or raise.

        Expired records are left in place; they can never validate again.
        """
        record = await self.get(token)
        if record is None:
            raise InvalidTokenError("Token inválido o inexistente.")

        now = now or utcnow()
        if now > as_utc(record.expires_at):
            raise ExpiredTokenError("El token ha expirado.")
        return record

    async def consume(self, record: PasswordResetToken) -> None:
        """Delete the record; fails if another request already consumed it."""
        result = await self.db.execute(
            delete(PasswordResetToken).where(PasswordResetToken.id == record.id)
        )
        if result.rowcount != 1:
            raise InvalidTokenError("Token inválido o inexistente.")
