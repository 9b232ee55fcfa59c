"""
Account registration, login and password-reset flows.

The admin role is gated by a single shared code (``ADMIN_CODE``) that must be
supplied on signup and on every admin login. It is not a per-admin credential.
"""
import hmac
from datetime import timedelta
from typing import Any, Dict, Optional

from email_validator import validate_email, EmailNotValidError
from fastapi import Depends
from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.config import settings as default_settings, Settings
from marketplace.core.exceptions import (
    ValidationError, ConflictError, AuthorizationError,
    InvalidCredentialsError, NotFoundError,
)
from marketplace.core.security import (
    SessionIssuer, get_session_issuer, hash_password_async, verify_password_async,
    BCRYPT_MAX_BYTES,
)
from marketplace.db.session import get_db
from marketplace.models.base import Base
from marketplace.models.users import User, UserRole
from marketplace.services.email import EmailSender, get_email_sender, render_password_reset_email
from marketplace.services.password_reset import PasswordResetLedger


def parse_role(role: Optional[str]) -> UserRole:
    try:
        return UserRole(role)
    except ValueError:
        raise ValidationError("Rol inválido.")


def admin_code_matches(candidate: Optional[str], admin_code: str) -> bool:
    if not candidate:
        return False
    return hmac.compare_digest(candidate.strip().encode("utf-8"), admin_code.strip().encode("utf-8"))


def normalize_email(email: Optional[str]) -> Optional[str]:
    return email.strip().lower() if email else email


class AuthService:
    def __init__(
            self,
            db: AsyncSession,
            issuer: SessionIssuer,
            email_sender: EmailSender,
            settings: Settings = default_settings,
    ):
        self.db = db
        self.issuer = issuer
        self.email_sender = email_sender
        self.settings = settings
        self.resets = PasswordResetLedger(
            db, ttl=timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
        )

    def _check_admin_code(self, admin_password: Optional[str]) -> None:
        if not admin_code_matches(admin_password, self.settings.ADMIN_CODE):
            raise AuthorizationError("Contraseña de Admin incorrecta.", status_code=400)

    def _check_password_length(self, password: str, message: str) -> None:
        if len(password) < self.settings.PASSWORD_MIN_LENGTH:
            raise ValidationError(message)
        if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValidationError(f"La contraseña no puede superar los {BCRYPT_MAX_BYTES} bytes.")

    async def _get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def _get_user_by_sid(self, user_sid: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.sid == user_sid))
        return result.scalar_one_or_none()

    def _issue_token(self, user: User, ttl: timedelta) -> str:
        return self.issuer.issue(
            {"user_id": user.sid, "email": user.email, "role": user.role},
            ttl,
        )

    async def register(
            self,
            name: Optional[str],
            email: Optional[str],
            password: Optional[str],
            confirm_password: Optional[str],
            role: Optional[str],
            admin_password: Optional[str] = None,
    ) -> Dict[str, Any]:
        # the admin gate is checked before anything else so a wrong code is
        # always reported as such
        if role == UserRole.ADMIN.value:
            self._check_admin_code(admin_password)

        if not name or not email or not password or not confirm_password or not role:
            raise ValidationError("Todos los campos son obligatorios.")
        if password != confirm_password:
            raise ValidationError("Las contraseñas no coinciden.")
        self._check_password_length(password, "La contraseña debe tener al menos 6 caracteres.")
        user_role = parse_role(role)

        email = normalize_email(email)
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError:
            raise ValidationError("El correo no es válido.")

        if await self._get_user_by_email(email):
            raise ConflictError("El correo ya está registrado.")

        password_hash = await hash_password_async(password)
        admin_password_hash = None
        if user_role == UserRole.ADMIN:
            admin_password_hash = await hash_password_async(admin_password.strip())

        user = User(
            sid=Base.generate_sid(),
            name=name.strip(),
            email=email,
            password_hash=password_hash,
            role=user_role,
            admin_password_hash=admin_password_hash,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # email taken by another signup after the check above
            await self.db.rollback()
            raise ConflictError("El correo ya está registrado.")

        logger.info(f"Registered user {user.sid} with role {user_role.value}")

        token = self._issue_token(user, timedelta(hours=self.settings.SIGNUP_TOKEN_EXPIRE_HOURS))
        return {
            "token": token,
            "user": {"user_id": user.sid, "name": user.name, "email": user.email},
        }

    async def login(
            self,
            email: Optional[str],
            password: Optional[str],
            role: Optional[str],
            admin_password: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not email or not password or not role:
            raise ValidationError("Email, contraseña y rol son obligatorios.")

        user = await self._get_user_by_email(normalize_email(email))
        if user is None:
            raise NotFoundError("Usuario no encontrado.", status_code=400)

        if user.role.value != role:
            logger.warning(f"Login for {user.sid} rejected: role mismatch")
            raise AuthorizationError(f"Rol incorrecto. Tu cuenta está registrada como {user.role.value}")

        if user.role == UserRole.ADMIN:
            self._check_admin_code(admin_password)

        if not await verify_password_async(password, user.password_hash):
            logger.warning(f"Login for {user.sid} rejected: bad password")
            raise InvalidCredentialsError("Contraseña incorrecta.")

        token = self._issue_token(user, timedelta(days=self.settings.LOGIN_TOKEN_EXPIRE_DAYS))
        return {
            "token": token,
            "user": {
                "user_id": user.sid,
                "name": user.name,
                "email": user.email,
                "role": user.role.value,
            },
        }

    async def request_password_reset(self, email: Optional[str]) -> str:
        if not email:
            raise ValidationError("El correo es obligatorio.")

        user = await self._get_user_by_email(normalize_email(email))
        if user is None:
            raise NotFoundError("No existe un usuario con ese correo.")

        record = await self.resets.issue(user.sid)
        await self.db.commit()

        reset_link = f"{self.settings.FRONTEND_URL.rstrip('/')}/reset-password?token={record.token}"
        await self.email_sender.send(
            user.email,
            "Restablecer Contraseña - TIC Americas",
            render_password_reset_email(reset_link, self.settings.PASSWORD_RESET_EXPIRE_MINUTES),
        )
        logger.info(f"Password reset issued for {user.sid}")

        return "Se ha enviado un correo con instrucciones para restablecer tu contraseña."

    async def reset_password(self, token: Optional[str], new_password: Optional[str]) -> str:
        if not token or not new_password:
            raise ValidationError("Token y nueva contraseña son obligatorios.")
        self._check_password_length(new_password, "La nueva contraseña debe tener al menos 6 caracteres.")

        record = await self.resets.redeem(token)
        user = await self._get_user_by_sid(record.user_sid)
        if user is None:
            raise NotFoundError("Usuario no encontrado.")

        password_hash = await hash_password_async(new_password)

        # password update and token removal commit together or not at all
        try:
            user.password_hash = password_hash
            await self.resets.consume(record)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Password reset completed for {user.sid}")
        return "Contraseña restablecida con éxito."

    async def verify_password(self, user_id: str, password: Optional[str]) -> bool:
        if not password:
            raise ValidationError("La contraseña es obligatoria.")

        user = await self._get_user_by_sid(user_id)
        if user is None:
            raise NotFoundError("Usuario no encontrado.")

        return await verify_password_async(password, user.password_hash)


def get_auth_service(
        db: AsyncSession = Depends(get_db),
        issuer: SessionIssuer = Depends(get_session_issuer),
        email_sender: EmailSender = Depends(get_email_sender),
) -> AuthService:
    return AuthService(db, issuer, email_sender)
