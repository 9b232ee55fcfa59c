from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.exceptions import NotFoundError, ConflictError
from marketplace.models.base import Base
from marketplace.models.catalog import Product
from marketplace.models.users import User, Company, PasswordResetToken

USER_FIELDS = ("name", "email", "phone", "description", "profile_photo")

# request field -> Company column
COMPANY_FIELDS = {
    "companyName": "name",
    "companyDescription": "description",
    "companyLocation": "location",
    "companyPhone": "phone",
    "companyPhoto": "photo",
}


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_sid: str) -> User:
        result = await self.db.execute(select(User).where(User.sid == user_sid))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("Usuario no encontrado.")
        return user

    async def get_company(self, user_sid: str) -> Optional[Company]:
        result = await self.db.execute(select(Company).where(Company.user_sid == user_sid))
        return result.scalar_one_or_none()

    async def _email_taken(self, email: str) -> bool:
        result = await self.db.execute(select(User.id).where(User.email == email))
        return result.scalar_one_or_none() is not None

    async def list_users(self) -> List[User]:
        result = await self.db.execute(select(User).order_by(User.created_at))
        return list(result.scalars().all())

    async def get_profile(self, user_sid: str) -> Dict[str, Any]:
        user = await self.get_user(user_sid)
        company = await self.get_company(user_sid)

        company_info = {key: "" for key in COMPANY_FIELDS}
        if company is not None:
            company_info = {key: getattr(company, column) or "" for key, column in COMPANY_FIELDS.items()}

        return {
            "user_id": user.sid,
            "name": user.name or "",
            "email": user.email or "",
            "role": user.role,
            "phone": user.phone or "",
            "description": user.description or "",
            "profile_photo": user.profile_photo or "",
            "companyInfo": company_info,
        }

    async def update_profile(self, user_sid: str, changes: Dict[str, Any]) -> User:
        """Apply the provided fields only; role is never touched here."""
        user = await self.get_user(user_sid)

        new_email = changes.get("email")
        if new_email:
            new_email = new_email.strip().lower()
            if new_email != user.email and await self._email_taken(new_email):
                raise ConflictError("El correo ya está registrado.")
            changes["email"] = new_email

        for field in USER_FIELDS:
            if changes.get(field) is not None:
                setattr(user, field, changes[field])

        company_changes = {
            column: changes[key]
            for key, column in COMPANY_FIELDS.items()
            if changes.get(key) is not None
        }
        if company_changes:
            company = await self.get_company(user_sid)
            if company is None:
                company = Company(sid=Base.generate_sid(), user_sid=user_sid)
                self.db.add(company)
            for column, value in company_changes.items():
                setattr(company, column, value)

        try:
            await self.db.commit()
        except IntegrityError:
            # email taken by another account after the check above
            await self.db.rollback()
            raise ConflictError("El correo ya está registrado.")

        logger.info(f"Profile updated for {user_sid}")
        return user

    async def set_profile_photo(self, user_sid: str, url: str) -> None:
        user = await self.get_user(user_sid)
        user.profile_photo = url
        await self.db.commit()

    async def delete_user(self, user_sid: str) -> None:
        """Removes the user with its company, reset tokens and products."""
        user = await self.get_user(user_sid)
        try:
            await self.db.execute(delete(Company).where(Company.user_sid == user_sid))
            await self.db.execute(delete(PasswordResetToken).where(PasswordResetToken.user_sid == user_sid))
            await self.db.execute(delete(Product).where(Product.user_sid == user_sid))
            await self.db.execute(delete(User).where(User.id == user.id))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info(f"Deleted user {user_sid}")
