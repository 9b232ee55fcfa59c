# marketplace/models/users.py
from sqlalchemy import Column, String, Text, Enum, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from marketplace.models.base import Base, utcnow
import enum


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(Text, nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.USER)
    admin_password_hash = Column(Text, nullable=True)
    phone = Column(String(40))
    description = Column(Text)
    profile_photo = Column(String(500))
    created_at = Column(DateTime(timezone=True), default=utcnow)

    company = relationship("Company", back_populates="user", uselist=False)


class Company(Base):
    __tablename__ = "companies"

    user_sid = Column(String(22), ForeignKey("users.sid", ondelete="CASCADE"), unique=True, nullable=False)
    user = relationship("User", back_populates="company")
    name = Column(String(160))
    description = Column(Text)
    location = Column(String(255))
    phone = Column(String(40))
    photo = Column(String(500))


class PasswordResetToken(Base):
    __tablename__ = "password_resets"

    user_sid = Column(String(22), ForeignKey("users.sid", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(64), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
