# marketplace/schemas/user.py
from pydantic import BaseModel, EmailStr, Field, AliasChoices
from typing import Optional

from marketplace.models.users import UserRole


class SignupRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = Field(None, alias="confirmPassword")
    role: Optional[str] = None
    admin_password: Optional[str] = Field(None, alias="adminPassword")

    class Config:
        populate_by_name = True


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None
    admin_password: Optional[str] = Field(None, alias="adminPassword")

    class Config:
        populate_by_name = True


class ForgotPasswordRequest(BaseModel):
    email: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    token: Optional[str] = None
    new_password: Optional[str] = Field(None, alias="newPassword")

    class Config:
        populate_by_name = True


class ValidatePasswordRequest(BaseModel):
    password: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


class UserSummary(BaseModel):
    user_id: str
    name: str
    email: str
    role: Optional[UserRole] = None


class AuthResponse(MessageResponse):
    token: str
    user: UserSummary


class ValidatePasswordResponse(BaseModel):
    valid: bool


class UserResponse(BaseModel):
    user_id: str = Field(validation_alias=AliasChoices("user_id", "sid"))
    name: str
    email: str
    role: UserRole
    phone: Optional[str] = None
    description: Optional[str] = None
    profile_photo: Optional[str] = None

    class Config:
        from_attributes = True


class CompanyInfo(BaseModel):
    companyName: Optional[str] = ""
    companyDescription: Optional[str] = ""
    companyLocation: Optional[str] = ""
    companyPhone: Optional[str] = ""
    companyPhoto: Optional[str] = ""


class ProfileResponse(UserResponse):
    companyInfo: CompanyInfo = CompanyInfo()


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    description: Optional[str] = None
    profile_photo: Optional[str] = None
    companyName: Optional[str] = Field(None, validation_alias=AliasChoices("companyName", "company_name"))
    companyDescription: Optional[str] = None
    companyLocation: Optional[str] = None
    companyPhone: Optional[str] = None
    companyPhoto: Optional[str] = None


class UploadResponse(MessageResponse):
    fileUrl: str
