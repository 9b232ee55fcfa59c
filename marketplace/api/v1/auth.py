from fastapi import APIRouter, Depends, status

from marketplace.core.dependencies import get_current_identity
from marketplace.core.security import SessionClaims
from marketplace.schemas.user import (
    SignupRequest, LoginRequest, ForgotPasswordRequest, ResetPasswordRequest,
    ValidatePasswordRequest, AuthResponse, MessageResponse, ValidatePasswordResponse,
)
from marketplace.services.auth import AuthService, get_auth_service

router = APIRouter()


@router.post("/signup", response_model=AuthResponse, response_model_exclude_none=True,
             status_code=status.HTTP_201_CREATED)
async def signup(
        body: SignupRequest,
        auth: AuthService = Depends(get_auth_service),
):
    result = await auth.register(
        name=body.name,
        email=body.email,
        password=body.password,
        confirm_password=body.confirm_password,
        role=body.role,
        admin_password=body.admin_password,
    )
    return {"message": "Usuario registrado exitosamente.", **result}


@router.post("/login", response_model=AuthResponse)
async def login(
        body: LoginRequest,
        auth: AuthService = Depends(get_auth_service),
):
    result = await auth.login(
        email=body.email,
        password=body.password,
        role=body.role,
        admin_password=body.admin_password,
    )
    return {"message": "Login exitoso", **result}


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
        body: ForgotPasswordRequest,
        auth: AuthService = Depends(get_auth_service),
):
    message = await auth.request_password_reset(body.email)
    return {"message": message}


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
        body: ResetPasswordRequest,
        auth: AuthService = Depends(get_auth_service),
):
    message = await auth.reset_password(body.token, body.new_password)
    return {"message": message}


@router.post("/validate-password", response_model=ValidatePasswordResponse)
async def validate_password(
        body: ValidatePasswordRequest,
        identity: SessionClaims = Depends(get_current_identity),
        auth: AuthService = Depends(get_auth_service),
):
    valid = await auth.verify_password(identity.user_id, body.password)
    return {"valid": valid}
