from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from marketplace.core.dependencies import get_current_identity, require_admin, ensure_can_act_on
from marketplace.core.security import SessionClaims
from marketplace.db.session import get_db
from marketplace.schemas.user import UserResponse, ProfileUpdate, MessageResponse
from marketplace.services.users import UserService

router = APIRouter()


@router.get("", response_model=List[UserResponse])
async def list_users(
        identity: SessionClaims = Depends(require_admin),
        db: AsyncSession = Depends(get_db),
):
    return await UserService(db).list_users()


@router.put("/update-profile", response_model=MessageResponse)
async def update_own_profile(
        body: ProfileUpdate,
        identity: SessionClaims = Depends(get_current_identity),
        db: AsyncSession = Depends(get_db),
):
    await UserService(db).update_profile(identity.user_id, body.model_dump(exclude_unset=True))
    return {"message": "Perfil actualizado correctamente"}


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
        user_id: str,
        identity: SessionClaims = Depends(get_current_identity),
        db: AsyncSession = Depends(get_db),
):
    ensure_can_act_on(identity, user_id, "No tienes permiso para ver este usuario.")
    return await UserService(db).get_user(user_id)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
        user_id: str,
        identity: SessionClaims = Depends(get_current_identity),
        db: AsyncSession = Depends(get_db),
):
    service = UserService(db)
    # 404 before 403, so a missing account is reported as such
    await service.get_user(user_id)
    ensure_can_act_on(identity, user_id, "No tienes permiso para eliminar este usuario.")
    await service.delete_user(user_id)
    return {"message": "Usuario eliminado exitosamente"}
