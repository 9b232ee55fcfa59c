import os
import time
from typing import Optional

import anyio
from fastapi import APIRouter, Depends, File, UploadFile
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.config import settings
from marketplace.core.dependencies import get_current_identity
from marketplace.core.exceptions import ValidationError
from marketplace.core.security import SessionClaims
from marketplace.db.session import get_db
from marketplace.schemas.user import ProfileResponse, ProfileUpdate, MessageResponse, UploadResponse
from marketplace.services.users import UserService

router = APIRouter()

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/jpg"}


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
        identity: SessionClaims = Depends(get_current_identity),
        db: AsyncSession = Depends(get_db),
):
    return await UserService(db).get_profile(identity.user_id)


@router.put("/profile", response_model=MessageResponse)
async def update_profile(
        body: ProfileUpdate,
        identity: SessionClaims = Depends(get_current_identity),
        db: AsyncSession = Depends(get_db),
):
    await UserService(db).update_profile(identity.user_id, body.model_dump(exclude_unset=True))
    return {"message": "Perfil y empresa actualizados exitosamente."}


@router.post("/upload", response_model=UploadResponse)
async def upload_profile_photo(
        file: Optional[UploadFile] = File(None),
        identity: SessionClaims = Depends(get_current_identity),
        db: AsyncSession = Depends(get_db),
):
    if file is None or not file.filename:
        raise ValidationError("No se subió ninguna imagen.")
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError("Formato de archivo no permitido para perfil")

    extension = os.path.splitext(file.filename)[1].lower()
    filename = f"{int(time.time() * 1000)}{extension}"

    upload_dir = anyio.Path(settings.UPLOAD_DIR)
    await upload_dir.mkdir(parents=True, exist_ok=True)
    await (upload_dir / filename).write_bytes(await file.read())

    file_url = f"{settings.BACKEND_URL.rstrip('/')}/uploads/{filename}"
    await UserService(db).set_profile_photo(identity.user_id, file_url)
    logger.info(f"Stored profile photo {filename} for {identity.user_id}")

    return {"message": "Imagen subida correctamente", "fileUrl": file_url}
