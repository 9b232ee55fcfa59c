from fastapi import APIRouter, Depends, status
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from marketplace.core.dependencies import get_current_identity, ensure_can_act_on
from marketplace.core.exceptions import ValidationError, NotFoundError
from marketplace.core.security import SessionClaims
from marketplace.db.session import get_db
from marketplace.models.base import Base
from marketplace.models.program import Program
from marketplace.schemas.program import ProgramCreate, ProgramResponse, ProgramStarted

router = APIRouter()


@router.post("/start", response_model=ProgramStarted, status_code=status.HTTP_201_CREATED)
async def start_program(
        body: ProgramCreate,
        identity: SessionClaims = Depends(get_current_identity),
        db: AsyncSession = Depends(get_db),
):
    mode = (body.mode or "").strip()
    if not body.duration or body.duration <= 0 or not mode:
        raise ValidationError("Duración y modo son obligatorios.")

    program = Program(
        sid=Base.generate_sid(),
        duration=body.duration,
        mode=mode,
        active=True,
        created_by_sid=identity.user_id,
    )
    db.add(program)
    await db.commit()

    logger.info(f"Program {program.sid} started by {identity.user_id} ({mode}, {body.duration})")
    return {"message": "Programa iniciado exitosamente.", "program_id": program.sid}


@router.get("/active", response_model=List[ProgramResponse])
async def list_active_programs(
        identity: SessionClaims = Depends(get_current_identity),
        db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Program).where(Program.active.is_(True)).order_by(Program.created_at.desc())
    )
    return result.scalars().all()


@router.put("/{program_sid}/stop", response_model=ProgramResponse)
async def stop_program(
        program_sid: str,
        identity: SessionClaims = Depends(get_current_identity),
        db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(Program).where(Program.sid == program_sid))
    program = result.scalar_one_or_none()
    if program is None:
        raise NotFoundError("Programa no encontrado.")

    ensure_can_act_on(identity, program.created_by_sid, "No tienes permiso para detener este programa.")

    program.active = False
    await db.commit()
    return program
