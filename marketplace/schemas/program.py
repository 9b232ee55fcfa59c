# marketplace/schemas/program.py
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class ProgramCreate(BaseModel):
    duration: Optional[int] = None
    mode: Optional[str] = None


class ProgramResponse(BaseModel):
    sid: str
    duration: int
    mode: str
    active: bool
    created_by_sid: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProgramStarted(BaseModel):
    message: str
    program_id: str
