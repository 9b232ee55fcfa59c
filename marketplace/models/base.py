# marketplace/models/base.py
from sqlalchemy import Column, String, Uuid
from sqlalchemy.orm import DeclarativeBase
from datetime import datetime, timezone
import uuid
import nanoid


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands timestamps back naive; they are stored in UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sid = Column(String(22), unique=True, nullable=False, index=True, default=lambda: Base.generate_sid())

    @staticmethod
    def generate_sid():
        """Short public identifier exposed by the API."""
        return nanoid.generate(size=22)
