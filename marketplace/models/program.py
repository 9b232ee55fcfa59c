# marketplace/models/program.py
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey
from marketplace.models.base import Base, utcnow


class Program(Base):
    __tablename__ = "programs"

    duration = Column(Integer, nullable=False)
    mode = Column(String(60), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_by_sid = Column(String(22), ForeignKey("users.sid", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
