"""
SQLAlchemy models for data that outlives a match.
"""

from datetime import datetime
from sqlalchemy import Column, DateTime, Integer, String

from .database import Base


class PlayerRecord(Base):
    __tablename__ = "player_records"

    id = Column(String(64), primary_key=True)  # player id as issued by the caller
    session_count = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
