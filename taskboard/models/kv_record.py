from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func

from taskboard.database import Base


class KeyValueRecord(Base):
    """One collection blob per row, used by the database storage backend."""

    __tablename__ = "kv_store"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
