from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from models.Base import Base

class TableDB(Base):
    __tablename__ = "table"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    number = Column(String(20), unique=True, nullable=False, index=True)
    capacity = Column(Integer, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, nullable=True)
