from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String
from models.Base import Base

class RestaurantSettingDB(Base):
    __tablename__ = "restaurant_settings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    key = Column(String(50), unique=True, nullable=False, index=True)
    value = Column(String(100), nullable=False)
    description = Column(String(200), nullable=True)
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
