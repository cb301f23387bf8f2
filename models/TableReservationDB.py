from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Time
from models.Base import Base

class TableReservationDB(Base):
    __tablename__ = "table_reservation"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(String(128), nullable=False, index=True)
    # plain foreign key, the store resolves the table when it is needed
    table_id = Column(Integer, ForeignKey("table.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    time = Column(Time, nullable=False)
    party_size = Column(Integer, nullable=False)
    special_requests = Column(String(500), nullable=True)
    status = Column(String(20), nullable=False, default="PENDING", index=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, nullable=True)
