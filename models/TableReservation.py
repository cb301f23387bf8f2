from datetime import date, datetime, time
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

class ReservationStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"

ACTIVE_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)

class TableReservation(BaseModel):
    table_id: int
    date: date
    time: time
    party_size: int = Field(..., ge=1, le=20)
    special_requests: Optional[str] = Field(None, max_length=500)

class TableReservationStatusUpdate(BaseModel):
    status: ReservationStatus

class TableReservationResponse(BaseModel):
    id: int
    user_id: str
    table_id: int
    date: date
    time: time
    party_size: int
    special_requests: Optional[str] = None
    status: ReservationStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
