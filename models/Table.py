from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

class TableCreate(BaseModel):
    number: str = Field(..., min_length=1, max_length=20)
    capacity: int = Field(..., ge=1, le=20)

class TableUpdate(TableCreate):
    active: bool = True

class Table(BaseModel):
    id: int
    number: str
    capacity: int
    active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
