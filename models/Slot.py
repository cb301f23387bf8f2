from datetime import date, time
from typing import List

from pydantic import BaseModel

class TimeSlot(BaseModel):
    time: time
    is_available: bool
    available_table_ids: List[int]

class DayAvailability(BaseModel):
    date: date
    party_size: int
    time_slots: List[TimeSlot]
