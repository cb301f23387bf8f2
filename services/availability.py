from collections import defaultdict
from datetime import date, time
from typing import Iterable, List, Optional

from models import DayAvailability, TableDB, TableReservationDB, TimeSlot
from services.restaurant_config import SLOT_STEP_MINUTES, RestaurantConfig, minutes_of
from services.stores import ReservationStore, TableStore


def windows_overlap(start_a: time, start_b: time, duration: int) -> bool:
    """True when ``[a, a+duration)`` and ``[b, b+duration)`` intersect.

    Half-open windows, so a booking ending at 20:00 and one starting at 20:00
    do not collide.
    """
    a = minutes_of(start_a)
    b = minutes_of(start_b)
    return a < b + duration and b < a + duration


class AvailabilityEngine:
    def __init__(self, tables: TableStore, reservations: ReservationStore, config: RestaurantConfig):
        self.tables = tables
        self.reservations = reservations
        self.config = config

    def _is_free_among(
        self,
        existing: Iterable[TableReservationDB],
        start: time,
        exclude_reservation_id: Optional[int] = None,
    ) -> bool:
        for reservation in existing:
            if exclude_reservation_id is not None and reservation.id == exclude_reservation_id:
                continue
            if windows_overlap(reservation.time, start, self.config.slot_duration):
                return False
        return True

    def is_table_free(
        self,
        table_id: int,
        day: date,
        start: time,
        exclude_reservation_id: Optional[int] = None,
    ) -> bool:
        existing = self.reservations.query_by_table_and_date(table_id, day)
        return self._is_free_among(existing, start, exclude_reservation_id)

    def list_available_tables(self, day: date, start: time, party_size: int) -> List[TableDB]:
        return [
            table
            for table in self._candidate_tables(party_size)
            if self.is_table_free(table.id, day, start)
        ]

    def _candidate_tables(self, party_size: int) -> List[TableDB]:
        return [table for table in self.tables.list_active() if table.capacity >= party_size]

    def slot_starts(self) -> List[time]:
        """Candidate start times of a day, every 30 minutes from opening."""
        starts = []
        current = self.config.opening_minutes
        while current + self.config.slot_duration <= self.config.closing_minutes:
            starts.append(time(current // 60, current % 60))
            current += SLOT_STEP_MINUTES
        return starts

    def generate_day_slots(self, day: date, party_size: int) -> DayAvailability:
        candidates = self._candidate_tables(party_size)

        # one read of the day instead of one per table and slot
        by_table = defaultdict(list)
        for reservation in self.reservations.query_by_date_active(day):
            by_table[reservation.table_id].append(reservation)

        time_slots = []
        for start in self.slot_starts():
            free_ids = [table.id for table in candidates if self._is_free_among(by_table[table.id], start)]
            time_slots.append(TimeSlot(time=start, is_available=bool(free_ids), available_table_ids=free_ids))

        return DayAvailability(date=day, party_size=party_size, time_slots=time_slots)
