from datetime import date
from typing import List, Optional

from sqlalchemy import asc
from sqlalchemy.orm import Session

from models import ACTIVE_STATUSES, TableDB, TableReservationDB

_ACTIVE = [s.value for s in ACTIVE_STATUSES]


class TableStore:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, table_id: int) -> Optional[TableDB]:
        return self.db.query(TableDB).filter(TableDB.id == table_id).first()

    def find_by_number(self, number: str) -> Optional[TableDB]:
        return self.db.query(TableDB).filter(TableDB.number == number).first()

    def list_active(self) -> List[TableDB]:
        return self.db.query(TableDB).filter(TableDB.active.is_(True)).order_by(asc(TableDB.number)).all()

    def list_all(self) -> List[TableDB]:
        return self.db.query(TableDB).order_by(asc(TableDB.number)).all()

    def is_referenced(self, table_id: int) -> bool:
        return (
            self.db.query(TableReservationDB.id).filter(TableReservationDB.table_id == table_id).first()
            is not None
        )

    def save(self, table: TableDB) -> TableDB:
        self.db.add(table)
        self.db.flush()
        return table

    def delete(self, table: TableDB) -> None:
        self.db.delete(table)
        self.db.flush()


class ReservationStore:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, reservation_id: int, fresh: bool = False) -> Optional[TableReservationDB]:
        """With ``fresh`` the row is reloaded even if the session already holds it."""
        query = self.db.query(TableReservationDB).filter(TableReservationDB.id == reservation_id)
        if fresh:
            query = query.populate_existing()
        return query.first()

    def query_by_table_and_date(self, table_id: int, day: date) -> List[TableReservationDB]:
        """Active reservations of one table on one day."""
        return (
            self.db.query(TableReservationDB)
            .filter(
                TableReservationDB.table_id == table_id,
                TableReservationDB.date == day,
                TableReservationDB.status.in_(_ACTIVE),
            )
            .order_by(asc(TableReservationDB.time))
            .all()
        )

    def query_by_user_active(self, user_id: str) -> List[TableReservationDB]:
        return (
            self.db.query(TableReservationDB)
            .filter(TableReservationDB.user_id == user_id, TableReservationDB.status.in_(_ACTIVE))
            .all()
        )

    def query_by_date_active(self, day: date) -> List[TableReservationDB]:
        return (
            self.db.query(TableReservationDB)
            .filter(TableReservationDB.date == day, TableReservationDB.status.in_(_ACTIVE))
            .all()
        )

    def query(self, user_id: Optional[str] = None, day: Optional[date] = None) -> List[TableReservationDB]:
        query = self.db.query(TableReservationDB)
        if user_id:
            query = query.filter(TableReservationDB.user_id == user_id)
        if day:
            query = query.filter(TableReservationDB.date == day)
        return query.order_by(asc(TableReservationDB.date), asc(TableReservationDB.time)).all()

    def save(self, reservation: TableReservationDB) -> TableReservationDB:
        """Adds and flushes. Committing is left to the caller's transaction."""
        self.db.add(reservation)
        self.db.flush()
        return reservation
