from datetime import date, datetime, time, timedelta, timezone
from time import sleep
from typing import Any, Callable, Dict, List, Optional

from loguru import logger
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from models import DayAvailability, ReservationStatus, TableDB, TableReservationDB
from services import lifecycle
from services.availability import AvailabilityEngine
from services.errors import (
    AuthorizationError,
    ConflictError,
    ErrorCode,
    InvalidTransitionError,
    NotFoundError,
    RetryableConflictError,
    ValidationError,
)
from services.limit_policy import LimitPolicy
from services.restaurant_config import RestaurantConfig, minutes_of
from services.stores import ReservationStore, TableStore
from services.reservation_locks import ReservationLockRegistry

MIN_PARTY_SIZE = 1
MAX_PARTY_SIZE = 20
MAX_SPECIAL_REQUESTS_LENGTH = 500


class ReservationScheduler:
    """Entry point for every reservation read and write.

    Every write runs its checks and the write itself inside one transaction
    of ``db`` while holding the registry locks it depends on: a create locks
    the user, the date and the table (the caps count across all tables),
    an update locks the owner and the target table, and a status change
    locks the owner and the reservation's table and re-reads the row.
    Contention (lock timeout or a locked database) restarts the whole chain,
    up to ``max_attempts`` times, before surfacing as RetryableConflictError.
    """

    def __init__(
        self,
        db: Session,
        config: RestaurantConfig,
        locks: ReservationLockRegistry,
        max_attempts: int = 3,
        today: Callable[[], date] = date.today,
    ):
        self.db = db
        self.config = config
        self.locks = locks
        self.max_attempts = max(1, max_attempts)
        self.today = today

        self.tables = TableStore(db)
        self.reservations = ReservationStore(db)
        self.availability = AvailabilityEngine(self.tables, self.reservations, config)
        self.limits = LimitPolicy(self.reservations, config)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_reservation(self, reservation_id: int) -> TableReservationDB:
        reservation = self.reservations.find_by_id(reservation_id)
        if not reservation:
            raise NotFoundError(f"Reservation {reservation_id} not found")
        return reservation

    def list_reservations(self, user_id: Optional[str] = None, day: Optional[date] = None) -> List[TableReservationDB]:
        return self.reservations.query(user_id=user_id, day=day)

    def get_availability(self, day: date, party_size: int) -> DayAvailability:
        self._validate_party_size(party_size)
        return self.availability.generate_day_slots(day, party_size)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def create(
        self,
        user_id: str,
        table_id: int,
        day: date,
        start: time,
        party_size: int,
        special_requests: Optional[str] = None,
    ) -> TableReservationDB:
        self._validate_request(day, start, party_size, special_requests)

        reservation = self._run_atomic(
            lambda: dict(user_id=user_id, day=day, table_id=table_id),
            lambda held: self._create_once(user_id, table_id, day, start, party_size, special_requests),
        )
        logger.info(
            f"Reservation {reservation.id} created for user {user_id}: "
            f"table {table_id}, {day} {start:%H:%M}, party of {party_size}"
        )
        return reservation

    def update(
        self,
        reservation_id: int,
        caller_user_id: str,
        table_id: int,
        day: date,
        start: time,
        party_size: int,
        special_requests: Optional[str] = None,
    ) -> TableReservationDB:
        self._owned_and_open(self.get_reservation(reservation_id), caller_user_id)
        self._validate_request(day, start, party_size, special_requests)

        reservation = self._run_atomic(
            lambda: dict(user_id=caller_user_id, table_id=table_id),
            lambda held: self._update_once(
                reservation_id, caller_user_id, table_id, day, start, party_size, special_requests
            ),
        )
        logger.info(
            f"Reservation {reservation.id} updated by user {caller_user_id}: "
            f"table {table_id}, {day} {start:%H:%M}, party of {party_size}"
        )
        return reservation

    def change_status(self, reservation_id: int, new_status: ReservationStatus) -> TableReservationDB:
        previous = []

        def scope():
            reservation = self._fresh_reservation(reservation_id)
            return dict(user_id=reservation.user_id, table_id=reservation.table_id)

        def apply(held):
            # the edge is checked against the row as it is now, not as first read
            reservation = self._fresh_reservation(reservation_id)
            if reservation.table_id != held["table_id"]:
                raise RetryableConflictError(f"Reservation {reservation_id} moved while waiting, please retry")
            previous.append(reservation.status)
            return lifecycle.transition(reservation, new_status)

        reservation = self._run_atomic(scope, apply)
        logger.info(f"Reservation {reservation_id} moved from {previous[-1]} to {reservation.status}")
        return reservation

    def cancel(self, reservation_id: int, caller_user_id: str, is_operator: bool = False) -> TableReservationDB:
        reservation = self.get_reservation(reservation_id)
        if not is_operator and reservation.user_id != caller_user_id:
            raise AuthorizationError("You can only cancel your own reservations")
        return self.change_status(reservation_id, ReservationStatus.CANCELLED)

    # ------------------------------------------------------------------
    # Check-and-write steps, always run under the locks from _run_atomic
    # ------------------------------------------------------------------
    def _create_once(self, user_id, table_id, day, start, party_size, special_requests):
        if not self.limits.can_user_book(user_id, day):
            raise ConflictError(
                f"User {user_id} already holds {self.config.max_reservations_per_user} active reservations",
                ErrorCode.USER_LIMIT,
            )
        if not self.limits.can_day_accept_booking(day):
            raise ConflictError(f"No more reservations are accepted for {day}", ErrorCode.DAY_LIMIT)

        self._bookable_table(table_id, party_size, require_active=True)

        if not self.availability.is_table_free(table_id, day, start):
            raise ConflictError("Table is not available at the requested time", ErrorCode.SLOT_UNAVAILABLE)

        now = datetime.now(timezone.utc)
        reservation = TableReservationDB(
            user_id=user_id,
            table_id=table_id,
            date=day,
            time=start,
            party_size=party_size,
            special_requests=special_requests,
            status=ReservationStatus.PENDING.value,
            created_at=now,
        )
        return self.reservations.save(reservation)

    def _update_once(self, reservation_id, caller_user_id, table_id, day, start, party_size, special_requests):
        # re-read inside the lock, a concurrent call may have moved it
        reservation = self._owned_and_open(self._fresh_reservation(reservation_id), caller_user_id)

        table_changed = table_id != reservation.table_id
        moved = table_changed or day != reservation.date or start != reservation.time

        # a table deactivated after booking keeps its existing reservations
        self._bookable_table(table_id, party_size, require_active=table_changed)

        if moved and not self.availability.is_table_free(
            table_id, day, start, exclude_reservation_id=reservation.id
        ):
            raise ConflictError("Table is not available at the requested time", ErrorCode.SLOT_UNAVAILABLE)

        reservation.table_id = table_id
        reservation.date = day
        reservation.time = start
        reservation.party_size = party_size
        reservation.special_requests = special_requests
        reservation.updated_at = datetime.now(timezone.utc)
        return self.reservations.save(reservation)

    def _run_atomic(
        self,
        scope: Callable[[], Dict[str, Any]],
        operation: Callable[[Dict[str, Any]], TableReservationDB],
    ) -> TableReservationDB:
        last_error = None
        for attempt in range(1, self.max_attempts + 1):
            held = {}
            try:
                held = scope()
                with self.locks.hold(**held):
                    try:
                        reservation = operation(held)
                        self.db.commit()
                    except Exception:
                        self.db.rollback()
                        raise
            except RetryableConflictError as e:
                last_error = e
            except OperationalError as e:
                self.db.rollback()
                last_error = RetryableConflictError(f"Reservation store is busy: {e.orig}")
            else:
                self.db.refresh(reservation)
                return reservation

            logger.warning(f"Attempt {attempt}/{self.max_attempts} on {held} hit contention: {last_error}")
            if attempt < self.max_attempts:
                sleep(0.05 * attempt)

        raise last_error

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------
    def _fresh_reservation(self, reservation_id: int) -> TableReservationDB:
        reservation = self.reservations.find_by_id(reservation_id, fresh=True)
        if not reservation:
            raise NotFoundError(f"Reservation {reservation_id} not found")
        return reservation

    def _owned_and_open(self, reservation: TableReservationDB, caller_user_id: str) -> TableReservationDB:
        if reservation.user_id != caller_user_id:
            raise AuthorizationError("You can only update your own reservations")
        if lifecycle.is_terminal(reservation.status):
            raise InvalidTransitionError(
                f"Reservation {reservation.id} is {reservation.status} and can no longer be changed"
            )
        return reservation

    def _bookable_table(self, table_id: int, party_size: int, require_active: bool) -> TableDB:
        table = self.tables.find_by_id(table_id)
        if not table or (require_active and not table.active):
            raise ValidationError(f"Invalid table ID {table_id}", ErrorCode.INVALID_TABLE)
        if party_size > table.capacity:
            raise ValidationError(
                f"Party size exceeds table capacity of {table.capacity}", ErrorCode.CAPACITY
            )
        return table

    def _validate_party_size(self, party_size: int) -> None:
        if not MIN_PARTY_SIZE <= party_size <= MAX_PARTY_SIZE:
            raise ValidationError(
                f"Party size must be between {MIN_PARTY_SIZE} and {MAX_PARTY_SIZE}", ErrorCode.PARTY_SIZE
            )

    def _validate_request(self, day: date, start: time, party_size: int, special_requests: Optional[str]) -> None:
        self._validate_party_size(party_size)

        if special_requests and len(special_requests) > MAX_SPECIAL_REQUESTS_LENGTH:
            raise ValidationError(
                f"Special requests must not exceed {MAX_SPECIAL_REQUESTS_LENGTH} characters",
                ErrorCode.SPECIAL_REQUESTS,
            )

        today = self.today()
        if day < today:
            raise ValidationError(f"Reservation date {day} is in the past", ErrorCode.DATE)
        if day > today + timedelta(days=self.config.booking_advance_days):
            raise ValidationError(
                f"Reservations can be made at most {self.config.booking_advance_days} days in advance",
                ErrorCode.DATE,
            )

        begin = minutes_of(start)
        if begin < self.config.opening_minutes or begin + self.config.slot_duration > self.config.closing_minutes:
            raise ValidationError(
                f"Reservation at {start:%H:%M} does not fit between "
                f"{self.config.opening_time:%H:%M} and {self.config.closing_time:%H:%M}",
                ErrorCode.TIME,
            )
