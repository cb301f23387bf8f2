from datetime import datetime, timezone
from typing import FrozenSet

from models import ReservationStatus, TableReservationDB
from services.errors import InvalidTransitionError

ALLOWED_TRANSITIONS = {
    ReservationStatus.PENDING: frozenset({ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}),
    ReservationStatus.CONFIRMED: frozenset(
        {ReservationStatus.CANCELLED, ReservationStatus.COMPLETED, ReservationStatus.NO_SHOW}
    ),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.COMPLETED: frozenset(),
    ReservationStatus.NO_SHOW: frozenset(),
}


def allowed_targets(current: ReservationStatus) -> FrozenSet[ReservationStatus]:
    return ALLOWED_TRANSITIONS[ReservationStatus(current)]


def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    return ReservationStatus(target) in allowed_targets(current)


def is_terminal(status: ReservationStatus) -> bool:
    return not allowed_targets(status)


def transition(reservation: TableReservationDB, target: ReservationStatus) -> TableReservationDB:
    """Moves ``reservation`` to ``target`` in place.

    Who may ask for which move is decided by the caller; this only knows the
    edges of the state machine and refuses everything else.
    """
    current = ReservationStatus(reservation.status)
    target = ReservationStatus(target)
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot change reservation {reservation.id} from {current.value} to {target.value}"
        )

    reservation.status = target.value
    reservation.updated_at = datetime.now(timezone.utc)
    return reservation
