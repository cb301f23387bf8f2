from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from dependencies import Caller, get_caller, get_scheduler, require_operator
from models import (
    DayAvailability,
    TableReservation,
    TableReservationResponse,
    TableReservationStatusUpdate,
)
from services.errors import AuthorizationError
from services.scheduler import ReservationScheduler

table_reservation_router = APIRouter(
    tags=["TableReservation"]
)


@table_reservation_router.get("/reservations", tags=["TableReservation"])
def get_reservations(
    date: Optional[date] = Query(None),
    user_id: Optional[str] = Query(None),
    scheduler: ReservationScheduler = Depends(get_scheduler),
    caller: Caller = Depends(get_caller),
):
    """
    Lists reservations ordered by date and time.

    Staff see everybody's reservations and may filter by user; guests only
    ever see their own.
    """
    user_filter = user_id if caller.is_operator else caller.user_id
    reservations = scheduler.list_reservations(user_id=user_filter, day=date)
    return [TableReservationResponse.model_validate(r) for r in reservations]


@table_reservation_router.get("/reservations/availability", tags=["TableReservation"])
def get_availability(
    date: date = Query(...),
    party_size: int = Query(2),
    scheduler: ReservationScheduler = Depends(get_scheduler),
) -> DayAvailability:
    """
    Returns the candidate start times of a day and the tables free at each.

    Args:
        date (date): The day to check.
        party_size (int): Number of guests, defaults to 2.
    """
    return scheduler.get_availability(date, party_size)


@table_reservation_router.get("/reservations/{id}", tags=["TableReservation"])
def get_reservation(
    id: int,
    scheduler: ReservationScheduler = Depends(get_scheduler),
    caller: Caller = Depends(get_caller),
):
    reservation = scheduler.get_reservation(id)
    if not caller.is_operator and reservation.user_id != caller.user_id:
        raise AuthorizationError("You can only view your own reservations")
    return TableReservationResponse.model_validate(reservation)


@table_reservation_router.post("/reservations", tags=["TableReservation"], status_code=201)
def create_reservation(
    reservation: TableReservation,
    scheduler: ReservationScheduler = Depends(get_scheduler),
    caller: Caller = Depends(get_caller),
):
    """
    Books a table for the calling user. New reservations start as PENDING.
    """
    db_res = scheduler.create(
        caller.user_id,
        reservation.table_id,
        reservation.date,
        reservation.time,
        reservation.party_size,
        reservation.special_requests,
    )
    return {"success": True, "reservation": TableReservationResponse.model_validate(db_res)}


@table_reservation_router.put("/reservations/{id}", tags=["TableReservation"])
def update_reservation(
    id: int,
    updated_reservation: TableReservation,
    scheduler: ReservationScheduler = Depends(get_scheduler),
    caller: Caller = Depends(get_caller),
):
    db_res = scheduler.update(
        id,
        caller.user_id,
        updated_reservation.table_id,
        updated_reservation.date,
        updated_reservation.time,
        updated_reservation.party_size,
        updated_reservation.special_requests,
    )
    return {"success": True, "reservation": TableReservationResponse.model_validate(db_res)}


@table_reservation_router.patch("/reservations/{id}/status", tags=["TableReservation"])
def update_reservation_status(
    id: int,
    status_update: TableReservationStatusUpdate,
    scheduler: ReservationScheduler = Depends(get_scheduler),
    caller: Caller = Depends(require_operator),
):
    db_res = scheduler.change_status(id, status_update.status)
    return {"success": True, "reservation": TableReservationResponse.model_validate(db_res)}


@table_reservation_router.delete("/reservations/{id}", tags=["TableReservation"])
def cancel_reservation(
    id: int,
    scheduler: ReservationScheduler = Depends(get_scheduler),
    caller: Caller = Depends(get_caller),
):
    """
    Cancels a reservation. The row is kept with status CANCELLED.
    """
    db_res = scheduler.cancel(id, caller.user_id, is_operator=caller.is_operator)
    return {"success": True, "reservation": TableReservationResponse.model_validate(db_res)}
