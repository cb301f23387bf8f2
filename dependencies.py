"""Shared dependencies for caller identity and the reservation scheduler.

Authentication happens upstream; the gateway forwards the authenticated
user in ``X-User-Id`` and their role in ``X-User-Role``.
"""

import os
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from services.restaurant_config import RestaurantConfig, SettingsProvider
from services.scheduler import ReservationScheduler
from services.reservation_locks import ReservationLockRegistry

OPERATOR_ROLES = {"staff", "admin"}

LOCK_TIMEOUT = float(os.getenv("RESERVATION_LOCK_TIMEOUT", "5"))
MAX_ATTEMPTS = int(os.getenv("RESERVATION_MAX_ATTEMPTS", "3"))

# shared by every request so that bookings touching the same user, date or table serialize
reservation_locks = ReservationLockRegistry(timeout=LOCK_TIMEOUT)


@dataclass(frozen=True)
class Caller:
    user_id: str
    role: Optional[str] = None

    @property
    def is_operator(self) -> bool:
        return (self.role or "").lower() in OPERATOR_ROLES


def get_caller(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Caller:
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authenticated user",
        )
    return Caller(user_id=x_user_id, role=x_user_role)


def require_operator(caller: Caller = Depends(get_caller)) -> Caller:
    if not caller.is_operator:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only staff can perform this action",
        )
    return caller


def require_admin(caller: Caller = Depends(get_caller)) -> Caller:
    if (caller.role or "").lower() != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can perform this action",
        )
    return caller


def get_restaurant_config(db: Session = Depends(get_db)) -> RestaurantConfig:
    return RestaurantConfig.from_provider(SettingsProvider(db))


def get_scheduler(
    db: Session = Depends(get_db),
    config: RestaurantConfig = Depends(get_restaurant_config),
) -> ReservationScheduler:
    return ReservationScheduler(db, config, reservation_locks, max_attempts=MAX_ATTEMPTS)
