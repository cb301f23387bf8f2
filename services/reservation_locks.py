import threading
from contextlib import ExitStack, contextmanager
from datetime import date
from typing import Dict, Hashable, Iterator, Optional, Tuple

from loguru import logger

from services.errors import RetryableConflictError

LockKey = Tuple[str, Hashable]


class ReservationLockRegistry:
    """Exclusive in-process locks for everything a booking decision reads.

    A create locks its user, its date and its table, so the per-user cap,
    the per-day cap and the table's free check cannot be raced from another
    table. Updates and status changes lock the owner and the table.

    Locks are always taken user first, then date, then table, so two
    requests never wait on each other crosswise.
    """

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout
        self._locks: Dict[LockKey, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, key: LockKey) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def _acquire(self, key: LockKey) -> Iterator[None]:
        kind, value = key
        lock = self._lock_for(key)
        if not lock.acquire(timeout=self.timeout):
            logger.warning(f"[LOCK] Timed out after {self.timeout}s waiting for {kind} {value}")
            raise RetryableConflictError(f"{kind.capitalize()} {value} is busy, please retry")
        logger.debug(f"[LOCK] Acquired {kind} {value}")
        try:
            yield
        finally:
            lock.release()
            logger.debug(f"[LOCK] Released {kind} {value}")

    @contextmanager
    def hold(self, table_id: int, user_id: Optional[str] = None, day: Optional[date] = None) -> Iterator[None]:
        keys = []
        if user_id is not None:
            keys.append(("user", user_id))
        if day is not None:
            keys.append(("date", day))
        keys.append(("table", table_id))

        # a timeout releases whatever was already taken
        with ExitStack() as stack:
            for key in keys:
                stack.enter_context(self._acquire(key))
            yield
