import threading
from datetime import time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from conftest import TODAY, make_config
from models import Base, ReservationStatus, TableDB, TableReservationDB
from services.availability import windows_overlap
from services.errors import ConflictError, InvalidTransitionError, RetryableConflictError
from services.reservation_locks import ReservationLockRegistry
from services.scheduler import ReservationScheduler


@pytest.fixture
def file_session_factory(tmp_path):
    # a real file so that every thread gets its own connection
    engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


def add_tables(session_factory, count):
    db = session_factory()
    tables = [TableDB(number=f"T{n:02d}", capacity=4, active=True) for n in range(1, count + 1)]
    db.add_all(tables)
    db.commit()
    ids = [table.id for table in tables]
    db.close()
    return ids


@pytest.fixture
def table_id(file_session_factory):
    return add_tables(file_session_factory, 1)[0]


def book_upfront(session_factory, user_id, table_id, start=time(18, 0)):
    db = session_factory()
    scheduler = ReservationScheduler(db, make_config(), ReservationLockRegistry(), today=lambda: TODAY)
    reservation_id = scheduler.create(user_id, table_id, TODAY, start, 2).id
    db.close()
    return reservation_id


def run_concurrently(session_factory, calls, config=None):
    """Runs every ``call(scheduler)`` in its own thread, all released at once."""
    locks = ReservationLockRegistry(timeout=5)
    barrier = threading.Barrier(len(calls))
    outcomes = []
    outcomes_lock = threading.Lock()

    def worker(call):
        db = session_factory()
        scheduler = ReservationScheduler(db, config or make_config(), locks, today=lambda: TODAY)
        barrier.wait()
        try:
            call(scheduler)
            outcome = "ok"
        except (ConflictError, InvalidTransitionError, RetryableConflictError) as e:
            outcome = type(e).__name__
        finally:
            db.close()
        with outcomes_lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=worker, args=(call,)) for call in calls]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    return outcomes


def book(user_id, table_id, start=time(18, 0)):
    return lambda scheduler: scheduler.create(user_id, table_id, TODAY, start, 2)


def active_reservations(session_factory, table_id=None):
    db = session_factory()
    try:
        query = db.query(TableReservationDB).filter(TableReservationDB.status.in_(["PENDING", "CONFIRMED"]))
        if table_id is not None:
            query = query.filter(TableReservationDB.table_id == table_id)
        return query.all()
    finally:
        db.close()


def assert_no_overlap(reservations):
    for i, first in enumerate(reservations):
        for second in reservations[i + 1:]:
            if first.table_id == second.table_id and first.date == second.date:
                assert not windows_overlap(first.time, second.time, 120)


# =========================================================
# create
# =========================================================
def test_concurrent_creates_for_same_slot_book_once(file_session_factory, table_id):
    outcomes = run_concurrently(file_session_factory, [book(f"user-{i}", table_id) for i in range(8)])

    assert len(outcomes) == 8
    assert outcomes.count("ok") == 1
    assert set(outcomes) <= {"ok", "ConflictError", "RetryableConflictError"}
    assert len(active_reservations(file_session_factory, table_id)) == 1


def test_concurrent_overlapping_creates_never_double_book(file_session_factory, table_id):
    starts = [time(17, 0), time(17, 30), time(18, 0), time(18, 30), time(19, 0), time(20, 0)]
    outcomes = run_concurrently(
        file_session_factory, [book(f"user-{i}", table_id, start) for i, start in enumerate(starts)]
    )

    assert len(outcomes) == len(starts)
    booked = active_reservations(file_session_factory, table_id)
    assert booked
    assert_no_overlap(booked)


def test_one_user_booking_many_tables_at_once_respects_user_limit(file_session_factory):
    table_ids = add_tables(file_session_factory, 8)

    outcomes = run_concurrently(file_session_factory, [book("alice", tid) for tid in table_ids])

    assert len(outcomes) == 8
    assert outcomes.count("ok") == 3
    assert outcomes.count("ConflictError") == 5
    assert len(active_reservations(file_session_factory)) == 3


def test_many_users_on_many_tables_respect_day_limit(file_session_factory):
    table_ids = add_tables(file_session_factory, 8)

    outcomes = run_concurrently(
        file_session_factory,
        [book(f"user-{i}", tid) for i, tid in enumerate(table_ids)],
        config=make_config(max_reservations_per_day=2),
    )

    assert len(outcomes) == 8
    assert outcomes.count("ok") == 2
    assert len(active_reservations(file_session_factory)) == 2


# =========================================================
# update racing create
# =========================================================
def test_update_into_slot_races_create(file_session_factory):
    target, elsewhere = add_tables(file_session_factory, 2)
    moving_id = book_upfront(file_session_factory, "alice", elsewhere)

    calls = [lambda s: s.update(moving_id, "alice", target, TODAY, time(18, 30), 2)]
    calls += [book(f"user-{i}", target) for i in range(5)]
    outcomes = run_concurrently(file_session_factory, calls)

    assert len(outcomes) == 6
    assert outcomes.count("ok") == 1
    assert len(active_reservations(file_session_factory, target)) == 1
    assert_no_overlap(active_reservations(file_session_factory))


# =========================================================
# status changes
# =========================================================
def test_concurrent_cancel_and_confirm_end_cancelled(file_session_factory, table_id):
    reservation_id = book_upfront(file_session_factory, "alice", table_id)

    outcomes = run_concurrently(
        file_session_factory,
        [
            lambda s: s.cancel(reservation_id, "alice"),
            lambda s: s.change_status(reservation_id, ReservationStatus.CONFIRMED),
        ],
    )

    # confirm then cancel, or cancel then a rejected confirm; never cancelled then confirmed
    assert "ok" in outcomes
    assert set(outcomes) <= {"ok", "InvalidTransitionError"}
    db = file_session_factory()
    assert db.query(TableReservationDB).filter(TableReservationDB.id == reservation_id).one().status == "CANCELLED"
    db.close()
