import os

# test environment, must be set before anything imports the database module
os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import date, time, timedelta

import pytest

from database import SessionLocal, engine, init_db
from models import Base, TableDB, TableReservationDB
from services.restaurant_config import RestaurantConfig
from services.scheduler import ReservationScheduler
from services.reservation_locks import ReservationLockRegistry

GUEST = {"X-User-Id": "alice"}
OTHER_GUEST = {"X-User-Id": "mallory"}
STAFF = {"X-User-Id": "bob", "X-User-Role": "staff"}
ADMIN = {"X-User-Id": "carol", "X-User-Role": "admin"}

# fixed "today" for scheduler unit tests
TODAY = date(2024, 1, 1)

# ---------------------------------------------------------
# DB Setup Fixture
# ---------------------------------------------------------
@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    init_db()
    yield

@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()

@pytest.fixture
def booking_day():
    return date.today() + timedelta(days=1)

# ---------------------------------------------------------
# Helper: tables and reservations
# ---------------------------------------------------------
@pytest.fixture
def create_test_table(db):
    def _create(number="T01", capacity=4, active=True):
        table = TableDB(number=number, capacity=capacity, active=active)
        db.add(table)
        db.commit()
        db.refresh(table)
        return table
    return _create

@pytest.fixture
def create_test_reservation(db):
    def _create(table_id, day=TODAY, start=time(18, 0), user_id="alice", party_size=2, status="PENDING"):
        reservation = TableReservationDB(
            user_id=user_id,
            table_id=table_id,
            date=day,
            time=start,
            party_size=party_size,
            status=status,
        )
        db.add(reservation)
        db.commit()
        db.refresh(reservation)
        return reservation
    return _create

# ---------------------------------------------------------
# Helper: Scheduler with an explicit config
# ---------------------------------------------------------
def make_config(**overrides):
    values = dict(
        opening_time=time(11, 0),
        closing_time=time(22, 0),
        slot_duration=120,
        max_reservations_per_user=3,
        max_reservations_per_day=50,
        booking_advance_days=30,
    )
    values.update(overrides)
    return RestaurantConfig(**values)

@pytest.fixture
def config():
    return make_config()

@pytest.fixture
def scheduler(db, config):
    return ReservationScheduler(db, config, ReservationLockRegistry(timeout=1), today=lambda: TODAY)
