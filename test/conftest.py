import os
from datetime import date, time

import pytest

# Test-Umgebung setzen
os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = "sqlite://"

from auth import create_access_token
from database import SessionLocal
from models import *


# ---------------------------------------------------------
# DB Setup Fixture
# ---------------------------------------------------------
@pytest.fixture(autouse=True)
def setup_db():
    db = SessionLocal()
    Base.metadata.drop_all(bind=db.bind)
    Base.metadata.create_all(bind=db.bind)
    yield
    db.close()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


# ---------------------------------------------------------
# Helper: Auth headers
# ---------------------------------------------------------
@pytest.fixture
def staff_headers():
    token = create_access_token({"sub": "staff-1", "role": "staff"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    token = create_access_token({"sub": "admin-1", "role": "admin"})
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------
# Helper: Table / Reservation / Assignment anlegen
# ---------------------------------------------------------
def _persist(obj):
    session = SessionLocal(expire_on_commit=False)
    try:
        session.add(obj)
        session.commit()
        session.refresh(obj)
        return obj
    finally:
        session.close()


@pytest.fixture
def make_table():
    def _make(number="T1", capacity=4, zone="inside", active=True):
        return _persist(TableDB(number=number, capacity=capacity, zone=zone, active=active))
    return _make


@pytest.fixture
def make_reservation():
    def _make(day=date(2024, 6, 1), start=time(18, 0), end=None, party_size=2,
              status="new", customer_name="John"):
        return _persist(ReservationDB(
            date=day, start_time=start, end_time=end, party_size=party_size,
            status=status, customer_name=customer_name,
        ))
    return _make


@pytest.fixture
def make_assignment():
    def _make(reservation, table, start=None, end=None):
        return _persist(AssignmentDB(
            reservation_id=reservation.id,
            table_id=table.id,
            date=reservation.date,
            start_time=start or reservation.start_time,
            end_time=end or reservation.end_time or time(20, 0),
        ))
    return _make
