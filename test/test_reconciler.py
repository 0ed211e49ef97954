from datetime import date, time, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

import reconciler
from app import app
from errors import StorageFailure
from models import *
from reconciler import complete_stale_reservations, run_reconcile_job

client = TestClient(app)

TODAY = date(2024, 6, 10)


def _statuses(db):
    db.expire_all()
    return {r.id: r.status for r in db.query(ReservationDB).all()}


def test_past_open_reservations_are_completed(db, make_reservation):
    new = make_reservation(day=date(2024, 6, 9), status="new")
    confirmed = make_reservation(day=date(2024, 6, 1), status="confirmed")
    today = make_reservation(day=TODAY, status="confirmed")
    future = make_reservation(day=date(2024, 6, 11), status="new")

    assert complete_stale_reservations(db, today=TODAY) == 2

    statuses = _statuses(db)
    assert statuses[new.id] == "completed"
    assert statuses[confirmed.id] == "completed"
    assert statuses[today.id] == "confirmed"
    assert statuses[future.id] == "new"


def test_terminal_reservations_are_untouched(db, make_reservation):
    cancelled = make_reservation(day=date(2024, 6, 1), status="cancelled")
    no_show = make_reservation(day=date(2024, 6, 1), status="no_show")
    completed = make_reservation(day=date(2024, 6, 1), status="completed")

    assert complete_stale_reservations(db, today=TODAY) == 0

    statuses = _statuses(db)
    assert statuses[cancelled.id] == "cancelled"
    assert statuses[no_show.id] == "no_show"
    assert statuses[completed.id] == "completed"


def test_second_run_updates_nothing(db, make_reservation):
    make_reservation(day=date(2024, 6, 1), status="new")
    make_reservation(day=date(2024, 6, 2), status="confirmed")

    assert complete_stale_reservations(db, today=TODAY) == 2
    assert complete_stale_reservations(db, today=TODAY) == 0


def test_assignments_are_kept(db, make_table, make_reservation, make_assignment):
    r1 = make_reservation(day=date(2024, 6, 1), end=time(20, 0))
    make_assignment(r1, make_table("T1"))

    complete_stale_reservations(db, today=TODAY)

    db.expire_all()
    assert db.query(AssignmentDB).filter(AssignmentDB.reservation_id == r1.id).count() == 1


def test_storage_error_is_reported(db, monkeypatch):
    def _fail(*args, **kwargs):
        raise OperationalError("UPDATE reservations", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "query", _fail)

    with pytest.raises(StorageFailure):
        complete_stale_reservations(db, today=TODAY)


def test_job_swallows_storage_error_for_next_run(monkeypatch):
    def _fail(db, today=None):
        raise StorageFailure("database is locked")

    monkeypatch.setattr(reconciler, "complete_stale_reservations", _fail)
    # Logged, not raised
    run_reconcile_job()


# =========================================================
# TEST: POST /reconcile
# =========================================================
def test_post_reconcile(make_reservation):
    yesterday = date.today() - timedelta(days=1)
    make_reservation(day=yesterday, status="new")
    make_reservation(day=date.today(), status="new")

    response = client.post("/reconcile")
    assert response.status_code == 200
    assert response.json() == {"success": True, "updated": 1}

    response = client.post("/reconcile")
    assert response.json() == {"success": True, "updated": 0}


def test_post_reconcile_failure(monkeypatch):
    def _fail(db, today=None):
        raise StorageFailure("connection refused")

    monkeypatch.setattr("routes.reconcile_route.complete_stale_reservations", _fail)

    response = client.post("/reconcile")
    assert response.status_code == 500
    assert response.json() == {"error": "connection refused"}


# =========================================================
# Scheduler
# =========================================================
def test_scheduler_registers_daily_job():
    from scheduler import RECONCILE_JOB_ID, build_scheduler

    job = build_scheduler().get_job(RECONCILE_JOB_ID)
    assert job is not None
    assert job.func is run_reconcile_job
    assert "cron" in str(job.trigger)


def test_scheduler_not_started_in_tests():
    from scheduler import start_scheduler

    assert start_scheduler() is None
