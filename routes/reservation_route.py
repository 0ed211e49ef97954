import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from assignment import (
    assign_tables,
    extend_reservation,
    get_reservation,
    reservation_window,
    set_reservation_status,
)
from auth import Caller, get_caller
from database import get_db
from errors import StorageFailure
from helper import reservation_to_dict
from models import *
from time_window import parse_time, resolve_window

logger = logging.getLogger(__name__)

reservation_router = APIRouter(
    tags=["Reservation"]
)


@reservation_router.get("/reservations", tags=["Reservation"])
def get_reservations(date: Optional[date] = Query(None), status: Optional[ReservationStatus] = Query(None),
                     db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    """
    Retrieves reservations, optionally filtered by day and status.

    Returns:
        list: Reservations ordered by date and start time.
    """
    try:
        query = db.query(ReservationDB)
        if date:
            query = query.filter(ReservationDB.date == date)
        if status:
            query = query.filter(ReservationDB.status == status.value)
        reservations = query.order_by(ReservationDB.date.asc(), ReservationDB.start_time.asc()).all()
        return [reservation_to_dict(r) for r in reservations]
    except SQLAlchemyError as e:
        raise StorageFailure(str(e)) from e


@reservation_router.get("/reservations/{id}", tags=["Reservation"])
def get_reservation_by_id(id: int, db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    try:
        return reservation_to_dict(get_reservation(db, id))
    except SQLAlchemyError as e:
        raise StorageFailure(str(e)) from e


@reservation_router.post("/reservations", tags=["Reservation"])
def create_reservation(reservation: Reservation, db: Session = Depends(get_db),
                       caller: Caller = Depends(get_caller)):
    """
    Creates a new reservation with status ``new`` and no tables.

    The end time stays empty unless given; the default seating duration
    applies whenever a window is needed.
    """
    window = resolve_window(reservation.start_time, reservation.end_time)
    try:
        db_res = ReservationDB(
            date=reservation.date,
            start_time=window.start,
            end_time=parse_time(reservation.end_time) if reservation.end_time else None,
            party_size=reservation.party_size,
            status=ReservationStatus.NEW.value,
            customer_name=reservation.customer_name,
            notes=reservation.notes,
        )
        db.add(db_res)
        db.commit()
        db.refresh(db_res)
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageFailure(str(e)) from e

    logger.info("%s created reservation %s on %s", caller, db_res.id, db_res.date)
    return {"success": True, "reservation": reservation_to_dict(db_res)}


@reservation_router.put("/reservations/{id}", tags=["Reservation"])
def update_reservation(id: int, updated_reservation: ReservationUpdate, db: Session = Depends(get_db),
                       caller: Caller = Depends(get_caller)):
    """
    Updates reservation details.

    If the reservation holds tables and its date or window changes, the held
    tables are re-validated for the new slot and moved with it; a conflict
    rejects the whole update.
    """
    changes = updated_reservation.model_dump(exclude_unset=True)
    res = get_reservation(db, id)

    new_date = changes.get("date") or res.date
    new_start = parse_time(changes["start_time"]) if changes.get("start_time") else res.start_time
    if "end_time" in changes:
        new_end = parse_time(changes["end_time"]) if changes["end_time"] else None
    else:
        new_end = res.end_time
    window = resolve_window(new_start, new_end)

    held = [a.table_id for a in res.assignments]
    slot_changed = (new_date, new_start, new_end) != (res.date, res.start_time, res.end_time)

    try:
        res.date = new_date
        res.start_time = new_start
        res.end_time = new_end
        for field in ("party_size", "customer_name", "notes"):
            if field in changes:
                setattr(res, field, changes[field])

        if held and slot_changed:
            # Commits the detail changes together with the moved assignments
            assign_tables(db, caller, id, held, new_date, window, pin_end=new_end is not None)
        else:
            db.commit()
        db.refresh(res)
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageFailure(str(e)) from e

    logger.info("%s updated reservation %s", caller, id)
    return {"success": True, "reservation": reservation_to_dict(res)}


@reservation_router.put("/reservations/{id}/status", tags=["Reservation"])
def update_reservation_status(id: int, update: ReservationStatusUpdate, db: Session = Depends(get_db),
                              caller: Caller = Depends(get_caller)):
    """
    Sets the status of a reservation.

    Bringing a cancelled or no-show reservation back is refused with 409
    when one of its tables has been booked by someone else since.
    """
    res = set_reservation_status(db, caller, id, update.status.value)
    return {"success": True, "reservation": reservation_to_dict(res)}


@reservation_router.post("/reservations/{id}/extend", tags=["Reservation"])
def extend_reservation_end(id: int, body: ReservationExtend, db: Session = Depends(get_db),
                           caller: Caller = Depends(get_caller)):
    """
    Moves the end time of a reservation and of every table it holds.

    Returns 409 with the conflicting reservations when a held table is
    booked again inside the extended window.
    """
    res = extend_reservation(db, caller, id, body.end_time)
    return {"success": True, "reservation": reservation_to_dict(res)}


@reservation_router.get("/reservations/{id}/window", tags=["Reservation"])
def get_reservation_window(id: int, db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    """Resolved ``[start, end)`` window, applying the default duration if no end is set."""
    res = get_reservation(db, id)
    return {"date": res.date, **reservation_window(res).as_dict()}
