from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from assignment import assign_tables, get_assigned_tables, release_all_tables
from auth import Caller, get_caller
from availability import available_tables
from database import get_db
from helper import assignment_to_dict, table_to_dict
from models import *
from time_window import resolve_window

assignment_router = APIRouter(
    tags=["Assignment"]
)


@assignment_router.get("/tables/available", tags=["Assignment"])
def get_available_tables(date: date = Query(...), start_time: str = Query(...),
                         end_time: Optional[str] = Query(None),
                         exclude_reservation_id: Optional[int] = Query(None),
                         zone: Optional[TableZone] = Query(None), min_capacity: int = Query(1, ge=1),
                         db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    """
    Lists active tables that are free on a day for a time window.

    Args:
        date (date): Reservation date.
        start_time (str): Window start, ``HH:MM``.
        end_time (str, optional): Window end; defaults to start plus the
            configured seating duration.
        exclude_reservation_id (int, optional): Treat this reservation's own
            tables as free (used while editing it).
        zone (TableZone, optional): Restrict to one zone.
        min_capacity (int): Minimum seats per table.

    Returns:
        list: Table dictionaries ordered by zone and number.
    """
    window = resolve_window(start_time, end_time)
    tables = available_tables(
        db, date, window,
        exclude_reservation_id=exclude_reservation_id,
        zone=zone.value if zone else None,
        min_capacity=min_capacity,
    )
    return [table_to_dict(table) for table in tables]


@assignment_router.get("/reservations/{id}/tables", tags=["Assignment"])
def get_reservation_tables(id: int, db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    return [assignment_to_dict(a) for a in get_assigned_tables(db, id)]


@assignment_router.put("/reservations/{id}/tables", tags=["Assignment"])
def put_reservation_tables(id: int, request: AssignTablesRequest, db: Session = Depends(get_db),
                           caller: Caller = Depends(get_caller)):
    """
    Replaces the complete table set of a reservation.

    An empty ``table_ids`` list releases every table. Conflicts come back as
    409 with ``error.code == "TABLE_CONFLICT"`` and the blocking reservations.

    Returns:
        dict: A success flag and the number of tables now assigned.
    """
    window = resolve_window(request.start_time, request.end_time)
    assigned = assign_tables(db, caller, id, request.table_ids, request.date, window)
    return {"success": True, "assigned": assigned}


@assignment_router.delete("/reservations/{id}/tables", tags=["Assignment"])
def delete_reservation_tables(id: int, db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    released = release_all_tables(db, caller, id)
    return {"success": True, "released": released}
