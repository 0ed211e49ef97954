"""
Availability Index: which tables are free on a date for a time window.

A table is unavailable iff it holds at least one assignment on that date,
owned by a reservation that still blocks tables, whose window overlaps the
requested one (half-open, so back-to-back bookings are fine). Results are
computed per call and never cached.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from sqlalchemy import and_, exists
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from errors import StorageFailure
from models import NON_BLOCKING_STATUSES, AssignmentDB, ReservationDB, TableDB
from time_window import TimeWindow, format_time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Conflict:
    table_id: int
    table_number: str
    reservation_id: int
    window: TimeWindow
    customer_name: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "table_id": self.table_id,
            "table_number": self.table_number,
            "reservation_id": self.reservation_id,
            "start_time": format_time(self.window.start),
            "end_time": format_time(self.window.end),
            "customer_name": self.customer_name,
        }


def _blocking_criteria(day: date, window: TimeWindow, exclude_reservation_id: Optional[int]):
    # a.start < window.end AND window.start < a.end
    criteria = [
        AssignmentDB.date == day,
        AssignmentDB.reservation_id == ReservationDB.id,
        ReservationDB.status.notin_(NON_BLOCKING_STATUSES),
        and_(AssignmentDB.start_time < window.end, AssignmentDB.end_time > window.start),
    ]
    if exclude_reservation_id is not None:
        criteria.append(AssignmentDB.reservation_id != exclude_reservation_id)
    return criteria


def find_conflicts(db: Session, table_ids: Iterable[int], day: date, window: TimeWindow,
                   exclude_reservation_id: Optional[int] = None) -> list[Conflict]:
    """
    Returns every blocking assignment for the given tables, one entry per
    conflicting reservation and table.
    """
    ids = sorted(set(table_ids))
    if not ids:
        return []
    try:
        rows = (
            db.query(AssignmentDB, ReservationDB, TableDB)
            .filter(*_blocking_criteria(day, window, exclude_reservation_id))
            .filter(AssignmentDB.table_id == TableDB.id, AssignmentDB.table_id.in_(ids))
            .order_by(AssignmentDB.table_id.asc(), AssignmentDB.start_time.asc())
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Conflict lookup failed for %s %s", day, window)
        raise StorageFailure(f"Could not check table conflicts: {e}") from e

    return [
        Conflict(
            table_id=table.id,
            table_number=table.number,
            reservation_id=reservation.id,
            window=TimeWindow(assignment.start_time, assignment.end_time),
            customer_name=reservation.customer_name,
        )
        for assignment, reservation, table in rows
    ]


def available_tables(db: Session, day: date, window: TimeWindow,
                     exclude_reservation_id: Optional[int] = None,
                     zone: Optional[str] = None, min_capacity: int = 1) -> list[TableDB]:
    """
    Lists the active tables with no conflicting assignment.

    Runs as one SELECT so the result is a single point-in-time view.

    Args:
        db (Session): Open database session.
        day (date): Reservation date.
        window (TimeWindow): Requested ``[start, end)`` window.
        exclude_reservation_id (int, optional): A reservation whose own
            assignments are ignored, so it sees its held tables as free.
        zone (str, optional): Only tables in this zone.
        min_capacity (int): Only tables seating at least this many guests.

    Returns:
        list: TableDB rows ordered by zone and number.
    """
    blocked = (
        exists()
        .where(AssignmentDB.table_id == TableDB.id)
        .where(*_blocking_criteria(day, window, exclude_reservation_id))
    )
    query = db.query(TableDB).filter(
        TableDB.active.is_(True),
        TableDB.capacity >= min_capacity,
        ~blocked,
    )
    if zone:
        query = query.filter(TableDB.zone == zone)

    try:
        tables = query.order_by(TableDB.zone.asc(), TableDB.number.asc(), TableDB.id.asc()).all()
    except SQLAlchemyError as e:
        logger.exception("Availability query failed for %s %s", day, window)
        raise StorageFailure(f"Could not load available tables: {e}") from e

    logger.debug("%d tables free on %s %s", len(tables), day, window)
    return tables
