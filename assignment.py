"""
Assignment Transaction Manager and Release Operation.

``assign_tables`` replaces a reservation's whole table set in one
transaction: it re-validates the desired tables against current
availability (ignoring the reservation's own links), then applies only the
difference. Calling it again with the same set writes nothing.
"""
import logging
from contextlib import ExitStack
from datetime import date
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from auth import Caller
from availability import find_conflicts
from errors import NotFound, ReservationError, StorageFailure, TableConflict
from locks import table_date_locks
from models import NON_BLOCKING_STATUSES, AssignmentDB, ReservationDB, TableDB
from time_window import TimeWindow, format_time, resolve_window

logger = logging.getLogger(__name__)


def get_reservation(db: Session, reservation_id: int, for_update: bool = False) -> ReservationDB:
    query = db.query(ReservationDB).filter(ReservationDB.id == reservation_id)
    if for_update:
        query = query.with_for_update()
    reservation = query.first()
    if not reservation:
        raise NotFound(f"Reservation {reservation_id} not found")
    return reservation


def reservation_window(reservation: ReservationDB) -> TimeWindow:
    return resolve_window(reservation.start_time, reservation.end_time)


def get_assigned_tables(db: Session, reservation_id: int) -> list[AssignmentDB]:
    """Returns the reservation's assignments with their tables loaded."""
    try:
        get_reservation(db, reservation_id)
        return (
            db.query(AssignmentDB)
            .options(joinedload(AssignmentDB.table))
            .filter(AssignmentDB.reservation_id == reservation_id)
            .order_by(AssignmentDB.table_id.asc())
            .all()
        )
    except SQLAlchemyError as e:
        raise StorageFailure(f"Could not load assigned tables: {e}") from e


def _conflict_error(conflicts) -> TableConflict:
    first = conflicts[0]
    detail = (
        f"Table {first.table_number} is already reserved from {format_time(first.window.start)} "
        f"to {format_time(first.window.end)} (reservation {first.reservation_id})"
    )
    if len(conflicts) > 1:
        detail += f" and {len(conflicts) - 1} more conflict(s)"
    return TableConflict(detail, [c.as_dict() for c in conflicts])


def assign_tables(db: Session, caller: Caller, reservation_id: int, table_ids: Iterable[int],
                  day: date, window: TimeWindow, pin_end: bool = True) -> int:
    """
    Atomically sets the tables held by a reservation.

    Args:
        db (Session): Open database session; committed or rolled back here.
        caller (Caller): Authenticated operator performing the change.
        reservation_id (int): Reservation to (re)assign.
        table_ids (iterable): The complete desired table set. Empty releases
            every table.
        day (date): Date the assignments are made for.
        window (TimeWindow): Window copied onto every assignment.
        pin_end (bool): Store the window's end on the reservation. Pass
            ``False`` to keep an open end that the default duration resolves.

    Returns:
        int: Number of tables assigned after the commit.

    Raises:
        NotFound: Unknown reservation or table id.
        TableConflict: A desired table is taken or inactive. Nothing is written.
        StorageFailure: The database failed; the transaction was rolled back.
    """
    desired = set(table_ids)
    try:
        with table_date_locks(db, desired, day):
            reservation = get_reservation(db, reservation_id, for_update=True)
            current = {a.table_id: a for a in reservation.assignments}

            tables = {}
            if desired:
                tables = {t.id: t for t in db.query(TableDB).filter(TableDB.id.in_(desired)).all()}
            missing = sorted(desired - tables.keys())
            if missing:
                raise NotFound(f"Table(s) not found: {', '.join(str(i) for i in missing)}")

            # Inactive tables may only be kept, never newly claimed
            inactive = sorted(
                t.number for tid, t in tables.items() if not t.active and tid not in current
            )
            if inactive:
                raise TableConflict(f"Table(s) not active: {', '.join(inactive)}")

            conflicts = find_conflicts(db, desired, day, window, exclude_reservation_id=reservation.id)
            if conflicts:
                raise _conflict_error(conflicts)

            to_remove = current.keys() - desired
            to_add = desired - current.keys()
            writes = 0

            for table_id in to_remove:
                db.delete(current[table_id])
                writes += 1

            for table_id in desired & current.keys():
                held = current[table_id]
                if (held.date, held.start_time, held.end_time) != (day, window.start, window.end):
                    held.date = day
                    held.start_time = window.start
                    held.end_time = window.end
                    writes += 1

            for table_id in sorted(to_add):
                db.add(AssignmentDB(
                    reservation_id=reservation.id,
                    table_id=table_id,
                    date=day,
                    start_time=window.start,
                    end_time=window.end,
                ))
                writes += 1

            # The reservation always describes the slot its tables are held for
            slot = {"date": day, "start_time": window.start}
            if pin_end:
                slot["end_time"] = window.end
            for field, value in slot.items():
                if getattr(reservation, field) != value:
                    setattr(reservation, field, value)
                    writes += 1

            db.commit()
    except ReservationError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Assigning tables to reservation %s failed", reservation_id)
        raise StorageFailure(f"Could not assign tables: {e}") from e

    logger.info(
        "%s assigned %d table(s) to reservation %s on %s %s-%s (+%d/-%d, %d write(s))",
        caller, len(desired), reservation_id, day,
        format_time(window.start), format_time(window.end), len(to_add), len(to_remove), writes,
    )
    return len(desired)


def release_all_tables(db: Session, caller: Caller, reservation_id: int) -> bool:
    """
    Removes every table link of a reservation, on any date.

    Returns:
        bool: Whether anything was removed. ``False`` means it was already
        unassigned, which is not an error.
    """
    try:
        get_reservation(db, reservation_id, for_update=True)
        removed = (
            db.query(AssignmentDB)
            .filter(AssignmentDB.reservation_id == reservation_id)
            .delete(synchronize_session=False)
        )
        db.commit()
    except ReservationError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Releasing tables of reservation %s failed", reservation_id)
        raise StorageFailure(f"Could not release tables: {e}") from e

    logger.info("%s released %d table(s) from reservation %s", caller, removed, reservation_id)
    return removed > 0


def extend_reservation(db: Session, caller: Caller, reservation_id: int, end_time) -> ReservationDB:
    """
    Moves a reservation's end time, re-validating every table it holds.

    Raises TableConflict if any held table is booked by someone else inside
    the extended window; nothing changes in that case.
    """
    reservation = get_reservation(db, reservation_id)
    window = resolve_window(reservation.start_time, end_time)
    held = [a.table_id for a in reservation.assignments]
    assign_tables(db, caller, reservation_id, held, reservation.date, window)
    db.refresh(reservation)
    return reservation


def set_reservation_status(db: Session, caller: Caller, reservation_id: int, status: str) -> ReservationDB:
    """
    Changes a reservation's status.

    Leaving ``cancelled`` or ``no_show`` for a blocking status makes the held
    tables count again, so they are re-checked under the same locks as an
    assignment.

    Raises:
        NotFound: Unknown reservation.
        TableConflict: A held table was booked by someone else in the
            meantime. The status is left unchanged.
        StorageFailure: The database failed; the transaction was rolled back.
    """
    reservation = get_reservation(db, reservation_id)
    previous = reservation.status
    reactivating = previous in NON_BLOCKING_STATUSES and status not in NON_BLOCKING_STATUSES
    held = list(reservation.assignments) if reactivating else []

    by_day = {}
    for a in held:
        by_day.setdefault(a.date, []).append(a.table_id)

    try:
        with ExitStack() as stack:
            for day in sorted(by_day):
                stack.enter_context(table_date_locks(db, by_day[day], day))
            reservation = get_reservation(db, reservation_id, for_update=True)

            conflicts = []
            for a in held:
                conflicts.extend(find_conflicts(
                    db, [a.table_id], a.date, TimeWindow(a.start_time, a.end_time),
                    exclude_reservation_id=reservation_id,
                ))
            if conflicts:
                raise _conflict_error(conflicts)

            reservation.status = status
            db.commit()
    except ReservationError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Changing status of reservation %s failed", reservation_id)
        raise StorageFailure(f"Could not change reservation status: {e}") from e

    db.refresh(reservation)
    logger.info("%s changed reservation %s status %s -> %s", caller, reservation_id, previous, status)
    return reservation
