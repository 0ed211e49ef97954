"""
Stale-reservation sweep: reservations dated before today that are still
``new`` or ``confirmed`` are marked ``completed``.

One bulk UPDATE, so a run either commits fully or not at all. Re-running is
harmless: rows already moved no longer match the filter. Assignments are
left in place as history.
"""
import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth import SYSTEM_CALLER, Caller
from database import SessionLocal
from errors import StorageFailure
from models import OPEN_STATUSES, ReservationDB, ReservationStatus

logger = logging.getLogger(__name__)


def complete_stale_reservations(db: Session, today: Optional[date] = None,
                                caller: Caller = SYSTEM_CALLER) -> int:
    """
    Marks past, still-open reservations as completed.

    Args:
        db (Session): Open database session.
        today (date, optional): Current calendar day; defaults to ``date.today()``.
        caller (Caller): Who triggered the run; the scheduler runs as ``system``.

    Returns:
        int: Number of reservations updated by this run.

    Raises:
        StorageFailure: The update failed and was rolled back.
    """
    today = today or date.today()
    logger.info("%s auto-completing reservations before %s", caller, today)
    try:
        updated = (
            db.query(ReservationDB)
            .filter(ReservationDB.date < today, ReservationDB.status.in_(OPEN_STATUSES))
            .update({ReservationDB.status: ReservationStatus.COMPLETED.value}, synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Auto-complete of reservations before %s failed", today)
        raise StorageFailure(f"Could not complete stale reservations: {e}") from e

    logger.info("Auto-completed %s reservations", updated)
    return updated


def run_reconcile_job() -> None:
    """Scheduler entry point; failures are logged and retried on the next run."""
    db = SessionLocal()
    try:
        complete_stale_reservations(db)
    except StorageFailure as e:
        logger.warning("Reconcile job failed, will retry on next run: %s", e.detail)
    finally:
        db.close()
