import logging
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth import Caller, get_caller, require_admin
from database import get_db
from errors import NotFound, StorageFailure
from helper import assignment_to_dict, table_to_dict
from models import *

logger = logging.getLogger(__name__)

table_router = APIRouter(
    tags=["Table"]
)


def _get_table_or_404(db: Session, id: int) -> TableDB:
    table = db.query(TableDB).filter(TableDB.id == id).first()
    if not table:
        raise NotFound("Table not found")
    return table


@table_router.get("/tables-with-assignments", tags=["Table"])
def get_tables_with_assignments(date: date = Query(...), db: Session = Depends(get_db),
                                caller: Caller = Depends(get_caller)):
    """
    Retrieves all tables with their assignments on one day.

    Args:
        date (date): The day to list assignments for.

    Returns:
        list: Tables ordered by zone and number, each with an array of assignments.
    """
    try:
        tables = db.query(TableDB).order_by(TableDB.zone.asc(), TableDB.number.asc()).all()
        assignments = (
            db.query(AssignmentDB)
            .filter(AssignmentDB.date == date)
            .order_by(AssignmentDB.start_time.asc())
            .all()
        )
    except SQLAlchemyError as e:
        raise StorageFailure(str(e)) from e

    by_table = {}
    for a in assignments:
        by_table.setdefault(a.table_id, []).append(
            {**assignment_to_dict(a, with_table=False), "status": a.reservation.status}
        )
    return [
        {**table_to_dict(table), "assignments": by_table.get(table.id, [])}
        for table in tables
        if table.active or table.id in by_table
    ]


@table_router.get("/tables", tags=["Table"])
def get_tables(include_inactive: bool = Query(False), db: Session = Depends(get_db),
               caller: Caller = Depends(get_caller)):
    try:
        query = db.query(TableDB)
        if not include_inactive:
            query = query.filter(TableDB.active.is_(True))
        tables = query.order_by(TableDB.zone.asc(), TableDB.number.asc()).all()
        return [table_to_dict(table) for table in tables]
    except SQLAlchemyError as e:
        raise StorageFailure(str(e)) from e


@table_router.get("/tables/{id}", tags=["Table"])
def get_table(id: int, db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    try:
        return table_to_dict(_get_table_or_404(db, id))
    except SQLAlchemyError as e:
        raise StorageFailure(str(e)) from e


@table_router.post("/tables", tags=["Table"])
def create_table(table: Table, db: Session = Depends(get_db), caller: Caller = Depends(require_admin)):
    try:
        db_table = TableDB(**{k: v for k, v in table.model_dump(mode="json").items() if k != "id"})
        db.add(db_table)
        db.commit()
        db.refresh(db_table)
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageFailure(str(e)) from e

    logger.info("%s created table %s", caller, db_table.number)
    return {"success": True, "table": table_to_dict(db_table)}


@table_router.put("/tables/{id}", tags=["Table"])
def update_table(id: int, updated_table: TableUpdate, db: Session = Depends(get_db),
                 caller: Caller = Depends(require_admin)):
    try:
        db_table = _get_table_or_404(db, id)

        for field, value in updated_table.model_dump(mode="json", exclude_unset=True).items():
            setattr(db_table, field, value)

        db.commit()
        db.refresh(db_table)
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageFailure(str(e)) from e

    logger.info("%s updated table %s", caller, id)
    return {"success": True, "table": table_to_dict(db_table)}


@table_router.delete("/tables/{id}", tags=["Table"])
def delete_table(id: int, db: Session = Depends(get_db), caller: Caller = Depends(require_admin)):
    """
    Deletes a table.

    A table that was ever assigned is only deactivated, so historical
    assignments keep pointing at it.

    Returns:
        dict: A success flag and whether the row was removed or deactivated.
    """
    try:
        db_table = _get_table_or_404(db, id)
        has_history = db.query(AssignmentDB.id).filter(AssignmentDB.table_id == id).first() is not None

        if has_history:
            db_table.active = False
        else:
            db.delete(db_table)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageFailure(str(e)) from e

    logger.info("%s %s table %s", caller, "deactivated" if has_history else "deleted", id)
    return {"success": True, "deactivated": has_history}
