import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database import get_db
from errors import StorageFailure
from reconciler import complete_stale_reservations

logger = logging.getLogger(__name__)

reconcile_router = APIRouter(
    tags=["Reconcile"]
)


@reconcile_router.post("/reconcile", tags=["Reconcile"])
def reconcile(db: Session = Depends(get_db)):
    """
    Marks past reservations that are still new or confirmed as completed.

    Meant for an external scheduler; needs no payload and is safe to call
    repeatedly.

    Returns:
        dict: ``{"success": True, "updated": n}``, or ``{"error": ...}`` with status 500.
    """
    try:
        updated = complete_stale_reservations(db)
    except StorageFailure as e:
        return JSONResponse(status_code=500, content={"error": e.detail})
    return {"success": True, "updated": updated}
