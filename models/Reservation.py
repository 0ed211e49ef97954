from datetime import date as Date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ReservationStatus(str, Enum):
    NEW = "new"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# Reservations in these states never block a table
NON_BLOCKING_STATUSES = (ReservationStatus.CANCELLED.value, ReservationStatus.NO_SHOW.value)

# States the stale-reservation sweep moves to COMPLETED
OPEN_STATUSES = (ReservationStatus.NEW.value, ReservationStatus.CONFIRMED.value)


class Reservation(BaseModel):
    date: Date
    start_time: str
    end_time: Optional[str] = None
    party_size: int = Field(gt=0)
    customer_name: Optional[str] = None
    notes: Optional[str] = None


class ReservationUpdate(BaseModel):
    date: Optional[Date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    party_size: Optional[int] = Field(default=None, gt=0)
    customer_name: Optional[str] = None
    notes: Optional[str] = None


class ReservationStatusUpdate(BaseModel):
    status: ReservationStatus


class ReservationExtend(BaseModel):
    end_time: str
