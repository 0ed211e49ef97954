from .Base import Base
from .ErrorCode import ErrorCode
from .Table import Table, TableUpdate, TableZone
from .TableDB import TableDB
from .Reservation import (
    NON_BLOCKING_STATUSES,
    OPEN_STATUSES,
    Reservation,
    ReservationExtend,
    ReservationStatus,
    ReservationStatusUpdate,
    ReservationUpdate,
)
from .ReservationDB import ReservationDB
from .Assignment import AssignTablesRequest
from .AssignmentDB import AssignmentDB
