from models import *
from time_window import format_time


def table_to_dict(table: TableDB) -> dict:
    return {
        "id": table.id,
        "number": table.number,
        "capacity": table.capacity,
        "zone": table.zone,
        "active": table.active,
    }


def assignment_to_dict(assignment: AssignmentDB, with_table: bool = True) -> dict:
    data = {
        "id": assignment.id,
        "reservation_id": assignment.reservation_id,
        "table_id": assignment.table_id,
        "date": assignment.date,
        "start_time": format_time(assignment.start_time),
        "end_time": format_time(assignment.end_time),
    }
    if with_table:
        data["table"] = table_to_dict(assignment.table)
    return data


def reservation_to_dict(reservation: ReservationDB) -> dict:
    return {
        "id": reservation.id,
        "date": reservation.date,
        "start_time": format_time(reservation.start_time),
        "end_time": format_time(reservation.end_time),
        "party_size": reservation.party_size,
        "status": reservation.status,
        "customer_name": reservation.customer_name,
        "notes": reservation.notes,
        "table_ids": sorted(a.table_id for a in reservation.assignments),
    }
