import warnings
from datetime import time

from fastapi.testclient import TestClient

from app import app
from models import Table

client = TestClient(app)

# =========================================================
# TEST: GET /tables
# =========================================================
def test_get_tables(staff_headers, make_table):
    make_table("T2", 6, zone="inside")
    make_table("G1", 4, zone="garden")
    make_table("T9", 2, active=False)

    response = client.get("/tables", headers=staff_headers)
    assert response.status_code == 200

    data = response.json()
    assert [t["number"] for t in data] == ["G1", "T2"]

    response = client.get("/tables", params={"include_inactive": True}, headers=staff_headers)
    assert len(response.json()) == 3

# =========================================================
# TEST: GET /tables/{id}
# =========================================================
def test_get_table(staff_headers, make_table):
    table = make_table("T1", 4)

    response = client.get(f"/tables/{table.id}", headers=staff_headers)
    assert response.status_code == 200

    data = response.json()
    assert data["number"] == "T1"
    assert data["capacity"] == 4
    assert data["zone"] == "inside"
    assert data["active"] is True

def test_get_table_not_found(staff_headers):
    response = client.get("/tables/999", headers=staff_headers)
    assert response.status_code == 404

# =========================================================
# TEST: POST /tables
# =========================================================
def test_create_table(admin_headers):
    payload = {
        "number": "M1",
        "capacity": 8,
        "zone": "mezz"
    }

    response = client.post("/tables", json=payload, headers=admin_headers)
    assert response.status_code == 200

    data = response.json()
    assert data["success"] is True
    assert data["table"]["number"] == "M1"
    assert data["table"]["capacity"] == 8
    assert data["table"]["zone"] == "mezz"

def test_create_table_rejects_bad_capacity(admin_headers):
    response = client.post("/tables", json={"number": "X", "capacity": 0}, headers=admin_headers)
    assert response.status_code == 422

def test_create_table_requires_admin(staff_headers):
    response = client.post("/tables", json={"number": "X", "capacity": 2}, headers=staff_headers)
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "PERMISSION_DENIED"

# =========================================================
# TEST: PUT /tables/{id}
# =========================================================
def test_update_table(admin_headers, make_table):
    table = make_table("Old", 4)

    payload = {
        "number": "New",
        "capacity": 6,
        "active": False
    }

    response = client.put(f"/tables/{table.id}", json=payload, headers=admin_headers)
    assert response.status_code == 200

    data = response.json()
    assert data["success"] is True
    assert data["table"]["number"] == "New"
    assert data["table"]["capacity"] == 6
    assert data["table"]["active"] is False

def test_update_table_not_found(admin_headers):
    response = client.put("/tables/999", json={"number": "DoesNotExist"}, headers=admin_headers)
    assert response.status_code == 404

# =========================================================
# TEST: DELETE /tables/{id}
# =========================================================
def test_delete_table(admin_headers, staff_headers, make_table):
    table = make_table("ToDelete", 4)

    response = client.delete(f"/tables/{table.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"success": True, "deactivated": False}

    response = client.get(f"/tables/{table.id}", headers=staff_headers)
    assert response.status_code == 404

def test_delete_table_with_history_is_deactivated(admin_headers, staff_headers, make_table,
                                                   make_reservation, make_assignment):
    table = make_table("T1", 4)
    make_assignment(make_reservation(end=time(20, 0)), table)

    response = client.delete(f"/tables/{table.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"success": True, "deactivated": True}

    response = client.get(f"/tables/{table.id}", headers=staff_headers)
    assert response.json()["active"] is False

def test_delete_table_not_found(admin_headers):
    response = client.delete("/tables/999", headers=admin_headers)
    assert response.status_code == 404

# =========================================================
# TEST: GET /tables-with-assignments
# =========================================================
def test_get_tables_with_assignments(staff_headers, make_table, make_reservation, make_assignment):
    t1 = make_table("T1", 4)
    make_table("T2", 2)
    r1 = make_reservation(end=time(20, 0))
    make_assignment(r1, t1)

    response = client.get("/tables-with-assignments", params={"date": "2024-06-01"}, headers=staff_headers)
    assert response.status_code == 200

    data = response.json()
    assert [t["number"] for t in data] == ["T1", "T2"]
    assert data[0]["assignments"][0]["reservation_id"] == r1.id
    assert data[0]["assignments"][0]["status"] == "new"
    assert data[1]["assignments"] == []

# =========================================================
# TEST: Table model
# =========================================================
def test_table_model_reads_orm_rows(make_table):
    db_table = make_table("G3", 6, zone="garden")
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        table = Table.model_validate(db_table)

    assert (table.id, table.number, table.capacity, table.zone.value) == (db_table.id, "G3", 6, "garden")
