from sitefleet.models.models import CompanyUser, Employee


def _employee(**overrides):
    body = {"id": 5, "companyId": 1, "fullName": "  Jane   Doe ", "employeeCode": "emp-01"}
    body.update(overrides)
    return body


def test_create_employee_normalizes_fields(client, company):
    r = client.post("/api/employees", json=_employee())
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Employee created successfully"
    data = body["data"]
    assert data["id"] == 5
    assert data["fullName"] == "Jane Doe"
    assert data["employeeCode"] == "EMP-01"
    assert data["status"] == "ACTIVE"
    assert data["createdAt"]
    assert "timestamp" in body


def test_create_employee_lists_every_missing_field(client, company, db):
    r = client.post("/api/employees", json={})
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["errors"] == [
        "Employee ID is required",
        "Company ID is required",
        "Full name is required",
        "Employee code is required",
    ]
    assert db.query(Employee).count() == 0


def test_unknown_company_is_rejected_and_nothing_persisted(client, company, db):
    r = client.post("/api/employees", json=_employee(companyId=99))
    assert r.status_code == 400
    assert r.json()["message"] == "Company with ID 99 does not exist"
    assert db.query(Employee).count() == 0


def test_missing_reference_is_reported_before_conflict(client, company):
    assert client.post("/api/employees", json=_employee()).status_code == 201
    r = client.post("/api/employees", json=_employee(id=6, companyId=42))
    assert r.status_code == 400
    assert r.json()["message"] == "Company with ID 42 does not exist"


def test_duplicate_employee_code_conflicts(client, company, db):
    assert client.post("/api/employees", json=_employee()).status_code == 201
    r = client.post("/api/employees", json=_employee(id=6, fullName="John Roe", employeeCode=" Emp-01"))
    assert r.status_code == 409
    assert r.json()["message"] == "Employee with code 'EMP-01' already exists"

    db.expire_all()
    assert db.query(Employee).count() == 1
    original = db.get(Employee, 5)
    assert original.full_name == "Jane Doe"


def test_duplicate_employee_id_conflicts(client, company):
    assert client.post("/api/employees", json=_employee()).status_code == 201
    r = client.post("/api/employees", json=_employee(employeeCode="EMP-02"))
    assert r.status_code == 409
    assert r.json()["message"] == "Employee with ID 5 already exists"


def test_get_employee_with_invalid_id(client):
    r = client.get("/api/employees/abc")
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid employee ID. Must be a positive integer."
    assert client.get("/api/employees/0").status_code == 400


def test_update_merges_over_stored_record(client, company):
    client.post("/api/employees", json=_employee(jobTitle="Labourer"))
    r = client.put("/api/employees/5", json={"jobTitle": " Foreman ", "id": 77})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["id"] == 5
    assert data["jobTitle"] == "Foreman"
    assert data["fullName"] == "Jane Doe"
    assert data["employeeCode"] == "EMP-01"
    assert data["updatedAt"]


def test_update_rejects_code_taken_by_another_employee(client, company):
    client.post("/api/employees", json=_employee())
    client.post("/api/employees", json=_employee(id=6, employeeCode="EMP-02"))
    r = client.put("/api/employees/6", json={"employeeCode": "emp-01"})
    assert r.status_code == 409
    # Keeping its own code is not a conflict
    assert client.put("/api/employees/5", json={"employeeCode": "EMP-01"}).status_code == 200


def test_update_unknown_employee(client):
    r = client.put("/api/employees/12", json={"jobTitle": "Foreman"})
    assert r.status_code == 404
    assert r.json()["message"] == "Employee with ID 12 not found"


def test_patch_status(client, company):
    client.post("/api/employees", json=_employee())
    r = client.patch("/api/employees/5/status", json={"status": "inactive"})
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "INACTIVE"
    r = client.patch("/api/employees/5/status", json={"status": "retired"})
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid status. Must be one of: ACTIVE, INACTIVE, SUSPENDED"


def test_delete_returns_snapshot_then_not_found(client, company):
    client.post("/api/employees", json=_employee())
    r = client.delete("/api/employees/5")
    assert r.status_code == 200
    snapshot = r.json()["data"]
    assert snapshot["id"] == 5
    assert snapshot["fullName"] == "Jane Doe"
    assert snapshot["employeeCode"] == "EMP-01"

    r = client.get("/api/employees/5")
    assert r.status_code == 404
    assert r.json()["message"] == "Employee with ID 5 not found"
    assert client.delete("/api/employees/5").status_code == 404


def test_listing_is_paginated_and_enriched(client, company, user):
    client.post("/api/employees", json=_employee(userId=10))
    client.post("/api/employees", json=_employee(id=6, fullName="John Roe", employeeCode="EMP-02"))
    r = client.get("/api/employees", params={"companyId": 1, "limit": 1, "sortBy": "id", "sortOrder": "asc"})
    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 1
    assert body["pagination"] == {"currentPage": 1, "totalPages": 2, "totalItems": 2, "itemsPerPage": 1}
    assert body["data"][0]["id"] == 5
    assert body["data"][0]["email"] == "jane@example.com"

    r = client.get("/api/employees", params={"search": "roe"})
    assert [e["id"] for e in r.json()["data"]] == [6]


def test_workers_are_active_employees_with_worker_role(client, company, user, db):
    db.add(CompanyUser(id=1, company_id=1, user_id=10, role="worker", is_primary=False))
    db.commit()
    client.post("/api/employees", json=_employee(userId=10))
    client.post("/api/employees", json=_employee(id=6, fullName="John Roe", employeeCode="EMP-02"))

    r = client.get("/api/employees/workers", params={"companyId": 1})
    assert r.status_code == 200
    assert [e["id"] for e in r.json()["data"]] == [5]

    assert client.get("/api/employees/workers").status_code == 400
    r = client.get("/api/employees/workers", params={"companyId": "x"})
    assert r.json()["message"] == "Invalid company ID format"


def test_company_and_status_listings(client, company):
    client.post("/api/employees", json=_employee())
    client.post("/api/employees", json=_employee(id=6, fullName="Abe Roe", employeeCode="EMP-02", status="SUSPENDED"))

    r = client.get("/api/employees/company/1")
    assert [e["fullName"] for e in r.json()["data"]] == ["Abe Roe", "Jane Doe"]
    r = client.get("/api/employees/company/1/active")
    assert [e["id"] for e in r.json()["data"]] == [5]
    r = client.get("/api/employees/status/suspended")
    assert [e["id"] for e in r.json()["data"]] == [6]


def test_malformed_ids_are_rejected(client, company, db):
    r = client.post("/api/employees", json=_employee(id="nan"))
    assert r.status_code == 400
    assert r.json()["message"] == "Employee ID must be a number"
    r = client.post("/api/employees", json=_employee(id=0))
    assert r.status_code == 400
    assert r.json()["message"] == "Employee ID must be a positive integer"
    r = client.post("/api/employees", json=_employee(id=5.5))
    assert r.status_code == 400
    r = client.post("/api/employees", json=_employee(companyId=-1))
    assert r.status_code == 400
    assert r.json()["message"] == "Company ID must be a positive integer"
    assert db.query(Employee).count() == 0


def test_path_id_beyond_integer_range(client, company):
    r = client.get("/api/employees/99999999999")
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid employee ID. Must be a positive integer."
