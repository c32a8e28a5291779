def test_company_crud(client):
    r = client.post("/api/companies", json={"name": " Acme   Builders ", "tenantCode": "acme", "phone": "555 0101"})
    assert r.status_code == 201
    company = r.json()["data"]
    assert company["id"] == 1
    assert company["name"] == "Acme Builders"
    assert company["tenantCode"] == "ACME"
    assert company["phone"] == "5550101"

    r = client.post("/api/companies", json={"name": "Other", "tenantCode": "ACME"})
    assert r.status_code == 409
    assert r.json()["message"] == "Company with tenant code 'ACME' already exists"

    r = client.put("/api/companies/1", json={"isActive": False})
    assert r.json()["data"]["isActive"] is False

    r = client.delete("/api/companies/1")
    assert r.json()["data"]["tenantCode"] == "ACME"
    assert client.get("/api/companies/1").status_code == 404


def test_company_user_links(client, company, user):
    r = client.post("/api/companies/1/users", json={"userId": 10})
    assert r.status_code == 201
    link = r.json()["data"]
    assert link["role"] == "worker"
    assert link["isPrimary"] is False

    r = client.post("/api/companies/1/users", json={"userId": 10, "role": "manager"})
    assert r.status_code == 201

    # The same role twice is caught by the storage constraint
    r = client.post("/api/companies/1/users", json={"userId": 10, "role": "worker"})
    assert r.status_code == 409
    assert r.json()["message"] == "Company user already exists"

    r = client.get("/api/companies/1/users", params={"role": "manager"})
    data = r.json()["data"]
    assert len(data) == 1
    assert data[0]["email"] == "jane@example.com"

    r = client.delete(f"/api/companies/1/users/{link['id']}")
    assert r.status_code == 200
    assert client.get("/api/companies/1/users").json()["count"] == 1


def test_link_requires_existing_user(client, company):
    r = client.post("/api/companies/1/users", json={"userId": 77})
    assert r.status_code == 400
    assert r.json()["message"] == "User with ID 77 does not exist"


def test_link_role_must_be_known(client, company, user):
    r = client.post("/api/companies/1/users", json={"userId": 10, "role": "owner"})
    assert r.status_code == 400
    assert r.json()["message"] == "Role must be one of: worker, admin, manager, driver"
