from sitefleet.models.models import User


def _user(**overrides):
    body = {"id": 1, "email": "  Jane@Example.COM ", "name": " Jane  Doe "}
    body.update(overrides)
    return body


def test_create_user_builds_metadata(client):
    r = client.post("/api/users", json=_user())
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["email"] == "jane@example.com"
    assert data["name"] == "Jane Doe"
    assert data["isActive"] is True
    meta = data["metadata"]
    assert meta["accountStatus"] == "ACTIVE"
    assert meta["loginCount"] == 0
    assert meta["security"] == {"emailVerified": False, "twoFactorEnabled": False}


def test_email_uniqueness_ignores_case(client, db):
    client.post("/api/users", json=_user())
    r = client.post("/api/users", json=_user(id=2, email="JANE@example.com"))
    assert r.status_code == 409
    assert r.json()["message"] == "User with email jane@example.com already exists"
    assert db.query(User).count() == 1


def test_invalid_user_payload(client):
    r = client.post("/api/users", json={"id": 1, "email": "nope", "name": "Jane", "isActive": "yes"})
    assert r.status_code == 400
    assert r.json()["errors"] == ["Please provide a valid email address", "Active status must be a boolean value"]


def test_body_must_be_an_object(client):
    r = client.post("/api/users", json=["not", "an", "object"])
    assert r.status_code == 400
    assert r.json()["success"] is False


def test_deactivation_flips_account_status(client):
    client.post("/api/users", json=_user())
    r = client.put("/api/users/1", json={"isActive": False})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["isActive"] is False
    assert data["metadata"]["accountStatus"] == "INACTIVE"
    assert data["metadata"]["security"]["emailVerified"] is False


def test_status_listing(client):
    client.post("/api/users", json=_user())
    client.post("/api/users", json=_user(id=2, email="bob@example.com", name="Bob", isActive=False))
    r = client.get("/api/users/status/false")
    assert [u["id"] for u in r.json()["data"]] == [2]
    r = client.get("/api/users/status/maybe")
    assert r.status_code == 400
    r = client.get("/api/users", params={"isActive": "true"})
    assert [u["id"] for u in r.json()["data"]] == [1]


def test_user_stats(client):
    client.post("/api/users", json=_user(createdAt="2024-03-05T10:00:00Z"))
    client.post("/api/users", json=_user(id=2, email="bob@example.com", name="Bob", isActive=False, createdAt="2024-03-20"))
    stats = client.get("/api/users/stats").json()["data"]
    assert stats["totalUsers"] == 2
    assert {s["status"]: s["count"] for s in stats["statusStats"]} == {"ACTIVE": 1, "INACTIVE": 1}
    assert {a["accountStatus"]: a["count"] for a in stats["activityStats"]} == {"ACTIVE": 1, "INACTIVE": 1}
    assert stats["timelineStats"] == [{"month": "2024-03", "count": 2}]


def test_delete_user(client):
    client.post("/api/users", json=_user())
    r = client.delete("/api/users/1")
    assert r.json()["data"] == {"id": 1, "email": "jane@example.com", "name": "Jane Doe"}
    assert client.get("/api/users/1").status_code == 404
