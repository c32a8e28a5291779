from datetime import datetime, timedelta

from sitefleet.models.models import Project
from sitefleet.services.project_health import project_metadata


def _project(**overrides):
    body = {"name": "Tower A", "companyId": 1, "code": "tw-1", "budget": 1000}
    body.update(overrides)
    return body


def test_create_project_generates_id_and_metadata(client, company):
    r = client.post("/api/projects", json=_project(startDate="2020-01-01", endDate="2999-01-01"))
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["id"] == 1
    assert data["code"] == "TW-1"
    assert data["status"] == "PLANNING"
    assert data["metadata"]["health"] == "HEALTHY"
    assert data["metadata"]["timelineStatus"] == "ON_TRACK"
    assert 0 <= data["metadata"]["progress"] < 100


def test_end_date_before_start_date(client, company, db):
    r = client.post("/api/projects", json=_project(startDate="2024-01-10", endDate="2024-01-01"))
    assert r.status_code == 400
    assert r.json()["message"] == "End date must be after start date"
    assert db.query(Project).count() == 0


def test_negative_budget(client, company):
    r = client.post("/api/projects", json=_project(budget=-1))
    assert r.status_code == 400
    assert "Budget cannot be negative" in r.json()["errors"]


def test_duplicate_code_conflicts(client, company):
    assert client.post("/api/projects", json=_project()).status_code == 201
    r = client.post("/api/projects", json=_project(name="Tower B", code=" TW-1 "))
    assert r.status_code == 409
    assert r.json()["message"] == "Project code 'TW-1' already exists"


def test_generated_ids_are_never_reused(client, company):
    first = client.post("/api/projects", json=_project(code="P1")).json()["data"]["id"]
    second = client.post("/api/projects", json=_project(code="P2")).json()["data"]["id"]
    assert (first, second) == (1, 2)
    client.delete(f"/api/projects/{second}")
    third = client.post("/api/projects", json=_project(code="P3")).json()["data"]["id"]
    assert third == 3


def test_generated_ids_skip_past_claimed_ids(client, company):
    client.post("/api/projects", json=_project(id=40, code="P40"))
    r = client.post("/api/projects", json=_project(code="P41"))
    assert r.json()["data"]["id"] == 41


def test_status_change_refreshes_metadata(client, company):
    client.post("/api/projects", json=_project(startDate="2020-01-01", endDate="2999-01-01"))
    r = client.put("/api/projects/1", json={"status": "ON_HOLD"})
    assert r.status_code == 200
    assert r.json()["data"]["metadata"]["health"] == "ON_HOLD"

    r = client.get("/api/projects", params={"health": "on_hold"})
    assert [p["id"] for p in r.json()["data"]] == [1]
    r = client.get("/api/projects", params={"status": "on_hold"})
    assert r.json()["count"] == 1


def test_update_keeps_metadata_when_schedule_untouched(client, company, db):
    client.post("/api/projects", json=_project(startDate="2020-01-01", endDate="2999-01-01"))
    stored = db.get(Project, 1)
    stored.project_metadata = dict(stored.project_metadata, risks=["Crane delivery"])
    db.commit()

    r = client.put("/api/projects/1", json={"description": "Twelve storeys"})
    assert r.status_code == 200
    assert r.json()["data"]["metadata"]["risks"] == ["Crane delivery"]


def test_company_projects(client, company):
    client.post("/api/projects", json=_project())
    r = client.get("/api/projects/company/1")
    assert r.status_code == 200
    body = r.json()
    assert body["company"] == {"id": 1, "name": "Acme Builders"}
    assert body["count"] == 1

    r = client.get("/api/projects/company/99")
    assert r.status_code == 404
    assert r.json()["message"] == "Company with ID 99 not found"


def test_project_stats(client, company):
    client.post("/api/projects", json=_project(code="P1", budget=1000))
    client.post("/api/projects", json=_project(code="P2", budget=3000))
    client.post("/api/projects", json=_project(code="P3", budget=500, status="COMPLETED"))

    r = client.get("/api/projects/stats/1")
    assert r.status_code == 200
    stats = r.json()["data"]
    by_status = {s["status"]: s for s in stats["statusStats"]}
    assert by_status["PLANNING"]["count"] == 2
    assert by_status["PLANNING"]["totalBudget"] == 4000
    assert by_status["COMPLETED"]["count"] == 1
    assert stats["budgetSummary"]["totalBudget"] == 4500
    assert stats["budgetSummary"]["minBudget"] == 500
    assert stats["budgetSummary"]["maxBudget"] == 3000
    assert stats["budgetSummary"]["projectCount"] == 3
    assert stats["companyId"] == 1


def test_stats_for_company_without_projects(client, company):
    stats = client.get("/api/projects/stats/1").json()["data"]
    assert stats["statusStats"] == []
    assert stats["budgetSummary"] == {}


def test_metadata_progress_midway():
    start = datetime(2024, 1, 1)
    end = start + timedelta(days=100)
    meta = project_metadata(start, end, "ACTIVE", now=start + timedelta(days=50))
    assert meta["progress"] == 50
    assert meta["health"] == "HEALTHY"
    assert meta["risks"] == []


def test_metadata_status_overrides_health():
    start = datetime(2024, 1, 1)
    end = datetime(2024, 6, 1)
    assert project_metadata(start, end, "CANCELLED", now=start)["health"] == "CANCELLED"
    assert project_metadata(None, None, "ON_HOLD")["health"] == "ON_HOLD"


def test_metadata_without_dates():
    meta = project_metadata(None, None, "PLANNING")
    assert meta["progress"] == 0
    assert meta["timelineStatus"] == "ON_TRACK"
    assert meta["financialStatus"] == "WITHIN_BUDGET"


def test_overflowing_budget_is_rejected(client, company, db):
    r = client.post("/api/projects", json=_project(budget="1e999"))
    assert r.status_code == 400
    assert r.json()["message"] == "Budget must be a number"
    assert db.query(Project).count() == 0
    r = client.get("/api/projects")
    assert r.status_code == 200
    assert r.json()["count"] == 0
