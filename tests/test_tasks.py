import pytest

from sitefleet.models.models import Project


@pytest.fixture
def project(db, company):
    p = Project(id=3, company_id=1, name="Tower A", code="TW-1", budget=0, status="ACTIVE")
    db.add(p)
    db.commit()
    return p


def _task(**overrides):
    body = {"companyId": 1, "projectId": 3, "taskName": "Pour  slab", "taskType": "WORK"}
    body.update(overrides)
    return body


def test_create_task_is_enriched(client, project):
    r = client.post("/api/tasks", json=_task())
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["taskName"] == "Pour slab"
    assert data["status"] == "PLANNED"
    assert data["additionalData"] == {}
    assert data["companyName"] == "Acme Builders"
    assert data["projectName"] == "Tower A"


def test_unknown_project(client, project, db):
    r = client.post("/api/tasks", json=_task(projectId=9))
    assert r.status_code == 400
    assert r.json()["message"] == "Project with ID 9 does not exist"


def test_task_type_must_match_exactly(client, project):
    r = client.post("/api/tasks", json=_task(taskType="work"))
    assert r.status_code == 400
    assert r.json()["message"].startswith("Task type must be one of: WORK, TRANSPORT")


def test_filters_accept_any_case(client, project):
    client.post("/api/tasks", json=_task())
    client.post("/api/tasks", json=_task(taskName="Inspect rebar", taskType="INSPECTION", status="COMPLETED"))

    r = client.get("/api/tasks", params={"status": "planned"})
    assert [t["taskName"] for t in r.json()["data"]] == ["Pour slab"]
    r = client.get("/api/tasks", params={"taskType": "inspection"})
    assert [t["taskName"] for t in r.json()["data"]] == ["Inspect rebar"]

    r = client.get("/api/tasks/status/completed")
    assert r.json()["count"] == 1
    r = client.get("/api/tasks/type/work")
    assert r.json()["count"] == 1
    r = client.get("/api/tasks/type/nap")
    assert r.status_code == 400


def test_project_tasks_and_stats(client, project):
    client.post("/api/tasks", json=_task())
    client.post("/api/tasks", json=_task(taskName="Haul gravel", taskType="TRANSPORT"))

    r = client.get("/api/tasks/project/3")
    assert r.json()["count"] == 2

    stats = client.get("/api/tasks/stats", params={"projectId": 3}).json()["data"]
    assert stats["totalTasks"] == 2
    assert {s["status"]: s["count"] for s in stats["byStatus"]} == {"PLANNED": 2}
    assert {t["taskType"]: t["count"] for t in stats["byType"]} == {"WORK": 1, "TRANSPORT": 1}
    assert sum(m["count"] for m in stats["byMonth"]) == 2


def test_update_and_delete_task(client, project):
    task_id = client.post("/api/tasks", json=_task()).json()["data"]["id"]
    r = client.put(f"/api/tasks/{task_id}", json={"status": "IN_PROGRESS", "notes": " bring vibrator "})
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "IN_PROGRESS"
    assert r.json()["data"]["notes"] == "bring vibrator"

    r = client.delete(f"/api/tasks/{task_id}")
    assert r.json()["data"]["taskName"] == "Pour slab"
    assert client.get(f"/api/tasks/{task_id}").status_code == 404
