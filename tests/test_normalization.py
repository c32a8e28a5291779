from datetime import datetime

from sitefleet.pipelines.employees import normalize_employee
from sitefleet.pipelines.fleet import normalize_fleet_task
from sitefleet.pipelines.projects import normalize_project, normalize_task
from sitefleet.pipelines.users import normalize_user
from sitefleet.services.normalization import clean_text, digits, parse_date, parse_timestamp, to_float, to_int


def test_employee_payload_is_canonicalized():
    out = normalize_employee({
        "id": "5",
        "companyId": "1",
        "fullName": "  Jane   Doe ",
        "employeeCode": " emp-01 ",
        "phone": "+1 (555) 010-9999",
        "status": "inactive",
    })
    assert out["id"] == 5
    assert out["companyId"] == 1
    assert out["fullName"] == "Jane Doe"
    assert out["employeeCode"] == "EMP-01"
    assert out["phone"] == "15550109999"
    assert out["status"] == "INACTIVE"


def test_defaults_are_applied():
    assert normalize_employee({"id": 1})["status"] == "ACTIVE"
    project = normalize_project({"name": "Tower"})
    assert project["status"] == "PLANNING"
    assert project["budget"] == 0
    task = normalize_task({"taskName": "Pour"})
    assert task["status"] == "PLANNED"
    assert task["additionalData"] == {}
    assert normalize_user({"email": "a@b.co"})["isActive"] is True


def test_normalization_is_idempotent():
    raw_inputs = [
        (normalize_employee, {"id": "5", "companyId": "1", "fullName": " Jane  Doe", "employeeCode": "emp-01", "phone": "555-1234"}),
        (normalize_project, {"name": "  Tower   A ", "companyId": "1", "code": "tw-1", "budget": "1200.50", "startDate": "2024-01-01T08:00:00Z"}),
        (normalize_task, {"companyId": 1, "projectId": "2", "taskName": "Pour  slab", "taskType": "work", "createdAt": "garbage"}),
        (normalize_user, {"id": "3", "email": " Jane@Example.COM ", "name": " Jane ", "createdAt": "2024-03-01"}),
        (normalize_fleet_task, {"companyId": "1", "vehicleId": "2", "taskDate": 1704067200000, "status": "ongoing"}),
    ]
    for normalize, raw in raw_inputs:
        once = normalize(raw)
        assert normalize(once) == once


def test_malformed_numbers_become_none():
    assert to_int("twelve") is None
    assert to_float("1,5") is None
    assert to_int("42") == 42
    assert to_float("3.5") == 3.5


def test_strings_and_phones():
    assert clean_text("  a \t b\n c ") == "a b c"
    assert clean_text("   ") is None
    assert digits("(555) 010") == "555010"


def test_date_parsing():
    assert parse_date("2024-01-10") == datetime(2024, 1, 10)
    assert parse_date("2024-01-10T10:00:00Z") == datetime(2024, 1, 10, 10, 0)
    assert parse_date("2024-01-10T12:00:00+02:00") == datetime(2024, 1, 10, 10, 0)
    assert parse_date(1704067200000) == datetime(2024, 1, 1)
    assert parse_date("not a date") is None
    assert parse_date(None) is None


def test_invalid_creation_timestamp_becomes_now():
    now = datetime(2024, 5, 1, 12, 0)
    assert parse_timestamp("garbage", now) == now
    assert parse_timestamp("2024-01-01", now) == datetime(2024, 1, 1)


def test_non_finite_numbers_collapse_to_none():
    assert to_float("inf") is None
    assert to_float("1e999") is None
    assert to_float(float("nan")) is None
    assert to_int("nan") is None
    assert to_int("-inf") is None
    assert normalize_project({"name": "Tower", "budget": "1e999"})["budget"] == 0.0
