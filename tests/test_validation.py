from datetime import datetime

from sitefleet.pipelines.employees import validate_employee
from sitefleet.pipelines.projects import validate_project, validate_task
from sitefleet.pipelines.users import validate_user
from sitefleet.services.validation import Validator, is_number


def test_missing_employee_fields_are_all_reported():
    errors = validate_employee({})
    assert errors == [
        "Employee ID is required",
        "Company ID is required",
        "Full name is required",
        "Employee code is required",
    ]


def test_employee_types_and_lengths():
    errors = validate_employee({
        "id": "abc",
        "companyId": 1,
        "userId": "x1",
        "fullName": "a" * 101,
        "employeeCode": "C" * 21,
        "status": "active",
    })
    assert "Employee ID must be a number" in errors
    assert "User ID must be a number" in errors
    assert "Full name must be less than 100 characters" in errors
    assert "Employee code must be less than 20 characters" in errors
    assert "Status must be one of: ACTIVE, INACTIVE, SUSPENDED" in errors


def test_blank_name_cannot_be_empty():
    errors = validate_employee({"id": 1, "companyId": 1, "fullName": "   ", "employeeCode": "E1"})
    assert errors == ["Full name cannot be empty"]


def test_project_end_date_must_follow_start_date():
    errors = validate_project({"name": "Tower A", "companyId": 1, "startDate": "2024-01-10", "endDate": "2024-01-01"})
    assert errors == ["End date must be after start date"]


def test_project_equal_dates_are_rejected():
    errors = validate_project({"name": "Tower A", "companyId": 1, "startDate": "2024-01-10", "endDate": "2024-01-10"})
    assert "End date must be after start date" in errors


def test_project_budget_and_dates():
    errors = validate_project({"name": "Tower A", "companyId": 1, "budget": -5, "startDate": "not a date"})
    assert "Budget cannot be negative" in errors
    assert "Start date must be a valid date" in errors
    assert "End date must be after start date" not in errors


def test_task_enums_are_case_sensitive():
    errors = validate_task({"companyId": 1, "projectId": 1, "taskName": "Pour slab", "taskType": "work"})
    assert errors == ["Task type must be one of: WORK, TRANSPORT, MATERIAL, TOOL, INSPECTION, MAINTENANCE, ADMIN, TRAINING, OTHER"]


def test_user_email_and_active_flag():
    errors = validate_user({"id": 1, "email": "not-an-email", "name": "Jane", "isActive": "yes"})
    assert errors == ["Please provide a valid email address", "Active status must be a boolean value"]


def test_user_email_too_long():
    email = "a" * 250 + "@x.io"
    errors = validate_user({"id": 1, "email": email, "name": "Jane"})
    assert errors == ["Email address is too long"]


def test_dates_accept_epoch_millis_and_datetimes():
    v = Validator({"startDate": 1704067200000, "endDate": datetime(2024, 2, 1)})
    v.date("startDate", "Start date").date("endDate", "End date").date_order("startDate", "endDate")
    assert v.errors == []


def test_booleans_are_not_numbers():
    v = Validator({"id": True})
    v.number("id", "ID")
    assert v.errors == ["ID must be a number"]


def test_non_finite_values_are_not_numbers():
    assert not is_number("nan")
    assert not is_number("inf")
    assert not is_number("-Infinity")
    assert not is_number("1e999")
    assert not is_number(float("nan"))
    assert not is_number(float("inf"))
    assert is_number(" 12.5 ")


def test_ids_must_be_positive_integers():
    base = {"companyId": 1, "fullName": "Jane", "employeeCode": "E1"}
    assert validate_employee({**base, "id": "nan"}) == ["Employee ID must be a number"]
    for bad in (0, -3, 5.7, "2.5", 2**31):
        assert validate_employee({**base, "id": bad}) == ["Employee ID must be a positive integer"]
    assert validate_employee({**base, "id": "12", "userId": 3.0}) == []
    assert validate_employee({**base, "id": 1, "companyId": -1}) == ["Company ID must be a positive integer"]


def test_project_budget_must_be_finite():
    errors = validate_project({"name": "Tower A", "companyId": 1, "budget": "1e999"})
    assert errors == ["Budget must be a number"]


def test_task_name_length():
    errors = validate_task({"companyId": 1, "projectId": 1, "taskName": "a" * 101, "taskType": "WORK"})
    assert errors == ["Task name must be less than 100 characters"]
    assert validate_task({"companyId": 1, "projectId": 1, "taskName": "a" * 100, "taskType": "WORK"}) == []


def test_id_lists_reject_fractional_ids():
    v = Validator({"passengers": [5, 5.5]})
    v.id_list("passengers", "Passengers")
    assert v.errors == ["Passengers must be a list of IDs"]
