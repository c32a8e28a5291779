from typing import Dict, Optional

from ..models.models import EMPLOYEE_STATUSES, Company, Employee, User
from ..schemas.workforce import EmployeeIn
from ..services.envelope import iso, utcnow
from ..services.integrity import Reference, Unique
from ..services.normalization import clean_text, digits, or_default, parse_timestamp, to_int, trim, upper, upper_code
from ..services.pipeline import EntityPipeline
from ..services.validation import CODE_MAX, NAME_MAX, Validator


def validate_employee(data: dict) -> list:
    v = Validator(data)
    v.required("id", "Employee ID")
    v.required("companyId", "Company ID")
    v.required("fullName", "Full name")
    v.required("employeeCode", "Employee code")
    v.positive_id("id", "Employee ID")
    v.positive_id("companyId", "Company ID")
    v.positive_id("userId", "User ID")
    v.text("fullName", "Full name", NAME_MAX)
    v.text("employeeCode", "Employee code", CODE_MAX)
    v.one_of("status", "Status", EMPLOYEE_STATUSES)
    return v.errors


def normalize_employee(data: dict) -> dict:
    return {
        "id": to_int(data.get("id")),
        "companyId": to_int(data.get("companyId")),
        "userId": to_int(data.get("userId")),
        "fullName": clean_text(data.get("fullName")),
        "employeeCode": upper_code(data.get("employeeCode")),
        "phone": digits(data.get("phone")),
        "jobTitle": trim(data.get("jobTitle")),
        "photoUrl": trim(data.get("photoUrl")),
        "status": or_default(upper(data.get("status")), "ACTIVE"),
        "createdAt": parse_timestamp(data.get("createdAt"), utcnow()),
    }


def serialize_employee(e: Employee, emails: Optional[Dict[int, str]] = None) -> dict:
    return {
        "id": e.id,
        "companyId": e.company_id,
        "userId": e.user_id,
        "employeeCode": e.employee_code,
        "fullName": e.full_name,
        "phone": e.phone,
        "jobTitle": e.job_title,
        "photoUrl": e.photo_url,
        "status": e.status,
        "email": (emails or {}).get(e.user_id),
        "createdAt": iso(e.created_at),
        "updatedAt": iso(e.updated_at),
    }


employees = EntityPipeline(
    model=Employee,
    name="employee",
    entity="Employee",
    validate=validate_employee,
    normalize=normalize_employee,
    schema=EmployeeIn,
    serialize=serialize_employee,
    references=[Reference("companyId", Company, "Company"), Reference("userId", User, "User")],
    uniques=[Unique("employeeCode", "employee_code", "Employee with code '{value}' already exists", "employee code")],
    snapshot=("id", "fullName", "employeeCode", "companyId", "status", "createdAt"),
)
