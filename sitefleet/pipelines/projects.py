from typing import Dict, Optional

from ..models.models import PROJECT_STATUSES, TASK_STATUSES, TASK_TYPES, Company, Project, Task
from ..schemas.projects import ProjectIn, TaskIn
from ..services.enrichment import UNKNOWN_COMPANY, UNKNOWN_PROJECT
from ..services.envelope import iso, utcnow
from ..services.integrity import Reference, Unique
from ..services.normalization import (
    clean_text,
    or_default,
    parse_date,
    parse_timestamp,
    to_bool,
    to_float,
    to_int,
    trim,
    upper,
    upper_code,
)
from ..services.pipeline import EntityPipeline
from ..services.project_health import project_metadata, schedule_changed
from ..services.validation import CODE_MAX, NAME_MAX, Validator


# =====================
# Projects
# =====================

def validate_project(data: dict) -> list:
    v = Validator(data)
    v.required("name", "Project name")
    v.required("companyId", "Company ID")
    v.positive_id("id", "Project ID")
    v.positive_id("companyId", "Company ID")
    v.number("budget", "Budget")
    v.text("name", "Project name", NAME_MAX)
    v.text("code", "Project code", CODE_MAX)
    v.date("startDate", "Start date")
    v.date("endDate", "End date")
    v.date_order("startDate", "endDate")
    v.non_negative("budget", "Budget cannot be negative")
    v.one_of("status", "Status", PROJECT_STATUSES)
    v.boolean("permitRequired", "Permit required")
    v.mapping("contactPerson", "Contact person")
    return v.errors


def normalize_project(data: dict) -> dict:
    return {
        "id": to_int(data.get("id")),
        "companyId": to_int(data.get("companyId")),
        "code": upper_code(data.get("code")),
        "name": clean_text(data.get("name")),
        "description": trim(data.get("description")),
        "jobNature": clean_text(data.get("jobNature")),
        "jobSubtype": clean_text(data.get("jobSubtype")),
        "location": trim(data.get("location")),
        "address": trim(data.get("address")),
        "startDate": parse_date(data.get("startDate")),
        "endDate": parse_date(data.get("endDate")),
        "budget": or_default(to_float(data.get("budget")), 0.0),
        "status": or_default(upper(data.get("status")), "PLANNING"),
        "permitRequired": to_bool(data.get("permitRequired"), False),
        "permitStatus": trim(data.get("permitStatus")),
        "contactPerson": or_default(data.get("contactPerson"), {}),
        "createdBy": to_int(data.get("createdBy")),
    }


def derive_project(fields: dict, existing: Optional[Project]) -> None:
    if existing is not None and not schedule_changed(fields, existing):
        return
    metadata = project_metadata(fields.get("start_date"), fields.get("end_date"), fields.get("status"))
    fields["project_metadata"] = metadata
    fields["health"] = metadata["health"]


def serialize_project(p: Project) -> dict:
    return {
        "id": p.id,
        "companyId": p.company_id,
        "code": p.code,
        "name": p.name,
        "description": p.description,
        "jobNature": p.job_nature,
        "jobSubtype": p.job_subtype,
        "location": p.location,
        "address": p.address,
        "startDate": iso(p.start_date),
        "endDate": iso(p.end_date),
        "budget": p.budget,
        "status": p.status,
        "permitRequired": p.permit_required,
        "permitStatus": p.permit_status,
        "contactPerson": p.contact_person or {},
        "metadata": p.project_metadata or {},
        "createdBy": p.created_by,
        "createdAt": iso(p.created_at),
        "updatedAt": iso(p.updated_at),
    }


projects = EntityPipeline(
    model=Project,
    name="project",
    entity="Project",
    validate=validate_project,
    normalize=normalize_project,
    schema=ProjectIn,
    serialize=serialize_project,
    references=[Reference("companyId", Company, "Company")],
    uniques=[Unique("code", "code", "Project code '{value}' already exists", "project code")],
    derive=derive_project,
    snapshot=("id", "name", "code", "companyId"),
)


# =====================
# Tasks
# =====================

def validate_task(data: dict) -> list:
    v = Validator(data)
    v.required("companyId", "Company ID")
    v.required("projectId", "Project ID")
    v.required("taskName", "Task name")
    v.required("taskType", "Task type")
    v.positive_id("id", "Task ID")
    v.positive_id("companyId", "Company ID")
    v.positive_id("projectId", "Project ID")
    v.positive_id("assignedTo", "Assigned employee ID")
    v.text("taskName", "Task name", NAME_MAX)
    v.date("startDate", "Start date")
    v.date("endDate", "End date")
    v.date_order("startDate", "endDate")
    v.one_of("status", "Status", TASK_STATUSES)
    v.one_of("taskType", "Task type", TASK_TYPES)
    v.mapping("additionalData", "Additional data")
    return v.errors


def normalize_task(data: dict) -> dict:
    return {
        "id": to_int(data.get("id")),
        "companyId": to_int(data.get("companyId")),
        "projectId": to_int(data.get("projectId")),
        "taskName": clean_text(data.get("taskName")),
        "taskType": upper(data.get("taskType")),
        "description": trim(data.get("description")),
        "notes": trim(data.get("notes")),
        "status": or_default(upper(data.get("status")), "PLANNED"),
        "startDate": parse_date(data.get("startDate")),
        "endDate": parse_date(data.get("endDate")),
        "assignedTo": to_int(data.get("assignedTo")),
        "createdBy": to_int(data.get("createdBy")),
        "additionalData": or_default(data.get("additionalData"), {}),
        "createdAt": parse_timestamp(data.get("createdAt"), utcnow()),
    }


def serialize_task(
    t: Task,
    companies: Optional[Dict[int, str]] = None,
    projects: Optional[Dict[int, str]] = None,
) -> dict:
    body = {
        "id": t.id,
        "companyId": t.company_id,
        "projectId": t.project_id,
        "taskName": t.task_name,
        "taskType": t.task_type,
        "description": t.description,
        "notes": t.notes,
        "status": t.status,
        "startDate": iso(t.start_date),
        "endDate": iso(t.end_date),
        "assignedTo": t.assigned_to,
        "createdBy": t.created_by,
        "additionalData": t.additional_data or {},
        "createdAt": iso(t.created_at),
        "updatedAt": iso(t.updated_at),
    }
    if companies is not None:
        body["companyName"] = companies.get(t.company_id, UNKNOWN_COMPANY)
    if projects is not None:
        body["projectName"] = projects.get(t.project_id, UNKNOWN_PROJECT)
    return body


tasks = EntityPipeline(
    model=Task,
    name="task",
    entity="Task",
    validate=validate_task,
    normalize=normalize_task,
    schema=TaskIn,
    serialize=serialize_task,
    references=[Reference("companyId", Company, "Company"), Reference("projectId", Project, "Project")],
    snapshot=("id", "taskName", "taskType", "projectId", "companyId"),
)
