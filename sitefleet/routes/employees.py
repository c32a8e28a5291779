from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import ValidationFailed
from ..models.models import EMPLOYEE_STATUSES, CompanyUser, Employee
from ..pipelines.employees import employees, serialize_employee
from ..services.enrichment import user_emails
from ..services.envelope import ok
from ..services.listing import listing, paginate, search_clause
from ..services.pipeline import positive_id


router = APIRouter(prefix="/api/employees", tags=["employees"])

SORTABLE = {
    "id": Employee.id,
    "fullName": Employee.full_name,
    "employeeCode": Employee.employee_code,
    "jobTitle": Employee.job_title,
    "status": Employee.status,
    "createdAt": Employee.created_at,
}


def _search(term: Optional[str]):
    return search_clause(term, [Employee.full_name, Employee.employee_code, Employee.job_title])


def _status(raw: str) -> str:
    status = raw.strip().upper()
    if status not in EMPLOYEE_STATUSES:
        raise ValidationFailed(f"Invalid status. Must be one of: {', '.join(EMPLOYEE_STATUSES)}")
    return status


def _enriched(db: Session, rows) -> list:
    emails = user_emails(db, [e.user_id for e in rows])
    return [serialize_employee(e, emails) for e in rows]


@router.get("")
def list_employees(
    page: int = 1,
    limit: Optional[int] = None,
    sortBy: Optional[str] = None,
    sortOrder: Optional[str] = None,
    companyId: Optional[int] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(Employee)
    if companyId is not None:
        query = query.filter(Employee.company_id == companyId)
    if status:
        query = query.filter(Employee.status == _status(status))
    clause = _search(search)
    if clause is not None:
        query = query.filter(clause)
    items, pagination = paginate(query, page, limit, sortBy, sortOrder, SORTABLE, "createdAt")
    return listing(_enriched(db, items), pagination)


@router.get("/workers")
def list_worker_employees(
    companyId: Optional[str] = None,
    role: str = "worker",
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Active employees whose linked user holds ``role`` in the company."""
    if not companyId:
        raise ValidationFailed("companyId is required")
    try:
        cid = int(companyId)
    except ValueError:
        raise ValidationFailed("Invalid company ID format")

    user_ids = [
        row[0]
        for row in db.query(CompanyUser.user_id)
        .filter(CompanyUser.company_id == cid, CompanyUser.role == role.strip().lower())
        .all()
    ]
    if not user_ids:
        return listing([], message=f"No {role} users found for this company")

    query = db.query(Employee).filter(
        Employee.company_id == cid,
        Employee.status == "ACTIVE",
        Employee.user_id.in_(user_ids),
    )
    clause = _search(search)
    if clause is not None:
        query = query.filter(clause)
    data = _enriched(db, query.order_by(Employee.full_name.asc()).all())
    return listing(data, message=f"Found {len(data)} active {role} employees")


@router.get("/company/{company_id}")
def list_company_employees(
    company_id: str,
    status: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    cid = positive_id(company_id, "company")
    query = db.query(Employee).filter(Employee.company_id == cid)
    if status:
        query = query.filter(Employee.status == _status(status))
    clause = _search(search)
    if clause is not None:
        query = query.filter(clause)
    data = _enriched(db, query.order_by(Employee.full_name.asc()).all())
    return listing(data, message=f"Found {len(data)} employees for company {cid}")


@router.get("/company/{company_id}/active")
def list_active_company_employees(company_id: str, db: Session = Depends(get_db)):
    cid = positive_id(company_id, "company")
    rows = (
        db.query(Employee)
        .filter(Employee.company_id == cid, Employee.status == "ACTIVE")
        .order_by(Employee.full_name.asc())
        .all()
    )
    return listing(_enriched(db, rows), message=f"Found {len(rows)} active employees for company {cid}")


@router.get("/status/{status}")
def list_employees_by_status(status: str, companyId: Optional[int] = None, db: Session = Depends(get_db)):
    wanted = _status(status)
    query = db.query(Employee).filter(Employee.status == wanted)
    if companyId is not None:
        query = query.filter(Employee.company_id == companyId)
    rows = query.order_by(Employee.full_name.asc()).all()
    return listing(_enriched(db, rows), message=f"Found {len(rows)} employees with status {wanted}")


@router.get("/{employee_id}")
def get_employee(employee_id: str, db: Session = Depends(get_db)):
    employee = employees.get(db, positive_id(employee_id, "employee"))
    return ok(_enriched(db, [employee])[0])


@router.post("", status_code=201)
def create_employee(payload: dict, db: Session = Depends(get_db)):
    employee = employees.create(db, payload)
    return ok(_enriched(db, [employee])[0], message="Employee created successfully")


@router.put("/{employee_id}")
def update_employee(employee_id: str, payload: dict, db: Session = Depends(get_db)):
    employee = employees.update(db, positive_id(employee_id, "employee"), payload)
    return ok(_enriched(db, [employee])[0], message="Employee updated successfully")


@router.patch("/{employee_id}/status")
def update_employee_status(employee_id: str, payload: dict, db: Session = Depends(get_db)):
    eid = positive_id(employee_id, "employee")
    status = _status(str(payload.get("status") or ""))
    employee = employees.update(db, eid, {"status": status})
    return ok(_enriched(db, [employee])[0], message=f"Employee status updated to {employee.status}")


@router.delete("/{employee_id}")
def delete_employee(employee_id: str, db: Session = Depends(get_db)):
    snapshot = employees.delete(db, positive_id(employee_id, "employee"))
    return ok(snapshot, message="Employee deleted successfully")
