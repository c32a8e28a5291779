from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..models.models import Project
from ..pipelines.companies import companies
from ..pipelines.projects import projects, serialize_project
from ..services.envelope import ok
from ..services.listing import date_range, listing, paginate, search_clause
from ..services.pipeline import positive_id
from ..services.stats import project_stats


router = APIRouter(prefix="/api/projects", tags=["projects"])

SORTABLE = {
    "id": Project.id,
    "name": Project.name,
    "code": Project.code,
    "status": Project.status,
    "budget": Project.budget,
    "startDate": Project.start_date,
    "endDate": Project.end_date,
    "createdAt": Project.created_at,
}


def _search(term: Optional[str]):
    return search_clause(term, [Project.name, Project.code, Project.location])


@router.get("")
def list_projects(
    page: int = 1,
    limit: Optional[int] = None,
    sortBy: Optional[str] = None,
    sortOrder: Optional[str] = None,
    status: Optional[str] = None,
    companyId: Optional[int] = None,
    health: Optional[str] = None,
    startDateFrom: Optional[str] = None,
    startDateTo: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(Project)
    if status:
        query = query.filter(Project.status == status.strip().upper())
    if companyId is not None:
        query = query.filter(Project.company_id == companyId)
    if health:
        query = query.filter(Project.health == health.strip().upper())
    query = date_range(query, Project.start_date, startDateFrom, startDateTo)
    clause = _search(search)
    if clause is not None:
        query = query.filter(clause)
    items, pagination = paginate(query, page, limit, sortBy, sortOrder, SORTABLE, "createdAt")
    return listing([serialize_project(p) for p in items], pagination)


@router.get("/stats/{company_id}")
def get_project_stats(company_id: str, db: Session = Depends(get_db)):
    return ok(project_stats(db, positive_id(company_id, "company")))


@router.get("/company/{company_id}")
def list_company_projects(
    company_id: str,
    page: int = 1,
    limit: Optional[int] = None,
    sortBy: Optional[str] = None,
    sortOrder: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    cid = positive_id(company_id, "company")
    company = companies.get(db, cid)
    query = db.query(Project).filter(Project.company_id == cid)
    if status:
        query = query.filter(Project.status == status.strip().upper())
    clause = _search(search)
    if clause is not None:
        query = query.filter(clause)
    items, pagination = paginate(query, page, limit, sortBy, sortOrder, SORTABLE, "createdAt")
    body = listing([serialize_project(p) for p in items], pagination)
    body["company"] = {"id": company.id, "name": company.name}
    return body


@router.get("/{project_id}")
def get_project(project_id: str, db: Session = Depends(get_db)):
    project = projects.get(db, positive_id(project_id, "project"))
    return ok(serialize_project(project))


@router.post("", status_code=201)
def create_project(payload: dict, db: Session = Depends(get_db)):
    project = projects.create(db, payload)
    return ok(serialize_project(project), message="Project created successfully")


@router.put("/{project_id}")
def update_project(project_id: str, payload: dict, db: Session = Depends(get_db)):
    project = projects.update(db, positive_id(project_id, "project"), payload)
    return ok(serialize_project(project), message="Project updated successfully")


@router.delete("/{project_id}")
def delete_project(project_id: str, db: Session = Depends(get_db)):
    snapshot = projects.delete(db, positive_id(project_id, "project"))
    return ok(snapshot, message="Project deleted successfully")
