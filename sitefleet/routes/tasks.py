from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import ValidationFailed
from ..models.models import TASK_STATUSES, TASK_TYPES, Task
from ..pipelines.projects import serialize_task, tasks
from ..services.enrichment import company_names, project_names
from ..services.envelope import ok
from ..services.listing import date_range, listing, paginate, search_clause
from ..services.pipeline import positive_id
from ..services.stats import task_stats


router = APIRouter(prefix="/api/tasks", tags=["tasks"])

SORTABLE = {
    "id": Task.id,
    "taskName": Task.task_name,
    "taskType": Task.task_type,
    "status": Task.status,
    "startDate": Task.start_date,
    "endDate": Task.end_date,
    "createdAt": Task.created_at,
}


def _enriched(db: Session, rows) -> list:
    companies = company_names(db, [t.company_id for t in rows])
    projects = project_names(db, [t.project_id for t in rows])
    return [serialize_task(t, companies, projects) for t in rows]


def _choice(raw: str, allowed, label: str) -> str:
    value = raw.strip().upper()
    if value not in allowed:
        raise ValidationFailed(f"Invalid {label}. Must be one of: {', '.join(allowed)}")
    return value


@router.get("")
def list_tasks(
    page: int = 1,
    limit: Optional[int] = None,
    sortBy: Optional[str] = None,
    sortOrder: Optional[str] = None,
    companyId: Optional[int] = None,
    projectId: Optional[int] = None,
    status: Optional[str] = None,
    taskType: Optional[str] = None,
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(Task)
    if companyId is not None:
        query = query.filter(Task.company_id == companyId)
    if projectId is not None:
        query = query.filter(Task.project_id == projectId)
    # Callers pass enum values in any case
    if status:
        query = query.filter(Task.status == status.strip().upper())
    if taskType:
        query = query.filter(Task.task_type == taskType.strip().upper())
    query = date_range(query, Task.start_date, startDate, endDate)
    clause = search_clause(search, [Task.task_name, Task.description])
    if clause is not None:
        query = query.filter(clause)
    items, pagination = paginate(query, page, limit, sortBy, sortOrder, SORTABLE, "createdAt")
    return listing(_enriched(db, items), pagination)


@router.get("/stats")
def get_task_stats(companyId: Optional[int] = None, projectId: Optional[int] = None, db: Session = Depends(get_db)):
    return ok(task_stats(db, companyId, projectId))


@router.get("/project/{project_id}")
def list_project_tasks(project_id: str, status: Optional[str] = None, db: Session = Depends(get_db)):
    pid = positive_id(project_id, "project")
    query = db.query(Task).filter(Task.project_id == pid)
    if status:
        query = query.filter(Task.status == status.strip().upper())
    rows = query.order_by(Task.created_at.desc()).all()
    return listing(_enriched(db, rows), message=f"Found {len(rows)} tasks for project {pid}")


@router.get("/status/{status}")
def list_tasks_by_status(status: str, companyId: Optional[int] = None, db: Session = Depends(get_db)):
    wanted = _choice(status, TASK_STATUSES, "status")
    query = db.query(Task).filter(Task.status == wanted)
    if companyId is not None:
        query = query.filter(Task.company_id == companyId)
    rows = query.order_by(Task.created_at.desc()).all()
    return listing(_enriched(db, rows), message=f"Found {len(rows)} tasks with status {wanted}")


@router.get("/type/{task_type}")
def list_tasks_by_type(task_type: str, companyId: Optional[int] = None, db: Session = Depends(get_db)):
    wanted = _choice(task_type, TASK_TYPES, "task type")
    query = db.query(Task).filter(Task.task_type == wanted)
    if companyId is not None:
        query = query.filter(Task.company_id == companyId)
    rows = query.order_by(Task.created_at.desc()).all()
    return listing(_enriched(db, rows), message=f"Found {len(rows)} tasks of type {wanted}")


@router.get("/{task_id}")
def get_task(task_id: str, db: Session = Depends(get_db)):
    task = tasks.get(db, positive_id(task_id, "task"))
    return ok(_enriched(db, [task])[0])


@router.post("", status_code=201)
def create_task(payload: dict, db: Session = Depends(get_db)):
    task = tasks.create(db, payload)
    return ok(_enriched(db, [task])[0], message="Task created successfully")


@router.put("/{task_id}")
def update_task(task_id: str, payload: dict, db: Session = Depends(get_db)):
    task = tasks.update(db, positive_id(task_id, "task"), payload)
    return ok(_enriched(db, [task])[0], message="Task updated successfully")


@router.delete("/{task_id}")
def delete_task(task_id: str, db: Session = Depends(get_db)):
    snapshot = tasks.delete(db, positive_id(task_id, "task"))
    return ok(snapshot, message="Task deleted successfully")
