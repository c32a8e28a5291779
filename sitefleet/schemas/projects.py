from datetime import datetime
from typing import Any, Dict, Optional

from .common import CamelModel, ProjectStatus, TaskStatus, TaskType


class ProjectIn(CamelModel):
    id: Optional[int] = None
    company_id: Optional[int] = None
    code: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    job_nature: Optional[str] = None
    job_subtype: Optional[str] = None
    location: Optional[str] = None
    address: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    budget: Optional[float] = None
    status: Optional[ProjectStatus] = None
    permit_required: Optional[bool] = None
    permit_status: Optional[str] = None
    contact_person: Optional[Dict[str, Any]] = None
    created_by: Optional[int] = None


class TaskIn(CamelModel):
    id: Optional[int] = None
    company_id: Optional[int] = None
    project_id: Optional[int] = None
    task_name: Optional[str] = None
    task_type: Optional[TaskType] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[TaskStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    assigned_to: Optional[int] = None
    created_by: Optional[int] = None
    additional_data: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
