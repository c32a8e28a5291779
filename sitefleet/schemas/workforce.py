from datetime import datetime
from typing import Optional

from .common import CamelModel, EmployeeStatus


class EmployeeIn(CamelModel):
    id: Optional[int] = None
    company_id: Optional[int] = None
    user_id: Optional[int] = None
    employee_code: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    job_title: Optional[str] = None
    photo_url: Optional[str] = None
    status: Optional[EmployeeStatus] = None
    created_at: Optional[datetime] = None
