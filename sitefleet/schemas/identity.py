from datetime import datetime
from typing import Optional

from .common import CamelModel, CompanyRole


class UserIn(CamelModel):
    id: Optional[int] = None
    email: Optional[str] = None
    name: Optional[str] = None
    is_active: Optional[bool] = None
    created_at: Optional[datetime] = None


class CompanyIn(CamelModel):
    id: Optional[int] = None
    name: Optional[str] = None
    tenant_code: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None


class CompanyUserIn(CamelModel):
    id: Optional[int] = None
    company_id: Optional[int] = None
    user_id: Optional[int] = None
    role: Optional[CompanyRole] = None
    is_primary: Optional[bool] = None
