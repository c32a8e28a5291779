from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import NotFound
from ..models.models import Company, CompanyUser
from ..pipelines.companies import companies, company_users, serialize_company, serialize_company_user
from ..services.enrichment import user_emails
from ..services.envelope import ok
from ..services.listing import listing, paginate, search_clause
from ..services.pipeline import positive_id


router = APIRouter(prefix="/api/companies", tags=["companies"])

SORTABLE = {
    "id": Company.id,
    "name": Company.name,
    "tenantCode": Company.tenant_code,
    "createdAt": Company.created_at,
}


@router.get("")
def list_companies(
    page: int = 1,
    limit: Optional[int] = None,
    sortBy: Optional[str] = None,
    sortOrder: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(Company)
    clause = search_clause(search, [Company.name, Company.tenant_code])
    if clause is not None:
        query = query.filter(clause)
    items, pagination = paginate(query, page, limit, sortBy, sortOrder or "asc", SORTABLE, "name")
    return listing([serialize_company(c) for c in items], pagination)


@router.get("/{company_id}")
def get_company(company_id: str, db: Session = Depends(get_db)):
    company = companies.get(db, positive_id(company_id, "company"))
    return ok(serialize_company(company))


@router.post("", status_code=201)
def create_company(payload: dict, db: Session = Depends(get_db)):
    company = companies.create(db, payload)
    return ok(serialize_company(company), message="Company created successfully")


@router.put("/{company_id}")
def update_company(company_id: str, payload: dict, db: Session = Depends(get_db)):
    company = companies.update(db, positive_id(company_id, "company"), payload)
    return ok(serialize_company(company), message="Company updated successfully")


@router.delete("/{company_id}")
def delete_company(company_id: str, db: Session = Depends(get_db)):
    snapshot = companies.delete(db, positive_id(company_id, "company"))
    return ok(snapshot, message="Company deleted successfully")


# ---------- role links ----------
@router.get("/{company_id}/users")
def list_company_users(company_id: str, role: Optional[str] = None, db: Session = Depends(get_db)):
    cid = positive_id(company_id, "company")
    companies.get(db, cid)
    query = db.query(CompanyUser).filter(CompanyUser.company_id == cid)
    if role:
        query = query.filter(CompanyUser.role == role.strip().lower())
    links = query.order_by(CompanyUser.id.asc()).all()
    emails = user_emails(db, [cu.user_id for cu in links])
    data = [dict(serialize_company_user(cu), email=emails.get(cu.user_id)) for cu in links]
    return listing(data)


@router.post("/{company_id}/users", status_code=201)
def add_company_user(company_id: str, payload: dict, db: Session = Depends(get_db)):
    cid = positive_id(company_id, "company")
    link = company_users.create(db, dict(payload, companyId=cid))
    return ok(serialize_company_user(link), message="User linked to company")


@router.delete("/{company_id}/users/{link_id}")
def remove_company_user(company_id: str, link_id: str, db: Session = Depends(get_db)):
    cid = positive_id(company_id, "company")
    lid = positive_id(link_id, "company user")
    link = company_users.get(db, lid)
    if link.company_id != cid:
        raise NotFound(f"Company user with ID {lid} not found")
    snapshot = company_users.delete(db, lid)
    return ok(snapshot, message="User unlinked from company")
