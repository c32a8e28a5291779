from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..models.models import Driver
from ..pipelines.fleet import drivers, serialize_driver
from ..services.enrichment import user_emails, vehicle_registrations
from ..services.envelope import ok
from ..services.listing import listing, paginate, search_clause
from ..services.pipeline import positive_id


router = APIRouter(prefix="/api/drivers", tags=["fleet"])

SORTABLE = {
    "id": Driver.id,
    "fullName": Driver.full_name,
    "licenseNo": Driver.license_no,
    "licenseExpiry": Driver.license_expiry,
    "status": Driver.status,
    "createdAt": Driver.created_at,
}


def _enriched(db: Session, rows) -> list:
    emails = user_emails(db, [d.user_id for d in rows])
    registrations = vehicle_registrations(db, [d.assigned_vehicle_id for d in rows])
    return [serialize_driver(d, emails, registrations) for d in rows]


@router.get("")
def list_drivers(
    page: int = 1,
    limit: Optional[int] = None,
    sortBy: Optional[str] = None,
    sortOrder: Optional[str] = None,
    companyId: Optional[int] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(Driver)
    if companyId is not None:
        query = query.filter(Driver.company_id == companyId)
    if status:
        query = query.filter(Driver.status == status.strip().upper())
    clause = search_clause(search, [Driver.full_name, Driver.license_no])
    if clause is not None:
        query = query.filter(clause)
    items, pagination = paginate(query, page, limit, sortBy, sortOrder, SORTABLE, "createdAt")
    return listing(_enriched(db, items), pagination)


@router.get("/company/{company_id}")
def list_company_drivers(company_id: str, db: Session = Depends(get_db)):
    cid = positive_id(company_id, "company")
    rows = db.query(Driver).filter(Driver.company_id == cid).order_by(Driver.full_name.asc()).all()
    return listing(_enriched(db, rows), message=f"Found {len(rows)} drivers for company {cid}")


@router.get("/vehicle/{vehicle_id}")
def list_vehicle_drivers(vehicle_id: str, db: Session = Depends(get_db)):
    vid = positive_id(vehicle_id, "vehicle")
    rows = db.query(Driver).filter(Driver.assigned_vehicle_id == vid).order_by(Driver.full_name.asc()).all()
    return listing(_enriched(db, rows), message=f"Found {len(rows)} drivers for vehicle {vid}")


@router.get("/{driver_id}")
def get_driver(driver_id: str, db: Session = Depends(get_db)):
    driver = drivers.get(db, positive_id(driver_id, "driver"))
    return ok(_enriched(db, [driver])[0])


@router.post("", status_code=201)
def create_driver(payload: dict, db: Session = Depends(get_db)):
    driver = drivers.create(db, payload)
    return ok(_enriched(db, [driver])[0], message="Driver created successfully")


@router.put("/{driver_id}")
def update_driver(driver_id: str, payload: dict, db: Session = Depends(get_db)):
    driver = drivers.update(db, positive_id(driver_id, "driver"), payload)
    return ok(_enriched(db, [driver])[0], message="Driver updated successfully")


@router.delete("/{driver_id}")
def delete_driver(driver_id: str, db: Session = Depends(get_db)):
    snapshot = drivers.delete(db, positive_id(driver_id, "driver"))
    return ok(snapshot, message="Driver deleted successfully")
