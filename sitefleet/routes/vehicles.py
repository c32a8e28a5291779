from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..models.models import FleetVehicle
from ..pipelines.fleet import serialize_vehicle, vehicles
from ..services.envelope import ok
from ..services.listing import listing, paginate, search_clause
from ..services.pipeline import positive_id


router = APIRouter(prefix="/api/fleet-vehicles", tags=["fleet"])

SORTABLE = {
    "id": FleetVehicle.id,
    "vehicleCode": FleetVehicle.vehicle_code,
    "registrationNo": FleetVehicle.registration_no,
    "status": FleetVehicle.status,
    "insuranceExpiry": FleetVehicle.insurance_expiry,
    "createdAt": FleetVehicle.created_at,
}


def _search(term: Optional[str]):
    return search_clause(term, [FleetVehicle.vehicle_code, FleetVehicle.registration_no, FleetVehicle.vehicle_type])


@router.get("")
def list_vehicles(
    page: int = 1,
    limit: Optional[int] = None,
    sortBy: Optional[str] = None,
    sortOrder: Optional[str] = None,
    companyId: Optional[int] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(FleetVehicle)
    if companyId is not None:
        query = query.filter(FleetVehicle.company_id == companyId)
    if status:
        query = query.filter(FleetVehicle.status == status.strip().upper())
    clause = _search(search)
    if clause is not None:
        query = query.filter(clause)
    items, pagination = paginate(query, page, limit, sortBy, sortOrder, SORTABLE, "createdAt")
    return listing([serialize_vehicle(v) for v in items], pagination)


@router.get("/company/{company_id}")
def list_company_vehicles(company_id: str, status: Optional[str] = None, db: Session = Depends(get_db)):
    cid = positive_id(company_id, "company")
    query = db.query(FleetVehicle).filter(FleetVehicle.company_id == cid)
    if status:
        query = query.filter(FleetVehicle.status == status.strip().upper())
    rows = query.order_by(FleetVehicle.vehicle_code.asc()).all()
    return listing([serialize_vehicle(v) for v in rows], message=f"Found {len(rows)} vehicles for company {cid}")


@router.get("/{vehicle_id}")
def get_vehicle(vehicle_id: str, db: Session = Depends(get_db)):
    vehicle = vehicles.get(db, positive_id(vehicle_id, "vehicle"))
    return ok(serialize_vehicle(vehicle))


@router.post("", status_code=201)
def create_vehicle(payload: dict, db: Session = Depends(get_db)):
    vehicle = vehicles.create(db, payload)
    return ok(serialize_vehicle(vehicle), message="Vehicle created successfully")


@router.put("/{vehicle_id}")
def update_vehicle(vehicle_id: str, payload: dict, db: Session = Depends(get_db)):
    vehicle = vehicles.update(db, positive_id(vehicle_id, "vehicle"), payload)
    return ok(serialize_vehicle(vehicle), message="Vehicle updated successfully")


@router.delete("/{vehicle_id}")
def delete_vehicle(vehicle_id: str, db: Session = Depends(get_db)):
    snapshot = vehicles.delete(db, positive_id(vehicle_id, "vehicle"))
    return ok(snapshot, message="Vehicle deleted successfully")
