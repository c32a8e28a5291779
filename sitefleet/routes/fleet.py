from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..models.models import FleetAlert, FleetTask, FleetTaskPassenger
from ..pipelines.fleet import (
    alerts,
    create_fleet_task as create_fleet_task_with_items,
    delete_fleet_task as delete_fleet_task_with_items,
    fleet_task_detail,
    fleet_tasks,
    passengers,
    serialize_alert,
    serialize_fleet_task,
    serialize_passenger,
    set_passenger_status,
)
from ..services.envelope import ok
from ..services.listing import date_range, listing, paginate
from ..services.pipeline import positive_id


router = APIRouter(prefix="/api/fleet-tasks", tags=["fleet"])
passengers_router = APIRouter(prefix="/api/fleet-task-passengers", tags=["fleet"])
alerts_router = APIRouter(prefix="/api/fleet-alerts", tags=["fleet"])

TASK_SORTABLE = {
    "id": FleetTask.id,
    "taskDate": FleetTask.task_date,
    "status": FleetTask.status,
    "plannedPickupTime": FleetTask.planned_pickup_time,
    "createdAt": FleetTask.created_at,
}
ALERT_SORTABLE = {
    "id": FleetAlert.id,
    "severity": FleetAlert.severity,
    "createdAt": FleetAlert.created_at,
}


# ---------- fleet tasks ----------
@router.get("")
def list_fleet_tasks(
    page: int = 1,
    limit: Optional[int] = None,
    sortBy: Optional[str] = None,
    sortOrder: Optional[str] = None,
    companyId: Optional[int] = None,
    status: Optional[str] = None,
    vehicleId: Optional[int] = None,
    driverId: Optional[int] = None,
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(FleetTask)
    if companyId is not None:
        query = query.filter(FleetTask.company_id == companyId)
    if status:
        query = query.filter(FleetTask.status == status.strip().upper())
    if vehicleId is not None:
        query = query.filter(FleetTask.vehicle_id == vehicleId)
    if driverId is not None:
        query = query.filter(FleetTask.driver_id == driverId)
    query = date_range(query, FleetTask.task_date, startDate, endDate)
    items, pagination = paginate(query, page, limit, sortBy, sortOrder, TASK_SORTABLE, "taskDate")
    return listing([serialize_fleet_task(t) for t in items], pagination)


@router.get("/{task_id}")
def get_fleet_task(task_id: str, db: Session = Depends(get_db)):
    task = fleet_tasks.get(db, positive_id(task_id, "fleet task"))
    return ok(fleet_task_detail(db, task))


@router.post("", status_code=201)
def create_fleet_task(payload: dict, db: Session = Depends(get_db)):
    task = create_fleet_task_with_items(db, payload)
    return ok(fleet_task_detail(db, task), message="Fleet task created successfully")


@router.put("/{task_id}")
def update_fleet_task(task_id: str, payload: dict, db: Session = Depends(get_db)):
    # Passengers and line items have their own endpoints; only the run itself changes here
    changes = {k: v for k, v in payload.items() if k not in ("passengers", "materials", "tools")}
    task = fleet_tasks.update(db, positive_id(task_id, "fleet task"), changes)
    return ok(fleet_task_detail(db, task), message="Fleet task updated successfully")


@router.delete("/{task_id}")
def delete_fleet_task(task_id: str, db: Session = Depends(get_db)):
    snapshot = delete_fleet_task_with_items(db, positive_id(task_id, "fleet task"))
    return ok(snapshot, message="Fleet task deleted successfully")


# ---------- passengers ----------
@passengers_router.get("")
def list_passengers(
    page: int = 1,
    limit: Optional[int] = None,
    fleetTaskId: Optional[int] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(FleetTaskPassenger)
    if fleetTaskId is not None:
        query = query.filter(FleetTaskPassenger.fleet_task_id == fleetTaskId)
    if status:
        query = query.filter(FleetTaskPassenger.status == status.strip().upper())
    items, pagination = paginate(query, page, limit, "id", "asc", {"id": FleetTaskPassenger.id}, "id")
    return listing([serialize_passenger(p) for p in items], pagination)


@passengers_router.get("/task/{task_id}")
def list_task_passengers(task_id: str, db: Session = Depends(get_db)):
    tid = positive_id(task_id, "fleet task")
    rows = (
        db.query(FleetTaskPassenger)
        .filter(FleetTaskPassenger.fleet_task_id == tid)
        .order_by(FleetTaskPassenger.id.asc())
        .all()
    )
    return listing([serialize_passenger(p) for p in rows], message=f"Found {len(rows)} passengers for fleet task {tid}")


@passengers_router.get("/{passenger_id}")
def get_passenger(passenger_id: str, db: Session = Depends(get_db)):
    passenger = passengers.get(db, positive_id(passenger_id, "passenger"))
    return ok(serialize_passenger(passenger))


@passengers_router.post("", status_code=201)
def create_passenger(payload: dict, db: Session = Depends(get_db)):
    passenger = passengers.create(db, payload)
    return ok(serialize_passenger(passenger), message="Passenger added successfully")


@passengers_router.put("/{passenger_id}")
def update_passenger(passenger_id: str, payload: dict, db: Session = Depends(get_db)):
    passenger = passengers.update(db, positive_id(passenger_id, "passenger"), payload)
    return ok(serialize_passenger(passenger), message="Passenger updated successfully")


@passengers_router.patch("/{passenger_id}/status")
def update_passenger_status(passenger_id: str, payload: dict, db: Session = Depends(get_db)):
    passenger = set_passenger_status(db, positive_id(passenger_id, "passenger"), payload.get("status"))
    return ok(serialize_passenger(passenger), message=f"Passenger status updated to {passenger.status}")


@passengers_router.delete("/{passenger_id}")
def delete_passenger(passenger_id: str, db: Session = Depends(get_db)):
    snapshot = passengers.delete(db, positive_id(passenger_id, "passenger"))
    return ok(snapshot, message="Passenger removed successfully")


# ---------- alerts ----------
@alerts_router.get("")
def list_alerts(
    page: int = 1,
    limit: Optional[int] = None,
    sortBy: Optional[str] = None,
    sortOrder: Optional[str] = None,
    companyId: Optional[int] = None,
    vehicleId: Optional[int] = None,
    severity: Optional[str] = None,
    resolved: Optional[bool] = None,
    db: Session = Depends(get_db),
):
    query = db.query(FleetAlert)
    if companyId is not None:
        query = query.filter(FleetAlert.company_id == companyId)
    if vehicleId is not None:
        query = query.filter(FleetAlert.vehicle_id == vehicleId)
    if severity:
        query = query.filter(FleetAlert.severity == severity.strip().upper())
    if resolved is not None:
        query = query.filter(FleetAlert.resolved == resolved)
    items, pagination = paginate(query, page, limit, sortBy, sortOrder, ALERT_SORTABLE, "createdAt")
    return listing([serialize_alert(a) for a in items], pagination)


@alerts_router.post("", status_code=201)
def create_alert(payload: dict, db: Session = Depends(get_db)):
    alert = alerts.create(db, payload)
    return ok(serialize_alert(alert), message="Fleet alert created successfully")
