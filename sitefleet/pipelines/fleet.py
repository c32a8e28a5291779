from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy.orm import Session

from ..errors import ReferenceMissing, ValidationFailed
from ..models.models import (
    ALERT_SEVERITIES,
    DRIVER_STATUSES,
    FLEET_TASK_STATUSES,
    PASSENGER_STATUSES,
    VEHICLE_STATUSES,
    Company,
    Driver,
    Employee,
    FleetAlert,
    FleetTask,
    FleetTaskMaterial,
    FleetTaskPassenger,
    FleetTaskTool,
    FleetVehicle,
    Material,
    Project,
    Tool,
    User,
)
from ..schemas.fleet import (
    DriverIn,
    FleetAlertIn,
    FleetTaskIn,
    FleetTaskMaterialIn,
    FleetTaskPassengerIn,
    FleetTaskToolIn,
    FleetVehicleIn,
)
from ..services.envelope import iso, utcnow
from ..services.integrity import Reference, Unique, check_integrity, missing_references
from ..services.normalization import (
    clean_text,
    digits,
    or_default,
    parse_date,
    to_bool,
    to_float,
    to_int,
    trim,
    upper,
    upper_code,
)
from ..services.pipeline import EntityPipeline, require_object
from ..services.validation import CODE_MAX, NAME_MAX, Validator


logger = structlog.get_logger(__name__)


# =====================
# Vehicles
# =====================

def validate_vehicle(data: dict) -> list:
    v = Validator(data)
    v.required("companyId", "Company ID")
    v.required("vehicleCode", "Vehicle code")
    v.positive_id("id", "Vehicle ID")
    v.positive_id("companyId", "Company ID")
    v.text("vehicleCode", "Vehicle code", CODE_MAX)
    v.text("registrationNo", "Registration number", CODE_MAX)
    v.number("capacity", "Capacity")
    v.non_negative("capacity", "Capacity cannot be negative")
    v.number("odometer", "Odometer")
    v.non_negative("odometer", "Odometer cannot be negative")
    v.date("insuranceExpiry", "Insurance expiry")
    v.date("lastServiceDate", "Last service date")
    v.one_of("status", "Status", VEHICLE_STATUSES)
    v.mapping("meta", "Meta")
    return v.errors


def normalize_vehicle(data: dict) -> dict:
    return {
        "id": to_int(data.get("id")),
        "companyId": to_int(data.get("companyId")),
        "vehicleCode": upper_code(data.get("vehicleCode")),
        "registrationNo": upper_code(data.get("registrationNo")),
        "vehicleType": clean_text(data.get("vehicleType")),
        "capacity": to_int(data.get("capacity")),
        "status": or_default(upper(data.get("status")), "AVAILABLE"),
        "insuranceExpiry": parse_date(data.get("insuranceExpiry")),
        "lastServiceDate": parse_date(data.get("lastServiceDate")),
        "odometer": to_float(data.get("odometer")),
        "meta": or_default(data.get("meta"), {}),
    }


def serialize_vehicle(fv: FleetVehicle) -> dict:
    return {
        "id": fv.id,
        "companyId": fv.company_id,
        "vehicleCode": fv.vehicle_code,
        "registrationNo": fv.registration_no,
        "vehicleType": fv.vehicle_type,
        "capacity": fv.capacity,
        "status": fv.status,
        "insuranceExpiry": iso(fv.insurance_expiry),
        "lastServiceDate": iso(fv.last_service_date),
        "odometer": fv.odometer,
        "meta": fv.meta or {},
        "createdAt": iso(fv.created_at),
        "updatedAt": iso(fv.updated_at),
    }


vehicles = EntityPipeline(
    model=FleetVehicle,
    name="fleet_vehicle",
    entity="Vehicle",
    validate=validate_vehicle,
    normalize=normalize_vehicle,
    schema=FleetVehicleIn,
    serialize=serialize_vehicle,
    references=[Reference("companyId", Company, "Company")],
    uniques=[Unique("registrationNo", "registration_no", "Vehicle with registration '{value}' already exists", "registration number")],
    snapshot=("id", "vehicleCode", "registrationNo", "companyId"),
)


# =====================
# Drivers
# =====================

def validate_driver(data: dict) -> list:
    v = Validator(data)
    v.required("companyId", "Company ID")
    v.required("fullName", "Full name")
    v.required("licenseNo", "License number")
    v.positive_id("id", "Driver ID")
    v.positive_id("companyId", "Company ID")
    v.positive_id("employeeId", "Employee ID")
    v.positive_id("userId", "User ID")
    v.positive_id("assignedVehicleId", "Vehicle ID")
    v.text("fullName", "Full name", NAME_MAX)
    v.text("licenseNo", "License number", CODE_MAX)
    v.date("licenseExpiry", "License expiry")
    v.one_of("status", "Status", DRIVER_STATUSES)
    return v.errors


def normalize_driver(data: dict) -> dict:
    return {
        "id": to_int(data.get("id")),
        "companyId": to_int(data.get("companyId")),
        "employeeId": to_int(data.get("employeeId")),
        "userId": to_int(data.get("userId")),
        "fullName": clean_text(data.get("fullName")),
        "licenseNo": upper_code(data.get("licenseNo")),
        "licenseType": clean_text(data.get("licenseType")),
        "licenseExpiry": parse_date(data.get("licenseExpiry")),
        "phone": digits(data.get("phone")),
        "assignedVehicleId": to_int(data.get("assignedVehicleId")),
        "status": or_default(upper(data.get("status")), "ACTIVE"),
    }


def serialize_driver(
    d: Driver,
    emails: Optional[Dict[int, str]] = None,
    registrations: Optional[Dict[int, str]] = None,
) -> dict:
    return {
        "id": d.id,
        "companyId": d.company_id,
        "employeeId": d.employee_id,
        "userId": d.user_id,
        "fullName": d.full_name,
        "licenseNo": d.license_no,
        "licenseType": d.license_type,
        "licenseExpiry": iso(d.license_expiry),
        "phone": d.phone,
        "assignedVehicleId": d.assigned_vehicle_id,
        "status": d.status,
        "email": (emails or {}).get(d.user_id),
        "vehicleRegistration": (registrations or {}).get(d.assigned_vehicle_id),
        "createdAt": iso(d.created_at),
        "updatedAt": iso(d.updated_at),
    }


drivers = EntityPipeline(
    model=Driver,
    name="driver",
    entity="Driver",
    validate=validate_driver,
    normalize=normalize_driver,
    schema=DriverIn,
    serialize=serialize_driver,
    references=[
        Reference("companyId", Company, "Company"),
        Reference("employeeId", Employee, "Employee"),
        Reference("userId", User, "User"),
        Reference("assignedVehicleId", FleetVehicle, "Vehicle"),
    ],
    uniques=[Unique("licenseNo", "license_no", "Driver with license number '{value}' already exists", "license number")],
    snapshot=("id", "fullName", "licenseNo", "companyId"),
)


# =====================
# Fleet tasks
# =====================

def validate_fleet_task(data: dict) -> list:
    v = Validator(data)
    v.required("companyId", "Company ID")
    v.required("vehicleId", "Vehicle ID")
    v.required("taskDate", "Task date")
    v.positive_id("id", "Fleet task ID")
    v.positive_id("companyId", "Company ID")
    v.positive_id("vehicleId", "Vehicle ID")
    v.positive_id("driverId", "Driver ID")
    v.positive_id("projectId", "Project ID")
    v.date("taskDate", "Task date")
    v.date("plannedPickupTime", "Planned pickup time")
    v.date("plannedDropTime", "Planned drop time")
    v.date_order("plannedPickupTime", "plannedDropTime", "Planned drop time must be after planned pickup time")
    v.date("actualStartTime", "Actual start time")
    v.date("actualEndTime", "Actual end time")
    v.number("expectedPassengers", "Expected passengers")
    v.non_negative("expectedPassengers", "Expected passengers cannot be negative")
    v.one_of("status", "Status", FLEET_TASK_STATUSES)
    v.mapping("pickupLocation", "Pickup location")
    v.mapping("dropLocation", "Drop location")
    v.id_list("passengers", "Passengers")
    return v.errors


def normalize_fleet_task(data: dict) -> dict:
    return {
        "id": to_int(data.get("id")),
        "companyId": to_int(data.get("companyId")),
        "projectId": to_int(data.get("projectId")),
        "driverId": to_int(data.get("driverId")),
        "vehicleId": to_int(data.get("vehicleId")),
        "taskDate": parse_date(data.get("taskDate")),
        "plannedPickupTime": parse_date(data.get("plannedPickupTime")),
        "plannedDropTime": parse_date(data.get("plannedDropTime")),
        "pickupAddress": trim(data.get("pickupAddress")),
        "dropAddress": trim(data.get("dropAddress")),
        "pickupLocation": data.get("pickupLocation"),
        "dropLocation": data.get("dropLocation"),
        "expectedPassengers": or_default(to_int(data.get("expectedPassengers")), 0),
        "actualStartTime": parse_date(data.get("actualStartTime")),
        "actualEndTime": parse_date(data.get("actualEndTime")),
        "routeLog": data.get("routeLog") if isinstance(data.get("routeLog"), list) else [],
        "notes": trim(data.get("notes")),
        "status": or_default(upper(data.get("status")), "PLANNED"),
        "createdBy": to_int(data.get("createdBy")),
    }


def serialize_fleet_task(ft: FleetTask) -> dict:
    return {
        "id": ft.id,
        "companyId": ft.company_id,
        "projectId": ft.project_id,
        "driverId": ft.driver_id,
        "vehicleId": ft.vehicle_id,
        "taskDate": iso(ft.task_date),
        "plannedPickupTime": iso(ft.planned_pickup_time),
        "plannedDropTime": iso(ft.planned_drop_time),
        "pickupAddress": ft.pickup_address,
        "dropAddress": ft.drop_address,
        "pickupLocation": ft.pickup_location,
        "dropLocation": ft.drop_location,
        "expectedPassengers": ft.expected_passengers,
        "actualStartTime": iso(ft.actual_start_time),
        "actualEndTime": iso(ft.actual_end_time),
        "routeLog": ft.route_log or [],
        "notes": ft.notes,
        "status": ft.status,
        "createdBy": ft.created_by,
        "createdAt": iso(ft.created_at),
        "updatedAt": iso(ft.updated_at),
    }


fleet_tasks = EntityPipeline(
    model=FleetTask,
    name="fleet_task",
    entity="Fleet task",
    validate=validate_fleet_task,
    normalize=normalize_fleet_task,
    schema=FleetTaskIn,
    serialize=serialize_fleet_task,
    references=[
        Reference("companyId", Company, "Company"),
        Reference("vehicleId", FleetVehicle, "Vehicle"),
        Reference("driverId", Driver, "Driver"),
        Reference("projectId", Project, "Project"),
    ],
    snapshot=("id", "companyId", "vehicleId", "taskDate", "status"),
)


# =====================
# Passengers
# =====================

def validate_passenger(data: dict) -> list:
    v = Validator(data)
    v.required("companyId", "Company ID")
    v.required("fleetTaskId", "Fleet task ID")
    v.required("workerEmployeeId", "Worker employee ID")
    v.positive_id("id", "Passenger ID")
    v.positive_id("companyId", "Company ID")
    v.positive_id("fleetTaskId", "Fleet task ID")
    v.positive_id("workerEmployeeId", "Worker employee ID")
    v.date("pickupConfirmedAt", "Pickup confirmation time")
    v.date("dropConfirmedAt", "Drop confirmation time")
    v.one_of("status", "Status", PASSENGER_STATUSES)
    return v.errors


def normalize_passenger(data: dict) -> dict:
    return {
        "id": to_int(data.get("id")),
        "companyId": to_int(data.get("companyId")),
        "fleetTaskId": to_int(data.get("fleetTaskId")),
        "workerEmployeeId": to_int(data.get("workerEmployeeId")),
        "pickupConfirmedAt": parse_date(data.get("pickupConfirmedAt")),
        "dropConfirmedAt": parse_date(data.get("dropConfirmedAt")),
        "status": or_default(upper(data.get("status")), "PLANNED"),
        "notes": trim(data.get("notes")),
    }


def serialize_passenger(p: FleetTaskPassenger) -> dict:
    return {
        "id": p.id,
        "companyId": p.company_id,
        "fleetTaskId": p.fleet_task_id,
        "workerEmployeeId": p.worker_employee_id,
        "pickupConfirmedAt": iso(p.pickup_confirmed_at),
        "dropConfirmedAt": iso(p.drop_confirmed_at),
        "status": p.status,
        "notes": p.notes,
        "createdAt": iso(p.created_at),
        "updatedAt": iso(p.updated_at),
    }


# A worker rides a given run at most once; the storage constraint enforces it
passengers = EntityPipeline(
    model=FleetTaskPassenger,
    name="fleet_task_passenger",
    entity="Fleet task passenger",
    validate=validate_passenger,
    normalize=normalize_passenger,
    schema=FleetTaskPassengerIn,
    serialize=serialize_passenger,
    references=[
        Reference("companyId", Company, "Company"),
        Reference("fleetTaskId", FleetTask, "Fleet task"),
        Reference("workerEmployeeId", Employee, "Employee"),
    ],
    snapshot=("id", "fleetTaskId", "workerEmployeeId", "status"),
)


def set_passenger_status(db: Session, passenger_id: int, status: Any) -> FleetTaskPassenger:
    """Move a passenger through pickup and drop-off, stamping the confirmation times."""
    status = upper(status)
    if status is None:
        raise ValidationFailed("Status is required")
    change: Dict[str, Any] = {"status": status}
    if status == "PICKED":
        change["pickupConfirmedAt"] = utcnow()
    elif status == "DROPPED":
        change["dropConfirmedAt"] = utcnow()
    return passengers.update(db, passenger_id, change)


# =====================
# Line items carried by a fleet task
# =====================

def validate_material_line(data: dict) -> list:
    v = Validator(data)
    v.required("materialId", "Material ID")
    v.positive_id("materialId", "Material ID")
    v.number("quantity", "Quantity")
    v.non_negative("quantity", "Quantity cannot be negative")
    return v.errors


def normalize_material_line(data: dict) -> dict:
    return {
        "fleetTaskId": to_int(data.get("fleetTaskId")),
        "materialId": to_int(data.get("materialId")),
        "quantity": or_default(to_float(data.get("quantity")), 0.0),
    }


def serialize_material_line(m: FleetTaskMaterial) -> dict:
    return {"id": m.id, "fleetTaskId": m.fleet_task_id, "materialId": m.material_id, "quantity": m.quantity}


def validate_tool_line(data: dict) -> list:
    v = Validator(data)
    v.required("toolId", "Tool ID")
    v.positive_id("toolId", "Tool ID")
    v.number("quantity", "Quantity")
    v.non_negative("quantity", "Quantity cannot be negative")
    return v.errors


def normalize_tool_line(data: dict) -> dict:
    return {
        "fleetTaskId": to_int(data.get("fleetTaskId")),
        "toolId": to_int(data.get("toolId")),
        "quantity": or_default(to_int(data.get("quantity")), 1),
    }


def serialize_tool_line(t: FleetTaskTool) -> dict:
    return {"id": t.id, "fleetTaskId": t.fleet_task_id, "toolId": t.tool_id, "quantity": t.quantity}


task_materials = EntityPipeline(
    model=FleetTaskMaterial,
    name="fleet_task_material",
    entity="Fleet task material",
    validate=validate_material_line,
    normalize=normalize_material_line,
    schema=FleetTaskMaterialIn,
    serialize=serialize_material_line,
    references=[Reference("materialId", Material, "Material")],
)

task_tools = EntityPipeline(
    model=FleetTaskTool,
    name="fleet_task_tool",
    entity="Fleet task tool",
    validate=validate_tool_line,
    normalize=normalize_tool_line,
    schema=FleetTaskToolIn,
    serialize=serialize_tool_line,
    references=[Reference("toolId", Tool, "Tool")],
)


def _lines(payload: dict, key: str, label: str, validate, errors: List[str]) -> List[dict]:
    lines = payload.get(key)
    if lines is None:
        return []
    if not isinstance(lines, list):
        errors.append(f"{label} must be a list")
        return []
    for index, line in enumerate(lines, start=1):
        if not isinstance(line, dict):
            errors.append(f"{label} line {index} must be an object")
            continue
        errors.extend(f"{label} line {index}: {message}" for message in validate(line))
    return [line for line in lines if isinstance(line, dict)]


def create_fleet_task(db: Session, payload: Any) -> FleetTask:
    """
    Create a transport run together with its passengers and line items.

    Every part of the request is validated and every reference resolved before
    the first row is staged; the whole set is then committed at once, so a bad
    passenger or material never leaves a half-built run behind.
    """
    payload = require_object(payload)
    errors = validate_fleet_task(payload)
    material_lines = _lines(payload, "materials", "Material", validate_material_line, errors)
    tool_lines = _lines(payload, "tools", "Tool", validate_tool_line, errors)
    if errors:
        raise ValidationFailed.from_messages(errors)

    clean = normalize_fleet_task(payload)
    worker_ids = list(dict.fromkeys(to_int(p) for p in payload.get("passengers") or []))
    materials = [normalize_material_line(line) for line in material_lines]
    tools = [normalize_tool_line(line) for line in tool_lines]
    if "expectedPassengers" not in payload:
        clean["expectedPassengers"] = len(worker_ids)

    missing = missing_references(db, clean, fleet_tasks.references)
    for worker_id in worker_ids:
        if db.get(Employee, worker_id) is None:
            missing.append(f"Employee with ID {worker_id} does not exist")
    for line in materials:
        missing += missing_references(db, line, task_materials.references)
    for line in tools:
        missing += missing_references(db, line, task_tools.references)
    if missing:
        raise ReferenceMissing.from_messages(missing)
    check_integrity(db, FleetTask, fleet_tasks.entity, clean, claimed_id=clean.get("id"))

    task = fleet_tasks.add(db, fleet_tasks.to_fields(clean))
    for worker_id in worker_ids:
        passengers.add(db, {
            "company_id": task.company_id,
            "fleet_task_id": task.id,
            "worker_employee_id": worker_id,
            "status": "PLANNED",
        })
    for line in materials:
        task_materials.add(db, task_materials.to_fields(dict(line, fleetTaskId=task.id)))
    for line in tools:
        task_tools.add(db, task_tools.to_fields(dict(line, fleetTaskId=task.id)))
    fleet_tasks.commit(db)
    db.refresh(task)
    logger.info(
        "fleet_task_created",
        id=task.id,
        passengers=len(worker_ids),
        materials=len(materials),
        tools=len(tools),
    )
    return task


def fleet_task_detail(db: Session, task: FleetTask) -> dict:
    body = serialize_fleet_task(task)
    riders = db.query(FleetTaskPassenger).filter(FleetTaskPassenger.fleet_task_id == task.id).order_by(FleetTaskPassenger.id).all()
    materials = db.query(FleetTaskMaterial).filter(FleetTaskMaterial.fleet_task_id == task.id).order_by(FleetTaskMaterial.id).all()
    tools = db.query(FleetTaskTool).filter(FleetTaskTool.fleet_task_id == task.id).order_by(FleetTaskTool.id).all()
    body["passengers"] = [serialize_passenger(p) for p in riders]
    body["materials"] = [serialize_material_line(m) for m in materials]
    body["tools"] = [serialize_tool_line(t) for t in tools]
    return body


def delete_fleet_task(db: Session, task_id: int) -> dict:
    """Hard-delete a run and everything it carries in one commit."""
    fleet_tasks.get(db, task_id)
    for model in (FleetTaskPassenger, FleetTaskMaterial, FleetTaskTool):
        db.query(model).filter(model.fleet_task_id == task_id).delete(synchronize_session=False)
    return fleet_tasks.delete(db, task_id)


# =====================
# Alerts
# =====================

def validate_alert(data: dict) -> list:
    v = Validator(data)
    v.required("companyId", "Company ID")
    v.required("alertType", "Alert type")
    v.required("message", "Message")
    v.positive_id("id", "Alert ID")
    v.positive_id("companyId", "Company ID")
    v.positive_id("vehicleId", "Vehicle ID")
    v.positive_id("fleetTaskId", "Fleet task ID")
    v.text("alertType", "Alert type", 50)
    v.text("message", "Message", 1000)
    v.one_of("severity", "Severity", ALERT_SEVERITIES)
    v.boolean("resolved", "Resolved flag")
    return v.errors


def normalize_alert(data: dict) -> dict:
    return {
        "id": to_int(data.get("id")),
        "companyId": to_int(data.get("companyId")),
        "vehicleId": to_int(data.get("vehicleId")),
        "fleetTaskId": to_int(data.get("fleetTaskId")),
        "alertType": upper(clean_text(data.get("alertType"))),
        "severity": or_default(upper(data.get("severity")), "MEDIUM"),
        "message": trim(data.get("message")),
        "resolved": to_bool(data.get("resolved"), False),
    }


def serialize_alert(a: FleetAlert) -> dict:
    return {
        "id": a.id,
        "companyId": a.company_id,
        "vehicleId": a.vehicle_id,
        "fleetTaskId": a.fleet_task_id,
        "alertType": a.alert_type,
        "severity": a.severity,
        "message": a.message,
        "resolved": a.resolved,
        "createdAt": iso(a.created_at),
    }


alerts = EntityPipeline(
    model=FleetAlert,
    name="fleet_alert",
    entity="Fleet alert",
    validate=validate_alert,
    normalize=normalize_alert,
    schema=FleetAlertIn,
    serialize=serialize_alert,
    references=[
        Reference("companyId", Company, "Company"),
        Reference("vehicleId", FleetVehicle, "Vehicle"),
        Reference("fleetTaskId", FleetTask, "Fleet task"),
    ],
)
