from datetime import datetime
from typing import Any, Dict, List, Optional

from .common import AlertSeverity, CamelModel, DriverStatus, FleetTaskStatus, PassengerStatus, VehicleStatus


# Vehicles & drivers
class FleetVehicleIn(CamelModel):
    id: Optional[int] = None
    company_id: Optional[int] = None
    vehicle_code: Optional[str] = None
    registration_no: Optional[str] = None
    vehicle_type: Optional[str] = None
    capacity: Optional[int] = None
    status: Optional[VehicleStatus] = None
    insurance_expiry: Optional[datetime] = None
    last_service_date: Optional[datetime] = None
    odometer: Optional[float] = None
    meta: Optional[Dict[str, Any]] = None


class DriverIn(CamelModel):
    id: Optional[int] = None
    company_id: Optional[int] = None
    employee_id: Optional[int] = None
    user_id: Optional[int] = None
    full_name: Optional[str] = None
    license_no: Optional[str] = None
    license_type: Optional[str] = None
    license_expiry: Optional[datetime] = None
    phone: Optional[str] = None
    assigned_vehicle_id: Optional[int] = None
    status: Optional[DriverStatus] = None


# Transport runs
class FleetTaskIn(CamelModel):
    id: Optional[int] = None
    company_id: Optional[int] = None
    project_id: Optional[int] = None
    driver_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    task_date: Optional[datetime] = None
    planned_pickup_time: Optional[datetime] = None
    planned_drop_time: Optional[datetime] = None
    pickup_address: Optional[str] = None
    drop_address: Optional[str] = None
    pickup_location: Optional[Dict[str, Any]] = None
    drop_location: Optional[Dict[str, Any]] = None
    expected_passengers: Optional[int] = None
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    route_log: Optional[List[Any]] = None
    notes: Optional[str] = None
    status: Optional[FleetTaskStatus] = None
    created_by: Optional[int] = None


class FleetTaskPassengerIn(CamelModel):
    id: Optional[int] = None
    company_id: Optional[int] = None
    fleet_task_id: Optional[int] = None
    worker_employee_id: Optional[int] = None
    pickup_confirmed_at: Optional[datetime] = None
    drop_confirmed_at: Optional[datetime] = None
    status: Optional[PassengerStatus] = None
    notes: Optional[str] = None


class FleetTaskMaterialIn(CamelModel):
    id: Optional[int] = None
    fleet_task_id: Optional[int] = None
    material_id: Optional[int] = None
    quantity: Optional[float] = None


class FleetTaskToolIn(CamelModel):
    id: Optional[int] = None
    fleet_task_id: Optional[int] = None
    tool_id: Optional[int] = None
    quantity: Optional[int] = None


class FleetAlertIn(CamelModel):
    id: Optional[int] = None
    company_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    fleet_task_id: Optional[int] = None
    alert_type: Optional[str] = None
    severity: Optional[AlertSeverity] = None
    message: Optional[str] = None
    resolved: Optional[bool] = None
