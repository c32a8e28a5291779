from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from ..db import Base
from ..schemas.common import (
    AlertSeverity,
    CompanyRole,
    DriverStatus,
    EmployeeStatus,
    FleetTaskStatus,
    PassengerStatus,
    ProjectStatus,
    TaskStatus,
    TaskType,
    VehicleStatus,
    values,
)
from ..services.envelope import utcnow


# Canonical enumerations, enforced by the validators and by CHECK constraints below
EMPLOYEE_STATUSES = values(EmployeeStatus)
PROJECT_STATUSES = values(ProjectStatus)
TASK_STATUSES = values(TaskStatus)
TASK_TYPES = values(TaskType)
COMPANY_ROLES = values(CompanyRole)
VEHICLE_STATUSES = values(VehicleStatus)
DRIVER_STATUSES = values(DriverStatus)
FLEET_TASK_STATUSES = values(FleetTaskStatus)
PASSENGER_STATUSES = values(PassengerStatus)
ALERT_SEVERITIES = values(AlertSeverity)


def _in(column: str, choices: tuple, name: str) -> CheckConstraint:
    allowed = ", ".join(f"'{v}'" for v in choices)
    return CheckConstraint(f"{column} IN ({allowed})", name=name)


def int_pk() -> Mapped[int]:
    # Application-assigned ids drawn from id_sequences, never from the database
    return mapped_column(Integer, primary_key=True, autoincrement=False)


class Timestamped:
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class IdSequence(Base):
    """Per-collection counter backing integer id generation"""
    __tablename__ = "id_sequences"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


# =====================
# Tenancy & identity
# =====================

class Company(Timestamped, Base):
    __tablename__ = "companies"

    id: Mapped[int] = int_pk()
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    tenant_code: Mapped[Optional[str]] = mapped_column(String(20), unique=True, index=True)
    address: Mapped[Optional[str]] = mapped_column(String(500))
    phone: Mapped[Optional[str]] = mapped_column(String(30))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class User(Timestamped, Base):
    __tablename__ = "users"

    id: Mapped[int] = int_pk()
    email: Mapped[str] = mapped_column(String(254), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    # accountStatus, lastActive, loginCount, preferences, security flags
    user_metadata: Mapped[Optional[dict]] = mapped_column("metadata", JSON, default=dict)


class CompanyUser(Timestamped, Base):
    """Role link between a company and a user"""
    __tablename__ = "company_users"

    id: Mapped[int] = int_pk()
    company_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="worker")
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False)

    __table_args__ = (
        UniqueConstraint("company_id", "user_id", "role", name="uq_company_user_role"),
        _in("role", COMPANY_ROLES, "ck_company_users_role"),
        Index("idx_company_users_company_role", "company_id", "role"),
    )


# =====================
# Workforce
# =====================

class Employee(Timestamped, Base):
    __tablename__ = "employees"

    id: Mapped[int] = int_pk()
    company_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    employee_code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(30))
    job_title: Mapped[Optional[str]] = mapped_column(String(100))
    photo_url: Mapped[Optional[str]] = mapped_column(String(500))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="ACTIVE", index=True)

    __table_args__ = (
        _in("status", EMPLOYEE_STATUSES, "ck_employees_status"),
        Index("idx_employees_company_status", "company_id", "status"),
    )


# =====================
# Projects & tasks
# =====================

class Project(Timestamped, Base):
    __tablename__ = "projects"

    id: Mapped[int] = int_pk()
    company_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    code: Mapped[Optional[str]] = mapped_column(String(20), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    job_nature: Mapped[Optional[str]] = mapped_column(String(100))
    job_subtype: Mapped[Optional[str]] = mapped_column(String(100))
    location: Mapped[Optional[str]] = mapped_column(String(255))
    address: Mapped[Optional[str]] = mapped_column(String(500))
    start_date: Mapped[Optional[datetime]] = mapped_column(DateTime, index=True)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime, index=True)
    budget: Mapped[float] = mapped_column(Float, default=0)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PLANNING", index=True)
    permit_required: Mapped[bool] = mapped_column(Boolean, default=False)
    permit_status: Mapped[Optional[str]] = mapped_column(String(50))
    contact_person: Mapped[Optional[dict]] = mapped_column(JSON, default=dict)
    # progress, health, timelineStatus, financialStatus, risks
    project_metadata: Mapped[Optional[dict]] = mapped_column("metadata", JSON, default=dict)
    health: Mapped[Optional[str]] = mapped_column(String(30), index=True)  # copy of metadata.health for filtering
    created_by: Mapped[Optional[int]] = mapped_column(Integer, index=True)

    __table_args__ = (
        CheckConstraint("budget >= 0", name="ck_projects_budget"),
        _in("status", PROJECT_STATUSES, "ck_projects_status"),
        Index("idx_projects_company_status", "company_id", "status"),
        Index("idx_projects_company_start", "company_id", "start_date"),
    )


class Task(Timestamped, Base):
    __tablename__ = "tasks"

    id: Mapped[int] = int_pk()
    company_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    project_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    task_name: Mapped[str] = mapped_column(String(255), nullable=False)
    task_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PLANNED", index=True)
    start_date: Mapped[Optional[datetime]] = mapped_column(DateTime, index=True)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    assigned_to: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    created_by: Mapped[Optional[int]] = mapped_column(Integer)
    additional_data: Mapped[Optional[dict]] = mapped_column(JSON, default=dict)

    __table_args__ = (
        _in("status", TASK_STATUSES, "ck_tasks_status"),
        _in("task_type", TASK_TYPES, "ck_tasks_task_type"),
        Index("idx_tasks_project_status", "project_id", "status"),
    )


# =====================
# Fleet
# =====================

class FleetVehicle(Timestamped, Base):
    __tablename__ = "fleet_vehicles"

    id: Mapped[int] = int_pk()
    company_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    vehicle_code: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    registration_no: Mapped[Optional[str]] = mapped_column(String(20), unique=True, index=True)
    vehicle_type: Mapped[Optional[str]] = mapped_column(String(50))
    capacity: Mapped[Optional[int]] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="AVAILABLE", index=True)
    insurance_expiry: Mapped[Optional[datetime]] = mapped_column(DateTime, index=True)
    last_service_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    odometer: Mapped[Optional[float]] = mapped_column(Float)
    meta: Mapped[Optional[dict]] = mapped_column(JSON, default=dict)

    __table_args__ = (
        _in("status", VEHICLE_STATUSES, "ck_fleet_vehicles_status"),
        Index("idx_fleet_vehicles_company_status", "company_id", "status"),
        Index("idx_fleet_vehicles_status_insurance", "status", "insurance_expiry"),
    )


class Driver(Timestamped, Base):
    __tablename__ = "drivers"

    id: Mapped[int] = int_pk()
    company_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    employee_id: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    license_no: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    license_type: Mapped[Optional[str]] = mapped_column(String(30))
    license_expiry: Mapped[Optional[datetime]] = mapped_column(DateTime)
    phone: Mapped[Optional[str]] = mapped_column(String(30))
    assigned_vehicle_id: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="ACTIVE", index=True)

    __table_args__ = (
        _in("status", DRIVER_STATUSES, "ck_drivers_status"),
    )


class FleetTask(Timestamped, Base):
    """A transport run: one vehicle, optional driver, a set of passengers"""
    __tablename__ = "fleet_tasks"

    id: Mapped[int] = int_pk()
    company_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    project_id: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    driver_id: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    vehicle_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    task_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    planned_pickup_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    planned_drop_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    pickup_address: Mapped[Optional[str]] = mapped_column(String(500))
    drop_address: Mapped[Optional[str]] = mapped_column(String(500))
    pickup_location: Mapped[Optional[dict]] = mapped_column(JSON)
    drop_location: Mapped[Optional[dict]] = mapped_column(JSON)
    expected_passengers: Mapped[int] = mapped_column(Integer, default=0)
    actual_start_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    actual_end_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    route_log: Mapped[Optional[list]] = mapped_column(JSON, default=list)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PLANNED", index=True)
    created_by: Mapped[Optional[int]] = mapped_column(Integer)

    __table_args__ = (
        _in("status", FLEET_TASK_STATUSES, "ck_fleet_tasks_status"),
        Index("idx_fleet_tasks_company_date", "company_id", "task_date"),
    )


class FleetTaskPassenger(Timestamped, Base):
    __tablename__ = "fleet_task_passengers"

    id: Mapped[int] = int_pk()
    company_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    fleet_task_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    worker_employee_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    pickup_confirmed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, index=True)
    drop_confirmed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PLANNED", index=True)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        UniqueConstraint("fleet_task_id", "worker_employee_id", name="uq_fleet_task_passenger"),
        _in("status", PASSENGER_STATUSES, "ck_fleet_task_passengers_status"),
        Index("idx_passengers_task_status", "fleet_task_id", "status"),
    )


class FleetTaskMaterial(Timestamped, Base):
    __tablename__ = "fleet_task_materials"

    id: Mapped[int] = int_pk()
    fleet_task_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    material_id: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity: Mapped[float] = mapped_column(Float, default=0)


class FleetTaskTool(Timestamped, Base):
    __tablename__ = "fleet_task_tools"

    id: Mapped[int] = int_pk()
    fleet_task_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    tool_id: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=1)


class FleetAlert(Timestamped, Base):
    __tablename__ = "fleet_alerts"

    id: Mapped[int] = int_pk()
    company_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    vehicle_id: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    fleet_task_id: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    alert_type: Mapped[str] = mapped_column(String(50), nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False, default="MEDIUM", index=True)
    message: Mapped[str] = mapped_column(String(1000), nullable=False)
    resolved: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    __table_args__ = (
        _in("severity", ALERT_SEVERITIES, "ck_fleet_alerts_severity"),
    )


# =====================
# Stock catalog
# =====================

class Material(Timestamped, Base):
    __tablename__ = "materials"

    id: Mapped[int] = int_pk()
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    unit: Mapped[Optional[str]] = mapped_column(String(30))
    stock_qty: Mapped[float] = mapped_column(Float, default=0)


class Tool(Timestamped, Base):
    __tablename__ = "tools"

    id: Mapped[int] = int_pk()
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    quantity_available: Mapped[int] = mapped_column(Integer, default=0)
