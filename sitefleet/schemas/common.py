from enum import Enum

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


# Enums
class EmployeeStatus(str, Enum):
    active = "ACTIVE"
    inactive = "INACTIVE"
    suspended = "SUSPENDED"


class ProjectStatus(str, Enum):
    planning = "PLANNING"
    active = "ACTIVE"
    on_hold = "ON_HOLD"
    completed = "COMPLETED"
    cancelled = "CANCELLED"


class TaskStatus(str, Enum):
    planned = "PLANNED"
    in_progress = "IN_PROGRESS"
    completed = "COMPLETED"
    cancelled = "CANCELLED"


class TaskType(str, Enum):
    work = "WORK"
    transport = "TRANSPORT"
    material = "MATERIAL"
    tool = "TOOL"
    inspection = "INSPECTION"
    maintenance = "MAINTENANCE"
    admin = "ADMIN"
    training = "TRAINING"
    other = "OTHER"


class CompanyRole(str, Enum):
    worker = "worker"
    admin = "admin"
    manager = "manager"
    driver = "driver"


class VehicleStatus(str, Enum):
    available = "AVAILABLE"
    in_service = "IN_SERVICE"
    maintenance = "MAINTENANCE"


class DriverStatus(str, Enum):
    active = "ACTIVE"
    inactive = "INACTIVE"
    suspended = "SUSPENDED"


class FleetTaskStatus(str, Enum):
    planned = "PLANNED"
    ongoing = "ONGOING"
    completed = "COMPLETED"
    cancelled = "CANCELLED"


class PassengerStatus(str, Enum):
    planned = "PLANNED"
    picked = "PICKED"
    dropped = "DROPPED"
    absent = "ABSENT"


class AlertSeverity(str, Enum):
    low = "LOW"
    medium = "MEDIUM"
    high = "HIGH"
    critical = "CRITICAL"


def values(enum_cls) -> tuple:
    return tuple(member.value for member in enum_cls)


class CamelModel(BaseModel):
    """Base for input schemas: camelCase on the wire, snake_case column names after dump."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"
        use_enum_values = True
