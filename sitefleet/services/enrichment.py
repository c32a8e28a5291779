"""
Read-side joins. Each helper takes a batch of foreign ids and returns a lookup
map with one query, so list endpoints never query per row.
"""
from typing import Any, Dict, Iterable

from sqlalchemy.orm import Session

from ..models.models import Company, FleetVehicle, Project, User

UNKNOWN_COMPANY = "Unknown Company"
UNKNOWN_PROJECT = "Unknown Project"


def _lookup(db: Session, key: Any, value: Any, ids: Iterable[Any]) -> Dict[int, Any]:
    wanted = {i for i in ids if i is not None}
    if not wanted:
        return {}
    return {row[0]: row[1] for row in db.query(key, value).filter(key.in_(wanted)).all()}


def user_emails(db: Session, user_ids: Iterable[Any]) -> Dict[int, str]:
    return _lookup(db, User.id, User.email, user_ids)


def company_names(db: Session, company_ids: Iterable[Any]) -> Dict[int, str]:
    return _lookup(db, Company.id, Company.name, company_ids)


def project_names(db: Session, project_ids: Iterable[Any]) -> Dict[int, str]:
    return _lookup(db, Project.id, Project.name, project_ids)


def vehicle_registrations(db: Session, vehicle_ids: Iterable[Any]) -> Dict[int, str]:
    return _lookup(db, FleetVehicle.id, FleetVehicle.registration_no, vehicle_ids)
