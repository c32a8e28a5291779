"""
Referential and uniqueness checks run between normalization and persistence.

These are the fast path that gives callers a readable error. Storage-level
unique constraints remain the real guarantee under concurrency: a racing
writer that slips past these reads still fails at commit, and
``translate_integrity_error`` turns that failure into the same 409 shape.
"""
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Type

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import Conflict, PipelineError, ReferenceMissing, ValidationFailed


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Reference:
    """``field`` of the payload must name an existing row of ``model``."""
    field: str
    model: Type
    label: str


@dataclass(frozen=True)
class Unique:
    """No other row may hold the payload's ``field`` value in ``column``."""
    field: str
    column: str
    message: str  # formatted with {value}
    label: str    # human name used when a constraint violation is translated


def missing_references(db: Session, data: Mapping[str, Any], references: Sequence[Reference]) -> list:
    errors = []
    for ref in references:
        value = data.get(ref.field)
        if value is None:
            continue
        if db.get(ref.model, value) is None:
            errors.append(f"{ref.label} with ID {value} does not exist")
    return errors


def taken_values(
    db: Session,
    model: Type,
    data: Mapping[str, Any],
    uniques: Sequence[Unique],
    exclude_id: Optional[int] = None,
) -> list:
    errors = []
    for unique in uniques:
        value = data.get(unique.field)
        if value is None:
            continue
        query = db.query(model.id).filter(getattr(model, unique.column) == value)
        if exclude_id is not None:
            query = query.filter(model.id != exclude_id)
        if query.first() is not None:
            errors.append(unique.message.format(value=value))
    return errors


def check_integrity(
    db: Session,
    model: Type,
    entity: str,
    data: Mapping[str, Any],
    references: Sequence[Reference] = (),
    uniques: Sequence[Unique] = (),
    exclude_id: Optional[int] = None,
    claimed_id: Optional[int] = None,
) -> None:
    """Run both check groups, then report referential failures ahead of conflicts."""
    missing = missing_references(db, data, references)
    conflicts = []
    if claimed_id is not None and db.get(model, claimed_id) is not None:
        conflicts.append(f"{entity} with ID {claimed_id} already exists")
    conflicts.extend(taken_values(db, model, data, uniques, exclude_id))

    if missing:
        logger.info("reference_missing", entity=entity, errors=missing)
        raise ReferenceMissing.from_messages(missing)
    if conflicts:
        logger.info("uniqueness_conflict", entity=entity, errors=conflicts)
        raise Conflict.from_messages(conflicts)


def translate_integrity_error(exc: IntegrityError, entity: str, uniques: Sequence[Unique] = ()) -> PipelineError:
    """Map a storage constraint failure onto the 400/409 taxonomy."""
    detail = str(getattr(exc, "orig", exc)).lower()
    if "check constraint" in detail:
        return ValidationFailed(f"{entity} data violates a storage constraint")
    for unique in uniques:
        if unique.column in detail:
            return Conflict(f"{entity} with this {unique.label} already exists")
    if "unique" in detail or "duplicate" in detail:
        return Conflict(f"{entity} already exists")
    return ValidationFailed(f"{entity} data violates a storage constraint")
