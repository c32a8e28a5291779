"""
The entity persistence pipeline.

Every create and update runs the same stages in order:

    validate -> normalize -> referential + uniqueness checks -> persist

Each entity module in ``sitefleet.pipelines`` supplies its own validator,
normalizer, input schema and serializer and gets a configured
``EntityPipeline`` back. Nothing is written unless every earlier stage passed.
"""
from typing import Any, Callable, Dict, List, Optional, Sequence, Type

import structlog
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import NotFound, ValidationFailed, describe_error
from .envelope import utcnow
from .integrity import Reference, Unique, check_integrity, translate_integrity_error
from .sequences import claim_id, next_id
from .validation import ID_MAX


logger = structlog.get_logger(__name__)


def positive_id(raw: Any, label: str) -> int:
    """Parse a path id; anything but a positive integer is a 400."""
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        value = 0
    if not 0 < value <= ID_MAX:
        raise ValidationFailed(f"Invalid {label} ID. Must be a positive integer.")
    return value


def require_object(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise ValidationFailed("Request body must be a JSON object")
    return payload


class EntityPipeline:
    def __init__(
        self,
        model: Type,
        name: str,
        entity: str,
        validate: Callable[[dict], List[str]],
        normalize: Callable[[dict], dict],
        schema: Type[BaseModel],
        serialize: Callable[..., dict],
        references: Sequence[Reference] = (),
        uniques: Sequence[Unique] = (),
        derive: Optional[Callable[[dict, Any], None]] = None,
        snapshot: Sequence[str] = ("id",),
    ):
        self.model = model
        self.name = name
        self.entity = entity
        self.validate = validate
        self.normalize = normalize
        self.schema = schema
        self.serialize = serialize
        self.references = tuple(references)
        self.uniques = tuple(uniques)
        self.derive = derive
        self.snapshot = tuple(snapshot)

    # ---------- stages ----------
    def clean(self, payload: dict) -> dict:
        """Validate then normalize; the normalized payload keeps camelCase keys."""
        errors = self.validate(payload)
        if errors:
            logger.info("validation_failed", entity=self.name, errors=errors)
            raise ValidationFailed.from_messages(errors)
        return self.normalize(payload)

    def to_fields(self, clean: dict) -> Dict[str, Any]:
        try:
            parsed = self.schema.model_validate(clean)
        except ValidationError as exc:
            raise ValidationFailed.from_messages([describe_error(e) for e in exc.errors()]) from exc
        return parsed.model_dump(exclude_unset=True)

    def prepare(self, db: Session, payload: Any) -> Dict[str, Any]:
        """Validate, normalize and check a create payload; returns model column values."""
        clean = self.clean(require_object(payload))
        check_integrity(
            db,
            self.model,
            self.entity,
            clean,
            self.references,
            self.uniques,
            claimed_id=clean.get("id"),
        )
        return self.to_fields(clean)

    def add(self, db: Session, fields: Dict[str, Any]):
        """Assign an id and stage the new row in the session without committing."""
        fields = dict(fields)
        record_id = fields.pop("id", None)
        if record_id is None:
            record_id = next_id(db, self.model.__tablename__, self.model)
        else:
            claim_id(db, self.model.__tablename__, record_id, self.model)
        if self.derive:
            self.derive(fields, None)
        obj = self.model(id=record_id, **fields)
        db.add(obj)
        return obj

    def commit(self, db: Session) -> None:
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            logger.warning("integrity_error", entity=self.name, error=str(exc.orig))
            raise translate_integrity_error(exc, self.entity, self.uniques) from exc

    # ---------- operations ----------
    def get(self, db: Session, record_id: int):
        obj = db.get(self.model, record_id)
        if obj is None:
            raise NotFound(f"{self.entity} with ID {record_id} not found")
        return obj

    def create(self, db: Session, payload: Any):
        fields = self.prepare(db, payload)
        obj = self.add(db, fields)
        self.commit(db)
        db.refresh(obj)
        logger.info(f"{self.name}_created", id=obj.id)
        return obj

    def update(self, db: Session, record_id: int, payload: Any):
        """Merge ``payload`` over the stored record, then run the merged view through every stage."""
        require_object(payload)
        obj = self.get(db, record_id)
        merged = {**self.serialize(obj), **payload, "id": obj.id}
        clean = self.clean(merged)
        check_integrity(db, self.model, self.entity, clean, self.references, self.uniques, exclude_id=obj.id)
        fields = self.to_fields(clean)
        fields.pop("id", None)
        if self.derive:
            self.derive(fields, obj)
        for key, value in fields.items():
            setattr(obj, key, value)
        obj.updated_at = utcnow()
        self.commit(db)
        db.refresh(obj)
        logger.info(f"{self.name}_updated", id=obj.id, fields=sorted(payload.keys()))
        return obj

    def delete(self, db: Session, record_id: int) -> dict:
        obj = self.get(db, record_id)
        body = self.serialize(obj)
        snapshot = {key: body.get(key) for key in self.snapshot}
        db.delete(obj)
        self.commit(db)
        logger.info(f"{self.name}_deleted", id=record_id)
        return snapshot
