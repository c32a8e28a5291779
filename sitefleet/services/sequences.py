"""
Integer id generation.

Each entity collection owns one row in ``id_sequences``. A new id is taken with
an ``UPDATE ... SET value = value + 1`` followed by a read of the same row inside
the caller's transaction, so two concurrent creates can never observe the same
value: the second writer blocks on the row until the first commits.
"""
from typing import Optional, Type

import structlog
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.models import IdSequence


logger = structlog.get_logger(__name__)


def _seed(db: Session, name: str, model: Optional[Type]) -> None:
    floor = 0
    if model is not None:
        floor = db.query(func.max(model.id)).scalar() or 0
    try:
        with db.begin_nested():
            db.add(IdSequence(name=name, value=floor))
    except IntegrityError:
        # Another writer created the row first; the caller retries against it
        logger.info("id_sequence_seed_lost_race", sequence=name)


def next_id(db: Session, name: str, model: Optional[Type] = None) -> int:
    """Reserve and return the next id of ``name``; never hands out the same value twice."""
    bumped = db.execute(
        update(IdSequence).where(IdSequence.name == name).values(value=IdSequence.value + 1)
    )
    if bumped.rowcount == 0:
        # First use: start after whatever ids already exist in the table
        _seed(db, name, model)
        return next_id(db, name, model)
    return db.query(IdSequence.value).filter(IdSequence.name == name).scalar()


def claim_id(db: Session, name: str, value: int, model: Optional[Type] = None) -> None:
    """Record a client-supplied id so generated ids stay ahead of it."""
    bumped = db.execute(
        update(IdSequence)
        .where(IdSequence.name == name, IdSequence.value < value)
        .values(value=value)
    )
    if bumped.rowcount == 0 and db.get(IdSequence, name) is None:
        _seed(db, name, model)
        claim_id(db, name, value, model)
