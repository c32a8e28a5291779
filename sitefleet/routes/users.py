from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import ValidationFailed
from ..models.models import User
from ..pipelines.users import serialize_user, users
from ..services.envelope import ok
from ..services.listing import listing, paginate, search_clause
from ..services.pipeline import positive_id
from ..services.stats import user_stats


router = APIRouter(prefix="/api/users", tags=["users"])

SORTABLE = {
    "id": User.id,
    "name": User.name,
    "email": User.email,
    "isActive": User.is_active,
    "createdAt": User.created_at,
}


def _flag(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered not in ("true", "false"):
        raise ValidationFailed("Invalid status parameter. Must be 'true' or 'false'.")
    return lowered == "true"


@router.get("")
def list_users(
    page: int = 1,
    limit: Optional[int] = None,
    sortBy: Optional[str] = None,
    sortOrder: Optional[str] = None,
    isActive: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(User)
    if isActive is not None:
        query = query.filter(User.is_active == _flag(isActive))
    clause = search_clause(search, [User.name, User.email])
    if clause is not None:
        query = query.filter(clause)
    items, pagination = paginate(query, page, limit, sortBy, sortOrder, SORTABLE, "createdAt")
    return listing([serialize_user(u) for u in items], pagination)


@router.get("/stats")
def get_user_stats(db: Session = Depends(get_db)):
    return ok(user_stats(db))


@router.get("/status/{is_active}")
def list_users_by_status(is_active: str, db: Session = Depends(get_db)):
    flag = _flag(is_active)
    rows = db.query(User).filter(User.is_active == flag).order_by(User.name.asc()).all()
    label = "active" if flag else "inactive"
    return listing([serialize_user(u) for u in rows], message=f"Found {len(rows)} {label} users")


@router.get("/{user_id}")
def get_user(user_id: str, db: Session = Depends(get_db)):
    user = users.get(db, positive_id(user_id, "user"))
    return ok(serialize_user(user))


@router.post("", status_code=201)
def create_user(payload: dict, db: Session = Depends(get_db)):
    user = users.create(db, payload)
    return ok(serialize_user(user), message="User created successfully")


@router.put("/{user_id}")
def update_user(user_id: str, payload: dict, db: Session = Depends(get_db)):
    user = users.update(db, positive_id(user_id, "user"), payload)
    return ok(serialize_user(user), message="User updated successfully")


@router.delete("/{user_id}")
def delete_user(user_id: str, db: Session = Depends(get_db)):
    snapshot = users.delete(db, positive_id(user_id, "user"))
    return ok(snapshot, message="User deleted successfully")
