from typing import Optional

from ..models.models import User
from ..schemas.identity import UserIn
from ..services.envelope import iso, utcnow
from ..services.integrity import Unique
from ..services.normalization import clean_text, lower_email, parse_timestamp, to_bool, to_int
from ..services.pipeline import EntityPipeline
from ..services.validation import NAME_MAX, Validator


def validate_user(data: dict) -> list:
    v = Validator(data)
    v.required("id", "User ID")
    v.required("email", "Email")
    v.required("name", "Name")
    v.positive_id("id", "User ID")
    v.email("email")
    v.text("name", "User name", NAME_MAX)
    v.boolean("isActive", "Active status")
    return v.errors


def normalize_user(data: dict) -> dict:
    now = utcnow()
    return {
        "id": to_int(data.get("id")),
        "email": lower_email(data.get("email")),
        "name": clean_text(data.get("name")),
        "isActive": to_bool(data.get("isActive"), True),
        "createdAt": parse_timestamp(data.get("createdAt"), now),
    }


def user_metadata(is_active: bool, now=None) -> dict:
    now = now or utcnow()
    return {
        "accountStatus": "ACTIVE" if is_active else "INACTIVE",
        "lastActive": iso(now) if is_active else None,
        "loginCount": 0,
        "preferences": {},
        "security": {"emailVerified": False, "twoFactorEnabled": False},
    }


def derive_user(fields: dict, existing: Optional[User]) -> None:
    is_active = fields.get("is_active", True)
    if existing is None:
        fields["user_metadata"] = user_metadata(is_active)
    elif is_active != existing.is_active:
        # Activation flips only the account status; counters and preferences survive
        metadata = dict(existing.user_metadata or user_metadata(is_active))
        metadata["accountStatus"] = "ACTIVE" if is_active else "INACTIVE"
        if is_active:
            metadata["lastActive"] = iso(utcnow())
        fields["user_metadata"] = metadata


def serialize_user(u: User) -> dict:
    return {
        "id": u.id,
        "email": u.email,
        "name": u.name,
        "isActive": u.is_active,
        "metadata": u.user_metadata or {},
        "createdAt": iso(u.created_at),
        "updatedAt": iso(u.updated_at),
    }


users = EntityPipeline(
    model=User,
    name="user",
    entity="User",
    validate=validate_user,
    normalize=normalize_user,
    schema=UserIn,
    serialize=serialize_user,
    uniques=[Unique("email", "email", "User with email {value} already exists", "email")],
    derive=derive_user,
    snapshot=("id", "email", "name"),
)
