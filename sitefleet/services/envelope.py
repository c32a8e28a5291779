from datetime import datetime, timezone
from typing import Any, Optional


def utcnow() -> datetime:
    """Naive UTC now, the representation every timestamp column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def ok(data: Any = None, message: Optional[str] = None, **extra: Any) -> dict:
    body: dict = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    body["timestamp"] = utc_timestamp()
    return body
