"""
Defensive coercion of validated input into canonical storage values.

Nothing here raises: malformed numbers and dates collapse into ``None`` (or
"now" for creation timestamps) instead of surfacing as errors.
"""
import math
import re
from datetime import datetime, timezone
from typing import Any, Optional

_WHITESPACE = re.compile(r"\s+")
_NON_DIGITS = re.compile(r"\D")


def to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return None


def to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip()) if not isinstance(value, (int, float)) else float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def to_bool(value: Any, default: Optional[bool] = None) -> Optional[bool]:
    if value is None:
        return default
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no", ""):
            return False
    return bool(value)


def clean_text(value: Any) -> Optional[str]:
    """Trim and collapse internal whitespace; empty results become None."""
    if value is None:
        return None
    text = _WHITESPACE.sub(" ", str(value)).strip()
    return text or None


def trim(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def upper_code(value: Any) -> Optional[str]:
    text = trim(value)
    return text.upper() if text else None


def lower_email(value: Any) -> Optional[str]:
    text = trim(value)
    return text.lower() if text else None


def digits(value: Any) -> Optional[str]:
    if value is None:
        return None
    stripped = _NON_DIGITS.sub("", str(value))
    return stripped or None


def parse_date(value: Any) -> Optional[datetime]:
    """Parse ISO strings, date-only strings, epoch milliseconds or datetimes into naive UTC."""
    if value is None or isinstance(value, bool):
        return None
    parsed: Optional[datetime] = None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        try:
            parsed = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_timestamp(value: Any, now: datetime) -> datetime:
    """Creation timestamps never end up empty: unparsable input means ``now``."""
    return parse_date(value) or now


def upper(value: Any) -> Optional[str]:
    text = trim(value)
    return text.upper() if text else None


def or_default(value: Any, default: Any) -> Any:
    return default if value is None or value == "" else value
