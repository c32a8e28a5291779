"""
Input validation rules shared by every entity.

A ``Validator`` walks a raw field bag and collects every violated rule rather
than stopping at the first one; callers turn a non-empty list into a single
400 response whose message joins all of them.
"""
import math
import re
from typing import Any, Iterable, List, Mapping, Optional

from .normalization import parse_date

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

NAME_MAX = 100
CODE_MAX = 20
EMAIL_MAX = 254
# Identifiers live in 32-bit integer columns
ID_MAX = 2**31 - 1


def is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return False
        return math.isfinite(number)
    return False


def is_positive_int(value: Any) -> bool:
    if not is_number(value):
        return False
    number = float(value)
    return number.is_integer() and 0 < number <= ID_MAX


def as_number(value: Any) -> Optional[float]:
    return float(value) if is_number(value) else None


class Validator:
    def __init__(self, data: Mapping[str, Any]):
        self.data = data
        self.errors: List[str] = []

    def _value(self, field: str) -> Any:
        return self.data.get(field)

    def present(self, field: str) -> bool:
        return not is_missing(self._value(field))

    def add(self, message: str) -> "Validator":
        self.errors.append(message)
        return self

    # ---------- presence ----------
    def required(self, field: str, label: str) -> "Validator":
        if not self.present(field):
            self.errors.append(f"{label} is required")
        return self

    # ---------- types ----------
    def number(self, field: str, label: str) -> "Validator":
        if self.present(field) and not is_number(self._value(field)):
            self.errors.append(f"{label} must be a number")
        return self

    def positive_id(self, field: str, label: str) -> "Validator":
        value = self._value(field)
        if not self.present(field):
            return self
        if not is_number(value):
            self.errors.append(f"{label} must be a number")
        elif not is_positive_int(value):
            self.errors.append(f"{label} must be a positive integer")
        return self

    def boolean(self, field: str, label: str) -> "Validator":
        value = self._value(field)
        if value is not None and not isinstance(value, bool):
            self.errors.append(f"{label} must be a boolean value")
        return self

    def mapping(self, field: str, label: str) -> "Validator":
        value = self._value(field)
        if value is not None and not isinstance(value, dict):
            self.errors.append(f"{label} must be an object")
        return self

    def id_list(self, field: str, label: str) -> "Validator":
        value = self._value(field)
        if value is None:
            return self
        if not isinstance(value, list) or not all(is_positive_int(v) for v in value):
            self.errors.append(f"{label} must be a list of IDs")
        return self

    # ---------- strings ----------
    def text(self, field: str, label: str, max_length: Optional[int] = None) -> "Validator":
        value = self._value(field)
        if not self.present(field):
            return self
        if not isinstance(value, str):
            self.errors.append(f"{label} must be a string")
            return self
        trimmed = value.strip()
        if not trimmed:
            self.errors.append(f"{label} cannot be empty")
        elif max_length is not None and len(trimmed) > max_length:
            self.errors.append(f"{label} must be less than {max_length} characters")
        return self

    def email(self, field: str, label: str = "Email") -> "Validator":
        value = self._value(field)
        if not self.present(field):
            return self
        if not isinstance(value, str) or not EMAIL_RE.match(value.strip()):
            self.errors.append("Please provide a valid email address")
        elif len(value.strip()) > EMAIL_MAX:
            self.errors.append("Email address is too long")
        return self

    # ---------- enumerations ----------
    def one_of(self, field: str, label: str, allowed: Iterable[str]) -> "Validator":
        allowed = list(allowed)
        if self.present(field) and self._value(field) not in allowed:
            self.errors.append(f"{label} must be one of: {', '.join(allowed)}")
        return self

    # ---------- ranges ----------
    def non_negative(self, field: str, message: str) -> "Validator":
        number = as_number(self._value(field))
        if number is not None and number < 0:
            self.errors.append(message)
        return self

    # ---------- dates ----------
    def date(self, field: str, label: str) -> "Validator":
        if self.present(field) and parse_date(self._value(field)) is None:
            self.errors.append(f"{label} must be a valid date")
        return self

    def date_order(self, start_field: str, end_field: str, message: str = "End date must be after start date") -> "Validator":
        start = parse_date(self._value(start_field)) if self.present(start_field) else None
        end = parse_date(self._value(end_field)) if self.present(end_field) else None
        if start is not None and end is not None and end <= start:
            self.errors.append(message)
        return self
