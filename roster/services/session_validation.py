from __future__ import annotations

from datetime import date, datetime
from typing import Any

from .session_errors import SessionValidationError


def require_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SessionValidationError(f"{field} must be an integer")
    return value


def require_positive_int(value: Any, field: str) -> int:
    value = require_int(value, field)
    if value <= 0:
        raise SessionValidationError(f"{field} must be a positive integer")
    return value


def validate_session_count(value: Any) -> int:
    return require_positive_int(value, "session_count")


def coerce_date(value: Any, field: str = "date") -> date:
    """Accept a date, a datetime (its calendar day) or an ISO string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        raw = value.strip()
        try:
            if len(raw) == 10:
                return date.fromisoformat(raw)
            return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
        except ValueError as exc:
            raise SessionValidationError(f"{field} is not a valid date: {value!r}") from exc
    raise SessionValidationError(f"{field} is not a valid date: {value!r}")
