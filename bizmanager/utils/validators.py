"""Input validation helpers."""

from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Any

from pydantic import AnyUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^[+]?[(]?[0-9]{1,4}[)]?[-\s./0-9]*$")

_URL_ADAPTER = TypeAdapter(AnyUrl)
_DATETIME_ADAPTER = TypeAdapter(datetime)


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


def is_valid_phone(value: str) -> bool:
    return bool(PHONE_PATTERN.match(value))


def is_valid_url(value: str) -> bool:
    try:
        _URL_ADAPTER.validate_python(value)
    except PydanticValidationError:
        return False
    return True


def require_non_empty(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("Value must not be empty")
    return value.strip()


def coerce_number(value: Any) -> float:
    """Accept ints, floats and numeric strings; booleans are not numbers."""

    if isinstance(value, bool):
        raise ValueError("must be numeric")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError as exc:
            raise ValueError("must be numeric") from exc
    else:
        raise ValueError("must be numeric")
    if not math.isfinite(number):
        raise ValueError("must be a finite number")
    return number


def coerce_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise ValueError("must be a boolean")


def coerce_datetime(value: Any) -> datetime:
    if isinstance(value, bool) or value is None:
        raise ValueError("must be an ISO 8601 date")
    try:
        return _DATETIME_ADAPTER.validate_python(value)
    except PydanticValidationError as exc:
        raise ValueError("must be an ISO 8601 date") from exc
