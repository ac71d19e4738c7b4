"""Argument validation primitives for tool inputs.

Each primitive raises ValidationError naming the offending field. Tool
validators compose them and run before any call reaches the Dhan API.
"""

from __future__ import annotations

import math
import re
from datetime import date
from typing import Any, Iterable

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class ValidationError(Exception):
    """Raised when a tool argument violates its declared shape."""

    def __init__(self, field: str, reason: str):
        super().__init__(f"{field} {reason}")
        self.field = field
        self.reason = reason


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid number here
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def require_string(value: Any, field: str) -> None:
    """Require a non-empty, non-blank string."""
    if not isinstance(value, str) or value.strip() == "":
        raise ValidationError(field, "must be a non-empty string")


def require_one_of(value: Any, allowed: Iterable[Any], field: str) -> None:
    """Require ``value`` to equal one of ``allowed`` with the same type.

    Type-strict so that ``True`` does not match ``1`` and ``1.0`` does not
    match ``1``.
    """
    allowed = list(allowed)
    if not any(type(value) is type(option) and value == option for option in allowed):
        raise ValidationError(
            field,
            f"must be one of: {', '.join(str(option) for option in allowed)}",
        )


def require_boolean(value: Any, field: str) -> None:
    """Require a boolean."""
    if not isinstance(value, bool):
        raise ValidationError(field, "must be a boolean")


def require_date(value: Any, field: str) -> None:
    """Require a YYYY-MM-DD string naming a real calendar date."""
    require_string(value, field)
    if not DATE_PATTERN.match(value):
        raise ValidationError(field, "must be in YYYY-MM-DD format")
    try:
        date.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(field, "must be a valid calendar date") from e


def require_positive_int(value: Any, field: str, maximum: int | None = None) -> None:
    """Require an integer greater than zero, optionally capped at ``maximum``."""
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ValidationError(field, "must be a positive integer")
    if maximum is not None and value > maximum:
        raise ValidationError(field, f"cannot exceed {maximum}")


def require_non_negative_number(value: Any, field: str) -> None:
    """Require a finite int or float that is zero or greater."""
    if not _is_number(value) or not math.isfinite(value) or value < 0:
        raise ValidationError(field, "must be a non-negative number")


def require_object(value: Any, field: str = "arguments") -> dict[str, Any]:
    """Require a JSON object and return it."""
    if not isinstance(value, dict):
        raise ValidationError(field, "must be an object")
    return value
