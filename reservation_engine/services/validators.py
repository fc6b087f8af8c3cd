"""
Stateless precondition checks used at every service boundary
"""
from datetime import date
from typing import Optional, Type

from reservation_engine.exceptions import (
    BlankField, InvalidDateRange, NotFoundError, ValidationError
)


def require_not_blank(value: Optional[str], field_name: str) -> str:
    if value is None or not str(value).strip():
        raise BlankField(f"{field_name} cannot be blank", field=field_name)
    return value


def require_range(value: Optional[int], low: int, high: int, field_name: str,
                  error_cls: Type[ValidationError] = ValidationError) -> int:
    """Inclusive range check"""
    if value is None or value < low or value > high:
        raise error_cls(
            f"{field_name} must be between {low} and {high}, got {value}",
            field=field_name, value=value,
        )
    return value


def require_date_range(start: Optional[date], end: Optional[date],
                       allow_past: bool = True) -> int:
    """
    Validate a half-open stay [start, end) and return its number of nights

    Raises:
        InvalidDateRange: missing dates, end not after start, or start in the
            past when allow_past is False
    """
    if start is None or end is None:
        raise InvalidDateRange("Both start and end dates are required")
    if end <= start:
        raise InvalidDateRange(
            f"End date {end.isoformat()} must be after start date {start.isoformat()}",
            start=start, end=end,
        )
    if not allow_past and start < date.today():
        raise InvalidDateRange(
            f"Start date {start.isoformat()} is in the past",
            start=start, end=end,
        )
    return (end - start).days


def require_positive_id(value: Optional[int], entity: str,
                        error_cls: Type[NotFoundError] = NotFoundError) -> int:
    """Ids are positive integers; anything else can never match a row"""
    if value is None or value < 1:
        raise error_cls(f"{entity} id must be a positive integer, got {value}")
    return value


def stay_in_progress(start: date, end: date, on: Optional[date] = None) -> bool:
    """True if `on` (default today) falls inside [start, end)"""
    on = on or date.today()
    return start <= on < end
