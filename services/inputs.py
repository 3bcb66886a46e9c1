from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from flask import current_app

from services.errors import ValidationError


def json_object(data) -> dict:
    """Request bodies must be a JSON object; a missing body counts as empty."""
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("JSON object body required")
    return data


def parse_day(value, field: str) -> date:
    """
    Accept "2024-06-01" or a full ISO datetime ("2024-06-01T00:00:00.000Z");
    the time of day is dropped.
    """
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if isinstance(value, datetime):
        return value.date()
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")

    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        raise ValidationError(f"Invalid {field}. Use YYYY-MM-DD") from None


def parse_int(value, field: str, minimum: Optional[int] = None) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be an integer")
        value = int(value)
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer") from None
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field} must be at least {minimum}")
    return number


def parse_stay(data: dict) -> tuple[date, date]:
    check_in = parse_day(data.get("check_in"), "check_in")
    check_out = parse_day(data.get("check_out"), "check_out")
    if check_out <= check_in:
        raise ValidationError("check_out must be after check_in")

    max_nights = current_app.config.get("MAX_STAY_NIGHTS", 60)
    if (check_out - check_in).days > max_nights:
        raise ValidationError(f"Stays are limited to {max_nights} nights")
    return check_in, check_out


@dataclass(frozen=True)
class BookingRequest:
    hotel_id: int
    check_in: date
    check_out: date
    total_cost: int

    @classmethod
    def from_json(cls, data: dict) -> "BookingRequest":
        data = json_object(data)
        if data.get("hotel_id") is None:
            raise ValidationError("hotel_id is required")
        hotel_id = parse_int(data.get("hotel_id"), "hotel_id", minimum=1)
        check_in, check_out = parse_stay(data)
        if data.get("total_cost") is None:
            raise ValidationError("total_cost is required")
        total_cost = parse_int(data.get("total_cost"), "total_cost", minimum=1)
        return cls(hotel_id=hotel_id, check_in=check_in, check_out=check_out, total_cost=total_cost)


@dataclass(frozen=True)
class PaymentOrderRequest:
    hotel_id: int
    check_in: date
    check_out: date
    adult_count: int = 1
    child_count: int = 0

    @classmethod
    def from_json(cls, data: dict) -> "PaymentOrderRequest":
        data = json_object(data)
        if data.get("hotel_id") is None:
            raise ValidationError("hotel_id is required")
        hotel_id = parse_int(data.get("hotel_id"), "hotel_id", minimum=1)
        check_in, check_out = parse_stay(data)
        adult_count = parse_int(data.get("adult_count", 1), "adult_count", minimum=1)
        child_count = parse_int(data.get("child_count", 0), "child_count", minimum=0)
        return cls(
            hotel_id=hotel_id,
            check_in=check_in,
            check_out=check_out,
            adult_count=adult_count,
            child_count=child_count,
        )


@dataclass(frozen=True)
class CancelRequest:
    reason: Optional[str] = None

    @classmethod
    def from_json(cls, data: dict) -> "CancelRequest":
        data = json_object(data)
        reason = data.get("reason")
        if reason is not None and not isinstance(reason, str):
            raise ValidationError("reason must be a string")
        reason = (reason or "").strip() or None
        if reason and len(reason) > 120:
            raise ValidationError("reason must be at most 120 characters")
        return cls(reason=reason)
