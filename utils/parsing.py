import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from errors import ValidationError

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def parse_date(value, field="date") -> date:
    # Expect ISO format like "2026-01-20"
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    try:
        return date.fromisoformat((value or "").strip())
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(f"Invalid {field}. Use YYYY-MM-DD")


def parse_hhmm(value, field="time") -> str:
    text = (value or "").strip() if isinstance(value, str) else ""
    if not _HHMM.match(text):
        raise ValidationError(f"Invalid {field}. Use HH:MM")
    return text


def minutes_of(hhmm: str) -> int:
    """Minutes since midnight for an "HH:MM" string."""
    hours, mins = hhmm.split(":")
    return int(hours) * 60 + int(mins)


def end_minutes_of(hhmm: str) -> int:
    # "00:00" as an end/close time is midnight at the end of the day
    return 24 * 60 if hhmm == "00:00" else minutes_of(hhmm)


def format_minutes(total: int) -> str:
    total %= 24 * 60
    return f"{total // 60:02d}:{total % 60:02d}"


def parse_price(value, field="price") -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} is required")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"{field} must be a non-negative number")
    return amount.quantize(Decimal("0.01"))


def parse_day_of_week(value, field="dayOfWeek"):
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 6:
        raise ValidationError(f"{field} must be an integer between 0 (Sunday) and 6 (Saturday)")
    return value


def parse_bool(value, field) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field} must be a boolean")
    return value


def parse_int(value, field) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")


def require_text(data: dict, field: str, max_len: int = 255) -> str:
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    value = value.strip()
    if len(value) > max_len:
        raise ValidationError(f"{field} must be at most {max_len} characters")
    return value


def day_of_week(day: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7
