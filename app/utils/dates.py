from datetime import date, datetime, time, timezone

from app.utils.exceptions import ValidationException, InvalidDateRangeException


def to_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC datetime. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_window_bound(value: str | None, field: str, end_of_day: bool = False) -> datetime:
    """
    Parse an ISO 8601 query value into a UTC datetime.

    A bare date ("2031-06-12") covers the whole day: it becomes 00:00 for the
    start of a window and 23:59:59.999999 for the end.
    """
    if not value:
        raise ValidationException(f"'{field}' is required", field=field)
    raw = value.strip()
    try:
        if len(raw) == 10:
            day = date.fromisoformat(raw)
            return datetime.combine(day, time.max if end_of_day else time.min, tzinfo=timezone.utc)
        return to_utc(datetime.fromisoformat(raw))
    except ValueError:
        raise ValidationException(f"'{field}' must be an ISO 8601 date or datetime", field=field)


def parse_window(start: str | None, end: str | None,
                 start_field: str = "from", end_field: str = "to") -> tuple[datetime, datetime]:
    window_start = parse_window_bound(start, start_field)
    window_end   = parse_window_bound(end, end_field, end_of_day=True)
    if window_end <= window_start:
        raise InvalidDateRangeException(f"'{end_field}' must be after '{start_field}'")
    return window_start, window_end
