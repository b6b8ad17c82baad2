from datetime import date, datetime, time, timezone
from typing import Union


def ensure_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_naive_utc(value: datetime) -> datetime:
    """Storage form: naive, in UTC."""
    return ensure_utc(value).replace(tzinfo=None)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def parse_rfc3339(value: str) -> datetime:
    # fromisoformat only learned the trailing "Z" in 3.11
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(value))


def to_rfc3339(value: Union[datetime, date]) -> str:
    if not isinstance(value, datetime):
        value = start_of_day(value)
    return ensure_utc(value).isoformat()
