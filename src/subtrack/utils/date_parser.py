"""Date parsing and calendar utilities."""

from datetime import UTC, date, datetime, time, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    Naive datetimes are assumed to already be in UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO 8601 timestamp into an aware UTC datetime.

    Accepts the ``2024-01-31T00:00:00.000Z`` form written by JavaScript as
    well as Python's ``isoformat()`` output and plain ``YYYY-MM-DD`` dates.

    Raises:
        ValueError: If the string is not an ISO 8601 timestamp
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    try:
        return ensure_utc(date_parser.isoparse(value.strip()))
    except (ValueError, TypeError, AttributeError) as e:
        raise ValueError(f"Could not parse timestamp '{value}': {e}")


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime to ISO 8601, or None."""
    if value is None:
        return None
    return ensure_utc(value).isoformat()


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "tomorrow", "next month",
      "in 10 days", "this year", etc.

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = utc_now().date()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    # "in 10 days", "in 2 weeks", "in 1 month"
    if date_str.startswith("in "):
        parts = date_str[3:].split()
        if len(parts) == 2 and parts[0].isdigit():
            count = int(parts[0])
            unit = parts[1].rstrip("s")
            if unit == "day":
                return today + timedelta(days=count)
            if unit == "week":
                return today + timedelta(weeks=count)
            if unit == "month":
                return today + relativedelta(months=count)
            if unit == "year":
                return today + relativedelta(years=count)

    if date_str.startswith("this "):
        period = date_str[5:]
        if period == "month":
            return today.replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1)

    elif date_str.startswith("next "):
        period = date_str[5:]
        if period == "month":
            return (today + relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) + relativedelta(years=1)

    elif date_str.startswith("last "):
        period = date_str[5:]
        if period == "month":
            return (today - relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) - relativedelta(years=1)

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_date_as_timestamp(date_str: str) -> datetime:
    """Parse a user-entered date into midnight UTC on that day."""
    return datetime.combine(parse_date(date_str), time.min, tzinfo=UTC)


def start_of_month(moment: datetime) -> datetime:
    """First instant of the month containing ``moment``."""
    return ensure_utc(moment).replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def end_of_month(moment: datetime) -> datetime:
    """Last microsecond of the month containing ``moment``."""
    return start_of_month(moment) + relativedelta(months=1) - timedelta(microseconds=1)


def start_of_year(moment: datetime) -> datetime:
    """First instant of the year containing ``moment``."""
    return start_of_month(moment).replace(month=1)


def end_of_year(moment: datetime) -> datetime:
    """Last microsecond of the year containing ``moment``."""
    return start_of_year(moment) + relativedelta(years=1) - timedelta(microseconds=1)
