"""Reminder due-date calculation.

All arithmetic happens on the user's local calendar, then the result is
converted to an aware UTC datetime for storage.
"""
import calendar
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

FREQUENCIES = ("daily", "weekly", "monthly")
DEFAULT_TIME = "09:00"

# date.weekday() numbering (Monday=0)
WEEKDAYS = {
    "monday": 0, "tuesday": 1, "wednesday": 2, "thursday": 3,
    "friday": 4, "saturday": 5, "sunday": 6,
}
_SATURDAY = WEEKDAYS["saturday"]

_TIME_RE = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class ReminderTiming:
    is_valid: bool
    type: str
    frequency: str | None
    next_due: datetime | None
    specific_date: str | None = None


def resolve_zone(tz: str | None):
    """ZoneInfo for `tz`, UTC when unset or unknown."""
    if not tz:
        return timezone.utc
    try:
        return ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone '{tz}', falling back to UTC")
        return timezone.utc


def parse_time_of_day(value: str | None) -> tuple[int, int]:
    match = _TIME_RE.match((value or "").strip())
    if not match:
        match = _TIME_RE.match(DEFAULT_TIME)
    return int(match.group(1)), int(match.group(2))


def parse_calendar_date(value: str | None) -> date | None:
    """A strict YYYY-MM-DD date, or None."""
    value = (value or "").strip()
    if not _DATE_RE.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _local_to_utc(day: date, hour: int, minute: int, zone) -> datetime:
    local = datetime(day.year, day.month, day.day, hour, minute, tzinfo=zone)
    return local.astimezone(timezone.utc)


def _first_of_next_month(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


def _next_weekday(day: date, weekday: int) -> date:
    """The next `weekday` strictly after `day`."""
    days_ahead = (weekday - day.weekday()) % 7 or 7
    return day + timedelta(days=days_ahead)


def parse_reminder_timing(
    timing: str | None,
    time_of_day: str | None = DEFAULT_TIME,
    tz: str | None = "UTC",
    now: datetime | None = None,
) -> ReminderTiming:
    """Turn a timing keyword into the next due instant.

    Recurring: daily (tomorrow), weekly (next Saturday), monthly (1st of
    next month). One-time: tomorrow, a weekday name, or a YYYY-MM-DD date.
    Anything else is reported as invalid.
    """
    zone = resolve_zone(tz)
    hour, minute = parse_time_of_day(time_of_day)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    today = now.astimezone(zone).date()
    key = (timing or "").strip().lower()

    if key == "daily":
        return ReminderTiming(True, "recurring", "daily",
                              _local_to_utc(today + timedelta(days=1), hour, minute, zone))
    if key == "weekly":
        return ReminderTiming(True, "recurring", "weekly",
                              _local_to_utc(_next_weekday(today, _SATURDAY), hour, minute, zone))
    if key == "monthly":
        return ReminderTiming(True, "recurring", "monthly",
                              _local_to_utc(_first_of_next_month(today), hour, minute, zone))

    if key == "tomorrow":
        return ReminderTiming(True, "once", None,
                              _local_to_utc(today + timedelta(days=1), hour, minute, zone))
    if key in WEEKDAYS:
        return ReminderTiming(True, "once", None,
                              _local_to_utc(_next_weekday(today, WEEKDAYS[key]), hour, minute, zone))

    specific = parse_calendar_date(key)
    if specific:
        return ReminderTiming(True, "once", None,
                              _local_to_utc(specific, hour, minute, zone), specific.isoformat())

    return ReminderTiming(False, "once", None, None)


def add_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def next_occurrence(due: datetime, frequency: str | None) -> datetime | None:
    """Advance a fired recurring reminder by one period. None for unknown frequencies."""
    if frequency == "daily":
        return due + timedelta(days=1)
    if frequency == "weekly":
        return due + timedelta(weeks=1)
    if frequency == "monthly":
        return add_months(due, 1)
    return None
