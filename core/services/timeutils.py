"""
Clinic-local (Asia/Manila) date and time helpers.

Everything that reasons about "which day" an appointment or duty window
falls on goes through these helpers so that date boundaries never depend
on the server timezone.  Datetimes handed to the ORM are always aware.
"""
from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from django.utils import timezone

MANILA = ZoneInfo('Asia/Manila')

_DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')
_HHMM_RE = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')


def manila_now() -> datetime:
    return timezone.now().astimezone(MANILA)


def to_manila(dt: datetime) -> datetime:
    if timezone.is_naive(dt):
        return dt.replace(tzinfo=MANILA)
    return dt.astimezone(MANILA)


def manila_today() -> date:
    return manila_now().date()


def parse_iso_date(value) -> Optional[date]:
    """Parse a strict ``YYYY-MM-DD`` string; anything else returns ``None``."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    s = str(value or '').strip()
    if not _DATE_RE.match(s):
        return None
    try:
        return date.fromisoformat(s)
    except ValueError:
        return None


def parse_hhmm(value) -> Optional[time]:
    m = _HHMM_RE.match(str(value or '').strip())
    if not m:
        return None
    return time(int(m.group(1)), int(m.group(2)))


def build_manila_datetime(day: date, hhmm) -> Optional[datetime]:
    t = hhmm if isinstance(hhmm, time) else parse_hhmm(hhmm)
    if t is None:
        return None
    return datetime.combine(day, t, tzinfo=MANILA)


def start_of_manila_day(day) -> datetime:
    if isinstance(day, datetime):
        day = to_manila(day).date()
    return datetime.combine(day, time.min, tzinfo=MANILA)


def end_of_manila_day(day) -> datetime:
    return start_of_manila_day(day) + timedelta(days=1) - timedelta(microseconds=1)


def start_of_manila_week(dt) -> datetime:
    """Monday 00:00 of the Manila week containing ``dt``."""
    d = to_manila(dt).date() if isinstance(dt, datetime) else dt
    monday = d - timedelta(days=d.weekday())
    return start_of_manila_day(monday)


def add_days(value, n: int):
    return value + timedelta(days=n)


def ranges_overlap(a_start, a_end, b_start, b_end) -> bool:
    # half-open: touching edges do not overlap
    return a_start < b_end and b_start < a_end


def to_manila_date_string(dt) -> str:
    if isinstance(dt, datetime):
        dt = to_manila(dt).date()
    return dt.isoformat()


def format_hhmm(dt: datetime) -> str:
    return to_manila(dt).strftime('%H:%M')


def format_time_12h(dt: datetime) -> str:
    local = to_manila(dt)
    hour = local.hour % 12 or 12
    suffix = 'AM' if local.hour < 12 else 'PM'
    return f"{hour}:{local.minute:02d} {suffix}"


def format_date_long(value) -> str:
    """``October 19, 2026`` style used on certificates."""
    if isinstance(value, datetime):
        value = to_manila(value).date()
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def quarter_of(value) -> int:
    if isinstance(value, datetime):
        value = to_manila(value).date()
    return (value.month - 1) // 3 + 1
