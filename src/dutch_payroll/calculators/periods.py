"""Period and calendar-day arithmetic.

Periods are ``YYYY-MM`` strings. All windows are inclusive calendar-day
ranges; every function here is pure.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone

from dutch_payroll.errors import ValidationError

_PERIOD_RE = re.compile(r"^(\d{4})-(\d{1,2})$")


@dataclass(frozen=True)
class MonthWindow:
    """Inclusive first/last day of a calendar month."""

    start: date
    end: date

    @property
    def total_days(self) -> int:
        return days_inclusive(self.start, self.end)


def parse_period(period: str) -> tuple[int, int]:
    """Parse ``YYYY-MM`` into ``(year, month)``.

    Raises:
        ValidationError: If the string is unparsable or the month is outside 1-12.
    """
    if not isinstance(period, str):
        raise ValidationError(f"Invalid period {period!r}: expected YYYY-MM", field="period")
    match = _PERIOD_RE.match(period.strip())
    if match is None:
        raise ValidationError(f"Invalid period {period!r}: expected YYYY-MM", field="period")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid period {period!r}: month must be 1-12", field="period")
    return year, month


def format_period(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def month_key(period: str) -> int:
    """Order-preserving integer key: ``year * 12 + (month - 1)``."""
    year, month = parse_period(period)
    return year * 12 + (month - 1)


def month_window(period: str) -> MonthWindow:
    """First and last calendar day of ``period`` (leap-year aware)."""
    year, month = parse_period(period)
    last_day = calendar.monthrange(year, month)[1]
    return MonthWindow(start=date(year, month, 1), end=date(year, month, last_day))


def days_inclusive(start: date, end: date) -> int:
    """Inclusive day count between two dates (0 if ``end`` precedes ``start``)."""
    return max(0, (end - start).days + 1)


def is_leap_year(year: int) -> bool:
    return calendar.isleap(year)


def year_length(year: int) -> int:
    return 366 if is_leap_year(year) else 365


def intersect_days(
    window: MonthWindow,
    employment_start: date,
    employment_end: date | None,
) -> int:
    """Days of ``window`` covered by the employment window ``[start, end ?? inf]``."""
    active_start = max(employment_start, window.start)
    active_end = window.end if employment_end is None else min(employment_end, window.end)
    if active_start > active_end:
        return 0
    return days_inclusive(active_start, active_end)


def falls_in_period(value: date | None, period: str) -> bool:
    """True if ``value`` lies within the calendar month ``period``."""
    if value is None:
        return False
    year, month = parse_period(period)
    return value.year == year and value.month == month


def parse_iso_date(value: date | str | None, field: str) -> date | None:
    """Accept a ``date`` or an ISO ``YYYY-MM-DD`` string.

    Raises:
        ValidationError: If the string is not a valid ISO date.
    """
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid {field} {value!r}: expected YYYY-MM-DD", field=field)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment.isoformat(timespec="milliseconds") + "Z"
