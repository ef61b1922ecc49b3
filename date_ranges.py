"""
Date range helpers for sales reports.

Every range is expressed in UTC and aligned to whole days: a day starts at
00:00:00.000 and ends at 23:59:59.999.
"""

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, NamedTuple, Optional

UTC = timezone.utc
DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')
END_OF_DAY = time(23, 59, 59, 999000)


class InvalidDateFormat(ValueError):
    """Date string is not a valid YYYY-MM-DD calendar date"""
    pass


class InvalidRange(ValueError):
    """Range bounds are out of order or otherwise unusable"""
    pass


def _iso(instant: datetime) -> str:
    return instant.astimezone(UTC).strftime('%Y-%m-%dT%H:%M:%S.') + f'{instant.microsecond // 1000:03d}Z'


class DateRange(NamedTuple):
    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end

    def start_iso(self) -> str:
        return _iso(self.start)

    def end_iso(self) -> str:
        return _iso(self.end)

    def label(self) -> Dict[str, str]:
        return {'from': self.start.date().isoformat(), 'to': self.end.date().isoformat()}


def _now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(UTC)
    if now.tzinfo is None:
        return now.replace(tzinfo=UTC)
    return now.astimezone(UTC)


def day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


def day_end(day: date) -> datetime:
    return datetime.combine(day, END_OF_DAY, tzinfo=UTC)


def day_range(day: date) -> DateRange:
    return DateRange(day_start(day), day_end(day))


def parse_date(date_string: str) -> date:
    """Parse YYYY-MM-DD, raising InvalidDateFormat on anything else."""
    if not isinstance(date_string, str) or not DATE_PATTERN.match(date_string):
        raise InvalidDateFormat(f"Invalid date format: {date_string!r}. Use YYYY-MM-DD")
    try:
        return datetime.strptime(date_string, '%Y-%m-%d').date()
    except ValueError:
        raise InvalidDateFormat(f"Invalid calendar date: {date_string!r}")


def parse_instant(value: str) -> datetime:
    """Parse an upstream ISO-8601 timestamp ('Z' or offset) into UTC."""
    parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _month_start(day: date, months_back: int = 0) -> date:
    month_index = day.year * 12 + (day.month - 1) - months_back
    return date(month_index // 12, month_index % 12 + 1, 1)


def today(now: Optional[datetime] = None) -> DateRange:
    return day_range(_now(now).date())


def yesterday(now: Optional[datetime] = None) -> DateRange:
    return day_range(_now(now).date() - timedelta(days=1))


def single_day(date_string: str) -> DateRange:
    return day_range(parse_date(date_string))


def past_months_range(months: int, now: Optional[datetime] = None) -> DateRange:
    """First day of the month `months` months back, through end of yesterday."""
    if isinstance(months, bool) or not isinstance(months, int) or months < 0:
        raise InvalidRange(f"Number of months must be a non-negative integer, got {months!r}")

    current = _now(now).date()
    last_day = current - timedelta(days=1)
    first_day = _month_start(current, months)
    if first_day > last_day:
        # first of the month with months=0: nothing elapsed yet this month
        first_day = _month_start(last_day)
    return DateRange(day_start(first_day), day_end(last_day))


def past_calendar_month_complete(now: Optional[datetime] = None) -> DateRange:
    """The whole previous calendar month."""
    this_month = _month_start(_now(now).date())
    last_day = this_month - timedelta(days=1)
    return DateRange(day_start(_month_start(last_day)), day_end(last_day))


def past_calendar_month_including_current(now: Optional[datetime] = None) -> DateRange:
    """Previous calendar month start through end of yesterday."""
    current = _now(now).date()
    first_day = _month_start(current, 1)
    return DateRange(day_start(first_day), day_end(current - timedelta(days=1)))


def explicit_range(start_date: str, end_date: str) -> DateRange:
    start = parse_date(start_date)
    end = parse_date(end_date)
    if start > end:
        raise InvalidRange(f"Start date {start_date} is after end date {end_date}")
    return DateRange(day_start(start), day_end(end))


def enumerate_days(date_range: DateRange) -> List[date]:
    """Every calendar date touched by the range, ascending."""
    first = date_range.start.astimezone(UTC).date()
    last = date_range.end.astimezone(UTC).date()
    if first > last:
        return []
    return [first + timedelta(days=offset) for offset in range((last - first).days + 1)]
