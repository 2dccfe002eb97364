"""
Date calculation and manipulation service.
Handles local calendar dates, end-of-day boundaries and timestamp conversion.

Calendar dates (entry dates, period keys, challenge bounds) are wall-clock
dates: "2024-03-01" is March 1st wherever the code runs, never a UTC instant.
"""
from datetime import datetime, date, time, tzinfo
from typing import Optional, Union

from progress_engine.config import get_local_timezone


class DateService:
    """Service for date-related operations"""

    @staticmethod
    def parse_local_date(value: Union[str, date, datetime]) -> date:
        """
        Parse a calendar date as a local wall-clock date.

        Accepts "YYYY-MM-DD", the date part of an ISO timestamp
        ("2024-03-01T23:30:00Z" -> 2024-03-01), a date or a datetime.

        Args:
            value: Date string, date or datetime

        Returns:
            Calendar date

        Raises:
            ValueError: If the string is not a valid date
        """
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value

        date_part = str(value).strip().split("T")[0].split(" ")[0]
        parts = date_part.split("-")
        if len(parts) != 3:
            raise ValueError(f"Invalid date: {value!r}. Expected YYYY-MM-DD")
        year, month, day = (int(p) for p in parts)
        return date(year, month, day)

    @staticmethod
    def parse_timestamp(value: Union[str, datetime]) -> datetime:
        """Parse an ISO timestamp, accepting a trailing Z for UTC"""
        if isinstance(value, datetime):
            return value
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text)

    @staticmethod
    def to_date_string(target_date: date) -> str:
        """Format a date as YYYY-MM-DD"""
        return target_date.strftime("%Y-%m-%d")

    @staticmethod
    def to_local_datetime(dt: datetime, tz: Optional[tzinfo] = None) -> datetime:
        """
        Convert a timestamp to naive local wall-clock time.

        Naive datetimes are already wall-clock times and are returned as-is.
        Aware datetimes are converted to `tz`, the configured timezone, or the
        system local timezone, in that order.
        """
        if dt.tzinfo is None:
            return dt
        zone = tz if tz is not None else get_local_timezone()
        return dt.astimezone(zone).replace(tzinfo=None)

    @staticmethod
    def local_date_of(dt: datetime, tz: Optional[tzinfo] = None) -> date:
        """Get the local calendar date of a timestamp"""
        return DateService.to_local_datetime(dt, tz).date()

    @staticmethod
    def today(now: datetime, tz: Optional[tzinfo] = None) -> date:
        """Get the local calendar date for the injected 'now'"""
        return DateService.local_date_of(now, tz)

    @staticmethod
    def end_of_day(target_date: date) -> datetime:
        """Last representable instant of a calendar day (23:59:59.999999)"""
        return datetime.combine(target_date, time.max)

    @staticmethod
    def days_between(earlier: date, later: date) -> int:
        """Whole calendar days from `earlier` to `later` (negative if reversed)"""
        return (later - earlier).days
