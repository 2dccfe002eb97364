"""
Period resolution service.
Computes week/month boundaries for periodic tasks and their due status.

Weeks run Monday to Sunday, months from the 1st to the last day. A period's
key is the ISO date of its first day and is what completions are stored under.
"""
import calendar
import math
from datetime import datetime, date, timedelta, tzinfo
from typing import Optional

from progress_engine.constants import (
    TaskFrequency, PeriodStatus, DUE_SOON_DAYS, WEEK_START_WEEKDAY
)
from progress_engine.schemas import Period, PeriodDueStatus
from progress_engine.services.date_service import DateService


class PeriodService:
    """Service for weekly/monthly period calculations"""

    @staticmethod
    def current_week(day: date) -> Period:
        """
        Get the week (Monday to Sunday) containing a date.

        Args:
            day: Any date in the week

        Returns:
            Week period
        """
        day = DateService.parse_local_date(day)
        offset = (day.weekday() - WEEK_START_WEEKDAY) % 7
        start = day - timedelta(days=offset)
        end = start + timedelta(days=6)
        return Period(
            start=start,
            end=end,
            label=f"Week of {start.strftime('%b')} {start.day}",
            key=DateService.to_date_string(start),
        )

    @staticmethod
    def current_month(day: date) -> Period:
        """
        Get the calendar month containing a date.

        Args:
            day: Any date in the month

        Returns:
            Month period
        """
        day = DateService.parse_local_date(day)
        start = day.replace(day=1)
        last_day = calendar.monthrange(day.year, day.month)[1]
        end = day.replace(day=last_day)
        return Period(
            start=start,
            end=end,
            label=start.strftime("%B %Y"),
            key=DateService.to_date_string(start),
        )

    @staticmethod
    def period_for(frequency: TaskFrequency, day: date) -> Period:
        """
        Get the period for a periodic task frequency.

        Raises:
            ValueError: If the frequency has no period (daily, onetime)
        """
        frequency = TaskFrequency(frequency)
        if frequency == TaskFrequency.WEEKLY:
            return PeriodService.current_week(day)
        if frequency == TaskFrequency.MONTHLY:
            return PeriodService.current_month(day)
        raise ValueError(f"Frequency {frequency.value!r} has no period")

    @staticmethod
    def period_end_key(period: Period) -> str:
        """Format period end date for storage"""
        return DateService.to_date_string(period.end)

    @staticmethod
    def is_date_in_period(day: date, period: Period) -> bool:
        day = DateService.parse_local_date(day)
        return period.start <= day <= period.end

    @staticmethod
    def is_period_ended(period: Period, now: datetime, tz: Optional[tzinfo] = None) -> bool:
        """True once 'now' is past the last instant of the period's final day"""
        local_now = DateService.to_local_datetime(now, tz)
        return local_now > DateService.end_of_day(period.end)

    @staticmethod
    def is_due_today(period: Period, now: datetime, tz: Optional[tzinfo] = None) -> bool:
        """True when today is the last day of the period"""
        return DateService.today(now, tz) == period.end

    @staticmethod
    def days_remaining(period: Period, now: datetime, tz: Optional[tzinfo] = None) -> int:
        """
        Days left until the period closes, rounded up and never negative.

        daysRemaining = ceil((end_of_day(end) - now) / 1 day)
        """
        local_now = DateService.to_local_datetime(now, tz)
        remaining = DateService.end_of_day(period.end) - local_now
        if remaining.total_seconds() <= 0:
            return 0
        return max(0, math.ceil(remaining / timedelta(days=1)))

    @staticmethod
    def due_status(period: Period, now: datetime, tz: Optional[tzinfo] = None) -> PeriodDueStatus:
        """
        Get a human-readable due status for a period.

        Returns:
            PeriodDueStatus with status, days remaining and display text
        """
        days_left = PeriodService.days_remaining(period, now, tz)

        if PeriodService.is_period_ended(period, now, tz):
            return PeriodDueStatus(status=PeriodStatus.ENDED, days_remaining=0, text="Period ended")

        if PeriodService.is_due_today(period, now, tz):
            return PeriodDueStatus(status=PeriodStatus.DUE_TODAY, days_remaining=days_left, text="Due today")

        if days_left <= DUE_SOON_DAYS:
            today = DateService.today(now, tz)
            if period.end == today + timedelta(days=1):
                text = "Due tomorrow"
            else:
                text = f"{days_left} days left"
            return PeriodDueStatus(status=PeriodStatus.DUE_SOON, days_remaining=days_left, text=text)

        if period.end.weekday() == 6:
            text = "Due Sunday"
        else:
            text = f"Due {period.end.strftime('%b')} {period.end.day}"
        return PeriodDueStatus(status=PeriodStatus.UPCOMING, days_remaining=days_left, text=text)
