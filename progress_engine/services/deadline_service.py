"""
Deadline service for one-time tasks.
Resolves deadline presets, classifies deadlines and orders tasks by urgency.
"""
import calendar
from datetime import datetime, date, timedelta, tzinfo
from typing import List, Optional, Sequence, TypeVar

from progress_engine.constants import (
    DeadlinePreset, DeadlineStatus, DUE_SOON_DAYS, UPCOMING_DETAIL_DAYS
)
from progress_engine.schemas import DeadlineInfo
from progress_engine.services.date_service import DateService
from progress_engine.services.period_service import PeriodService

T = TypeVar("T")


def _add_months(day: date, months: int) -> date:
    """Add calendar months, clamping to the last day of the target month"""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


class DeadlineService:
    """Service for one-time task deadlines"""

    @staticmethod
    def calculate_deadline(preset: DeadlinePreset, reference: datetime) -> Optional[datetime]:
        """
        Calculate a deadline from a preset option.

        Args:
            preset: Deadline preset
            reference: Time the task is created

        Returns:
            End-of-day deadline, or None for 'none' and 'custom'
        """
        preset = DeadlinePreset(preset)
        ref_date = reference.date()

        if preset == DeadlinePreset.TODAY:
            return DateService.end_of_day(ref_date)
        if preset == DeadlinePreset.END_OF_WEEK:
            return DateService.end_of_day(PeriodService.current_week(ref_date).end)
        if preset == DeadlinePreset.ONE_WEEK:
            return DateService.end_of_day(ref_date + timedelta(weeks=1))
        if preset == DeadlinePreset.END_OF_MONTH:
            return DateService.end_of_day(PeriodService.current_month(ref_date).end)
        if preset == DeadlinePreset.ONE_MONTH:
            return DateService.end_of_day(_add_months(ref_date, 1))
        # none, custom (picked separately)
        return None

    @staticmethod
    def deadline_status(
        deadline: Optional[datetime],
        now: datetime,
        tz: Optional[tzinfo] = None
    ) -> DeadlineStatus:
        """Classify a deadline relative to now"""
        if deadline is None:
            return DeadlineStatus.NO_DEADLINE

        local_deadline = DateService.to_local_datetime(deadline, tz)
        local_now = DateService.to_local_datetime(now, tz)

        if local_deadline.date() == local_now.date():
            return DeadlineStatus.DUE_TODAY

        if local_deadline < local_now:
            return DeadlineStatus.OVERDUE

        days_until = (local_deadline - local_now).days
        if days_until <= DUE_SOON_DAYS:
            return DeadlineStatus.DUE_SOON

        return DeadlineStatus.UPCOMING

    @staticmethod
    def deadline_text(
        deadline: Optional[datetime],
        now: datetime,
        tz: Optional[tzinfo] = None
    ) -> str:
        """Get a human-readable string describing the deadline"""
        if deadline is None:
            return ""

        local_deadline = DateService.to_local_datetime(deadline, tz)
        local_now = DateService.to_local_datetime(now, tz)
        status = DeadlineService.deadline_status(deadline, now, tz)

        if status == DeadlineStatus.OVERDUE:
            days_overdue = max(1, DateService.days_between(local_deadline.date(), local_now.date()))
            if days_overdue == 1:
                return "Overdue by 1 day"
            return f"Overdue by {days_overdue} days"

        if status == DeadlineStatus.DUE_TODAY:
            return "Due today"

        if status == DeadlineStatus.DUE_SOON:
            if local_deadline.date() == local_now.date() + timedelta(days=1):
                return "Due tomorrow"
            return f"Due in {(local_deadline - local_now).days} days"

        days_until = (local_deadline - local_now).days
        if days_until <= UPCOMING_DETAIL_DAYS:
            return f"Due in {days_until} days"
        return f"Due {local_deadline.strftime('%b')} {local_deadline.day}"

    @staticmethod
    def describe(deadline: Optional[datetime], now: datetime, tz: Optional[tzinfo] = None) -> DeadlineInfo:
        return DeadlineInfo(
            status=DeadlineService.deadline_status(deadline, now, tz),
            text=DeadlineService.deadline_text(deadline, now, tz)
        )

    @staticmethod
    def sort_by_deadline(tasks: Sequence[T], now: datetime, tz: Optional[tzinfo] = None) -> List[T]:
        """
        Sort tasks by deadline: overdue first, then by deadline, no deadline last.

        Works on anything with a `deadline` attribute.
        """
        def sort_key(task):
            deadline = getattr(task, "deadline", None)
            if deadline is None:
                return (2, datetime.max)
            overdue = DeadlineService.deadline_status(deadline, now, tz) == DeadlineStatus.OVERDUE
            return (0 if overdue else 1, DateService.to_local_datetime(deadline, tz))

        return sorted(tasks, key=sort_key)

    @staticmethod
    def clamp_deadline_to_challenge(
        deadline: datetime, challenge_end: Optional[date], tz: Optional[tzinfo] = None
    ) -> datetime:
        """Keep a deadline from running past the challenge's last day"""
        if challenge_end is None:
            return deadline
        latest = DateService.end_of_day(DateService.parse_local_date(challenge_end))
        return latest if DateService.to_local_datetime(deadline, tz) > latest else deadline
