"""
Calendar day-status service.
Classifies each calendar day of a participant's challenge into one display
state, combining the daily entry with weekly and monthly completions.
"""
from datetime import datetime, date, timedelta, tzinfo
from typing import Dict, Iterable, List, Optional

from progress_engine.constants import DayStatus, TaskFrequency
from progress_engine.schemas import (
    DailyEntryRecord, PeriodicCompletionRecord, TaskDefinition
)
from progress_engine.services.date_service import DateService
from progress_engine.services.period_service import PeriodService
from progress_engine.services.task_service import TaskService


class CalendarService:
    """Service for calendar day statuses"""

    @staticmethod
    def is_period_done(
        day: date,
        frequency: TaskFrequency,
        tasks: List[TaskDefinition],
        completions: Iterable[PeriodicCompletionRecord]
    ) -> bool:
        """
        Check if every task of a frequency is completed for the period containing `day`.

        Vacuously True when there are no tasks of that frequency. Completions
        for other periods simply don't match the key and are ignored.
        """
        if not tasks:
            return True

        period_key = PeriodService.period_for(frequency, day).key
        completed = {
            c.task_id for c in completions
            if c.frequency == frequency and c.period_start == period_key
        }
        return all(task.id in completed for task in tasks)

    @staticmethod
    def is_late_submission(entry: Optional[DailyEntryRecord], tz: Optional[tzinfo] = None) -> bool:
        """
        True when a completed entry was submitted on a later calendar day.

        Compares local calendar dates only: a save at 01:00 the next day is late.
        """
        if not entry or not entry.is_completed or not entry.submitted_at:
            return False
        return DateService.local_date_of(entry.submitted_at, tz) > entry.entry_date

    @staticmethod
    def get_day_status(
        day: date,
        challenge_start: date,
        challenge_end: Optional[date],
        daily_entry: Optional[DailyEntryRecord],
        periodic_completions: Iterable[PeriodicCompletionRecord],
        tasks: Iterable[TaskDefinition],
        now: datetime,
        tz: Optional[tzinfo] = None
    ) -> DayStatus:
        """
        Calculate the status for a calendar day.

        Args:
            day: Calendar day to classify
            challenge_start: First day of the challenge
            challenge_end: Last day of the challenge (None for ongoing)
            daily_entry: The participant's entry for `day`, if any
            periodic_completions: All of the participant's weekly/monthly completions
            tasks: Challenge task list
            now: Current time
            tz: Timezone for local dates (None = configured/system)

        Returns:
            Exactly one DayStatus
        """
        day = DateService.parse_local_date(day)
        challenge_start = DateService.parse_local_date(challenge_start)
        challenge_end = DateService.parse_local_date(challenge_end) if challenge_end else None
        today = DateService.today(now, tz)
        periodic_completions = list(periodic_completions)
        tasks = list(tasks)

        # Can't go beyond today or the challenge end
        max_date = challenge_end if challenge_end and challenge_end < today else today
        if day < challenge_start or day > max_date:
            return DayStatus.OUTSIDE

        daily_tasks = TaskService.tasks_with_frequency(tasks, TaskFrequency.DAILY)
        weekly_tasks = TaskService.tasks_with_frequency(tasks, TaskFrequency.WEEKLY)
        monthly_tasks = TaskService.tasks_with_frequency(tasks, TaskFrequency.MONTHLY)

        has_daily_tasks = len(daily_tasks) > 0
        has_weekly_tasks = len(weekly_tasks) > 0
        has_monthly_tasks = len(monthly_tasks) > 0

        weekly_done = CalendarService.is_period_done(
            day, TaskFrequency.WEEKLY, weekly_tasks, periodic_completions
        )
        monthly_done = CalendarService.is_period_done(
            day, TaskFrequency.MONTHLY, monthly_tasks, periodic_completions
        )

        # CASE 1: Challenge has daily tasks
        if has_daily_tasks:
            if daily_entry and daily_entry.is_completed:
                if CalendarService.is_late_submission(daily_entry, tz):
                    return DayStatus.LATE
                if weekly_done and monthly_done:
                    return DayStatus.ALL_COMPLETE
                return DayStatus.COMPLETED

            if daily_entry:
                return DayStatus.PARTIAL

            if day == today:
                return DayStatus.TODAY

            if day < today:
                return DayStatus.MISSED

            return DayStatus.OUTSIDE

        # CASE 2: No daily tasks - use period task status
        has_period_tasks = has_weekly_tasks or has_monthly_tasks

        if has_period_tasks and weekly_done and monthly_done:
            return DayStatus.ALL_COMPLETE

        if (has_weekly_tasks and weekly_done) or (has_monthly_tasks and monthly_done):
            return DayStatus.COMPLETED

        weekly_missed = (
            has_weekly_tasks
            and not weekly_done
            and PeriodService.is_period_ended(PeriodService.current_week(day), now, tz)
        )
        monthly_missed = (
            has_monthly_tasks
            and not monthly_done
            and PeriodService.is_period_ended(PeriodService.current_month(day), now, tz)
        )
        if weekly_missed or monthly_missed:
            return DayStatus.MISSED

        if has_period_tasks:
            return DayStatus.PERIOD_PENDING

        # No tasks at all
        return DayStatus.OUTSIDE

    @staticmethod
    def build_calendar(
        start: date,
        end: date,
        challenge_start: date,
        challenge_end: Optional[date],
        entries: Iterable[DailyEntryRecord],
        periodic_completions: Iterable[PeriodicCompletionRecord],
        tasks: Iterable[TaskDefinition],
        now: datetime,
        tz: Optional[tzinfo] = None
    ) -> Dict[date, DayStatus]:
        """
        Get the status of every day from `start` to `end` inclusive.

        Returns:
            Mapping of date -> DayStatus in calendar order
        """
        start = DateService.parse_local_date(start)
        end = DateService.parse_local_date(end)
        entries_by_date = {entry.entry_date: entry for entry in entries}
        periodic_completions = list(periodic_completions)
        tasks = list(tasks)

        statuses = {}
        day = start
        while day <= end:
            statuses[day] = CalendarService.get_day_status(
                day,
                challenge_start,
                challenge_end,
                entries_by_date.get(day),
                periodic_completions,
                tasks,
                now,
                tz
            )
            day += timedelta(days=1)
        return statuses
