"""
Tests for CalendarService.

Tests cover:
1. Days with daily tasks
2. Days in challenges with only periodic tasks
3. Late submissions
4. Every input yields exactly one status
"""
from datetime import date, datetime, timedelta

from progress_engine.constants import DayStatus
from progress_engine.services.calendar_service import CalendarService
from progress_engine.tests.factories import make_completion, make_entry, make_task

START = date(2024, 1, 1)
END = date(2024, 1, 31)


def status(day, entry=None, completions=(), tasks=(), now=datetime(2024, 1, 10, 12, 0), end=END):
    return CalendarService.get_day_status(day, START, end, entry, completions, tasks, now)


class TestDailyChallenge:
    """Challenges with daily tasks"""

    def setup_method(self):
        self.tasks = [make_task("workout"), make_task("long-run", frequency="weekly")]

    def test_outside_challenge_or_future(self):
        assert status(date(2023, 12, 31), tasks=self.tasks) == DayStatus.OUTSIDE
        assert status(date(2024, 1, 11), tasks=self.tasks) == DayStatus.OUTSIDE
        assert status(date(2024, 1, 10), tasks=self.tasks, end=date(2024, 1, 5)) == DayStatus.OUTSIDE

    def test_today_without_entry(self):
        assert status(date(2024, 1, 10), tasks=self.tasks) == DayStatus.TODAY

    def test_past_without_entry_is_missed(self):
        assert status(date(2024, 1, 9), tasks=self.tasks) == DayStatus.MISSED

    def test_saved_but_incomplete_is_partial(self):
        entry = make_entry(date(2024, 1, 9), is_completed=False)
        assert status(date(2024, 1, 9), entry=entry, tasks=self.tasks) == DayStatus.PARTIAL

    def test_completed_with_weekly_open(self):
        entry = make_entry(date(2024, 1, 9))
        assert status(date(2024, 1, 9), entry=entry, tasks=self.tasks) == DayStatus.COMPLETED

    def test_completed_with_weekly_done_is_all_complete(self):
        entry = make_entry(date(2024, 1, 9))
        completions = [make_completion("long-run", "weekly", "2024-01-08")]
        assert status(date(2024, 1, 9), entry, completions, self.tasks) == DayStatus.ALL_COMPLETE

    def test_completion_for_other_week_is_ignored(self):
        entry = make_entry(date(2024, 1, 9))
        completions = [make_completion("long-run", "weekly", "2023-06-05")]
        assert status(date(2024, 1, 9), entry, completions, self.tasks) == DayStatus.COMPLETED

    def test_late_submission(self):
        """Entry for March 1st saved at 01:00 on March 2nd"""
        tasks = [make_task("workout")]
        entry = make_entry(date(2024, 3, 1), submitted_at="2024-03-02T01:00:00")
        result = CalendarService.get_day_status(
            date(2024, 3, 1), date(2024, 2, 1), date(2024, 3, 31), entry, [], tasks,
            datetime(2024, 3, 5, 12, 0)
        )
        assert result == DayStatus.LATE

    def test_same_day_late_evening_is_not_late(self):
        entry = make_entry(date(2024, 1, 9), submitted_at=datetime(2024, 1, 9, 23, 59))
        assert not CalendarService.is_late_submission(entry)


class TestPeriodicOnlyChallenge:
    """Challenges without daily tasks"""

    def setup_method(self):
        self.tasks = [make_task("long-run", frequency="weekly"), make_task("swim", frequency="weekly")]

    def test_whole_week_all_complete(self):
        completions = [
            make_completion("long-run", "weekly", "2024-01-08"),
            make_completion("swim", "weekly", "2024-01-08"),
        ]
        now = datetime(2024, 1, 14, 20, 0)
        calendar = CalendarService.build_calendar(
            date(2024, 1, 8), date(2024, 1, 14), START, END, [], completions, self.tasks, now
        )
        assert list(calendar) == [date(2024, 1, 8) + timedelta(days=i) for i in range(7)]
        assert set(calendar.values()) == {DayStatus.ALL_COMPLETE}

    def test_partly_done_week_is_pending(self):
        completions = [make_completion("long-run", "weekly", "2024-01-08")]
        assert status(date(2024, 1, 9), completions=completions, tasks=self.tasks) == DayStatus.PERIOD_PENDING

    def test_ended_week_not_done_is_missed(self):
        assert status(date(2024, 1, 3), tasks=self.tasks) == DayStatus.MISSED

    def test_weekly_done_monthly_open_is_completed(self):
        tasks = [make_task("long-run", frequency="weekly"), make_task("review", frequency="monthly")]
        completions = [make_completion("long-run", "weekly", "2024-01-08")]
        assert status(date(2024, 1, 9), completions=completions, tasks=tasks) == DayStatus.COMPLETED

    def test_no_tasks_at_all(self):
        assert status(date(2024, 1, 9), tasks=[]) == DayStatus.OUTSIDE


class TestStatusCompleteness:
    """Every combination resolves to exactly one defined status"""

    def test_all_inputs_resolve(self):
        task_sets = [
            [],
            [make_task("d")],
            [make_task("w", frequency="weekly")],
            [make_task("m", frequency="monthly")],
            [make_task("d"), make_task("w", frequency="weekly"), make_task("m", frequency="monthly")],
        ]
        completion_sets = [
            [],
            [make_completion("w", "weekly", "2024-01-08"), make_completion("m", "monthly", "2024-01-01")],
            [make_completion("w", "weekly", "2030-01-07")],
        ]
        seen = set()
        for offset in range(-3, 40):
            day = START + timedelta(days=offset)
            for tasks in task_sets:
                for completions in completion_sets:
                    for entry in (None, make_entry(day), make_entry(day, is_completed=False),
                                  make_entry(day, submitted_at=datetime.combine(day, datetime.min.time()) + timedelta(days=2))):
                        result = status(day, entry, completions, tasks)
                        assert isinstance(result, DayStatus)
                        seen.add(result)
        assert seen == set(DayStatus)
