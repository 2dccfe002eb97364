"""
Tests for DeadlineService.
"""
import pytest
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from progress_engine.constants import DeadlinePreset, DeadlineStatus
from progress_engine.services.date_service import DateService
from progress_engine.services.deadline_service import DeadlineService
from progress_engine.tests.factories import make_task


class TestCalculateDeadline:
    """Tests for calculate_deadline presets"""

    @pytest.mark.parametrize("preset,expected", [
        (DeadlinePreset.TODAY, date(2024, 1, 10)),
        (DeadlinePreset.END_OF_WEEK, date(2024, 1, 14)),
        (DeadlinePreset.ONE_WEEK, date(2024, 1, 17)),
        (DeadlinePreset.END_OF_MONTH, date(2024, 1, 31)),
        (DeadlinePreset.ONE_MONTH, date(2024, 2, 10)),
    ])
    def test_presets_end_at_end_of_day(self, now, preset, expected):
        assert DeadlineService.calculate_deadline(preset, now) == DateService.end_of_day(expected)

    def test_one_month_clamps_short_months(self):
        deadline = DeadlineService.calculate_deadline("one_month", datetime(2024, 1, 31, 9, 0))
        assert deadline.date() == date(2024, 2, 29)

    def test_none_and_custom_have_no_computed_deadline(self, now):
        assert DeadlineService.calculate_deadline(DeadlinePreset.NONE, now) is None
        assert DeadlineService.calculate_deadline(DeadlinePreset.CUSTOM, now) is None


class TestDeadlineStatus:
    """Tests for deadline_status and deadline_text"""

    @pytest.mark.parametrize("deadline_day,status,text", [
        (date(2024, 1, 9), DeadlineStatus.OVERDUE, "Overdue by 1 day"),
        (date(2024, 1, 7), DeadlineStatus.OVERDUE, "Overdue by 3 days"),
        (date(2024, 1, 10), DeadlineStatus.DUE_TODAY, "Due today"),
        (date(2024, 1, 11), DeadlineStatus.DUE_SOON, "Due tomorrow"),
        (date(2024, 1, 12), DeadlineStatus.DUE_SOON, "Due in 2 days"),
        (date(2024, 1, 15), DeadlineStatus.UPCOMING, "Due in 5 days"),
        (date(2024, 1, 25), DeadlineStatus.UPCOMING, "Due Jan 25"),
    ])
    def test_status_and_text(self, now, deadline_day, status, text):
        deadline = DateService.end_of_day(deadline_day)
        assert DeadlineService.deadline_status(deadline, now) == status
        assert DeadlineService.deadline_text(deadline, now) == text

    def test_passed_deadline_today_is_still_due_today(self, now):
        deadline = datetime(2024, 1, 10, 8, 0)
        assert DeadlineService.deadline_status(deadline, now) == DeadlineStatus.DUE_TODAY

    def test_no_deadline(self, now):
        info = DeadlineService.describe(None, now)
        assert info.status == DeadlineStatus.NO_DEADLINE
        assert info.text == ""


class TestDeadlineOrdering:
    """Tests for sort_by_deadline and clamping"""

    def test_overdue_first_then_by_date_then_none(self, now):
        tasks = [
            make_task("none", frequency="onetime"),
            make_task("later", frequency="onetime", deadline="2024-01-20"),
            make_task("overdue", frequency="onetime", deadline="2024-01-05"),
            make_task("soon", frequency="onetime", deadline="2024-01-11"),
        ]
        ordered = DeadlineService.sort_by_deadline(tasks, now)
        assert [t.id for t in ordered] == ["overdue", "soon", "later", "none"]

    def test_date_only_deadline_means_end_of_day(self):
        task = make_task("form", frequency="onetime", deadline="2024-01-20")
        assert task.deadline == DateService.end_of_day(date(2024, 1, 20))

    def test_clamp_to_challenge_end(self):
        deadline = DateService.end_of_day(date(2024, 2, 15))
        clamped = DeadlineService.clamp_deadline_to_challenge(deadline, date(2024, 1, 31))
        assert clamped == DateService.end_of_day(date(2024, 1, 31))

        inside = DateService.end_of_day(date(2024, 1, 20))
        assert DeadlineService.clamp_deadline_to_challenge(inside, date(2024, 1, 31)) == inside
        assert DeadlineService.clamp_deadline_to_challenge(deadline, None) == deadline

    def test_clamp_converts_aware_deadline_with_timezone(self):
        tz = ZoneInfo("America/Los_Angeles")
        # 2024-02-01 05:00 UTC is still January 31st in Los Angeles
        deadline = datetime(2024, 2, 1, 5, 0, tzinfo=timezone.utc)

        assert DeadlineService.clamp_deadline_to_challenge(deadline, date(2024, 1, 31), tz) == deadline
        assert DeadlineService.clamp_deadline_to_challenge(
            deadline, date(2024, 1, 31), ZoneInfo("UTC")
        ) == DateService.end_of_day(date(2024, 1, 31))
