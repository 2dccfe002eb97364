"""
Tests for StreakService.

Tests cover:
1. Current streak walking back from today or yesterday
2. Gaps, incomplete entries and future dates
3. Longest streak monotonicity
"""
from datetime import date, timedelta

from progress_engine.services.streak_service import StreakService
from progress_engine.tests.factories import make_entry


class TestCurrentStreak:
    """Tests for calculate_current_streak"""

    def test_three_consecutive_days_ending_today(self, today):
        dates = [date(2024, 1, 10), date(2024, 1, 9), date(2024, 1, 8)]
        assert StreakService.calculate_current_streak(dates, today) == 3

    def test_gap_after_today_breaks_streak(self, today):
        dates = [date(2024, 1, 10), date(2024, 1, 8)]
        assert StreakService.calculate_current_streak(dates, today) == 1

    def test_streak_survives_until_today_is_logged(self, today):
        """An unbroken run ending yesterday still counts"""
        dates = [date(2024, 1, 9), date(2024, 1, 8), date(2024, 1, 7)]
        assert StreakService.calculate_current_streak(dates, today) == 3

    def test_latest_entry_two_days_ago_is_no_streak(self, today):
        dates = [date(2024, 1, 8), date(2024, 1, 7)]
        assert StreakService.calculate_current_streak(dates, today) == 0

    def test_empty_history(self, today):
        assert StreakService.calculate_current_streak([], today) == 0

    def test_future_dates_are_ignored(self, today):
        dates = [date(2024, 1, 12), date(2024, 1, 10), date(2024, 1, 9)]
        assert StreakService.calculate_current_streak(dates, today) == 2

    def test_duplicate_dates_count_once(self, today):
        dates = ["2024-01-10", date(2024, 1, 10), date(2024, 1, 9)]
        assert StreakService.calculate_current_streak(dates, today) == 2

    def test_only_completed_entries_count(self, today):
        entries = [
            make_entry(date(2024, 1, 10)),
            make_entry(date(2024, 1, 9), is_completed=False),
            make_entry(date(2024, 1, 8)),
        ]
        assert StreakService.completed_dates(entries) == [date(2024, 1, 10), date(2024, 1, 8)]
        assert StreakService.recompute(entries, today).current_streak == 1


class TestLongestStreak:
    """Longest streak never decreases from a recompute"""

    def test_longest_takes_max_of_current_and_previous(self, today):
        entries = [make_entry(today - timedelta(days=i)) for i in range(4)]
        assert StreakService.recompute(entries, today, previous_longest=2).longest_streak == 4
        assert StreakService.recompute(entries, today, previous_longest=9).longest_streak == 9

    def test_longest_survives_deleted_history(self, today):
        result = StreakService.recompute([], today, previous_longest=12)
        assert result.current_streak == 0
        assert result.longest_streak == 12

    def test_monotonic_over_many_histories(self, today):
        for previous in (0, 1, 5, 30):
            for length in range(0, 8):
                for gap in (0, 1, 2):
                    entries = [make_entry(today - timedelta(days=gap + i)) for i in range(length)]
                    result = StreakService.recompute(entries, today, previous_longest=previous)
                    assert result.longest_streak >= previous
                    assert result.longest_streak >= result.current_streak
