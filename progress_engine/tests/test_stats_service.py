"""
Tests for StatsService.

Tests cover:
1. Zero-history stats
2. Completion rate and perfect days
3. Early and late submission counts
"""
from datetime import date, datetime

from progress_engine.constants import PARTICIPANT_STATUS_COMPLETED
from progress_engine.schemas import OnetimeCompletionRecord, ParticipantRecord
from progress_engine.services.stats_service import StatsService
from progress_engine.tests.factories import make_challenge, make_entry, make_task


class TestAggregate:
    """Tests for aggregate"""

    def setup_method(self):
        self.service = StatsService()
        self.tasks = [
            make_task("workout", type="boolean", points=5),
            make_task("pages", type="number", threshold=20, points=5),
        ]
        self.challenge = make_challenge(self.tasks)

    def test_no_entries_gives_zero_record(self, now):
        stats = self.service.aggregate(ParticipantRecord(id=1), [], self.challenge, now)
        assert stats.current_streak == 0
        assert stats.entries_count == 0
        assert stats.completion_rate == 0
        assert stats.total_points == 0
        assert stats.perfect_days == 0
        assert stats.challenge_complete is False

    def test_no_entries_keeps_points_and_stored_longest(self, now):
        participant = ParticipantRecord(id=1, longest_streak=6, status=PARTICIPANT_STATUS_COMPLETED)
        onetime = [OnetimeCompletionRecord(task_id="signup", points_earned=20)]
        stats = self.service.aggregate(participant, [], self.challenge, now, onetime_completions=onetime)
        assert stats.longest_streak == 6
        assert stats.total_points == 20
        assert stats.challenge_complete is True

    def test_full_history(self, now):
        entries = [
            make_entry(date(2024, 1, 10), metric_data={"workout": True, "pages": 25},
                       points_earned=10, submitted_at=datetime(2024, 1, 10, 7, 30)),
            make_entry(date(2024, 1, 9), metric_data={"workout": True, "pages": 5},
                       points_earned=5, submitted_at=datetime(2024, 1, 9, 22, 0)),
            make_entry(date(2024, 1, 8), metric_data={"workout": True, "pages": 20},
                       points_earned=10, submitted_at=datetime(2024, 1, 8, 12, 0)),
            make_entry(date(2024, 1, 6), is_completed=False, metric_data={},
                       submitted_at=datetime(2024, 1, 6, 21, 0)),
        ]
        stats = self.service.aggregate(ParticipantRecord(id=1), entries, self.challenge, now)

        assert stats.current_streak == 3
        assert stats.longest_streak == 3
        assert stats.total_points == 25
        assert stats.entries_count == 4
        assert stats.perfect_days == 2
        # 3 completed days out of 10 elapsed
        assert stats.completion_rate == 30
        assert stats.early_entries == 1
        assert stats.late_entries == 2


class TestCompletionRate:
    """Tests for completion_rate"""

    def test_counts_days_up_to_today(self, today):
        challenge = make_challenge(starts_at=date(2024, 1, 1), ends_at=date(2024, 1, 31))
        entries = [make_entry(date(2024, 1, d)) for d in range(1, 6)]
        assert StatsService.completion_rate(entries, challenge, today) == 50

    def test_ended_challenge_uses_end_date(self):
        challenge = make_challenge(starts_at=date(2024, 1, 1), ends_at=date(2024, 1, 4))
        entries = [make_entry(date(2024, 1, d)) for d in range(1, 4)]
        # 3 of 4 days
        assert StatsService.completion_rate(entries, challenge, date(2024, 3, 1)) == 75

    def test_manual_end_wins(self):
        challenge = make_challenge(starts_at=date(2024, 1, 1), ends_at=None, ended_at="2024-01-02T18:00:00")
        entries = [make_entry(date(2024, 1, 1))]
        assert StatsService.completion_rate(entries, challenge, date(2024, 2, 1)) == 50

    def test_clamped_to_100(self):
        challenge = make_challenge(starts_at=date(2024, 1, 10))
        entries = [make_entry(date(2024, 1, 9)), make_entry(date(2024, 1, 10))]
        assert StatsService.completion_rate(entries, challenge, date(2024, 1, 10)) == 100

    def test_challenge_starting_in_future_has_one_day_minimum(self):
        challenge = make_challenge(starts_at=date(2024, 2, 1))
        assert StatsService.completion_rate([], challenge, date(2024, 1, 10)) == 0
