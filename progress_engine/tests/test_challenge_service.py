"""
Tests for ChallengeService.
"""
from datetime import date

from progress_engine.constants import ChallengeState
from progress_engine.services.challenge_service import ChallengeService
from progress_engine.tests.factories import make_challenge


class TestChallengeState:
    """Tests for get_challenge_state"""

    def setup_method(self):
        self.challenge = make_challenge(starts_at=date(2024, 1, 1), ends_at=date(2024, 1, 31), grace_period_days=7)

    def test_upcoming(self):
        result = ChallengeService.get_challenge_state(self.challenge, date(2023, 12, 31))
        assert result.state == ChallengeState.UPCOMING
        assert result.is_entry_allowed is False

    def test_active_including_last_day(self):
        for today in (date(2024, 1, 1), date(2024, 1, 31)):
            result = ChallengeService.get_challenge_state(self.challenge, today)
            assert result.state == ChallengeState.ACTIVE
            assert result.is_entry_allowed is True
            assert result.grace_period_ends_at == date(2024, 2, 7)

    def test_grace_period(self):
        result = ChallengeService.get_challenge_state(self.challenge, date(2024, 2, 3))
        assert result.state == ChallengeState.GRACE_PERIOD
        assert result.is_entry_allowed is True
        assert result.days_in_grace_period == 3
        assert result.days_remaining_in_grace == 4

    def test_archived_after_grace(self):
        result = ChallengeService.get_challenge_state(self.challenge, date(2024, 2, 8))
        assert result.state == ChallengeState.ARCHIVED
        assert ChallengeService.is_history_challenge(self.challenge, date(2024, 2, 8))

    def test_no_grace_period_archives_next_day(self):
        challenge = make_challenge(ends_at=date(2024, 1, 31), grace_period_days=0)
        result = ChallengeService.get_challenge_state(challenge, date(2024, 2, 1))
        assert result.state == ChallengeState.ARCHIVED
        active = ChallengeService.get_challenge_state(challenge, date(2024, 1, 31))
        assert active.grace_period_ends_at is None

    def test_ongoing_without_end(self):
        challenge = make_challenge(ends_at=None)
        result = ChallengeService.get_challenge_state(challenge, date(2025, 6, 1))
        assert result.state == ChallengeState.ONGOING
        assert result.is_entry_allowed is True
        assert ChallengeService.is_active_challenge(challenge, date(2025, 6, 1))

    def test_ongoing_before_start_refuses_entries(self):
        challenge = make_challenge(ends_at=None, starts_at=date(2024, 2, 1))
        assert ChallengeService.get_challenge_state(challenge, date(2024, 1, 10)).is_entry_allowed is False

    def test_manually_ended_ongoing_gets_grace(self):
        challenge = make_challenge(ends_at=None, ended_at="2024-03-01T10:00:00", grace_period_days=2)
        assert ChallengeService.get_challenge_state(challenge, date(2024, 3, 2)).state == ChallengeState.GRACE_PERIOD
        assert ChallengeService.get_challenge_state(challenge, date(2024, 3, 4)).state == ChallengeState.ARCHIVED
