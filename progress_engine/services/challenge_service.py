"""
Challenge state service.
Determines whether a challenge is upcoming, active, in its grace period,
archived or ongoing, and whether entries are accepted.
"""
from datetime import date, timedelta
from typing import Optional

from progress_engine.constants import ChallengeState
from progress_engine.schemas import ChallengeConfig, ChallengeStateResult
from progress_engine.services.date_service import DateService


class ChallengeService:
    """Service for challenge lifecycle state"""

    @staticmethod
    def effective_end_date(challenge: ChallengeConfig) -> Optional[date]:
        """ended_at (manual end) wins over the scheduled ends_at"""
        if challenge.ended_at:
            return DateService.parse_local_date(challenge.ended_at)
        return challenge.ends_at

    @staticmethod
    def get_challenge_state(challenge: ChallengeConfig, today: date) -> ChallengeStateResult:
        """
        Determine the current state of a challenge.

        Args:
            challenge: Challenge with date fields
            today: Local calendar date to check against

        Returns:
            ChallengeStateResult with state and entry allowance
        """
        today = DateService.parse_local_date(today)
        start_date = challenge.starts_at
        end_date = ChallengeService.effective_end_date(challenge)

        # Ongoing challenges (no end date and not manually ended)
        if end_date is None:
            return ChallengeStateResult(
                state=ChallengeState.ONGOING,
                is_entry_allowed=today >= start_date
            )

        grace_period_days = challenge.grace_period_days
        grace_period_end = end_date + timedelta(days=grace_period_days)

        if today < start_date:
            return ChallengeStateResult(state=ChallengeState.UPCOMING, is_entry_allowed=False)

        # Within normal active period (including the last day)
        if today <= end_date:
            return ChallengeStateResult(
                state=ChallengeState.ACTIVE,
                is_entry_allowed=True,
                grace_period_ends_at=grace_period_end if grace_period_days > 0 else None
            )

        if grace_period_days > 0 and today <= grace_period_end:
            return ChallengeStateResult(
                state=ChallengeState.GRACE_PERIOD,
                is_entry_allowed=True,
                days_in_grace_period=DateService.days_between(end_date, today),
                grace_period_ends_at=grace_period_end,
                days_remaining_in_grace=DateService.days_between(today, grace_period_end)
            )

        return ChallengeStateResult(state=ChallengeState.ARCHIVED, is_entry_allowed=False)

    @staticmethod
    def is_active_challenge(challenge: ChallengeConfig, today: date) -> bool:
        """Active, in grace period, or ongoing"""
        state = ChallengeService.get_challenge_state(challenge, today).state
        return state in (ChallengeState.ACTIVE, ChallengeState.GRACE_PERIOD, ChallengeState.ONGOING)

    @staticmethod
    def is_history_challenge(challenge: ChallengeConfig, today: date) -> bool:
        """Archived only (past grace period)"""
        return ChallengeService.get_challenge_state(challenge, today).state == ChallengeState.ARCHIVED
