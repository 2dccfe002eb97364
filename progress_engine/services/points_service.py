"""
Points totals service.
Re-sums a participant's points from every source and ranks participants.
"""
from typing import Iterable, List

from progress_engine.schemas import (
    DailyEntryRecord, OnetimeCompletionRecord, PeriodicCompletionRecord,
    ParticipantRecord, LeaderboardRow
)


class PointsService:
    """Service for points totals and leaderboards"""

    @staticmethod
    def daily_points(entries: Iterable[DailyEntryRecord]) -> int:
        return sum((entry.points_earned or 0) + (entry.bonus_points or 0) for entry in entries)

    @staticmethod
    def total_points(
        entries: Iterable[DailyEntryRecord],
        onetime_completions: Iterable[OnetimeCompletionRecord] = (),
        periodic_completions: Iterable[PeriodicCompletionRecord] = ()
    ) -> int:
        """
        Calculate a participant's total points from scratch.

        Total = daily (points_earned + bonus_points) + one-time points_earned
        + periodic points_earned. Always a full re-sum so edits, deletes and
        concurrent saves cannot compound.
        """
        onetime_points = sum(c.points_earned or 0 for c in onetime_completions)
        periodic_points = sum(c.points_earned or 0 for c in periodic_completions)
        return PointsService.daily_points(entries) + onetime_points + periodic_points

    @staticmethod
    def rank_participants(participants: Iterable[ParticipantRecord]) -> List[LeaderboardRow]:
        """
        Rank participants by total points, then current streak.

        Tied participants share a rank (1, 2, 2, 4).
        """
        ordered = sorted(
            participants,
            key=lambda p: (-(p.total_points or 0), -(p.current_streak or 0))
        )

        rows = []
        previous_key = None
        rank = 0
        for position, participant in enumerate(ordered, start=1):
            key = (participant.total_points or 0, participant.current_streak or 0)
            if key != previous_key:
                rank = position
                previous_key = key
            rows.append(LeaderboardRow(
                rank=rank,
                participant_id=participant.id,
                user_id=participant.user_id,
                total_points=participant.total_points or 0,
                current_streak=participant.current_streak or 0,
                longest_streak=participant.longest_streak or 0
            ))
        return rows
