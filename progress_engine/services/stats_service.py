"""
Stats aggregation service.
Reduces a participant's full history into the flat stats record used for
achievement checks. Stats are recomputed on every check and never cached.
"""
from datetime import datetime, date, tzinfo
from typing import Iterable, List, Optional

from progress_engine.constants import (
    EARLY_ENTRY_HOUR, LATE_ENTRY_HOUR, PARTICIPANT_STATUS_COMPLETED
)
from progress_engine.schemas import (
    ChallengeConfig, DailyEntryRecord, OnetimeCompletionRecord,
    PeriodicCompletionRecord, ParticipantRecord, ParticipantStats
)
from progress_engine.services.date_service import DateService
from progress_engine.services.points_service import PointsService
from progress_engine.services.scoring_service import EntryScorer, round_half_up
from progress_engine.services.streak_service import StreakService
from progress_engine.services.task_service import TaskService


class StatsService:
    """Service for participant statistics"""

    def __init__(self, entry_scorer: Optional[EntryScorer] = None):
        self.entry_scorer = entry_scorer or EntryScorer()

    @staticmethod
    def count_early_entries(entries: Iterable[DailyEntryRecord], tz: Optional[tzinfo] = None) -> int:
        """Entries submitted before 09:00 local time"""
        return sum(
            1 for entry in entries
            if entry.submitted_at
            and DateService.to_local_datetime(entry.submitted_at, tz).hour < EARLY_ENTRY_HOUR
        )

    @staticmethod
    def count_late_entries(entries: Iterable[DailyEntryRecord], tz: Optional[tzinfo] = None) -> int:
        """Entries submitted at or after 21:00 local time"""
        return sum(
            1 for entry in entries
            if entry.submitted_at
            and DateService.to_local_datetime(entry.submitted_at, tz).hour >= LATE_ENTRY_HOUR
        )

    @staticmethod
    def effective_end_date(challenge: ChallengeConfig) -> Optional[date]:
        """Challenge end date, or the day an ongoing challenge was ended"""
        if challenge.ended_at:
            return DateService.parse_local_date(challenge.ended_at)
        return challenge.ends_at

    @staticmethod
    def completion_rate(
        entries: Iterable[DailyEntryRecord],
        challenge: ChallengeConfig,
        today: date
    ) -> int:
        """
        Percentage of elapsed challenge days with a completed entry.

        total_days = max(1, days from start to min(end, today), inclusive)

        Returns:
            Integer percentage clamped to 0..100
        """
        end = StatsService.effective_end_date(challenge)
        effective_end = end if end and end < today else today
        total_days = max(1, DateService.days_between(challenge.starts_at, effective_end) + 1)

        completed_days = sum(1 for entry in entries if entry.is_completed)
        rate = round_half_up(completed_days / total_days * 100)
        return max(0, min(100, rate))

    def count_perfect_days(self, entries: Iterable[DailyEntryRecord], challenge: ChallengeConfig) -> int:
        """Completed entries where every required daily task scored full points"""
        perfect_days = 0
        for entry in entries:
            if not entry.is_completed:
                continue
            daily_tasks = TaskService.partition_tasks(challenge.tasks, entry.entry_date).daily
            if self.entry_scorer.is_perfect_day(daily_tasks, entry.metric_data):
                perfect_days += 1
        return perfect_days

    def aggregate(
        self,
        participant: ParticipantRecord,
        entries: Iterable[DailyEntryRecord],
        challenge: ChallengeConfig,
        now: datetime,
        onetime_completions: Iterable[OnetimeCompletionRecord] = (),
        periodic_completions: Iterable[PeriodicCompletionRecord] = (),
        tz: Optional[tzinfo] = None
    ) -> ParticipantStats:
        """
        Build fresh stats for one participant.

        Args:
            participant: Participant record (status, stored longest streak)
            entries: All of the participant's daily entries
            challenge: Challenge configuration
            now: Evaluation time
            onetime_completions: One-time task completions
            periodic_completions: Weekly/monthly completions
            tz: Timezone for local dates and hours (None = configured/system)

        Returns:
            ParticipantStats; all counters are 0 when there is no history
        """
        entries: List[DailyEntryRecord] = list(entries)
        today = DateService.today(now, tz)

        streaks = StreakService.recompute(entries, today, participant.longest_streak)
        total_points = PointsService.total_points(entries, onetime_completions, periodic_completions)

        if not entries:
            return ParticipantStats(
                current_streak=0,
                longest_streak=streaks.longest_streak,
                total_points=total_points,
                challenge_complete=participant.status == PARTICIPANT_STATUS_COMPLETED
            )

        return ParticipantStats(
            current_streak=streaks.current_streak,
            longest_streak=streaks.longest_streak,
            total_points=total_points,
            entries_count=len(entries),
            perfect_days=self.count_perfect_days(entries, challenge),
            completion_rate=self.completion_rate(entries, challenge, today),
            early_entries=self.count_early_entries(entries, tz),
            late_entries=self.count_late_entries(entries, tz),
            challenge_complete=participant.status == PARTICIPANT_STATUS_COMPLETED
        )
