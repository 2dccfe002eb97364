"""
Streak calculation service.
Derives current and longest streak from a participant's completed entries.
"""
from datetime import date
from typing import Iterable, List

from progress_engine.schemas import DailyEntryRecord, StreakResult
from progress_engine.services.date_service import DateService


class StreakService:
    """Service for streak calculations"""

    @staticmethod
    def completed_dates(entries: Iterable[DailyEntryRecord]) -> List[date]:
        """Distinct dates of completed entries, most recent first"""
        return sorted({entry.entry_date for entry in entries if entry.is_completed}, reverse=True)

    @staticmethod
    def calculate_current_streak(entry_dates: Iterable[date], today: date) -> int:
        """
        Count the unbroken run of completed days ending today or yesterday.

        Walks the dates most-recent-first; date i belongs to the streak while
        (today - date[i]) == i + offset, where offset is 0 when the latest
        date is today and 1 when it is yesterday (today not logged yet). The
        first gap ends the walk.

        Args:
            entry_dates: Completed entry dates
            today: Local calendar date

        Returns:
            Current streak length (0 when the latest entry is older than yesterday)
        """
        dates = sorted({DateService.parse_local_date(d) for d in entry_dates}, reverse=True)
        dates = [d for d in dates if d <= today]
        if not dates:
            return 0

        offset = DateService.days_between(dates[0], today)
        if offset > 1:
            return 0

        streak = 0
        for i, entry_date in enumerate(dates):
            if DateService.days_between(entry_date, today) == i + offset:
                streak += 1
            else:
                break
        return streak

    @staticmethod
    def recompute(
        entries: Iterable[DailyEntryRecord],
        today: date,
        previous_longest: int = 0
    ) -> StreakResult:
        """
        Recompute streaks from the full entry history.

        Longest streak only ratchets forward: it is never recomputed from
        history and never decreases, including after an entry is deleted.

        Args:
            entries: All of a participant's daily entries
            today: Local calendar date
            previous_longest: Stored longest streak

        Returns:
            StreakResult with current and longest streak
        """
        current = StreakService.calculate_current_streak(
            StreakService.completed_dates(entries), today
        )
        return StreakResult(
            current_streak=current,
            longest_streak=max(current, previous_longest or 0)
        )
