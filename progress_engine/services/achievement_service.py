"""
Achievement trigger service.
Decides which achievements a participant newly qualifies for and awards them
at most once.

`meets_requirement` and `calculate_progress` read stats through the same
trigger -> stat mapping, so a progress bar and the unlock check always agree.
"""
import logging
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Set, Union

from progress_engine.constants import TriggerType
from progress_engine.schemas import (
    AchievementDefinition, AchievementProgress, AchievementWithProgress,
    EarnedAchievement, ParticipantStats
)

logger = logging.getLogger("progress_engine.achievements")

AchievementId = Union[int, str]

TRIGGER_STATS: Dict[TriggerType, Callable[[ParticipantStats], int]] = {
    TriggerType.STREAK_DAYS: lambda s: max(s.current_streak, s.longest_streak),
    TriggerType.TOTAL_POINTS: lambda s: s.total_points,
    TriggerType.ENTRIES_LOGGED: lambda s: s.entries_count,
    TriggerType.PERFECT_DAYS: lambda s: s.perfect_days,
    TriggerType.COMPLETION_RATE: lambda s: s.completion_rate,
    TriggerType.CHALLENGE_COMPLETE: lambda s: 1 if s.challenge_complete else 0,
    TriggerType.EARLY_ENTRIES: lambda s: s.early_entries,
    TriggerType.LATE_ENTRIES: lambda s: s.late_entries,
}


class AchievementStore:
    """
    Persistence collaborator for earned achievements.

    `try_award` must be a unique-constrained insert on
    (participant, achievement) and return False when the row already exists.
    """

    def get_earned_ids(self, participant_id: int) -> Set[AchievementId]:
        raise NotImplementedError

    def try_award(self, participant_id: int, achievement_id: AchievementId, earned_at: datetime) -> bool:
        raise NotImplementedError


class AchievementService:
    """Service for achievement evaluation and awarding"""

    @staticmethod
    def calculate_progress(achievement: AchievementDefinition, stats: ParticipantStats) -> AchievementProgress:
        """
        Calculate progress toward an achievement for UI progress bars.

        Returns:
            AchievementProgress with current value and target
        """
        if achievement.trigger_type == TriggerType.CHALLENGE_COMPLETE:
            target = 1
        else:
            target = achievement.trigger_value
            if float(target).is_integer():
                target = int(target)

        getter = TRIGGER_STATS.get(achievement.trigger_type)
        current = getter(stats) if getter else 0
        return AchievementProgress(current=current, target=target)

    @staticmethod
    def meets_requirement(achievement: AchievementDefinition, stats: ParticipantStats) -> bool:
        """Check if stats satisfy an achievement's trigger"""
        if achievement.trigger_type not in TRIGGER_STATS:
            return False
        progress = AchievementService.calculate_progress(achievement, stats)
        return progress.current >= progress.target

    @staticmethod
    def _to_earned(
        achievement: AchievementDefinition,
        earned_at: datetime,
        challenge_name: Optional[str] = None
    ) -> EarnedAchievement:
        return EarnedAchievement(
            achievement_id=achievement.id,
            name=achievement.name,
            description=achievement.description,
            icon=achievement.icon,
            category=achievement.category,
            earned_at=earned_at,
            challenge_name=challenge_name
        )

    @staticmethod
    def evaluate(
        stats: ParticipantStats,
        achievements: Iterable[AchievementDefinition],
        earned_ids: Iterable[AchievementId],
        now: datetime,
        challenge_name: Optional[str] = None
    ) -> List[EarnedAchievement]:
        """
        Find achievements newly qualified for, without awarding them.

        Args:
            stats: Fresh participant stats
            achievements: Challenge achievements in evaluation order
            earned_ids: Ids the participant already has
            now: Evaluation time, used as earned_at

        Returns:
            Newly qualified achievements in evaluation order
        """
        already_earned = set(earned_ids)
        newly_earned = []
        for achievement in achievements:
            if achievement.id in already_earned:
                continue
            if AchievementService.meets_requirement(achievement, stats):
                newly_earned.append(AchievementService._to_earned(achievement, now, challenge_name))
                already_earned.add(achievement.id)
        return newly_earned

    @staticmethod
    def check_and_award(
        participant_id: int,
        stats: ParticipantStats,
        achievements: Iterable[AchievementDefinition],
        store: AchievementStore,
        now: datetime,
        challenge_name: Optional[str] = None
    ) -> List[EarnedAchievement]:
        """
        Evaluate and award achievements for a participant.

        An award rejected by the store as a duplicate (e.g. a concurrent check
        already inserted it) is a no-op: it is not reported and not an error.

        Returns:
            Achievements actually awarded by this call
        """
        achievements = list(achievements)
        by_id = {achievement.id: achievement for achievement in achievements}
        candidates = AchievementService.evaluate(
            stats, achievements, store.get_earned_ids(participant_id), now, challenge_name
        )

        awarded = []
        for candidate in candidates:
            if store.try_award(participant_id, candidate.achievement_id, now):
                logger.info(
                    f"Participant {participant_id} earned achievement "
                    f"{by_id[candidate.achievement_id].name!r}"
                )
                awarded.append(candidate)
            else:
                logger.info(
                    f"Achievement {candidate.achievement_id} already awarded to "
                    f"participant {participant_id}, skipping"
                )
        return awarded

    @staticmethod
    def achievements_with_progress(
        stats: ParticipantStats,
        achievements: Iterable[AchievementDefinition],
        earned: Mapping[AchievementId, datetime]
    ) -> List[AchievementWithProgress]:
        """
        Build achievement rows for display.

        Hidden achievements are listed only once earned; progress is attached
        to unearned ones.

        Args:
            stats: Participant stats
            achievements: Challenge achievements
            earned: Earned achievement id -> earned_at
        """
        rows = []
        for achievement in sorted(achievements, key=lambda a: a.display_order):
            is_earned = achievement.id in earned
            if achievement.is_hidden and not is_earned:
                continue
            rows.append(AchievementWithProgress(
                achievement=achievement,
                earned=is_earned,
                earned_at=earned.get(achievement.id),
                progress=None if is_earned else AchievementService.calculate_progress(achievement, stats)
            ))
        return rows
