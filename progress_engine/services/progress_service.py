"""
Progress orchestration service.
Saves entries and task completions, keeps participant streaks and totals in
sync, and awards achievements after every change.
"""
import logging
from datetime import datetime, date, tzinfo
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from progress_engine.constants import DayStatus, TaskFrequency
from progress_engine.exceptions import (
    ParticipantNotFoundException, ChallengeNotFoundException, TaskNotFoundException,
    EntryNotFoundException, EntryLockedException, EntryNotAllowedException,
    DuplicateCompletionException, ValidationException
)
from progress_engine.models import (
    Participant, DailyEntry, PeriodicCompletion, OnetimeCompletion
)
from progress_engine.repositories.achievement_repository import (
    AchievementRepository, ParticipantAchievementRepository, SqlAchievementStore
)
from progress_engine.repositories.challenge_repository import (
    ChallengeRepository, ParticipantRepository
)
from progress_engine.repositories.entry_repository import (
    DailyEntryRepository, PeriodicCompletionRepository, OnetimeCompletionRepository
)
from progress_engine.schemas import (
    AchievementDefinition, AchievementWithProgress, ChallengeConfig,
    DailyEntryRecord, EarnedAchievement, LeaderboardRow,
    OnetimeCompletionRecord, ParticipantRecord, ParticipantStats,
    PeriodicCompletionRecord, SaveCompletionResult, SaveEntryResult
)
from progress_engine.services.achievement_service import AchievementService
from progress_engine.services.calendar_service import CalendarService
from progress_engine.services.challenge_service import ChallengeService
from progress_engine.services.date_service import DateService
from progress_engine.services.period_service import PeriodService
from progress_engine.services.points_service import PointsService
from progress_engine.services.scoring_service import (
    EntryScorer, is_missing, validate_required_values
)
from progress_engine.services.stats_service import StatsService
from progress_engine.services.streak_service import StreakService
from progress_engine.services.task_service import TaskService

logger = logging.getLogger("progress_engine.progress")


class ProgressService:
    """Service for recording progress and keeping participant state current"""

    def __init__(self, db: Session, tz: Optional[tzinfo] = None):
        self.db = db
        self.tz = tz
        self.entry_scorer = EntryScorer()
        self.metric_scorer = self.entry_scorer.metric_scorer
        self.stats_service = StatsService(self.entry_scorer)
        self.achievement_store = SqlAchievementStore(db)

    # ===== LOOKUPS =====

    def _get_participant(self, participant_id: int) -> Participant:
        participant = ParticipantRepository.get_by_id(self.db, participant_id)
        if not participant:
            raise ParticipantNotFoundException(participant_id)
        return participant

    def _get_challenge(self, participant: Participant) -> ChallengeConfig:
        challenge = ChallengeRepository.get_by_id(self.db, participant.challenge_id)
        if not challenge:
            raise ChallengeNotFoundException(participant.challenge_id)
        return ChallengeConfig.model_validate(challenge)

    def _entries(self, participant_id: int) -> List[DailyEntryRecord]:
        return [
            DailyEntryRecord.model_validate(entry)
            for entry in DailyEntryRepository.list_for_participant(self.db, participant_id)
        ]

    def _periodic(self, participant_id: int) -> List[PeriodicCompletionRecord]:
        return [
            PeriodicCompletionRecord.model_validate(completion)
            for completion in PeriodicCompletionRepository.list_for_participant(self.db, participant_id)
        ]

    def _onetime(self, participant_id: int) -> List[OnetimeCompletionRecord]:
        return [
            OnetimeCompletionRecord.model_validate(completion)
            for completion in OnetimeCompletionRepository.list_for_participant(self.db, participant_id)
        ]

    def _achievements(self, challenge_id: int) -> List[AchievementDefinition]:
        """Achievement definitions, skipping rows with an unknown trigger"""
        definitions = []
        for achievement in AchievementRepository.list_for_challenge(self.db, challenge_id):
            try:
                definitions.append(AchievementDefinition.model_validate(achievement))
            except ValidationError:
                logger.warning(
                    f"Skipping achievement {achievement.id} with unknown trigger "
                    f"{achievement.trigger_type!r}"
                )
        return definitions

    def _local_stamp(self, now: datetime) -> datetime:
        """Timestamps are stored as naive local wall-clock time"""
        return DateService.to_local_datetime(now, self.tz)

    def _ensure_entries_allowed(self, challenge: ChallengeConfig, today: date) -> None:
        state = ChallengeService.get_challenge_state(challenge, today)
        if not state.is_entry_allowed:
            raise EntryNotAllowedException(f"challenge is {state.state.value}")

    # ===== DAILY ENTRIES =====

    def save_daily_entry(
        self,
        participant_id: int,
        metric_data: Mapping[str, Any],
        is_completed: bool,
        now: datetime,
        target_date: Optional[date] = None,
        notes: Optional[str] = None
    ) -> SaveEntryResult:
        """
        Create or update a participant's daily entry.

        Points are scored against the daily tasks active on the entry date,
        using the participant's streak from before this save for the bonus.

        Args:
            participant_id: Participant saving the entry
            metric_data: Submitted values keyed by task id
            is_completed: Whether the participant marks the day as done
            now: Current time (becomes submitted_at)
            target_date: Entry date (default: today)
            notes: Free-form notes

        Returns:
            SaveEntryResult with the stored entry, its score and new achievements

        Raises:
            EntryNotAllowedException: Challenge not accepting entries or date out of range
            EntryLockedException: Existing entry for that date is locked
            ValidationException: Completed entry missing a required value
        """
        participant = self._get_participant(participant_id)
        challenge = self._get_challenge(participant)
        today = DateService.today(now, self.tz)
        entry_date = DateService.parse_local_date(target_date) if target_date else today

        self._ensure_entries_allowed(challenge, today)
        if entry_date > today:
            raise EntryNotAllowedException("cannot log entries for future dates")
        if entry_date < challenge.starts_at:
            raise EntryNotAllowedException("date is before the challenge start")
        end_date = ChallengeService.effective_end_date(challenge)
        if end_date and entry_date > end_date:
            raise EntryNotAllowedException("date is after the challenge end")

        existing = DailyEntryRepository.get_by_date(self.db, participant.id, entry_date)
        if existing and existing.is_locked:
            raise EntryLockedException(entry_date)

        metric_data = dict(metric_data or {})
        daily_tasks = TaskService.partition_tasks(challenge.tasks, entry_date).daily
        if is_completed:
            validate_required_values(daily_tasks, metric_data)

        score = self.entry_scorer.calculate_entry_score(
            daily_tasks, metric_data, challenge, participant.current_streak or 0
        )

        fields = {
            "metric_data": metric_data,
            "notes": notes,
            "is_completed": is_completed,
            "is_locked": challenge.lock_entries_after_day,
            "points_earned": score.base_points,
            "bonus_points": score.bonus_points,
            "submitted_at": self._local_stamp(now),
        }
        if existing:
            entry = self._update_entry(existing, fields)
        else:
            try:
                entry = DailyEntryRepository.create(
                    self.db, DailyEntry(participant_id=participant.id, entry_date=entry_date, **fields)
                )
            except IntegrityError:
                # Another save created the row after our lookup
                self.db.rollback()
                logger.warning(f"Entry {entry_date} for participant {participant.id} saved concurrently, updating")
                existing = DailyEntryRepository.get_by_date(self.db, participant.id, entry_date)
                if existing is None:
                    raise
                if existing.is_locked:
                    raise EntryLockedException(entry_date)
                entry = self._update_entry(existing, fields)

        logger.info(
            f"Saved entry {entry_date} for participant {participant.id}: "
            f"{score.base_points} + {score.bonus_points} bonus"
        )

        record = DailyEntryRecord.model_validate(entry)
        self.refresh_participant(participant.id, now)
        new_achievements = self._check_achievements_after_save(participant.id, now)

        return SaveEntryResult(entry=record, score=score, new_achievements=new_achievements)

    def _update_entry(self, entry: DailyEntry, fields: Dict[str, Any]) -> DailyEntry:
        for name, value in fields.items():
            setattr(entry, name, value)
        return DailyEntryRepository.update(self.db, entry)

    def delete_daily_entry(self, participant_id: int, entry_id: int, now: datetime) -> ParticipantRecord:
        """
        Delete a daily entry and recompute the participant's streak and total.

        Raises:
            EntryNotFoundException: Entry missing or owned by another participant
            EntryLockedException: Entry is locked
        """
        entry = DailyEntryRepository.get_by_id(self.db, entry_id)
        if not entry or entry.participant_id != participant_id:
            raise EntryNotFoundException(entry_id)
        if entry.is_locked:
            raise EntryLockedException(entry.entry_date)

        DailyEntryRepository.delete(self.db, entry)
        logger.info(f"Deleted entry {entry_id} for participant {participant_id}")
        return self.refresh_participant(participant_id, now)

    # ===== PERIODIC TASKS =====

    def save_periodic_completion(
        self,
        participant_id: int,
        task_id: str,
        value: Any,
        now: datetime
    ) -> SaveCompletionResult:
        """
        Complete a weekly or monthly task for the current period.

        Raises:
            TaskNotFoundException: Task not part of the challenge
            ValidationException: Task is not weekly/monthly
            DuplicateCompletionException: Already completed this period
        """
        participant = self._get_participant(participant_id)
        challenge = self._get_challenge(participant)
        today = DateService.today(now, self.tz)
        self._ensure_entries_allowed(challenge, today)

        task = TaskService.find_task(challenge.tasks, task_id)
        if task is None:
            raise TaskNotFoundException(task_id)
        if task.frequency not in (TaskFrequency.WEEKLY, TaskFrequency.MONTHLY):
            raise ValidationException(task.name or task.id, "task is not a weekly or monthly task")

        period = PeriodService.period_for(task.frequency, today)
        if PeriodicCompletionRepository.get_for_period(self.db, participant.id, task_id, period.key):
            raise DuplicateCompletionException(task_id, period.key)

        points = self.metric_scorer.score(task, value)
        PeriodicCompletionRepository.create(self.db, PeriodicCompletion(
            participant_id=participant.id,
            task_id=task_id,
            frequency=task.frequency.value,
            period_start=period.key,
            period_end=PeriodService.period_end_key(period),
            value=value,
            points_earned=points,
            completed_at=self._local_stamp(now)
        ))
        logger.info(f"Participant {participant.id} completed {task_id} for {period.label}: {points} points")

        self.refresh_participant(participant.id, now)
        return SaveCompletionResult(
            task_id=task_id,
            points=points,
            period_key=period.key,
            new_achievements=self._check_achievements_after_save(participant.id, now)
        )

    def delete_periodic_completion(
        self,
        participant_id: int,
        task_id: str,
        period_start: str,
        now: datetime
    ) -> ParticipantRecord:
        """Remove a periodic completion and re-sum points"""
        period_key = DateService.to_date_string(DateService.parse_local_date(period_start))
        completion = PeriodicCompletionRepository.get_for_period(self.db, participant_id, task_id, period_key)
        if not completion:
            raise EntryNotFoundException(f"{task_id}@{period_key}")

        PeriodicCompletionRepository.delete(self.db, completion)
        return self.refresh_participant(participant_id, now)

    # ===== ONE-TIME TASKS =====

    def save_onetime_completion(
        self,
        participant_id: int,
        task_id: str,
        value: Any,
        now: datetime
    ) -> SaveCompletionResult:
        """
        Complete a one-time task.

        Raises:
            TaskNotFoundException: Task not part of the challenge
            ValidationException: Not a one-time task, or a required value is missing
            DuplicateCompletionException: Already completed
        """
        participant = self._get_participant(participant_id)
        challenge = self._get_challenge(participant)
        self._ensure_entries_allowed(challenge, DateService.today(now, self.tz))

        task = TaskService.find_task(challenge.tasks, task_id)
        if task is None:
            raise TaskNotFoundException(task_id)
        if task.frequency != TaskFrequency.ONETIME:
            raise ValidationException(task.name or task.id, "task is not a one-time task")
        if OnetimeCompletionRepository.get_for_task(self.db, participant.id, task_id):
            raise DuplicateCompletionException(task_id, "onetime")
        if task.required and is_missing(value):
            raise ValidationException(task.name or task.id, "required field is missing")

        points = self.metric_scorer.score(task, value)
        OnetimeCompletionRepository.create(self.db, OnetimeCompletion(
            participant_id=participant.id,
            task_id=task_id,
            value=value,
            points_earned=points,
            completed_at=self._local_stamp(now)
        ))
        logger.info(f"Participant {participant.id} completed one-time task {task_id}: {points} points")

        self.refresh_participant(participant.id, now)
        return SaveCompletionResult(
            task_id=task_id,
            points=points,
            new_achievements=self._check_achievements_after_save(participant.id, now)
        )

    def delete_onetime_completion(self, participant_id: int, task_id: str, now: datetime) -> ParticipantRecord:
        completion = OnetimeCompletionRepository.get_for_task(self.db, participant_id, task_id)
        if not completion:
            raise EntryNotFoundException(task_id)

        OnetimeCompletionRepository.delete(self.db, completion)
        return self.refresh_participant(participant_id, now)

    # ===== PARTICIPANT STATE =====

    def refresh_participant(self, participant_id: int, now: datetime) -> ParticipantRecord:
        """
        Recompute streaks and re-sum total points from the stored history.

        Returns:
            Updated participant record
        """
        participant = self._get_participant(participant_id)
        entries = self._entries(participant.id)

        streaks = StreakService.recompute(
            entries, DateService.today(now, self.tz), participant.longest_streak or 0
        )
        participant.current_streak = streaks.current_streak
        participant.longest_streak = streaks.longest_streak
        participant.total_points = PointsService.total_points(
            entries, self._onetime(participant.id), self._periodic(participant.id)
        )
        participant = ParticipantRepository.update(self.db, participant)
        return ParticipantRecord.model_validate(participant)

    def get_participant_stats(self, participant_id: int, now: datetime) -> ParticipantStats:
        """Fresh stats for achievement checks (never cached)"""
        participant = self._get_participant(participant_id)
        challenge = self._get_challenge(participant)
        return self.stats_service.aggregate(
            ParticipantRecord.model_validate(participant),
            self._entries(participant.id),
            challenge,
            now,
            onetime_completions=self._onetime(participant.id),
            periodic_completions=self._periodic(participant.id),
            tz=self.tz
        )

    # ===== ACHIEVEMENTS =====

    def check_achievements(self, participant_id: int, now: datetime) -> List[EarnedAchievement]:
        """Award every achievement the participant newly qualifies for"""
        participant = self._get_participant(participant_id)
        challenge = self._get_challenge(participant)
        stats = self.get_participant_stats(participant.id, now)
        return AchievementService.check_and_award(
            participant.id,
            stats,
            self._achievements(participant.challenge_id),
            self.achievement_store,
            self._local_stamp(now),
            challenge_name=challenge.name
        )

    def _check_achievements_after_save(self, participant_id: int, now: datetime) -> List[EarnedAchievement]:
        """Achievement errors never fail the save that triggered them"""
        try:
            return self.check_achievements(participant_id, now)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Error checking achievements for participant {participant_id}")
            return []

    def get_achievements(self, participant_id: int, now: datetime) -> List[AchievementWithProgress]:
        """Achievements for display with earned state and progress"""
        participant = self._get_participant(participant_id)
        return AchievementService.achievements_with_progress(
            self.get_participant_stats(participant.id, now),
            self._achievements(participant.challenge_id),
            ParticipantAchievementRepository.get_earned_at(self.db, participant.id)
        )

    # ===== VIEWS =====

    def get_leaderboard(self, challenge_id: int) -> List[LeaderboardRow]:
        if not ChallengeRepository.get_by_id(self.db, challenge_id):
            raise ChallengeNotFoundException(challenge_id)
        participants = ParticipantRepository.list_by_challenge(self.db, challenge_id)
        return PointsService.rank_participants(
            ParticipantRecord.model_validate(p) for p in participants
        )

    def get_calendar(
        self,
        participant_id: int,
        start: date,
        end: date,
        now: datetime
    ) -> Dict[date, DayStatus]:
        """Day statuses for a participant between start and end inclusive"""
        participant = self._get_participant(participant_id)
        challenge = self._get_challenge(participant)
        return CalendarService.build_calendar(
            start,
            end,
            challenge.starts_at,
            ChallengeService.effective_end_date(challenge),
            self._entries(participant.id),
            self._periodic(participant.id),
            challenge.tasks,
            now,
            self.tz
        )
