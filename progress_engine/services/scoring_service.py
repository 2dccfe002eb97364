"""
Scoring service.
Converts submitted task values into points and computes entry bonuses.

Scoring never raises: a missing or malformed value scores 0, and an unknown
scoring mode or threshold type falls back to binary/min with a warning. The
check that blocks saving an entry with missing required values lives in
`validate_required_values` and is the caller's to invoke.
"""
import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import TypeAdapter, ValidationError

from progress_engine.constants import (
    TaskType, TaskFrequency, ScoringMode, ThresholdType, StreakBonusMode
)
from progress_engine.exceptions import ValidationException
from progress_engine.schemas import (
    TaskDefinition, TaskValue, ChallengeConfig, EntryScore
)

logger = logging.getLogger("progress_engine.scoring")

_task_value_adapter = TypeAdapter(TaskValue)

NUMERIC_TASK_TYPES = (TaskType.NUMBER, TaskType.DURATION)


def parse_task_value(task_type: TaskType, raw: Any) -> Optional[TaskValue]:
    """
    Convert a raw submitted value into the typed value for a task type.

    Args:
        task_type: Declared type of the task
        raw: Raw value from metric_data (or an already typed value)

    Returns:
        Typed value, or None when the value is missing or does not match the type
    """
    if raw is None:
        return None
    task_type = TaskType(task_type)
    if getattr(raw, "type", None) == task_type.value:
        return raw
    try:
        return _task_value_adapter.validate_python({"type": task_type.value, "value": raw})
    except ValidationError:
        logger.debug(f"Ignoring value {raw!r} for {task_type.value} task")
        return None


def has_value(task_type: TaskType, value: Any) -> bool:
    """
    Check whether a submitted value counts as 'done' for its task type.

    boolean: True; number/duration: a finite number; choice/text: non-blank
    text (or a non-empty selection); file: at least one file reference.
    """
    typed = parse_task_value(task_type, value)
    if typed is None:
        return False

    inner = typed.value
    if typed.type == TaskType.BOOLEAN.value:
        return inner is True
    if typed.type in (TaskType.NUMBER.value, TaskType.DURATION.value):
        return True
    if typed.type == TaskType.CHOICE.value:
        if isinstance(inner, list):
            return any(str(option).strip() for option in inner)
        return bool(inner.strip())
    if typed.type == TaskType.TEXT.value:
        return bool(inner.strip())
    if typed.type == TaskType.FILE.value:
        return len(inner) > 0
    return False


def is_missing(value: Any) -> bool:
    """True for values a required field may not be saved with"""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set)):
        return len(value) == 0
    return False


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (2.5 -> 3)"""
    return int(math.floor(value + 0.5))


def meets_threshold(value: float, threshold: float, threshold_type: ThresholdType) -> bool:
    """min goals: value >= threshold; max goals: value <= threshold"""
    if threshold_type == ThresholdType.MAX:
        return value <= threshold
    return value >= threshold


class ScoringStrategy:
    """Turns a numeric value into points for a number/duration task"""

    def score(self, task: TaskDefinition, value: float, threshold_type: ThresholdType) -> int:
        raise NotImplementedError


class BinaryScoring(ScoringStrategy):
    """Full points when the goal is met, nothing otherwise"""

    def score(self, task: TaskDefinition, value: float, threshold_type: ThresholdType) -> int:
        return task.points if meets_threshold(value, task.threshold, threshold_type) else 0


class ScaledScoring(ScoringStrategy):
    """
    Proportional credit.

    min goals: ratio = value / threshold
    max goals: ratio = 1 - (value - threshold) / threshold once over the cap
    points = round(task.points * clamp(ratio, 0, 1))
    """

    def score(self, task: TaskDefinition, value: float, threshold_type: ThresholdType) -> int:
        threshold = task.threshold
        if threshold <= 0:
            # No meaningful ratio
            return BinaryScoring().score(task, value, threshold_type)

        if threshold_type == ThresholdType.MAX:
            ratio = 1.0 if value <= threshold else 1.0 - (value - threshold) / threshold
        else:
            ratio = value / threshold

        ratio = max(0.0, min(1.0, ratio))
        return round_half_up(task.points * ratio)


class TieredScoring(ScoringStrategy):
    """
    Full points at the task threshold, otherwise the best partial tier.

    Tiers are supplied by the challenge; a tier counts when the value meets
    its threshold in the same direction as the task goal.
    """

    def score(self, task: TaskDefinition, value: float, threshold_type: ThresholdType) -> int:
        if meets_threshold(value, task.threshold, threshold_type):
            return task.points

        earned = [
            tier.points for tier in task.tiers
            if meets_threshold(value, tier.threshold, threshold_type)
        ]
        if not earned:
            return 0
        return min(task.points, max(earned))


SCORING_STRATEGIES: Dict[str, ScoringStrategy] = {
    ScoringMode.BINARY.value: BinaryScoring(),
    ScoringMode.SCALED.value: ScaledScoring(),
    ScoringMode.TIERED.value: TieredScoring(),
}


class MetricScorer:
    """Scores one task value. Result is always within 0..task.points."""

    def __init__(self, strategies: Optional[Mapping[str, ScoringStrategy]] = None):
        self.strategies = dict(SCORING_STRATEGIES)
        if strategies:
            self.strategies.update(strategies)

    def resolve_threshold_type(self, task: TaskDefinition) -> ThresholdType:
        try:
            return ThresholdType(task.threshold_type)
        except ValueError:
            logger.warning(
                f"Unknown threshold_type {task.threshold_type!r} on task {task.id}, using 'min'"
            )
            return ThresholdType.MIN

    def resolve_strategy(self, task: TaskDefinition) -> ScoringStrategy:
        strategy = self.strategies.get(task.scoring_mode)
        if strategy is None:
            logger.warning(
                f"Unknown scoring_mode {task.scoring_mode!r} on task {task.id}, using 'binary'"
            )
            strategy = self.strategies[ScoringMode.BINARY.value]
        return strategy

    def score(self, task: TaskDefinition, value: Any) -> int:
        """
        Calculate points earned for a single task.

        Args:
            task: Task definition
            value: Submitted value (raw or typed), None when missing

        Returns:
            Points earned, 0 <= points <= task.points
        """
        if task.points <= 0:
            return 0

        typed = parse_task_value(task.type, value)
        if typed is None:
            return 0

        if task.type == TaskType.BOOLEAN:
            return task.points if typed.value is True else 0

        if task.type in NUMERIC_TASK_TYPES:
            threshold_type = self.resolve_threshold_type(task)
            strategy = self.resolve_strategy(task)
            try:
                points = strategy.score(task, float(typed.value), threshold_type)
            except Exception as e:
                logger.error(f"Scoring strategy failed for task {task.id}: {e}, using 'binary'")
                points = BinaryScoring().score(task, float(typed.value), threshold_type)
            return max(0, min(task.points, int(points)))

        # choice, text, file
        return task.points if has_value(task.type, typed) else 0


class StreakBonusStrategy:
    """Decides the streak bonus for one entry"""

    def bonus(self, streak_bonus_points: int, current_streak: int) -> int:
        raise NotImplementedError


class FlatStreakBonus(StreakBonusStrategy):
    """streak_bonus_points once per qualifying entry"""

    def bonus(self, streak_bonus_points: int, current_streak: int) -> int:
        return streak_bonus_points


class PerStreakDayBonus(StreakBonusStrategy):
    """streak_bonus_points for every day of the current streak"""

    def bonus(self, streak_bonus_points: int, current_streak: int) -> int:
        return streak_bonus_points * max(0, current_streak)


STREAK_BONUS_STRATEGIES: Dict[StreakBonusMode, StreakBonusStrategy] = {
    StreakBonusMode.FLAT: FlatStreakBonus(),
    StreakBonusMode.PER_STREAK_DAY: PerStreakDayBonus(),
}


class EntryScorer:
    """Aggregates task points for a daily entry and adds bonuses"""

    def __init__(
        self,
        metric_scorer: Optional[MetricScorer] = None,
        streak_bonus_strategies: Optional[Mapping[StreakBonusMode, StreakBonusStrategy]] = None
    ):
        self.metric_scorer = metric_scorer or MetricScorer()
        self.streak_bonus_strategies = dict(STREAK_BONUS_STRATEGIES)
        if streak_bonus_strategies:
            self.streak_bonus_strategies.update(streak_bonus_strategies)

    @staticmethod
    def daily_tasks(tasks: Iterable[TaskDefinition]) -> List[TaskDefinition]:
        return [task for task in tasks if task.frequency == TaskFrequency.DAILY]

    def score_tasks(self, tasks: Iterable[TaskDefinition], metric_data: Mapping[str, Any]) -> Dict[str, int]:
        """Points per daily task id"""
        metric_data = metric_data or {}
        return {
            task.id: self.metric_scorer.score(task, metric_data.get(task.id))
            for task in self.daily_tasks(tasks)
        }

    def is_perfect_day(
        self,
        tasks: Iterable[TaskDefinition],
        metric_data: Mapping[str, Any],
        task_points: Optional[Mapping[str, int]] = None
    ) -> bool:
        """
        True when every required daily task scored its full points.

        A day with no required tasks is vacuously perfect.
        """
        daily = self.daily_tasks(tasks)
        if task_points is None:
            task_points = self.score_tasks(daily, metric_data)
        return all(
            task_points.get(task.id, 0) >= task.points
            for task in daily if task.required
        )

    def calculate_entry_score(
        self,
        tasks: Iterable[TaskDefinition],
        metric_data: Mapping[str, Any],
        challenge: ChallengeConfig,
        current_streak: int
    ) -> EntryScore:
        """
        Calculate base and bonus points for a daily entry.

        Args:
            tasks: Ordered task list (only daily tasks are scored)
            metric_data: Submitted values keyed by task id
            challenge: Challenge with bonus configuration
            current_streak: Participant's streak before this entry

        Returns:
            EntryScore with base_points, bonus_points and per-task points
        """
        daily = self.daily_tasks(tasks)
        task_points = self.score_tasks(daily, metric_data)
        base_points = sum(task_points.values())

        bonus_points = 0
        if challenge.enable_streak_bonus:
            strategy = self.streak_bonus_strategies.get(challenge.streak_bonus_mode)
            if strategy is None:
                logger.warning(
                    f"Unknown streak_bonus_mode {challenge.streak_bonus_mode!r}, using 'flat'"
                )
                strategy = self.streak_bonus_strategies[StreakBonusMode.FLAT]
            bonus_points += strategy.bonus(challenge.streak_bonus_points, current_streak)

        if challenge.enable_perfect_day_bonus and self.is_perfect_day(daily, metric_data, task_points):
            bonus_points += challenge.perfect_day_bonus_points

        return EntryScore(
            base_points=base_points,
            bonus_points=bonus_points,
            task_points=task_points
        )


def validate_required_values(tasks: Iterable[TaskDefinition], metric_data: Mapping[str, Any]) -> None:
    """
    Validate that every required daily task has a usable value.

    Raises:
        ValidationException: For the first required task that is missing or malformed
    """
    metric_data = metric_data or {}
    for task in EntryScorer.daily_tasks(tasks):
        if not task.required:
            continue
        raw = metric_data.get(task.id)
        if is_missing(raw):
            raise ValidationException(task.name or task.id, "required field is missing")
        if parse_task_value(task.type, raw) is None:
            raise ValidationException(task.name or task.id, f"invalid {task.type.value} value")
