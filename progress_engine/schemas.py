from pydantic import BaseModel, Field, field_validator
from datetime import datetime, date
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
import math

from progress_engine.constants import (
    TaskType, TaskFrequency, ScoringMode, ThresholdType, StreakBonusMode,
    TriggerType, PeriodStatus, ChallengeState, DeadlineStatus,
    DEFAULT_TASK_POINTS, DEFAULT_THRESHOLD, DEFAULT_STREAK_BONUS_POINTS,
    DEFAULT_PERFECT_DAY_BONUS_POINTS, DEFAULT_GRACE_PERIOD_DAYS,
    PARTICIPANT_STATUS_ACTIVE,
)
from progress_engine.services.date_service import DateService


def _local_date(value: Any) -> Any:
    if value is None or value == "":
        return None
    if isinstance(value, (str, date)):
        return DateService.parse_local_date(value)
    return value


def _zero_if_none(value: Any) -> Any:
    return 0 if value is None else value


# Task definition schemas
class ScoreTier(BaseModel):
    """Partial-credit step for tiered scoring"""
    threshold: float
    points: int = Field(..., ge=0)


class TaskDefinition(BaseModel):
    id: str
    name: str = ""
    type: TaskType = TaskType.BOOLEAN
    frequency: TaskFrequency = TaskFrequency.DAILY
    required: bool = True
    points: int = Field(default=DEFAULT_TASK_POINTS, ge=0)

    # Scoring configuration. Mode and threshold type stay plain strings so an
    # unknown value reaches the scorer, which falls back instead of failing.
    scoring_mode: str = ScoringMode.BINARY.value
    threshold: float = DEFAULT_THRESHOLD
    threshold_type: str = ThresholdType.MIN.value
    tiers: List[ScoreTier] = Field(default_factory=list)

    # Activity window (inclusive calendar dates)
    starts_at: Optional[date] = None
    ends_at: Optional[date] = None

    # One-time tasks only
    deadline: Optional[datetime] = None

    order: int = 0

    class Config:
        from_attributes = True

    @field_validator("frequency", mode="before")
    @classmethod
    def default_frequency(cls, v):
        return TaskFrequency.DAILY if v is None or v == "" else v

    @field_validator("points", mode="before")
    @classmethod
    def default_points(cls, v):
        return DEFAULT_TASK_POINTS if v is None else v

    @field_validator("threshold", mode="before")
    @classmethod
    def default_threshold(cls, v):
        return DEFAULT_THRESHOLD if v is None else v

    @field_validator("scoring_mode", mode="before")
    @classmethod
    def default_scoring_mode(cls, v):
        if v is None or v == "":
            return ScoringMode.BINARY.value
        return v.value if isinstance(v, ScoringMode) else v

    @field_validator("threshold_type", mode="before")
    @classmethod
    def default_threshold_type(cls, v):
        if v is None or v == "":
            return ThresholdType.MIN.value
        return v.value if isinstance(v, ThresholdType) else v

    @field_validator("tiers", mode="before")
    @classmethod
    def default_tiers(cls, v):
        return [] if v is None else v

    @field_validator("starts_at", "ends_at", mode="before")
    @classmethod
    def parse_window(cls, v):
        return _local_date(v)

    @field_validator("deadline", mode="before")
    @classmethod
    def parse_deadline(cls, v):
        if v is None or v == "":
            return None
        if isinstance(v, str) and "T" not in v and " " not in v.strip():
            # Date-only deadlines run until the end of that day
            return DateService.end_of_day(DateService.parse_local_date(v))
        if isinstance(v, date) and not isinstance(v, datetime):
            return DateService.end_of_day(v)
        return DateService.parse_timestamp(v)


# Submitted value schemas (tagged union keyed by task type)
class BoolValue(BaseModel):
    type: Literal["boolean"] = "boolean"
    value: bool

    @field_validator("value", mode="before")
    @classmethod
    def strict_bool(cls, v):
        if not isinstance(v, bool):
            raise ValueError("boolean value required")
        return v


class _NumericValue(BaseModel):
    value: float

    @field_validator("value", mode="before")
    @classmethod
    def finite_number(cls, v):
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("numeric value required")
        if math.isnan(v) or math.isinf(v):
            raise ValueError("finite numeric value required")
        return v


class NumberValue(_NumericValue):
    type: Literal["number"] = "number"


class DurationValue(_NumericValue):
    """Duration in minutes"""
    type: Literal["duration"] = "duration"


class ChoiceValue(BaseModel):
    type: Literal["choice"] = "choice"
    value: Union[str, List[str]]


class TextValue(BaseModel):
    type: Literal["text"] = "text"
    value: str


class FileRefsValue(BaseModel):
    type: Literal["file"] = "file"
    value: List[Union[str, Dict[str, Any]]]


TaskValue = Annotated[
    Union[BoolValue, NumberValue, DurationValue, ChoiceValue, TextValue, FileRefsValue],
    Field(discriminator="type"),
]


# Challenge configuration
class ChallengeConfig(BaseModel):
    id: Optional[int] = None
    name: str = ""
    starts_at: date
    ends_at: Optional[date] = None  # None for ongoing challenges
    ended_at: Optional[datetime] = None
    grace_period_days: int = Field(default=DEFAULT_GRACE_PERIOD_DAYS, ge=0)
    lock_entries_after_day: bool = False

    # Bonus points configuration
    enable_streak_bonus: bool = False
    streak_bonus_points: int = Field(default=DEFAULT_STREAK_BONUS_POINTS, ge=0)
    streak_bonus_mode: StreakBonusMode = StreakBonusMode.FLAT
    enable_perfect_day_bonus: bool = False
    perfect_day_bonus_points: int = Field(default=DEFAULT_PERFECT_DAY_BONUS_POINTS, ge=0)

    tasks: List[TaskDefinition] = Field(default_factory=list)

    class Config:
        from_attributes = True

    @field_validator("starts_at", "ends_at", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return _local_date(v)

    @field_validator("ended_at", mode="before")
    @classmethod
    def parse_ended_at(cls, v):
        if v is None or v == "":
            return None
        return DateService.parse_timestamp(v)

    @field_validator("grace_period_days", mode="before")
    @classmethod
    def default_grace(cls, v):
        return DEFAULT_GRACE_PERIOD_DAYS if v is None else v

    @field_validator("streak_bonus_points", mode="before")
    @classmethod
    def default_streak_bonus(cls, v):
        return DEFAULT_STREAK_BONUS_POINTS if v is None else v

    @field_validator("perfect_day_bonus_points", mode="before")
    @classmethod
    def default_perfect_day_bonus(cls, v):
        return DEFAULT_PERFECT_DAY_BONUS_POINTS if v is None else v

    @field_validator("streak_bonus_mode", mode="before")
    @classmethod
    def default_streak_mode(cls, v):
        return StreakBonusMode.FLAT if v is None or v == "" else v

    @field_validator("tasks", mode="before")
    @classmethod
    def default_tasks(cls, v):
        return [] if v is None else v


# Activity record schemas
class DailyEntryRecord(BaseModel):
    id: Optional[int] = None
    participant_id: Optional[int] = None
    entry_date: date
    metric_data: Dict[str, Any] = Field(default_factory=dict)
    is_completed: bool = False
    is_locked: bool = False
    points_earned: int = 0  # Base points
    bonus_points: int = 0
    submitted_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("entry_date", mode="before")
    @classmethod
    def parse_entry_date(cls, v):
        return _local_date(v)

    @field_validator("submitted_at", mode="before")
    @classmethod
    def parse_submitted_at(cls, v):
        if v is None or v == "":
            return None
        return DateService.parse_timestamp(v)

    @field_validator("metric_data", mode="before")
    @classmethod
    def default_metric_data(cls, v):
        return {} if v is None else v

    @field_validator("points_earned", "bonus_points", mode="before")
    @classmethod
    def default_points(cls, v):
        return _zero_if_none(v)

    @field_validator("is_completed", "is_locked", mode="before")
    @classmethod
    def default_flags(cls, v):
        return False if v is None else v


class PeriodicCompletionRecord(BaseModel):
    id: Optional[int] = None
    participant_id: Optional[int] = None
    task_id: str
    frequency: TaskFrequency
    period_start: str  # Period key (YYYY-MM-DD)
    period_end: Optional[str] = None
    completed_at: Optional[datetime] = None
    value: Any = None
    points_earned: int = 0

    class Config:
        from_attributes = True

    @field_validator("period_start", "period_end", mode="before")
    @classmethod
    def period_key(cls, v):
        if isinstance(v, date):
            return DateService.to_date_string(v)
        return v

    @field_validator("points_earned", mode="before")
    @classmethod
    def default_points(cls, v):
        return _zero_if_none(v)


class OnetimeCompletionRecord(BaseModel):
    id: Optional[int] = None
    participant_id: Optional[int] = None
    task_id: str
    value: Any = None
    points_earned: int = 0
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("points_earned", mode="before")
    @classmethod
    def default_points(cls, v):
        return _zero_if_none(v)


class ParticipantRecord(BaseModel):
    id: Optional[int] = None
    challenge_id: Optional[int] = None
    user_id: Optional[str] = None
    status: str = PARTICIPANT_STATUS_ACTIVE
    current_streak: int = 0
    longest_streak: int = 0
    total_points: int = 0

    class Config:
        from_attributes = True

    @field_validator("current_streak", "longest_streak", "total_points", mode="before")
    @classmethod
    def default_counters(cls, v):
        return _zero_if_none(v)


# Achievement schemas
class AchievementDefinition(BaseModel):
    id: Union[int, str]
    challenge_id: Optional[int] = None
    name: str = ""
    description: str = ""
    icon: str = ""
    category: str = "custom"
    trigger_type: TriggerType
    trigger_value: float = 0
    is_hidden: bool = False
    display_order: int = 0

    class Config:
        from_attributes = True


class EarnedAchievement(BaseModel):
    achievement_id: Union[int, str]
    name: str
    description: str = ""
    icon: str = ""
    category: str = "custom"
    earned_at: datetime
    challenge_name: Optional[str] = None


class ParticipantStats(BaseModel):
    """Aggregate stats used for achievement checks. Never persisted."""
    current_streak: int = 0
    longest_streak: int = 0
    total_points: int = 0
    entries_count: int = 0
    perfect_days: int = 0
    completion_rate: int = Field(default=0, ge=0, le=100)
    early_entries: int = 0
    late_entries: int = 0
    challenge_complete: bool = False


class AchievementProgress(BaseModel):
    current: Union[int, float]
    target: Union[int, float]


class AchievementWithProgress(BaseModel):
    achievement: AchievementDefinition
    earned: bool
    earned_at: Optional[datetime] = None
    progress: Optional[AchievementProgress] = None


# Engine result schemas
class Period(BaseModel):
    start: date
    end: date
    label: str  # "Week of Jan 20" or "January 2025"
    key: str    # "2025-01-20" (period_start as YYYY-MM-DD)


class PeriodDueStatus(BaseModel):
    status: PeriodStatus
    days_remaining: int
    text: str


class EntryScore(BaseModel):
    base_points: int = 0
    bonus_points: int = 0
    task_points: Dict[str, int] = Field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.base_points + self.bonus_points


class StreakResult(BaseModel):
    current_streak: int = 0
    longest_streak: int = 0


class TaskPartition(BaseModel):
    daily: List[TaskDefinition] = Field(default_factory=list)
    weekly: List[TaskDefinition] = Field(default_factory=list)
    monthly: List[TaskDefinition] = Field(default_factory=list)
    onetime: List[TaskDefinition] = Field(default_factory=list)


class ChallengeStateResult(BaseModel):
    state: ChallengeState
    is_entry_allowed: bool
    days_in_grace_period: Optional[int] = None
    grace_period_ends_at: Optional[date] = None
    days_remaining_in_grace: Optional[int] = None


class DeadlineInfo(BaseModel):
    status: DeadlineStatus
    text: str


class LeaderboardRow(BaseModel):
    rank: int
    participant_id: Optional[int] = None
    user_id: Optional[str] = None
    total_points: int = 0
    current_streak: int = 0
    longest_streak: int = 0


class SaveEntryResult(BaseModel):
    entry: DailyEntryRecord
    score: EntryScore
    new_achievements: List[EarnedAchievement] = Field(default_factory=list)


class SaveCompletionResult(BaseModel):
    task_id: str
    points: int
    period_key: Optional[str] = None
    new_achievements: List[EarnedAchievement] = Field(default_factory=list)
