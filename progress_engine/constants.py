"""
Shared constants and enumerations for the progress engine.
"""
from enum import Enum


class TaskType(str, Enum):
    """Input type of a challenge task"""
    BOOLEAN = "boolean"
    NUMBER = "number"
    DURATION = "duration"
    CHOICE = "choice"
    TEXT = "text"
    FILE = "file"


class TaskFrequency(str, Enum):
    """How often a task has to be completed"""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ONETIME = "onetime"


class ScoringMode(str, Enum):
    BINARY = "binary"
    SCALED = "scaled"
    TIERED = "tiered"


class ThresholdType(str, Enum):
    MIN = "min"
    MAX = "max"


class StreakBonusMode(str, Enum):
    """How the streak bonus is awarded per entry"""
    FLAT = "flat"                        # streak_bonus_points once per entry
    PER_STREAK_DAY = "per_streak_day"    # streak_bonus_points * current streak


class TriggerType(str, Enum):
    """Stat an achievement unlocks on"""
    STREAK_DAYS = "streak_days"
    TOTAL_POINTS = "total_points"
    ENTRIES_LOGGED = "entries_logged"
    PERFECT_DAYS = "perfect_days"
    COMPLETION_RATE = "completion_rate"
    CHALLENGE_COMPLETE = "challenge_complete"
    EARLY_ENTRIES = "early_entries"
    LATE_ENTRIES = "late_entries"


class DayStatus(str, Enum):
    """Calendar status of a single day for one participant"""
    OUTSIDE = "outside"                # Not in challenge period or future
    ALL_COMPLETE = "all_complete"      # Daily + period tasks all done
    COMPLETED = "completed"            # Daily done or period done
    PARTIAL = "partial"                # Entry saved but not completed
    LATE = "late"                      # Completed but submitted on a later day
    PERIOD_PENDING = "period_pending"  # No daily tasks, period task still open
    TODAY = "today"                    # Today, nothing logged yet
    MISSED = "missed"                  # Deadline passed without completion


class PeriodStatus(str, Enum):
    ENDED = "ended"
    DUE_TODAY = "due_today"
    DUE_SOON = "due_soon"
    UPCOMING = "upcoming"


class ChallengeState(str, Enum):
    UPCOMING = "upcoming"            # Challenge hasn't started yet
    ACTIVE = "active"                # Within normal duration
    GRACE_PERIOD = "grace_period"    # Ended but still accepting entries
    ARCHIVED = "archived"            # Fully ended (past grace period)
    ONGOING = "ongoing"              # No end date


class DeadlinePreset(str, Enum):
    NONE = "none"
    TODAY = "today"
    END_OF_WEEK = "end_of_week"
    ONE_WEEK = "one_week"
    END_OF_MONTH = "end_of_month"
    ONE_MONTH = "one_month"
    CUSTOM = "custom"


class DeadlineStatus(str, Enum):
    OVERDUE = "overdue"
    DUE_TODAY = "due_today"
    DUE_SOON = "due_soon"
    UPCOMING = "upcoming"
    NO_DEADLINE = "no_deadline"


# Participant status values
PARTICIPANT_STATUS_ACTIVE = "active"
PARTICIPANT_STATUS_COMPLETED = "completed"
PARTICIPANT_STATUS_ABANDONED = "abandoned"

# Task defaults
DEFAULT_TASK_POINTS = 1
DEFAULT_THRESHOLD = 0

# Challenge bonus defaults
DEFAULT_STREAK_BONUS_POINTS = 5
DEFAULT_PERFECT_DAY_BONUS_POINTS = 10
DEFAULT_GRACE_PERIOD_DAYS = 7

# Submission time-of-day boundaries (local hours)
EARLY_ENTRY_HOUR = 9    # submitted before 09:00
LATE_ENTRY_HOUR = 21    # submitted at/after 21:00

# Period / deadline windows
DUE_SOON_DAYS = 2
UPCOMING_DETAIL_DAYS = 7
WEEK_START_WEEKDAY = 0  # Monday

# Configuration defaults
DEFAULT_DATABASE_URL = "sqlite:///./progress_engine.db"
DEFAULT_LOG_DIRECTORY_PROD = "/var/log/progress_engine"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"
DEFAULT_LOG_FILE = "progress_engine.log"
DEFAULT_LOG_LEVEL = "INFO"
